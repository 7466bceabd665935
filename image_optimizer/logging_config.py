import logging

from image_optimizer.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once for the API and the batch runner."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
    # Pillow logs every plugin probe at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)
