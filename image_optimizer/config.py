from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "Image Optimizer"
    host: str = "0.0.0.0"
    port: int = 3000
    api_prefix: str = ""
    log_level: str = "INFO"

    # Upload limits enforced by the HTTP layer before the optimizer runs
    max_upload_size: int = 20 * 1024 * 1024
    allowed_content_types: list[str] = ["image/jpeg", "image/png", "image/webp"]

    default_quality: int = 85
    default_max_width: int = 1200
    default_format: str = "jpeg"

    # Batch run
    input_dir: str = "input"
    output_dir: str = "output"
    backup_dir: str = "backup"
    preserve_original: bool = True

    model_config = SettingsConfigDict(env_file=".env", env_prefix="IMAGE_OPTIMIZER_")


settings = Settings()
