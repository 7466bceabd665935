"""Batch worker that optimizes every image found in an input directory."""

import argparse
import logging
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from image_optimizer.clients.codec import codec
from image_optimizer.config import Settings, settings
from image_optimizer.domain.models import (
    DEFAULT_MAX_WIDTH,
    DEFAULT_QUALITY,
    OptimizationRequest,
    format_size,
    reduction_percent,
)
from image_optimizer.logging_config import setup_logging
from image_optimizer.services.exceptions import OptimizerError
from image_optimizer.services.optimizer import ImageOptimizer

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


class BatchConfig(BaseModel):
    """Immutable settings for one batch run, built once at startup."""

    input_dir: Path
    output_dir: Path
    backup_dir: Path
    quality: int = Field(DEFAULT_QUALITY, ge=1, le=100)
    max_width: int = Field(DEFAULT_MAX_WIDTH, gt=0)
    format: str = "jpeg"
    preserve_original: bool = True

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls, source: Settings, **overrides) -> "BatchConfig":
        values = {
            "input_dir": source.input_dir,
            "output_dir": source.output_dir,
            "backup_dir": source.backup_dir,
            "quality": source.default_quality,
            "max_width": source.default_max_width,
            "format": source.default_format,
            "preserve_original": source.preserve_original,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass(frozen=True)
class FileOutcome:
    file_name: str
    success: bool
    original_size: int = 0
    optimized_size: int = 0
    reduction_percent: float = 0.0
    error: str | None = None


@dataclass
class BatchSummary:
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def successful(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def total_original_size(self) -> int:
        return sum(o.original_size for o in self.successful)

    @property
    def total_optimized_size(self) -> int:
        return sum(o.optimized_size for o in self.successful)

    @property
    def total_reduction_percent(self) -> float:
        return reduction_percent(self.total_original_size, self.total_optimized_size)


class BatchOptimizer:
    """Optimizes images one at a time, recording failures without stopping."""

    def __init__(self, config: BatchConfig, optimizer: ImageOptimizer) -> None:
        self.config = config
        self.optimizer = optimizer

    def ensure_directories(self) -> None:
        for directory in (self.config.input_dir, self.config.output_dir, self.config.backup_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def list_images(self) -> list[Path]:
        return sorted(
            path
            for path in self.config.input_dir.iterdir()
            if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS
        )

    def output_path(self, source: Path) -> Path:
        return self.config.output_dir / f"{source.stem}-optimized.{self.config.format.lower()}"

    def backup_path(self, source: Path) -> Path:
        return self.config.backup_dir / f"{source.stem}-original{source.suffix}"

    def process_file(self, source: Path) -> FileOutcome:
        logger.info(f"Processing {source.name}")
        try:
            if self.config.preserve_original:
                shutil.copyfile(source, self.backup_path(source))
                logger.info(f"Backup created for {source.name}")
            request = OptimizationRequest(
                image_bytes=source.read_bytes(),
                quality=self.config.quality,
                max_width=self.config.max_width,
                format=self.config.format,
                strict_format=True,
            )
            result = self.optimizer.optimize(request)
            self.output_path(source).write_bytes(result.output_bytes)
        except (OptimizerError, OSError) as exc:
            logger.error(f"Failed to optimize {source.name}: {exc}")
            return FileOutcome(file_name=source.name, success=False, error=str(exc))

        logger.info(
            f"{source.name}: {format_size(result.original_size_bytes)} -> "
            f"{format_size(result.optimized_size_bytes)} ({result.reduction_percent:.2f}% reduction)"
        )
        return FileOutcome(
            file_name=source.name,
            success=True,
            original_size=result.original_size_bytes,
            optimized_size=result.optimized_size_bytes,
            reduction_percent=result.reduction_percent,
        )

    def run(self) -> BatchSummary:
        """Optimize every image in the input directory.

        Directory errors propagate, per-file errors end up in the summary.
        """
        self.ensure_directories()
        files = self.list_images()
        summary = BatchSummary()
        if not files:
            logger.warning(f"No images found in {self.config.input_dir}")
            return summary

        logger.info(
            f"Found {len(files)} image(s) to process "
            f"(quality={self.config.quality}, max_width={self.config.max_width}, "
            f"format={self.config.format})"
        )
        for source in files:
            summary.outcomes.append(self.process_file(source))

        self.log_summary(summary)
        return summary

    def log_summary(self, summary: BatchSummary) -> None:
        logger.info(f"Successful: {len(summary.successful)}")
        if summary.failed:
            logger.info(f"Failed: {len(summary.failed)}")
        if not summary.successful:
            return
        logger.info(f"Total original size: {format_size(summary.total_original_size)}")
        logger.info(f"Total optimized size: {format_size(summary.total_optimized_size)}")
        logger.info(f"Total reduction: {summary.total_reduction_percent:.2f}%")
        logger.info(f"Optimized images saved to: {self.config.output_dir}")
        if self.config.preserve_original:
            logger.info(f"Original backups saved to: {self.config.backup_dir}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Optimize every image in a directory")
    parser.add_argument("--input-dir", help="Directory to read images from")
    parser.add_argument("--output-dir", help="Directory for optimized images")
    parser.add_argument("--backup-dir", help="Directory for copies of the originals")
    parser.add_argument("--quality", type=int, help="Encoder quality, 1-100")
    parser.add_argument("--max-width", type=int, help="Downsize images wider than this")
    parser.add_argument("--format", help="Output format: jpeg, png or webp")
    parser.add_argument(
        "--no-backup",
        dest="preserve_original",
        action="store_false",
        default=None,
        help="Do not copy originals to the backup directory",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the batch worker. Returns the process exit status."""
    setup_logging()
    args = parse_args(argv)
    try:
        config = BatchConfig.from_settings(settings, **vars(args))
        BatchOptimizer(config, ImageOptimizer(codec)).run()
    except Exception as exc:
        logger.critical(f"Fatal error: {exc}", exc_info=True)
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
