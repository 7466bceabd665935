"""Unit tests for the batch optimizer worker."""

from pathlib import Path

import pytest
from pydantic import ValidationError
from conftest import make_broken_png, make_image, open_image

from image_optimizer.config import Settings
from image_optimizer.workers import batch
from image_optimizer.workers.batch import BatchConfig, BatchOptimizer, BatchSummary, FileOutcome


def make_config(root: Path, **overrides) -> BatchConfig:
    values = {
        "input_dir": root / "input",
        "output_dir": root / "output",
        "backup_dir": root / "backup",
    }
    values.update(overrides)
    return BatchConfig(**values)


@pytest.fixture
def input_dir(tmp_path) -> Path:
    directory = tmp_path / "input"
    directory.mkdir()
    return directory


def test_batch_with_corrupt_file(tmp_path, input_dir, optimizer):
    large = make_image(1600, 800, noise=True, quality=95)
    small = make_image(300, 200, fmt="PNG")
    (input_dir / "a.jpg").write_bytes(large)
    (input_dir / "b.png").write_bytes(small)
    (input_dir / "c.jpg").write_bytes(b"\xff\xd8 this is not really a jpeg")

    summary = BatchOptimizer(make_config(tmp_path), optimizer).run()

    assert [o.file_name for o in summary.outcomes] == ["a.jpg", "b.png", "c.jpg"]
    assert len(summary.successful) == 2
    assert len(summary.failed) == 1
    assert summary.failed[0].file_name == "c.jpg"
    assert summary.failed[0].error
    assert summary.total_original_size == len(large) + len(small)

    output_a = tmp_path / "output" / "a-optimized.jpeg"
    output_b = tmp_path / "output" / "b-optimized.jpeg"
    assert summary.total_optimized_size == output_a.stat().st_size + output_b.stat().st_size
    assert open_image(output_a.read_bytes()).size == (1200, 600)
    assert open_image(output_b.read_bytes()).format == "JPEG"
    assert not (tmp_path / "output" / "c-optimized.jpeg").exists()


def test_batch_continues_past_broken_png(tmp_path, input_dir, optimizer):
    (input_dir / "a-broken.png").write_bytes(make_broken_png())
    (input_dir / "b-good.jpg").write_bytes(make_image(80, 60))

    summary = BatchOptimizer(make_config(tmp_path), optimizer).run()

    assert [o.file_name for o in summary.failed] == ["a-broken.png"]
    assert "Cannot decode image" in summary.failed[0].error
    assert [o.file_name for o in summary.successful] == ["b-good.jpg"]
    assert (tmp_path / "output" / "b-good-optimized.jpeg").exists()


def test_backups_are_byte_identical(tmp_path, input_dir, optimizer):
    data = make_image(100, 100)
    (input_dir / "photo.JPG").write_bytes(data)

    BatchOptimizer(make_config(tmp_path), optimizer).run()

    assert (tmp_path / "backup" / "photo-original.JPG").read_bytes() == data
    assert (tmp_path / "output" / "photo-optimized.jpeg").exists()


def test_no_backup_when_disabled(tmp_path, input_dir, optimizer):
    (input_dir / "photo.png").write_bytes(make_image(50, 50, fmt="PNG"))

    BatchOptimizer(make_config(tmp_path, preserve_original=False), optimizer).run()

    assert list((tmp_path / "backup").iterdir()) == []


def test_configured_output_format(tmp_path, input_dir, optimizer):
    (input_dir / "photo.jpg").write_bytes(make_image(50, 50))

    BatchOptimizer(make_config(tmp_path, format="webp"), optimizer).run()

    output = tmp_path / "output" / "photo-optimized.webp"
    assert open_image(output.read_bytes()).format == "WEBP"


def test_unsupported_format_fails_every_file(tmp_path, input_dir, optimizer):
    (input_dir / "a.jpg").write_bytes(make_image(50, 50))
    (input_dir / "b.jpg").write_bytes(make_image(50, 50))

    summary = BatchOptimizer(make_config(tmp_path, format="gif"), optimizer).run()

    assert len(summary.failed) == 2
    assert all("Unsupported format" in o.error for o in summary.failed)


def test_ignores_non_image_files(tmp_path, input_dir, optimizer):
    (input_dir / "notes.txt").write_text("hello")
    (input_dir / "nested.jpg").mkdir()

    summary = BatchOptimizer(make_config(tmp_path), optimizer).run()

    assert summary.outcomes == []


def test_creates_missing_directories(tmp_path, optimizer):
    summary = BatchOptimizer(make_config(tmp_path), optimizer).run()

    assert summary.outcomes == []
    for name in ("input", "output", "backup"):
        assert (tmp_path / name).is_dir()


def test_summary_counts_only_successes():
    summary = BatchSummary(
        outcomes=[
            FileOutcome("a.jpg", True, original_size=1000, optimized_size=400),
            FileOutcome("b.jpg", True, original_size=1000, optimized_size=600),
            FileOutcome("c.jpg", False, error="broken"),
        ]
    )
    assert summary.total_original_size == 2000
    assert summary.total_optimized_size == 1000
    assert summary.total_reduction_percent == 50.0


def test_config_is_immutable(tmp_path):
    config = make_config(tmp_path)
    with pytest.raises(ValidationError):
        config.quality = 10


def test_config_from_settings_with_overrides(tmp_path):
    source = Settings(input_dir=str(tmp_path / "in"), default_quality=70)
    config = BatchConfig.from_settings(source, max_width=640, format=None)
    assert config.input_dir == tmp_path / "in"
    assert config.quality == 70
    assert config.max_width == 640
    assert config.format == "jpeg"
    assert config.preserve_original is True


def test_main_returns_zero_on_completed_batch(tmp_path, input_dir):
    (input_dir / "a.jpg").write_bytes(make_image(50, 50))
    (input_dir / "b.jpg").write_bytes(b"garbage")

    status = batch.main(
        [
            "--input-dir", str(input_dir),
            "--output-dir", str(tmp_path / "out"),
            "--backup-dir", str(tmp_path / "bak"),
            "--no-backup",
        ]
    )

    assert status == 0
    assert (tmp_path / "out" / "a-optimized.jpeg").exists()
    assert not (tmp_path / "bak" / "a-original.jpg").exists()


def test_main_returns_one_when_input_dir_unusable(tmp_path):
    blocker = tmp_path / "input"
    blocker.write_text("a file, not a directory")

    status = batch.main(
        [
            "--input-dir", str(blocker),
            "--output-dir", str(tmp_path / "out"),
            "--backup-dir", str(tmp_path / "bak"),
        ]
    )

    assert status == 1


def test_main_rejects_invalid_quality(tmp_path):
    status = batch.main(["--input-dir", str(tmp_path), "--quality", "0"])
    assert status == 1
