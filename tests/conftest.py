"""Pytest fixtures for HEIC converter tests."""

import logging
import os
import threading
import time
from pathlib import Path
from typing import List, Optional

import pytest
import structlog
from PIL import Image

# Keep a developer's .env or shell settings out of the tests
for _key in list(os.environ):
    if _key.startswith("HEIC_CONVERTER_"):
        del os.environ[_key]

from heic_converter.core.batch.models import BatchRequest, ConversionOutcome  # noqa: E402


class FakeConverter:
    """Single-file converter double.

    Writes a few bytes to the output path, raises for inputs whose name
    contains ``fail_marker`` and records concurrency for barrier checks.
    """

    def __init__(self, fail_marker: str = "err", delay: float = 0.0):
        self.fail_marker = fail_marker
        self.delay = delay
        self.calls: List[Path] = []
        self.outputs: List[Path] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def __call__(
        self,
        input_path: Path,
        output_path: Path,
        target_format: str,
        quality: int,
        preserve_metadata: bool,
    ) -> ConversionOutcome:
        with self._lock:
            self.calls.append(input_path)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_marker and self.fail_marker in input_path.name:
                raise RuntimeError(f"cannot decode {input_path.name}")
            output_path.write_bytes(b"converted")
            with self._lock:
                self.outputs.append(output_path)
            return ConversionOutcome.succeeded(input_path, output_path)
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by a test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def fake_converter():
    """Converter double that fails on names containing 'err'."""
    return FakeConverter()


@pytest.fixture
def converter_factory():
    """Build FakeConverter instances with custom settings."""
    return FakeConverter


@pytest.fixture
def output_dir(tmp_path):
    """Not-yet-existing output directory."""
    return tmp_path / "out"


@pytest.fixture
def batch_request(output_dir):
    """Default JPEG batch request targeting ``output_dir``."""
    return BatchRequest(output_format="jpg", output_directory=output_dir)


@pytest.fixture
def input_dir(tmp_path):
    """Input directory with mixed content (contents are not real images)."""
    directory = tmp_path / "in"
    directory.mkdir()
    for name in ("image1.heic", "image2.heif", "notes.txt", "image3.jpg"):
        (directory / name).write_bytes(b"data")
    return directory


@pytest.fixture
def make_heic(tmp_path):
    """Factory writing a real HEIC file."""
    import pillow_heif

    pillow_heif.register_heif_opener()

    def _make(
        name: str = "photo.heic",
        size=(32, 24),
        mode: str = "RGB",
        exif: Optional[bytes] = None,
        directory: Optional[Path] = None,
    ) -> Path:
        color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
        image = Image.new(mode, size, color)
        path = (directory or tmp_path) / name
        params = {"quality": 90}
        if exif:
            params["exif"] = exif
        image.save(path, format="HEIF", **params)
        return path

    return _make
