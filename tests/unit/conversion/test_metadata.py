"""Unit tests for metadata helpers."""

import os

import piexif
from PIL import Image

from heic_converter.core.conversion.metadata import (
    copy_timestamps,
    extract_exif,
    extract_icc_profile,
)


class TestExtractExif:
    """Test EXIF preparation."""

    def test_no_exif(self):
        """Test images without EXIF yield None."""
        assert extract_exif(Image.new("RGB", (2, 2))) is None

    def test_orientation_reset_and_thumbnail_dropped(self):
        """Test orientation becomes 1 and other tags survive."""
        image = Image.new("RGB", (2, 2))
        image.info["exif"] = piexif.dump(
            {
                "0th": {
                    piexif.ImageIFD.Orientation: 6,
                    piexif.ImageIFD.Make: b"TestCam",
                }
            }
        )

        exif_dict = piexif.load(extract_exif(image))

        assert exif_dict["0th"][piexif.ImageIFD.Orientation] == 1
        assert exif_dict["0th"][piexif.ImageIFD.Make] == b"TestCam"
        assert exif_dict["thumbnail"] is None

    def test_unreadable_exif(self):
        """Test garbage EXIF is discarded."""
        image = Image.new("RGB", (2, 2))
        image.info["exif"] = b"garbage"

        assert extract_exif(image) is None

    def test_icc_profile(self):
        """Test ICC profile lookup."""
        image = Image.new("RGB", (2, 2))
        assert extract_icc_profile(image) is None

        image.info["icc_profile"] = b"profile"
        assert extract_icc_profile(image) == b"profile"


class TestCopyTimestamps:
    """Test timestamp carry-over."""

    def test_copies_times(self, tmp_path):
        """Test atime and mtime are copied."""
        source = tmp_path / "a.heic"
        target = tmp_path / "a.jpg"
        source.write_bytes(b"x")
        target.write_bytes(b"y")
        os.utime(source, (1_500_000_000, 1_600_000_000))

        assert copy_timestamps(source, target) is True

        stat = target.stat()
        assert int(stat.st_atime) == 1_500_000_000
        assert int(stat.st_mtime) == 1_600_000_000

    def test_missing_source(self, tmp_path):
        """Test a missing source reports failure without raising."""
        target = tmp_path / "a.jpg"
        target.write_bytes(b"y")

        assert copy_timestamps(tmp_path / "missing.heic", target) is False
