"""EXIF and file timestamp carry-over."""

import os
from pathlib import Path
from typing import Optional, Union

import piexif
import structlog
from PIL import Image

logger = structlog.get_logger()


def extract_exif(image: Image.Image) -> Optional[bytes]:
    """Return the image's EXIF block ready to embed in the output.

    The orientation tag is reset to 1 (pixels are already upright) and the
    embedded thumbnail is dropped. Returns None if the image has no EXIF or
    the block cannot be parsed.
    """
    exif_bytes = image.info.get("exif", b"")
    if not exif_bytes:
        return None

    try:
        exif_dict = piexif.load(exif_bytes)

        if piexif.ImageIFD.Orientation in exif_dict.get("0th", {}):
            exif_dict["0th"][piexif.ImageIFD.Orientation] = 1

        # Remove thumbnail
        exif_dict["1st"] = {}
        exif_dict["thumbnail"] = None

        return piexif.dump(exif_dict)
    except Exception as e:
        logger.warning(f"Discarding unreadable EXIF data: {e}")
        return None


def extract_icc_profile(image: Image.Image) -> Optional[bytes]:
    return image.info.get("icc_profile") or None


def copy_timestamps(source: Union[str, Path], destination: Union[str, Path]) -> bool:
    """Copy access and modification times from ``source`` to ``destination``.

    Returns:
        True if the timestamps were applied
    """
    try:
        stat = os.stat(source)
        os.utime(destination, ns=(stat.st_atime_ns, stat.st_mtime_ns))
    except OSError as e:
        logger.warning(
            f"Failed to copy file timestamps: {e}", output_path=str(destination)
        )
        return False
    return True
