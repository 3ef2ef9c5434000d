"""Single-file conversion built on Pillow and pillow-heif."""

from heic_converter.core.conversion.manager import ImageConverter

__all__ = ["ImageConverter"]
