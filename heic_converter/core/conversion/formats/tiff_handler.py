"""TIFF format handler."""

from typing import Any, Dict

from heic_converter.core.conversion.formats.base import BaseFormatHandler


class TiffHandler(BaseFormatHandler):
    """Handler for TIFF format."""

    def __init__(self):
        """Initialize TIFF handler."""
        super().__init__()
        self.supported_formats = ["tiff", "tif"]
        self.format_name = "TIFF"

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get TIFF-specific quality parameters."""
        # Lossless LZW regardless of quality
        return {"compression": "tiff_lzw"}

    def _supports_transparency(self) -> bool:
        """TIFF supports transparency through alpha channel."""
        return True

    def _supports_mode(self, mode: str) -> bool:
        """Check if TIFF supports the given color mode."""
        return mode in ("RGB", "RGBA", "L", "LA", "CMYK", "1")

    def _supports_exif(self) -> bool:
        return True

    def _supports_icc_profile(self) -> bool:
        return True
