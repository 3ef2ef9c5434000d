"""PNG format handler."""

from typing import Any, Dict

from heic_converter.core.conversion.formats.base import BaseFormatHandler


class PNGHandler(BaseFormatHandler):
    """Handler for PNG format."""

    def __init__(self) -> None:
        """Initialize PNG handler."""
        super().__init__()
        self.supported_formats = ["png"]
        self.format_name = "PNG"

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get PNG-specific quality parameters."""
        # PNG uses compression level (0-9) instead of quality
        # Map quality 1-100 to compression 9-0 (inverse relationship)
        compression_level = int(9 - (quality / 100) * 9)
        compression_level = max(0, min(9, compression_level))

        return {"compress_level": compression_level}

    def _supports_transparency(self) -> bool:
        """PNG supports transparency."""
        return True

    def _supports_mode(self, mode: str) -> bool:
        return mode in ("RGB", "RGBA", "L", "LA", "I", "1")

    def _supports_exif(self) -> bool:
        return True

    def _supports_icc_profile(self) -> bool:
        return True
