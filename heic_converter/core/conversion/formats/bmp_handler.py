"""BMP format handler."""

from typing import Any, Dict

from heic_converter.core.conversion.formats.base import BaseFormatHandler


class BmpHandler(BaseFormatHandler):
    """Handler for BMP format."""

    def __init__(self):
        """Initialize BMP handler."""
        super().__init__()
        self.supported_formats = ["bmp"]
        self.format_name = "BMP"

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """BMP doesn't support quality settings."""
        return {}

    def _supports_mode(self, mode: str) -> bool:
        # Normalized to 24-bit RGB
        return mode == "RGB"
