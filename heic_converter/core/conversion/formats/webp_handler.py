"""WebP format handler."""

from typing import Any, Dict

from heic_converter.core.conversion.formats.base import BaseFormatHandler


class WebPHandler(BaseFormatHandler):
    """Handler for WebP format."""

    def __init__(self):
        """Initialize WebP handler."""
        super().__init__()
        self.supported_formats = ["webp"]
        self.format_name = "WEBP"

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get WebP-specific quality parameters."""
        # WebP quality range is 0-100 (same as our range)
        return {"quality": quality, "method": 4}  # Balanced speed/compression

    def _supports_transparency(self) -> bool:
        """WebP supports transparency."""
        return True

    def _supports_exif(self) -> bool:
        return True

    def _supports_icc_profile(self) -> bool:
        return True
