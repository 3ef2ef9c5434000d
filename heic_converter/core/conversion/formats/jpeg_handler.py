"""JPEG format handler."""

from typing import Any, Dict

from heic_converter.core.conversion.formats.base import BaseFormatHandler


class JPEGHandler(BaseFormatHandler):
    """Handler for JPEG format."""

    def __init__(self):
        """Initialize JPEG handler."""
        super().__init__()
        self.supported_formats = ["jpeg", "jpg"]
        self.format_name = "JPEG"

    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get JPEG-specific quality parameters."""
        # Values above 95 grow the file without visible gain
        jpeg_quality = int((quality / 100) * 95)
        jpeg_quality = max(1, min(95, jpeg_quality))

        return {
            "quality": jpeg_quality,
            "subsampling": 0 if quality > 90 else 2,  # 4:4:4 for high quality
        }

    def _supports_mode(self, mode: str) -> bool:
        """Check if JPEG supports the given color mode."""
        return mode in ("RGB", "L", "CMYK")

    def _supports_exif(self) -> bool:
        return True

    def _supports_icc_profile(self) -> bool:
        return True
