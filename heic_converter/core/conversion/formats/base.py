"""Base format handler interface."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from PIL import Image

from heic_converter.core.exceptions import ConversionFailedError


class BaseFormatHandler(ABC):
    """Abstract base class for output format handlers."""

    def __init__(self) -> None:
        """Initialize format handler."""
        self.supported_formats: List[str] = []
        self.format_name: str = ""

    def can_handle(self, format_name: str) -> bool:
        """Check if this handler can write the given format."""
        return format_name.lower().lstrip(".") in self.supported_formats

    @abstractmethod
    def get_quality_param(self, quality: int) -> Dict[str, Any]:
        """Get format-specific quality parameters."""

    def save_image(
        self,
        image: Image.Image,
        output_path: Path,
        quality: int,
        exif: Optional[bytes] = None,
        icc_profile: Optional[bytes] = None,
    ) -> None:
        """Encode ``image`` and write it to ``output_path``.

        Raises:
            ConversionFailedError: If Pillow cannot encode or write the image
        """
        try:
            image = self.prepare_image(image)
            save_params = self.get_quality_param(quality)

            if exif and self._supports_exif():
                save_params["exif"] = exif
            if icc_profile and self._supports_icc_profile():
                save_params["icc_profile"] = icc_profile

            image.save(output_path, format=self.format_name, **save_params)

        except Exception as e:
            raise ConversionFailedError(
                f"Failed to save image as {self.format_name}: {str(e)}",
                details={"output_format": self.format_name, "reason": str(e)},
            ) from e

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """Prepare image for conversion (e.g., convert color mode if needed)."""
        if image.mode == "P":
            image = image.convert("RGBA" if "transparency" in image.info else "RGB")

        # Flatten transparency onto white for formats without an alpha channel
        if image.mode in ("RGBA", "LA") and not self._supports_transparency():
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background

        if not self._supports_mode(image.mode):
            return image.convert("RGB")

        return image

    def _supports_transparency(self) -> bool:
        """Check if format supports transparency."""
        return False

    def _supports_mode(self, mode: str) -> bool:
        """Check if format supports the given color mode."""
        return mode in ("RGB", "RGBA")

    def _supports_exif(self) -> bool:
        return False

    def _supports_icc_profile(self) -> bool:
        return False
