"""HEIF/HEIC decoding."""

from pathlib import Path
from typing import List

import pillow_heif
import structlog
from PIL import Image, ImageOps

from heic_converter.core.exceptions import HeifDecodingError

# Register HEIF opener with Pillow
pillow_heif.register_heif_opener()

logger = structlog.get_logger()


class HeifHandler:
    """Loads HEIF/HEIC files into Pillow images."""

    def __init__(self):
        """Initialize HEIF handler."""
        self.supported_formats: List[str] = ["heif", "heic"]
        self.format_name = "HEIF"

    def can_handle(self, format_name: str) -> bool:
        """Check if this handler can read the given format."""
        return format_name.lower().lstrip(".") in self.supported_formats

    def load_image(self, input_path: Path) -> Image.Image:
        """Decode ``input_path`` with EXIF orientation applied.

        Raises:
            HeifDecodingError: If the file is not a decodable HEIF image
        """
        try:
            with Image.open(input_path) as img:
                img.load()
                info = dict(img.info)
                # Rotate pixels upright; the returned copy is detached from the file
                image = ImageOps.exif_transpose(img)

            # exif_transpose already rewrote the orientation tag when it
            # rotated; otherwise keep the original EXIF/ICC blocks
            for key in ("exif", "icc_profile"):
                if key in info and key not in image.info:
                    image.info[key] = info[key]

            if image.mode not in ("RGB", "RGBA", "L", "LA"):
                if "transparency" in image.info:
                    image = image.convert("RGBA")
                else:
                    image = image.convert("RGB")

            return image

        except Exception as e:
            logger.debug("HEIF decoding failed", input_path=str(input_path))
            raise HeifDecodingError(
                f"Failed to load HEIF image: {str(e)}",
                details={"file_extension": input_path.suffix.lower()},
            ) from e
