"""Format handlers for reading HEIF and writing the supported output formats."""

from typing import Dict, Type

from heic_converter.core.conversion.formats.base import BaseFormatHandler
from heic_converter.core.conversion.formats.bmp_handler import BmpHandler
from heic_converter.core.conversion.formats.heif_handler import HeifHandler
from heic_converter.core.conversion.formats.jpeg_handler import JPEGHandler
from heic_converter.core.conversion.formats.png_handler import PNGHandler
from heic_converter.core.conversion.formats.tiff_handler import TiffHandler
from heic_converter.core.conversion.formats.webp_handler import WebPHandler
from heic_converter.core.exceptions import UnsupportedFormatError
from heic_converter.core.formats import normalize_extension

OUTPUT_HANDLERS: Dict[str, Type[BaseFormatHandler]] = {
    "jpg": JPEGHandler,
    "jpeg": JPEGHandler,
    "png": PNGHandler,
    "webp": WebPHandler,
    "tiff": TiffHandler,
    "tif": TiffHandler,
    "bmp": BmpHandler,
}


def get_handler(output_format: str) -> BaseFormatHandler:
    """Return a handler instance for ``output_format``.

    Raises:
        UnsupportedFormatError: If no handler writes that format
    """
    fmt = normalize_extension(output_format)
    handler_class = OUTPUT_HANDLERS.get(fmt)
    if handler_class is None:
        raise UnsupportedFormatError(
            f"Unsupported output format: {output_format}",
            details={
                "requested_format": output_format,
                "supported_formats": sorted(OUTPUT_HANDLERS),
            },
        )
    return handler_class()


__all__ = [
    "BaseFormatHandler",
    "BmpHandler",
    "HeifHandler",
    "JPEGHandler",
    "OUTPUT_HANDLERS",
    "PNGHandler",
    "TiffHandler",
    "WebPHandler",
    "get_handler",
]
