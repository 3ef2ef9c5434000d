"""Format registry: extension normalization and support lookups."""

from pathlib import Path
from typing import Union

from heic_converter.core.constants import (
    DEFAULT_MIME_TYPE,
    DEFAULT_OUTPUT_FORMAT,
    FORMAT_MIME_TYPES,
    SUPPORTED_INPUT_FORMATS,
    SUPPORTED_OUTPUT_FORMATS,
)


def normalize_extension(extension: str) -> str:
    """Return ``extension`` lowercased and without a leading dot.

    Example: ``".HEIC"`` -> ``"heic"``
    """
    return extension.strip().lstrip(".").lower()


def is_supported_input_format(extension: str) -> bool:
    """Check whether ``extension`` (any case, dot optional) can be read."""
    if not extension:
        return False
    return normalize_extension(extension) in SUPPORTED_INPUT_FORMATS


def is_supported_output_format(extension: str) -> bool:
    """Check whether ``extension`` (any case, dot optional) can be written."""
    if not extension:
        return False
    return normalize_extension(extension) in SUPPORTED_OUTPUT_FORMATS


def get_mime_type(extension: str) -> str:
    return FORMAT_MIME_TYPES.get(normalize_extension(extension), DEFAULT_MIME_TYPE)


def get_extension_for_mime_type(mime_type: str) -> str:
    """Return the first extension registered for ``mime_type``, or ``""``."""
    for extension, mime in FORMAT_MIME_TYPES.items():
        if mime == mime_type:
            return extension
    return ""


def get_default_output_path(input_path: Union[str, Path]) -> Path:
    """Derive an output path next to ``input_path`` using the default format.

    A directory input is returned unchanged: converted files land beside
    their sources.
    """
    path = Path(input_path)
    if path.is_dir():
        return path
    return path.with_name(f"{path.stem}.{DEFAULT_OUTPUT_FORMAT}")
