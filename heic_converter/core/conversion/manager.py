"""Single-file HEIC/HEIF conversion."""

import time
from pathlib import Path
from typing import Optional, Union

import structlog

from heic_converter.core.batch.models import ConversionOutcome
from heic_converter.core.constants import (
    MAX_QUALITY,
    MIN_QUALITY,
    SUPPORTED_INPUT_FORMATS,
    SUPPORTED_OUTPUT_FORMATS,
)
from heic_converter.core.conversion.formats import HeifHandler, get_handler
from heic_converter.core.conversion.metadata import (
    copy_timestamps,
    extract_exif,
    extract_icc_profile,
)
from heic_converter.core.exceptions import (
    HeicConverterError,
    InvalidImageError,
    UnsupportedFormatError,
    ValidationError,
)
from heic_converter.core.formats import (
    is_supported_input_format,
    is_supported_output_format,
    normalize_extension,
)
from heic_converter.utils.logging import get_logger


class ImageConverter:
    """Converts one HEIC/HEIF file to a raster output format.

    Instances are callable with the batch engine's single-file converter
    signature and are safe to share between worker threads.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self.logger = logger or get_logger(__name__)
        self.decoder = HeifHandler()

    def __call__(
        self,
        input_path: Path,
        output_path: Path,
        target_format: str,
        quality: int,
        preserve_metadata: bool,
    ) -> ConversionOutcome:
        return self.convert(
            input_path, output_path, target_format, quality, preserve_metadata
        )

    def convert(
        self,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        target_format: Optional[str] = None,
        quality: int = 85,
        preserve_metadata: bool = False,
    ) -> ConversionOutcome:
        """Convert ``input_path`` and write the result to ``output_path``.

        Args:
            input_path: HEIC/HEIF source file
            output_path: Destination; may already exist as an empty placeholder
            target_format: Output format; defaults to the output suffix
            quality: Quality from 1 to 100 (meaning depends on the format)
            preserve_metadata: Carry EXIF, ICC profile and file times over

        Returns:
            ConversionOutcome; conversion errors are reported, never raised
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        fmt = normalize_extension(target_format or output_path.suffix)
        start_time = time.perf_counter()

        try:
            self._validate(input_path, fmt, quality)

            image = self.decoder.load_image(input_path)
            handler = get_handler(fmt)

            exif = extract_exif(image) if preserve_metadata else None
            icc_profile = extract_icc_profile(image) if preserve_metadata else None

            try:
                handler.save_image(
                    image, output_path, quality, exif=exif, icc_profile=icc_profile
                )
            except HeicConverterError:
                self._remove_partial(output_path)
                raise

            if preserve_metadata:
                copy_timestamps(input_path, output_path)

        except HeicConverterError as e:
            self.logger.debug(
                f"Conversion failed: {e.message}",
                input_path=str(input_path),
                error_code=e.error_code,
            )
            return ConversionOutcome.failed(
                input_path,
                output_path,
                f"{type(e).__name__}: {e.message}",
                time.perf_counter() - start_time,
            )

        processing_time = time.perf_counter() - start_time
        self.logger.debug(
            "Image converted",
            input_path=str(input_path),
            output_path=str(output_path),
            output_format=fmt,
            processing_time=processing_time,
        )
        return ConversionOutcome.succeeded(input_path, output_path, processing_time)

    def _validate(self, input_path: Path, fmt: str, quality: int) -> None:
        if not input_path.exists():
            raise InvalidImageError(
                f"Input file does not exist: {input_path}",
                details={"field_name": "input_path", "field_value": str(input_path)},
            )
        if not input_path.is_file():
            raise InvalidImageError(
                f"Input path is not a file: {input_path}",
                details={"field_name": "input_path", "field_value": str(input_path)},
            )
        if not is_supported_input_format(input_path.suffix):
            raise UnsupportedFormatError(
                f"Unsupported input format: {input_path.suffix or '(none)'}",
                details={
                    "file_extension": input_path.suffix,
                    "supported_formats": sorted(SUPPORTED_INPUT_FORMATS),
                },
            )
        if not is_supported_output_format(fmt):
            raise UnsupportedFormatError(
                f"Unsupported output format: {fmt or '(none)'}",
                details={
                    "requested_format": fmt,
                    "supported_formats": sorted(SUPPORTED_OUTPUT_FORMATS),
                },
            )
        if not MIN_QUALITY <= quality <= MAX_QUALITY:
            raise ValidationError(
                f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}",
                details={
                    "field_name": "quality",
                    "field_value": quality,
                    "constraints": f"{MIN_QUALITY}-{MAX_QUALITY}",
                },
            )

    @staticmethod
    def _remove_partial(output_path: Path) -> None:
        try:
            output_path.unlink()
        except FileNotFoundError:
            pass
