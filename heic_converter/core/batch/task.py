"""Single-file unit of work inside a batch."""

import time
from pathlib import Path
from typing import Optional, Protocol, Union

import structlog

from heic_converter.core.batch.models import ConversionOutcome
from heic_converter.core.constants import MAX_ERROR_MESSAGE_LENGTH
from heic_converter.core.formats import normalize_extension
from heic_converter.utils.logging import get_logger


class SingleFileConverter(Protocol):
    """Anything that converts one file and reports the result."""

    def __call__(
        self,
        input_path: Path,
        output_path: Path,
        target_format: str,
        quality: int,
        preserve_metadata: bool,
    ) -> Union[ConversionOutcome, bool]: ...


def describe_error(error: BaseException) -> str:
    """Human-readable, length-limited description of ``error``."""
    message = str(error) or "no details"
    return f"{type(error).__name__}: {message}"[:MAX_ERROR_MESSAGE_LENGTH]


class ConversionTask:
    """Runs the single-file converter and turns every failure into data.

    ``run`` never raises: exceptions from the converter become a failed
    ``ConversionOutcome`` so one bad file cannot abort the batch.
    """

    def __init__(
        self,
        converter: SingleFileConverter,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ):
        self.converter = converter
        self.logger = logger or get_logger(__name__)

    def run(
        self,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        quality: int,
        preserve_metadata: bool,
        target_format: Optional[str] = None,
    ) -> ConversionOutcome:
        input_path = Path(input_path)
        output_path = Path(output_path)
        fmt = normalize_extension(target_format or output_path.suffix)

        start_time = time.perf_counter()
        try:
            result = self.converter(
                input_path, output_path, fmt, quality, preserve_metadata
            )
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            self.logger.error(
                f"Failed to process file: {e}", input_path=str(input_path)
            )
            return ConversionOutcome.failed(
                input_path, output_path, describe_error(e), elapsed
            )

        elapsed = time.perf_counter() - start_time

        if isinstance(result, ConversionOutcome):
            outcome = result.with_timing(elapsed)
        elif result:
            outcome = ConversionOutcome.succeeded(input_path, output_path, elapsed)
        else:
            outcome = ConversionOutcome.failed(
                input_path, output_path, "Converter reported failure", elapsed
            )

        if outcome.success:
            self.logger.info(
                f"Converted in {elapsed:.2f}s",
                input_path=str(input_path),
                output_path=str(output_path),
                status="success",
            )
        else:
            self.logger.error(
                f"Conversion failed: {outcome.error}", input_path=str(input_path)
            )
        return outcome
