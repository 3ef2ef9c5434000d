"""Data models for the batch conversion engine."""

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from heic_converter.core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_QUALITY,
    MAX_QUALITY,
    MIN_QUALITY,
    SUPPORTED_OUTPUT_FORMATS,
)
from heic_converter.core.formats import normalize_extension

if TYPE_CHECKING:
    from heic_converter.config import Settings


class BatchState(str, Enum):
    """Lifecycle state of a batch controller."""

    IDLE = "idle"
    VALIDATING = "validating"
    SCANNING = "scanning"
    SCHEDULING = "scheduling"
    DRAINING = "draining"
    REPORTING = "reporting"


class BatchRequest(BaseModel):
    """Settings shared by every file of one batch invocation."""

    output_format: str = Field(..., description="Target extension, e.g. 'jpg'")
    output_directory: Path = Field(..., description="Directory for converted files")
    quality: int = Field(
        default=DEFAULT_QUALITY,
        ge=MIN_QUALITY,
        le=MAX_QUALITY,
        description="Quality setting (meaning depends on format)",
    )
    preserve_metadata: bool = Field(
        default=False, description="Carry EXIF data and timestamps over"
    )
    verbose: bool = Field(default=False, description="Log progress at info level")

    @field_validator("output_format")
    @classmethod
    def normalize_output_format(cls, v: str) -> str:
        """Normalize to a lowercase extension without the leading dot."""
        normalized = normalize_extension(v)
        if normalized not in SUPPORTED_OUTPUT_FORMATS:
            raise ValueError(
                f"Unsupported output format '{v}'. "
                f"Supported: {', '.join(sorted(SUPPORTED_OUTPUT_FORMATS))}"
            )
        return normalized


class BatchSizeConfig(BaseModel):
    """Scheduling configuration for a batch controller."""

    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE, gt=0, description="Files per scheduling round"
    )
    parallel: bool = Field(default=True, description="Run a round concurrently")
    task_timeout: Optional[float] = Field(
        default=None, gt=0, description="Per-file deadline in seconds"
    )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "BatchSizeConfig":
        return cls(
            batch_size=settings.batch_size,
            parallel=settings.parallel,
            task_timeout=settings.task_timeout,
        )


class ConversionOutcome(BaseModel):
    """Result of converting one file. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    input_path: Path = Field(..., description="Source file")
    output_path: Optional[Path] = Field(
        None, description="Resolved destination (None if resolution failed)"
    )
    success: bool = Field(..., description="Whether the conversion succeeded")
    error: Optional[str] = Field(None, description="Error message if failed")
    processing_time: float = Field(
        default=0.0, ge=0, description="Processing time in seconds"
    )

    @classmethod
    def succeeded(
        cls,
        input_path: Path,
        output_path: Optional[Path],
        processing_time: float = 0.0,
    ) -> "ConversionOutcome":
        return cls(
            input_path=input_path,
            output_path=output_path,
            success=True,
            processing_time=processing_time,
        )

    @classmethod
    def failed(
        cls,
        input_path: Path,
        output_path: Optional[Path],
        error: str,
        processing_time: float = 0.0,
    ) -> "ConversionOutcome":
        return cls(
            input_path=input_path,
            output_path=output_path,
            success=False,
            error=error,
            processing_time=processing_time,
        )

    def with_timing(self, processing_time: float) -> "ConversionOutcome":
        """Return a copy carrying ``processing_time``."""
        return self.model_copy(update={"processing_time": processing_time})


class BatchStatistics(BaseModel):
    """Aggregate counts of one batch invocation."""

    processed: int = Field(default=0, ge=0, description="Successful conversions")
    failed: int = Field(default=0, ge=0, description="Failed conversions")
    failed_files: List[Path] = Field(
        default_factory=list, description="Failed input paths, in batch order"
    )

    @property
    def total(self) -> int:
        return self.processed + self.failed


class BatchResult(BaseModel):
    """Everything a caller can query after a batch call returns."""

    success: bool = Field(..., description="True when no file failed")
    statistics: BatchStatistics = Field(default_factory=BatchStatistics)
    outcomes: List[ConversionOutcome] = Field(
        default_factory=list, description="Per-file outcomes in input order"
    )
    chunks: int = Field(default=0, ge=0, description="Scheduling rounds run")
    elapsed: float = Field(default=0.0, ge=0, description="Wall time in seconds")
