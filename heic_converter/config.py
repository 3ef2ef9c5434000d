from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from heic_converter.core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_SCAN_DEPTH,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_QUALITY,
    MAX_QUALITY,
    MIN_QUALITY,
    SUPPORTED_OUTPUT_FORMATS,
)


class Settings(BaseSettings):
    # Application
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    # Logging Configuration
    logging_enabled: bool = Field(
        default=False, description="Enable rotating file logging"
    )
    log_dir: str = Field(default="./logs", description="Directory for log files")
    max_log_size_mb: int = Field(
        default=10, description="Maximum size of each log file in MB"
    )
    log_backup_count: int = Field(
        default=3, description="Number of backup log files to keep"
    )
    redact_paths: bool = Field(
        default=False, description="Mask file paths and names in log output"
    )

    # Batch Processing
    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE, description="Files scheduled per round"
    )
    parallel: bool = Field(
        default=True, description="Convert files of a round concurrently"
    )
    task_timeout: Optional[float] = Field(
        default=None, description="Per-file deadline in seconds (None disables)"
    )
    recursive: bool = Field(
        default=False, description="Scan input directories recursively"
    )
    max_scan_depth: int = Field(
        default=DEFAULT_MAX_SCAN_DEPTH, description="Maximum directory scan depth"
    )

    # Conversion Defaults
    default_output_format: str = Field(
        default=DEFAULT_OUTPUT_FORMAT, description="Default output format"
    )
    default_quality: int = Field(
        default=DEFAULT_QUALITY, description="Default quality for lossy formats"
    )
    preserve_metadata: bool = Field(
        default=False, description="Preserve EXIF data and timestamps by default"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @field_validator("batch_size", "max_scan_depth")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("value must be a positive integer")
        return v

    @field_validator("task_timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError("task_timeout must be positive when set")
        return v

    @field_validator("default_quality")
    @classmethod
    def validate_quality(cls, v):
        if not MIN_QUALITY <= v <= MAX_QUALITY:
            raise ValueError(
                f"default_quality must be between {MIN_QUALITY} and {MAX_QUALITY}"
            )
        return v

    @field_validator("default_output_format")
    @classmethod
    def validate_output_format(cls, v):
        normalized = v.strip().lstrip(".").lower()
        if normalized not in SUPPORTED_OUTPUT_FORMATS:
            raise ValueError(
                f"default_output_format must be one of {sorted(SUPPORTED_OUTPUT_FORMATS)}"
            )
        return normalized

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="HEIC_CONVERTER_",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()


settings = Settings()
