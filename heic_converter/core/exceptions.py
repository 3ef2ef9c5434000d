from enum import IntEnum
from typing import Dict, List, Optional, TypedDict, Union


class ErrorCode(IntEnum):
    """Process exit codes used by the CLI."""

    SUCCESS = 0
    INVALID_ARGUMENTS = 1
    UNSUPPORTED_FORMAT = 2
    FILE_NOT_FOUND = 3
    READ_PERMISSION = 4
    WRITE_PERMISSION = 5
    DECODING_FAILED = 6
    ENCODING_FAILED = 7
    MEMORY_ALLOCATION = 8
    CODEC_INITIALIZATION = 9
    BATCH_PROCESSING = 10
    UNKNOWN = 255


class ConversionDetails(TypedDict, total=False):
    """Type-safe details for conversion errors."""

    input_format: str
    output_format: str
    file_size: int
    dimensions: tuple[int, int]
    quality: int
    reason: str


class ValidationDetails(TypedDict, total=False):
    """Type-safe details for validation errors."""

    field_name: str
    field_value: Union[str, int, float, bool]
    expected_values: List[Union[str, int]]
    constraints: str


class FilesystemDetails(TypedDict, total=False):
    """Type-safe details for directory errors."""

    path: str
    reason: str


class FormatDetails(TypedDict, total=False):
    """Type-safe details for format errors."""

    requested_format: str
    supported_formats: List[str]
    file_extension: str


class ProcessingDetails(TypedDict, total=False):
    """Type-safe details for processing timeout errors."""

    timeout_seconds: float
    operation: str


ErrorDetails = Union[
    ConversionDetails,
    ValidationDetails,
    FilesystemDetails,
    FormatDetails,
    ProcessingDetails,
    Dict[str, Union[str, int, float, bool, List[str]]],
]


class HeicConverterError(Exception):
    """Base exception for all HEIC converter errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        exit_code: int = ErrorCode.UNKNOWN,
        details: Optional[ErrorDetails] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.exit_code = int(exit_code)
        self.details = details or {}


class DirectoryNotFoundError(HeicConverterError):
    """Raised when an input directory does not exist."""

    def __init__(self, message: str, details: Optional[FilesystemDetails] = None):
        super().__init__(
            message=message,
            error_code="FS001",
            exit_code=ErrorCode.FILE_NOT_FOUND,
            details=details,
        )


class DirectoryCreationError(HeicConverterError):
    """Raised when the output directory cannot be created or written to."""

    def __init__(self, message: str, details: Optional[FilesystemDetails] = None):
        super().__init__(
            message=message,
            error_code="FS002",
            exit_code=ErrorCode.WRITE_PERMISSION,
            details=details,
        )


class ValidationError(HeicConverterError):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[ValidationDetails] = None):
        super().__init__(
            message=message,
            error_code="CONV002",
            exit_code=ErrorCode.INVALID_ARGUMENTS,
            details=details,
        )


class ConfigurationError(HeicConverterError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, details: Optional[ValidationDetails] = None):
        super().__init__(
            message=message,
            error_code="CONV007",
            exit_code=ErrorCode.INVALID_ARGUMENTS,
            details=details,
        )


class InvalidImageError(HeicConverterError):
    """Raised when an input file is missing, unreadable or not an image."""

    def __init__(self, message: str, details: Optional[ValidationDetails] = None):
        super().__init__(
            message=message,
            error_code="CONV101",
            exit_code=ErrorCode.FILE_NOT_FOUND,
            details=details,
        )


class UnsupportedFormatError(HeicConverterError):
    """Raised when an image format is not supported."""

    def __init__(self, message: str, details: Optional[FormatDetails] = None):
        super().__init__(
            message=message,
            error_code="CONV102",
            exit_code=ErrorCode.UNSUPPORTED_FORMAT,
            details=details,
        )


class ConversionFailedError(HeicConverterError):
    """Raised when encoding the converted image fails."""

    def __init__(self, message: str, details: Optional[ConversionDetails] = None):
        super().__init__(
            message=message,
            error_code="CONV103",
            exit_code=ErrorCode.ENCODING_FAILED,
            details=details,
        )


class HeifDecodingError(HeicConverterError):
    """Raised when HEIF/HEIC decoding fails."""

    def __init__(
        self,
        message: str = "Failed to decode HEIF/HEIC image",
        details: Optional[FormatDetails] = None,
    ):
        super().__init__(
            message=message,
            error_code="CONV202",
            exit_code=ErrorCode.DECODING_FAILED,
            details=details,
        )


class ProcessingTimeoutError(HeicConverterError):
    """Raised when a single conversion exceeds its deadline."""

    def __init__(self, message: str, details: Optional[ProcessingDetails] = None):
        super().__init__(
            message=message,
            error_code="CONV006",
            exit_code=ErrorCode.BATCH_PROCESSING,
            details=details,
        )
