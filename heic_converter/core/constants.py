"""Constants and configuration values for the HEIC converter."""

from typing import Dict, FrozenSet

# Program information
PROGRAM_NAME = "heic-converter"

# Supported formats (lowercase, no leading dot)
SUPPORTED_INPUT_FORMATS: FrozenSet[str] = frozenset({"heic", "heif"})
SUPPORTED_OUTPUT_FORMATS: FrozenSet[str] = frozenset(
    {"jpg", "jpeg", "png", "bmp", "tiff", "tif", "webp"}
)

FORMAT_MIME_TYPES: Dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

# Conversion defaults
DEFAULT_OUTPUT_FORMAT = "jpg"
DEFAULT_QUALITY = 85
MIN_QUALITY = 1
MAX_QUALITY = 100

# Batch processing
DEFAULT_BATCH_SIZE = 10  # Files per scheduling round
WORKER_THREAD_PREFIX = "heic_worker"
MAX_ERROR_MESSAGE_LENGTH = 200

# Filesystem
WRITE_PROBE_PREFIX = ".write_test"
DEFAULT_MAX_SCAN_DEPTH = 64
COLLISION_SUFFIX_SEPARATOR = "_"
