"""HEIC/HEIF batch converter."""

__version__ = "1.0.0"
