"""
Exceptions raised by the scanner pipeline
"""


class ScannerError(Exception):
    """Base class for all scanner errors."""


class DecodeError(ScannerError):
    """The input bytes or file could not be decoded into an image."""


class SingularTransformError(ScannerError):
    """The source quad cannot be mapped onto the page (points collinear or coincident)."""


class ConfigError(ScannerError, ValueError):
    """Invalid pipeline configuration value."""
