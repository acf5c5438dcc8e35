# image_converter/__init__.py
from .config import Settings
from .errors import (
    ConversionError, ConversionTimeoutError, DecodeError, DimensionError,
    EncodeError, IconPackError, MissingUploadError, SizeError, UnsupportedFormatError,
)
from .formats import FORMAT_POLICIES, FormatPolicy, TargetFormat
from .pipeline import ConversionRequest, ConversionResult, ConversionService, run_conversion

__version__ = "1.0.0"
