"""
Extract Colors

Extracts a small palette of dominant colors from an RGBA pixel buffer:
median-cut splitting, distance merging, caller filtering and a
deterministic prevalence ordering.
"""

__version__ = "1.0.0"

from extract_colors.errors import (
    ColorExtractionError,
    DivisionByZeroError,
    ImageDecodeError,
    InvalidBufferError,
    InvalidOptionError,
)
from extract_colors.schemas import ExtractorOptions, FinalColor, ImageData
from extract_colors.services.colors.pipeline import (
    extract_colors,
    extract_colors_from_buffer,
    extract_colors_from_image_data,
    extract_colors_from_path,
)
from extract_colors.services.colors.validation import ColorAttributes
from extract_colors.utils.logging import configure_logging

__all__ = [
    'ColorAttributes',
    'ColorExtractionError',
    'DivisionByZeroError',
    'ExtractorOptions',
    'FinalColor',
    'ImageData',
    'ImageDecodeError',
    'InvalidBufferError',
    'InvalidOptionError',
    'configure_logging',
    'extract_colors',
    'extract_colors_from_buffer',
    'extract_colors_from_image_data',
    'extract_colors_from_path',
]
