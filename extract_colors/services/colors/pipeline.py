"""
Palette extraction entry points.

Runs Sampler -> Extractor -> Merger -> Validator -> Sorter. Every stage
returns a new list; nothing is shared between calls, so concurrent calls on
different buffers need no coordination.
"""

import os
import time
from typing import Any, List, Mapping, Union

from loguru import logger
from PIL import Image
from pydantic import ValidationError

from extract_colors.errors import InvalidBufferError
from extract_colors.schemas import ExtractorOptions, FinalColor, ImageData
from extract_colors.services.colors.extraction import extract_representatives
from extract_colors.services.colors.merging import merge_representatives
from extract_colors.services.colors.sampling import aggregate_raw_colors, as_byte_array, sample_pixels
from extract_colors.services.colors.sorting import sort_representatives
from extract_colors.services.colors.validation import filter_representatives
from extract_colors.services.imaging import load_image_data
from extract_colors.services.observability import performance_monitor
from extract_colors.utils.logging import get_logger

OptionsLike = Union[ExtractorOptions, Mapping[str, Any], None]


def extract_colors_from_buffer(buffer, options: OptionsLike = None, **overrides) -> List[FinalColor]:
    """
    Extract a sorted palette from a flat RGBA buffer.
    
    Args:
        buffer: R,G,B,A byte sequence
        options: ExtractorOptions or mapping of option values
        **overrides: Individual options (distance, split_power, min_alpha, color_validator)
        
    Returns:
        FinalColors, most prevalent first. Areas are fractions of the visible
        pixels; an all-transparent buffer yields an empty list.
        
    Raises:
        InvalidBufferError: If the buffer length is not a multiple of 4
        InvalidOptionError: If an option is out of range
    """
    options = ExtractorOptions.build(options, **overrides)
    start_time = time.perf_counter()
    
    try:
        with performance_monitor("pixel_sampling"):
            pixels = sample_pixels(buffer, options.min_alpha)
        total_pixels = int(pixels.shape[0])
        
        if total_pixels == 0:
            logger.info("No visible pixels in buffer, returning empty palette")
            return []
        
        with performance_monitor("median_cut", pixel_count=total_pixels):
            raw_colors = aggregate_raw_colors(pixels)
            representatives = extract_representatives(raw_colors, options.split_power)
        
        with performance_monitor("distance_merge", color_count=len(representatives)):
            merged = merge_representatives(representatives, options.distance)
        
        with performance_monitor("color_validation", color_count=len(merged)):
            accepted = filter_representatives(merged, options.color_validator)
        
        with performance_monitor("palette_sort", color_count=len(accepted)):
            palette = sort_representatives(accepted, total_pixels)
        
    except Exception as e:
        logger.error(f"Color extraction failed: {type(e).__name__}: {e}")
        raise
    
    get_logger().info("Color extraction completed", extra={
        "pixels": total_pixels,
        "clusters": len(representatives),
        "merged": len(merged),
        "palette_size": len(palette),
        "duration_ms": round((time.perf_counter() - start_time) * 1000, 1),
    })
    return palette


def extract_colors_from_image_data(image_data: Union[ImageData, Mapping[str, Any]],
                                   options: OptionsLike = None, **overrides) -> List[FinalColor]:
    """
    Extract a palette from decoded ImageData.
    
    Raises:
        InvalidBufferError: If len(data) does not match 4 * width * height
    """
    if not isinstance(image_data, ImageData):
        try:
            image_data = ImageData(**image_data)
        except ValidationError as e:
            raise InvalidBufferError(f"Invalid ImageData: {e}") from e
    
    expected = 4 * image_data.width * image_data.height
    actual = as_byte_array(image_data.data).size
    if actual != expected:
        raise InvalidBufferError(
            f"ImageData of {image_data.width}x{image_data.height} needs {expected} bytes, got {actual}"
        )
    
    return extract_colors_from_buffer(image_data.data, options, **overrides)


def extract_colors_from_path(source: Union[str, os.PathLike, Image.Image],
                             options: OptionsLike = None, **overrides) -> List[FinalColor]:
    """
    Decode an image, downsize it to the pixel budget and extract its palette.
    
    Raises:
        ImageDecodeError: If the image cannot be decoded
    """
    options = ExtractorOptions.build(options, **overrides)
    image_data = load_image_data(source, options.pixels)
    return extract_colors_from_image_data(image_data, options)


def _looks_like_image_data(picture: Any) -> bool:
    if isinstance(picture, ImageData):
        return True
    return isinstance(picture, Mapping) and {"width", "height", "data"} <= set(picture)


def extract_colors(picture, options: OptionsLike = None, **overrides) -> List[FinalColor]:
    """
    Extract colors from ImageData, an image path or a PIL image.
    
    Example:
        >>> data = [255, 0, 0, 255] * 4
        >>> [c.hex for c in extract_colors({"width": 2, "height": 2, "data": data})]
        ['#FF0000']
    """
    if _looks_like_image_data(picture):
        return extract_colors_from_image_data(picture, options, **overrides)
    return extract_colors_from_path(picture, options, **overrides)
