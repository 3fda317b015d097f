"""
Extract Colors Imaging Utilities
Decodes image sources with Pillow and downsizes them to a pixel budget.
"""
import math
import os
from typing import Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError
from loguru import logger

from extract_colors.errors import ImageDecodeError, InvalidOptionError
from extract_colors.schemas import ImageData
from extract_colors.services.observability import performance_tracked

ImageSource = Union[str, os.PathLike, Image.Image]


def fit_to_pixel_budget(width: int, height: int, pixels: int) -> Tuple[int, int]:
    """
    Compute output size for a pixel budget, preserving aspect ratio.
    
    Images already under the budget keep their size; larger ones are scaled
    on both axes by sqrt(pixels / (width * height)).
    """
    if pixels <= 0:
        raise InvalidOptionError(f"pixels must be positive, got {pixels}")
    
    current = width * height
    if current < pixels:
        return width, height
    
    scale = math.sqrt(pixels / current)
    return max(1, round(width * scale)), max(1, round(height * scale))


def image_to_image_data(image: Image.Image, pixels: int) -> ImageData:
    """Convert a PIL image to RGBA ImageData within the pixel budget."""
    width, height = fit_to_pixel_budget(image.width, image.height, pixels)
    
    rgba = image.convert("RGBA")
    if (width, height) != rgba.size:
        logger.debug(f"Resizing {rgba.size[0]}x{rgba.size[1]} -> {width}x{height} (budget {pixels})")
        rgba = rgba.resize((width, height), Image.Resampling.BILINEAR)
    
    data = np.asarray(rgba, dtype=np.uint8).reshape(-1)
    return ImageData(width=width, height=height, data=data)


@performance_tracked("image_decoding")
def load_image_data(source: ImageSource, pixels: int) -> ImageData:
    """
    Decode an image source into RGBA ImageData downsized to the pixel budget.
    
    Args:
        source: File path or already-open PIL image
        pixels: Maximum number of pixels to keep
        
    Raises:
        ImageDecodeError: If the source cannot be read or decoded
    """
    if isinstance(source, Image.Image):
        return image_to_image_data(source, pixels)
    
    try:
        with Image.open(source) as image:
            image.load()
            return image_to_image_data(image, pixels)
    except (OSError, UnidentifiedImageError) as e:
        raise ImageDecodeError(f"Failed to decode image {source!r}: {e}") from e
