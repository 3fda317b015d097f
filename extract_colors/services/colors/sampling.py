"""
Pixel sampling for palette extraction.

Walks a flat RGBA buffer in 4-byte strides and keeps the color of every
pixel that is visible (alpha above the transparency cutoff).
"""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from loguru import logger

from extract_colors.config import config
from extract_colors.errors import InvalidBufferError


@dataclass(frozen=True)
class RawColor:
    """An observed pixel color and how many times it was seen."""
    r: int
    g: int
    b: int
    count: int = 1


def as_byte_array(buffer) -> np.ndarray:
    """
    Normalize a pixel buffer to a flat uint8 array.
    
    Accepts bytes, bytearray, memoryview, numpy arrays and plain sequences
    of integers (e.g. a JSON-decoded ImageData.data list).
    
    Raises:
        InvalidBufferError: If values are not 8-bit channel values
    """
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return np.frombuffer(buffer, dtype=np.uint8)
    
    arr = np.asarray(buffer)
    if arr.dtype == np.uint8:
        return arr.reshape(-1)
    if arr.size == 0:
        return np.zeros(0, dtype=np.uint8)
    if not np.issubdtype(arr.dtype, np.integer):
        raise InvalidBufferError(f"Pixel buffer must hold integers, got dtype {arr.dtype}")
    if arr.min() < 0 or arr.max() > 255:
        raise InvalidBufferError("Pixel buffer values must be within 0-255")
    return arr.astype(np.uint8).reshape(-1)


def sample_pixels(buffer, min_alpha: int = 0) -> np.ndarray:
    """
    Extract the RGB values of every visible pixel.
    
    Args:
        buffer: Flat R,G,B,A byte sequence
        min_alpha: Pixels with alpha <= min_alpha are dropped
        
    Returns:
        RGB pixels array (N, 3) uint8, one row per visible pixel in buffer order
        
    Raises:
        InvalidBufferError: If buffer length is not a multiple of 4
    """
    data = as_byte_array(buffer)
    stride = config.PIXEL_STRIDE
    if data.size % stride != 0:
        raise InvalidBufferError(
            f"Pixel buffer length {data.size} is not a multiple of {stride}"
        )
    
    rgba = data.reshape(-1, stride)
    visible = rgba[:, 3] > min_alpha
    pixels = rgba[visible, :3]
    
    logger.debug(f"Sampled {pixels.shape[0]}/{rgba.shape[0]} visible pixels (min_alpha={min_alpha})")
    return pixels


def color_histogram(pixels_rgb_u8: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Collapse identical pixels into distinct colors with counts.
    
    Returns:
        Tuple of (colors (K, 3) int64 in lexicographic order, counts (K,) int64)
    """
    if len(pixels_rgb_u8) == 0:
        return np.zeros((0, 3), dtype=np.int64), np.zeros(0, dtype=np.int64)
    
    colors, counts = np.unique(pixels_rgb_u8.reshape(-1, 3), axis=0, return_counts=True)
    return colors.astype(np.int64), counts.astype(np.int64)


def aggregate_raw_colors(pixels_rgb_u8: np.ndarray) -> List[RawColor]:
    """
    Collapse sampled pixels into the RawColors fed to the extractor.
    
    Returns:
        Distinct RawColors with summed counts, ordered by (r, g, b)
    """
    colors, counts = color_histogram(pixels_rgb_u8)
    return [
        RawColor(r, g, b, count)
        for (r, g, b), count in zip(colors.tolist(), counts.tolist())
    ]
