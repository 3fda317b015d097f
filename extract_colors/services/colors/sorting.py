"""
Palette ordering and FinalColor conversion.

Colors are ordered by pixel count, most prevalent first. Equal counts fall
back to saturation (higher first), hue (lower first), lightness (lower
first) and finally the RGB triple, which makes the order total.
"""

from typing import List, Sequence, Tuple

from loguru import logger

from extract_colors.errors import DivisionByZeroError, InvalidOptionError
from extract_colors.schemas import FinalColor
from extract_colors.services.colors.extraction import Representative
from extract_colors.services.colors.utils import rgb_to_hex, rgb_to_hsl


def to_final_color(rep: Representative, total_pixels: int) -> FinalColor:
    """
    Convert a representative into its output record.
    
    Raises:
        DivisionByZeroError: If total_pixels is 0
    """
    if total_pixels == 0:
        raise DivisionByZeroError("Cannot compute color area against 0 total pixels")
    
    hue, saturation, lightness = rgb_to_hsl(rep.r, rep.g, rep.b)
    return FinalColor(
        hex=rgb_to_hex(rep.r, rep.g, rep.b),
        red=rep.r,
        green=rep.g,
        blue=rep.b,
        hue=hue,
        saturation=saturation,
        lightness=lightness,
        area=rep.count / total_pixels,
    )


def sort_key(rep: Representative) -> Tuple:
    """Total ordering key, most prevalent first."""
    hue, saturation, lightness = rgb_to_hsl(rep.r, rep.g, rep.b)
    return (-rep.count, -saturation, hue, lightness, rep.r, rep.g, rep.b)


def sort_representatives(representatives: Sequence[Representative],
                         total_pixels: int) -> List[FinalColor]:
    """
    Order representatives and convert them to FinalColors.
    
    Args:
        representatives: Surviving representatives
        total_pixels: Number of sampled pixels the areas are relative to
        
    Returns:
        FinalColors, non-increasing in area
        
    Raises:
        DivisionByZeroError: If total_pixels is 0
        InvalidOptionError: If total_pixels is negative or smaller than the counted pixels
    """
    if total_pixels == 0:
        raise DivisionByZeroError("Cannot compute color area against 0 total pixels")
    
    counted = sum(rep.count for rep in representatives)
    if total_pixels < 0 or counted > total_pixels:
        raise InvalidOptionError(
            f"total_pixels={total_pixels} cannot account for {counted} counted pixels"
        )
    
    ordered = sorted(representatives, key=sort_key)
    palette = [to_final_color(rep, total_pixels) for rep in ordered]
    
    areas_str = [f"{color.area:.3f}" for color in palette]
    logger.debug(f"Sorted palette areas: {areas_str}")
    
    return palette
