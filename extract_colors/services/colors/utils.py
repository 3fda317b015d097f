"""
Color conversion and distance helpers shared by the quantization stages.
"""
import colorsys
import math
from typing import Tuple

# Squared distance between pure black and pure white in the RGB cube
MAX_SQUARED_DISTANCE = 3 * 255 * 255


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Convert RGB channels to hex color string."""
    return f"#{r:02X}{g:02X}{b:02X}"


def rgb_to_hsl(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """
    Convert RGB channels (0-255) to HSL.
    
    Returns:
        Tuple of (hue in degrees [0, 360), saturation [0, 1], lightness [0, 1])
    """
    # colorsys works in HLS order on [0, 1] floats
    h, l, s = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    hue = (h * 360.0) % 360.0
    return hue, min(max(s, 0.0), 1.0), min(max(l, 0.0), 1.0)


def weighted_channel(channel_sum: int, count: int) -> int:
    """Round a count-weighted channel mean half-up using integer math only."""
    return (2 * channel_sum + count) // (2 * count)


def squared_distance(a: Tuple[int, int, int], b: Tuple[int, int, int]) -> int:
    """Squared Euclidean distance between two RGB triples."""
    dr = a[0] - b[0]
    dg = a[1] - b[1]
    db = a[2] - b[2]
    return dr * dr + dg * dg + db * db


def normalized_distance(a: Tuple[int, int, int], b: Tuple[int, int, int]) -> float:
    """Euclidean RGB distance scaled so black-to-white is 1.0."""
    return math.sqrt(squared_distance(a, b) / MAX_SQUARED_DISTANCE)
