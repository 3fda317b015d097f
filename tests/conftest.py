"""
Test configuration and fixtures for palette extraction tests.
"""
import pytest

from extract_colors.services.observability import get_metrics_collector

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def rgba_buffer(colors, alpha: int = 255) -> bytes:
    """Build a flat RGBA buffer from (r, g, b) or (r, g, b, a) tuples."""
    data = bytearray()
    for color in colors:
        if len(color) == 3:
            color = (*color, alpha)
        data.extend(color)
    return bytes(data)


@pytest.fixture
def make_buffer():
    """Factory fixture for RGBA buffers."""
    return rgba_buffer


@pytest.fixture
def gradient_buffer():
    """A 32x32 buffer with many distinct colors."""
    colors = []
    for y in range(32):
        for x in range(32):
            colors.append((x * 8, y * 8, (x * y) % 256))
    return rgba_buffer(colors)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    get_metrics_collector().reset()
