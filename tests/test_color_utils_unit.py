"""
Unit tests for color conversion helpers.
"""

import math

import pytest

from extract_colors.services.colors.utils import (
    rgb_to_hex, rgb_to_hsl, weighted_channel, normalized_distance
)


class TestRgbToHex:
    """Test RGB to hex conversion utility"""
    
    def test_rgb_to_hex_basic_colors(self):
        """Test conversion of basic RGB colors to hex"""
        assert rgb_to_hex(255, 0, 0) == "#FF0000"  # Red
        assert rgb_to_hex(0, 255, 0) == "#00FF00"  # Green
        assert rgb_to_hex(0, 0, 255) == "#0000FF"  # Blue
        assert rgb_to_hex(0, 0, 0) == "#000000"    # Black
        assert rgb_to_hex(255, 255, 255) == "#FFFFFF"  # White
    
    def test_rgb_to_hex_zero_padded(self):
        """Test small channel values keep two digits"""
        assert rgb_to_hex(1, 10, 171) == "#010AAB"
        assert rgb_to_hex(211, 181, 143) == "#D3B58F"


class TestRgbToHsl:
    """Test RGB to HSL conversion"""
    
    @pytest.mark.parametrize("rgb,expected", [
        ((255, 0, 0), (0.0, 1.0, 0.5)),
        ((0, 255, 0), (120.0, 1.0, 0.5)),
        ((0, 0, 255), (240.0, 1.0, 0.5)),
        ((255, 255, 0), (60.0, 1.0, 0.5)),
        ((0, 0, 0), (0.0, 0.0, 0.0)),
        ((255, 255, 255), (0.0, 0.0, 1.0)),
        ((128, 128, 128), (0.0, 0.0, 128 / 255)),
    ])
    def test_known_colors(self, rgb, expected):
        """Test standard reference colors"""
        hue, saturation, lightness = rgb_to_hsl(*rgb)
        assert hue == pytest.approx(expected[0])
        assert saturation == pytest.approx(expected[1])
        assert lightness == pytest.approx(expected[2])
    
    def test_ranges(self):
        """Test outputs stay within their documented ranges"""
        for r in range(0, 256, 51):
            for g in range(0, 256, 51):
                for b in range(0, 256, 51):
                    hue, saturation, lightness = rgb_to_hsl(r, g, b)
                    assert 0.0 <= hue < 360.0
                    assert 0.0 <= saturation <= 1.0
                    assert 0.0 <= lightness <= 1.0


class TestDistance:
    """Test normalized RGB distance"""
    
    def test_black_white_is_one(self):
        """Test the maximal distance normalizes to 1"""
        assert normalized_distance((0, 0, 0), (255, 255, 255)) == pytest.approx(1.0)
    
    def test_identical_is_zero(self):
        assert normalized_distance((12, 34, 56), (12, 34, 56)) == 0.0
    
    def test_symmetric(self):
        a, b = (10, 200, 30), (90, 5, 255)
        assert normalized_distance(a, b) == normalized_distance(b, a)
        assert normalized_distance(a, b) == pytest.approx(
            math.sqrt(80 ** 2 + 195 ** 2 + 225 ** 2) / (255 * math.sqrt(3))
        )


class TestWeightedChannel:
    """Test integer weighted rounding"""
    
    def test_rounds_half_up(self):
        assert weighted_channel(5, 2) == 3    # 2.5
        assert weighted_channel(7, 4) == 2    # 1.75
        assert weighted_channel(765, 4) == 191  # 191.25
        assert weighted_channel(0, 9) == 0
