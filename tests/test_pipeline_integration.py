"""
Integration tests for the full extraction pipeline.

Covers the end-to-end scenarios and the pipeline-wide properties:
conservation, ordering, distance separation, idempotence and validator
soundness.
"""

import itertools

import pytest
import numpy as np

from extract_colors import (
    ExtractorOptions, FinalColor, ImageData, InvalidBufferError, InvalidOptionError,
    extract_colors, extract_colors_from_buffer, extract_colors_from_image_data
)
from extract_colors.services.colors.extraction import extract_representatives
from extract_colors.services.colors.merging import merge_representatives
from extract_colors.services.colors.sampling import aggregate_raw_colors, sample_pixels
from extract_colors.services.colors.utils import normalized_distance

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


@pytest.fixture
def photo_like_buffer():
    """Three noisy color regions plus a transparent border."""
    rng = np.random.default_rng(42)
    rows = []
    for base, n in (((200, 40, 40), 600), ((30, 120, 200), 300), ((240, 220, 80), 100)):
        noise = rng.integers(-12, 13, size=(n, 3))
        rgb = np.clip(np.array(base) + noise, 0, 255)
        rows.append(np.hstack([rgb, np.full((n, 1), 255)]))
    rows.append(np.zeros((50, 4), dtype=np.int64))
    return np.vstack(rows).astype(np.uint8).reshape(-1).tobytes()


class TestScenarios:
    """Reference scenarios"""
    
    def test_four_pixel_image(self, make_buffer):
        """Test red, red, green, blue with distance 0"""
        buffer = make_buffer([RED, RED, GREEN, BLUE])
        palette = extract_colors_from_buffer(buffer, distance=0)
        
        assert len(palette) == 3
        assert palette[0].hex == "#FF0000"
        assert palette[0].area == pytest.approx(0.5)
        assert sum(c.area for c in palette) == pytest.approx(1.0)
    
    def test_all_transparent(self, make_buffer):
        """Test a fully transparent buffer gives an empty palette"""
        assert extract_colors_from_buffer(make_buffer([RED, GREEN] * 10, alpha=0)) == []
    
    def test_single_color(self, make_buffer):
        """Test a flat image is one color covering everything"""
        palette = extract_colors_from_buffer(make_buffer([(31, 78, 121)] * 100))
        
        assert len(palette) == 1
        assert palette[0].area == 1.0
        assert (palette[0].red, palette[0].green, palette[0].blue) == (31, 78, 121)
    
    def test_maximal_merge(self, photo_like_buffer):
        """Test distance 1 collapses any image to one color"""
        palette = extract_colors_from_buffer(photo_like_buffer, distance=1.0)
        assert len(palette) == 1
        assert palette[0].area == pytest.approx(1.0)
    
    def test_reject_all_validator(self, photo_like_buffer):
        """Test an always-false validator empties the palette"""
        assert extract_colors_from_buffer(photo_like_buffer, color_validator=lambda c: False) == []


class TestPipelineProperties:
    """Pipeline-wide invariants"""
    
    @pytest.mark.parametrize("distance", [0.0, 0.1, 0.22, 0.5])
    def test_conservation_before_filtering(self, photo_like_buffer, distance):
        """Test merged counts equal the number of visible pixels"""
        pixels = sample_pixels(photo_like_buffer)
        merged = merge_representatives(extract_representatives(aggregate_raw_colors(pixels), 8), distance)
        
        assert sum(rep.count for rep in merged) == 1000
    
    def test_areas_sum_to_one_without_validator(self, photo_like_buffer):
        palette = extract_colors_from_buffer(photo_like_buffer)
        assert sum(c.area for c in palette) == pytest.approx(1.0)
    
    @pytest.mark.parametrize("split_power", [2, 6, 10])
    def test_ordering(self, photo_like_buffer, split_power):
        """Test areas are non-increasing"""
        palette = extract_colors_from_buffer(photo_like_buffer, distance=0.05, split_power=split_power)
        areas = [c.area for c in palette]
        assert areas == sorted(areas, reverse=True)
    
    @pytest.mark.parametrize("distance", [0.05, 0.15, 0.3])
    def test_distance_separation(self, photo_like_buffer, distance):
        """Test no two output colors are within the threshold"""
        palette = extract_colors_from_buffer(photo_like_buffer, distance=distance)
        for a, b in itertools.combinations(palette, 2):
            assert normalized_distance((a.red, a.green, a.blue), (b.red, b.green, b.blue)) > distance
    
    def test_dominant_regions_found(self, photo_like_buffer):
        """Test the three regions come back in prevalence order"""
        palette = extract_colors_from_buffer(photo_like_buffer, distance=0.22)
        
        assert len(palette) == 3
        assert [round(c.area, 1) for c in palette] == [0.6, 0.3, 0.1]
        assert palette[0].red > 150 and palette[1].blue > 150
    
    def test_idempotent(self, photo_like_buffer):
        """Test identical calls give identical palettes"""
        options = ExtractorOptions(distance=0.1, split_power=9)
        assert extract_colors_from_buffer(photo_like_buffer, options) == \
            extract_colors_from_buffer(photo_like_buffer, options)
    
    def test_validator_soundness(self, photo_like_buffer):
        """Test every returned color satisfies the validator"""
        def warm(color):
            return color.hue < 90 and color.saturation > 0.3
        
        palette = extract_colors_from_buffer(photo_like_buffer, distance=0.05, color_validator=warm)
        assert palette
        for color in palette:
            assert color.hue < 90 and color.saturation > 0.3
        assert sum(c.area for c in palette) < 1.0
    
    def test_min_alpha_option(self, make_buffer):
        """Test semi-transparent pixels are ignored above min_alpha"""
        buffer = make_buffer([RED + (255,), BLUE + (100,)])
        
        assert len(extract_colors_from_buffer(buffer, distance=0)) == 2
        palette = extract_colors_from_buffer(buffer, distance=0, min_alpha=200)
        assert [c.hex for c in palette] == ["#FF0000"]
        assert palette[0].area == 1.0


class TestErrors:
    """Errors surface immediately"""
    
    def test_bad_buffer_length(self):
        with pytest.raises(InvalidBufferError):
            extract_colors_from_buffer(bytes(7))
    
    @pytest.mark.parametrize("overrides", [
        {"split_power": 1},
        {"split_power": 17},
        {"distance": -0.1},
        {"distance": 1.5},
    ])
    def test_bad_options(self, make_buffer, overrides):
        with pytest.raises(InvalidOptionError):
            extract_colors_from_buffer(make_buffer([RED]), **overrides)


class TestImageDataEntryPoints:
    """ImageData and dispatcher entry points"""
    
    def test_image_data_model(self, make_buffer):
        data = make_buffer([RED, RED, GREEN, BLUE])
        palette = extract_colors_from_image_data(ImageData(width=2, height=2, data=data), distance=0)
        assert [c.hex for c in palette] == ["#FF0000", "#00FF00", "#0000FF"]
    
    def test_image_data_mapping_with_list(self):
        """Test JSON-like ImageData with a plain list of ints"""
        data = [255, 255, 0, 255] * 3 + [255, 0, 0, 255]
        palette = extract_colors({"width": 2, "height": 2, "data": data}, distance=0)
        
        assert all(isinstance(c, FinalColor) for c in palette)
        assert palette[0].hex == "#FFFF00"
        assert palette[0].area == pytest.approx(0.75)
    
    def test_image_data_size_mismatch(self, make_buffer):
        with pytest.raises(InvalidBufferError):
            extract_colors_from_image_data({"width": 3, "height": 2, "data": make_buffer([RED] * 4)})
    
    def test_image_data_invalid_dimensions(self):
        with pytest.raises(InvalidBufferError):
            extract_colors_from_image_data({"width": 0, "height": 2, "data": b""})
