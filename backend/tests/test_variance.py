"""
Unit tests for color variance helpers.
"""
import pytest

from catalog_vision.services.variance import color_variance, variance


class TestVariance:
    """Population variance"""
    
    def test_empty_is_zero(self):
        """Test variance of nothing"""
        assert variance([]) == 0.0
    
    def test_single_value_is_zero(self):
        """Test variance of one value"""
        assert variance([5]) == 0.0
    
    def test_divides_by_n(self):
        """Test population variance"""
        assert variance([0, 10]) == 25.0
    
    def test_constant_values(self):
        """Test variance of constant values"""
        assert variance([42.0] * 17) == 0.0


class TestColorVariance:
    """Mean per-channel variance over RGB samples"""
    
    def test_uniform_pixels(self):
        """Test uniform pixels"""
        assert color_variance([(10, 20, 30)] * 8) == 0.0
    
    def test_no_pixels(self):
        """Test no pixels"""
        assert color_variance([]) == 0.0
    
    def test_mean_of_channels(self):
        """Test average over the three channels"""
        # R varies (var 25), G and B constant
        pixels = [(0, 50, 50), (10, 50, 50)]
        assert color_variance(pixels) == pytest.approx(25.0 / 3)
    
    def test_all_channels(self):
        """Test equal variance on every channel"""
        pixels = [(0, 0, 0), (10, 10, 10)]
        assert color_variance(pixels) == pytest.approx(25.0)
    
    def test_extra_channels_ignored(self):
        """Test that alpha is ignored"""
        pixels = [(0, 0, 0, 255), (10, 10, 10, 0)]
        assert color_variance(pixels) == pytest.approx(25.0)
