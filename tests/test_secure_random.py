"""Tests for secure_random.py - random selection and guidance sampling."""

from unittest.mock import patch

import pytest

from secure_random import random_item, random_unit, sample_cfg_scale


class TestRandomItem:
    """Tests for uniform selection."""

    def test_empty_sequence_returns_empty_string(self):
        assert random_item([]) == ""

    def test_single_item(self):
        assert random_item(["only"]) == "only"

    def test_never_returns_outside_pool(self):
        pool = ["a", "b", "c", "d"]
        for _ in range(200):
            assert random_item(pool) in pool

    def test_covers_full_pool(self):
        """Repeated draws reach every element."""
        pool = ["a", "b", "c", "d", "e"]
        seen = {random_item(pool) for _ in range(1000)}
        assert seen == set(pool)

    def test_uses_secrets(self):
        """Selection index comes from the secrets module."""
        with patch("secure_random.secrets.randbelow", return_value=2) as mock_rand:
            assert random_item(["x", "y", "z"]) == "z"
            mock_rand.assert_called_once_with(3)


class TestRandomUnit:
    """Tests for the [0, 1) draw."""

    def test_in_range(self):
        for _ in range(500):
            value = random_unit()
            assert 0.0 <= value < 1.0

    def test_max_bits_stays_below_one(self):
        with patch("secure_random.secrets.randbits", return_value=(1 << 53) - 1):
            assert random_unit() < 1.0


class TestSampleCfgScale:
    """Tests for guidance scale sampling."""

    def test_midpoint_draw(self):
        """[7.5, 15.0] with draw 0.5 maps to 11.25 exactly."""
        assert sample_cfg_scale(7.5, 15.0, draw=0.5) == 11.25

    def test_lower_bound_draw(self):
        assert sample_cfg_scale(7.5, 15.0, draw=0.0) == 7.5

    def test_rounds_to_quarter(self):
        # 7.5 + 0.1 * 7.5 = 8.25
        assert sample_cfg_scale(7.5, 15.0, draw=0.1) == 8.25
        # 7.5 + 0.11 * 7.5 = 8.325 -> 8.25
        assert sample_cfg_scale(7.5, 15.0, draw=0.11) == 8.25

    def test_half_rounds_up(self):
        # 10 + 0.125 = 10.125 sits halfway between 10.0 and 10.25
        assert sample_cfg_scale(10.0, 11.0, draw=0.125) == 10.25

    def test_equal_bounds(self):
        assert sample_cfg_scale(9.0, 9.0, draw=0.73) == 9.0

    def test_fallback_below_one(self):
        """Values that end below 1.0 are replaced with 8.5."""
        assert sample_cfg_scale(0.0, 0.5, draw=0.5) == 8.5

    @pytest.mark.parametrize("low,high", [(1.0, 20.0), (7.5, 15.0), (2.25, 2.75), (5.0, 5.5)])
    def test_property_multiple_of_quarter_within_bounds(self, low, high):
        for _ in range(300):
            value = sample_cfg_scale(low, high)
            assert value * 4 == int(value * 4)
            assert low <= value <= high
