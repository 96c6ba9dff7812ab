"""
Tests for checkpoint residual statistics
"""

import numpy as np
import pytest

from demgmrf.core.statistics import STATS_COLUMNS, ResidualStats, compute_residual_stats


class TestResidualStats:
    """Test the six summary statistics."""

    def test_upper_median_odd(self):
        stats = compute_residual_stats([5.0, 1.0, 3.0])
        assert stats.median == 3.0

    def test_upper_median_even(self):
        # element N // 2 of the sorted values, not the average of the middle pair
        stats = compute_residual_stats([4.0, 1.0, 3.0, 2.0])
        assert stats.median == 3.0

    def test_known_values(self):
        stats = compute_residual_stats([1.0, 2.0, 3.0, 4.0])

        assert stats.max == 4.0
        assert stats.min == 1.0
        assert stats.mean == pytest.approx(2.5)
        assert stats.std == pytest.approx(1.2909944, rel=1e-6)
        assert stats.rmse == pytest.approx(np.sqrt(7.5))

    def test_signed_residuals(self):
        stats = compute_residual_stats([-2.0, 1.0])

        assert stats.min == -2.0
        assert stats.max == 1.0
        assert stats.mean == pytest.approx(-0.5)
        assert stats.rmse == pytest.approx(np.sqrt(2.5))

    def test_single_residual_has_zero_std(self):
        stats = compute_residual_stats([0.7])

        assert stats.std == 0.0
        assert stats.median == 0.7
        assert stats.rmse == pytest.approx(0.7)

    def test_empty_gives_zeros(self):
        stats = compute_residual_stats([])

        assert stats == ResidualStats()
        assert np.all(stats.as_array() == 0.0)

    def test_input_not_modified(self):
        residuals = np.array([3.0, 1.0, 2.0])
        compute_residual_stats(residuals)

        np.testing.assert_array_equal(residuals, [3.0, 1.0, 2.0])

    def test_as_dict_column_order(self):
        stats = compute_residual_stats([1.0, 2.0, 3.0])

        assert tuple(stats.as_dict().keys()) == STATS_COLUMNS
        assert stats.as_dict()['RMSE'] == stats.rmse
