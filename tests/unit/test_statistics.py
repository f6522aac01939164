"""
Unit tests for the analytics numeric primitives.
"""

import pytest

from nutrisense.services.analytics.statistics import (
    clamp,
    coefficient_of_variation,
    linear_regression_slope,
    mad,
    mean,
    median,
    percentile,
    robust_z_score,
    std_dev,
)


class TestCentralTendency:
    """Test mean, median and percentile."""

    def test_empty_inputs_return_zero(self):
        assert mean([]) == 0.0
        assert median([]) == 0.0
        assert percentile([], 0.9) == 0.0
        assert std_dev([]) == 0.0
        assert mad([]) == 0.0

    def test_median_odd_and_even(self):
        assert median([3, 1, 2]) == 2
        assert median([4, 1, 3, 2]) == 2.5

    def test_percentile_interpolates(self):
        assert percentile([1, 2, 3, 4, 5], 0.9) == pytest.approx(4.6)
        assert percentile([1, 2, 3, 4, 5], 0.5) == 3

    def test_percentile_clamps_p(self):
        assert percentile([1, 2], 1.5) == 2
        assert percentile([1, 2], -1) == 1

    def test_clamp(self):
        assert clamp(1.3, 0.0, 1.0) == 1.0
        assert clamp(-0.2, 0.0, 1.0) == 0.0
        assert clamp(0.4, 0.0, 1.0) == 0.4


class TestDispersion:
    """Test standard deviation, MAD and coefficient of variation."""

    def test_population_std_dev(self):
        assert std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_std_dev_single_value(self):
        assert std_dev([5]) == 0.0

    def test_mad(self):
        assert mad([1, 1, 2, 2, 4, 6, 9]) == 1

    def test_coefficient_of_variation(self):
        assert coefficient_of_variation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(0.4)

    def test_coefficient_of_variation_zero_mean(self):
        assert coefficient_of_variation([0, 0, 0]) == 0.0


class TestRobustZScore:
    """Test the MAD based z-score and its fallbacks."""

    def test_uses_mad(self):
        assert robust_z_score(10, [1, 2, 3, 4, 5]) == pytest.approx(7 / 1.4826)

    def test_falls_back_to_std_dev(self):
        # MAD is zero here, population std dev is 4
        assert robust_z_score(10, [0, 0, 0, 0, 10]) == pytest.approx(2.5)

    def test_constant_series(self):
        assert robust_z_score(10, [5, 5, 5]) == 0.0

    def test_empty_series(self):
        assert robust_z_score(10, []) == 0.0

    @pytest.mark.parametrize(
        "values",
        [[3, 1, 4, 1, 5, 9, 2, 6], [1, 2, 3, 4, 100], [0, 0, 0, 0, 10], [7]],
    )
    def test_median_scores_zero(self, values):
        assert robust_z_score(median(values), values) == 0.0

    def test_outlier_does_not_inflate_spread(self):
        values = [100, 101, 99, 100, 102, 98, 100, 5000]
        assert robust_z_score(5000, values) > 100


class TestLinearRegressionSlope:
    """Test least-squares slope over index."""

    def test_increasing(self):
        assert linear_regression_slope([1, 2, 3, 4]) == pytest.approx(1.0)

    def test_decreasing(self):
        assert linear_regression_slope([10, 8, 6]) == pytest.approx(-2.0)

    def test_degenerate(self):
        assert linear_regression_slope([5]) == 0.0
        assert linear_regression_slope([]) == 0.0
        assert linear_regression_slope([3, 3, 3]) == 0.0
