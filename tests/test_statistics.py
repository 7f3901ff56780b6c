import math
import statistics as stdstats

import pytest

from habicat.statistics import (
    RasterStatistics,
    grid_statistics,
    turbo_color,
    value_for_area_fraction,
)


def test_grid_statistics_basic_moments():
    values = [1.0, 2.0, 3.0, 4.0, 5.0]
    result = grid_statistics(values)
    assert isinstance(result, RasterStatistics)
    assert result.minimum == 1.0
    assert result.maximum == 5.0
    assert result.mean == pytest.approx(stdstats.fmean(values))
    assert result.standard_deviation == pytest.approx(stdstats.pstdev(values))


def test_symmetric_distribution_has_zero_skewness():
    result = grid_statistics([1.0, 2.0, 3.0, 4.0, 5.0])
    assert result.skewness == pytest.approx(0.0)


def test_two_point_distribution_kurtosis():
    result = grid_statistics([-1.0, 1.0])
    assert result.kurtosis == pytest.approx(1.0)


def test_right_tail_gives_positive_skewness():
    result = grid_statistics([0.0, 0.0, 0.0, 0.0, 10.0])
    assert result.skewness > 0.0


def test_left_tail_gives_negative_skewness():
    result = grid_statistics([10.0, 10.0, 10.0, 10.0, 0.0])
    assert result.skewness < 0.0


def test_constant_values_give_nan_shape():
    result = grid_statistics([2.0, 2.0, 2.0])
    assert result.standard_deviation == 0.0
    assert math.isnan(result.skewness)
    assert math.isnan(result.kurtosis)


def test_empty_values_raise():
    with pytest.raises(ValueError):
        grid_statistics([])


@pytest.mark.parametrize("x", [0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 1.0])
def test_turbo_color_in_unit_range(x):
    color = turbo_color(x)
    assert len(color) == 3
    assert all(0.0 <= c <= 1.0 for c in color)


def test_turbo_color_clamps_input():
    assert turbo_color(-3.0) == turbo_color(0.0)
    assert turbo_color(7.0) == turbo_color(1.0)


def test_turbo_color_goes_from_blue_to_red():
    low = turbo_color(0.1)
    high = turbo_color(0.75)
    assert low[2] > low[0]
    assert high[0] > high[2]


def test_area_fraction_picks_top_values():
    values = [1.0, 2.0, 3.0, 4.0]
    areas = [1.0, 1.0, 1.0, 1.0]
    assert value_for_area_fraction(values, areas, 0.25) == 4.0
    assert value_for_area_fraction(values, areas, 0.5) == 3.0
    assert value_for_area_fraction(values, areas, 1.0) == 1.0


def test_area_fraction_is_monotone_in_fraction():
    values = [5.0, 1.0, 3.0, 2.0, 4.0]
    areas = [0.5, 2.0, 1.0, 0.1, 3.0]
    thresholds = [value_for_area_fraction(values, areas, f / 10) for f in range(11)]
    assert thresholds == sorted(thresholds, reverse=True)
    assert all(t in values for t in thresholds)


def test_area_fraction_weighted_by_area():
    assert value_for_area_fraction([10.0, 1.0], [0.01, 100.0], 0.5) == 1.0


def test_area_fraction_zero_total_area_gives_max():
    assert value_for_area_fraction([3.0, 7.0], [0.0, 0.0], 0.5) == 7.0


def test_area_fraction_errors():
    with pytest.raises(ValueError):
        value_for_area_fraction([1.0], [1.0, 2.0], 0.5)
    with pytest.raises(ValueError):
        value_for_area_fraction([], [], 0.5)
    with pytest.raises(ValueError):
        value_for_area_fraction([1.0], [1.0], 1.5)