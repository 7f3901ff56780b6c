"""Distribution statistics, colour mapping and outlier thresholds for raster values."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

_RED_LOW = (0.13572138, 4.61539260, -42.66032258, 132.13108234)
_GREEN_LOW = (0.09140261, 2.19418839, 4.84296658, -14.18503333)
_BLUE_LOW = (0.10667330, 12.64194608, -60.58204836, 110.36276771)
_RED_HIGH = (-152.94239396, 59.28637943)
_GREEN_HIGH = (4.27729857, 2.82956604)
_BLUE_HIGH = (-89.90310912, 27.34824973)


@dataclass(frozen=True)
class RasterStatistics:
    """Summary of a set of raster cell values (population moments)."""

    minimum: float
    maximum: float
    mean: float
    standard_deviation: float
    skewness: float
    kurtosis: float


def grid_statistics(values: Iterable[float]) -> RasterStatistics:
    """Minimum, maximum, mean, standard deviation, skewness and kurtosis of the values.

    Skewness near 0 means a symmetric distribution; kurtosis near 3 means tails
    like a normal distribution. Both are NaN when every value is the same.
    """
    data = [float(v) for v in values]
    if not data:
        raise ValueError("statistics of no values")
    count = len(data)
    mean = sum(data) / count
    deviations = [v - mean for v in data]
    std = math.sqrt(sum(d * d for d in deviations) / count)
    third = sum(d**3 for d in deviations)
    fourth = sum(d**4 for d in deviations)
    if std == 0.0:
        skewness = kurtosis = math.nan
    else:
        skewness = third / (count * std**3)
        kurtosis = fourth / (count * std**4)
    return RasterStatistics(
        minimum=min(data),
        maximum=max(data),
        mean=mean,
        standard_deviation=std,
        skewness=skewness,
        kurtosis=kurtosis,
    )


def _channel(low: Sequence[float], high: Sequence[float], x: float) -> float:
    powers = (1.0, x, x * x, x**3)
    value = sum(p * c for p, c in zip(powers, low)) + high[0] * x**4 + high[1] * x**5
    return min(1.0, max(0.0, value))


def turbo_color(value: float) -> tuple[float, float, float]:
    """RGB colour in [0, 1] from the Turbo colour map; the input is clamped to [0, 1]."""
    x = min(1.0, max(0.0, float(value)))
    return (
        _channel(_RED_LOW, _RED_HIGH, x),
        _channel(_GREEN_LOW, _GREEN_HIGH, x),
        _channel(_BLUE_LOW, _BLUE_HIGH, x),
    )


def value_for_area_fraction(
    values: Sequence[float], areas: Sequence[float], fraction: float
) -> float:
    """Threshold value such that cells at or above it cover at least `fraction` of the total area.

    Cells are taken from the highest value down, accumulating their areas.
    """
    if len(values) != len(areas):
        raise ValueError("values and areas must have the same length")
    if not values:
        raise ValueError("no values given")
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"fraction {fraction} is outside [0, 1]")
    pairs = sorted(zip(values, areas), key=lambda pair: pair[0], reverse=True)
    total = sum(max(0.0, float(area)) for area in areas)
    if total <= 0.0:
        return float(pairs[0][0])
    target = fraction * total
    accumulated = 0.0
    for value, area in pairs:
        accumulated += max(0.0, float(area))
        if accumulated >= target:
            return float(value)
    return float(pairs[-1][0])