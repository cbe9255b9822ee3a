"""
Robust location/scale statistics

Median and median absolute deviation (MAD) are used instead of mean and
standard deviation so that a few artifact samples cannot drag the baseline.
"""

from typing import Sequence, Tuple

import numpy as np

from ..core.config import MAD_SCALE


def median(values: Sequence[float]) -> float:
    """Median of values, 0.0 for an empty sequence"""
    if len(values) == 0:
        return 0.0
    return float(np.median(np.asarray(values, dtype=float)))


def median_absolute_deviation(values: Sequence[float], center: float,
                              scale: float = MAD_SCALE) -> float:
    """
    Scaled MAD of values around center

    Args:
        values: Input values
        center: Location the deviations are taken from (normally the median)
        scale: Consistency constant (1.4826 makes MAD match sigma for normal data)

    Returns:
        float: Scaled MAD, or 1.0 when the input is empty or the MAD is zero
    """
    if len(values) == 0:
        return 1.0
    deviations = np.abs(np.asarray(values, dtype=float) - center)
    mad = float(np.median(deviations)) * scale
    if mad == 0 or np.isnan(mad):
        return 1.0
    return mad


def robust_stats(values: Sequence[float]) -> Tuple[float, float]:
    """
    Compute (median, mad) for a window of values

    The MAD is floored to 1.0 for degenerate windows so it can always be used
    as a divisor.
    """
    if len(values) == 0:
        return 0.0, 1.0
    center = median(values)
    return center, median_absolute_deviation(values, center)
