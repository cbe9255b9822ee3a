"""
Signal processing components

This module contains robust statistics, the rolling baseline window and
band-power extraction for real-time analysis.
"""

from .robust_stats import robust_stats, median, median_absolute_deviation
from .sliding_window import SlidingWindowStore
from .band_power import BandPowerExtractor

__all__ = [
    'robust_stats', 'median', 'median_absolute_deviation',
    'SlidingWindowStore', 'BandPowerExtractor',
]
