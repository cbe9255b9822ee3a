"""
Band-power acquisition sources

This module handles different types of EEG data sources including
BrainFlow (OpenBCI), LSL streams, and synthetic data generation, and the
cancelable message streams they deliver through.
"""

from .sources import (
    BandPowerSource, RawEEGSource, BrainFlowBandPowerSource, LSLBandPowerSource,
    FakeBandPowerSource, StreamUnavailable,
)
from .streams import StreamMessage, MessageChannel, Subscription

__all__ = [
    'BandPowerSource', 'RawEEGSource', 'BrainFlowBandPowerSource', 'LSLBandPowerSource',
    'FakeBandPowerSource', 'StreamUnavailable',
    'StreamMessage', 'MessageChannel', 'Subscription',
]
