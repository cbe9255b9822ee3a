"""
Affect Bridge - Real-time affective state from EEG band power

A modular Python package that baselines a multi-channel band-power stream,
normalizes it with robust statistics, rejects artifacts, estimates
valence/arousal and drives an RGB LED and a UI over UDP.

Python: 3.10+
"""

__version__ = "1.0.0"

# Main package imports for easy access
from .core.data_types import Sample, SessionSettings, MoodReading
from .acquisition.sources import BrainFlowBandPowerSource, LSLBandPowerSource, FakeBandPowerSource
from .processing.robust_stats import robust_stats
from .processing.sliding_window import SlidingWindowStore
from .detection.artifacts import ArtifactDetector
from .detection.mood import MoodEstimator
from .communication.ui_sender import UISender
from .communication.indicator import SerialIndicator
from .session.controller import SessionController

__all__ = [
    'Sample', 'SessionSettings', 'MoodReading',
    'BrainFlowBandPowerSource', 'LSLBandPowerSource', 'FakeBandPowerSource',
    'robust_stats', 'SlidingWindowStore',
    'ArtifactDetector', 'MoodEstimator',
    'UISender', 'SerialIndicator',
    'SessionController',
]
