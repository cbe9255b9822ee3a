"""
Core data types and structures for Affect Bridge

This module contains the fundamental data classes used throughout the system.
"""

from .data_types import (
    Sample, ChannelArtifactState, AlertUpdate, MoodWindow, MoodReading,
    SessionSettings, SESSION_PHASES, EMOTIONS,
)
from .config import *

__all__ = [
    'Sample', 'ChannelArtifactState', 'AlertUpdate', 'MoodWindow', 'MoodReading',
    'SessionSettings', 'SESSION_PHASES', 'EMOTIONS',
]
