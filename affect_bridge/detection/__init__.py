"""
Artifact and affective state detection

This module implements robust artifact rejection with a global alert and
valence/arousal mood estimation.
"""

from .artifacts import ArtifactDetector
from .mood import MoodEstimator, classify_emotion

__all__ = ['ArtifactDetector', 'MoodEstimator', 'classify_emotion']
