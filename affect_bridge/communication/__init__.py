"""
Communication interfaces

This module handles external communication: UDP event messages to the UI
and colour commands to the serial LED indicator.
"""

from .ui_sender import UISender
from .indicator import SerialIndicator, breathing_color, clamp_color

__all__ = ['UISender', 'SerialIndicator', 'breathing_color', 'clamp_color']
