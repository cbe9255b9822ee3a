"""
Utility functions and helpers

This module contains helper tools for the Affect Bridge system.
"""

from .channel_finder import list_available_boards, map_board_channels

__all__ = ['list_available_boards', 'map_board_channels']
