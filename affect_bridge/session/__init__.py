"""
Session orchestration

This module wires acquisition, normalization, artifact rejection and mood
estimation into one per-sample pipeline driven by session phases.
"""

from .controller import SessionController, SessionError

__all__ = ['SessionController', 'SessionError']
