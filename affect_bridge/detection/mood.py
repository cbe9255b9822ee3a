"""
Valence/arousal mood estimation

Valence comes from frontal alpha asymmetry (ln right - ln left alpha power),
arousal from the beta/alpha ratio. Both are averaged over overlapping windows
of raw samples and the sign pair selects one of four emotions.
"""

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..core.data_types import Sample, MoodWindow, MoodReading
from ..core.config import (
    CHANNEL_NAMES, VALENCE_LEFT_CHANNEL, VALENCE_RIGHT_CHANNEL, MOOD_EPSILON,
    VALENCE_WINDOW_SIZE, VALENCE_STEP, AROUSAL_WINDOW_SIZE, AROUSAL_STEP,
)


def classify_emotion(valence: float, arousal: float) -> str:
    """
    Map a (valence, arousal) pair to an emotion quadrant

    Zero counts as positive on both axes.
    """
    if valence >= 0 and arousal >= 0:
        return "happy"
    if valence < 0 and arousal >= 0:
        return "angry"
    if valence < 0 and arousal < 0:
        return "bored"
    return "relaxed"


def finite_mean(scores: Sequence[float]) -> float:
    """Mean of the finite scores, 0.0 if there are none"""
    finite = [s for s in scores if math.isfinite(s)]
    if not finite:
        return 0.0
    return float(np.mean(finite))


class MoodEstimator:
    """
    Windowed valence/arousal estimator

    Windows slide by their step size after each emission rather than being
    cleared, so consecutive estimates overlap.
    """

    def __init__(self, channel_names: Sequence[str] = CHANNEL_NAMES,
                 left_channel: str = VALENCE_LEFT_CHANNEL,
                 right_channel: str = VALENCE_RIGHT_CHANNEL,
                 valence_window: int = VALENCE_WINDOW_SIZE, valence_step: int = VALENCE_STEP,
                 arousal_window: int = AROUSAL_WINDOW_SIZE, arousal_step: int = AROUSAL_STEP,
                 epsilon: float = MOOD_EPSILON):
        self.left_idx = list(channel_names).index(left_channel)
        self.right_idx = list(channel_names).index(right_channel)
        self.valence_window = valence_window
        self.valence_step = valence_step
        self.arousal_window = arousal_window
        self.arousal_step = arousal_step
        self.epsilon = epsilon

    def valence_score(self, sample: Sample) -> float:
        """ln(alpha[right]) - ln(alpha[left]), 0.0 if alpha is missing"""
        alpha = sample.bands.get("alpha")
        if alpha is None or "alpha" in sample.filled_bands:
            return 0.0
        left = max(alpha[self.left_idx], self.epsilon)
        right = max(alpha[self.right_idx], self.epsilon)
        return math.log(right) - math.log(left)

    def arousal_score(self, sample: Sample) -> float:
        """mean(beta) / mean(alpha), 0.0 if either band is missing"""
        alpha = sample.bands.get("alpha")
        beta = sample.bands.get("beta")
        if alpha is None or beta is None:
            return 0.0
        if "alpha" in sample.filled_bands or "beta" in sample.filled_bands:
            return 0.0
        if len(alpha) == 0 or len(beta) == 0:
            return 0.0
        return float(np.mean(beta)) / max(float(np.mean(alpha)), self.epsilon)

    def update(self, window: MoodWindow, sample: Sample) -> Tuple[MoodWindow, Optional[MoodReading]]:
        """
        Add a sample to both buffers and emit a reading when valence is full

        Args:
            window: Current buffers (not modified)
            sample: Raw band-power sample (all bands present)

        Returns:
            Tuple[new_window, reading]: reading is None until the valence
            buffer reaches capacity
        """
        valence_buf = (window.valence + (sample,))[-self.valence_window:]
        arousal_buf = (window.arousal + (sample,))[-self.arousal_window:]

        if len(valence_buf) < self.valence_window:
            return MoodWindow(valence=valence_buf, arousal=arousal_buf), None

        valence = finite_mean([self.valence_score(s) for s in valence_buf])
        if len(arousal_buf) == self.arousal_window:
            arousal = finite_mean([self.arousal_score(s) for s in arousal_buf])
        else:
            # Startup: arousal buffer not full yet, use the valence samples
            logging.debug("Arousal window not full, using valence window")
            arousal = finite_mean([self.arousal_score(s) for s in valence_buf])

        reading = MoodReading(valence=valence, arousal=arousal,
                              emotion=classify_emotion(valence, arousal))
        new_window = MoodWindow(valence=valence_buf[self.valence_step:],
                                arousal=arousal_buf[self.arousal_step:])
        return new_window, reading
