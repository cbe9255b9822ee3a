"""
Artifact rejection and robust normalization

Each incoming value is z-scored against its own rolling window using median
and MAD. Values beyond the threshold are treated as artifacts: the channel is
held at its last good output instead of passing the outlier through. A global
alert is raised when channels stay held for too long.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from ..core.data_types import ArtifactState, ChannelArtifactState, AlertUpdate, Sample
from ..core.config import (
    ARTIFACT_Z_THRESHOLD, ARTIFACT_SINGLE_CHANNEL_SAMPLES, ARTIFACT_MULTI_CHANNEL_SAMPLES,
)
from ..processing.robust_stats import robust_stats
from ..processing.sliding_window import SlidingWindowStore


class ArtifactDetector:
    """
    Per-channel z-score artifact classification with a hysteretic global alert

    The detector never mutates the state it is given; every call returns the
    new state so the session controller stays the single owner.
    """

    def __init__(self, z_threshold: float = ARTIFACT_Z_THRESHOLD,
                 single_channel_samples: int = ARTIFACT_SINGLE_CHANNEL_SAMPLES,
                 multi_channel_samples: int = ARTIFACT_MULTI_CHANNEL_SAMPLES):
        self.z_threshold = z_threshold
        self.single_channel_samples = single_channel_samples
        self.multi_channel_samples = multi_channel_samples

    def classify(self, raw_value: float, window: Sequence[float],
                 state: ChannelArtifactState) -> Tuple[float, ChannelArtifactState]:
        """
        Classify one value against the window that already contains it

        Args:
            raw_value: Newest raw band power for the channel
            window: Rolling window for the channel, including raw_value
            state: Current hold state for the channel

        Returns:
            Tuple[output, new_state]: z-score (or held value) and updated state
        """
        center, mad = robust_stats(window)
        z = (raw_value - center) / mad

        if abs(z) > self.z_threshold:
            output = state.last_output if state.last_output is not None else 0.0
            return output, ChannelArtifactState(held=True,
                                                held_streak=state.held_streak + 1,
                                                last_output=state.last_output)

        return z, ChannelArtifactState(held=False, held_streak=0, last_output=z)

    def classify_sample(self, sample: Sample, store: SlidingWindowStore,
                        artifact_state: ArtifactState) -> Tuple[Dict[str, List[float]], ArtifactState]:
        """
        Classify every (band, channel) of a sample already pushed into store

        Returns:
            Tuple[normalized, new_state]: band -> per-channel outputs, and the
            updated artifact state
        """
        normalized: Dict[str, List[float]] = {}
        new_state: ArtifactState = {}
        for band in store.band_names:
            outputs = []
            states = []
            for channel in range(store.channel_count):
                output, channel_state = self.classify(
                    sample.bands[band][channel],
                    store.snapshot(band, channel),
                    artifact_state[band][channel],
                )
                if channel_state.held:
                    logging.debug(f"Held {band}[{channel}] streak={channel_state.held_streak}")
                outputs.append(output)
                states.append(channel_state)
            normalized[band] = outputs
            new_state[band] = states
        return normalized, new_state

    def evaluate_alert(self, artifact_state: ArtifactState, alert_active: bool) -> AlertUpdate:
        """
        Update the global artifact alert from per-channel hold streaks

        The alert turns on when one channel has been held for
        single_channel_samples, or two channels for multi_channel_samples.
        It turns off only when neither condition holds any more.
        """
        single_held = 0
        multi_held = 0
        for states in artifact_state.values():
            for state in states:
                if state.held_streak >= self.single_channel_samples:
                    single_held += 1
                if state.held_streak >= self.multi_channel_samples:
                    multi_held += 1

        raised = False
        active = alert_active
        if not active and (single_held >= 1 or multi_held >= 2):
            active = True
            raised = True
        elif active and single_held == 0 and multi_held < 2:
            active = False

        return AlertUpdate(active=active, raised=raised,
                           single_held=single_held, multi_held=multi_held)
