"""
Core data types for Affect Bridge

This module defines the fundamental data structures used throughout the system
for representing band-power samples, artifact state, mood windows and settings.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from .config import (
    ALL_BANDS, CHANNEL_NAMES, SAMPLING_RATE, SLIDING_WINDOW_SECONDS,
    ARTIFACT_Z_THRESHOLD, ARTIFACT_SINGLE_CHANNEL_SAMPLES, ARTIFACT_MULTI_CHANNEL_SAMPLES,
    VALENCE_WINDOW_SIZE, VALENCE_STEP, AROUSAL_WINDOW_SIZE, AROUSAL_STEP,
    VALENCE_LEFT_CHANNEL, VALENCE_RIGHT_CHANNEL, MOOD_EPSILON,
    RELAX_SECONDS, MIN_BUFFER_DISPLAY_SECONDS,
    BREATHING_INTERVAL_SEC, BREATHING_PHASE_STEP,
)

SESSION_PHASES = ("idle", "relax", "placement", "placement-assist", "buffering", "live")
EMOTIONS = ("happy", "angry", "bored", "relaxed")


@dataclass
class Sample:
    """One band-power reading: band name -> per-channel powers"""
    bands: Dict[str, List[float]]
    timestamp: float = 0.0
    filled_bands: FrozenSet[str] = frozenset()  # bands synthesized as zeros

    def with_all_bands(self, band_names: Sequence[str], channel_count: int) -> "Sample":
        """
        Return a copy where every band in band_names is present

        Missing bands become zero vectors of channel_count length and are
        recorded in filled_bands. Short vectors are padded with zeros, long
        ones truncated, so every band has exactly channel_count values.
        """
        bands = {}
        filled = set(self.filled_bands)
        for band in band_names:
            values = self.bands.get(band)
            if values is None:
                bands[band] = [0.0] * channel_count
                filled.add(band)
            else:
                values = [float(v) for v in values][:channel_count]
                bands[band] = values + [0.0] * (channel_count - len(values))
        return Sample(bands=bands, timestamp=self.timestamp, filled_bands=frozenset(filled))

    def to_payload(self) -> Dict[str, List[float]]:
        return {band: list(values) for band, values in self.bands.items()}


@dataclass(frozen=True)
class ChannelArtifactState:
    """Hold state of one (band, channel) pair"""
    held: bool = False
    held_streak: int = 0                 # consecutive samples classified as artifact
    last_output: Optional[float] = None  # last emitted value, reused while held


ArtifactState = Dict[str, List[ChannelArtifactState]]


def fresh_artifact_state(band_names: Sequence[str], channel_count: int) -> ArtifactState:
    return {band: [ChannelArtifactState() for _ in range(channel_count)] for band in band_names}


@dataclass(frozen=True)
class AlertUpdate:
    """Result of one global alert evaluation"""
    active: bool
    raised: bool            # inactive -> active edge on this sample
    single_held: int = 0
    multi_held: int = 0


@dataclass(frozen=True)
class MoodWindow:
    """Overlapping valence/arousal sample buffers"""
    valence: Tuple[Sample, ...] = ()
    arousal: Tuple[Sample, ...] = ()


@dataclass(frozen=True)
class MoodReading:
    """Emitted each time the valence window completes"""
    valence: float
    arousal: float
    emotion: str  # one of EMOTIONS

    def __post_init__(self):
        if self.emotion not in EMOTIONS:
            raise ValueError(f"Unknown emotion {self.emotion!r}, expected one of {EMOTIONS}")

    def to_payload(self) -> Dict[str, object]:
        return {"valence": float(self.valence), "arousal": float(self.arousal),
                "emotion": self.emotion}


@dataclass
class SessionSettings:
    """Everything the session pipeline needs, defaulted from core.config"""
    band_names: List[str] = field(default_factory=lambda: list(ALL_BANDS))
    channel_names: List[str] = field(default_factory=lambda: list(CHANNEL_NAMES))
    sampling_rate: float = SAMPLING_RATE
    window_seconds: float = SLIDING_WINDOW_SECONDS
    z_threshold: float = ARTIFACT_Z_THRESHOLD
    single_channel_samples: int = ARTIFACT_SINGLE_CHANNEL_SAMPLES
    multi_channel_samples: int = ARTIFACT_MULTI_CHANNEL_SAMPLES
    valence_window: int = VALENCE_WINDOW_SIZE
    valence_step: int = VALENCE_STEP
    arousal_window: int = AROUSAL_WINDOW_SIZE
    arousal_step: int = AROUSAL_STEP
    left_channel: str = VALENCE_LEFT_CHANNEL
    right_channel: str = VALENCE_RIGHT_CHANNEL
    epsilon: float = MOOD_EPSILON
    relax_seconds: float = RELAX_SECONDS
    min_buffer_seconds: float = MIN_BUFFER_DISPLAY_SECONDS
    breathing_interval: float = BREATHING_INTERVAL_SEC
    breathing_step: float = BREATHING_PHASE_STEP

    @property
    def channel_count(self) -> int:
        return len(self.channel_names)

    @property
    def window_size(self) -> int:
        return int(round(self.sampling_rate * self.window_seconds))

    def validate(self) -> None:
        """Raise ValueError if the settings cannot drive a session"""
        if not self.band_names or not self.channel_names:
            raise ValueError("At least one band and one channel are required")
        for name in (self.left_channel, self.right_channel):
            if name not in self.channel_names:
                raise ValueError(f"Valence channel {name!r} not in {self.channel_names}")
        if self.window_size < 1:
            raise ValueError("Sliding window must hold at least one sample")
        if not 0 < self.valence_step <= self.valence_window:
            raise ValueError("Valence step must be in (0, valence_window]")
        if not 0 < self.arousal_step <= self.arousal_window:
            raise ValueError("Arousal step must be in (0, arousal_window]")
        if self.z_threshold <= 0:
            raise ValueError("z threshold must be positive")
