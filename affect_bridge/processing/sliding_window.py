"""
Per-band, per-channel rolling buffers

The sliding window holds the most recent raw values for every (band, channel)
pair. It is the baseline against which live samples are normalized.
"""

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Sequence, Tuple

from ..core.data_types import Sample


class SlidingWindowStore:
    """
    Fixed-capacity FIFO buffers, one per (band, channel)

    Band and channel sets are fixed at construction. Asking for a band or
    channel outside them is a programming error and raises immediately.
    """

    def __init__(self, band_names: Sequence[str], channel_count: int, capacity: int):
        if capacity < 1:
            raise ValueError(f"Window capacity must be positive, got {capacity}")
        self.band_names = list(band_names)
        self.channel_count = channel_count
        self.capacity = capacity
        self._buffers: Dict[str, List[Deque[float]]] = {
            band: [deque(maxlen=capacity) for _ in range(channel_count)]
            for band in self.band_names
        }

    def push(self, sample: Sample) -> None:
        """
        Append one sample to every buffer, evicting the oldest value on overflow

        Bands missing from the sample are treated as zero vectors.
        """
        for band in self.band_names:
            values = sample.bands.get(band)
            buffers = self._buffers[band]
            for channel in range(self.channel_count):
                value = values[channel] if values is not None else 0.0
                buffers[channel].append(float(value))

    def backfill(self, samples: Iterable[Sample]) -> int:
        """Push a batch of samples in arrival order, returning how many were pushed"""
        count = 0
        for sample in samples:
            self.push(sample)
            count += 1
        logging.debug(f"Sliding window backfilled with {count} samples")
        return count

    def snapshot(self, band: str, channel: int) -> Tuple[float, ...]:
        """Current contents of one buffer, oldest first"""
        if not 0 <= channel < self.channel_count:
            raise IndexError(f"Channel {channel} out of range (0..{self.channel_count - 1})")
        return tuple(self._buffers[band][channel])

    def __len__(self) -> int:
        """Number of values held per buffer"""
        if not self.band_names or self.channel_count == 0:
            return 0
        return len(self._buffers[self.band_names[0]][0])
