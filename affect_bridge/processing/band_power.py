"""
EEG band-power extraction

This module turns a window of raw multi-channel EEG into one band-power
Sample using Welch's method for power spectral density estimation.
"""

import logging
from typing import Dict, Optional, Tuple
import numpy as np
from scipy import signal as sp_signal

from ..core.data_types import Sample
from ..core.config import FREQ_BANDS


class BandPowerExtractor:
    """
    Extract per-channel band powers from raw EEG

    This class computes power spectral density using Welch's method
    and averages it inside each configured frequency band.
    """

    def __init__(self, fs: float, freq_bands: Dict[str, Tuple[float, float]] = FREQ_BANDS):
        self.fs = fs
        self.freq_bands = freq_bands

    def compute_welch_psd(self, data: np.ndarray, nperseg: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute power spectral density using Welch's method

        Args:
            data: EEG data for single channel (samples,)
            nperseg: Length of each segment for Welch's method

        Returns:
            Tuple[frequencies, power]: Frequency bins and power values
        """
        if nperseg is None:
            nperseg = min(int(self.fs), len(data))

        freqs, psd = sp_signal.welch(data, fs=self.fs, nperseg=nperseg,
                                     noverlap=nperseg // 2, window='hann')
        return freqs, psd

    def band_powers(self, data: np.ndarray) -> Dict[str, float]:
        """Average PSD in every band for a single channel"""
        freqs, psd = self.compute_welch_psd(data)
        powers = {}
        for band_name, (low, high) in self.freq_bands.items():
            freq_mask = (freqs >= low) & (freqs <= high)
            powers[band_name] = float(np.mean(psd[freq_mask])) if np.any(freq_mask) else 0.0
        return powers

    def extract_sample(self, data: np.ndarray, timestamp: float) -> Sample:
        """
        Build a band-power Sample from raw EEG

        Args:
            data: Raw EEG (channels x samples)
            timestamp: Sample timestamp

        Returns:
            Sample: band name -> per-channel power, channel order preserved
        """
        bands = {band: [] for band in self.freq_bands}
        for ch_idx in range(data.shape[0]):
            if data.shape[1] < 2:
                logging.debug(f"Channel {ch_idx}: not enough data for PSD")
                channel_powers = {band: 0.0 for band in self.freq_bands}
            else:
                channel_powers = self.band_powers(data[ch_idx, :])
            for band, power in channel_powers.items():
                bands[band].append(power)
        return Sample(bands=bands, timestamp=timestamp)
