"""
Band-power stream sources

This module provides unified interfaces for different EEG data sources including
BrainFlow (OpenBCI), LSL streams, and synthetic data generation for testing.
Each source exposes three cancelable feeds: band power, signal quality and
accelerometer.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Dict, List, Optional
import numpy as np

from ..core.config import (
    SERIAL_PORT, BOARD_NAME, LSL_STREAM_NAME, CHANNEL_NAMES, FREQ_BANDS,
    SAMPLING_RATE, RAW_WINDOW_SEC,
)
from ..core.data_types import Sample
from ..processing.band_power import BandPowerExtractor
from .streams import MessageChannel, StreamMessage, Subscription

# Optional imports with fallbacks
try:
    from brainflow.board_shim import BoardShim, BrainFlowInputParams, BoardIds
    BRAINFLOW_AVAILABLE = True
except ImportError:
    BRAINFLOW_AVAILABLE = False
    logging.warning("BrainFlow not available - use LSL or fake mode instead")

try:
    import pylsl
    LSL_AVAILABLE = True
except ImportError:
    LSL_AVAILABLE = False
    logging.warning("pylsl not available - BrainFlow and fake modes only")

# Per-channel raw standard deviation (uV) limits for signal quality status
SIGNAL_QUALITY_GOOD_STD = 50.0
SIGNAL_QUALITY_NOISY_STD = 100.0

ACCELEROMETER_RATE = 16  # Hz


class StreamUnavailable(RuntimeError):
    """Raised inside a producer when a feed cannot be served by the source"""


class BandPowerSource:
    """
    Base class for anything that can feed the session pipeline

    Subclasses implement read_sample(), and optionally read_signal_quality()
    and read_accelerometer(). Returning None means "no data yet".
    """

    def __init__(self, name: str, rate: float = SAMPLING_RATE,
                 channel_names: Optional[List[str]] = None):
        self.name = name
        self.rate = rate
        self.channel_names = list(channel_names or CHANNEL_NAMES)
        self.is_connected = False

    def connect(self) -> bool:
        self.is_connected = True
        return True

    def disconnect(self):
        self.is_connected = False

    def read_sample(self) -> Optional[Sample]:
        raise NotImplementedError

    def read_signal_quality(self) -> Optional[List[Dict[str, object]]]:
        raise StreamUnavailable(f"{self.name} has no signal quality feed")

    def read_accelerometer(self) -> Optional[Dict[str, float]]:
        raise StreamUnavailable(f"{self.name} has no accelerometer")

    def _poll(self, reader: Callable[[], object], rate: float) -> Callable[[MessageChannel, threading.Event], None]:
        """Producer that calls reader at rate Hz until stopped"""
        interval = 1.0 / rate

        def produce(channel: MessageChannel, stop_event: threading.Event):
            while not stop_event.is_set():
                if not self.is_connected:
                    raise StreamUnavailable(f"{self.name} is not connected")
                value = reader()
                if value is not None:
                    channel.send(value)
                stop_event.wait(interval)

        return produce

    def subscribe_band_power(self, handler: Callable[[StreamMessage], None]) -> Subscription:
        return Subscription(f"{self.name}/band-power",
                            self._poll(self.read_sample, self.rate), handler).start()

    def subscribe_signal_quality(self, handler: Callable[[StreamMessage], None]) -> Subscription:
        return Subscription(f"{self.name}/signal-quality",
                            self._poll(self.read_signal_quality, self.rate), handler).start()

    def subscribe_accelerometer(self, handler: Callable[[StreamMessage], None]) -> Subscription:
        return Subscription(f"{self.name}/accelerometer",
                            self._poll(self.read_accelerometer, ACCELEROMETER_RATE), handler).start()


def signal_quality_from_raw(raw: np.ndarray, channel_names: List[str]) -> List[Dict[str, object]]:
    """Per-channel status from the standard deviation of raw EEG"""
    quality = []
    for ch_idx, name in enumerate(channel_names[:raw.shape[0]]):
        std = float(np.std(raw[ch_idx, :]))
        if std < SIGNAL_QUALITY_GOOD_STD:
            status = "good"
        elif std < SIGNAL_QUALITY_NOISY_STD:
            status = "noisy"
        else:
            status = "bad"
        quality.append({"channel": name, "standardDeviation": std, "status": status})
    return quality


class RawEEGSource(BandPowerSource):
    """
    Source that reads raw EEG and converts the most recent second to band powers
    """

    def __init__(self, name: str, fs: float, rate: float = SAMPLING_RATE,
                 channel_names: Optional[List[str]] = None):
        super().__init__(name, rate, channel_names)
        self.fs = fs
        self.extractor = BandPowerExtractor(fs, FREQ_BANDS)
        self._raw_lock = threading.Lock()
        self._latest_raw: Optional[np.ndarray] = None

    def get_raw(self, duration_sec: float) -> Optional[np.ndarray]:
        """Most recent raw EEG (channels x samples) or None"""
        raise NotImplementedError

    def read_sample(self) -> Optional[Sample]:
        with self._raw_lock:
            raw = self.get_raw(RAW_WINDOW_SEC)
            if raw is None:
                return None
            self._latest_raw = raw
        return self.extractor.extract_sample(raw, time.time())

    def read_signal_quality(self) -> Optional[List[Dict[str, object]]]:
        with self._raw_lock:
            raw = self._latest_raw
        if raw is None:
            return None
        return signal_quality_from_raw(raw, self.channel_names)


BOARD_IDS = {
    "cyton": "CYTON_BOARD",
    "cyton-daisy": "CYTON_DAISY_BOARD",
    "ganglion": "GANGLION_BOARD",
    "synthetic": "SYNTHETIC_BOARD",
}


class BrainFlowBandPowerSource(RawEEGSource):
    """Band powers computed from an OpenBCI board via BrainFlow"""

    def __init__(self, board_name: str = BOARD_NAME, serial_port: str = SERIAL_PORT,
                 channel_names: Optional[List[str]] = None, name: Optional[str] = None,
                 rate: float = SAMPLING_RATE):
        super().__init__(name or f"brainflow:{board_name}", fs=250, rate=rate,
                         channel_names=channel_names)
        self.board_name = board_name
        self.serial_port = serial_port
        self.board = None
        self.board_id = None
        self.eeg_channels: List[int] = []
        self.accel_channels: List[int] = []

    def connect(self) -> bool:
        """Connect to OpenBCI via BrainFlow"""
        if not BRAINFLOW_AVAILABLE:
            logging.error("BrainFlow not available. Install with: pip install brainflow")
            return False
        if self.board_name not in BOARD_IDS:
            logging.error(f"Unknown board '{self.board_name}'. Available: {list(BOARD_IDS)}")
            return False

        try:
            params = BrainFlowInputParams()
            params.serial_port = self.serial_port

            self.board_id = getattr(BoardIds, BOARD_IDS[self.board_name]).value
            self.board = BoardShim(self.board_id, params)

            eeg_channels = BoardShim.get_eeg_channels(self.board_id)
            if len(eeg_channels) < len(self.channel_names):
                logging.error(f"Board has {len(eeg_channels)} EEG channels, "
                              f"need {len(self.channel_names)}")
                return False
            self.eeg_channels = eeg_channels[:len(self.channel_names)]
            self.fs = BoardShim.get_sampling_rate(self.board_id)
            self.extractor = BandPowerExtractor(self.fs, FREQ_BANDS)
            try:
                self.accel_channels = BoardShim.get_accel_channels(self.board_id)
            except Exception:
                self.accel_channels = []
                logging.info("Board has no accelerometer channels")

            logging.info(f"BrainFlow EEG channels: {self.eeg_channels}")
            logging.info(f"Sampling rate: {self.fs} Hz")

            self.board.prepare_session()
            self.board.start_stream()

            self.is_connected = True
            logging.info(f"Connected to {self.board_name} on {self.serial_port}")
            return True

        except Exception as e:
            logging.error(f"BrainFlow connection failed: {e}")
            logging.error("Hint: Check COM port, ensure board is on, and no other software is using it")
            return False

    def get_raw(self, duration_sec: float) -> Optional[np.ndarray]:
        n_samples = int(duration_sec * self.fs)
        data = self.board.get_current_board_data(n_samples)
        if data.shape[1] < n_samples:
            logging.debug(f"Insufficient data: got {data.shape[1]}, needed {n_samples}")
            return None
        return data[self.eeg_channels, :]

    def read_accelerometer(self) -> Optional[Dict[str, float]]:
        if not self.accel_channels:
            raise StreamUnavailable(f"{self.board_name} has no accelerometer")
        data = self.board.get_current_board_data(1)
        if data.shape[1] == 0:
            return None
        x, y, z = (float(data[ch, -1]) for ch in self.accel_channels[:3])
        return {"x": x, "y": y, "z": z}

    def disconnect(self):
        try:
            if self.board is not None:
                self.board.stop_stream()
                self.board.release_session()
                logging.info("BrainFlow disconnected")
        except Exception as e:
            logging.error(f"Disconnect error: {e}")
        finally:
            self.board = None
            self.is_connected = False


class LSLBandPowerSource(RawEEGSource):
    """Band powers computed from a raw EEG LSL stream"""

    def __init__(self, stream_name: str = LSL_STREAM_NAME,
                 channel_names: Optional[List[str]] = None, name: Optional[str] = None,
                 rate: float = SAMPLING_RATE):
        super().__init__(name or f"lsl:{stream_name}", fs=250, rate=rate,
                         channel_names=channel_names)
        self.stream_name = stream_name
        self.inlet = None
        self._buffer: deque = deque()

    def connect(self) -> bool:
        """Connect to LSL EEG stream"""
        if not LSL_AVAILABLE:
            logging.error("pylsl not available. Install with: pip install pylsl")
            return False

        try:
            logging.info(f"Looking for LSL stream: {self.stream_name}")
            streams = pylsl.resolve_byprop('name', self.stream_name, timeout=5.0)

            if not streams:
                # Try generic EEG type
                streams = pylsl.resolve_byprop('type', 'EEG', timeout=5.0)

            if not streams:
                logging.error("No LSL EEG streams found")
                return False

            stream_info = streams[0]
            n_channels = stream_info.channel_count()
            if n_channels < len(self.channel_names):
                logging.error(f"Stream has {n_channels} channels, need {len(self.channel_names)}")
                return False

            self.inlet = pylsl.StreamInlet(stream_info)
            self.fs = stream_info.nominal_srate()
            self.extractor = BandPowerExtractor(self.fs, FREQ_BANDS)
            self._buffer = deque(maxlen=int(self.fs * RAW_WINDOW_SEC))

            logging.info(f"Connected to LSL stream: {stream_info.name()}")
            logging.info(f"Channels: {n_channels}, Sample rate: {self.fs} Hz")

            self.is_connected = True
            return True

        except Exception as e:
            logging.error(f"LSL connection failed: {e}")
            return False

    def get_raw(self, duration_sec: float) -> Optional[np.ndarray]:
        chunk, _ = self.inlet.pull_chunk(timeout=0.0)
        for sample in chunk:
            self._buffer.append(sample[:len(self.channel_names)])
        if len(self._buffer) < self._buffer.maxlen:
            return None
        return np.array(self._buffer).T

    def disconnect(self):
        try:
            if self.inlet is not None:
                self.inlet.close_stream()
                logging.info("LSL disconnected")
        except Exception as e:
            logging.error(f"Disconnect error: {e}")
        finally:
            self.inlet = None
            self.is_connected = False


class FakeBandPowerSource(RawEEGSource):
    """
    Generate synthetic EEG and band powers for testing

    Frontal alpha asymmetry drifts slowly so valence swings between positive
    and negative (happy and angry; arousal is a beta/alpha power ratio and
    never goes negative). Beta amplitude drifts too, and short blink-like
    bursts exercise artifact rejection.
    """

    def __init__(self, fs: float = 250, rate: float = SAMPLING_RATE,
                 channel_names: Optional[List[str]] = None, name: str = "fake",
                 artifact_every_sec: float = 45.0, seed: Optional[int] = None):
        super().__init__(name, fs=fs, rate=rate, channel_names=channel_names)
        self.time = 0.0
        self.valence_cycle_time = 120.0
        self.arousal_cycle_time = 90.0
        self.artifact_every_sec = artifact_every_sec
        self.rng = np.random.default_rng(seed)

    def get_raw(self, duration_sec: float) -> np.ndarray:
        n_channels = len(self.channel_names)
        n_samples = int(duration_sec * self.fs)
        t = np.linspace(self.time, self.time + duration_sec, n_samples)

        data = self.rng.standard_normal((n_channels, n_samples)) * 5

        valence_phase = 2 * np.pi * self.time / self.valence_cycle_time
        arousal_phase = 2 * np.pi * self.time / self.arousal_cycle_time
        for ch in range(n_channels):
            alpha_amp = 15.0
            if ch == 0:    # left frontal
                alpha_amp -= 6 * np.sin(valence_phase)
            elif ch == 1:  # right frontal
                alpha_amp += 6 * np.sin(valence_phase)
            data[ch, :] += alpha_amp * np.sin(2 * np.pi * 10 * t + self.rng.random() * 2 * np.pi)

            beta_amp = 8 + 6 * np.cos(arousal_phase)
            data[ch, :] += beta_amp * np.sin(2 * np.pi * 20 * t + self.rng.random() * 2 * np.pi)

        # Blink burst on the frontal pair for ~1 s
        if self.artifact_every_sec and (self.time % self.artifact_every_sec) < 1.0 and self.time > 1.0:
            data[:2, :] += 300 * np.exp(-((t - t.mean()) ** 2) / 0.02)

        self.time += 1.0 / self.rate
        return data

    def read_accelerometer(self) -> Dict[str, float]:
        noise = self.rng.standard_normal(3) * 0.01
        return {"x": float(noise[0]), "y": float(noise[1]), "z": float(1.0 + noise[2])}
