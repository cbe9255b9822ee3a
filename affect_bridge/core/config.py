"""
Configuration constants for Affect Bridge

This module contains all configuration parameters that users may need to customize
for their specific hardware setup and processing requirements.
"""

from typing import Dict, Tuple

# ============================================================================
# HARDWARE CONFIGURATION - User should edit these values for their setup
# ============================================================================

# Hardware Configuration
SERIAL_PORT = "COM3"              # EEG board serial port (Windows: COMx, Linux: /dev/ttyUSBx)
BOARD_NAME = "cyton"              # BrainFlow board used by the band-power source
LSL_STREAM_NAME = "EEG"           # Raw EEG LSL stream name

# Channel layout (order matters: index i of every band vector is CHANNEL_NAMES[i])
CHANNEL_NAMES = ["F5", "F6", "C3", "C4", "P7", "P8", "O1", "O2"]

# Frequency Bands (Hz)
FREQ_BANDS: Dict[str, Tuple[float, float]] = {
    "delta": (1, 4),
    "theta": (4, 8),
    "alpha": (8, 13),
    "beta": (13, 30),
    "gamma": (30, 45),
}
ALL_BANDS = list(FREQ_BANDS.keys())

# ============================================================================
# STREAM / BASELINE CONFIGURATION
# ============================================================================

SAMPLING_RATE = 4                 # Band-power samples per second
SLIDING_WINDOW_SECONDS = 10       # Baseline / normalization window (seconds)
RELAX_SECONDS = 5.0               # Dwell in the relax phase before placement
MIN_BUFFER_DISPLAY_SECONDS = 2.0  # Minimum time the buffering phase stays visible
RAW_WINDOW_SEC = 1.0              # Raw EEG used for each band-power estimate

# ============================================================================
# ARTIFACT DETECTION
# ============================================================================

MAD_SCALE = 1.4826                     # Normal consistency constant for MAD
ARTIFACT_Z_THRESHOLD = 3.0             # |z| above this holds the channel
ARTIFACT_SINGLE_CHANNEL_SAMPLES = 8    # One channel held this long raises the alert
ARTIFACT_MULTI_CHANNEL_SAMPLES = 5     # Two channels held this long raise the alert

# ============================================================================
# MOOD ESTIMATION
# ============================================================================

VALENCE_WINDOW_SECONDS = 20       # Mood windows in seconds, converted to samples at the stream rate
VALENCE_STEP_SECONDS = 10
AROUSAL_WINDOW_SECONDS = 10
AROUSAL_STEP_SECONDS = 5
VALENCE_WINDOW_SIZE = VALENCE_WINDOW_SECONDS * SAMPLING_RATE
VALENCE_STEP = VALENCE_STEP_SECONDS * SAMPLING_RATE
AROUSAL_WINDOW_SIZE = AROUSAL_WINDOW_SECONDS * SAMPLING_RATE
AROUSAL_STEP = AROUSAL_STEP_SECONDS * SAMPLING_RATE
VALENCE_LEFT_CHANNEL = "F5"       # Frontal asymmetry pair
VALENCE_RIGHT_CHANNEL = "F6"
MOOD_EPSILON = 1e-6               # Floor for alpha power before log / division

# ============================================================================
# INDICATOR (LED) CONFIGURATION
# ============================================================================

LED_PORT = "COM6"
LED_BAUD_RATE = 115200
BREATHING_INTERVAL_SEC = 0.08     # Idle animation tick
BREATHING_PHASE_STEP = 0.08       # Phase advance per tick (radians)

EMOTION_COLORS: Dict[str, Tuple[int, int, int]] = {
    "happy": (255, 255, 0),
    "angry": (255, 0, 0),
    "relaxed": (0, 0, 255),
    "bored": (0, 255, 0),
}

# ============================================================================
# COMMUNICATION CONFIGURATION
# ============================================================================

UDP_HOST = "127.0.0.1"            # UI notification host
UDP_PORT = 5005                   # UI notification port
