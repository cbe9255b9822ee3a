"""
BrainFlow board inspection

Lists the BrainFlow boards the band-power source can use and shows which
board channel each configured electrode name will be read from.
"""

import logging
from typing import Dict, List, Optional

from ..core.config import CHANNEL_NAMES
from ..acquisition.sources import BOARD_IDS

# Optional import with fallback
try:
    from brainflow.board_shim import BoardShim, BoardIds
    BRAINFLOW_AVAILABLE = True
except ImportError:
    BRAINFLOW_AVAILABLE = False
    logging.warning("BrainFlow not available")


def list_available_boards() -> Dict[str, int]:
    """
    List the supported BrainFlow boards

    Returns:
        Dict[str, int]: Mapping of board names to board IDs
    """
    if not BRAINFLOW_AVAILABLE:
        logging.error("BrainFlow not installed. Install with: pip install brainflow")
        return {}

    print("Available BrainFlow boards:")
    print("-" * 40)

    available_boards = {}
    for name, enum_name in BOARD_IDS.items():
        board_id = getattr(BoardIds, enum_name).value
        try:
            eeg_channels = BoardShim.get_eeg_channels(board_id)
            sampling_rate = BoardShim.get_sampling_rate(board_id)
            usable = "ok" if len(eeg_channels) >= len(CHANNEL_NAMES) else "too few channels"
            print(f"{name:15} (ID: {board_id:2d}) - {len(eeg_channels):2d} EEG channels "
                  f"@ {sampling_rate:3.0f} Hz [{usable}]")
            available_boards[name] = board_id
        except Exception as e:
            print(f"{name:15} (ID: {board_id:2d}) - Error: {e}")

    return available_boards


def map_board_channels(board_name: str, channel_names: List[str] = CHANNEL_NAMES) -> Optional[Dict[str, int]]:
    """
    Show the electrode -> board channel mapping the source will use

    The band-power source reads the first len(channel_names) EEG channels of
    the board, in order.
    """
    if not BRAINFLOW_AVAILABLE:
        logging.error("BrainFlow not installed. Install with: pip install brainflow")
        return None

    if board_name not in BOARD_IDS:
        logging.error(f"Unknown board '{board_name}'")
        logging.info(f"Available boards: {list(BOARD_IDS.keys())}")
        return None

    board_id = getattr(BoardIds, BOARD_IDS[board_name]).value
    try:
        eeg_channels = BoardShim.get_eeg_channels(board_id)
    except Exception as e:
        logging.error(f"Could not get board information: {e}")
        return None

    mapping = {}
    print(f"Channel mapping for {board_name}:")
    for i, name in enumerate(channel_names):
        if i < len(eeg_channels):
            mapping[name] = eeg_channels[i]
            print(f"  {name:4} -> board channel {eeg_channels[i]}")
        else:
            print(f"  {name:4} -> not available")
    return mapping
