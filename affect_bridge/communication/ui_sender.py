"""
UI notification interface

This module handles UDP communication with the user interface process,
formatting session events into JSON messages.
"""

import json
import logging
import socket
import time
from typing import Any

from ..core.config import UDP_HOST, UDP_PORT


class UISender:
    """
    Send named session events to the UI via UDP JSON messages

    Delivery is fire-and-forget: no acknowledgement is expected and a failed
    send is logged, never raised.
    """

    def __init__(self, host: str = UDP_HOST, port: int = UDP_PORT):
        self.host = host
        self.port = port
        self.socket = None
        self._setup_socket()

    def _setup_socket(self):
        """Setup UDP socket for communication"""
        try:
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            logging.info(f"UDP sender initialized: {self.host}:{self.port}")
        except Exception as e:
            logging.error(f"Failed to setup UDP socket: {e}")

    def emit(self, event: str, payload: Any = None) -> bool:
        """
        Send one event

        Args:
            event: Event name, e.g. "session-phase" or "mood"
            payload: JSON-serializable payload (None for bare events)

        Returns:
            bool: True if sent successfully
        """
        if self.socket is None:
            return False

        try:
            message = {"t": time.time(), "event": event, "payload": payload}
            json_str = json.dumps(message)
            self.socket.sendto(json_str.encode('utf-8'), (self.host, self.port))
            return True

        except Exception as e:
            logging.error(f"Failed to send UDP message: {e}")
            return False

    def close(self):
        """Close UDP socket"""
        if self.socket:
            self.socket.close()
            self.socket = None
