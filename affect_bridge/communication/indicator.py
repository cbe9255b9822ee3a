"""
LED indicator interface

The indicator is a microcontroller on a serial port that accepts one
"r,g,b" line per colour change.
"""

import logging
import math
import threading
from typing import Tuple

import serial

from ..core.config import LED_PORT, LED_BAUD_RATE

Color = Tuple[int, int, int]


def clamp_color(r: float, g: float, b: float) -> Color:
    return tuple(max(0, min(255, int(round(c)))) for c in (r, g, b))


def breathing_color(phase: float) -> Color:
    """Idle animation colour: three sines 2 rad apart"""
    r = round(127 * (math.sin(phase) + 1))
    g = round(127 * (math.sin(phase + 2) + 1))
    b = round(127 * (math.sin(phase + 4) + 1))
    return r, g, b


class SerialIndicator:
    """
    Serial-attached RGB LED

    Writes are serialized with a lock so the animation timer and the sample
    pipeline never interleave partial lines.
    """

    def __init__(self, port: str = LED_PORT, baud_rate: int = LED_BAUD_RATE):
        self.port = port
        self.baud_rate = baud_rate
        self.serial = None
        self._lock = threading.Lock()

    def connect(self) -> bool:
        try:
            self.serial = serial.Serial(self.port, self.baud_rate, timeout=1)
            logging.info(f"Serial port open: {self.port}")
            return True
        except serial.SerialException as e:
            logging.error(f"Serial port error: {e}")
            self.serial = None
            return False

    @property
    def is_connected(self) -> bool:
        return self.serial is not None and self.serial.is_open

    def _write_line(self, line: str) -> bool:
        with self._lock:
            if not self.is_connected:
                return False
            try:
                self.serial.write(line.encode('ascii'))
                return True
            except serial.SerialException as e:
                logging.error(f"Indicator write failed: {e}")
                return False

    def set_color(self, r: float, g: float, b: float) -> bool:
        r, g, b = clamp_color(r, g, b)
        return self._write_line(f"{r},{g},{b}\n")

    def off(self) -> bool:
        return self._write_line("0,0,0\n")

    def close(self):
        with self._lock:
            if self.serial is not None:
                self.serial.close()
                self.serial = None
