"""
Shared test doubles for Affect Bridge

Manual clock and timers let the session controller be driven sample by
sample without sleeping; the scripted source hands tests the handlers the
controller subscribed with.
"""

from typing import Dict, List, Optional

import pytest

from affect_bridge.acquisition.streams import StreamMessage
from affect_bridge.core.config import ALL_BANDS, CHANNEL_NAMES
from affect_bridge.core.data_types import Sample


class ManualClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ManualTimer:
    def __init__(self, factory, delay, callback):
        self.factory = factory
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True
        self.factory.timers.append(self)

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()


class ManualTimerFactory:
    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, delay, callback):
        return ManualTimer(self, delay, callback)

    def pending(self, delay: Optional[float] = None) -> List[ManualTimer]:
        return [t for t in self.timers
                if not t.cancelled and not t.fired and (delay is None or t.delay == delay)]

    def fire_pending(self, delay: Optional[float] = None):
        for timer in self.pending(delay):
            timer.fire()


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def emit(self, event, payload=None):
        self.events.append((event, payload))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def payloads(self, event: str) -> list:
        return [payload for name, payload in self.events if name == event]


class RecordingIndicator:
    def __init__(self):
        self.commands = []

    def set_color(self, r, g, b):
        self.commands.append((r, g, b))
        return True

    def off(self):
        self.commands.append("off")
        return True

    @property
    def last(self):
        return self.commands[-1] if self.commands else None


class FakeSubscription:
    def __init__(self, handler):
        self.handler = handler
        self.active = True

    def unsubscribe(self):
        self.active = False

    def deliver(self, value=None, error=None):
        self.handler(StreamMessage(value=value, error=error))


class ScriptedSource:
    """Source whose feeds are pushed by the test"""

    def __init__(self, name: str = "scripted", connect_result: bool = True):
        self.name = name
        self.connect_result = connect_result
        self.is_connected = False
        self.subscriptions: Dict[str, List[FakeSubscription]] = {
            "band": [], "quality": [], "accel": []}

    def connect(self) -> bool:
        self.is_connected = self.connect_result
        return self.connect_result

    def disconnect(self):
        self.is_connected = False

    def _subscribe(self, kind, handler):
        sub = FakeSubscription(handler)
        self.subscriptions[kind].append(sub)
        return sub

    def subscribe_band_power(self, handler):
        return self._subscribe("band", handler)

    def subscribe_signal_quality(self, handler):
        return self._subscribe("quality", handler)

    def subscribe_accelerometer(self, handler):
        return self._subscribe("accel", handler)

    def active(self, kind: str) -> List[FakeSubscription]:
        return [s for s in self.subscriptions[kind] if s.active]

    def push(self, sample: Sample):
        (band_sub,) = self.active("band")
        band_sub.deliver(value=sample)

    def fail(self, error: BaseException):
        (band_sub,) = self.active("band")
        band_sub.deliver(error=error)


def make_sample(value: float = 1.0, overrides: Optional[Dict[str, List[float]]] = None,
                bands=ALL_BANDS, channel_count: int = len(CHANNEL_NAMES),
                timestamp: float = 0.0) -> Sample:
    """Sample with every band set to value on every channel, then overrides"""
    data = {band: [value] * channel_count for band in bands}
    if overrides:
        data.update({band: list(values) for band, values in overrides.items()})
    return Sample(bands=data, timestamp=timestamp)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def indicator():
    return RecordingIndicator()


@pytest.fixture
def source():
    return ScriptedSource()
