"""
Session controller

Owns all mutable session state (rolling window, artifact state, alert, mood
buffers, phase) and runs the per-sample pipeline:

    push to window -> classify every (band, channel) -> update alert
    -> emit normalized sample -> feed mood estimator -> emit mood / LED colour

Phases: idle -> relax -> placement (<-> placement-assist) -> buffering -> live.
External commands, stream messages and timer callbacks all run under one
re-entrant lock, so each is applied atomically and in order.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

from ..core.config import EMOTION_COLORS
from ..core.data_types import (
    Sample, SessionSettings, MoodWindow, MoodReading, ArtifactState, fresh_artifact_state,
    SESSION_PHASES,
)
from ..acquisition.sources import BandPowerSource, StreamUnavailable
from ..acquisition.streams import StreamMessage
from ..processing.sliding_window import SlidingWindowStore
from ..detection.artifacts import ArtifactDetector
from ..detection.mood import MoodEstimator
from ..communication.indicator import breathing_color, clamp_color, Color


class SessionError(RuntimeError):
    """Raised when the controller API is used incorrectly"""


class SessionController:
    """
    Single owner of the live session

    Args:
        sources: Selectable band-power sources (devices)
        notifier: Object with emit(event, payload) (e.g. UISender)
        indicator: Object with set_color(r, g, b) and off() (e.g. SerialIndicator)
        settings: Pipeline settings, defaults from core.config
        clock: Monotonic time in seconds
        timer_factory: threading.Timer compatible factory
    """

    def __init__(self, sources: Sequence[BandPowerSource], notifier, indicator,
                 settings: Optional[SessionSettings] = None,
                 clock: Callable[[], float] = time.monotonic,
                 timer_factory=threading.Timer):
        self.settings = settings or SessionSettings()
        self.settings.validate()
        self.sources = list(sources)
        self.notifier = notifier
        self.indicator = indicator
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = threading.RLock()

        s = self.settings
        self.detector = ArtifactDetector(s.z_threshold, s.single_channel_samples,
                                         s.multi_channel_samples)
        self.mood_estimator = MoodEstimator(s.channel_names, s.left_channel, s.right_channel,
                                            s.valence_window, s.valence_step,
                                            s.arousal_window, s.arousal_step, s.epsilon)

        # Device
        self.current_source: Optional[BandPowerSource] = None
        self.current_device_idx: Optional[int] = None

        # Phase
        self.phase = "idle"
        self._interrupted_phase: Optional[str] = None

        # Subscriptions, keyed by feed; tokens make late messages from a
        # cancelled subscription harmless
        self._subscriptions: Dict[str, object] = {}
        self._tokens: Dict[str, int] = {"band": 0, "quality": 0, "accel": 0}

        # Rolling state
        self.window_store: Optional[SlidingWindowStore] = None
        self.artifact_state: ArtifactState = {}
        self.alert_active = False
        self.mood_window = MoodWindow()
        self.last_valence = 0.0
        self.last_arousal = 0.0
        self.last_emotion: Optional[str] = None

        # Buffering
        self._buffer_samples: List[Sample] = []
        self._buffer_start: Optional[float] = None
        self._baseline_ready = False

        # Timers and indicator
        self._relax_timer = None
        self._advance_timer = None
        self._breath_timer = None
        self._breath_token = 0
        self.breathing_phase = 0.0
        self.manual_override: Optional[Color] = None

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    def emit(self, event: str, payload=None):
        if self.notifier is not None:
            self.notifier.emit(event, payload)

    def _set_phase(self, phase: str, force: bool = False):
        """Enter phase, or remember it if placement assist is in the way"""
        if phase not in SESSION_PHASES:
            raise SessionError(f"Unknown session phase {phase!r}")
        if self.phase == "placement-assist" and phase != "placement-assist" and not force:
            logging.info(f"Placement assist active, will resume in '{phase}'")
            self._interrupted_phase = phase
            return
        if phase != self.phase:
            logging.info(f"Session phase: {self.phase} -> {phase}")
        self.phase = phase
        self.emit("session-phase", phase)

    def _effective_phase(self) -> str:
        """Phase the pipeline is in, looking through placement assist"""
        if self.phase == "placement-assist":
            return self._interrupted_phase or "live"
        return self.phase

    def _start_timer(self, delay: float, callback):
        timer = self._timer_factory(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    def _cancel_timers(self):
        for name in ("_relax_timer", "_advance_timer"):
            timer = getattr(self, name)
            if timer is not None:
                timer.cancel()
                setattr(self, name, None)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def _subscribe(self, kind: str, subscribe_fn, handler):
        """Subscribe one feed, cancelling any previous subscription to it first"""
        self._unsubscribe(kind)
        token = self._tokens[kind]

        def dispatch(message: StreamMessage):
            with self._lock:
                if token != self._tokens[kind]:
                    return
                handler(message)

        self._subscriptions[kind] = subscribe_fn(dispatch)
        logging.debug(f"Subscribed {kind} feed")

    def _unsubscribe(self, kind: str):
        self._tokens[kind] += 1
        subscription = self._subscriptions.pop(kind, None)
        if subscription is not None:
            subscription.unsubscribe()
            logging.debug(f"Unsubscribed {kind} feed")

    def _unsubscribe_all(self):
        for kind in list(self._tokens):
            self._unsubscribe(kind)

    @property
    def active_subscriptions(self) -> List[str]:
        return sorted(self._subscriptions)

    # ------------------------------------------------------------------
    # Control commands
    # ------------------------------------------------------------------

    def select_device(self, idx: int) -> bool:
        """Connect to source idx and start the baseline sequence"""
        with self._lock:
            if not 0 <= idx < len(self.sources):
                raise SessionError(f"No device at index {idx} ({len(self.sources)} configured)")
            self.disconnect()
            source = self.sources[idx]
            logging.info(f"Connecting to device {idx}: {source.name}")
            if not source.connect():
                logging.error(f"Could not connect to {source.name}")
                self.emit("device-error", f"Could not connect to {source.name}")
                return False
            self.current_source = source
            self.current_device_idx = idx
            self.emit("device-connected", source.name)
            self.start_baseline()
            return True

    def start_baseline(self):
        """Subscribe side feeds and run relax -> placement"""
        with self._lock:
            if self.current_source is None:
                logging.warning("start_baseline: no device connected")
                self.emit("device-error", "No device connected")
                return
            self._cancel_timers()
            self._unsubscribe_all()
            self._subscribe("quality", self.current_source.subscribe_signal_quality,
                            self._on_quality_message)
            self._subscribe("accel", self.current_source.subscribe_accelerometer,
                            self._on_accel_message)
            self._set_phase("relax")
            self._relax_timer = self._start_timer(self.settings.relax_seconds,
                                                  self._on_relax_elapsed)

    def _on_relax_elapsed(self):
        with self._lock:
            self._relax_timer = None
            if self._effective_phase() == "relax":
                self._set_phase("placement")

    def placement_complete(self):
        """Finish placement assist, or start buffering after placement"""
        with self._lock:
            if self.phase == "placement-assist":
                resume = self._interrupted_phase or "live"
                self._interrupted_phase = None
                self._set_phase(resume, force=True)
            elif self.phase == "placement":
                self._begin_buffering()
            else:
                logging.warning(f"placement-complete ignored in phase '{self.phase}'")

    def start_placement_assist(self):
        with self._lock:
            if self.phase != "placement-assist":
                self._interrupted_phase = self.phase
                self._set_phase("placement-assist", force=True)

    def reset_session(self):
        """Re-run buffering and baseline on the current device"""
        with self._lock:
            if self.current_source is None:
                logging.warning("reset_session: no device connected")
                return
            self._cancel_timers()
            self._interrupted_phase = None
            self._begin_buffering(force=True)

    def full_restart(self):
        """Drop everything and reconnect the current device from scratch"""
        with self._lock:
            idx = self.current_device_idx
            self.clear_all_state()
            if idx is not None:
                self.select_device(idx)

    def disconnect(self):
        with self._lock:
            self._cancel_timers()
            self._unsubscribe_all()
            if self.current_source is not None:
                self.current_source.disconnect()
                logging.info(f"Disconnected from {self.current_source.name}")
            self.current_source = None
            self.clear_data_buffers()
            self._stop_breathing(turn_off=True)
            self._interrupted_phase = None
            if self.phase != "idle":
                self._set_phase("idle", force=True)

    def clear_data_buffers(self):
        """Return all rolling state to its initial empty form"""
        with self._lock:
            self.window_store = None
            self.artifact_state = {}
            self.alert_active = False
            self.mood_window = MoodWindow()
            self.last_valence = 0.0
            self.last_arousal = 0.0
            self.last_emotion = None
            self._buffer_samples = []
            self._buffer_start = None
            self._baseline_ready = False

    def clear_all_state(self):
        """Reset to idle: no subscriptions, no buffers, no override, UI reset"""
        with self._lock:
            self._cancel_timers()
            self._unsubscribe_all()
            self.clear_data_buffers()
            self.manual_override = None
            self._interrupted_phase = None
            self._stop_breathing(turn_off=True)
            self._set_phase("idle", force=True)
            self.emit("reset-ui")

    # ------------------------------------------------------------------
    # Indicator
    # ------------------------------------------------------------------

    @property
    def breathing(self) -> bool:
        return self._breath_timer is not None

    def _start_breathing(self):
        if self._breath_timer is not None:
            return
        if self.manual_override is not None or self.last_emotion is not None:
            return
        self._schedule_breath()

    def _schedule_breath(self):
        token = self._breath_token
        self._breath_timer = self._start_timer(self.settings.breathing_interval,
                                               lambda: self._on_breath_tick(token))

    def _on_breath_tick(self, token: int):
        with self._lock:
            if token != self._breath_token:
                return
            self.breathing_phase += self.settings.breathing_step
            self.indicator.set_color(*breathing_color(self.breathing_phase))
            self._schedule_breath()

    def _stop_breathing(self, turn_off: bool = False):
        self._breath_token += 1
        if self._breath_timer is not None:
            self._breath_timer.cancel()
            self._breath_timer = None
        if turn_off:
            self.indicator.off()

    def set_manual_override(self, color: Sequence[float]):
        """Pin the LED to color until cleared; mood colours are suppressed"""
        with self._lock:
            self.manual_override = clamp_color(*color)
            self._stop_breathing()
            self.indicator.set_color(*self.manual_override)
            logging.info(f"Manual LED override: {self.manual_override}")

    def clear_manual_override(self):
        with self._lock:
            self.manual_override = None
            logging.info("Manual LED override cleared")
            if self.last_emotion is not None:
                self.indicator.set_color(*EMOTION_COLORS[self.last_emotion])
            elif self.phase != "idle":
                self._start_breathing()
            else:
                self.indicator.off()

    # ------------------------------------------------------------------
    # Buffering
    # ------------------------------------------------------------------

    def _begin_buffering(self, force: bool = False):
        self._unsubscribe("band")
        self.clear_data_buffers()
        self._set_phase("buffering", force=force)
        self._start_breathing()
        self._buffer_start = self._clock()
        self._subscribe("band", self.current_source.subscribe_band_power,
                        self._on_buffer_message)

    @property
    def buffered_count(self) -> int:
        return len(self._buffer_samples)

    def _on_buffer_message(self, message: StreamMessage):
        if message.is_error:
            logging.error(f"Band-power stream failed during baseline: {message.error}")
            self.emit("device-error", str(message.error))
            self.clear_all_state()
            return
        if self._baseline_ready:
            return

        s = self.settings
        sample = message.value.with_all_bands(s.band_names, s.channel_count)
        self._buffer_samples.append(sample)

        target = s.window_size
        count = len(self._buffer_samples)
        self.emit("buffer-progress", min(count / target, 1.0))

        elapsed = self._clock() - self._buffer_start
        if count >= target and elapsed >= s.window_seconds:
            self._complete_buffering(elapsed)

    def _complete_buffering(self, elapsed: float):
        s = self.settings
        self._baseline_ready = True
        self._unsubscribe("band")

        self.window_store = SlidingWindowStore(s.band_names, s.channel_count, s.window_size)
        self.artifact_state = fresh_artifact_state(s.band_names, s.channel_count)
        self.window_store.backfill(self._buffer_samples)
        logging.info(f"Baseline collected: {len(self._buffer_samples)} samples in {elapsed:.1f}s")
        self._buffer_samples = []

        delay = max(0.0, s.min_buffer_seconds - elapsed)
        if delay > 0:
            self._advance_timer = self._start_timer(delay, self._on_advance_elapsed)
        else:
            self._enter_live()

    def _on_advance_elapsed(self):
        with self._lock:
            self._advance_timer = None
            if self._baseline_ready and self.window_store is not None:
                self._enter_live()

    # ------------------------------------------------------------------
    # Live
    # ------------------------------------------------------------------

    def _enter_live(self):
        self.emit("baseline-complete")
        self._set_phase("live")
        self._subscribe("band", self.current_source.subscribe_band_power,
                        self._on_live_message)

    def _on_live_message(self, message: StreamMessage):
        if message.is_error:
            logging.error(f"Band-power stream failed: {message.error}")
            self.emit("device-error", str(message.error))
            self._unsubscribe("band")
            return
        self.process_sample(message.value)

    def process_sample(self, raw: Sample) -> Dict[str, List[float]]:
        """
        Run one live sample through the whole pipeline

        Returns:
            Dict[str, List[float]]: normalized (or held) value per band/channel
        """
        with self._lock:
            if self.window_store is None:
                raise SessionError("Baseline not collected yet")
            s = self.settings
            sample = raw.with_all_bands(s.band_names, s.channel_count)

            self.window_store.push(sample)
            normalized, self.artifact_state = self.detector.classify_sample(
                sample, self.window_store, self.artifact_state)

            was_active = self.alert_active
            update = self.detector.evaluate_alert(self.artifact_state, self.alert_active)
            self.alert_active = update.active
            if update.raised:
                logging.warning(f"Artifact alert: {update.single_held} long-held, "
                                f"{update.multi_held} multi-held channels")
                self.emit("artifact-alert")
            elif was_active and not update.active:
                logging.info("Artifact alert cleared")

            self.emit("normalized-data", normalized)

            self.mood_window, reading = self.mood_estimator.update(self.mood_window, sample)
            if reading is not None:
                self._apply_mood(reading)
            return normalized

    def _apply_mood(self, reading: MoodReading):
        self.last_valence = reading.valence
        self.last_arousal = reading.arousal
        if reading.emotion != self.last_emotion and self.manual_override is None:
            logging.info(f"Emotion: {self.last_emotion} -> {reading.emotion}")
            self.last_emotion = reading.emotion
            self._stop_breathing()
            self.indicator.set_color(*EMOTION_COLORS[reading.emotion])
        self.emit("mood", reading.to_payload())

    # ------------------------------------------------------------------
    # Side feeds
    # ------------------------------------------------------------------

    def _on_side_error(self, feed: str, error: BaseException):
        if isinstance(error, StreamUnavailable):
            logging.info(f"{feed} feed unavailable: {error}")
        else:
            logging.error(f"{feed} feed failed: {error}")
            self.emit("device-error", str(error))

    def _on_quality_message(self, message: StreamMessage):
        if message.is_error:
            self._on_side_error("Signal quality", message.error)
        else:
            self.emit("signal-quality", message.value)

    def _on_accel_message(self, message: StreamMessage):
        if message.is_error:
            self._on_side_error("Accelerometer", message.error)
        else:
            self.emit("accelerometer-data", message.value)
