"""
Cancelable ordered message streams

Every feed from a source (band power, signal quality, accelerometer) is
delivered through a Subscription: one producer thread writes into a
MessageChannel and one pump thread hands the messages, in order, to a single
handler. Errors travel down the same channel as a terminal message.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

_CLOSED = object()


@dataclass(frozen=True)
class StreamMessage:
    """A value from a stream, or the terminal error that ended it"""
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class MessageChannel:
    """Single-producer, single-consumer FIFO of StreamMessages"""

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, value: Any) -> bool:
        if self.closed:
            return False
        self._queue.put(StreamMessage(value=value))
        return True

    def fail(self, error: BaseException) -> bool:
        """Send the terminal error and close the channel"""
        if self.closed:
            return False
        self._queue.put(StreamMessage(error=error))
        self.close()
        return True

    def close(self) -> None:
        if not self._closed.is_set():
            self._closed.set()
            self._queue.put(_CLOSED)

    def receive(self, timeout: Optional[float] = None) -> Optional[StreamMessage]:
        """
        Next message, or None when the channel is closed or the wait timed out
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            return None
        return item


Producer = Callable[[MessageChannel, threading.Event], None]
Handler = Callable[[StreamMessage], None]


class Subscription:
    """
    A running producer/consumer pair for one stream

    unsubscribe() is idempotent and may be called from inside the handler.
    If the handler raises, the exception is passed back to it once as the
    terminal error and the stream ends.
    It waits for the producer to stop; a handler call already in progress on
    the pump thread is allowed to finish.
    """

    def __init__(self, name: str, producer: Producer, handler: Handler):
        self.name = name
        self._producer = producer
        self._handler = handler
        self._channel = MessageChannel()
        self._stop_event = threading.Event()
        self._producer_thread = threading.Thread(target=self._run_producer,
                                                 name=f"{name}-producer", daemon=True)
        self._pump_thread = threading.Thread(target=self._run_pump,
                                             name=f"{name}-pump", daemon=True)

    @property
    def active(self) -> bool:
        return not self._stop_event.is_set()

    def start(self) -> "Subscription":
        self._producer_thread.start()
        self._pump_thread.start()
        logging.debug(f"Subscribed to {self.name}")
        return self

    def _run_producer(self):
        try:
            self._producer(self._channel, self._stop_event)
        except Exception as e:
            logging.error(f"{self.name} stream failed: {e}")
            self._channel.fail(e)
        finally:
            self._channel.close()

    def _run_pump(self):
        while not self._stop_event.is_set():
            message = self._channel.receive(timeout=0.5)
            if message is None:
                if self._channel.closed:
                    break
                continue
            if self._stop_event.is_set():
                break
            try:
                self._handler(message)
            except Exception as e:
                logging.error(f"{self.name} handler failed: {e}")
                if not message.is_error:
                    self._deliver_failure(e)
                break
            if message.is_error:
                break
        self._stop_event.set()
        self._channel.close()

    def _deliver_failure(self, error: Exception):
        """Hand the handler its own failure as the terminal message"""
        try:
            self._handler(StreamMessage(error=error))
        except Exception as e:
            logging.error(f"{self.name} handler failed on terminal error: {e}")

    def unsubscribe(self) -> None:
        if self._stop_event.is_set() and self._channel.closed:
            return
        self._stop_event.set()
        self._channel.close()
        if self._producer_thread.is_alive() and self._producer_thread is not threading.current_thread():
            self._producer_thread.join(timeout=2.0)
        logging.debug(f"Unsubscribed from {self.name}")
