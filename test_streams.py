"""
Tests for message channels and subscriptions
"""

import threading

from affect_bridge.acquisition.streams import MessageChannel, StreamMessage, Subscription

WAIT = 2.0


def test_channel_delivers_in_order_then_closes():
    channel = MessageChannel()
    for i in range(3):
        assert channel.send(i)
    channel.close()

    assert [channel.receive(0.1).value for _ in range(3)] == [0, 1, 2]
    assert channel.receive(0.1) is None
    assert channel.send(3) is False


def test_channel_error_is_terminal():
    channel = MessageChannel()
    channel.send("a")
    error = RuntimeError("gone")
    assert channel.fail(error)

    assert channel.receive(0.1) == StreamMessage(value="a")
    message = channel.receive(0.1)
    assert message.is_error and message.error is error
    assert channel.receive(0.1) is None
    assert channel.fail(RuntimeError("again")) is False


def test_receive_times_out_on_empty_channel():
    assert MessageChannel().receive(timeout=0.01) is None


def test_subscription_hands_every_value_to_handler():
    received = []
    done = threading.Event()

    def producer(channel, stop_event):
        for i in range(5):
            channel.send(i)

    def handler(message):
        received.append(message.value)
        if len(received) == 5:
            done.set()

    sub = Subscription("numbers", producer, handler).start()
    assert done.wait(WAIT)
    assert received == [0, 1, 2, 3, 4]
    sub.unsubscribe()


def test_producer_exception_becomes_final_message():
    received = []
    done = threading.Event()

    def producer(channel, stop_event):
        channel.send("first")
        raise ValueError("device unplugged")

    def handler(message):
        received.append(message)
        if message.is_error:
            done.set()

    sub = Subscription("failing", producer, handler).start()
    assert done.wait(WAIT)
    assert [m.value for m in received[:-1]] == ["first"]
    assert isinstance(received[-1].error, ValueError)
    sub.unsubscribe()
    assert not sub.active


def test_unsubscribe_stops_producer_and_is_idempotent():
    started = threading.Event()
    stopped = threading.Event()

    def producer(channel, stop_event):
        started.set()
        while not stop_event.is_set():
            channel.send("tick")
            stop_event.wait(0.01)
        stopped.set()

    sub = Subscription("ticker", producer, lambda message: None).start()
    assert started.wait(WAIT)
    assert sub.active

    sub.unsubscribe()
    sub.unsubscribe()
    assert stopped.wait(WAIT)
    assert not sub.active


def test_unsubscribe_from_inside_handler():
    received = []
    handled = threading.Event()
    holder = {}

    def producer(channel, stop_event):
        while not stop_event.is_set():
            channel.send(len(received))
            stop_event.wait(0.01)

    def handler(message):
        received.append(message.value)
        holder["sub"].unsubscribe()
        handled.set()

    holder["sub"] = Subscription("self-cancel", producer, handler)
    holder["sub"].start()
    assert handled.wait(WAIT)
    assert not holder["sub"].active
    assert len(received) == 1


def test_handler_exception_ends_stream_with_error():
    received = []
    done = threading.Event()
    stopped = threading.Event()

    def producer(channel, stop_event):
        while not stop_event.is_set():
            channel.send("sample")
            stop_event.wait(0.01)
        stopped.set()

    def handler(message):
        received.append(message)
        if message.is_error:
            done.set()
            return
        raise IndexError("list index out of range")

    sub = Subscription("broken-handler", producer, handler).start()
    assert done.wait(WAIT)
    assert stopped.wait(WAIT)
    assert not sub.active
    assert [m.value for m in received[:-1]] == ["sample"]
    assert isinstance(received[-1].error, IndexError)
    sub.unsubscribe()


def test_handler_failing_on_terminal_error_still_stops():
    calls = []
    stopped = threading.Event()

    def producer(channel, stop_event):
        while not stop_event.is_set():
            channel.send(1)
            stop_event.wait(0.01)
        stopped.set()

    def handler(message):
        calls.append(message)
        raise RuntimeError("always fails")

    sub = Subscription("always-failing", producer, handler).start()
    assert stopped.wait(WAIT)
    assert not sub.active
    assert len(calls) == 2
    assert calls[-1].is_error
