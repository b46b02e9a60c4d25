# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Event bus tests — dispatch, priority, once/off, history, recursion."""

import threading

import pytest

from mogle.events import Event, EventBus, Events


@pytest.fixture
def bus():
    return EventBus(history_size=50)


class TestBasicDispatch:

    def test_emit_calls_subscriber(self, bus):
        received = []
        bus.on(Events.DATA_SAVED, lambda e: received.append(e.data))
        bus.emit(Events.DATA_SAVED, {"count": 3})
        assert received == [{"count": 3}]

    def test_emit_returns_event(self, bus):
        event = bus.emit(Events.GOAL_UPDATED, {"id": "g1"}, source="journal")
        assert isinstance(event, Event)
        assert event.type == "goal_updated"
        assert event.source == "journal"

    def test_no_subscribers_no_crash(self, bus):
        assert bus.emit("nobody_listening").data == {}


class TestPriority:

    def test_higher_priority_first(self, bus):
        order = []
        bus.on("test", lambda e: order.append("low"), priority=0)
        bus.on("test", lambda e: order.append("high"), priority=10)
        bus.emit("test")
        assert order == ["high", "low"]

    def test_equal_priority_preserves_order(self, bus):
        order = []
        bus.on("test", lambda e: order.append("first"), priority=5)
        bus.on("test", lambda e: order.append("second"), priority=5)
        bus.emit("test")
        assert order == ["first", "second"]


class TestOnceAndOff:

    def test_once_fires_once(self, bus):
        count = []
        bus.once("test", lambda e: count.append(1))
        bus.emit("test")
        bus.emit("test")
        assert count == [1]

    def test_once_keeps_regular_subscribers(self, bus):
        seen = []
        bus.on("test", lambda e: seen.append("always"))
        bus.once("test", lambda e: seen.append("once"))
        bus.emit("test")
        bus.emit("test")
        assert seen == ["always", "once", "always"]

    def test_off(self, bus):
        def handler(e):
            pass
        bus.on("test", handler)
        assert bus.off("test", handler) is True
        assert bus.off("test", handler) is False


class TestHistory:

    def test_history_filters_by_type(self, bus):
        bus.emit("a", {"x": 1})
        bus.emit("b", {"x": 2})
        assert [e.type for e in bus.history()] == ["a", "b"]
        assert [e.data["x"] for e in bus.history("b")] == [2]

    def test_history_caps_at_size(self):
        small = EventBus(history_size=3)
        for i in range(10):
            small.emit("test", {"i": i})
        assert [e.data["i"] for e in small.history()] == [7, 8, 9]

    def test_reset(self, bus):
        bus.on("test", lambda e: None)
        bus.emit("test")
        bus.reset()
        assert bus.history() == []
        assert bus.off("test", lambda e: None) is False


class TestErrorHandling:

    def test_bad_handler_doesnt_stop_others(self, bus):
        results = []

        def bad(e):
            raise RuntimeError("boom")

        bus.on("test", bad, priority=10)
        bus.on("test", lambda e: results.append("ok"))
        bus.emit("test")
        assert results == ["ok"]

    def test_recursion_is_capped(self, bus):
        depth = []

        def again(e):
            depth.append(1)
            bus.emit("loop")

        bus.on("loop", again)
        bus.emit("loop")
        assert len(depth) == 3


class TestThreadSafety:

    def test_concurrent_emits(self, bus):
        count = {"n": 0}
        lock = threading.Lock()

        def handler(e):
            with lock:
                count["n"] += 1

        bus.on("test", handler)
        threads = [threading.Thread(target=bus.emit, args=("test",)) for _ in range(100)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert count["n"] == 100
