# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle Event Bus — in-process pub/sub for notifications.

The store, journal and feedback composer never call the presentation layer.
They emit events; whoever renders Mogle (CLI, desktop shell) subscribes:

    from mogle.events import bus, Events

    bus.on(Events.STORAGE_DEGRADED, lambda e: toast(e.data["error"]))
    bus.emit(Events.GOAL_UPDATED, {"id": "g1", "progress": 40})

Handlers run inline on the emitting thread. A failing handler is logged and
never breaks the emitter. Nested emits are capped at depth 3.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("mogle.events")

_MAX_EMIT_DEPTH = 3


class Events:
    """Registry of all event types. Use these constants, not raw strings."""

    # --- Journal ---
    ENTRY_ADDED = "entry_added"
    ENTRY_DELETED = "entry_deleted"
    GOAL_ADDED = "goal_added"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"

    # --- Storage ---
    DATA_SAVED = "data_saved"
    DATA_RECOVERED = "data_recovered"
    STORAGE_DEGRADED = "storage_degraded"
    DATA_EXPORTED = "data_exported"
    DATA_WIPED = "data_wiped"

    # --- Feedback & model bridge ---
    FEEDBACK_GENERATED = "feedback_generated"
    BRIDGE_UNAVAILABLE = "bridge_unavailable"


@dataclass
class Event:
    """A single emitted event."""
    type: str
    data: Dict[str, Any]
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    source: Optional[str] = None


@dataclass
class Subscriber:
    callback: Callable[[Event], None]
    priority: int = 0  # higher = called first
    once: bool = False


class EventBus:
    """Priority-ordered synchronous dispatch with a bounded history."""

    def __init__(self, history_size: int = 100):
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._history: List[Event] = []
        self._history_size = history_size
        self._lock = threading.Lock()
        self._local = threading.local()

    def on(self, event_type: str, callback: Callable[[Event], None], priority: int = 0) -> None:
        """Subscribe to an event type. Higher priority is called first."""
        self._add(event_type, Subscriber(callback=callback, priority=priority))

    def once(self, event_type: str, callback: Callable[[Event], None], priority: int = 0) -> None:
        """Subscribe to an event, auto-remove after first call."""
        self._add(event_type, Subscriber(callback=callback, priority=priority, once=True))

    def _add(self, event_type: str, sub: Subscriber) -> None:
        with self._lock:
            subs = self._subscribers.setdefault(event_type, [])
            subs.append(sub)
            subs.sort(key=lambda s: -s.priority)

    def off(self, event_type: str, callback: Callable) -> bool:
        """Unsubscribe a callback. Returns True if found and removed."""
        with self._lock:
            subs = self._subscribers.get(event_type, [])
            kept = [s for s in subs if s.callback is not callback]
            self._subscribers[event_type] = kept
            return len(kept) < len(subs)

    def emit(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ) -> Event:
        """Dispatch an event to its subscribers and return it."""
        event = Event(type=event_type, data=data or {}, source=source)

        depth = getattr(self._local, "depth", 0)
        if depth >= _MAX_EMIT_DEPTH:
            logger.warning("Event recursion depth exceeded for %s, skipping", event_type)
            return event

        with self._lock:
            self._history.append(event)
            if len(self._history) > self._history_size:
                self._history = self._history[-self._history_size:]
            subs = list(self._subscribers.get(event_type, []))

        self._local.depth = depth + 1
        try:
            fired = []
            for sub in subs:
                try:
                    sub.callback(event)
                except Exception as e:
                    logger.error("Event handler error: %s -> %s: %s",
                                 event_type, getattr(sub.callback, "__name__", "?"), e)
                if sub.once:
                    fired.append(sub)
            if fired:
                with self._lock:
                    self._subscribers[event_type] = [
                        s for s in self._subscribers.get(event_type, [])
                        if all(s is not f for f in fired)
                    ]
        finally:
            self._local.depth = depth
        return event

    def history(self, event_type: Optional[str] = None, limit: int = 20) -> List[Event]:
        """Recent events, oldest first."""
        with self._lock:
            events = self._history
            if event_type:
                events = [e for e in events if e.type == event_type]
            return list(events[-limit:])

    def reset(self) -> None:
        """Clear all subscribers and history. For testing."""
        with self._lock:
            self._subscribers.clear()
            self._history.clear()


# ============================================================================
# SINGLETON: the global event bus
# ============================================================================

bus = EventBus()
