"""
Publish/subscribe event bus for discrete interaction events.

The continuous signal (rotation, scale, cursor) travels through published
snapshots. Discrete happenings such as a confirmed mode switch, a colour
burst or an opened gift are announced here so logging and overlays can react
without polling.

Usage:
    bus = EventBus()
    bus.subscribe(Events.MODE_CHANGED, on_mode_changed)
    bus.emit(Events.MODE_CHANGED, previous="IDLE", current="SCALE")
"""

import time
import logging
import threading
from collections import defaultdict, deque
from typing import Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Thread-safe publish/subscribe bus shared by both loops.

    Handlers run synchronously on the emitting thread, highest priority
    first. A failing handler is logged and skipped so it can never stall the
    gesture-update loop.
    """

    _instance = None

    def __new__(cls):
        """Singleton: the gesture side and the render side share one bus."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._listeners = defaultdict(list)  # event_name -> [(priority, callback)]
        self._lock = threading.Lock()
        self._history = deque(maxlen=200)
        self._enabled = True
        self._initialized = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register a listener.

        Args:
            event_name: One of the Events constants
            callback: Called with the keyword arguments given to emit()
            priority: Higher priority callbacks run first (default 0)
        """
        with self._lock:
            listeners = self._listeners[event_name]
            listeners.append((priority, callback))
            listeners.sort(key=lambda entry: -entry[0])
        logger.debug("Subscribed %s to '%s' (priority=%d)",
                     getattr(callback, "__name__", repr(callback)), event_name, priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        """Remove a listener if it is registered."""
        with self._lock:
            self._listeners[event_name] = [
                (p, cb) for p, cb in self._listeners[event_name] if cb is not callback
            ]

    def emit(self, event_name: str, **kwargs) -> int:
        """Dispatch an event to every listener.

        Returns:
            Number of listeners that handled the event without raising.
        """
        if not self._enabled:
            return 0

        with self._lock:
            listeners = list(self._listeners.get(event_name, ()))
            self._history.append((time.time(), event_name, dict(kwargs)))

        handled = 0
        for _, callback in listeners:
            try:
                callback(**kwargs)
                handled += 1
            except Exception as e:
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, getattr(callback, "__name__", callback), e)
        return handled

    def set_enabled(self, enabled: bool):
        self._enabled = enabled

    def get_history(self, last_n: int = 10, event_name: str = None) -> list:
        """Recent (timestamp, event_name, data) tuples, oldest first."""
        with self._lock:
            entries = list(self._history)
        if event_name is not None:
            entries = [e for e in entries if e[1] == event_name]
        return entries[-last_n:]

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(cbs) for cbs in self._listeners.values())

    def reset(self):
        """Drop all listeners and history (for testing)."""
        with self._lock:
            self._listeners.clear()
            self._history.clear()
        self._enabled = True


# =============================================================================
# Event Names
# =============================================================================

class Events:
    """Event names emitted by the gesture and animation sides."""

    # Gesture side
    HAND_DETECTED = "hand_detected"
    HAND_LOST = "hand_lost"
    MODE_CHANGED = "mode_changed"
    COLOR_BURST = "color_burst"
    PROVIDER_FAILED = "provider_failed"

    # Animation side
    OBJECT_OPENED = "object_opened"

    # Lifecycle
    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
