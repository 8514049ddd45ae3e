"""
Logging setup and an interaction event log.
"""

import os
import time
import logging
import logging.handlers
from collections import deque

from core.events import EventBus, Events


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-32s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class InteractionLogger:
    """Logs discrete interaction events and keeps an in-session history.

    History lives only as long as the process; nothing is persisted.
    """

    def __init__(self, event_bus: EventBus = None, max_history: int = 500):
        self.logger = logging.getLogger("interaction_events")
        self._history = deque(maxlen=max_history)
        self._bus = event_bus or EventBus()

    def attach(self):
        """Subscribe to the bus (lowest priority so it sees final values)."""
        self._bus.subscribe(Events.MODE_CHANGED, self.log_mode_change, priority=-10)
        self._bus.subscribe(Events.COLOR_BURST, self.log_burst, priority=-10)
        self._bus.subscribe(Events.OBJECT_OPENED, self.log_object_opened, priority=-10)
        self._bus.subscribe(Events.HAND_DETECTED, self.log_hand, priority=-10)
        self._bus.subscribe(Events.HAND_LOST, self.log_hand_lost, priority=-10)
        return self

    def detach(self):
        self._bus.unsubscribe(Events.MODE_CHANGED, self.log_mode_change)
        self._bus.unsubscribe(Events.COLOR_BURST, self.log_burst)
        self._bus.unsubscribe(Events.OBJECT_OPENED, self.log_object_opened)
        self._bus.unsubscribe(Events.HAND_DETECTED, self.log_hand)
        self._bus.unsubscribe(Events.HAND_LOST, self.log_hand_lost)

    def _record(self, kind: str, **data):
        self._history.append({"timestamp": time.time(), "event": kind, **data})

    def log_mode_change(self, previous="", current="", **_):
        self._record("mode", previous=previous, current=current)
        self.logger.info("Mode: %-9s -> %s", previous, current)

    def log_burst(self, count=0, **_):
        self._record("burst", count=count)
        self.logger.info("Colour burst #%d", count)

    def log_object_opened(self, object_id=-1, remaining=0, **_):
        self._record("opened", object_id=object_id, remaining=remaining)
        self.logger.info("Opened object %d (%d left)", object_id, remaining)

    def log_hand(self, mode="", **_):
        self._record("hand", present=True)
        self.logger.debug("Hand detected (mode %s)", mode)

    def log_hand_lost(self, mode="", **_):
        self._record("hand", present=False)
        self.logger.debug("Hand lost (mode %s)", mode)

    def get_history(self, last_n=None, kind=None):
        entries = list(self._history) if kind is None else [e for e in self._history if e["event"] == kind]
        if last_n:
            return entries[-last_n:]
        return entries

    def count(self, kind: str) -> int:
        return sum(1 for e in self._history if e["event"] == kind)
