"""
Atomic hand-off of interaction snapshots between the two loops.

The gesture-update loop is the only writer; the render loop only reads.
Publishing rebinds a single attribute, which is atomic for readers, so a
consumer always sees either the previous or the next complete snapshot.
"""

import logging
from typing import Optional

from core.types import InteractionState

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Holds the latest published InteractionState."""

    def __init__(self, initial: Optional[InteractionState] = None):
        self._published = (0, initial or InteractionState())

    def publish(self, state: InteractionState) -> int:
        """Replace the current snapshot. Returns the new version number."""
        if not isinstance(state, InteractionState):
            raise TypeError(f"expected InteractionState, got {type(state).__name__}")
        version = self._published[0] + 1
        # version and snapshot travel together in one tuple rebind
        self._published = (version, state)
        return version

    def latest(self) -> InteractionState:
        return self._published[1]

    def read(self) -> tuple:
        """(version, snapshot) pair, read atomically."""
        return self._published

    @property
    def version(self) -> int:
        return self._published[0]
