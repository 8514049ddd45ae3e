"""
Hysteresis-locked interaction mode state machine.

Per-frame finger classifications are noisy; a single misread frame must not
flip the scene from zooming to spinning. The arbiter derives a candidate mode
each frame and only commits a switch once the same candidate has been seen on
enough consecutive frames.
"""

import logging
from typing import Sequence, Tuple

from core.types import GestureMode
from modules.detection.landmark_extractor import LandmarkClassifier

logger = logging.getLogger(__name__)

DEFAULT_LOCK_THRESHOLD = 4

# Finger vector positions
_THUMB, _INDEX, _MIDDLE, _RING, _PINKY = range(5)


def candidate_mode(fingers: Sequence[bool]) -> GestureMode:
    """Raw, unconfirmed mode for one frame's extended-finger vector."""
    if len(fingers) != 5:
        return GestureMode.IDLE

    extended_count = LandmarkClassifier.extended_count(fingers)
    index = fingers[_INDEX]
    middle = fingers[_MIDDLE]
    ring = fingers[_RING]
    pinky = fingers[_PINKY]

    # Open palm or fist (one finger of slack for an ambiguous thumb)
    if extended_count == 5 or extended_count <= 1:
        return GestureMode.SCALE
    # V sign
    if index and middle and not ring and not pinky:
        return GestureMode.ROTATE_Z
    # Pointing
    if index and not middle and not ring and not pinky:
        return GestureMode.ROTATE_XY
    return GestureMode.IDLE


class ModeArbiter:
    """Commits a mode switch only after a stable run of identical candidates.

    Lock rule: a candidate that differs from the confirmed mode becomes
    ``pending`` with a zero counter. Each further frame with the same
    candidate increments the counter; once it exceeds ``lock_threshold`` the
    switch is committed. Any interruption restarts the window.
    """

    def __init__(self, config: dict = None):
        config = config or {}
        self._lock_threshold = int(config.get("lock_threshold", DEFAULT_LOCK_THRESHOLD))
        self._idle_on_hand_loss = bool(config.get("idle_on_hand_loss", False))

        self._confirmed = GestureMode.IDLE
        self._pending = GestureMode.IDLE
        self._pending_frames = 0

    def update(self, fingers: Sequence[bool]) -> Tuple[GestureMode, bool]:
        """Feed one frame's finger vector.

        Returns:
            (confirmed mode, True if this frame committed a switch)
        """
        candidate = candidate_mode(fingers)

        if candidate == self._confirmed:
            self._pending_frames = 0
            self._pending = candidate
            return self._confirmed, False

        if candidate != self._pending:
            self._pending = candidate
            self._pending_frames = 0
            return self._confirmed, False

        self._pending_frames += 1
        if self._pending_frames > self._lock_threshold:
            previous = self._confirmed
            self._confirmed = candidate
            self._pending_frames = 0
            logger.debug("Mode committed: %s -> %s", previous.value, candidate.value)
            return self._confirmed, True

        return self._confirmed, False

    def hand_lost(self) -> bool:
        """Handle a frame without a hand.

        Clears the lock window. The confirmed mode persists through detection
        gaps unless ``idle_on_hand_loss`` is set.

        Returns:
            True if the confirmed mode was demoted to IDLE
        """
        self._pending_frames = 0
        if self._idle_on_hand_loss and self._confirmed is not GestureMode.IDLE:
            logger.debug("Hand lost, demoting %s to IDLE", self._confirmed.value)
            self._confirmed = GestureMode.IDLE
            self._pending = GestureMode.IDLE
            return True
        return False

    def reset(self):
        self._confirmed = GestureMode.IDLE
        self._pending = GestureMode.IDLE
        self._pending_frames = 0

    @property
    def mode(self) -> GestureMode:
        return self._confirmed

    @property
    def pending(self) -> GestureMode:
        return self._pending

    @property
    def pending_frames(self) -> int:
        return self._pending_frames

    @property
    def lock_threshold(self) -> int:
        return self._lock_threshold
