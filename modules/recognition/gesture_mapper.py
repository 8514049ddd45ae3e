"""
Per-mode mapping from keypoint motion to interaction transforms.

Runs once per gesture tick for the confirmed mode and returns the next
InteractionState. Frame-to-frame references (previous fingertip, previous
inter-finger angle) live in a MotionTrackers struct owned by the engine.
"""

import math
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from core.types import GestureMode, InteractionState, Rotation, Cursor
from modules.detection.landmark_extractor import (
    LandmarkClassifier, index_tip, middle_tip, palm_center,
)
from modules.recognition.scene_behaviors import SceneBehavior, NebulaBehavior

logger = logging.getLogger(__name__)

ROTATION_SPEED = 3.5
CURSOR_SENSITIVITY = 1.5
FIST_MAX_FINGERS = 1


@dataclass
class MotionTrackers:
    """Mutable per-mode references, private to the gesture-update loop."""
    previous_tip: Optional[Tuple[float, float]] = None
    previous_angle: Optional[float] = None

    def reset(self):
        self.previous_tip = None
        self.previous_angle = None

    @property
    def is_clear(self) -> bool:
        return self.previous_tip is None and self.previous_angle is None


def shortest_angle_delta(previous: float, current: float) -> float:
    """Angular change from previous to current along the shortest path."""
    delta = current - previous
    if delta > math.pi:
        delta -= 2 * math.pi
    if delta < -math.pi:
        delta += 2 * math.pi
    return delta


def cursor_from_palm(palm: Tuple[float, float],
                     sensitivity: float = CURSOR_SENSITIVITY) -> Tuple[float, float]:
    """Map an image-space palm point in [0, 1]^2 to a mirrored device cursor."""
    return (
        -(palm[0] - 0.5) * 2 * sensitivity,
        -(palm[1] - 0.5) * 2 * sensitivity,
    )


class GestureMapper:
    """Converts keypoint deltas into rotation, scale, cursor and burst events."""

    def __init__(self, config: dict = None, behavior: SceneBehavior = None):
        config = config or {}
        self._rotation_speed = float(config.get("rotation_speed", ROTATION_SPEED))
        self._cursor_sensitivity = float(config.get("cursor_sensitivity", CURSOR_SENSITIVITY))
        self._fist_max_fingers = int(config.get("fist_max_fingers", FIST_MAX_FINGERS))
        self._behavior = behavior or NebulaBehavior(config)

    @property
    def behavior(self) -> SceneBehavior:
        return self._behavior

    def apply(self, state: InteractionState, fingers: Sequence[bool],
              points: np.ndarray, trackers: MotionTrackers) -> InteractionState:
        """Advance the snapshot for one tick of the confirmed mode."""
        if state.mode is GestureMode.SCALE:
            return self._apply_scale(state, fingers, points)
        if state.mode is GestureMode.ROTATE_XY:
            return self._apply_rotate_xy(state, points, trackers)
        if state.mode is GestureMode.ROTATE_Z:
            return self._apply_rotate_z(state, points, trackers)
        return state

    # =========================================================================
    # SCALE
    # =========================================================================

    def _apply_scale(self, state: InteractionState, fingers: Sequence[bool],
                     points: np.ndarray) -> InteractionState:
        extended_count = LandmarkClassifier.extended_count(fingers)
        is_fist = extended_count <= self._fist_max_fingers

        burst = state.color_burst_trigger
        if state.is_fist and not is_fist:
            burst += 1

        scale = self._behavior.update_scale(state.scale, is_fist)

        raw = cursor_from_palm(palm_center(points), self._cursor_sensitivity)
        cursor = self._behavior.update_cursor(state.cursor, raw)

        return state.evolve(
            is_fist=is_fist,
            color_burst_trigger=burst,
            scale=scale,
            cursor=Cursor(*cursor),
        )

    # =========================================================================
    # ROTATE_XY
    # =========================================================================

    def _apply_rotate_xy(self, state: InteractionState, points: np.ndarray,
                         trackers: MotionTrackers) -> InteractionState:
        tip = index_tip(points)
        rotation = state.rotation

        if trackers.previous_tip is not None:
            dx = tip[0] - trackers.previous_tip[0]
            dy = tip[1] - trackers.previous_tip[1]
            # drag right yaws right, drag down pitches down
            rotation = Rotation(
                rotation.x + dy * self._rotation_speed,
                rotation.y + dx * self._rotation_speed,
                rotation.z,
            )
        trackers.previous_tip = tip

        if rotation is state.rotation:
            return state
        return state.evolve(rotation=rotation)

    # =========================================================================
    # ROTATE_Z
    # =========================================================================

    def _apply_rotate_z(self, state: InteractionState, points: np.ndarray,
                        trackers: MotionTrackers) -> InteractionState:
        first = index_tip(points)
        second = middle_tip(points)
        dx = second[0] - first[0]
        dy = second[1] - first[1]
        if dx == 0.0 and dy == 0.0:
            logger.debug("Coincident fingertips, skipping z rotation this tick")
            return state

        angle = math.atan2(dy, dx)
        rotation = state.rotation

        if trackers.previous_angle is not None:
            delta = shortest_angle_delta(trackers.previous_angle, angle)
            z = self._behavior.update_z_rotation(rotation.z, delta)
            if math.isfinite(z):
                rotation = Rotation(rotation.x, rotation.y, z)
        trackers.previous_angle = angle

        if rotation is state.rotation:
            return state
        return state.evolve(rotation=rotation)
