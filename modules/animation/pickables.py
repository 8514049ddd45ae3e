"""
Pickable decorative objects (gifts on the tree) driven by the palm cursor.

While in SCALE mode the palm cursor is unprojected onto a fixed depth plane
and hit-tested against every unopened object. Closing the hand over a hovered
object opens it for good.

Tie-break: when several objects are inside the hit radius, the nearest one
is hovered; equal distances go to the lowest id.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from core.events import EventBus, Events
from core.types import GestureMode, InteractionState
from modules.animation.particle_field import hex_to_rgb
from modules.animation.transforms import ViewCamera, euler_to_matrix

logger = logging.getLogger(__name__)

DEFAULT_HIT_RADIUS = 1.2


@dataclass
class PickableObject:
    """One hit-testable object. ``opened`` only ever goes False -> True."""
    id: int
    base_position: np.ndarray
    color: np.ndarray
    opened: bool = False
    hovered: bool = False

    def open(self) -> bool:
        if self.opened:
            return False
        self.opened = True
        return True


class PickableObjectSet:
    """Fixed set of objects placed once, rotated with the particle field."""

    def __init__(self, config: dict = None, rng: np.random.Generator = None,
                 camera: ViewCamera = None, event_bus: EventBus = None):
        config = config or {}
        self._rng = rng if rng is not None else np.random.default_rng(config.get("seed"))
        self._hit_radius = float(config.get("hit_radius", DEFAULT_HIT_RADIUS))
        self._cursor_depth = float(config.get("cursor_depth", 0.0))
        self._camera = camera or ViewCamera()
        self._bus = event_bus or EventBus()

        count = int(config.get("count", 12))
        if count < 0:
            raise ValueError(f"Object count must be non-negative, got {count}")
        palette = [hex_to_rgb(c) for c in config.get(
            "colors", ["#ff0055", "#facc15", "#00f2ff", "#22c55e"])]

        positions = config.get("positions")
        if positions is None:
            positions = self._place_on_cone(
                count,
                float(config.get("height", 8.0)),
                float(config.get("base_radius", 3.5)),
            )
        self.objects: List[PickableObject] = [
            PickableObject(
                id=i,
                base_position=np.asarray(pos, dtype=np.float64),
                color=palette[int(self._rng.integers(len(palette)))],
            )
            for i, pos in enumerate(positions)
        ]
        self._hovered: Optional[PickableObject] = None
        self._last_cursor = np.zeros(3)
        logger.info("Placed %d pickable objects (hit radius %.2f)",
                    len(self.objects), self._hit_radius)

    def _place_on_cone(self, count: int, height: float, base_radius: float) -> np.ndarray:
        """Random spots on the cone's outer surface, kept off the very tip.

        Depth stays within reach of the cursor plane so every object can be
        hovered without first rotating the field.
        """
        t = self._rng.uniform(0.05, 0.8, count)
        ring = base_radius * (1.0 - t)
        reach = 0.9 * self._hit_radius
        low = np.maximum(-ring, self._cursor_depth - reach)
        high = np.maximum(low, np.minimum(ring, self._cursor_depth + reach))
        z = np.clip(self._rng.uniform(low, high), -ring, ring)
        side = np.where(self._rng.random(count) < 0.5, -1.0, 1.0)
        x = side * np.sqrt(np.maximum(ring ** 2 - z ** 2, 0.0))
        return np.column_stack([x, -height / 2.0 + t * height, z])

    # =========================================================================
    # Per-tick Update
    # =========================================================================

    def update(self, state: InteractionState, orientation) -> Optional[PickableObject]:
        """Recompute hover and apply the open transition for one tick.

        Args:
            state: Latest interaction snapshot
            orientation: Field orientation (x, y, z) the objects ride on

        Returns:
            The hovered object, if any
        """
        for obj in self.objects:
            obj.hovered = False
        self._hovered = None

        if state.mode is not GestureMode.SCALE:
            return None

        cursor = self.cursor_position(state)
        hovered = self.hit_test(cursor, orientation)
        if hovered is None:
            return None

        hovered.hovered = True
        self._hovered = hovered

        if state.is_fist and hovered.open():
            logger.info("Object %d opened", hovered.id)
            self._bus.emit(Events.OBJECT_OPENED, object_id=hovered.id,
                           remaining=self.remaining)
        return hovered

    def cursor_position(self, state: InteractionState) -> np.ndarray:
        """Virtual 3D cursor on the fixed depth plane."""
        self._last_cursor = self._camera.unproject(state.cursor, self._cursor_depth)
        return self._last_cursor

    def hit_test(self, cursor: np.ndarray, orientation) -> Optional[PickableObject]:
        """Nearest unopened object strictly within the hit radius."""
        candidates = [obj for obj in self.objects if not obj.opened]
        if not candidates:
            return None

        local = np.array([obj.base_position for obj in candidates])
        world = local @ euler_to_matrix(*orientation).T
        distances = np.linalg.norm(world - cursor, axis=1)

        # argmin returns the first minimum, i.e. the lowest id on ties
        best = int(np.argmin(distances))
        if distances[best] < self._hit_radius:
            return candidates[best]
        return None

    def world_positions(self, orientation) -> np.ndarray:
        if not self.objects:
            return np.zeros((0, 3))
        local = np.array([obj.base_position for obj in self.objects])
        return local @ euler_to_matrix(*orientation).T

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def hovered(self) -> Optional[PickableObject]:
        return self._hovered

    @property
    def last_cursor(self) -> np.ndarray:
        return self._last_cursor

    @property
    def hit_radius(self) -> float:
        return self._hit_radius

    @property
    def opened_count(self) -> int:
        return sum(1 for obj in self.objects if obj.opened)

    @property
    def remaining(self) -> int:
        return len(self.objects) - self.opened_count
