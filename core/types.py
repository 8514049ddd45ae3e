"""
Shared domain types for the gesture-driven particle field.

Centralizes the interaction modes and the immutable snapshot that crosses
from the gesture-update loop to the render loop.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import NamedTuple


# =============================================================================
# Interaction Modes
# =============================================================================

class GestureMode(Enum):
    """Confirmed interaction modes produced by the mode arbiter."""
    IDLE = "IDLE"
    SCALE = "SCALE"           # open palm (expand / cursor) or fist (contract / open)
    ROTATE_XY = "ROTATE_XY"   # thumb + index (gun pose)
    ROTATE_Z = "ROTATE_Z"     # index + middle (V sign)

    @property
    def is_rotation(self) -> bool:
        return self in (GestureMode.ROTATE_XY, GestureMode.ROTATE_Z)


# =============================================================================
# Value Types
# =============================================================================

class Rotation(NamedTuple):
    """Cumulative Euler angles in radians. Unbounded."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Cursor(NamedTuple):
    """Normalized pointer position, roughly [-1.5, 1.5] per axis."""
    x: float = 0.0
    y: float = 0.0


# =============================================================================
# Interaction Snapshot
# =============================================================================

MIN_SCALE = 1e-3


@dataclass(frozen=True)
class InteractionState:
    """One complete, immutable interaction snapshot.

    A new instance is published every gesture tick; consumers only ever see
    whole snapshots and never mutate them.
    """

    mode: GestureMode = GestureMode.IDLE
    rotation: Rotation = field(default_factory=Rotation)
    scale: float = 1.0
    is_fist: bool = False
    hand_present: bool = False
    color_burst_trigger: int = 0
    cursor: Cursor = field(default_factory=Cursor)

    def __post_init__(self):
        if self.scale < MIN_SCALE:
            object.__setattr__(self, "scale", MIN_SCALE)
        if self.color_burst_trigger < 0:
            raise ValueError("color_burst_trigger must be non-negative")

    def evolve(self, **changes) -> 'InteractionState':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @property
    def is_contracted(self) -> bool:
        """Fist held while in SCALE mode."""
        return self.is_fist and self.mode is GestureMode.SCALE

    def to_overlay_dict(self) -> dict:
        """Flatten into the dict format used by the status overlay."""
        return {
            "mode": self.mode.value,
            "rotation": tuple(self.rotation),
            "scale": self.scale,
            "is_fist": self.is_fist,
            "hand_present": self.hand_present,
            "color_burst_trigger": self.color_burst_trigger,
            "cursor": tuple(self.cursor),
        }
