"""
Pluggable scene behaviours for the gesture engine.

Both scene configurations share one mode state machine and one mapper. They
differ only in how SCALE mode (and, for the gift tree, Z rotation) shows up
on screen, so those update laws are hooks on a small behaviour object.
"""

import logging
from typing import Tuple

from core.types import GestureMode

logger = logging.getLogger(__name__)


class SceneBehavior:
    """Default update laws: continuous exponential smoothing.

    Hooks:
        on_mode_change     - a new mode was committed
        update_scale       - next published scale for this SCALE tick
        update_cursor      - next published cursor given the raw palm cursor
        update_z_rotation  - next cumulative z angle given a wrapped delta
    """

    name = "base"

    def __init__(self, config: dict = None):
        config = config or {}
        self.fist_scale = float(config.get("fist_scale", 0.2))
        self.open_scale = float(config.get("open_scale", 2.5))
        self.scale_lerp = float(config.get("scale_lerp", 0.1))
        self.cursor_lerp = float(config.get("cursor_lerp", 0.2))
        self.z_sensitivity = float(config.get("z_rotation_sensitivity", 1.0))
        if self.fist_scale <= 0 or self.open_scale <= 0:
            raise ValueError("fist_scale and open_scale must be positive")

    def on_mode_change(self, previous: GestureMode, current: GestureMode):
        logger.debug("[%s] mode %s -> %s", self.name, previous.value, current.value)

    def target_scale(self, is_fist: bool) -> float:
        return self.fist_scale if is_fist else self.open_scale

    def update_scale(self, scale: float, is_fist: bool) -> float:
        target = self.target_scale(is_fist)
        return scale + (target - scale) * self.scale_lerp

    def update_cursor(self, cursor: Tuple[float, float],
                      raw: Tuple[float, float]) -> Tuple[float, float]:
        return (
            cursor[0] + (raw[0] - cursor[0]) * self.cursor_lerp,
            cursor[1] + (raw[1] - cursor[1]) * self.cursor_lerp,
        )

    def update_z_rotation(self, rotation_z: float, delta: float) -> float:
        # Screen angles grow clockwise (y down); scene z is counter-clockwise
        return rotation_z - delta * self.z_sensitivity


class NebulaBehavior(SceneBehavior):
    """Particle sphere: open palm expands, fist contracts, V sign spins."""

    name = "nebula"


class GiftBehavior(SceneBehavior):
    """Gift tree: SCALE mode drives the cursor for hit-testing.

    The tree keeps its nominal size so gifts stay where the user aims, and
    the scene only offers select / open / view gestures, so Z rotation is
    ignored.
    """

    name = "gifts"

    def __init__(self, config: dict = None):
        super().__init__(config)
        self.nominal_scale = float((config or {}).get("nominal_scale", 1.0))

    def target_scale(self, is_fist: bool) -> float:
        return self.nominal_scale

    def update_z_rotation(self, rotation_z: float, delta: float) -> float:
        return rotation_z


_BEHAVIORS = {
    NebulaBehavior.name: NebulaBehavior,
    GiftBehavior.name: GiftBehavior,
}


def create_behavior(variant: str, config: dict = None) -> SceneBehavior:
    """Build the behaviour for a scene variant ('nebula' or 'gifts')."""
    try:
        cls = _BEHAVIORS[variant]
    except KeyError:
        raise ValueError(
            f"Unknown scene variant '{variant}', expected one of {sorted(_BEHAVIORS)}"
        ) from None
    return cls(config)
