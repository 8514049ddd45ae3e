"""
Render-side consumer of interaction snapshots.

One ``step()`` per display refresh: read the latest published snapshot,
advance the particle field and, in the gift configuration, the pickable
objects. Strictly read-only toward the gesture side.
"""

import time
import logging
from typing import Optional

import numpy as np

from core.events import EventBus
from core.snapshot import SnapshotStore
from core.types import InteractionState
from modules.animation.particle_field import ParticleField
from modules.animation.pickables import PickableObjectSet
from modules.animation.transforms import ViewCamera

logger = logging.getLogger(__name__)

SCENE_VARIANTS = {
    # variant -> (particle distribution, has pickables)
    "nebula": ("sphere", False),
    "gifts": ("cone", True),
}


class AnimatedScene:
    """Particle field plus optional pickable objects for one scene variant."""

    def __init__(self, store: SnapshotStore, field: ParticleField,
                 pickables: Optional[PickableObjectSet] = None,
                 camera: ViewCamera = None):
        self._store = store
        self._field = field
        self._pickables = pickables
        self._camera = camera or ViewCamera()

        self._last_version = 0
        self._snapshots_seen = 0
        self._frames = 0
        self._bursts = 0
        self._last_step = None

    def step(self, dt: float = None) -> InteractionState:
        """Advance one render frame on the latest snapshot.

        Args:
            dt: Seconds since the previous frame; measured when omitted

        Returns:
            The snapshot this frame was rendered from
        """
        now = time.perf_counter()
        if dt is None:
            dt = 0.0 if self._last_step is None else now - self._last_step
        self._last_step = now

        version, state = self._store.read()
        if version != self._last_version:
            self._last_version = version
            self._snapshots_seen += 1

        if self._field.update(state, dt):
            self._bursts += 1
            logger.debug("Burst rendered (trigger=%d)", state.color_burst_trigger)

        if self._pickables is not None:
            self._pickables.update(state, self._field.orientation_tuple)

        self._frames += 1
        return state

    @property
    def field(self) -> ParticleField:
        return self._field

    @property
    def pickables(self) -> Optional[PickableObjectSet]:
        return self._pickables

    @property
    def camera(self) -> ViewCamera:
        return self._camera

    @property
    def frames(self) -> int:
        return self._frames

    @property
    def bursts(self) -> int:
        return self._bursts

    @property
    def snapshot_version(self) -> int:
        return self._last_version

    @property
    def snapshots_seen(self) -> int:
        """Distinct snapshots rendered; lower than published when this loop is slower."""
        return self._snapshots_seen


def build_scene(variant: str, store: SnapshotStore, particles_cfg: dict = None,
                pickables_cfg: dict = None, view_cfg: dict = None,
                seed: Optional[int] = None, event_bus: EventBus = None) -> AnimatedScene:
    """Assemble the render side for 'nebula' (sphere) or 'gifts' (cone + objects)."""
    if variant not in SCENE_VARIANTS:
        raise ValueError(f"Unknown scene variant '{variant}', expected one of {sorted(SCENE_VARIANTS)}")

    distribution, has_pickables = SCENE_VARIANTS[variant]
    rng = np.random.default_rng(seed)
    camera = ViewCamera(view_cfg)

    particles_cfg = dict(particles_cfg or {})
    particles_cfg.setdefault("distribution", distribution)
    field = ParticleField(particles_cfg, rng=rng)

    pickables = None
    if has_pickables and (pickables_cfg or {}).get("enabled", True):
        pickables_cfg = dict(pickables_cfg or {})
        # objects sit on the same cone as the particles
        pickables_cfg.setdefault("height", particles_cfg.get("height", 8.0))
        pickables_cfg.setdefault("base_radius", particles_cfg.get("base_radius", 3.5))
        pickables = PickableObjectSet(pickables_cfg, rng=rng, camera=camera,
                                      event_bus=event_bus)

    logger.info("Scene '%s' built (%d particles, %s pickables)", variant, field.count,
                len(pickables.objects) if pickables else "no")
    return AnimatedScene(store, field, pickables, camera=camera)
