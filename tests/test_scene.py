"""
Tests for the render-side scene assembly
=========================================
"""

import pytest

from core.events import EventBus
from core.snapshot import SnapshotStore
from core.types import GestureMode, InteractionState, Cursor
from modules.animation.scene import build_scene, SCENE_VARIANTS


class TestBuildScene:

    @pytest.fixture
    def store(self):
        return SnapshotStore()

    def test_nebula(self, store):
        scene = build_scene("nebula", store, {"count": 200}, seed=1)
        assert scene.field.distribution == "sphere"
        assert scene.pickables is None

    def test_gifts(self, store):
        scene = build_scene("gifts", store, {"count": 200}, {"count": 5}, seed=1)
        assert scene.field.distribution == "cone"
        assert len(scene.pickables.objects) == 5

    def test_gifts_pickables_disabled(self, store):
        scene = build_scene("gifts", store, {"count": 200}, {"enabled": False}, seed=1)
        assert scene.pickables is None

    def test_unknown_variant(self, store):
        with pytest.raises(ValueError):
            build_scene("aurora", store)

    def test_variants_table(self):
        assert set(SCENE_VARIANTS) == {"nebula", "gifts"}

    def test_shared_camera(self, store):
        scene = build_scene("gifts", store, {"count": 50}, {"count": 2},
                            view_cfg={"fov": 45.0}, seed=1)
        assert scene.camera.fov_deg == 45.0
        assert scene.pickables.cursor_position(InteractionState()) is not None


class TestAnimatedScene:

    @pytest.fixture
    def store(self):
        return SnapshotStore()

    def test_step_uses_latest_snapshot(self, store):
        scene = build_scene("nebula", store, {"count": 100, "noise_amplitude": 0.0}, seed=2)
        store.publish(InteractionState(scale=2.0))
        store.publish(InteractionState(scale=3.0))
        state = scene.step(dt=1 / 60)
        assert state.scale == 3.0
        assert scene.snapshot_version == 2
        assert scene.snapshots_seen == 1
        assert scene.frames == 1

    def test_render_faster_than_gesture(self, store):
        scene = build_scene("nebula", store, {"count": 100}, seed=2)
        store.publish(InteractionState(scale=1.5))
        for _ in range(5):
            scene.step(dt=1 / 60)
        assert scene.frames == 5
        assert scene.snapshots_seen == 1

    def test_burst_counted_once(self, store):
        scene = build_scene("nebula", store, {"count": 100}, seed=2)
        store.publish(InteractionState(color_burst_trigger=1))
        for _ in range(3):
            scene.step(dt=1 / 60)
        store.publish(InteractionState(color_burst_trigger=3))
        scene.step(dt=1 / 60)
        assert scene.bursts == 2

    def test_step_measures_dt(self, store):
        scene = build_scene("nebula", store, {"count": 100}, seed=2)
        scene.step()
        scene.step()
        assert scene.field.elapsed >= 0.0

    def test_gifts_open_through_scene(self, store):
        bus = EventBus()
        scene = build_scene("gifts", store, {"count": 100},
                            {"positions": [[0.3, 0.0, 0.0]]}, seed=2, event_bus=bus)
        store.publish(InteractionState(mode=GestureMode.SCALE, is_fist=True,
                                       cursor=Cursor(0.0, 0.0)))
        scene.step(dt=1 / 60)
        assert scene.pickables.objects[0].opened
