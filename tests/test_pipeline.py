"""
Tests for the gesture-update loop
==================================
"""

import time
from unittest.mock import MagicMock

import pytest
import numpy as np

from hand_builder import create_hand_landmarks, OPEN
from core.events import EventBus, Events
from core.pipeline import GesturePipeline
from core.snapshot import SnapshotStore
from core.types import GestureMode
from modules.detection.hand_detector import ProviderError
from modules.recognition.gesture_engine import GestureEngine


class FakeCamera:
    """Yields a fixed number of numbered frames, then nothing."""

    def __init__(self, frames=10, opens=True):
        self._remaining = frames
        self._opens = opens
        self._frame_id = 0
        self.stopped = False

    def open(self):
        return self._opens

    def read(self):
        if self._remaining <= 0:
            return None, None
        self._remaining -= 1
        self._frame_id += 1
        return self._frame_id, np.zeros((4, 4, 3), dtype=np.uint8)

    def stop(self):
        self.stopped = True


class TestGesturePipeline:

    @pytest.fixture
    def bus(self):
        return EventBus()

    @pytest.fixture
    def store(self):
        return SnapshotStore()

    @pytest.fixture
    def engine(self, store, bus):
        return GestureEngine({}, store=store, event_bus=bus)

    @pytest.fixture
    def detector(self):
        detector = MagicMock()
        detector.detect.return_value = create_hand_landmarks(OPEN)
        return detector

    def test_start(self, engine, detector, bus):
        pipeline = GesturePipeline(FakeCamera(), detector, engine, bus)
        assert pipeline.start()
        detector.initialize.assert_called_once()
        assert not pipeline.failed

    def test_camera_failure(self, engine, detector, bus):
        failures = []
        bus.subscribe(Events.PROVIDER_FAILED, lambda **kw: failures.append(kw))
        pipeline = GesturePipeline(FakeCamera(opens=False), detector, engine, bus)
        assert not pipeline.start()
        assert pipeline.failed
        assert failures[0]["stage"] == "camera"
        detector.initialize.assert_not_called()

    def test_provider_failure(self, engine, detector, bus):
        failures = []
        bus.subscribe(Events.PROVIDER_FAILED, lambda **kw: failures.append(kw))
        detector.initialize.side_effect = ProviderError("model missing")
        camera = FakeCamera()
        pipeline = GesturePipeline(camera, detector, engine, bus)

        assert not pipeline.start_async()
        assert pipeline.failed
        assert not pipeline.running
        assert camera.stopped
        assert failures == [{"stage": "provider", "error": "model missing"}]

    def test_tick_feeds_engine(self, engine, detector, bus):
        pipeline = GesturePipeline(FakeCamera(), detector, engine, bus)
        result = pipeline.tick()
        assert result.hand_detected
        assert result.frame_id == 1
        assert result.state is engine.snapshot
        assert result.state.hand_present
        assert pipeline.frame_count == 1

    def test_tick_without_hand(self, engine, detector, bus):
        detector.detect.return_value = None
        pipeline = GesturePipeline(FakeCamera(), detector, engine, bus)
        result = pipeline.tick()
        assert not result.hand_detected
        assert not result.state.hand_present
        assert pipeline.detection_rate == 0.0

    def test_no_frame(self, engine, detector, bus):
        pipeline = GesturePipeline(FakeCamera(frames=0), detector, engine, bus)
        assert pipeline.tick() is None
        detector.detect.assert_not_called()

    def test_repeated_frame_skipped(self, engine, detector, bus):
        camera = MagicMock()
        camera.read.return_value = (7, np.zeros((4, 4, 3), dtype=np.uint8))
        pipeline = GesturePipeline(camera, detector, engine, bus)
        assert pipeline.tick() is not None
        assert pipeline.tick() is None
        assert detector.detect.call_count == 1

    def test_threaded_run_and_stop(self, engine, detector, bus, store):
        camera = FakeCamera(frames=12)
        pipeline = GesturePipeline(camera, detector, engine, bus, {"idle_sleep_ms": 1})
        assert pipeline.start_async()

        deadline = time.time() + 5.0
        while pipeline.frame_count < 12 and time.time() < deadline:
            time.sleep(0.01)
        pipeline.stop()

        assert pipeline.frame_count == 12
        assert not pipeline.running
        assert pipeline.detection_rate == pytest.approx(100.0)
        # final forced no-hand tick after the loop ends
        assert not store.latest().hand_present
        assert store.latest().mode is GestureMode.SCALE
        detector.close.assert_called_once()
        assert camera.stopped
