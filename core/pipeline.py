"""
Gesture-update loop.

Runs one gesture tick per camera frame:

    CameraManager -> HandDetector -> GestureEngine -> SnapshotStore

The loop owns the engine exclusively. It never touches the render side; the
renderer picks up whatever snapshot was published last. A provider that
fails to start ends this loop only.
"""

import time
import logging
import threading

from core.events import EventBus, Events

logger = logging.getLogger(__name__)


class PipelineResult:
    """Outcome of a single gesture tick."""

    __slots__ = ("frame", "frame_id", "hand_detected", "state", "latency_ms", "timestamp")

    def __init__(self):
        self.frame = None
        self.frame_id = 0
        self.hand_detected = False
        self.state = None
        self.latency_ms = 0.0
        self.timestamp = 0.0


class GesturePipeline:
    """Drives the gesture engine from a camera and a landmark provider.

    Args:
        camera: object with open() -> bool, read() -> (frame_id, frame), stop()
        detector: object with initialize(), detect(frame) -> landmarks|None, close()
        engine: GestureEngine
        config: optional dict (``idle_sleep_ms``)
    """

    def __init__(self, camera, detector, engine, event_bus=None, config=None):
        self._camera = camera
        self._detector = detector
        self._engine = engine
        self._bus = event_bus or EventBus()

        config = config or {}
        self._idle_sleep = config.get("idle_sleep_ms", 2) / 1000.0

        self._stop_event = threading.Event()
        self._thread = None
        self._failed = False
        self._frame_count = 0
        self._hand_frames = 0
        self._last_frame_id = None
        self._latency_ms = 0.0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> bool:
        """Open the camera and the provider.

        Returns:
            False if either failed; the render loop is unaffected.
        """
        if not self._camera.open():
            logger.error("Failed to open camera, gesture pipeline disabled")
            self._mark_failed("camera")
            return False
        try:
            self._detector.initialize()
        except Exception as e:
            logger.error("Landmark provider failed to initialize: %s", e)
            self._camera.stop()
            self._mark_failed("provider", error=str(e))
            return False
        return True

    def start_async(self) -> bool:
        """start() then run() on a daemon thread."""
        if not self.start():
            return False
        self._thread = threading.Thread(target=self.run, name="gesture-loop", daemon=True)
        self._thread.start()
        logger.info("Gesture loop started")
        return True

    def run(self):
        """Tick until stop() is requested, then publish a final no-hand tick."""
        try:
            while not self._stop_event.is_set():
                result = self.tick()
                if result is None:
                    time.sleep(self._idle_sleep)
        finally:
            self._engine.stop()
            self._detector.close()
            self._camera.stop()
            logger.info("Gesture loop stopped after %d frames", self._frame_count)

    def stop(self, timeout: float = 2.0):
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def _mark_failed(self, stage: str, error: str = ""):
        self._failed = True
        self._bus.emit(Events.PROVIDER_FAILED, stage=stage, error=error)

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self):
        """Run one gesture tick on the newest camera frame.

        Returns:
            PipelineResult, or None if no new frame was available
        """
        frame_id, frame = self._camera.read()
        if frame is None or frame_id == self._last_frame_id:
            return None
        self._last_frame_id = frame_id

        start = time.perf_counter()
        result = PipelineResult()
        result.timestamp = time.time()
        result.frame = frame
        result.frame_id = frame_id

        landmarks = self._detector.detect(frame)
        result.hand_detected = landmarks is not None
        result.state = self._engine.process(landmarks)

        self._frame_count += 1
        if result.hand_detected:
            self._hand_frames += 1
        self._latency_ms = (time.perf_counter() - start) * 1000
        result.latency_ms = self._latency_ms
        return result

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def failed(self) -> bool:
        return self._failed

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def detection_rate(self) -> float:
        """Percentage of processed frames with a hand."""
        if self._frame_count == 0:
            return 0.0
        return self._hand_frames / self._frame_count * 100

    @property
    def latency_ms(self) -> float:
        return self._latency_ms
