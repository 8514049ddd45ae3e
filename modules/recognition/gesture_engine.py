"""
Gesture interpretation engine.

Ties the landmark classifier, the mode arbiter and the gesture mapper
together. Each call to ``process()`` is one gesture tick: it consumes one
pose sample (or None) and publishes exactly one complete InteractionState.

    keypoints -> LandmarkClassifier -> ModeArbiter -> GestureMapper -> snapshot
"""

import logging

from core.events import EventBus, Events
from core.snapshot import SnapshotStore
from core.types import GestureMode, InteractionState, Rotation, Cursor
from modules.detection.landmark_extractor import LandmarkClassifier, to_landmark_array
from modules.recognition.gesture_mapper import GestureMapper, MotionTrackers
from modules.recognition.mode_arbiter import ModeArbiter
from modules.recognition.scene_behaviors import SceneBehavior, NebulaBehavior

logger = logging.getLogger(__name__)


class GestureEngine:
    """Owns all gesture-side mutable state and publishes snapshots.

    Only the gesture-update loop may call ``process()`` and ``stop()``.
    Everything else reads through the store or the read-only properties.
    """

    def __init__(self, config: dict = None, behavior: SceneBehavior = None,
                 store: SnapshotStore = None, event_bus: EventBus = None):
        config = config or {}
        self._behavior = behavior or NebulaBehavior(config)
        self._classifier = LandmarkClassifier(config)
        self._arbiter = ModeArbiter(config)
        self._mapper = GestureMapper(config, self._behavior)
        self._trackers = MotionTrackers()
        self._store = store or SnapshotStore()
        self._bus = event_bus or EventBus()

        self._state = self._store.latest()
        self._tick_count = 0

    def process(self, landmarks) -> InteractionState:
        """Run one gesture tick on a pose sample.

        Args:
            landmarks: 21 keypoints for the primary hand, or None

        Returns:
            The newly published snapshot
        """
        self._tick_count += 1
        points = to_landmark_array(landmarks)

        if points is None:
            state = self._on_no_hand()
        else:
            state = self._on_hand(points)

        self._publish(state)
        return state

    def stop(self) -> InteractionState:
        """Forced final tick for a stopped pose source."""
        logger.info("Pose source stopped, publishing final no-hand snapshot")
        return self.process(None)

    def reset(self):
        """Return to the startup state (IDLE, identity transforms)."""
        self._arbiter.reset()
        self._trackers.reset()
        self._publish(InteractionState(
            color_burst_trigger=self._state.color_burst_trigger,
        ))

    # =========================================================================
    # Tick Phases
    # =========================================================================

    def _on_no_hand(self) -> InteractionState:
        previous_mode = self._arbiter.mode
        self._trackers.reset()
        if self._arbiter.hand_lost():
            self._behavior.on_mode_change(previous_mode, self._arbiter.mode)
            self._bus.emit(Events.MODE_CHANGED,
                           previous=previous_mode.value, current=self._arbiter.mode.value)

        if self._state.hand_present:
            logger.debug("Hand lost after %d ticks", self._tick_count)
            self._bus.emit(Events.HAND_LOST, mode=self._arbiter.mode.value)

        return self._state.evolve(hand_present=False, mode=self._arbiter.mode)

    def _on_hand(self, points) -> InteractionState:
        fingers = self._classifier.classify_points(points)
        previous_mode = self._arbiter.mode
        mode, changed = self._arbiter.update(fingers)

        if changed:
            self._trackers.reset()
            self._behavior.on_mode_change(previous_mode, mode)
            self._bus.emit(Events.MODE_CHANGED,
                           previous=previous_mode.value, current=mode.value)

        if not self._state.hand_present:
            self._bus.emit(Events.HAND_DETECTED, mode=mode.value)

        state = self._state.evolve(mode=mode, hand_present=True)
        state = self._mapper.apply(state, fingers, points, self._trackers)

        if state.color_burst_trigger > self._state.color_burst_trigger:
            self._bus.emit(Events.COLOR_BURST, count=state.color_burst_trigger)

        return state

    def _publish(self, state: InteractionState):
        self._state = state
        self._store.publish(state)

    # =========================================================================
    # Read-only Accessors
    # =========================================================================

    @property
    def snapshot(self) -> InteractionState:
        return self._state

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def behavior(self) -> SceneBehavior:
        return self._behavior

    @property
    def mode(self) -> GestureMode:
        return self._state.mode

    @property
    def rotation(self) -> Rotation:
        return self._state.rotation

    @property
    def scale(self) -> float:
        return self._state.scale

    @property
    def is_fist(self) -> bool:
        return self._state.is_fist

    @property
    def hand_present(self) -> bool:
        return self._state.hand_present

    @property
    def color_burst_trigger(self) -> int:
        return self._state.color_burst_trigger

    @property
    def cursor(self) -> Cursor:
        return self._state.cursor

    @property
    def pending_mode(self) -> GestureMode:
        return self._arbiter.pending

    @property
    def trackers_clear(self) -> bool:
        return self._trackers.is_clear

    @property
    def pending_frames(self) -> int:
        return self._arbiter.pending_frames

    @property
    def tick_count(self) -> int:
        return self._tick_count
