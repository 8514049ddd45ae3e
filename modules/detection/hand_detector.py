"""
MediaPipe Hands landmark provider.

Black-box source of 21 keypoints for at most one hand per frame. Frames
come in as BGR from OpenCV; the first detected hand is returned as a
validated (21, 3) array of normalized image coordinates.
"""

import logging
from typing import Optional

import cv2
import numpy as np
import mediapipe as mp

from modules.detection.landmark_extractor import to_landmark_array

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """The landmark model could not be started."""


class HandDetector:
    """MediaPipe Hands wrapper tracking a single hand."""

    def __init__(self, config: dict):
        self._model_complexity = config.get("model_complexity", 0)
        self._min_detect_conf = config.get("min_detection_confidence", 0.6)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)
        if config.get("max_num_hands", 1) != 1:
            logger.warning("Only one hand is tracked; ignoring max_num_hands=%s",
                           config.get("max_num_hands"))

        self._mp_hands = mp.solutions.hands
        self._mp_drawing = mp.solutions.drawing_utils
        self._hands = None
        self._initialized = False
        self._last_results = None

    def initialize(self):
        """Start the MediaPipe Hands solution.

        Raises:
            ProviderError: if the model cannot be loaded
        """
        try:
            self._hands = self._mp_hands.Hands(
                static_image_mode=False,
                model_complexity=self._model_complexity,
                max_num_hands=1,
                min_detection_confidence=self._min_detect_conf,
                min_tracking_confidence=self._min_track_conf,
            )
        except Exception as e:
            raise ProviderError(f"MediaPipe Hands failed to start: {e}") from e
        self._initialized = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._min_detect_conf, self._min_track_conf,
        )

    def detect(self, bgr_frame: np.ndarray) -> Optional[np.ndarray]:
        """Landmarks of the primary hand in a BGR frame.

        Returns:
            np.ndarray of shape (21, 3), or None if no valid hand was found
        """
        if not self._initialized:
            self.initialize()

        rgb_frame = cv2.cvtColor(bgr_frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False
        results = self._hands.process(rgb_frame)
        self._last_results = results

        if not results or not results.multi_hand_landmarks:
            return None
        return to_landmark_array(results.multi_hand_landmarks[0])

    def draw_landmarks(self, frame: np.ndarray) -> np.ndarray:
        """Draw the last detected hand skeleton onto a BGR frame."""
        results = self._last_results
        if results and results.multi_hand_landmarks:
            self._mp_drawing.draw_landmarks(
                frame,
                results.multi_hand_landmarks[0],
                self._mp_hands.HAND_CONNECTIONS,
                self._mp_drawing.DrawingSpec(color=(0, 255, 0), thickness=2, circle_radius=2),
                self._mp_drawing.DrawingSpec(color=(200, 200, 200), thickness=1),
            )
        return frame

    def close(self):
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
            self._initialized = False
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
