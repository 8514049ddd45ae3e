"""
21-point hand landmark validation and finger-extension classification.

Finger extension uses a radial test: a digit is extended when its tip lies
further from the wrist than its proximal joint, by a fixed margin. The test
only compares image-plane distances, so it holds up under in-plane hand
rotation and does not depend on the model's noisy depth estimate.
"""

import math
import logging
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 21

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

FINGER_TIPS = (THUMB_TIP, INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)
# Joint each tip is compared against in the radial test
FINGER_PROXIMALS = (THUMB_MCP, INDEX_PIP, MIDDLE_PIP, RING_PIP, PINKY_PIP)

# Keypoint used as the palm cursor source
PALM_CENTER = MIDDLE_MCP

DEFAULT_EXTENSION_MARGIN = 1.2


def to_landmark_array(landmarks) -> Optional[np.ndarray]:
    """Validate provider output into a fixed (21, 3) float array.

    Accepts a numpy array of shape (21, 2) or (21, 3), a sequence of
    (x, y[, z]) tuples, or a sequence of objects with ``x``/``y``/``z``
    attributes (MediaPipe NormalizedLandmark). Anything else, including a
    wrong point count or non-finite coordinates, is rejected.

    Returns:
        np.ndarray of shape (21, 3), or None when the input is not a hand
    """
    if landmarks is None:
        return None

    if hasattr(landmarks, "landmark"):
        landmarks = landmarks.landmark

    try:
        if isinstance(landmarks, np.ndarray):
            points = landmarks.astype(np.float64, copy=True)
        else:
            rows = []
            for lm in landmarks:
                if hasattr(lm, "x") and hasattr(lm, "y"):
                    rows.append((lm.x, lm.y, getattr(lm, "z", 0.0)))
                else:
                    rows.append(tuple(lm))
            if len(rows) != NUM_LANDMARKS:
                return None
            width = {len(r) for r in rows}
            if len(width) != 1:
                return None
            points = np.asarray(rows, dtype=np.float64)
    except (TypeError, ValueError):
        return None

    if points.ndim != 2 or points.shape[0] != NUM_LANDMARKS or points.shape[1] not in (2, 3):
        return None
    if points.shape[1] == 2:
        points = np.hstack([points, np.zeros((NUM_LANDMARKS, 1))])
    if not np.all(np.isfinite(points)):
        return None
    return points


class LandmarkClassifier:
    """Maps a hand's 21 keypoints to a five-element extended-finger vector."""

    def __init__(self, config: dict = None):
        config = config or {}
        self._margin = float(config.get("extension_margin", DEFAULT_EXTENSION_MARGIN))
        if self._margin <= 0:
            raise ValueError(f"extension_margin must be positive, got {self._margin}")

    @property
    def margin(self) -> float:
        return self._margin

    def classify_points(self, points: np.ndarray) -> list:
        """Return ``[thumb, index, middle, ring, pinky]`` extension flags.

        Expects a (21, 3) array already validated by to_landmark_array.
        """
        wrist = points[WRIST]
        fingers = []
        for tip_idx, proximal_idx in zip(FINGER_TIPS, FINGER_PROXIMALS):
            tip_dist = self._planar_distance(points[tip_idx], wrist)
            proximal_dist = self._planar_distance(points[proximal_idx], wrist)
            fingers.append(bool(tip_dist > proximal_dist * self._margin))
        return fingers

    @staticmethod
    def extended_count(fingers: Sequence[bool]) -> int:
        return sum(1 for f in fingers if f)

    @staticmethod
    def _planar_distance(a: np.ndarray, b: np.ndarray) -> float:
        return math.hypot(a[0] - b[0], a[1] - b[1])


# =============================================================================
# Keypoint Accessors
# =============================================================================

def index_tip(points: np.ndarray) -> tuple:
    return float(points[INDEX_TIP][0]), float(points[INDEX_TIP][1])


def middle_tip(points: np.ndarray) -> tuple:
    return float(points[MIDDLE_TIP][0]), float(points[MIDDLE_TIP][1])


def palm_center(points: np.ndarray) -> tuple:
    """Image-space palm keypoint used for the cursor."""
    return float(points[PALM_CENTER][0]), float(points[PALM_CENTER][1])
