"""
Tests for landmark validation and finger classification
========================================================
"""

import math
from types import SimpleNamespace

import pytest
import numpy as np

from hand_builder import create_hand_landmarks, OPEN, FIST, POINT, GUN, V_SIGN, THREE
from modules.detection.landmark_extractor import (
    LandmarkClassifier, to_landmark_array, palm_center, index_tip, middle_tip,
    NUM_LANDMARKS, MIDDLE_MCP, INDEX_TIP, MIDDLE_TIP,
)


def classify(classifier, hand):
    return classifier.classify_points(to_landmark_array(hand))


class TestToLandmarkArray:
    """Boundary validation of provider output."""

    def test_accepts_3d_array(self):
        points = create_hand_landmarks(OPEN)
        result = to_landmark_array(points)
        assert result.shape == (NUM_LANDMARKS, 3)
        np.testing.assert_allclose(result, points)

    def test_returns_copy(self):
        points = create_hand_landmarks(OPEN)
        result = to_landmark_array(points)
        result[0, 0] = 99.0
        assert points[0, 0] != 99.0

    def test_pads_2d_array(self):
        points = create_hand_landmarks(OPEN)[:, :2]
        result = to_landmark_array(points)
        assert result.shape == (NUM_LANDMARKS, 3)
        assert np.all(result[:, 2] == 0.0)

    def test_accepts_tuples(self):
        rows = [tuple(p) for p in create_hand_landmarks(OPEN)]
        assert to_landmark_array(rows).shape == (NUM_LANDMARKS, 3)

    def test_accepts_landmark_objects(self):
        points = create_hand_landmarks(POINT)
        hand = SimpleNamespace(landmark=[
            SimpleNamespace(x=p[0], y=p[1], z=p[2]) for p in points
        ])
        np.testing.assert_allclose(to_landmark_array(hand), points)

    def test_none(self):
        assert to_landmark_array(None) is None

    def test_wrong_count_rejected(self):
        assert to_landmark_array(np.zeros((20, 3))) is None
        assert to_landmark_array([(0.1, 0.2)] * 22) is None

    def test_non_finite_rejected(self):
        points = create_hand_landmarks(OPEN)
        points[8, 0] = np.nan
        assert to_landmark_array(points) is None

    def test_ragged_rows_rejected(self):
        rows = [(0.1, 0.2)] * 20 + [(0.1, 0.2, 0.3)]
        assert to_landmark_array(rows) is None

    def test_garbage_rejected(self):
        assert to_landmark_array(["abc"] * 21) is None


class TestLandmarkClassifier:
    """Radial finger-extension test."""

    @pytest.fixture
    def classifier(self):
        return LandmarkClassifier({"extension_margin": 1.2})

    @pytest.mark.parametrize("fingers", [OPEN, FIST, POINT, GUN, V_SIGN, THREE])
    def test_classifies_poses(self, classifier, fingers):
        hand = create_hand_landmarks(fingers)
        assert classify(classifier, hand) == list(fingers)

    @pytest.mark.parametrize("roll", [-math.pi / 2, -0.7, 0.4, math.pi / 2, math.pi])
    def test_invariant_to_in_plane_roll(self, classifier, roll):
        hand = create_hand_landmarks(V_SIGN, roll=roll)
        assert classify(classifier, hand) == list(V_SIGN)

    def test_ignores_depth(self, classifier):
        hand = create_hand_landmarks(POINT)
        hand[:, 2] = np.linspace(-0.5, 0.5, NUM_LANDMARKS)
        assert classify(classifier, hand) == list(POINT)

    def test_margin_threshold(self, classifier):
        hand = create_hand_landmarks(FIST, wrist=(0.5, 0.8))
        hand[6, :2] = (0.5, 0.8 - 0.15)
        hand[INDEX_TIP, :2] = (0.5, 0.8 - 0.17)
        assert classify(classifier, hand)[1] is False
        hand[INDEX_TIP, :2] = (0.5, 0.8 - 0.19)
        assert classify(classifier, hand)[1] is True

    def test_extended_count(self):
        assert LandmarkClassifier.extended_count(OPEN) == 5
        assert LandmarkClassifier.extended_count(V_SIGN) == 2
        assert LandmarkClassifier.extended_count([]) == 0

    def test_invalid_margin(self):
        with pytest.raises(ValueError):
            LandmarkClassifier({"extension_margin": 0})


class TestKeypointAccessors:

    def test_accessors_read_image_plane(self):
        hand = create_hand_landmarks(OPEN, overrides={
            MIDDLE_MCP: (0.3, 0.4), INDEX_TIP: (0.1, 0.2), MIDDLE_TIP: (0.6, 0.7),
        })
        assert palm_center(hand) == pytest.approx((0.3, 0.4))
        assert index_tip(hand) == pytest.approx((0.1, 0.2))
        assert middle_tip(hand) == pytest.approx((0.6, 0.7))
