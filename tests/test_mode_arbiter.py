"""
Tests for the hysteresis-locked mode arbiter
=============================================
"""

import pytest

from hand_builder import OPEN, FIST, POINT, GUN, V_SIGN, THREE
from core.types import GestureMode
from modules.recognition.mode_arbiter import ModeArbiter, candidate_mode


class TestCandidateMode:

    @pytest.mark.parametrize("fingers, expected", [
        (OPEN, GestureMode.SCALE),
        (FIST, GestureMode.SCALE),
        ((True, False, False, False, False), GestureMode.SCALE),   # thumb only
        ((False, False, False, False, True), GestureMode.SCALE),   # any single finger
        (POINT, GestureMode.SCALE),                                # one finger counts as fist
        (GUN, GestureMode.ROTATE_XY),
        (V_SIGN, GestureMode.ROTATE_Z),
        ((True, True, True, False, False), GestureMode.ROTATE_Z),
        (THREE, GestureMode.IDLE),
        ((True, True, True, True, False), GestureMode.IDLE),
        ((False, False, True, True, False), GestureMode.IDLE),
    ])
    def test_table(self, fingers, expected):
        assert candidate_mode(fingers) is expected

    def test_wrong_length_is_idle(self):
        assert candidate_mode([]) is GestureMode.IDLE
        assert candidate_mode([True] * 4) is GestureMode.IDLE


class TestModeArbiter:

    @pytest.fixture
    def arbiter(self):
        return ModeArbiter({"lock_threshold": 4})

    def test_starts_idle(self, arbiter):
        assert arbiter.mode is GestureMode.IDLE
        assert arbiter.pending_frames == 0

    def test_commit_after_six_frames(self, arbiter):
        for _ in range(5):
            mode, changed = arbiter.update(OPEN)
            assert mode is GestureMode.IDLE
            assert not changed
        mode, changed = arbiter.update(OPEN)
        assert mode is GestureMode.SCALE
        assert changed
        assert arbiter.pending_frames == 0

    def test_interruption_restarts_window(self, arbiter):
        for _ in range(4):
            arbiter.update(OPEN)
        arbiter.update(GUN)
        assert arbiter.pending is GestureMode.ROTATE_XY
        assert arbiter.pending_frames == 0
        for _ in range(5):
            arbiter.update(OPEN)
        assert arbiter.mode is GestureMode.IDLE
        _, changed = arbiter.update(OPEN)
        assert changed

    def test_confirmed_candidate_clears_pending(self, arbiter):
        for _ in range(6):
            arbiter.update(OPEN)
        arbiter.update(V_SIGN)
        arbiter.update(V_SIGN)
        assert arbiter.pending_frames == 1
        arbiter.update(FIST)  # still SCALE
        assert arbiter.pending_frames == 0
        assert arbiter.pending is GestureMode.SCALE
        assert arbiter.mode is GestureMode.SCALE

    def test_single_glitch_does_not_switch(self, arbiter):
        for _ in range(6):
            arbiter.update(OPEN)
        for _ in range(20):
            arbiter.update(OPEN)
            mode, changed = arbiter.update(V_SIGN)
            assert mode is GestureMode.SCALE
            assert not changed

    def test_switch_between_modes(self, arbiter):
        for _ in range(6):
            arbiter.update(OPEN)
        results = [arbiter.update(V_SIGN) for _ in range(6)]
        assert [changed for _, changed in results] == [False] * 5 + [True]
        assert arbiter.mode is GestureMode.ROTATE_Z

    def test_custom_threshold(self):
        arbiter = ModeArbiter({"lock_threshold": 1})
        arbiter.update(OPEN)
        arbiter.update(OPEN)
        assert arbiter.mode is GestureMode.IDLE
        _, changed = arbiter.update(OPEN)
        assert changed
        assert arbiter.lock_threshold == 1

    def test_hand_lost_keeps_mode_by_default(self, arbiter):
        for _ in range(6):
            arbiter.update(OPEN)
        for _ in range(3):
            arbiter.update(V_SIGN)
        assert arbiter.hand_lost() is False
        assert arbiter.mode is GestureMode.SCALE
        assert arbiter.pending_frames == 0

    def test_hand_lost_idle_policy(self):
        arbiter = ModeArbiter({"idle_on_hand_loss": True})
        for _ in range(6):
            arbiter.update(OPEN)
        assert arbiter.hand_lost() is True
        assert arbiter.mode is GestureMode.IDLE
        # already idle: nothing to demote
        assert arbiter.hand_lost() is False

    def test_reset(self, arbiter):
        for _ in range(6):
            arbiter.update(OPEN)
        arbiter.update(V_SIGN)
        arbiter.reset()
        assert arbiter.mode is GestureMode.IDLE
        assert arbiter.pending is GestureMode.IDLE
        assert arbiter.pending_frames == 0
