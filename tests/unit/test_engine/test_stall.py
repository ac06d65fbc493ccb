"""
Unit tests for stall detection and recovery.
"""

import math

import pytest
from conftest import make_context, make_me, make_world
from engine.tactics.stall import MotionState, MotionStatus, StallRecovery
from engine.utils.geometry import Point
from settings import ESCAPE_DISTANCE


def _observe(stall, x, y):
    stall.update(make_context(make_world(me=make_me(x, y))))


class TestClassification:
    """Tests for STANDING / WALKING / STUCK transitions."""

    def test_starts_standing(self):
        stall = StallRecovery()
        assert stall.status == MotionStatus.STANDING
        _observe(stall, 100.0, 100.0)
        assert stall.status == MotionStatus.STANDING

    def test_walking_when_motion_matches(self):
        stall = StallRecovery()
        _observe(stall, 100.0, 100.0)
        stall.record_request(Point(4.0, 0.0))
        _observe(stall, 104.0, 100.0)
        assert stall.status == MotionStatus.WALKING
        assert stall.state.stall_counter == 0

    def test_small_mismatch_is_tolerated(self):
        """Within epsilon of the request still counts as walking."""
        stall = StallRecovery()
        _observe(stall, 100.0, 100.0)
        stall.record_request(Point(4.0, 0.0))
        _observe(stall, 103.5, 100.0)
        assert stall.status == MotionStatus.WALKING

    def test_standing_when_not_moving(self):
        stall = StallRecovery()
        _observe(stall, 100.0, 100.0)
        stall.record_request(Point(0.0, 0.0))
        _observe(stall, 100.05, 100.0)
        assert stall.status == MotionStatus.STANDING

    def test_stuck_when_request_not_honoured(self):
        stall = StallRecovery()
        _observe(stall, 100.0, 100.0)
        stall.record_request(Point(4.0, 0.0))
        _observe(stall, 100.0, 100.0)
        assert stall.status == MotionStatus.STUCK
        assert stall.state.stall_counter == 1

    def test_recovers_to_walking(self):
        stall = StallRecovery()
        _observe(stall, 100.0, 100.0)
        stall.record_request(Point(4.0, 0.0))
        _observe(stall, 100.0, 100.0)
        assert stall.is_stuck

        stall.record_request(Point(0.0, 4.0))
        _observe(stall, 100.0, 104.0)
        assert stall.status == MotionStatus.WALKING
        assert stall.state.stall_counter == 0
        assert stall.escape_point(Point(100.0, 104.0)) is None

    def test_non_finite_position_is_skipped(self):
        stall = StallRecovery()
        _observe(stall, 100.0, 100.0)
        _observe(stall, math.nan, 100.0)
        assert len(stall.state.positions) == 1


class TestEscape:
    """Tests for escape directions."""

    def _stuck(self, stall, ticks):
        _observe(stall, 100.0, 100.0)
        for _ in range(ticks):
            stall.record_request(Point(4.0, 0.0))
            _observe(stall, 100.0, 100.0)

    def test_first_escape_is_perpendicular(self):
        stall = StallRecovery()
        self._stuck(stall, 1)
        escape = stall.state.escape
        assert escape.x == pytest.approx(0.0, abs=1e-12)
        assert escape.y == pytest.approx(1.0)
        assert stall.escape_point(Point(100.0, 100.0)) == Point(100.0, 100.0) + escape * ESCAPE_DISTANCE

    def test_second_escape_is_opposite(self):
        stall = StallRecovery()
        self._stuck(stall, 2)
        assert stall.state.escape.y == pytest.approx(-1.0)

    def test_later_escapes_are_seeded_random(self):
        """Random escapes are unit vectors and reproducible for a seed."""
        first = StallRecovery(seed=42)
        second = StallRecovery(seed=42)
        self._stuck(first, 4)
        self._stuck(second, 4)
        assert first.state.stall_counter == 4
        assert first.state.escape == second.state.escape
        assert first.state.escape.length() == pytest.approx(1.0)

    def test_zero_request_escapes_randomly(self):
        """Pushed around while standing: no perpendicular exists, pick a random way out."""
        stall = StallRecovery(seed=1)
        _observe(stall, 100.0, 100.0)
        stall.record_request(Point(0.0, 0.0))
        _observe(stall, 110.0, 100.0)
        assert stall.is_stuck
        assert stall.state.escape.length() == pytest.approx(1.0)

    def test_shared_state_is_continued(self):
        state = MotionState()
        StallRecovery(state=state).record_request(Point(1.0, 2.0))
        assert state.requested_velocity == Point(1.0, 2.0)
