"""
Unit tests for the steering controller.
"""

import math

import pytest
from conftest import make_me, make_unit
from engine.tactics.steering import STOP, SteeringController
from engine.utils.geometry import Point
from world.model import GameConstants, StatusType, UnitKind

HASTENED = frozenset([StatusType.HASTENED])


@pytest.fixture
def steering(constants):
    return SteeringController(constants)


def _target_at(me, angle, distance=400.0):
    return me.position + Point.from_polar(distance, me.angle + angle)


class TestEnvelopeFit:
    """Tests for fitting desired directions into the speed envelope."""

    def test_straight_ahead_is_full_forward(self, steering):
        """Dead ahead: forward max, no strafe."""
        me = make_me()
        move = steering.steer(me, Point(500.0, 100.0))
        assert move.speed == pytest.approx(4.0, abs=1e-3)
        assert move.strafe_speed == pytest.approx(0.0, abs=1e-9)

    def test_straight_behind_is_full_backward(self, steering):
        me = make_me(500.0, 500.0)
        move = steering.steer(me, Point(100.0, 500.0))
        assert move.speed == pytest.approx(-3.0, abs=1e-3)
        assert move.strafe_speed == pytest.approx(0.0, abs=1e-9)

    def test_pure_strafe(self, steering):
        """A target directly to the right is reached by strafing."""
        me = make_me(500.0, 500.0)
        move = steering.steer(me, Point(500.0, 900.0))
        assert move.strafe_speed == pytest.approx(3.0, abs=1e-3)
        assert move.speed == pytest.approx(0.0, abs=1e-9)

    def test_close_target_is_not_overshot(self, steering):
        me = make_me()
        move = steering.steer(me, Point(102.0, 100.0))
        assert move.speed == pytest.approx(2.0)

    def test_hastened_scales_envelope(self, steering):
        me = make_me(statuses=HASTENED)
        move = steering.steer(me, Point(500.0, 100.0))
        assert move.speed == pytest.approx(4.0 * 1.3, abs=1e-3)

    @pytest.mark.parametrize("statuses", [frozenset(), HASTENED])
    @pytest.mark.parametrize("facing", [0.0, 1.0, -2.5])
    def test_never_leaves_envelope(self, steering, statuses, facing):
        """For every direction the command stays inside the diamond."""
        me = make_me(500.0, 500.0, angle=facing, statuses=statuses)
        env = steering.envelope(me)
        for i in range(73):
            angle = -math.pi + i * (2 * math.pi / 72)
            move = steering.fit_to_envelope(me, Point.from_polar(400.0, me.angle + angle))
            axis = env.forward if move.speed >= 0 else env.backward
            assert abs(move.speed) <= axis + 1e-9
            assert abs(move.strafe_speed) <= env.strafe + 1e-9
            assert abs(move.speed) / axis + abs(move.strafe_speed) / env.strafe <= 1.0 + 1e-6

    def test_direction_is_preserved(self, steering):
        """The fitted velocity points where we asked."""
        me = make_me(500.0, 500.0, angle=0.3)
        desired = Point.from_polar(400.0, 1.1)
        velocity = steering.fit_to_envelope(me, desired).world_velocity(me.angle)
        assert velocity.angle() == pytest.approx(desired.angle(), abs=1e-6)

    def test_degenerate_targets_stop(self, steering):
        me = make_me()
        assert steering.steer(me, None) == STOP
        assert steering.steer(me, me.position) == STOP
        assert steering.steer(me, Point(math.nan, 0.0)) == STOP

    @pytest.mark.parametrize("facing", [math.nan, math.inf])
    def test_non_finite_facing_stops(self, steering, facing):
        me = make_me(angle=facing)
        assert steering.steer(me, Point(500.0, 100.0)) == STOP
        assert steering.turn_to(me, Point(500.0, 100.0)) == 0.0


class TestTurning:
    """Tests for turn_to."""

    def test_small_turn_is_exact(self, steering):
        me = make_me()
        target = _target_at(me, 0.05)
        assert steering.turn_to(me, target) == pytest.approx(0.05)

    def test_turn_is_clamped(self, steering):
        me = make_me()
        assert steering.turn_to(me, _target_at(me, 2.0)) == pytest.approx(math.pi / 30)
        assert steering.turn_to(me, _target_at(me, -2.0)) == pytest.approx(-math.pi / 30)

    def test_hastened_turns_faster(self, steering):
        me = make_me(statuses=HASTENED)
        assert steering.turn_to(me, _target_at(me, 2.0)) == pytest.approx(math.pi / 30 * 1.5)


class TestAvoidance:
    """Tests for collision avoidance."""

    def test_rotates_around_unit_ahead(self, constants):
        me = make_me()
        tree = make_unit(UnitKind.TREE, 180.0, 100.0)
        move = SteeringController(constants).steer(me, Point(500.0, 100.0), obstacles=[tree])
        # First clear heading is 60 degrees to the right
        assert move.strafe_speed > 0.0
        assert move.speed > 0.0
        velocity = move.world_velocity(me.angle)
        assert velocity.angle() == pytest.approx(math.pi / 3, abs=1e-6)

    def test_disabled_goes_straight(self, constants):
        me = make_me()
        tree = make_unit(UnitKind.TREE, 180.0, 100.0)
        move = SteeringController(constants, avoidance=False).steer(me, Point(500.0, 100.0), obstacles=[tree])
        assert move.speed == pytest.approx(4.0, abs=1e-3)

    def test_custom_constants(self):
        """Speeds come from the match constants."""
        fast = GameConstants(wizard_forward_speed=10.0)
        move = SteeringController(fast).steer(make_me(), Point(500.0, 100.0))
        assert move.speed == pytest.approx(10.0, abs=1e-3)
