"""
Unit tests for target selection and weapon reach.
"""

import math

import pytest
from conftest import make_context, make_me, make_unit, make_world
from engine.tactics.targeting import TargetSelector, lowest_life
from engine.utils.geometry import Point
from world.model import Faction, UnitKind, UnitSubtype


@pytest.fixture
def selector(constants):
    return TargetSelector(constants)


def _select(selector, **groups):
    return selector.select(make_context(make_world(**groups)))


class TestSelection:
    """Tests for TargetSelector.select."""

    def test_single_building_is_selected(self, selector):
        """A lone hostile building in range is the target."""
        building = make_unit(UnitKind.BUILDING, 500.0, 100.0, life=200.0, max_life=200.0, attack_range=600.0)
        assert _select(selector, buildings=[building]) is building

    def test_lowest_life_in_category(self, selector):
        strong = make_unit(UnitKind.WIZARD, 300.0, 100.0, unit_id=2, life=50.0)
        weak = make_unit(UnitKind.WIZARD, 300.0, 300.0, unit_id=3, life=30.0)
        assert _select(selector, wizards=[strong, weak]) is weak

    def test_equal_life_is_deterministic(self, selector):
        """Ties go to the first unit in snapshot order, every time."""
        first = make_unit(UnitKind.WIZARD, 300.0, 100.0, unit_id=2, life=40.0)
        second = make_unit(UnitKind.WIZARD, 300.0, 300.0, unit_id=3, life=40.0)
        picks = {_select(selector, wizards=[first, second]).id for _ in range(5)}
        assert picks == {2}

    def test_melee_threat_overrides_everything(self, selector):
        """A melee minion about to hit us wins over a building."""
        building = make_unit(UnitKind.BUILDING, 500.0, 100.0, unit_id=2, life=10.0)
        # 50 attack range + 35 radius + 10 margin = 95
        melee = make_unit(UnitKind.MINION, 180.0, 100.0, unit_id=3, life=100.0)
        assert _select(selector, buildings=[building], minions=[melee]) is melee

    def test_distant_melee_minion_is_not_a_threat(self, selector):
        building = make_unit(UnitKind.BUILDING, 500.0, 100.0, unit_id=2)
        melee = make_unit(UnitKind.MINION, 300.0, 100.0, unit_id=3, life=5.0)
        assert _select(selector, buildings=[building], minions=[melee]) is building

    def test_building_beats_healthy_wizard(self, selector):
        building = make_unit(UnitKind.BUILDING, 500.0, 100.0, unit_id=2, life=500.0)
        wizard = make_unit(UnitKind.WIZARD, 300.0, 100.0, unit_id=3, life=100.0)
        assert _select(selector, buildings=[building], wizards=[wizard]) is building

    def test_killable_wizard_beats_building(self, selector):
        """A wizard one hit from death outranks a building."""
        building = make_unit(UnitKind.BUILDING, 500.0, 100.0, unit_id=2, life=5.0)
        wizard = make_unit(UnitKind.WIZARD, 300.0, 100.0, unit_id=3, life=12.0)
        assert _select(selector, buildings=[building], wizards=[wizard]) is wizard

    def test_ranged_minion_beats_melee_minion(self, selector):
        ranged = make_unit(UnitKind.MINION, 400.0, 100.0, unit_id=2, subtype=UnitSubtype.RANGED, life=100.0)
        melee = make_unit(UnitKind.MINION, 400.0, 300.0, unit_id=3, life=10.0)
        assert _select(selector, minions=[melee, ranged]) is ranged

    def test_ignores_allies_neutrals_and_trees(self, selector):
        ally = make_unit(UnitKind.WIZARD, 300.0, 100.0, faction=Faction.ALLY, unit_id=2)
        neutral = make_unit(UnitKind.MINION, 300.0, 300.0, faction=Faction.NEUTRAL, unit_id=3)
        tree = make_unit(UnitKind.TREE, 200.0, 200.0, unit_id=4)
        assert _select(selector, wizards=[ally], minions=[neutral], trees=[tree]) is None

    def test_out_of_engagement_range(self, selector):
        far = make_unit(UnitKind.WIZARD, 900.0, 100.0)
        assert _select(selector, wizards=[far]) is None

    def test_explicit_engagement_range(self, selector):
        wizard = make_unit(UnitKind.WIZARD, 400.0, 100.0)
        ctx = make_context(make_world(wizards=[wizard]))
        assert selector.select(ctx, engagement_range=200.0) is None
        assert selector.select(ctx, engagement_range=300.0) is wizard


class TestWeaponReach:
    """Tests for can_strike / can_shoot."""

    def test_can_strike_in_front(self, selector):
        me = make_me()
        target = make_unit(UnitKind.MINION, 160.0, 100.0, radius=25.0)
        assert selector.can_strike(me, target)

    def test_cannot_strike_beside(self, selector):
        me = make_me()
        target = make_unit(UnitKind.MINION, 100.0, 160.0, radius=25.0)
        assert not selector.can_strike(me, target)

    def test_strike_points_follow_facing(self, selector):
        me = make_me(angle=math.pi / 2)
        target = make_unit(UnitKind.MINION, 100.0, 160.0, radius=25.0)
        assert selector.can_strike(me, target)
        assert len(selector.strike_points(me)) == 20

    def test_can_shoot(self, selector):
        me = make_me()
        ahead = make_unit(UnitKind.WIZARD, 500.0, 100.0)
        off_axis = make_unit(UnitKind.WIZARD, 100.0 + 400.0 * math.cos(0.5), 100.0 + 400.0 * math.sin(0.5))
        too_far = make_unit(UnitKind.WIZARD, 700.0, 100.0, radius=25.0)
        assert selector.can_shoot(me, ahead)
        assert not selector.can_shoot(me, off_axis)
        assert not selector.can_shoot(me, too_far)

    def test_missile_parameters(self, selector):
        me = make_me()
        target = make_unit(UnitKind.BUILDING, 500.0, 100.0, radius=50.0)
        cast_angle, min_distance = selector.missile_parameters(me, target)
        assert cast_angle == pytest.approx(0.0)
        # 400 - 50 + missile radius 10
        assert min_distance == pytest.approx(360.0)


class TestLowestLife:
    """Tests for lowest_life."""

    def test_empty(self):
        assert lowest_life([]) is None

    def test_first_wins_ties(self):
        a = make_unit(UnitKind.MINION, 0.0, 0.0, unit_id=1, life=5.0)
        b = make_unit(UnitKind.MINION, 0.0, 0.0, unit_id=2, life=5.0)
        assert lowest_life([a, b]) is a
        assert lowest_life([b, a]) is b
