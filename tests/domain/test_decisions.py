# tests/domain/test_decisions.py
from dataclasses import replace

import numpy as np
import pytest

from rider_sim.domain.entities.decision import RiderDecision
from rider_sim.domain.entities.geography import Direction, Intersection, Position, Road
from rider_sim.domain.entities.hazard import Hazard, HazardSeverity, HazardType
from rider_sim.domain.entities.profile import RiderProfile, RiderType
from rider_sim.domain.entities.rider import Rider, RiderSnapshot
from rider_sim.domain.mechanics.decisions import (
    DecisionContext,
    apply_decision,
    decide,
    safe_following_distance,
    target_speed,
)

ROAD = Road(
    id="A_B_E",
    start_intersection="A",
    end_intersection="B",
    length=300.0,
    direction=Direction.EAST,
    positions=(Position(0.0, 0.0), Position(300.0, 0.0)),
    lanes=2,
    speed_limit=50.0,
)


def ahead(gap: float, speed: float = 10.0, x: float = 100.0) -> RiderSnapshot:
    return RiderSnapshot(id="other", current_road=ROAD.id, position=Position(x + gap, 0.0), speed=speed)


def ctx(**kw) -> DecisionContext:
    base = dict(
        road=ROAD,
        position=Position(100.0, 0.0),
        speed=30.0,
        distance_on_road=100.0,
        profile=RiderProfile(),
        fatigue=0.0,
        rider_ahead=None,
        can_pass_intersection=True,
        nearby_hazards=(),
        time_of_day=12.0,
    )
    base.update(kw)
    return DecisionContext(**base)


def critical() -> Hazard:
    return Hazard("H", HazardType.ACCIDENT_PRONE_SPOT, HazardSeverity.CRITICAL, Position(120.0, 0.0))


# safe distance at 40 km/h, experience 0.8, no fatigue: 10 * 0.8 * 0.76 = 6.08 m


def test_safe_following_distance_formula():
    assert safe_following_distance(40.0, RiderProfile(), 0.0) == pytest.approx(6.08)
    p = RiderProfile(experience_level=0.5)
    assert safe_following_distance(50.0, p, 0.5) == pytest.approx(12.75)
    assert safe_following_distance(0.0, p, 1.0) == 0.0


def test_critical_hazard_beats_everything():
    c = ctx(
        nearby_hazards=(critical(),),
        can_pass_intersection=False,
        distance_on_road=290.0,
        rider_ahead=ahead(1.0),
    )
    assert decide(c) is RiderDecision.AVOID_HAZARD


def test_non_critical_hazards_do_not_trigger_avoidance():
    h = replace(critical(), severity=HazardSeverity.HIGH)
    assert decide(ctx(nearby_hazards=(h,))) is RiderDecision.ACCELERATE


def test_red_light_stop_line():
    assert decide(ctx(can_pass_intersection=False, distance_on_road=240.0)) is RiderDecision.STOP_AT_LIGHT
    # still short of the stop line: keep riding
    assert decide(ctx(can_pass_intersection=False, distance_on_road=200.0)) is RiderDecision.ACCELERATE
    assert decide(ctx(can_pass_intersection=True, distance_on_road=290.0)) is RiderDecision.ACCELERATE


def test_emergency_brake_when_far_inside_safe_distance():
    assert decide(ctx(speed=40.0, rider_ahead=ahead(2.0))) is RiderDecision.EMERGENCY_BRAKE


def test_overtake_or_follow_inside_safe_distance():
    bold = RiderProfile(risk_tolerance=0.7)
    assert decide(ctx(speed=40.0, rider_ahead=ahead(5.0), profile=bold)) is RiderDecision.OVERTAKE
    assert decide(ctx(speed=40.0, rider_ahead=ahead(5.0))) is RiderDecision.FOLLOW

    one_lane = replace(ROAD, lanes=1)
    c = ctx(speed=40.0, road=one_lane, rider_ahead=ahead(5.0), profile=bold)
    assert decide(c) is RiderDecision.FOLLOW
    # fatigue widens the gap (10.34 m) and rules out overtaking
    c = ctx(speed=40.0, rider_ahead=ahead(6.0), profile=bold, fatigue=0.7)
    assert decide(c) is RiderDecision.FOLLOW


def test_rider_ahead_beyond_safe_distance_is_ignored():
    assert decide(ctx(speed=40.0, rider_ahead=ahead(7.0))) is RiderDecision.CRUISE


def test_accelerate_then_cruise_around_target():
    assert decide(ctx(speed=30.0)) is RiderDecision.ACCELERATE
    assert decide(ctx(speed=40.0)) is RiderDecision.CRUISE
    assert decide(ctx(speed=45.0)) is RiderDecision.CRUISE


def test_night_slows_riders_who_avoid_night_riding():
    day_only = RiderProfile(night_riding=False)
    assert target_speed(day_only, ROAD, 22.0) == pytest.approx(28.0)
    assert target_speed(day_only, ROAD, 12.0) == pytest.approx(40.0)
    assert target_speed(RiderProfile(), ROAD, 22.0) == pytest.approx(40.0)
    assert decide(ctx(speed=30.0, profile=day_only, time_of_day=22.0)) is RiderDecision.CRUISE
    assert decide(ctx(speed=30.0, profile=day_only, time_of_day=5.0)) is RiderDecision.CRUISE
    assert decide(ctx(speed=30.0, profile=day_only, time_of_day=12.0)) is RiderDecision.ACCELERATE


def test_target_speed_is_capped_by_limit_tolerance():
    fast = RiderProfile(preferred_speed=80.0)
    slow_road = replace(ROAD, speed_limit=40.0)
    assert target_speed(fast, slow_road, 12.0) == pytest.approx(44.0)


def test_decide_does_not_touch_inputs():
    c = ctx(nearby_hazards=(critical(),))
    before = replace(c)
    for _ in range(3):
        assert decide(c) is RiderDecision.AVOID_HAZARD
    assert c == before


# ---------- effects ----------


def make_rider(speed=30.0, **profile) -> Rider:
    return Rider(
        id="R_1",
        type=RiderType.COMMUTER,
        profile=RiderProfile(**profile),
        position=Position(100.0, 0.0),
        destination="B",
        current_road=ROAD.id,
        speed=speed,
        rng=np.random.default_rng(5),
    )


def test_accelerate_adds_speed_and_respects_target():
    r = make_rider(speed=0.0)
    r.is_waiting = True
    apply_decision(r, RiderDecision.ACCELERATE, 0.1, ctx(speed=0.0))
    assert r.speed == pytest.approx(3.0)
    assert not r.is_waiting

    r = make_rider(speed=39.5)
    apply_decision(r, RiderDecision.ACCELERATE, 1.0, ctx(speed=39.5))
    assert r.speed == pytest.approx(40.0)

    tired = make_rider(speed=0.0)
    tired.state.current_fatigue = 0.5
    apply_decision(tired, RiderDecision.ACCELERATE, 0.1, ctx(speed=0.0))
    assert tired.speed == pytest.approx(1.5)


def test_cruise_jitters_within_five_percent_reproducibly():
    a, b = make_rider(), make_rider()
    apply_decision(a, RiderDecision.CRUISE, 0.1, ctx())
    apply_decision(b, RiderDecision.CRUISE, 0.1, ctx())
    assert a.speed == b.speed
    assert 40.0 * 0.95 <= a.speed <= 40.0 * 1.05


def test_follow_matches_leader():
    r = make_rider(speed=30.0)
    c = ctx(rider_ahead=ahead(5.0, speed=20.0))
    apply_decision(r, RiderDecision.FOLLOW, 0.5, c)
    assert r.speed == pytest.approx(18.0)
    assert r.is_waiting and r.wait_time == pytest.approx(0.5)

    slow = make_rider(speed=10.0)
    apply_decision(slow, RiderDecision.FOLLOW, 0.5, c)
    assert slow.speed == pytest.approx(10.0)


def test_overtake_is_a_risky_maneuver():
    r = make_rider(speed=30.0)
    apply_decision(r, RiderDecision.OVERTAKE, 0.1, ctx())
    assert r.speed == pytest.approx(34.0)
    assert r.state.risky_maneuvers == 1
    assert r.state.safety_score == pytest.approx(98.0)

    capped = make_rider(speed=47.0)
    apply_decision(capped, RiderDecision.OVERTAKE, 1.0, ctx())
    assert capped.speed == pytest.approx(48.0)  # 1.2 x preferred


def test_stop_at_light_queues_on_the_approach():
    r = make_rider(speed=10.0)
    inter = Intersection("B", Position(300.0, 0.0))
    apply_decision(r, RiderDecision.STOP_AT_LIGHT, 0.1, ctx(), inter)
    assert r.speed == pytest.approx(7.5)
    assert r.is_waiting
    assert inter.queues[Direction.EAST] == ["R_1"]

    apply_decision(r, RiderDecision.STOP_AT_LIGHT, 1.0, ctx(), inter)
    assert r.speed == 0.0
    assert inter.queue_length(Direction.EAST) == 1


def test_avoid_hazard_counts_and_slows():
    r = make_rider(speed=30.0)
    apply_decision(r, RiderDecision.AVOID_HAZARD, 0.1, ctx())
    assert r.speed == pytest.approx(18.0)
    assert r.state.stress == pytest.approx(0.05)
    assert r.state.hazards_avoided == 1


def test_emergency_brake_is_a_near_miss():
    r = make_rider(speed=3.0)
    apply_decision(r, RiderDecision.EMERGENCY_BRAKE, 0.1, ctx())
    assert r.speed == 0.0
    assert r.state.stress == pytest.approx(0.1)
    assert r.near_miss_count == 1


def test_shortcut_books_time_saved_only():
    r = make_rider(speed=30.0)
    apply_decision(r, RiderDecision.TAKE_SHORTCUT, 0.1, ctx())
    assert r.speed == 30.0
    assert r.state.time_saved == pytest.approx(0.5)


def test_risky_flags():
    assert {d for d in RiderDecision if d.is_risky} == {
        RiderDecision.OVERTAKE,
        RiderDecision.EMERGENCY_BRAKE,
    }
