"""
Rider micro-decisions.

`decide` is a pure function of the tick's DecisionContext; every mutation
happens in `apply_decision`. Priority order (first match wins):

    critical hazard nearby  -> AVOID_HAZARD
    red light, >=80% along  -> STOP_AT_LIGHT
    rider ahead too close   -> EMERGENCY_BRAKE | OVERTAKE | FOLLOW
    otherwise               -> ACCELERATE | CRUISE
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from rider_sim.domain.entities.decision import RiderDecision
from rider_sim.domain.entities.geography import Intersection, Position, Road
from rider_sim.domain.entities.hazard import Hazard, HazardSeverity
from rider_sim.domain.entities.profile import RiderProfile

if TYPE_CHECKING:
    from rider_sim.domain.entities.rider import Rider

BASE_FOLLOWING_M = 10.0
STOP_LINE_FRACTION = 0.8
NIGHT_SPEED_FACTOR = 0.7
SPEED_LIMIT_TOLERANCE = 1.1

ACCEL_KMH_S = 30.0
OVERTAKE_ACCEL_KMH_S = 40.0
LIGHT_DECEL_KMH_S = 25.0
EMERGENCY_DECEL_KMH_S = 50.0


class Neighbor(Protocol):
    """Anything with a rider's observable kinematics (a Rider or a RiderSnapshot)."""

    id: str
    current_road: str | None
    position: Position
    speed: float


@dataclass(frozen=True)
class DecisionContext:
    road: Road
    position: Position
    speed: float  # km/h
    distance_on_road: float  # meters
    profile: RiderProfile
    fatigue: float
    rider_ahead: Neighbor | None
    can_pass_intersection: bool
    nearby_hazards: tuple[Hazard, ...]
    time_of_day: float  # hours, 0..24


def is_night(time_of_day: float) -> bool:
    return time_of_day < 6.0 or time_of_day > 20.0


def safe_following_distance(speed: float, profile: RiderProfile, fatigue: float) -> float:
    speed_factor = speed / 50.0
    experience_factor = 1.0 - profile.experience_level * 0.3
    fatigue_factor = 1.0 + fatigue
    return BASE_FOLLOWING_M * speed_factor * experience_factor * fatigue_factor


def target_speed(profile: RiderProfile, road: Road, time_of_day: float) -> float:
    night = NIGHT_SPEED_FACTOR if is_night(time_of_day) and not profile.night_riding else 1.0
    return min(profile.preferred_speed * night, road.speed_limit * SPEED_LIMIT_TOLERANCE)


def can_overtake(profile: RiderProfile, road: Road, fatigue: float) -> bool:
    return profile.risk_tolerance > 0.6 and road.lanes >= 2 and fatigue < 0.7


def decide(ctx: DecisionContext) -> RiderDecision:
    if any(h.severity == HazardSeverity.CRITICAL for h in ctx.nearby_hazards):
        return RiderDecision.AVOID_HAZARD

    if not ctx.can_pass_intersection and (
        ctx.distance_on_road >= ctx.road.length * STOP_LINE_FRACTION
    ):
        return RiderDecision.STOP_AT_LIGHT

    if ctx.rider_ahead is not None:
        gap = ctx.position.distance_to(ctx.rider_ahead.position)
        safe = safe_following_distance(ctx.speed, ctx.profile, ctx.fatigue)
        if gap < safe * 0.5:
            return RiderDecision.EMERGENCY_BRAKE
        if gap < safe:
            if can_overtake(ctx.profile, ctx.road, ctx.fatigue):
                return RiderDecision.OVERTAKE
            return RiderDecision.FOLLOW

    if ctx.speed < target_speed(ctx.profile, ctx.road, ctx.time_of_day):
        return RiderDecision.ACCELERATE
    return RiderDecision.CRUISE


def apply_decision(
    rider: Rider,
    decision: RiderDecision,
    dt: float,
    ctx: DecisionContext,
    intersection: Intersection | None = None,
) -> None:
    st = rider.state
    if decision == RiderDecision.ACCELERATE:
        accel = ACCEL_KMH_S * (1.0 - st.current_fatigue)
        cap = target_speed(rider.profile, ctx.road, ctx.time_of_day)
        rider.speed = min(rider.speed + accel * dt, cap)
        rider.is_waiting = False
    elif decision == RiderDecision.CRUISE:
        # human variance around the cruising speed
        base = target_speed(rider.profile, ctx.road, ctx.time_of_day)
        rider.speed = base * float(rider.rng.uniform(0.95, 1.05))
    elif decision == RiderDecision.FOLLOW:
        if ctx.rider_ahead is not None:
            rider.speed = min(rider.speed, ctx.rider_ahead.speed * 0.9)
            rider.is_waiting = True
            rider.wait_time += dt
    elif decision == RiderDecision.OVERTAKE:
        rider.speed = min(
            rider.speed + OVERTAKE_ACCEL_KMH_S * dt, rider.profile.preferred_speed * 1.2
        )
        st.record_risky_maneuver()
    elif decision == RiderDecision.STOP_AT_LIGHT:
        rider.speed = max(0.0, rider.speed - LIGHT_DECEL_KMH_S * dt)
        rider.is_waiting = True
        rider.wait_time += dt
        if intersection is not None:
            intersection.add_to_queue(rider.id, ctx.road.direction)
    elif decision == RiderDecision.AVOID_HAZARD:
        rider.speed *= 0.6
        st.add_stress(0.05)
        st.hazards_avoided += 1
    elif decision == RiderDecision.EMERGENCY_BRAKE:
        rider.speed = max(0.0, rider.speed - EMERGENCY_DECEL_KMH_S * dt)
        st.add_stress(0.1)
        rider.near_miss_count += 1
    elif decision == RiderDecision.TAKE_SHORTCUT:
        # the routing layer owns the actual detour
        st.time_saved += 0.5
