# rider_sim/domain/entities/rider.py
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import numpy as np

from rider_sim.domain.entities.decision import RiderDecision
from rider_sim.domain.entities.geography import Intersection, Position, Road
from rider_sim.domain.entities.hazard import Hazard
from rider_sim.domain.entities.profile import RiderProfile, RiderState, RiderType
from rider_sim.domain.errors import IntersectionNotFound, RoadNotFound
from rider_sim.domain.hazards import HazardRegistry
from rider_sim.domain.mechanics.decisions import DecisionContext, Neighbor, apply_decision, decide

log = logging.getLogger(__name__)

HAZARD_SEARCH_RADIUS_M = 50.0
LOOKAHEAD_M = 50.0
KMH_TO_MPS = 1000.0 / 3600.0


@dataclass(frozen=True)
class RiderSnapshot:
    """Prior-tick view of a rider, handed to neighbours during a tick."""

    id: str
    current_road: str | None
    position: Position
    speed: float
    has_reached_destination: bool = False


@dataclass
class Rider:
    id: str
    type: RiderType
    profile: RiderProfile
    position: Position
    destination: str  # intersection id
    state: RiderState = field(default_factory=RiderState)
    current_road: str | None = None
    target_intersection: str | None = None
    speed: float = 0.0  # km/h

    # routing
    route: list[str] = field(default_factory=list)  # road ids
    route_index: int = 0
    distance_on_road: float = 0.0

    # behaviour
    is_waiting: bool = False
    wait_time: float = 0.0
    has_reached_destination: bool = False
    is_rerouted: bool = False
    last_decision: RiderDecision | None = None
    warnings: list[str] = field(default_factory=list)

    # statistics
    total_distance: float = 0.0
    total_time: float = 0.0
    near_miss_count: int = 0

    rng: np.random.Generator = field(
        default_factory=np.random.default_rng, repr=False, compare=False
    )

    def snapshot(self) -> RiderSnapshot:
        return RiderSnapshot(
            id=self.id,
            current_road=self.current_road,
            position=self.position,
            speed=self.speed,
            has_reached_destination=self.has_reached_destination,
        )

    # ---------------- per-tick update ----------------------

    def update(
        self,
        dt: float,
        roads: Mapping[str, Road],
        intersections: Mapping[str, Intersection],
        nearby_riders: Iterable[Neighbor],
        hazards: HazardRegistry,
        time_of_day: float = 12.0,
    ) -> RiderDecision | None:
        """Advance this rider by one tick; returns the decision taken, if any."""
        if self.has_reached_destination:
            return None

        self.total_time += dt
        self._update_fatigue(dt)
        self._update_battery(dt)

        if self.current_road is None and self.route_index < len(self.route):
            self._enter_road(self.route[self.route_index], roads, hazards)
        if self.current_road is None:
            return None  # no plan

        road = roads.get(self.current_road)
        if road is None:
            raise RoadNotFound(self.current_road, f"rider {self.id}")

        nearby_hazards = hazards.get_hazards_near(self.position, HAZARD_SEARCH_RADIUS_M)
        rider_ahead = self.find_rider_ahead(nearby_riders, road)

        intersection = None
        if self.target_intersection is not None:
            intersection = intersections.get(self.target_intersection)
            if intersection is None:
                raise IntersectionNotFound(self.target_intersection, f"rider {self.id}")
        can_pass = intersection.can_vehicle_pass(road.direction) if intersection else True

        ctx = DecisionContext(
            road=road,
            position=self.position,
            speed=self.speed,
            distance_on_road=self.distance_on_road,
            profile=self.profile,
            fatigue=self.state.current_fatigue,
            rider_ahead=rider_ahead,
            can_pass_intersection=can_pass,
            nearby_hazards=tuple(nearby_hazards),
            time_of_day=time_of_day,
        )
        decision = decide(ctx)
        self.last_decision = decision
        apply_decision(self, decision, dt, ctx, intersection)
        self.speed = max(0.0, self.speed)

        if self.speed > 0.0:
            moved = self.speed * dt * KMH_TO_MPS
            self.distance_on_road += moved
            self.total_distance += moved
            self.position = road.point_at(self.distance_on_road / road.length)

        if self.distance_on_road >= road.length:
            self._leave_road(road, intersection)

        self._update_stress(nearby_hazards, rider_ahead, can_pass, dt)
        return decision

    def find_rider_ahead(self, nearby: Iterable[Neighbor], road: Road) -> Neighbor | None:
        best, best_d = None, LOOKAHEAD_M
        for other in nearby:
            if other.id == self.id or other.current_road != road.id:
                continue
            if not road.is_position_ahead(self.position, other.position):
                continue
            d = self.position.distance_to(other.position)
            if d < best_d:
                best, best_d = other, d
        return best

    # ---------------- routing -------------------------------

    def reroute(self, new_route: list[str]) -> None:
        """Replace the remaining plan. `new_route` starts at the next intersection."""
        if self.current_road is not None:
            self.route = [self.current_road, *new_route]
        else:
            self.route = list(new_route)
        self.route_index = 0
        self.is_rerouted = True

    def respawn(self, position: Position, destination: str, route: list[str]) -> None:
        self.state = RiderState()
        self.position = position
        self.destination = destination
        self.route, self.route_index = list(route), 0
        self.current_road = self.target_intersection = None
        self.speed = self.distance_on_road = self.wait_time = 0.0
        self.total_distance = self.total_time = 0.0
        self.near_miss_count = 0
        self.is_waiting = self.is_rerouted = self.has_reached_destination = False
        self.last_decision = None
        self.warnings = []

    def _enter_road(self, road_id: str, roads: Mapping[str, Road], hazards: HazardRegistry):
        road = roads.get(road_id)
        if road is None:
            raise RoadNotFound(road_id, f"route of rider {self.id}")
        self.current_road = road_id
        self.target_intersection = road.end_intersection
        self.distance_on_road = 0.0
        self.is_waiting = False
        self.warnings = [hazards.generate_warning(h) for h in hazards.get_hazards_on_road(road_id)]
        if self.warnings:
            log.debug("rider %s entering %s: %s", self.id, road_id, "; ".join(self.warnings))

    def _leave_road(self, road: Road, intersection: Intersection | None) -> None:
        if intersection is not None:
            intersection.remove_from_queue(self.id, road.direction)
        self.route_index += 1
        self.current_road = None
        self.target_intersection = None
        self.is_waiting = False
        if self.route_index >= len(self.route):
            self.has_reached_destination = True

    # ---------------- internal state ------------------------

    def _update_fatigue(self, dt: float) -> None:
        self.state.add_fatigue(self.profile.fatigue_rate * dt)
        if self.state.current_fatigue > 0.8:
            self.speed *= 0.9

    def _update_battery(self, dt: float) -> None:
        if not self.type.is_electric:
            return
        self.state.add_battery_used(self.speed * dt * 0.001)
        if self.profile.battery_level - self.state.battery_used < 20.0:
            self.speed *= 0.7  # low battery

    def _update_stress(
        self,
        hazards: list[Hazard],
        rider_ahead: Neighbor | None,
        can_pass: bool,
        dt: float,
    ) -> None:
        delta = -0.01 * dt
        if hazards:
            delta += 0.05 * len(hazards)
        if rider_ahead is not None and not can_pass:
            delta += 0.02
        if self.is_waiting:
            delta += 0.01
        self.state.add_stress(delta)
