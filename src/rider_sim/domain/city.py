# rider_sim/domain/city.py
import logging
from dataclasses import dataclass

import numpy as np

from rider_sim.domain.entities.geography import (
    CongestionLevel,
    Direction,
    Intersection,
    LightState,
    Position,
    Road,
    TrafficLight,
)
from rider_sim.domain.entities.hazard import Hazard, HazardSeverity, HazardType
from rider_sim.domain.entities.profile import RiderProfile, RiderType
from rider_sim.domain.entities.rider import Rider
from rider_sim.domain.errors import IntersectionNotFound, RoadNotFound
from rider_sim.domain.hazards import HazardRegistry
from rider_sim.domain.mechanics.profiles import generate_rider_profile, sample_rider_type
from rider_sim.domain.mechanics.routing import (
    BreadthFirstPlanner,
    RiderRoutePlanner,
    breadth_first_route,
)
from rider_sim.sim.rng import RNGRegistry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiderShortcut:
    """Alley / cut-through outside the main road graph."""

    id: str
    start_intersection: str
    end_intersection: str
    distance: float  # meters
    time_saving: float  # seconds saved
    risk_level: float  # 0..1
    required_experience: float  # minimum experience_level


# ---------------- seed data ----------------------------

MOTORCYCLE_LANES = ("I00_I01_E", "I01_I02_E", "I10_I11_E")

SHORTCUTS = (
    RiderShortcut("SC_DIAGONAL_1", "I00", "I11", 250.0, 15.0, 0.3, 0.5),
    RiderShortcut("SC_ALLEY_1", "I01", "I12", 200.0, 10.0, 0.2, 0.3),
)

UNSAFE_AREAS = {
    "I02": 0.7,  # high crime
    "I10": 0.4,  # poor lighting
}


def seed_hazards() -> list[Hazard]:
    return [
        Hazard(
            id="H_POTHOLE_1",
            type=HazardType.POTHOLE,
            severity=HazardSeverity.MODERATE,
            position=Position(250.0, 100.0),
            affected_road="I00_I01_E",
            description="Large pothole on eastbound lane",
        ),
        Hazard(
            id="H_FLOOD_1",
            type=HazardType.FLOODED_AREA,
            severity=HazardSeverity.HIGH,
            position=Position(700.0, 250.0),
            affected_road="I02_I12_S",
            description="Flooded underpass",
        ),
        Hazard(
            id="H_ACCIDENT_1",
            type=HazardType.ACCIDENT_PRONE_SPOT,
            severity=HazardSeverity.MODERATE,
            position=Position(400.0, 400.0),
            affected_road="I11_I10_W",
            description="Blind curve - frequent accidents",
        ),
        Hazard(
            id="H_STEEP_1",
            type=HazardType.STEEP_INCLINE,
            severity=HazardSeverity.LOW,
            position=Position(100.0, 250.0),
            affected_road="I00_I10_S",
            description="Steep hill - dangerous for scooters",
        ),
        Hazard(
            id="H_DARK_1",
            type=HazardType.POOR_LIGHTING,
            severity=HazardSeverity.LOW,
            position=Position(250.0, 400.0),
            affected_road="I10_I11_E",
            description="Dark street - unsafe at night",
        ),
    ]


def intersection_id(row: int, col: int) -> str:
    return f"I{row}{col}"


class RiderCityMap:
    """
    Aggregate root of one simulation run: intersections, roads, riders and
    hazards, all held in id-keyed maps. Cross references are ids only.
    """

    def __init__(
        self,
        *,
        rows: int = 2,
        cols: int = 3,
        spacing: float = 300.0,
        origin: float = 100.0,
        lanes: int = 2,
        speed_limit: float = 50.0,
        signals: bool = False,
        green_s: float = 15.0,
        yellow_s: float = 3.0,
        red_s: float = 15.0,
        rng_registry: RNGRegistry | None = None,
        planner: RiderRoutePlanner | None = None,
        with_hazards: bool = True,
    ):
        self.intersections: dict[str, Intersection] = {}
        self.roads: dict[str, Road] = {}
        self.riders: dict[str, Rider] = {}
        self.hazards = HazardRegistry()

        # rider overlays
        self.motorcycle_lanes: set[str] = set()
        self.shortcuts: list[RiderShortcut] = []
        self.unsafe_areas: dict[str, float] = {}
        self.congestion: dict[str, CongestionLevel] = {}

        self.rng_registry = rng_registry or RNGRegistry(0)
        self.planner = planner or BreadthFirstPlanner()

        self._build_grid(rows, cols, spacing, origin, lanes, speed_limit)
        if signals:
            self._install_signals(green_s, yellow_s, red_s)
        self._build_overlays()
        if with_hazards:
            for h in seed_hazards():
                if h.affected_road in self.roads:
                    self.hazards.add_hazard(h)
        self.validate()

    # ---------------- construction -------------------------

    def _build_grid(self, rows, cols, spacing, origin, lanes, speed_limit) -> None:
        for row in range(rows):
            for col in range(cols):
                iid = intersection_id(row, col)
                pos = Position(col * spacing + origin, row * spacing + origin)
                self.intersections[iid] = Intersection(id=iid, position=pos, is_signalized=True)

        def pair(a: str, b: str, fwd: Direction):
            pa, pb = self.intersections[a].position, self.intersections[b].position
            back = fwd.opposite()
            for s, e, d, pts in ((a, b, fwd, (pa, pb)), (b, a, back, (pb, pa))):
                self.add_road(
                    Road(
                        id=f"{s}_{e}_{d.name[0]}",
                        start_intersection=s,
                        end_intersection=e,
                        length=spacing,
                        direction=d,
                        positions=pts,
                        lanes=lanes,
                        speed_limit=speed_limit,
                    )
                )

        for row in range(rows):
            for col in range(cols - 1):
                pair(intersection_id(row, col), intersection_id(row, col + 1), Direction.EAST)
        for col in range(cols):
            for row in range(rows - 1):
                pair(intersection_id(row, col), intersection_id(row + 1, col), Direction.SOUTH)

    def _install_signals(self, green_s: float, yellow_s: float, red_s: float) -> None:
        for inter in self.intersections.values():
            for d in Direction:
                green = d in (Direction.EAST, Direction.WEST)
                inter.traffic_lights[d] = TrafficLight(
                    id=f"{inter.id}_{d.name}",
                    intersection_id=inter.id,
                    direction=d,
                    state=LightState.GREEN if green else LightState.RED,
                    remaining_s=green_s if green else red_s,
                    green_s=green_s,
                    yellow_s=yellow_s,
                    red_s=red_s,
                )

    def _build_overlays(self) -> None:
        self.motorcycle_lanes.update(r for r in MOTORCYCLE_LANES if r in self.roads)
        self.shortcuts.extend(
            s
            for s in SHORTCUTS
            if s.start_intersection in self.intersections
            and s.end_intersection in self.intersections
        )
        self.unsafe_areas.update(
            {k: v for k, v in UNSAFE_AREAS.items() if k in self.intersections}
        )

    def add_road(self, road: Road) -> None:
        for iid in (road.start_intersection, road.end_intersection):
            if iid not in self.intersections:
                raise IntersectionNotFound(iid, f"endpoint of road {road.id}")
        self.roads[road.id] = road
        self.intersections[road.start_intersection].connect(road.id)

    def validate(self) -> None:
        """Referential integrity of roads and riders."""
        for road in self.roads.values():
            for iid in (road.start_intersection, road.end_intersection):
                if iid not in self.intersections:
                    raise IntersectionNotFound(iid, f"endpoint of road {road.id}")
        for rider in self.riders.values():
            self._check_rider(rider)

    def _check_rider(self, rider: Rider) -> None:
        if rider.current_road is not None and rider.current_road not in self.roads:
            raise RoadNotFound(rider.current_road, f"current road of rider {rider.id}")
        for road_id in rider.route:
            if road_id not in self.roads:
                raise RoadNotFound(road_id, f"route of rider {rider.id}")
        if rider.destination not in self.intersections:
            raise IntersectionNotFound(rider.destination, f"destination of rider {rider.id}")
        if not 0 <= rider.route_index <= len(rider.route):
            raise ValueError(f"rider {rider.id} route_index {rider.route_index} out of range")

    # ---------------- hazards -------------------------------

    def add_hazard(self, hazard: Hazard) -> None:
        if hazard.affected_road is not None and hazard.affected_road not in self.roads:
            raise RoadNotFound(hazard.affected_road, f"hazard {hazard.id}")
        self.hazards.add_hazard(hazard)

    def remove_hazard(self, hazard_id: str) -> None:
        self.hazards.remove_hazard(hazard_id)

    def path_risk(self, path: list[str], profile: RiderProfile, rider_type: RiderType) -> float:
        return self.hazards.calculate_path_risk(path, self.roads, profile, rider_type)

    # ---------------- overlays ------------------------------

    def is_motorcycle_lane(self, road_id: str) -> bool:
        return road_id in self.motorcycle_lanes

    def danger_level(self, intersection_id: str) -> float:
        return self.unsafe_areas.get(intersection_id, 0.0)

    def shortcuts_from(self, intersection_id: str, experience: float = 1.0) -> list[RiderShortcut]:
        return [
            s
            for s in self.shortcuts
            if s.start_intersection == intersection_id and s.required_experience <= experience
        ]

    # ---------------- routing -------------------------------

    def find_path(self, start: str, end: str) -> list[str]:
        return breadth_first_route(self.intersections, self.roads, start, end)

    def find_rider_path(
        self, start: str, end: str, profile: RiderProfile, rider_type: RiderType
    ) -> list[str]:
        return self.planner.plan(self.intersections, self.roads, start, end, profile, rider_type)

    def next_intersection(self, rider: Rider) -> str | None:
        """Where the rider's remaining plan starts from."""
        if rider.target_intersection is not None:
            return rider.target_intersection
        if rider.route_index < len(rider.route):
            return self.roads[rider.route[rider.route_index]].start_intersection
        return None

    # ---------------- riders --------------------------------

    def random_endpoints(self, rng: np.random.Generator) -> tuple[str, str]:
        ids = list(self.intersections)
        if len(ids) < 2:
            raise ValueError("need at least two intersections to pick a trip")
        a, b = rng.choice(len(ids), size=2, replace=False)
        return ids[int(a)], ids[int(b)]

    def add_rider(self, rider: Rider) -> None:
        self._check_rider(rider)
        self.riders[rider.id] = rider

    def remove_rider(self, rider_id: str) -> Rider | None:
        rider = self.riders.pop(rider_id, None)
        if rider is not None and rider.target_intersection in self.intersections:
            self.intersections[rider.target_intersection].drop_rider(rider_id)
        return rider

    def spawn_riders(self, count: int = 30) -> list[Rider]:
        self.riders.clear()
        # queued ids belong to the population being replaced
        for inter in self.intersections.values():
            inter.clear_queues()
        rng = self.rng_registry.stream("spawn")
        spawned = []
        for i in range(count):
            rider_type = sample_rider_type(rng)
            profile = generate_rider_profile(rider_type, rng)
            start, end = self.random_endpoints(rng)
            rid = f"R_{i}"
            rider = Rider(
                id=rid,
                type=rider_type,
                profile=profile,
                position=self.intersections[start].position,
                destination=end,
                route=self.find_path(start, end),
                rng=self.rng_registry.substream("cruise", rid),
            )
            self.add_rider(rider)
            spawned.append(rider)
        log.debug("spawned %d riders", len(spawned))
        return spawned

    def active_riders(self) -> list[Rider]:
        return [r for r in self.riders.values() if not r.has_reached_destination]

    def finished_riders(self) -> list[Rider]:
        return [r for r in self.riders.values() if r.has_reached_destination]
