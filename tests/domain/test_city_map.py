# tests/domain/test_city_map.py
from itertools import permutations

import numpy as np
import pytest

from rider_sim.domain.city import RiderCityMap
from rider_sim.domain.entities.decision import RiderDecision
from rider_sim.domain.entities.geography import Direction, Intersection, LightState, Position, Road
from rider_sim.domain.entities.hazard import Hazard, HazardSeverity, HazardType
from rider_sim.domain.entities.profile import RiderProfile, RiderType
from rider_sim.domain.entities.rider import Rider
from rider_sim.domain.errors import IntersectionNotFound, RoadNotFound
from rider_sim.domain.mechanics.profiles import PROFILE_SPECS
from rider_sim.domain.mechanics.routing import BreadthFirstPlanner, RiderRoutePlanner
from rider_sim.sim.rng import RNGRegistry


@pytest.fixture
def city():
    return RiderCityMap()


def assert_valid_path(city, path, start, end):
    assert path, f"no path {start}->{end}"
    roads = [city.roads[rid] for rid in path]
    assert roads[0].start_intersection == start
    assert roads[-1].end_intersection == end
    for a, b in zip(roads, roads[1:]):
        assert a.end_intersection == b.start_intersection


# ---------- graph ----------


def test_default_grid_shape(city):
    assert sorted(city.intersections) == ["I00", "I01", "I02", "I10", "I11", "I12"]
    assert len(city.roads) == 14
    assert city.intersections["I12"].position == Position(700.0, 400.0)
    road = city.roads["I01_I11_S"]
    assert road.direction is Direction.SOUTH and road.length == 300.0
    for road in city.roads.values():
        assert road.start_intersection in city.intersections
        assert road.end_intersection in city.intersections
        assert road.id in city.intersections[road.start_intersection].connected_roads


def test_fewest_hop_path(city):
    path = city.find_path("I00", "I12")
    assert len(path) == 3
    assert_valid_path(city, path, "I00", "I12")
    assert city.find_path("I00", "I01") == ["I00_I01_E"]


def test_path_to_self_is_empty(city):
    assert city.find_path("I00", "I00") == []


def test_every_pair_is_connected(city):
    for a, b in permutations(city.intersections, 2):
        assert_valid_path(city, city.find_path(a, b), a, b)


def test_unreachable_is_empty(city):
    city.intersections["X"] = Intersection("X", Position(-500.0, -500.0))
    assert city.find_path("I00", "X") == []
    assert city.find_path("X", "I00") == []


def test_unknown_endpoint_raises(city):
    with pytest.raises(IntersectionNotFound):
        city.find_path("I00", "I99")


def test_add_road_requires_known_intersections(city):
    r = Road("I00_Z_E", "I00", "Z", 10.0, Direction.EAST, (Position(0, 0), Position(10, 0)))
    with pytest.raises(IntersectionNotFound):
        city.add_road(r)
    assert "I00_Z_E" not in city.roads


def test_signals_are_opt_in():
    plain = RiderCityMap()
    assert all(not i.traffic_lights for i in plain.intersections.values())

    lit = RiderCityMap(signals=True, green_s=20.0)
    inter = lit.intersections["I11"]
    assert inter.traffic_lights[Direction.EAST].state is LightState.GREEN
    assert inter.traffic_lights[Direction.EAST].remaining_s == 20.0
    assert inter.traffic_lights[Direction.NORTH].state is LightState.RED
    assert inter.can_vehicle_pass(Direction.WEST)
    assert not inter.can_vehicle_pass(Direction.SOUTH)


# ---------- overlays & hazards ----------


def test_overlays(city):
    assert city.is_motorcycle_lane("I00_I01_E")
    assert not city.is_motorcycle_lane("I01_I00_W")
    assert city.danger_level("I02") == pytest.approx(0.7)
    assert city.danger_level("I11") == 0.0
    assert city.shortcuts_from("I00", experience=0.4) == []
    assert [s.id for s in city.shortcuts_from("I00", experience=0.5)] == ["SC_DIAGONAL_1"]
    assert [s.id for s in city.shortcuts_from("I01")] == ["SC_ALLEY_1"]


def test_overlays_are_filtered_to_the_built_grid():
    small = RiderCityMap(rows=1, cols=2)
    assert small.motorcycle_lanes == {"I00_I01_E"}
    assert small.shortcuts == []
    assert small.unsafe_areas == {}
    assert [h.id for h in small.hazards.get_active_hazards()] == ["H_POTHOLE_1"]


def test_seeded_hazards(city):
    assert len(city.hazards) == 5
    assert {h.affected_road for h in city.hazards.get_active_hazards()} <= set(city.roads)
    assert len(RiderCityMap(with_hazards=False).hazards) == 0


def test_add_and_remove_hazard(city):
    h = Hazard("H_NEW", HazardType.LOOSE_GRAVEL, HazardSeverity.LOW, Position(0, 0), "I11_I12_E")
    city.add_hazard(h)
    assert [x.id for x in city.hazards.get_hazards_on_road("I11_I12_E")] == ["H_NEW"]
    city.remove_hazard("H_NEW")
    city.remove_hazard("H_NEW")
    assert city.hazards.get_hazards_on_road("I11_I12_E") == []

    with pytest.raises(RoadNotFound):
        city.add_hazard(Hazard("H_BAD", HazardType.POTHOLE, HazardSeverity.LOW, Position(0, 0), "nope"))


# ---------- riders ----------


def test_spawn_is_deterministic_per_seed():
    def fingerprint(seed):
        city = RiderCityMap(rng_registry=RNGRegistry(seed))
        return [(r.id, r.type, r.profile, r.destination, tuple(r.route)) for r in city.spawn_riders(20)]

    assert fingerprint(3) == fingerprint(3)
    assert fingerprint(3) != fingerprint(4)


def test_spawned_riders_are_well_formed():
    city = RiderCityMap(rng_registry=RNGRegistry(9))
    riders = city.spawn_riders(50)
    assert len(city.riders) == 50
    assert [r.id for r in riders] == [f"R_{i}" for i in range(50)]
    for r in riders:
        start = city.roads[r.route[0]].start_intersection
        assert r.position == city.intersections[start].position
        assert_valid_path(city, r.route, start, r.destination)

        spec = PROFILE_SPECS[r.type]
        p = r.profile
        assert spec.risk_tolerance[0] <= p.risk_tolerance <= spec.risk_tolerance[1]
        assert spec.preferred_speed[0] <= p.preferred_speed <= spec.preferred_speed[1]
        assert spec.battery_level[0] <= p.battery_level <= spec.battery_level[1]
        assert p.night_riding == spec.night_riding


def test_spawn_replaces_previous_population():
    city = RiderCityMap(rng_registry=RNGRegistry(1))
    city.spawn_riders(10)
    city.spawn_riders(4)
    assert sorted(city.riders) == ["R_0", "R_1", "R_2", "R_3"]
    assert len(city.active_riders()) == 4 and city.finished_riders() == []


def stopped_at_red(city, rid="R_0"):
    # east/west start green, so the southbound approach to I10 is red
    road = city.roads["I00_I10_S"]
    rider = Rider(
        id=rid,
        type=RiderType.COMMUTER,
        profile=RiderProfile(fatigue_rate=0.0),
        position=road.point_at(0.9),
        destination="I10",
        current_road=road.id,
        target_intersection="I10",
        route=[road.id],
        distance_on_road=270.0,
        speed=20.0,
        rng=np.random.default_rng(0),
    )
    city.add_rider(rider)
    decision = rider.update(0.5, city.roads, city.intersections, [], city.hazards, 12.0)
    assert decision is RiderDecision.STOP_AT_LIGHT
    assert city.intersections["I10"].queue_length(Direction.SOUTH) == 1
    return rider


def test_respawn_clears_signal_queues():
    city = RiderCityMap(signals=True, with_hazards=False)
    stopped_at_red(city)
    city.spawn_riders(0)
    assert city.riders == {}
    assert city.intersections["I10"].queue_length(Direction.SOUTH) == 0
    assert all(i.total_queue_length() == 0 for i in city.intersections.values())


def test_removed_rider_leaves_its_queue():
    city = RiderCityMap(signals=True, with_hazards=False)
    stopped_at_red(city, "R_9")
    assert city.remove_rider("R_9").id == "R_9"
    assert city.intersections["I10"].queue_length(Direction.SOUTH) == 0
    assert city.remove_rider("R_9") is None


def test_add_rider_validates_references(city):
    base = dict(type=RiderType.COMMUTER, profile=RiderProfile(), position=Position(0, 0))
    with pytest.raises(RoadNotFound):
        city.add_rider(Rider("a", destination="I01", route=["nope"], **base))
    with pytest.raises(IntersectionNotFound):
        city.add_rider(Rider("b", destination="I99", **base))
    with pytest.raises(ValueError):
        city.add_rider(Rider("c", destination="I01", route=["I00_I01_E"], route_index=5, **base))
    ok = Rider("d", destination="I01", route=["I00_I01_E"], **base)
    city.add_rider(ok)
    assert city.riders["d"] is ok
    assert city.remove_rider("d") is ok
    assert city.remove_rider("d") is None


def test_next_intersection(city):
    r = Rider("a", RiderType.COMMUTER, RiderProfile(), Position(0, 0), "I12",
              route=["I00_I01_E", "I01_I02_E"])
    assert city.next_intersection(r) == "I00"
    r.target_intersection = "I01"
    assert city.next_intersection(r) == "I01"
    r.target_intersection, r.route_index = None, 2
    assert city.next_intersection(r) is None


def test_random_endpoints_are_distinct(city):
    rng = np.random.default_rng(0)
    for _ in range(50):
        a, b = city.random_endpoints(rng)
        assert a != b and a in city.intersections and b in city.intersections


# ---------- planners ----------


def test_default_rider_path_matches_fewest_hop(city):
    p = RiderProfile()
    for a, b in permutations(city.intersections, 2):
        assert city.find_rider_path(a, b, p, RiderType.SCOOTER) == city.find_path(a, b)


def test_custom_planner_is_used():
    class Recording:
        def __init__(self):
            self.calls = []

        def plan(self, intersections, roads, start, end, profile, rider_type):
            self.calls.append((start, end, rider_type))
            return BreadthFirstPlanner().plan(intersections, roads, start, end, profile, rider_type)

    planner = Recording()
    assert isinstance(planner, RiderRoutePlanner)
    city = RiderCityMap(planner=planner)
    path = city.find_rider_path("I00", "I02", RiderProfile(), RiderType.E_BIKE)
    assert path == ["I00_I01_E", "I01_I02_E"]
    assert planner.calls == [("I00", "I02", RiderType.E_BIKE)]
