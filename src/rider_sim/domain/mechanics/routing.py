from collections import deque
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from rider_sim.domain.entities.geography import Intersection, Road
from rider_sim.domain.entities.profile import RiderProfile, RiderType
from rider_sim.domain.errors import IntersectionNotFound


def breadth_first_route(
    intersections: Mapping[str, Intersection],
    roads: Mapping[str, Road],
    start: str,
    end: str,
) -> list[str]:
    """
    Fewest-hop road sequence from `start` to `end` over the directed graph.
    Ties go to the first path found in `connected_roads` order, so the result
    is not necessarily the geometrically shortest. Empty when start == end or
    end is unreachable.
    """
    for node in (start, end):
        if node not in intersections:
            raise IntersectionNotFound(node, "route endpoint")
    if start == end:
        return []

    parent: dict[str, tuple[str, str] | None] = {start: None}  # node -> (prev node, road)
    q = deque([start])
    while q:
        current = q.popleft()
        if current == end:
            break
        for road_id in intersections[current].connected_roads:
            road = roads.get(road_id)
            if road is None:
                continue
            nxt = road.end_intersection
            if nxt not in parent:
                parent[nxt] = (current, road_id)
                q.append(nxt)

    if end not in parent:
        return []
    path: list[str] = []
    node = end
    while parent[node] is not None:
        prev, road_id = parent[node]
        path.append(road_id)
        node = prev
    path.reverse()
    return path


@runtime_checkable
class RiderRoutePlanner(Protocol):
    """
    Responsibilities:
      • Produce a road-id route between two intersections for a given rider.
      • May weigh hazards, shortcuts or rider preferences; must return [] when
        no route exists.
    """

    def plan(
        self,
        intersections: Mapping[str, Intersection],
        roads: Mapping[str, Road],
        start: str,
        end: str,
        profile: RiderProfile,
        rider_type: RiderType,
    ) -> list[str]: ...


class BreadthFirstPlanner(RiderRoutePlanner):
    """Profile-agnostic: same answer as `breadth_first_route`."""

    def plan(self, intersections, roads, start, end, profile, rider_type):
        return breadth_first_route(intersections, roads, start, end)
