# rider_sim/domain/hazards.py
import dataclasses
from collections.abc import Iterable, Mapping

from rider_sim.domain.entities.geography import Position, Road
from rider_sim.domain.entities.hazard import Hazard, HazardSeverity
from rider_sim.domain.entities.profile import RiderProfile, RiderType
from rider_sim.domain.errors import RoadNotFound

_SEVERITY_TEXT = {
    HazardSeverity.LOW: "Caution",
    HazardSeverity.MODERATE: "Warning",
    HazardSeverity.HIGH: "Danger",
    HazardSeverity.CRITICAL: "CRITICAL",
}


class HazardRegistry:
    """
    Spatial registry of hazard records keyed by id.
    Only active hazards are visible to queries; inactive ones stay registered
    so they can be switched back on (e.g. recurring flooding).
    """

    def __init__(self, hazards: Iterable[Hazard] = ()):
        self._hazards: dict[str, Hazard] = {}
        for h in hazards:
            self.add_hazard(h)

    def __len__(self) -> int:
        return len(self._hazards)

    def __contains__(self, hazard_id: str) -> bool:
        return hazard_id in self._hazards

    def get(self, hazard_id: str) -> Hazard | None:
        return self._hazards.get(hazard_id)

    # ------------- CRUD -------------------------------

    def add_hazard(self, hazard: Hazard) -> None:
        self._hazards[hazard.id] = hazard

    def remove_hazard(self, hazard_id: str) -> None:
        self._hazards.pop(hazard_id, None)

    def set_active(self, hazard_id: str, active: bool) -> Hazard | None:
        h = self._hazards.get(hazard_id)
        if h is None:
            return None
        h = dataclasses.replace(h, is_active=active)
        self._hazards[hazard_id] = h
        return h

    # ------------- queries ----------------------------

    def get_active_hazards(self) -> list[Hazard]:
        return [h for h in self._hazards.values() if h.is_active]

    def get_hazards_near(self, position: Position, radius: float = 100.0) -> list[Hazard]:
        return [h for h in self.get_active_hazards() if h.position.distance_to(position) <= radius]

    def get_hazards_on_road(self, road_id: str) -> list[Hazard]:
        return [h for h in self.get_active_hazards() if h.affected_road == road_id]

    def hazards_affecting(self, position: Position) -> list[Hazard]:
        return [h for h in self._hazards.values() if h.affects_position(position)]

    def calculate_path_risk(
        self,
        path: Iterable[str],
        roads: Mapping[str, Road],
        profile: RiderProfile,
        rider_type: RiderType,
    ) -> float:
        """Mean per-road risk over the roads of `path` that carry hazards.

        Hazard-free roads do not dilute the mean; 0.0 when no road has any.
        """
        total, hazardous = 0.0, 0
        for road_id in path:
            if road_id not in roads:
                raise RoadNotFound(road_id, "calculate_path_risk")
            on_road = self.get_hazards_on_road(road_id)
            if on_road:
                total += sum(h.get_risk_impact(profile, rider_type) for h in on_road)
                hazardous += 1
        return total / hazardous if hazardous > 0 else 0.0

    @staticmethod
    def generate_warning(hazard: Hazard) -> str:
        return f"{_SEVERITY_TEXT[hazard.severity]}: {hazard.description}"
