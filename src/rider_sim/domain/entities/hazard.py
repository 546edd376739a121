import time
from dataclasses import dataclass, field
from enum import Enum

from rider_sim.domain.entities.geography import Position
from rider_sim.domain.entities.profile import RiderProfile, RiderType


class HazardType(Enum):
    POTHOLE = "pothole"
    FLOODED_AREA = "flooded_area"
    ACCIDENT_PRONE_SPOT = "accident_prone_spot"
    STEEP_INCLINE = "steep_incline"  # dangerous for scooters / e-bikes
    POOR_LIGHTING = "poor_lighting"  # unsafe at night
    NARROW_PASSAGE = "narrow_passage"
    LOOSE_GRAVEL = "loose_gravel"
    CONSTRUCTION_ZONE = "construction_zone"
    HIGH_CRIME_AREA = "high_crime_area"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    HazardType.POTHOLE: "Pothole",
    HazardType.FLOODED_AREA: "Flooding",
    HazardType.ACCIDENT_PRONE_SPOT: "Accident-prone spot",
    HazardType.STEEP_INCLINE: "Steep incline",
    HazardType.POOR_LIGHTING: "Poor lighting",
    HazardType.NARROW_PASSAGE: "Narrow passage",
    HazardType.LOOSE_GRAVEL: "Loose gravel",
    HazardType.CONSTRUCTION_ZONE: "Construction zone",
    HazardType.HIGH_CRIME_AREA: "High-crime area",
}


class HazardSeverity(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


_BASE_RISK = {
    HazardSeverity.LOW: 0.2,
    HazardSeverity.MODERATE: 0.5,
    HazardSeverity.HIGH: 0.8,
    HazardSeverity.CRITICAL: 1.0,
}

_SPEED_FACTOR = {
    HazardSeverity.LOW: 0.9,
    HazardSeverity.MODERATE: 0.7,
    HazardSeverity.HIGH: 0.5,
    HazardSeverity.CRITICAL: 0.2,
}


@dataclass(frozen=True)
class Hazard:
    id: str
    type: HazardType
    severity: HazardSeverity
    position: Position
    affected_road: str | None = None
    description: str = ""
    radius: float = 20.0  # meters
    is_active: bool = True
    reported_at: float = field(default_factory=time.time, compare=False)
    verified_reports: int = 1

    def _type_multiplier(self, profile: RiderProfile, rider_type: RiderType) -> float:
        if self.type == HazardType.STEEP_INCLINE and rider_type in (
            RiderType.SCOOTER,
            RiderType.E_BIKE,
        ):
            return 1.5
        if self.type == HazardType.POOR_LIGHTING and not profile.night_riding:
            return 1.3
        if self.type == HazardType.FLOODED_AREA and rider_type == RiderType.E_BIKE:
            return 1.4
        return 1.0

    def get_risk_impact(self, profile: RiderProfile, rider_type: RiderType) -> float:
        """Perceived risk in [0, 1] for a rider with this profile and vehicle."""
        base = _BASE_RISK[self.severity]
        adjustment = 1.0 - profile.risk_tolerance * 0.3
        risk = base * self._type_multiplier(profile, rider_type) * adjustment
        return min(1.0, max(0.0, risk))

    def get_speed_reduction(self) -> float:
        return _SPEED_FACTOR[self.severity]

    def affects_position(self, pos: Position) -> bool:
        return self.is_active and self.position.distance_to(pos) <= self.radius
