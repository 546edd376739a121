from dataclasses import dataclass
from enum import Enum


def clamp(v: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, v))


class RiderType(Enum):
    DELIVERY_RIDER = "delivery_rider"
    COMMUTER = "commuter"
    E_BIKE = "e_bike"
    SCOOTER = "scooter"
    PERSONAL_MOTORCYCLE = "personal_motorcycle"

    @property
    def is_electric(self) -> bool:
        return self in (RiderType.E_BIKE, RiderType.SCOOTER)


@dataclass(frozen=True)
class RiderProfile:
    risk_tolerance: float = 0.5  # 0 cautious .. 1 aggressive
    preferred_speed: float = 40.0  # km/h
    battery_level: float = 100.0  # % at departure, e-vehicles only
    avoid_highways: bool = False
    rain_avoidance: bool = True
    shortcut_preference: float = 0.7  # 0 main roads .. 1 aggressive shortcuts
    fatigue_rate: float = 0.01  # per second
    night_riding: bool = True
    experience_level: float = 0.8  # 0 novice .. 1 expert

    def __post_init__(self):
        object.__setattr__(self, "risk_tolerance", clamp(self.risk_tolerance, 0.0, 1.0))
        object.__setattr__(self, "battery_level", clamp(self.battery_level, 0.0, 100.0))
        object.__setattr__(
            self, "shortcut_preference", clamp(self.shortcut_preference, 0.0, 1.0)
        )
        object.__setattr__(self, "experience_level", clamp(self.experience_level, 0.0, 1.0))
        object.__setattr__(self, "preferred_speed", max(0.0, self.preferred_speed))
        object.__setattr__(self, "fatigue_rate", max(0.0, self.fatigue_rate))


@dataclass
class RiderState:
    current_fatigue: float = 0.0  # 0 fresh .. 1 exhausted
    stress: float = 0.0  # 0 calm .. 1 very stressed
    battery_used: float = 0.0
    time_saved: float = 0.0
    hazards_avoided: int = 0
    risky_maneuvers: int = 0
    safety_score: float = 100.0  # 0..100

    def add_fatigue(self, delta: float) -> None:
        self.current_fatigue = clamp(self.current_fatigue + delta, 0.0, 1.0)

    def add_stress(self, delta: float) -> None:
        self.stress = clamp(self.stress + delta, 0.0, 1.0)

    def add_battery_used(self, delta: float) -> None:
        self.battery_used = min(100.0, self.battery_used + delta)

    def record_risky_maneuver(self, penalty: float = 2.0) -> None:
        self.risky_maneuvers += 1
        self.safety_score = clamp(self.safety_score - penalty, 0.0, 100.0)
