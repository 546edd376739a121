from enum import Enum


class RiderDecision(Enum):
    ACCELERATE = "accelerate"
    CRUISE = "cruise"
    FOLLOW = "follow"
    OVERTAKE = "overtake"
    STOP_AT_LIGHT = "stop_at_light"
    AVOID_HAZARD = "avoid_hazard"
    EMERGENCY_BRAKE = "emergency_brake"
    TAKE_SHORTCUT = "take_shortcut"

    @property
    def is_risky(self) -> bool:
        return self in (RiderDecision.OVERTAKE, RiderDecision.EMERGENCY_BRAKE)
