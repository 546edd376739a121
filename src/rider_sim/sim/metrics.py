from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from rider_sim.domain.entities.profile import RiderType
from rider_sim.domain.entities.rider import Rider


@dataclass(frozen=True)
class RiderStatistics:
    total_riders: int = 0
    active_riders: int = 0
    average_speed: float = 0.0
    average_wait_time: float = 0.0
    total_hazards_avoided: int = 0
    total_near_misses: int = 0
    average_safety_score: float = 100.0
    average_stress: float = 0.0
    average_fatigue: float = 0.0
    time_saved_vs_baseline: float = 0.0
    risk_reduction: float = 0.0
    by_type: dict[RiderType, int] = field(default_factory=dict)


def _mean(xs: list[float]) -> float:
    return sum(xs) / len(xs) if xs else 0.0


def risk_reduction(active: list[Rider]) -> float:
    if not active:
        return 0.0
    avoided_rate = sum(r.state.hazards_avoided for r in active) / len(active)
    avg_safety = _mean([r.state.safety_score for r in active])
    return min(100.0, max(0.0, avoided_rate * 10.0 + avg_safety / 10.0))


def summarize(riders: Iterable[Rider]) -> RiderStatistics:
    """Population statistics; averages are over riders still en route."""
    riders = list(riders)
    active = [r for r in riders if not r.has_reached_destination]
    if not active:
        return RiderStatistics(total_riders=len(riders))
    return RiderStatistics(
        total_riders=len(riders),
        active_riders=len(active),
        average_speed=_mean([r.speed for r in active]),
        average_wait_time=_mean([r.wait_time for r in active]),
        total_hazards_avoided=sum(r.state.hazards_avoided for r in active),
        total_near_misses=sum(r.near_miss_count for r in active),
        average_safety_score=_mean([r.state.safety_score for r in active]),
        average_stress=_mean([r.state.stress for r in active]),
        average_fatigue=_mean([r.state.current_fatigue for r in active]),
        time_saved_vs_baseline=sum(r.state.time_saved for r in active),
        risk_reduction=risk_reduction(active),
        by_type=dict(Counter(r.type for r in riders)),
    )
