from rider_sim.domain.entities.geography import CongestionLevel, Road

_SPEED_FACTOR = {
    CongestionLevel.FREE: 1.0,
    CongestionLevel.MODERATE: 0.7,
    CongestionLevel.HEAVY: 0.4,
    CongestionLevel.GRIDLOCK: 0.1,
}


def density(road: Road, rider_count: int) -> float:
    """Riders per km per lane."""
    return rider_count / (road.length / 1000.0) / road.lanes


def classify(density_per_km_lane: float) -> CongestionLevel:
    if density_per_km_lane < 10:
        return CongestionLevel.FREE
    if density_per_km_lane < 25:
        return CongestionLevel.MODERATE
    if density_per_km_lane < 45:
        return CongestionLevel.HEAVY
    return CongestionLevel.GRIDLOCK


def congestion_speed(road: Road, level: CongestionLevel) -> float:
    return road.speed_limit * _SPEED_FACTOR[level]
