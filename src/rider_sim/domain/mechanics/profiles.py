from dataclasses import dataclass

import numpy as np

from rider_sim.domain.entities.profile import RiderProfile, RiderType


@dataclass(frozen=True)
class ProfileSpec:
    """Per-type distribution: (lo, hi) ranges are sampled uniformly."""

    risk_tolerance: tuple[float, float]
    preferred_speed: tuple[float, float]  # km/h
    battery_level: tuple[float, float]
    avoid_highways: bool
    rain_avoidance: bool
    shortcut_preference: float
    fatigue_rate: float
    night_riding: bool
    experience_level: float


PROFILE_SPECS: dict[RiderType, ProfileSpec] = {
    # aggressive: deliveries are on the clock
    RiderType.DELIVERY_RIDER: ProfileSpec(
        risk_tolerance=(0.6, 0.9),
        preferred_speed=(50.0, 65.0),
        battery_level=(100.0, 100.0),
        avoid_highways=False,
        rain_avoidance=False,
        shortcut_preference=0.9,
        fatigue_rate=0.015,
        night_riding=True,
        experience_level=0.7,
    ),
    RiderType.COMMUTER: ProfileSpec(
        risk_tolerance=(0.3, 0.6),
        preferred_speed=(40.0, 50.0),
        battery_level=(100.0, 100.0),
        avoid_highways=False,
        rain_avoidance=True,
        shortcut_preference=0.5,
        fatigue_rate=0.01,
        night_riding=True,
        experience_level=0.6,
    ),
    RiderType.E_BIKE: ProfileSpec(
        risk_tolerance=(0.1, 0.3),
        preferred_speed=(25.0, 30.0),
        battery_level=(60.0, 100.0),
        avoid_highways=True,
        rain_avoidance=True,
        shortcut_preference=0.3,
        fatigue_rate=0.02,
        night_riding=False,
        experience_level=0.4,
    ),
    RiderType.SCOOTER: ProfileSpec(
        risk_tolerance=(0.2, 0.4),
        preferred_speed=(30.0, 35.0),
        battery_level=(70.0, 100.0),
        avoid_highways=True,
        rain_avoidance=True,
        shortcut_preference=0.4,
        fatigue_rate=0.015,
        night_riding=False,
        experience_level=0.5,
    ),
    RiderType.PERSONAL_MOTORCYCLE: ProfileSpec(
        risk_tolerance=(0.3, 0.7),
        preferred_speed=(45.0, 65.0),
        battery_level=(100.0, 100.0),
        avoid_highways=False,
        rain_avoidance=True,
        shortcut_preference=0.6,
        fatigue_rate=0.008,
        night_riding=True,
        experience_level=0.7,
    ),
}


def _draw(rng: np.random.Generator, lo_hi: tuple[float, float]) -> float:
    lo, hi = lo_hi
    return lo if hi <= lo else float(rng.uniform(lo, hi))


def generate_rider_profile(rider_type: RiderType, rng: np.random.Generator) -> RiderProfile:
    spec = PROFILE_SPECS[rider_type]
    return RiderProfile(
        risk_tolerance=_draw(rng, spec.risk_tolerance),
        preferred_speed=_draw(rng, spec.preferred_speed),
        battery_level=_draw(rng, spec.battery_level),
        avoid_highways=spec.avoid_highways,
        rain_avoidance=spec.rain_avoidance,
        shortcut_preference=spec.shortcut_preference,
        fatigue_rate=spec.fatigue_rate,
        night_riding=spec.night_riding,
        experience_level=spec.experience_level,
    )


def sample_rider_type(rng: np.random.Generator) -> RiderType:
    types = list(RiderType)
    return types[int(rng.integers(0, len(types)))]
