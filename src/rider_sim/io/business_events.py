# rider_sim/io/business_events.py

from dataclasses import dataclass


# Base type for analytics events (not part of the tick loop!)
@dataclass
class BizEvent:
    run_id: str
    t: float  # simulation time
    tick: int  # tick index (for total ordering)
    name: str  # stable event name


@dataclass
class RiderArrivedBiz(BizEvent):
    rider_id: str
    rider_type: str
    destination: str
    total_distance_m: float
    total_time_s: float
    safety_score: float


@dataclass
class NearMissBiz(BizEvent):
    rider_id: str
    road_id: str | None
    speed_kmh: float
    near_misses: int


@dataclass
class RiskyManeuverBiz(BizEvent):
    rider_id: str
    road_id: str | None
    safety_score: float


@dataclass
class HazardAvoidedBiz(BizEvent):
    rider_id: str
    road_id: str | None
    hazards_avoided: int


@dataclass
class RiderRespawnedBiz(BizEvent):
    rider_id: str
    destination: str
    route_len: int


@dataclass
class RiderReroutedBiz(BizEvent):
    rider_id: str
    strategy: str
    route_len: int
