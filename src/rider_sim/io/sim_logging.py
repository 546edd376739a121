# io/sim_logging.py
import json
import logging
import sys

from rider_sim.domain.entities.decision import RiderDecision
from rider_sim.io.business_events import (
    HazardAvoidedBiz,
    NearMissBiz,
    RiderArrivedBiz,
    RiderReroutedBiz,
    RiderRespawnedBiz,
    RiskyManeuverBiz,
)
from rider_sim.io.recorder import Recorder
from rider_sim.sim.hooks import NoopHooks


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, default=str)


def json_logger(name="rider_sim", level="INFO", stream=None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(stream or sys.stdout)
        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class SimLogging(NoopHooks):
    """
    One place to shape and emit structured logs for both engine and business events.
    """

    # decisions worth an INFO line (and an analytics event)
    NOTABLE = {
        RiderDecision.OVERTAKE,
        RiderDecision.EMERGENCY_BRAKE,
        RiderDecision.AVOID_HAZARD,
    }

    def __init__(
        self,
        run_id: str = "local",
        clock=None,
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1000,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        self.run_id, self.clock, self.debug, self.sample_every = (
            run_id,
            clock,
            debug,
            max(1, sample_every),
        )
        self.recorder = recorder
        self.log = logger or json_logger(level=level)

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        if self.clock is not None and "t" in extra:
            payload["wall"] = self.clock.to_wall(extra["t"]).isoformat()
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    @staticmethod
    def _shape_rider(rider) -> dict:
        return {
            "rider_id": rider.id,
            "rider_type": rider.type.value,
            "road_id": rider.current_road,
            "speed": round(rider.speed, 3),
        }

    def _sampled(self, tick: int) -> bool:
        return self.debug and tick % self.sample_every == 0

    # --------------------------------------------------------

    # engine lifecycle

    def run_start(self, *, ticks: int, dt: float, riders: int):
        self._emit("INFO", "run_start", ticks=ticks, dt=dt, riders=riders)

    def run_end(self, *, ticks: int, **extra):
        self._emit("INFO", "run_end", ticks=ticks, **extra)

    def tick_start(self, *, tick: int, t: float, active: int):
        if self._sampled(tick):
            self._emit("DEBUG", "tick_start", tick=tick, t=t, active=active)

    def tick_end(self, *, tick: int, t: float, stats, ms: float):
        if self._sampled(tick):
            self._emit(
                "DEBUG",
                "tick_end",
                tick=tick,
                t=t,
                active=stats.active_riders,
                avg_speed=round(stats.average_speed, 3),
                near_misses=stats.total_near_misses,
                ms=round(ms, 3),
            )

    def decision(self, rider, decision: RiderDecision, *, tick: int, t: float):
        if decision in self.NOTABLE:
            self._emit("INFO", decision.value, t=t, tick=tick, **self._shape_rider(rider))
            self.biz(self._decision_event(rider, decision, tick=tick, t=t))
        elif self._sampled(tick):
            self._emit("DEBUG", decision.value, t=t, tick=tick, **self._shape_rider(rider))

    def arrival(self, rider, *, tick: int, t: float):
        self._emit(
            "INFO", "rider_arrived", t=t, tick=tick, destination=rider.destination,
            **self._shape_rider(rider),
        )
        self.biz(
            RiderArrivedBiz(
                run_id=self.run_id,
                t=t,
                tick=tick,
                name="RiderArrived",
                rider_id=rider.id,
                rider_type=rider.type.value,
                destination=rider.destination,
                total_distance_m=rider.total_distance,
                total_time_s=rider.total_time,
                safety_score=rider.state.safety_score,
            )
        )

    def respawn(self, rider, *, tick: int, t: float):
        if self.debug:
            self._emit("DEBUG", "rider_respawned", t=t, tick=tick, rider_id=rider.id)
        self.biz(
            RiderRespawnedBiz(
                run_id=self.run_id,
                t=t,
                tick=tick,
                name="RiderRespawned",
                rider_id=rider.id,
                destination=rider.destination,
                route_len=len(rider.route),
            )
        )

    def reroute(self, rider, *, t: float, strategy: str):
        self._emit("INFO", "rider_rerouted", t=t, rider_id=rider.id, strategy=strategy)
        self.biz(
            RiderReroutedBiz(
                run_id=self.run_id,
                t=t,
                tick=-1,
                name="RiderRerouted",
                rider_id=rider.id,
                strategy=strategy,
                route_len=len(rider.route),
            )
        )

    def error(self, *, reason: str, **extra):
        self._emit("ERROR", "sim_error", reason=reason, **extra)

    # ------------- Business Event Reporting --------------------------

    def _decision_event(self, rider, decision: RiderDecision, *, tick: int, t: float):
        base = dict(run_id=self.run_id, t=t, tick=tick, rider_id=rider.id, road_id=rider.current_road)
        if decision == RiderDecision.EMERGENCY_BRAKE:
            return NearMissBiz(
                **base, name="NearMiss", speed_kmh=rider.speed, near_misses=rider.near_miss_count
            )
        if decision == RiderDecision.OVERTAKE:
            return RiskyManeuverBiz(
                **base, name="RiskyManeuver", safety_score=rider.state.safety_score
            )
        return HazardAvoidedBiz(
            **base, name="HazardAvoided", hazards_avoided=rider.state.hazards_avoided
        )

    def biz(self, ev):
        if self.recorder:
            self.recorder.emit(ev)
