# rider_sim/app/build.py
import sys
from collections.abc import Mapping
from dataclasses import dataclass

from rider_sim.config.models import ScenarioModel
from rider_sim.domain.city import RiderCityMap
from rider_sim.io.recorder import JsonlSink, Recorder, Sink
from rider_sim.io.sim_logging import SimLogging, json_logger  # JSON logs
from rider_sim.sim.clock import SimClock
from rider_sim.sim.engine import RiderSimulationEngine, RiderStrategy
from rider_sim.sim.hooks import NoopHooks
from rider_sim.sim.rng import RNGRegistry


@dataclass
class App:
    engine: RiderSimulationEngine
    city: RiderCityMap
    clock: SimClock
    rng: RNGRegistry
    recorder: Recorder | None
    model: ScenarioModel

    def run(self) -> int:
        return self.engine.run(self.model.sim.ticks, self.model.sim.dt)


def build(
    cfg: ScenarioModel | Mapping,
    *,
    use_logging: bool = True,
    sinks: tuple[Sink, ...] = (),
    stream=None,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)

    # 1) Clock & RNG
    clock = SimClock.starting_at(model.sim.start_hour, time_scale=model.sim.time_scale)
    rng_registry = RNGRegistry(model.sim.seed, scenario=model.name)

    # 2) Hooks: recorder for analytics + structured logs, both on `stream` (stdout by default)
    recorder = None
    if use_logging:
        out = stream or sys.stdout
        recorder = Recorder(*(sinks or (JsonlSink(out),)))
        hooks = SimLogging(
            run_id=model.run_id,
            logger=json_logger(level=model.log.level, stream=out),
            recorder=recorder,
            clock=clock,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
    else:
        hooks = NoopHooks()

    # 3) City (graph, overlays, seed hazards)
    c = model.city
    city = RiderCityMap(
        rows=c.rows,
        cols=c.cols,
        spacing=c.spacing_m,
        origin=c.origin_m,
        lanes=c.lanes,
        speed_limit=c.speed_limit_kmh,
        signals=c.signals,
        green_s=c.signal_green_s,
        yellow_s=c.signal_yellow_s,
        red_s=c.signal_red_s,
        rng_registry=rng_registry,
        with_hazards=c.hazards,
    )

    # 4) Engine + initial population
    engine = RiderSimulationEngine(
        city,
        clock=clock,
        hooks=hooks,
        strategy=RiderStrategy(model.engine.strategy),
        snapshot=model.engine.snapshot,
        respawn=model.riders.respawn,
        neighbor_radius=model.riders.neighbor_radius_m,
    )
    engine.reset(model.riders.count)

    return App(engine, city, clock, rng_registry, recorder, model)
