# sim/engine.py
import time
from collections import Counter
from enum import Enum

from rider_sim.domain.city import RiderCityMap
from rider_sim.domain.entities.rider import Rider, RiderSnapshot
from rider_sim.domain.errors import IntersectionNotFound, RoadNotFound
from rider_sim.domain.mechanics.decisions import Neighbor
from rider_sim.domain.mechanics.traffic import classify, density
from rider_sim.sim.clock import SimClock
from rider_sim.sim.hooks import NoopHooks, TickHooks
from rider_sim.sim.metrics import RiderStatistics, summarize


class RiderStrategy(Enum):
    BASELINE = "baseline"  # plain fewest-hop routing
    RIDER_OS = "rider_os"  # rider-aware planner
    AURORA_AI = "aurora_ai"  # rider-aware planner + adaptive signals


class RiderSimulationEngine:
    """
    Fixed-step tick loop over a RiderCityMap.

    Riders are updated in ascending id order. With `snapshot=True` every rider
    sees its neighbours' prior-tick position/speed, so that order does not
    influence FOLLOW / OVERTAKE outcomes.
    """

    def __init__(
        self,
        city: RiderCityMap,
        *,
        clock: SimClock | None = None,
        hooks: TickHooks | None = None,
        strategy: RiderStrategy = RiderStrategy.BASELINE,
        snapshot: bool = True,
        respawn: bool = True,
        neighbor_radius: float = 100.0,
    ):
        self.city = city
        self.clock = clock or SimClock.starting_at(12.0)
        self.strategy = strategy
        self.snapshot = snapshot
        self.respawn_finished = respawn
        self.neighbor_radius = neighbor_radius
        self._hooks = hooks or NoopHooks()
        self._t = 0.0
        self._tick = 0
        self._running = False
        self.statistics: RiderStatistics = summarize(city.riders.values())

    @property
    def now(self) -> float:
        return self._t

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def time_of_day(self) -> float:
        return self.clock.hour_of_day(self._t)

    # ---------------- controls -----------------------------

    def start(self) -> None:
        self._running = True

    def pause(self) -> None:
        self._running = False

    def reset(self, count: int = 30) -> None:
        self._running = False
        self._t, self._tick = 0.0, 0
        spawned = self.city.spawn_riders(count)
        if self.strategy != RiderStrategy.BASELINE:
            # initial plan, not a reroute
            for rider in spawned:
                start = self.city.next_intersection(rider)
                if start is not None:
                    rider.route = self.plan_route(rider, start, rider.destination) or rider.route
        self.statistics = summarize(self.city.riders.values())

    def set_strategy(self, strategy: RiderStrategy) -> None:
        self.strategy = strategy
        self.reroute_all()

    def set_time_of_day(self, hour: float) -> None:
        self.clock = self.clock.with_hour_at(min(24.0, max(0.0, hour)), self._t)

    # ---------------- routing ------------------------------

    def plan_route(self, rider: Rider, start: str, end: str) -> list[str]:
        if self.strategy == RiderStrategy.BASELINE:
            return self.city.find_path(start, end)
        return self.city.find_rider_path(start, end, rider.profile, rider.type)

    def reroute_all(self) -> int:
        n = 0
        for rider in self.city.active_riders():
            if not rider.route:
                continue
            start = self.city.next_intersection(rider)
            if start is None:
                continue
            new_route = self.plan_route(rider, start, rider.destination)
            if new_route:
                rider.reroute(new_route)
                self._hooks.reroute(rider, t=self._t, strategy=self.strategy.value)
                n += 1
        return n

    # ---------------- tick loop ----------------------------

    def update(self, dt: float = 1.0 / 60.0) -> RiderStatistics | None:
        """UI-driven entry point: a no-op while paused."""
        if not self._running:
            return None
        return self.step(dt)

    def step(self, dt: float) -> RiderStatistics:
        if dt <= 0.0:
            raise ValueError(f"dt must be > 0, got {dt}")
        t0 = time.perf_counter()
        tick, city = self._tick, self.city
        riders = sorted(city.riders.values(), key=lambda r: r.id)
        self._hooks.tick_start(tick=tick, t=self._t, active=len(city.active_riders()))

        adaptive = self.strategy == RiderStrategy.AURORA_AI
        for inter in city.intersections.values():
            inter.update_lights(dt, adaptive=adaptive)

        tod = self.time_of_day
        views = {r.id: r.snapshot() for r in riders} if self.snapshot else None
        for rider in riders:
            if rider.has_reached_destination:
                continue
            neighbors = self._neighbors(rider, riders, views)
            try:
                decision = rider.update(
                    dt, city.roads, city.intersections, neighbors, city.hazards, tod
                )
            except (RoadNotFound, IntersectionNotFound) as exc:
                self._hooks.error(reason="integrity", rider_id=rider.id, error=str(exc), t=self._t)
                raise
            if decision is not None:
                self._hooks.decision(rider, decision, tick=tick, t=self._t)
            if rider.has_reached_destination:
                self._hooks.arrival(rider, tick=tick, t=self._t)

        self._t += dt
        self._tick += 1
        self._update_congestion()
        self.statistics = summarize(city.riders.values())
        if self.respawn_finished:
            self._respawn_completed()
        self._hooks.tick_end(
            tick=tick, t=self._t, stats=self.statistics, ms=(time.perf_counter() - t0) * 1000
        )
        return self.statistics

    def run(self, ticks: int, dt: float) -> int:
        t0 = time.perf_counter()
        self._hooks.run_start(ticks=ticks, dt=dt, riders=len(self.city.riders))
        self._running = True
        done = 0
        for _ in range(ticks):
            self.step(dt)
            done += 1
        self._running = False
        self._hooks.run_end(
            ticks=done, t=self._t, wall_ms=(time.perf_counter() - t0) * 1000
        )
        return done

    # ---------------- helpers ------------------------------

    def _neighbors(
        self,
        rider: Rider,
        riders: list[Rider],
        views: dict[str, RiderSnapshot] | None,
    ) -> list[Neighbor]:
        out: list[Neighbor] = []
        for other in riders:
            if other.id == rider.id:
                continue
            view = views[other.id] if views is not None else other
            if view.has_reached_destination:
                continue
            if rider.position.distance_to(view.position) < self.neighbor_radius:
                out.append(view)
        return out

    def _update_congestion(self) -> None:
        counts = Counter(r.current_road for r in self.city.active_riders() if r.current_road)
        for road_id, road in self.city.roads.items():
            self.city.congestion[road_id] = classify(density(road, counts.get(road_id, 0)))

    def _respawn_completed(self) -> None:
        rng = self.city.rng_registry.stream("respawn")
        for rider in self.city.finished_riders():
            start, end = self.city.random_endpoints(rng)
            route = self.plan_route(rider, start, end)
            rider.respawn(self.city.intersections[start].position, end, route)
            self._hooks.respawn(rider, tick=self._tick, t=self._t)
