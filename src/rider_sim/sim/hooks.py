from typing import Protocol

from rider_sim.domain.entities.decision import RiderDecision
from rider_sim.domain.entities.rider import Rider


class TickHooks(Protocol):
    def run_start(self, *, ticks, dt, riders): ...
    def run_end(self, *, ticks, t, wall_ms): ...
    def tick_start(self, *, tick, t, active): ...
    def tick_end(self, *, tick, t, stats, ms): ...
    def decision(self, rider: Rider, decision: RiderDecision, *, tick, t): ...
    def arrival(self, rider: Rider, *, tick, t): ...
    def respawn(self, rider: Rider, *, tick, t): ...
    def reroute(self, rider: Rider, *, t, strategy): ...
    def error(self, *, reason: str, **kw): ...


class NoopHooks:
    def run_start(self, **_):
        pass

    def run_end(self, **_):
        pass

    def tick_start(self, **_):
        pass

    def tick_end(self, **_):
        pass

    def decision(self, *_, **__):
        pass

    def arrival(self, *_, **__):
        pass

    def respawn(self, *_, **__):
        pass

    def reroute(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass
