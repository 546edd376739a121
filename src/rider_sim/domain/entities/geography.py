import math
from dataclasses import dataclass, field
from enum import Enum


# Core geometry types used by the rider mechanics
@dataclass(frozen=True)
class Position:
    x: float  # meters in the city plane
    y: float

    def distance_to(self, other: "Position") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def angle_to(self, other: "Position") -> float:
        return math.atan2(other.y - self.y, other.x - self.x)

    def lerp(self, other: "Position", f: float) -> "Position":
        return Position(self.x + f * (other.x - self.x), self.y + f * (other.y - self.y))


class Direction(Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    def opposite(self) -> "Direction":
        return _OPPOSITE[self]

    def to_angle(self) -> float:
        """Heading in degrees, screen convention (y grows southwards)."""
        return _ANGLE[self]


_OPPOSITE = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}
_ANGLE = {Direction.NORTH: -90.0, Direction.SOUTH: 90.0, Direction.EAST: 0.0, Direction.WEST: 180.0}


class CongestionLevel(Enum):
    FREE = "free"
    MODERATE = "moderate"
    HEAVY = "heavy"
    GRIDLOCK = "gridlock"


@dataclass(frozen=True)
class Road:
    id: str
    start_intersection: str
    end_intersection: str
    length: float  # meters
    direction: Direction
    positions: tuple[Position, ...]  # waypoints, first = start, last = end
    lanes: int = 2
    speed_limit: float = 50.0  # km/h

    def __post_init__(self):
        if len(self.positions) < 2:
            raise ValueError(f"road {self.id} needs at least two positions")
        # lanes >= 1, length > 0
        object.__setattr__(self, "lanes", max(1, int(self.lanes)))
        object.__setattr__(self, "length", max(1e-6, float(self.length)))

    @property
    def start(self) -> Position:
        return self.positions[0]

    @property
    def end(self) -> Position:
        return self.positions[-1]

    def point_at(self, progress: float) -> Position:
        return self.start.lerp(self.end, min(1.0, max(0.0, progress)))

    def is_position_ahead(self, pos: Position, other: Position) -> bool:
        """True if `other` lies further along the road's heading than `pos`."""
        hx, hy = self.end.x - self.start.x, self.end.y - self.start.y
        return (other.x - pos.x) * hx + (other.y - pos.y) * hy > 0.0


class LightState(Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


@dataclass
class TrafficLight:
    id: str
    intersection_id: str
    direction: Direction  # approach this light controls
    state: LightState = LightState.RED
    remaining_s: float = 0.0
    green_s: float = 15.0
    yellow_s: float = 3.0
    red_s: float = 15.0

    def update(
        self,
        dt: float,
        *,
        queue_length: int = 0,
        predicted_congestion: float = 0.0,
        adaptive: bool = False,
    ) -> None:
        self.remaining_s -= dt
        if self.remaining_s <= 0.0:
            self._transition(queue_length, predicted_congestion, adaptive)

    def _transition(self, queue_length: int, predicted_congestion: float, adaptive: bool):
        if self.state == LightState.GREEN:
            self.state, self.remaining_s = LightState.YELLOW, self.yellow_s
        elif self.state == LightState.YELLOW:
            self.state, self.remaining_s = LightState.RED, self.red_s
        else:
            if adaptive:
                self.green_s = adaptive_green_time(queue_length, predicted_congestion)
            self.state, self.remaining_s = LightState.GREEN, self.green_s

    def can_pass(self) -> bool:
        return self.state == LightState.GREEN


def adaptive_green_time(queue_length: int, predicted_congestion: float) -> float:
    queue_s = min(20.0, max(0.0, queue_length * 0.5))
    congestion_s = min(15.0, max(0.0, predicted_congestion * 15.0))
    return min(45.0, max(8.0, 10.0 + queue_s + congestion_s))


@dataclass
class Intersection:
    id: str
    position: Position
    is_signalized: bool = True
    connected_roads: list[str] = field(default_factory=list)  # outgoing road ids
    traffic_lights: dict[Direction, TrafficLight] = field(default_factory=dict)
    queues: dict[Direction, list[str]] = field(
        default_factory=lambda: {d: [] for d in Direction}
    )

    def connect(self, road_id: str) -> None:
        if road_id not in self.connected_roads:
            self.connected_roads.append(road_id)

    # ---------------- signal admission -----------------

    def can_vehicle_pass(self, direction: Direction) -> bool:
        if not self.is_signalized:
            return True  # stop sign: always passes eventually
        light = self.traffic_lights.get(direction)
        return light.can_pass() if light else True

    def add_to_queue(self, rider_id: str, direction: Direction) -> None:
        q = self.queues.setdefault(direction, [])
        if rider_id not in q:
            q.append(rider_id)

    def remove_from_queue(self, rider_id: str, direction: Direction) -> None:
        q = self.queues.get(direction, [])
        if rider_id in q:
            q.remove(rider_id)

    def drop_rider(self, rider_id: str) -> None:
        for q in self.queues.values():
            if rider_id in q:
                q.remove(rider_id)

    def clear_queues(self) -> None:
        for q in self.queues.values():
            q.clear()

    def queue_length(self, direction: Direction) -> int:
        return len(self.queues.get(direction, ()))

    def total_queue_length(self) -> int:
        return sum(len(q) for q in self.queues.values())

    def average_wait_time(self) -> float:
        # rough estimate: 2.5 s per queued rider
        return self.total_queue_length() * 2.5

    def update_lights(
        self,
        dt: float,
        *,
        adaptive: bool = False,
        predictions: dict[Direction, float] | None = None,
    ) -> None:
        predictions = predictions or {}
        for direction, light in self.traffic_lights.items():
            light.update(
                dt,
                queue_length=self.queue_length(direction),
                predicted_congestion=predictions.get(direction, 0.0),
                adaptive=adaptive,
            )
