import pytest

from rider_sim.domain.entities.geography import CongestionLevel, Direction, Position, Road
from rider_sim.domain.mechanics.traffic import classify, congestion_speed, density

# 500 m, two lanes: one rider == 1 rider/km/lane
ROAD = Road("A_B_E", "A", "B", 500.0, Direction.EAST, (Position(0, 0), Position(500, 0)), speed_limit=50.0)


def test_density_per_km_per_lane():
    assert density(ROAD, 0) == 0.0
    assert density(ROAD, 5) == pytest.approx(5.0)


@pytest.mark.parametrize(
    "d, level",
    [
        (0.0, CongestionLevel.FREE),
        (9.9, CongestionLevel.FREE),
        (10.0, CongestionLevel.MODERATE),
        (24.9, CongestionLevel.MODERATE),
        (25.0, CongestionLevel.HEAVY),
        (45.0, CongestionLevel.GRIDLOCK),
    ],
)
def test_classification_thresholds(d, level):
    assert classify(d) is level


def test_congested_speed():
    got = [congestion_speed(ROAD, lvl) for lvl in CongestionLevel]
    assert got == pytest.approx([50.0, 35.0, 20.0, 5.0])
