from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class SimModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    seed: int
    dt: float = 0.1  # seconds per tick
    ticks: int = 600
    start_hour: float = 12.0  # time of day at t=0
    time_scale: float = 60.0  # wall seconds per sim second (1 s -> 1 min of day)

    @field_validator("dt", "time_scale")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("start_hour")
    @classmethod
    def _hour(cls, v: float) -> float:
        if not 0.0 <= v < 24.0:
            raise ValueError("start_hour must be in [0, 24)")
        return v


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


class CityModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    rows: int = Field(2, ge=1, le=10)
    cols: int = Field(3, ge=1, le=10)
    spacing_m: float = Field(300.0, gt=0)
    origin_m: float = 100.0
    lanes: int = Field(2, ge=1)
    speed_limit_kmh: float = Field(50.0, gt=0)
    hazards: bool = True

    # signals
    signals: bool = False
    signal_green_s: float = Field(15.0, gt=0)
    signal_yellow_s: float = Field(3.0, gt=0)
    signal_red_s: float = Field(15.0, gt=0)

    @model_validator(mode="after")
    def _at_least_two(self):
        if self.rows * self.cols < 2:
            raise ValueError("city needs at least two intersections")
        return self


class RidersModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    count: int = Field(30, ge=0)
    respawn: bool = True
    neighbor_radius_m: float = Field(100.0, gt=0)


class EngineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    strategy: Literal["baseline", "rider_os", "aurora_ai"] = "baseline"
    snapshot: bool = True


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    run_id: str
    sim: SimModel
    log: LogModel = LogModel()
    city: CityModel = CityModel()
    riders: RidersModel = RidersModel()
    engine: EngineModel = EngineModel()
