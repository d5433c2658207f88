from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class SimModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    epoch: tuple[int, int, int, int, int, int] = (2025, 1, 1, 0, 0, 0)
    seed: int = 123


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


# ----------------- PLACEMENT ---------------------


class PlacementModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    min_gap_m: float = Field(15.0, ge=0)
    attempts_per_target: int = Field(50, ge=1)
    min_road_length_m: float = Field(200.0, ge=0)
    min_candidates: int = Field(6, ge=1)  # below this many long roads, sample from all roads


# ----------------- SEVERITY ---------------------


class SeverityBernoulliModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["bernoulli"] = "bernoulli"
    p_high: float = Field(0.4, ge=0.0, le=1.0)
    high_radius_m: float = 120.0
    medium_radius_m: float = 100.0

    @field_validator("high_radius_m", "medium_radius_m")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v


SeverityUnion = Annotated[SeverityBernoulliModel, Field(discriminator="kind")]


# ----------------- TARGET COUNT ---------------------


class TargetCountViewportModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["viewport_area"] = "viewport_area"
    px_per_node: float = Field(8000.0, gt=0)
    min_count: int = Field(50, ge=0)
    max_count: int = Field(150, ge=0)
    default_count: int = Field(100, ge=0)

    @model_validator(mode="after")
    def _check_clamp(self):
        if self.min_count > self.max_count:
            raise ValueError(f"min_count {self.min_count} exceeds max_count {self.max_count}")
        return self


class TargetCountFixedModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["fixed"] = "fixed"
    count: int = Field(100, ge=0)


TargetCountUnion = Annotated[
    TargetCountViewportModel | TargetCountFixedModel,
    Field(discriminator="kind"),
]


# ----------------- REFRESH / IMPACT / ROADS ---------------------


class RefreshModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    interval_s: float = Field(120.0, gt=0)
    autostart: bool = False


class ImpactModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    max_distance_m: float = Field(1000.0, gt=0)
    near_m: float = 200.0
    mid_m: float = 500.0
    mid_weight: float = 0.8
    decay_m: float = Field(500.0, gt=0)
    floor_weight: float = Field(0.3, ge=0.0, le=1.0)
    high_multiplier: float = 1.5
    medium_multiplier: float = 1.2
    high_score: float = 3.0
    medium_score: float = 1.0
    baseline: float = 1.0
    high_threshold: float = 2.3
    moderate_threshold: float = 1.6

    @model_validator(mode="after")
    def _check_bands(self):
        if self.near_m > self.mid_m:
            raise ValueError("near_m must not exceed mid_m")
        if self.moderate_threshold > self.high_threshold:
            raise ValueError("moderate_threshold must not exceed high_threshold")
        return self


class RoadFeedModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    min_zoom: int = 12
    bbox_precision: int = Field(5, ge=0)


# ------------------------------------------------------------------


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "default"
    run_id: str = "local"
    sim: SimModel = Field(default_factory=SimModel)
    log: LogModel = Field(default_factory=LogModel)
    placement: PlacementModel = Field(default_factory=PlacementModel)
    severity: SeverityUnion = Field(default_factory=SeverityBernoulliModel)
    target_count: TargetCountUnion = Field(default_factory=TargetCountViewportModel)
    refresh: RefreshModel = Field(default_factory=RefreshModel)
    impact: ImpactModel = Field(default_factory=ImpactModel)
    roads: RoadFeedModel = Field(default_factory=RoadFeedModel)
