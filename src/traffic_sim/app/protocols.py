from collections.abc import Callable
from typing import Protocol, runtime_checkable

from traffic_sim.domain.entities.geography import LatLng, RoadSegmentPath
from traffic_sim.domain.entities.traffic import Severity, TrafficNode

NodeSubscriber = Callable[[list[TrafficNode]], None]


# ------------- Mechanics --------------------
@runtime_checkable
class RoadSampler(Protocol):
    """
    Responsibilities:
      • Pick a road with probability proportional to its length.
      • Pick a point along a chosen road.
    """

    def choose_road(self, min_length_m: float = 200.0) -> RoadSegmentPath | None: ...
    def point_on_road(self, road: RoadSegmentPath) -> LatLng: ...


# --------------- Policies -------------------------


@runtime_checkable
class SeveritySampler(Protocol):
    """Draw a severity tier and report its impact radius in meters."""

    def draw(self) -> Severity: ...
    def radius_m(self, severity: Severity) -> float: ...


@runtime_checkable
class TargetCountPolicy(Protocol):
    """How many nodes one generation aims for, given the viewport size in pixels."""

    def target(self, viewport: tuple[int, int] | None = None) -> int: ...
