# traffic_sim/domain/mechanics/placement.py
from dataclasses import dataclass

from traffic_sim.app.protocols import RoadSampler, SeveritySampler
from traffic_sim.domain.entities.geography import BoundingBox, LatLng
from traffic_sim.domain.entities.traffic import TrafficNode
from traffic_sim.domain.geodesy import haversine_m
from traffic_sim.domain.state import RoadGeometryStore


@dataclass(frozen=True)
class PlacementResult:
    nodes: tuple[TrafficNode, ...]
    attempts: int
    target: int

    @property
    def exhausted(self) -> bool:
        return len(self.nodes) < self.target


class PlacementEngine:
    """
    Rejection sampler: draw severity, road, point; keep the point only if its
    footprint clears every node accepted so far in this pass.

    Collision checks scan linearly. Fine for the expected <= 150 nodes; larger
    targets would want a grid or R-tree.
    """

    def __init__(
        self,
        store: RoadGeometryStore,
        *,
        roads: RoadSampler,
        severity: SeveritySampler,
        attempts_per_target: int = 50,
        min_road_length_m: float = 200.0,
    ):
        self.store = store
        self.roads, self.severity = roads, severity
        self.attempts_per_target = attempts_per_target
        self.min_road_length_m = min_road_length_m
        self._runs = 0

    def generate(
        self,
        target_count: int,
        min_gap_m: float = 15.0,
        bounds: BoundingBox | None = None,
    ) -> PlacementResult:
        if self.store.is_empty() or target_count <= 0:
            return PlacementResult(nodes=(), attempts=0, target=max(0, target_count))

        self._runs += 1
        run = self._runs
        max_attempts = target_count * self.attempts_per_target
        accepted: list[TrafficNode] = []
        attempts = 0

        while len(accepted) < target_count and attempts < max_attempts:
            attempts += 1
            sev = self.severity.draw()
            radius = self.severity.radius_m(sev)

            road = self.roads.choose_road(self.min_road_length_m)
            if road is None:
                continue
            p = self.roads.point_on_road(road)

            if bounds is not None and not bounds.contains(p):
                continue
            if self._collides(p, radius, accepted, min_gap_m):
                continue

            accepted.append(
                TrafficNode(
                    id=f"node_{run}_{len(accepted)}",
                    lat=p.lat,
                    lng=p.lng,
                    severity=sev,
                    radius_m=radius,
                )
            )

        return PlacementResult(nodes=tuple(accepted), attempts=attempts, target=target_count)

    @staticmethod
    def _collides(p: LatLng, radius: float, placed: list[TrafficNode], min_gap_m: float) -> bool:
        for other in placed:
            d = haversine_m(p.lat, p.lng, other.lat, other.lng)
            if d < radius + other.radius_m + min_gap_m:
                return True
        return False
