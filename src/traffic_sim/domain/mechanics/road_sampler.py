import numpy as np

from traffic_sim.app.protocols import RoadSampler
from traffic_sim.domain.entities.geography import LatLng, RoadSegmentPath
from traffic_sim.domain.state import RoadGeometryStore


class WeightedRoadSampler(RoadSampler):
    """
    Length-weighted road choice over the roads currently in the store.

    `min_candidates` guards sparse viewports: when fewer roads than that meet
    the length cut, the whole road set is used instead.

    Points are uniform over segment index, then uniform along the segment, so
    a polyline with many short segments gets oversampled near its dense part.
    This is a known approximation of arc-length sampling.
    """

    def __init__(
        self, store: RoadGeometryStore, *, rng: np.random.Generator, min_candidates: int = 6
    ):
        self.store, self.rng = store, rng
        self.min_candidates = min_candidates

    def candidate_pool(self, min_length_m: float = 200.0) -> tuple[RoadSegmentPath, ...]:
        roads = self.store.roads
        candidates = tuple(r for r in roads if r.length_m >= min_length_m)
        return candidates if len(candidates) >= self.min_candidates else roads

    def choose_road(self, min_length_m: float = 200.0) -> RoadSegmentPath | None:
        pool = self.candidate_pool(min_length_m)
        if not pool:
            return None
        total = sum(max(1.0, r.length_m) for r in pool)
        r = self.rng.random() * total
        for road in pool:
            r -= max(1.0, road.length_m)
            if r <= 0:
                return road
        # float drift can leave r a hair above zero
        return pool[-1]

    def point_on_road(self, road: RoadSegmentPath) -> LatLng:
        pts = road.points
        if len(pts) < 2:
            return LatLng(*pts[0])
        i = int(self.rng.integers(0, len(pts) - 1))
        t = self.rng.random()
        (lat1, lng1), (lat2, lng2) = pts[i], pts[i + 1]
        return LatLng(lat1 + t * (lat2 - lat1), lng1 + t * (lng2 - lng1))
