# traffic_sim/domain/state.py
from collections.abc import Iterable

from traffic_sim.domain.entities.geography import RoadSegmentPath


class RoadGeometryStore:
    """Road polylines for the current viewport. Replaced wholesale, never edited."""

    def __init__(self, roads: Iterable = ()):
        self._roads: tuple[RoadSegmentPath, ...] = ()
        self.set_roads(roads)

    @property
    def roads(self) -> tuple[RoadSegmentPath, ...]:
        return self._roads

    @property
    def total_length_m(self) -> float:
        return sum(r.length_m for r in self._roads)

    def set_roads(self, roads: Iterable) -> None:
        coerced = (RoadSegmentPath.coerce(r) for r in roads)
        # a way with no vertices cannot host a point
        self._roads = tuple(r for r in coerced if r.points)

    def clear(self) -> None:
        self._roads = ()

    def is_empty(self) -> bool:
        return not self._roads

    def __len__(self) -> int:
        return len(self._roads)
