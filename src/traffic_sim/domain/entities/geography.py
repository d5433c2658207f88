from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from traffic_sim.domain.geodesy import polyline_length_m


# Core geometry types; coordinates are WGS84 decimal degrees
@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    @classmethod
    def of(cls, p: LatLng | Sequence[float]) -> LatLng:
        return p if isinstance(p, LatLng) else cls(float(p[0]), float(p[1]))


@dataclass(frozen=True)
class BoundingBox:
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_corners(cls, a: LatLng | Sequence[float], b: LatLng | Sequence[float]) -> BoundingBox:
        a, b = LatLng.of(a), LatLng.of(b)
        return cls(
            south=min(a.lat, b.lat),
            west=min(a.lng, b.lng),
            north=max(a.lat, b.lat),
            east=max(a.lng, b.lng),
        )

    def contains(self, p) -> bool:
        """Inclusive of all four edges. Accepts anything with .lat/.lng."""
        return self.south <= p.lat <= self.north and self.west <= p.lng <= self.east

    def key(self, precision: int = 5) -> str:
        """Rounded "s,w,n,e" signature used to skip reloading the same viewport."""
        edges = (self.south, self.west, self.north, self.east)
        return ",".join(f"{v:.{precision}f}" for v in edges)


@dataclass(frozen=True)
class RoadSegmentPath:
    points: tuple[tuple[float, float], ...]  # (lat, lng) vertices in order
    length_m: float

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> RoadSegmentPath:
        pts = tuple((float(p[0]), float(p[1])) for p in points)
        return cls(points=pts, length_m=polyline_length_m(pts))

    @classmethod
    def coerce(cls, road: RoadSegmentPath | Mapping | Iterable[Sequence[float]]) -> RoadSegmentPath:
        """Accept a RoadSegmentPath, a {"points": [...]} mapping, or a bare point list."""
        if isinstance(road, RoadSegmentPath):
            return road
        if isinstance(road, Mapping):
            return cls.from_points(road["points"])
        return cls.from_points(road)

    @property
    def segment_count(self) -> int:
        return max(0, len(self.points) - 1)
