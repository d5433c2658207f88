# traffic_sim/io/overpass.py
"""
Overpass API payload handling for road geometry.

Only the parsing side lives here: the HTTP request itself belongs to whoever
embeds the library. `build_query` renders the query that request would send.
"""

from collections.abc import Iterable, Mapping

from traffic_sim.domain.entities.geography import BoundingBox, RoadSegmentPath

OVERPASS_URL = "https://overpass-api.de/api/interpreter"


def build_query(bounds: BoundingBox, *, timeout_s: int = 25) -> str:
    s, w, n, e = bounds.south, bounds.west, bounds.north, bounds.east
    return f'[out:json][timeout:{timeout_s}];(way["highway"]({s},{w},{n},{e}););out geom;'


def parse_ways(elements: Iterable[Mapping]) -> list[RoadSegmentPath]:
    """Keep `way` elements carrying at least two geometry points."""
    roads = []
    for el in elements:
        if el.get("type") != "way":
            continue
        geometry = el.get("geometry")
        if not isinstance(geometry, list) or len(geometry) < 2:
            continue
        roads.append(RoadSegmentPath.from_points((pt["lat"], pt["lon"]) for pt in geometry))
    return roads


def parse_payload(payload: Mapping) -> list[RoadSegmentPath]:
    """Parse a full `out:json` response body (already decoded)."""
    return parse_ways(payload.get("elements") or ())
