# traffic_sim/services/spatial.py
from collections.abc import Iterable

from traffic_sim.domain.entities.geography import BoundingBox, LatLng
from traffic_sim.domain.entities.traffic import TrafficNode
from traffic_sim.domain.geodesy import distance_m


def nodes_in_bounds(nodes: Iterable[TrafficNode], bbox: BoundingBox) -> list[TrafficNode]:
    return [n for n in nodes if bbox.contains(n)]


def nodes_in_radius(
    nodes: Iterable[TrafficNode], center: LatLng | tuple[float, float], radius_m: float
) -> list[TrafficNode]:
    """Nodes whose great-circle distance to `center` is <= radius_m."""
    c = LatLng.of(center)
    return [n for n in nodes if distance_m(c, n) <= radius_m]
