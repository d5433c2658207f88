# traffic_sim/services/impact.py
from collections.abc import Iterable
from dataclasses import dataclass

from traffic_sim.domain.entities.geography import LatLng
from traffic_sim.domain.entities.traffic import TrafficNode
from traffic_sim.domain.geodesy import distance_m
from traffic_sim.policy.impact import ImpactPolicy


@dataclass(frozen=True)
class ImpactScore:
    label: str  # "Low" | "Moderate" | "High"
    average: float
    nearby: int  # nodes that contributed


def score_impact(
    center: LatLng | tuple[float, float],
    nodes: Iterable[TrafficNode],
    policy: ImpactPolicy | None = None,
    *,
    max_distance_m: float | None = None,
) -> ImpactScore:
    """
    Severity-weighted, distance-decayed traffic score around `center`.

    Each node within `max_distance_m` contributes its severity score with
    weight proximity_weight(d) * severity multiplier. An empty neighborhood
    falls back to the policy baseline.
    """
    policy = policy or ImpactPolicy()
    limit = policy.max_distance_m if max_distance_m is None else max_distance_m
    c = LatLng.of(center)

    weighted_sum = 0.0
    total_weight = 0.0
    nearby = 0
    for n in nodes:
        d = distance_m(c, n)
        if d > limit:
            continue
        nearby += 1
        w = policy.proximity_weight(d) * policy.multipliers[n.severity]
        weighted_sum += policy.scores[n.severity] * w
        total_weight += w

    avg = weighted_sum / total_weight if total_weight > 0 else policy.baseline
    return ImpactScore(label=policy.label(avg), average=avg, nearby=nearby)
