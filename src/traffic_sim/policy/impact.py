# traffic_sim/policy/impact.py
from dataclasses import dataclass, field

from traffic_sim.domain.entities.traffic import Severity


@dataclass(frozen=True)
class ImpactPolicy:
    """
    Constants of the impact score. Chosen by hand, not fitted: treat them as
    tunable policy.

    Proximity bands: full weight up to `near_m`, `mid_weight` up to `mid_m`,
    then linear decay over `decay_m` down to `floor_weight`.
    """

    max_distance_m: float = 1000.0
    near_m: float = 200.0
    mid_m: float = 500.0
    mid_weight: float = 0.8
    decay_m: float = 500.0
    floor_weight: float = 0.3
    multipliers: dict[Severity, float] = field(
        default_factory=lambda: {Severity.HIGH: 1.5, Severity.MEDIUM: 1.2}
    )
    scores: dict[Severity, float] = field(
        default_factory=lambda: {Severity.HIGH: 3.0, Severity.MEDIUM: 1.0}
    )
    baseline: float = 1.0  # average reported when nothing is in range
    high_threshold: float = 2.3
    moderate_threshold: float = 1.6

    def proximity_weight(self, d: float) -> float:
        if d <= self.near_m:
            return 1.0
        if d <= self.mid_m:
            return self.mid_weight
        return max(self.floor_weight, 1.0 - (d - self.mid_m) / self.decay_m)

    def label(self, average: float) -> str:
        if average >= self.high_threshold:
            return "High"
        if average >= self.moderate_threshold:
            return "Moderate"
        return "Low"
