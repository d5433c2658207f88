# traffic_sim/policy/severity.py
import numpy as np

from traffic_sim.app.protocols import SeveritySampler
from traffic_sim.domain.entities.traffic import Severity


class BernoulliSeveritySampler(SeveritySampler):
    def __init__(
        self,
        rng: np.random.Generator,
        p_high: float = 0.4,
        high_radius_m: float = 120.0,
        medium_radius_m: float = 100.0,
    ):
        self.rng, self.p_high = rng, p_high
        self._radius = {Severity.HIGH: high_radius_m, Severity.MEDIUM: medium_radius_m}

    def draw(self) -> Severity:
        return Severity.HIGH if self.rng.random() < self.p_high else Severity.MEDIUM

    def radius_m(self, severity: Severity) -> float:
        return self._radius[severity]
