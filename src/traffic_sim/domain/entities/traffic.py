from dataclasses import dataclass
from enum import Enum

from traffic_sim.domain.entities.geography import LatLng


class Severity(Enum):
    HIGH = "high"
    MEDIUM = "medium"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def color(self) -> str:
        return "#ef4444" if self is Severity.HIGH else "#f59e0b"


@dataclass(frozen=True)
class TrafficNode:
    id: str
    lat: float
    lng: float
    severity: Severity
    radius_m: float  # impact radius: collision spacing and rendered footprint

    @property
    def position(self) -> LatLng:
        return LatLng(self.lat, self.lng)
