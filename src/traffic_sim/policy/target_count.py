# traffic_sim/policy/target_count.py
from traffic_sim.app.protocols import TargetCountPolicy


class ViewportAreaTargetCount(TargetCountPolicy):
    """One node per `px_per_node` square pixels of viewport, clamped."""

    def __init__(
        self,
        px_per_node: float = 8000.0,
        min_count: int = 50,
        max_count: int = 150,
        default_count: int = 100,
    ):
        self.px_per_node = px_per_node
        self.min_count, self.max_count = min_count, max_count
        self.default_count = default_count

    def target(self, viewport: tuple[int, int] | None = None) -> int:
        if viewport is None:
            return self.default_count
        width, height = viewport
        n = int((width * height) // self.px_per_node)
        return min(self.max_count, max(self.min_count, n))


class FixedTargetCount(TargetCountPolicy):
    def __init__(self, count: int = 100):
        self.count = count

    def target(self, viewport: tuple[int, int] | None = None) -> int:
        return self.count
