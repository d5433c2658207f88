# traffic_sim/app/controllers/roads.py
from collections.abc import Callable, Iterable, Mapping

from traffic_sim.domain.entities.geography import BoundingBox
from traffic_sim.io.overpass import parse_ways
from traffic_sim.services.registry import TrafficNodeRegistry

FetchFn = Callable[[BoundingBox], Iterable[Mapping]]


class RoadFeedHandler:
    """
    Feeds viewport road geometry into the registry.

    The caller debounces viewport moves; this handler only skips viewports
    whose rounded bbox key matches the last one loaded.
    """

    def __init__(
        self,
        registry: TrafficNodeRegistry,
        *,
        fetch: FetchFn | None = None,
        min_zoom: int = 12,
        bbox_precision: int = 5,
    ):
        self.registry = registry
        self.fetch = fetch
        self.min_zoom = min_zoom
        self.bbox_precision = bbox_precision
        self._last_key: str | None = None

    @property
    def last_key(self) -> str | None:
        return self._last_key

    def on_viewport(
        self, bounds: BoundingBox, zoom: int, elements: Iterable[Mapping] | None = None
    ) -> bool:
        """
        Returns True when new roads were loaded and a generation ran.

        A failing fetch or malformed payload is reported through the registry
        hooks and leaves the current roads and nodes in place.
        """
        if zoom < self.min_zoom:
            self._last_key = None
            if self.registry.has_geometry:
                self.registry.set_road_geometry(())
                self.registry.generate()
            return False

        key = bounds.key(self.bbox_precision)
        if key == self._last_key:
            return False

        if elements is None and self.fetch is None:
            raise ValueError("no elements given and no fetch function configured")
        try:
            if elements is None:
                elements = self.fetch(bounds)
            roads = parse_ways(elements)
        except Exception as exc:
            # keep the current roads and nodes; the next viewport event retries
            self.registry.report_error("roads_fetch_failed", exc, bbox=key)
            return False

        self._last_key = key
        self.registry.set_road_geometry(roads)
        self.registry.generate()
        if not self.registry.is_auto_refresh_active:
            self.registry.start_auto_refresh()
        return True
