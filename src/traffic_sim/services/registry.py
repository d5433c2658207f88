# traffic_sim/services/registry.py
from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from traffic_sim.app.events import RefreshTick
from traffic_sim.app.protocols import NodeSubscriber, TargetCountPolicy
from traffic_sim.domain.entities.geography import BoundingBox, LatLng
from traffic_sim.domain.entities.traffic import TrafficNode
from traffic_sim.domain.mechanics.placement import PlacementEngine
from traffic_sim.domain.state import RoadGeometryStore
from traffic_sim.policy.impact import ImpactPolicy
from traffic_sim.services.impact import ImpactScore, score_impact
from traffic_sim.services.spatial import nodes_in_bounds, nodes_in_radius
from traffic_sim.sim.clock import minutes
from traffic_sim.sim.hooks import NoopRegistryHooks, RegistryHooks
from traffic_sim.sim.kernel import Kernel


class Subscription:
    """Handle for one registered callback. Calling it unsubscribes."""

    def __init__(self, registry: TrafficNodeRegistry | None, callback: NodeSubscriber):
        self._registry = registry
        self.callback = callback

    @property
    def active(self) -> bool:
        return self._registry is not None

    def unsubscribe(self) -> None:
        if self._registry is None:
            return
        registry, self._registry = self._registry, None
        registry._remove(self)

    __call__ = unsubscribe

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class TrafficNodeRegistry:
    """
    Single owner of the current traffic node set.

    Every map view holds the same registry instance and either subscribes or
    reads snapshots. A generation replaces the whole set and is pushed to all
    subscribers before `generate()` returns, so nobody sees a partial set. A
    generation started from inside a subscriber callback is queued and goes
    out once the one in flight has reached every subscriber.
    Auto-refresh runs as a recurring `RefreshTick` on the kernel; at most one
    timer is live per registry and a stopped timer's pending tick is cancelled.
    """

    def __init__(
        self,
        store: RoadGeometryStore,
        engine: PlacementEngine,
        *,
        kernel: Kernel,
        target_count: TargetCountPolicy,
        impact: ImpactPolicy | None = None,
        min_gap_m: float = 15.0,
        interval_s: float = minutes(2),
        hooks: RegistryHooks | None = None,
    ):
        self.store, self.engine, self.kernel = store, engine, kernel
        self.target_count = target_count
        self.impact = impact or ImpactPolicy()
        self.min_gap_m = min_gap_m
        self.interval_s = interval_s
        self._hooks = hooks or NoopRegistryHooks()

        self._nodes: tuple[TrafficNode, ...] = ()
        self._subs: list[Subscription] = []
        self._viewport: tuple[int, int] | None = None
        self._timer_id: int | None = None
        self._timer_seq = 0
        self._tick: RefreshTick | None = None
        self._outbox: deque[tuple[TrafficNode, ...]] = deque()
        self._publishing = False
        self._generation = 0
        self._disposed = False

    # ---------------- state ----------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_geometry(self) -> bool:
        return not self.store.is_empty()

    @property
    def is_auto_refresh_active(self) -> bool:
        return self._timer_id is not None

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    # ---------------- inputs ----------------------------

    def set_road_geometry(self, roads: Iterable) -> None:
        """Replace the road set used by later generations. Does not generate."""
        if self._disposed:
            return
        self.store.set_roads(roads)
        self._hooks.roads_set(
            t=self.kernel.now, roads=len(self.store), total_length_m=self.store.total_length_m
        )

    def set_viewport(self, width_px: int, height_px: int) -> None:
        self._viewport = (int(width_px), int(height_px))

    # ---------------- generation ------------------------

    def generate(
        self, bounds: BoundingBox | None = None, target_count: int | None = None
    ) -> list[TrafficNode]:
        if self._disposed:
            return []
        target = self.target_count.target(self._viewport) if target_count is None else target_count
        result = self.engine.generate(target, self.min_gap_m, bounds=bounds)

        self._nodes = result.nodes
        self._generation += 1
        self._hooks.generation(
            t=self.kernel.now,
            generation=self._generation,
            placed=len(result.nodes),
            target=result.target,
            attempts=result.attempts,
            subscribers=len(self._subs),
        )
        self._publish()
        return list(result.nodes)

    def refresh(self) -> list[TrafficNode]:
        """User-triggered regeneration."""
        return self.generate()

    # ---------------- subscribers -----------------------

    def subscribe(self, callback: NodeSubscriber) -> Subscription:
        if self._disposed:
            return Subscription(None, callback)
        sub = Subscription(self, callback)
        self._subs.append(sub)
        self._hooks.subscribed(subscribers=len(self._subs))
        self._deliver(sub, self._nodes)
        return sub

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subs:
            self._subs.remove(sub)
            self._hooks.unsubscribed(subscribers=len(self._subs))

    def _publish(self) -> None:
        self._outbox.append(self._nodes)
        if self._publishing:
            return
        self._publishing = True
        try:
            while self._outbox and not self._disposed:
                snapshot = self._outbox.popleft()
                for sub in list(self._subs):
                    if self._disposed:
                        break
                    # dropped by an earlier callback in this pass
                    if sub.active:
                        self._deliver(sub, snapshot)
        finally:
            self._outbox.clear()
            self._publishing = False

    def _deliver(self, sub: Subscription, snapshot: tuple[TrafficNode, ...]) -> None:
        try:
            sub.callback(list(snapshot))
        except Exception as exc:
            # one broken view must not starve the others
            self._hooks.error(reason="subscriber_failed", exc=exc, generation=self._generation)

    def report_error(self, reason: str, exc: BaseException | None = None, **extra) -> None:
        """Route a failure from a collaborator (e.g. the road feed) to the hooks."""
        self._hooks.error(reason=reason, exc=exc, generation=self._generation, **extra)

    # ---------------- queries ---------------------------

    def get_current_nodes(self) -> list[TrafficNode]:
        return list(self._nodes)

    def get_nodes_in_bounds(self, bbox: BoundingBox) -> list[TrafficNode]:
        return nodes_in_bounds(self._nodes, bbox)

    def get_nodes_in_radius(
        self, center: LatLng | tuple[float, float], radius_m: float
    ) -> list[TrafficNode]:
        return nodes_in_radius(self._nodes, center, radius_m)

    def score_at(
        self, center: LatLng | tuple[float, float], max_distance_m: float | None = None
    ) -> ImpactScore:
        return score_impact(center, self._nodes, self.impact, max_distance_m=max_distance_m)

    # ---------------- auto-refresh ----------------------

    def start_auto_refresh(self) -> None:
        if self._disposed or self._timer_id is not None:
            return
        self._timer_seq += 1
        self._timer_id = self._timer_seq
        self._tick = RefreshTick(t=self.kernel.now + self.interval_s, timer_id=self._timer_id)
        self.kernel.schedule(self._tick)
        self._hooks.auto_refresh(active=True, interval_s=self.interval_s)

    def stop_auto_refresh(self) -> None:
        if self._timer_id is None:
            return
        if self._tick is not None:
            self.kernel.cancel(self._tick)
        self._timer_id, self._tick = None, None
        self._hooks.auto_refresh(active=False, interval_s=self.interval_s)

    def on_refresh_tick(self, ev: RefreshTick) -> list[RefreshTick]:
        # the kernel may host ticks of other registries
        if self._disposed or ev is not self._tick:
            return []
        self.generate()
        if ev is not self._tick:
            # a subscriber stopped or restarted the timer
            return []
        self._tick = RefreshTick(t=ev.t + self.interval_s, timer_id=ev.timer_id)
        return [self._tick]

    # ---------------- teardown --------------------------

    def dispose(self) -> None:
        if self._disposed:
            return
        self.stop_auto_refresh()
        for sub in list(self._subs):
            sub._registry = None
        self._subs.clear()
        self.kernel.off(RefreshTick, self.on_refresh_tick)
        self._disposed = True
        self._hooks.disposed()
