import math

import pytest

from traffic_sim.app.build import App, build
from traffic_sim.app.wiring import wire
from traffic_sim.config.models import ScenarioModel
from traffic_sim.domain.entities.geography import BoundingBox, RoadSegmentPath
from traffic_sim.domain.geodesy import EARTH_RADIUS_M
from traffic_sim.runtime.services_factory import make_registry
from traffic_sim.sim.hooks import NoopRegistryHooks
from traffic_sim.sim.kernel import Kernel
from traffic_sim.sim.rng import RNGRegistry

M_PER_DEG_LAT = EARTH_RADIUS_M * math.pi / 180


def grid_roads(n_roads=8, length_m=2500.0):
    dlat = length_m / M_PER_DEG_LAT
    return [
        RoadSegmentPath.from_points([(40.0 + dlat * k / 4, -3.7 + 0.005 * i) for k in range(5)])
        for i in range(n_roads)
    ]


class CountingHooks(NoopRegistryHooks):
    def __init__(self):
        self.generations = []
        self.errors = []

    def generation(self, **kw):
        self.generations.append(kw)

    def error(self, **kw):
        self.errors.append(kw)


# ---------- Fixtures


@pytest.fixture
def app() -> App:
    app = build({"target_count": {"kind": "fixed", "count": 15}}, use_logging=False)
    yield app
    app.close()


@pytest.fixture
def loaded(app: App) -> App:
    app.registry.set_road_geometry(grid_roads())
    return app


# ---------- Generation & empty state


def test_set_road_geometry_does_not_generate(app: App):
    seen = []
    app.registry.subscribe(seen.append)
    app.registry.set_road_geometry(grid_roads())
    assert app.registry.has_geometry
    assert app.registry.generation == 0
    assert seen == [[]]


def test_generate_without_geometry_is_empty_and_notifies(app: App):
    seen = []
    app.registry.subscribe(seen.append)
    assert app.registry.generate() == []
    assert seen == [[], []]


def test_clearing_geometry_empties_any_prior_state(loaded: App):
    reg = loaded.registry
    assert reg.generate()
    reg.set_road_geometry([])
    assert reg.generate() == []
    assert reg.get_current_nodes() == []


def test_generate_honours_explicit_target_and_bounds(loaded: App):
    bounds = BoundingBox(40.0, -3.71, 40.01, -3.68)
    nodes = loaded.registry.generate(bounds=bounds, target_count=3)
    assert len(nodes) == 3
    assert all(bounds.contains(n) for n in nodes)


def test_viewport_scales_target_count():
    app = build(use_logging=False)
    try:
        app.registry.set_road_geometry(grid_roads(n_roads=20, length_m=6000.0))
        app.registry.set_viewport(400, 300)  # 120000 px / 8000 = 15 -> clamped to 50
        nodes = app.registry.generate()
        assert len(nodes) == 50
    finally:
        app.close()


def test_refresh_is_generate(loaded: App):
    first = loaded.registry.refresh()
    second = loaded.registry.refresh()
    assert loaded.registry.generation == 2
    assert {n.id for n in first}.isdisjoint({n.id for n in second})


# ---------- Subscribers


def test_late_subscriber_gets_current_set_first(loaded: App):
    reg = loaded.registry
    reg.generate()
    current = reg.generate()

    seen = []
    reg.subscribe(seen.append)
    assert seen == [current]

    nxt = reg.generate()
    assert seen == [current, nxt]


def test_every_subscriber_sees_every_generation_in_order(loaded: App):
    reg = loaded.registry
    a, b = [], []
    reg.subscribe(a.append)
    reg.subscribe(b.append)
    produced = [reg.generate() for _ in range(3)]
    assert a[1:] == produced
    assert b[1:] == produced


def test_unsubscribe_stops_delivery(loaded: App):
    reg = loaded.registry
    seen = []
    sub = reg.subscribe(seen.append)
    assert sub.active
    sub()  # handle doubles as the unsubscribe function
    assert not sub.active
    sub.unsubscribe()  # twice is fine
    reg.generate()
    assert seen == [[]]
    assert reg.subscriber_count == 0


def test_subscription_context_manager(loaded: App):
    reg = loaded.registry
    seen = []
    with reg.subscribe(seen.append):
        reg.generate()
    reg.generate()
    assert len(seen) == 2


def test_subscriber_mutation_does_not_leak(loaded: App):
    reg = loaded.registry

    def vandal(nodes):
        nodes.clear()

    other = []
    reg.subscribe(vandal)
    reg.subscribe(other.append)
    reg.generate()
    assert other[-1] == reg.get_current_nodes()
    assert other[-1]


def test_failing_subscriber_is_isolated():
    hooks = CountingHooks()
    app = build({"target_count": {"kind": "fixed", "count": 5}}, use_logging=False)
    reg = app.registry
    reg._hooks = hooks
    reg.set_road_geometry(grid_roads())

    def boom(nodes):
        if nodes:
            raise RuntimeError("view gone")

    seen = []
    reg.subscribe(boom)
    reg.subscribe(seen.append)
    reg.generate()
    assert len(seen) == 2
    assert [e["reason"] for e in hooks.errors] == ["subscriber_failed"]
    app.close()


# ---------- Snapshots


def test_current_nodes_is_a_defensive_copy(loaded: App):
    reg = loaded.registry
    reg.generate()
    snapshot = reg.get_current_nodes()
    snapshot.clear()
    assert reg.get_current_nodes()


# ---------- Auto refresh


def test_auto_refresh_single_timer(loaded: App):
    reg, kernel = loaded.registry, loaded.kernel
    reg.start_auto_refresh()
    reg.start_auto_refresh()
    assert reg.is_auto_refresh_active
    assert kernel.pending == 1

    kernel.run(until=240.0)
    assert reg.generation == 2  # ticks at 120 s and 240 s, one generate each


def test_stop_auto_refresh_halts_ticks(loaded: App):
    reg, kernel = loaded.registry, loaded.kernel
    reg.start_auto_refresh()
    kernel.run(until=130.0)
    assert reg.generation == 1
    reg.stop_auto_refresh()
    reg.stop_auto_refresh()
    assert not reg.is_auto_refresh_active
    kernel.run(until=1000.0)
    assert reg.generation == 1


def test_restart_after_stop_keeps_one_timer(loaded: App):
    reg, kernel = loaded.registry, loaded.kernel
    reg.start_auto_refresh()  # would tick at 120
    kernel.run(until=60.0)
    reg.stop_auto_refresh()
    reg.start_auto_refresh()  # ticks at 180, 300
    kernel.run(until=300.0)
    assert reg.generation == 2


def test_auto_refresh_notifies_subscribers(loaded: App):
    reg, kernel = loaded.registry, loaded.kernel
    seen = []
    reg.subscribe(seen.append)
    reg.start_auto_refresh()
    kernel.run(until=360.0)
    assert len(seen) == 1 + 3


def test_interval_comes_from_config():
    app = build(
        {
            "refresh": {"interval_s": 30.0, "autostart": True},
            "target_count": {"kind": "fixed", "count": 3},
        },
        use_logging=False,
    )
    app.registry.set_road_geometry(grid_roads())
    app.kernel.run(until=90.0)
    assert app.registry.generation == 3
    app.close()


# ---------- Teardown


def test_dispose_releases_everything(loaded: App):
    reg, kernel = loaded.registry, loaded.kernel
    seen = []
    sub = reg.subscribe(seen.append)
    reg.start_auto_refresh()
    reg.dispose()

    assert reg.is_disposed
    assert not reg.is_auto_refresh_active
    assert reg.subscriber_count == 0
    assert not sub.active
    sub()  # unsubscribe after teardown is a no-op

    kernel.run(until=600.0)
    assert reg.generation == 0
    assert seen == [[]]


def test_calls_after_dispose_are_noops(loaded: App):
    reg = loaded.registry
    reg.dispose()
    reg.dispose()
    assert reg.generate() == []
    reg.set_road_geometry([])
    assert reg.has_geometry
    late = reg.subscribe(lambda nodes: pytest.fail("disposed registry delivered"))
    assert not late.active
    reg.start_auto_refresh()
    assert not reg.is_auto_refresh_active


def test_score_at_uses_current_nodes(loaded: App):
    reg = loaded.registry
    assert reg.score_at((40.01, -3.68)).label == "Low"  # nothing generated yet
    nodes = reg.generate()
    target = nodes[0]
    score = reg.score_at((target.lat, target.lng))
    assert score.nearby >= 1


# ---------- Re-entrant callbacks


def run_of(nodes):
    # ids are node_<run>_<index>
    return nodes[0].id.split("_")[1] if nodes else None


def test_refresh_from_a_callback_keeps_generations_in_order(loaded: App):
    reg = loaded.registry
    refreshed = []

    def eager(nodes):
        if nodes and not refreshed:
            refreshed.append(True)
            reg.refresh()

    runs = []
    reg.subscribe(eager)
    reg.subscribe(lambda nodes: runs.append(run_of(nodes)))
    reg.generate()

    assert reg.generation == 2
    assert runs == [None, "1", "2"]
    assert runs[-1] == run_of(reg.get_current_nodes())


def test_unsubscribed_mid_publish_gets_nothing(loaded: App):
    reg = loaded.registry
    handles = {}

    def dropper(nodes):
        if nodes:
            handles["other"].unsubscribe()

    late = []
    reg.subscribe(dropper)
    handles["other"] = reg.subscribe(late.append)
    reg.generate()
    assert late == [[]]


def test_dispose_mid_publish_stops_delivery(loaded: App):
    reg = loaded.registry

    def closer(nodes):
        if nodes:
            reg.dispose()

    late = []
    reg.subscribe(closer)
    reg.subscribe(late.append)
    reg.generate()
    assert reg.is_disposed
    assert late == [[]]


# ---------- Timer bookkeeping


def test_stop_start_cycles_keep_one_queued_tick(loaded: App):
    reg, kernel = loaded.registry, loaded.kernel
    for _ in range(5):
        reg.start_auto_refresh()
        reg.stop_auto_refresh()
    assert kernel.pending == 0
    reg.start_auto_refresh()
    assert kernel.pending == 1
    kernel.run(until=120.0)
    assert reg.generation == 1
    assert kernel.pending == 1


def test_stop_from_a_callback_during_tick_ends_the_timer(loaded: App):
    reg, kernel = loaded.registry, loaded.kernel
    reg.subscribe(lambda nodes: reg.stop_auto_refresh() if nodes else None)
    reg.start_auto_refresh()
    kernel.run(until=600.0)
    assert reg.generation == 1
    assert kernel.pending == 0


def test_registries_sharing_a_kernel_tick_independently():
    model = ScenarioModel.model_validate({"target_count": {"kind": "fixed", "count": 4}})
    kernel = Kernel()
    regs = [
        make_registry(model, kernel=kernel, rng_registry=RNGRegistry(seed))
        for seed in (1, 2)
    ]
    for reg in regs:
        wire(kernel, registry=reg)
        reg.set_road_geometry(grid_roads())
        reg.start_auto_refresh()

    kernel.run(until=240.0)
    assert [reg.generation for reg in regs] == [2, 2]
    regs[0].dispose()
    kernel.run(until=360.0)
    assert [reg.generation for reg in regs] == [2, 3]
