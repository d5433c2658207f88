# traffic_sim/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from traffic_sim.app.controllers.roads import FetchFn, RoadFeedHandler
from traffic_sim.app.wiring import wire
from traffic_sim.config.models import ScenarioModel
from traffic_sim.domain.state import RoadGeometryStore
from traffic_sim.io.kernel_logging import KernelLogging, RegistryLogging
from traffic_sim.io.recorder import JsonlSink, Recorder
from traffic_sim.policy.impact import ImpactPolicy
from traffic_sim.runtime.services_factory import make_registry
from traffic_sim.services.registry import TrafficNodeRegistry
from traffic_sim.sim.clock import SimClock
from traffic_sim.sim.hooks import NoopHooks, NoopRegistryHooks
from traffic_sim.sim.kernel import Kernel
from traffic_sim.sim.rng import RNGRegistry


@dataclass
class App:
    kernel: Kernel
    clock: SimClock
    rng: RNGRegistry
    store: RoadGeometryStore
    registry: TrafficNodeRegistry
    roads: RoadFeedHandler
    impact: ImpactPolicy

    def close(self) -> None:
        self.registry.dispose()


def build(
    cfg: ScenarioModel | Mapping | None = None,
    *,
    worker: int = 0,
    use_logging: bool = True,
    recorder: Recorder | None = None,
    fetch: FetchFn | None = None,
) -> App:
    # 0) Validate config
    if cfg is None:
        model = ScenarioModel()
    else:
        model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)

    # 1) Clock & RNG
    clock = SimClock.utc_epoch(*model.sim.epoch)
    rng_registry = RNGRegistry(model.sim.seed, scenario=model.name, worker=worker)

    # 2) Kernel & hooks
    if use_logging:
        recorder = recorder or Recorder(JsonlSink())
        kernel_hooks = KernelLogging(
            run_id=model.run_id,
            clock=clock,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        registry_hooks = RegistryLogging(
            run_id=model.run_id, clock=clock, level=model.log.level, recorder=recorder
        )
    else:
        kernel_hooks, registry_hooks = NoopHooks(), NoopRegistryHooks()
    kernel = Kernel(hooks=kernel_hooks)

    # 3) Shared state & registry
    store = RoadGeometryStore()
    registry = make_registry(
        model, kernel=kernel, rng_registry=rng_registry, store=store, hooks=registry_hooks
    )

    # 4) Controllers
    roads = RoadFeedHandler(
        registry,
        fetch=fetch,
        min_zoom=model.roads.min_zoom,
        bbox_precision=model.roads.bbox_precision,
    )

    # 5) Wiring
    wire(kernel, registry=registry)

    if model.refresh.autostart:
        registry.start_auto_refresh()

    return App(kernel, clock, rng_registry, store, registry, roads, registry.impact)
