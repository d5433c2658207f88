# traffic_sim/runtime/services_factory.py
from traffic_sim.config.models import ScenarioModel
from traffic_sim.domain.mechanics.placement import PlacementEngine
from traffic_sim.domain.mechanics.road_sampler import WeightedRoadSampler
from traffic_sim.domain.state import RoadGeometryStore
from traffic_sim.runtime.policy_factory import make_impact_policy, make_severity_sampler
from traffic_sim.runtime.registries import make_target_count
from traffic_sim.services.registry import TrafficNodeRegistry
from traffic_sim.sim.hooks import RegistryHooks
from traffic_sim.sim.kernel import Kernel
from traffic_sim.sim.rng import RNGRegistry


def make_registry(
    model: ScenarioModel,
    *,
    kernel: Kernel,
    rng_registry: RNGRegistry,
    store: RoadGeometryStore | None = None,
    hooks: RegistryHooks | None = None,
) -> TrafficNodeRegistry:
    store = store if store is not None else RoadGeometryStore()
    roads = WeightedRoadSampler(
        store, rng=rng_registry.stream("roads"), min_candidates=model.placement.min_candidates
    )
    engine = PlacementEngine(
        store,
        roads=roads,
        severity=make_severity_sampler(model.severity, rng_registry=rng_registry),
        attempts_per_target=model.placement.attempts_per_target,
        min_road_length_m=model.placement.min_road_length_m,
    )
    return TrafficNodeRegistry(
        store,
        engine,
        kernel=kernel,
        target_count=make_target_count(model.target_count),
        impact=make_impact_policy(model.impact),
        min_gap_m=model.placement.min_gap_m,
        interval_s=model.refresh.interval_s,
        hooks=hooks,
    )
