# traffic_sim/app/wiring.py
from traffic_sim.app.events import RefreshTick
from traffic_sim.services.registry import TrafficNodeRegistry
from traffic_sim.sim.kernel import Kernel


def wire(kernel: Kernel, *, registry: TrafficNodeRegistry) -> None:
    k = kernel

    # auto-refresh timer; each registry only acts on its own live tick
    k.on(RefreshTick, registry.on_refresh_tick)
