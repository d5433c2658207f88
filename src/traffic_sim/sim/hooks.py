# sim/hooks.py
from typing import Protocol

from traffic_sim.sim.event import BaseEvent


class KernelHooks(Protocol):
    def run_start(
        self,
        *,
        until,
        max_events,
        qsize,
    ): ...
    def run_end(self, *, processed, last_t, qsize, wall_ms): ...
    def schedule(self, ev: BaseEvent, *, now, qsize): ...
    def dispatch_start(self, ev: BaseEvent, *, seq, qsize, handlers): ...
    def dispatch_end(self, ev: BaseEvent, *, produced, qsize, ms): ...
    def error(self, ev: BaseEvent, *, reason: str, **kw): ...


class RegistryHooks(Protocol):
    def roads_set(self, *, t: float, roads: int, total_length_m: float): ...
    def generation(
        self,
        *,
        t: float,
        generation: int,
        placed: int,
        target: int,
        attempts: int,
        subscribers: int,
    ): ...
    def subscribed(self, *, subscribers: int): ...
    def unsubscribed(self, *, subscribers: int): ...
    def auto_refresh(self, *, active: bool, interval_s: float): ...
    def disposed(self): ...
    def error(self, *, reason: str, exc: BaseException | None = None, **kw): ...


class NoopHooks:
    def run_start(self, **_):
        pass

    def run_end(self, **_):
        pass

    def schedule(self, *_, **__):
        pass

    def dispatch_start(self, *_, **__):
        pass

    def dispatch_end(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass


class NoopRegistryHooks:
    def roads_set(self, **_):
        pass

    def generation(self, **_):
        pass

    def subscribed(self, **_):
        pass

    def unsubscribed(self, **_):
        pass

    def auto_refresh(self, **_):
        pass

    def disposed(self):
        pass

    def error(self, **_):
        pass
