from collections.abc import Callable

from traffic_sim.app.protocols import TargetCountPolicy
from traffic_sim.config.models import (
    TargetCountFixedModel,
    TargetCountUnion,
    TargetCountViewportModel,
)
from traffic_sim.policy.target_count import FixedTargetCount, ViewportAreaTargetCount

TargetCountFactory = Callable[[TargetCountUnion], TargetCountPolicy]

_target_count_registry: dict[str, TargetCountFactory] = {}


# ------------------- Target count registries ---------------------------


def register_target_count(kind: str):
    def deco(fn: TargetCountFactory):
        _target_count_registry[kind] = fn
        return fn

    return deco


def make_target_count(cfg: TargetCountUnion) -> TargetCountPolicy:
    try:
        factory = _target_count_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown target_count kind {cfg.kind!r}")
    return factory(cfg)


@register_target_count("viewport_area")
def _make_viewport_area(cfg: TargetCountViewportModel):
    return ViewportAreaTargetCount(
        px_per_node=cfg.px_per_node,
        min_count=cfg.min_count,
        max_count=cfg.max_count,
        default_count=cfg.default_count,
    )


@register_target_count("fixed")
def _make_fixed(cfg: TargetCountFixedModel):
    return FixedTargetCount(cfg.count)
