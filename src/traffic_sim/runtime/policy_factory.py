from traffic_sim.app.protocols import SeveritySampler
from traffic_sim.config.models import ImpactModel, SeverityBernoulliModel, SeverityUnion
from traffic_sim.domain.entities.traffic import Severity
from traffic_sim.policy.impact import ImpactPolicy
from traffic_sim.policy.severity import BernoulliSeveritySampler
from traffic_sim.sim.rng import RNGRegistry


def make_severity_sampler(cfg: SeverityUnion, *, rng_registry: RNGRegistry) -> SeveritySampler:
    if isinstance(cfg, SeverityBernoulliModel):
        return BernoulliSeveritySampler(
            rng_registry.stream("severity"),
            p_high=cfg.p_high,
            high_radius_m=cfg.high_radius_m,
            medium_radius_m=cfg.medium_radius_m,
        )
    else:
        raise TypeError(cfg)


def make_impact_policy(cfg: ImpactModel) -> ImpactPolicy:
    if isinstance(cfg, ImpactModel):
        return ImpactPolicy(
            max_distance_m=cfg.max_distance_m,
            near_m=cfg.near_m,
            mid_m=cfg.mid_m,
            mid_weight=cfg.mid_weight,
            decay_m=cfg.decay_m,
            floor_weight=cfg.floor_weight,
            multipliers={
                Severity.HIGH: cfg.high_multiplier,
                Severity.MEDIUM: cfg.medium_multiplier,
            },
            scores={Severity.HIGH: cfg.high_score, Severity.MEDIUM: cfg.medium_score},
            baseline=cfg.baseline,
            high_threshold=cfg.high_threshold,
            moderate_threshold=cfg.moderate_threshold,
        )
    else:
        raise TypeError(cfg)
