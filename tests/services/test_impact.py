import math

import pytest

from traffic_sim.domain.entities.geography import LatLng
from traffic_sim.domain.entities.traffic import Severity, TrafficNode
from traffic_sim.domain.geodesy import EARTH_RADIUS_M
from traffic_sim.policy.impact import ImpactPolicy
from traffic_sim.services.impact import score_impact

M_PER_DEG_LAT = EARTH_RADIUS_M * math.pi / 180
CENTER = LatLng(40.0, -3.0)


def node_at(meters_north: float, sev: Severity, i: int = 0) -> TrafficNode:
    return TrafficNode(f"n{i}", CENTER.lat + meters_north / M_PER_DEG_LAT, CENTER.lng, sev, 100.0)


def test_single_high_node_at_center_scores_high():
    s = score_impact(CENTER, [node_at(0, Severity.HIGH)])
    assert s.average == pytest.approx(3.0)
    assert s.label == "High"
    assert s.nearby == 1


def test_empty_neighborhood_is_low_baseline():
    s = score_impact(CENTER, [])
    assert s.average == 1.0
    assert s.label == "Low"
    assert s.nearby == 0


def test_nodes_beyond_max_distance_are_ignored():
    s = score_impact(CENTER, [node_at(1200, Severity.HIGH)])
    assert s.nearby == 0
    assert s.label == "Low"
    wide = score_impact(CENTER, [node_at(1200, Severity.HIGH)], max_distance_m=1500)
    assert wide.label == "High"


def test_single_medium_node_is_low():
    s = score_impact(CENTER, [node_at(100, Severity.MEDIUM)])
    assert s.average == pytest.approx(1.0)
    assert s.label == "Low"


def test_mixed_severities_weighted_average():
    nodes = [node_at(0, Severity.HIGH, 0), node_at(0, Severity.MEDIUM, 1)]
    s = score_impact(CENTER, nodes)
    # (3 * 1.5 + 1 * 1.2) / (1.5 + 1.2)
    assert s.average == pytest.approx(5.7 / 2.7)
    assert s.label == "Moderate"


def test_distance_decay_shifts_the_balance():
    near_medium = node_at(100, Severity.MEDIUM, 0)
    far_high = node_at(900, Severity.HIGH, 1)
    s = score_impact(CENTER, [near_medium, far_high])
    # weights: medium 1.0 * 1.2, high 0.3 * 1.5
    expected = (1 * 1.2 + 3 * 0.45) / (1.2 + 0.45)
    assert s.average == pytest.approx(expected)
    assert s.label == "Low"
    # the same two nodes at the center read Moderate
    close = score_impact(CENTER, [node_at(0, Severity.MEDIUM, 0), node_at(0, Severity.HIGH, 1)])
    assert close.label == "Moderate"


def test_custom_policy_constants():
    policy = ImpactPolicy(
        scores={Severity.HIGH: 3.0, Severity.MEDIUM: 2.0},
        multipliers={Severity.HIGH: 1.5, Severity.MEDIUM: 1.2},
    )
    s = score_impact(CENTER, [node_at(0, Severity.MEDIUM)], policy)
    assert s.average == pytest.approx(2.0)
    assert s.label == "Moderate"
