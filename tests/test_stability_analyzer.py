"""
Tests for the stateless stability-analysis functions.
"""

import math
from dataclasses import replace

import numpy as np
import pytest

from orrery.body import make_body
from orrery.presets import ScenarioPresets
from orrery.stability_analyzer import (
    StabilityThresholds,
    analyze_stability,
    compute_angular_momentum,
    compute_centroid,
    compute_distance,
    compute_energy,
    compute_hill_sphere,
    compute_maximum_pairwise_distance,
    compute_minimum_pairwise_distance,
    compute_orbital_speed,
    compute_spatial_spread,
    compute_symmetry_score,
    compute_two_body_energy,
    compute_virial_ratio,
    energy_deviation,
    evaluate_stability_status,
)


def _pair(distance, speed=0.0, m1=1.0, m2=1.0):
    return [
        make_body("A", m1, (0, 0, 0), (0, 0, 0), "#fff"),
        make_body("B", m2, (distance, 0, 0), (0, speed, 0), "#fff"),
    ]


def test_energy_of_static_pair():
    e = compute_energy(_pair(2.0), G=1.0)
    assert e.kinetic == 0.0
    assert e.potential == pytest.approx(-0.5)
    assert e.total == pytest.approx(-0.5)


def test_potential_is_unsoftened():
    """The reported potential ignores the force softening length."""
    e = compute_energy(_pair(0.1), G=1.0)
    assert e.potential == pytest.approx(-10.0)


def test_energy_scales_with_G():
    assert compute_energy(_pair(1.0), G=2.0).potential == pytest.approx(-2.0)


def test_virial_ratio():
    assert compute_virial_ratio(1.0, -4.0) == pytest.approx(0.5)
    assert compute_virial_ratio(1.0, 0.0) == 0.0


def test_symmetry_score_equilateral_is_one():
    tri = ScenarioPresets.lagrange()
    assert compute_symmetry_score(tri) == pytest.approx(1.0, abs=1e-9)


def test_symmetry_score_bounds():
    rng = np.random.default_rng(3)
    for _ in range(20):
        bodies = [
            make_body(f"B{i}", rng.uniform(1, 10), rng.normal(size=3) * 10, (0, 0, 0), "#fff")
            for i in range(5)
        ]
        score = compute_symmetry_score(bodies)
        assert 0.0 < score <= 1.0
    assert compute_symmetry_score(_pair(3.0)) == 1.0


def test_pairwise_distance_sentinels():
    single = _pair(1.0)[:1]
    assert compute_minimum_pairwise_distance(single) == math.inf
    assert compute_maximum_pairwise_distance(single) == 0.0
    assert compute_minimum_pairwise_distance(_pair(3.0)) == pytest.approx(3.0)


def test_spatial_spread():
    bodies = _pair(2.0) + [make_body("C", 1.0, (10, 0, 0), (0, 0, 0), "#fff")]
    assert compute_spatial_spread(bodies) == pytest.approx(5.0)
    assert compute_spatial_spread(_pair(0.0005)) == math.inf


def test_centroid_and_angular_momentum():
    bodies = _pair(4.0, speed=1.0, m1=3.0, m2=1.0)
    np.testing.assert_allclose(compute_centroid(bodies), [1.0, 0.0, 0.0])
    np.testing.assert_allclose(compute_angular_momentum(bodies), [0.0, 0.0, 4.0])


def test_distance_accepts_bodies_and_vectors():
    a, b = _pair(5.0)
    assert compute_distance(a, b) == pytest.approx(5.0)
    assert compute_distance(np.array([0, 3, 0]), np.array([4, 0, 0])) == pytest.approx(5.0)


def test_hill_sphere():
    primary = make_body("Sun A", 20, (0, 0, 0), (0, 0, 0), "#fff")
    sat = make_body("Planet", 0.01, (18, 0, 0), (0, 0, 0), "#fff", is_star=False)
    r_hill = compute_hill_sphere(sat, primary, 18.0)
    assert r_hill == pytest.approx(18.0 * (0.01 / 60.0) ** (1.0 / 3.0))
    assert r_hill == pytest.approx(0.99, abs=0.01)


def test_two_body_energy_sign():
    assert compute_two_body_energy(*_pair(1.0, speed=0.5)) < 0.0
    assert compute_two_body_energy(*_pair(1.0, speed=5.0)) > 0.0


def test_orbital_speed():
    assert compute_orbital_speed(4.0, 1.0) == pytest.approx(2.0)
    assert compute_orbital_speed(4.0, 0.0) == 0.0


def test_energy_deviation_without_baseline():
    assert energy_deviation(-3.0, None) == 0.0
    assert energy_deviation(-1.1, -1.0) == pytest.approx(0.1 / 1.001)


def test_verdict_counts_issues():
    metrics = analyze_stability(ScenarioPresets.lagrange(), G=1.0)
    assert metrics.virial_ratio == pytest.approx(1.0, rel=1e-9)
    assert evaluate_stability_status(metrics).status == "stable"

    one = replace(metrics, energy_deviation=0.2)
    verdict = evaluate_stability_status(one)
    assert verdict.status == "warning"
    assert len(verdict.issues) == 1

    two = replace(metrics, energy_deviation=0.2, symmetry_score=0.5)
    assert evaluate_stability_status(two).status == "critical"

    far = replace(metrics, max_distance=150.0, virial_ratio=3.0)
    assert evaluate_stability_status(far).status == "critical"


def test_verdict_thresholds_are_configurable():
    metrics = analyze_stability(ScenarioPresets.lagrange(), G=1.0)
    strict = StabilityThresholds(max_pair_distance=5.0)
    verdict = evaluate_stability_status(metrics, strict)
    assert verdict.status == "warning"
    assert "Ejection" in verdict.issues[0]
