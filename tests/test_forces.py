"""
Tests for the softened gravity evaluator.
"""

import numpy as np

from orrery.forces import gravitational_acceleration, pair_indices, pairwise_acceleration


def _brute_force(pos, mass, G, eps):
    n = len(mass)
    acc = np.zeros((n, 3))
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            dr = pos[j] - pos[i]
            acc[i] += G * mass[j] * dr / (dr @ dr + eps * eps) ** 1.5
    return acc


def test_two_body_acceleration_values():
    """Accelerations match G m / r^2 along the separation."""
    pos = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    mass = np.array([1.0, 3.0])

    acc = pairwise_acceleration(pos, mass, G=1.0, softening=0.0)

    np.testing.assert_allclose(acc[0], [0.75, 0.0, 0.0], atol=1e-14)
    np.testing.assert_allclose(acc[1], [-0.25, 0.0, 0.0], atol=1e-14)


def test_matches_direct_summation():
    """Pairwise evaluation equals the O(n^2) double loop."""
    rng = np.random.default_rng(7)
    pos = rng.normal(size=(6, 3)) * 5.0
    mass = rng.uniform(1.0, 10.0, size=6)

    out = np.empty((6, 3))
    gravitational_acceleration(pos, mass, 1.3, 0.1, out)

    np.testing.assert_allclose(out, _brute_force(pos, mass, 1.3, 0.1), rtol=1e-12, atol=1e-14)


def test_net_force_vanishes():
    """Newton's third law: the mass-weighted accelerations sum to zero."""
    rng = np.random.default_rng(11)
    pos = rng.normal(size=(5, 3)) * 3.0
    mass = rng.uniform(0.5, 4.0, size=5)

    acc = pairwise_acceleration(pos, mass, G=1.0, softening=0.15)

    np.testing.assert_allclose(np.sum(mass[:, None] * acc, axis=0), 0.0, atol=1e-12)


def test_output_is_overwritten_not_accumulated():
    pos = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    mass = np.array([1.0, 1.0])
    out = np.full((2, 3), 123.0)

    gravitational_acceleration(pos, mass, 1.0, 0.0, out)
    first = out.copy()
    gravitational_acceleration(pos, mass, 1.0, 0.0, out)

    np.testing.assert_array_equal(out, first)
    assert out[0, 0] == 1.0


def test_zero_gravity_and_single_body_yield_zero():
    pos = np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]])
    mass = np.array([5.0, 5.0])
    out = np.ones((2, 3))
    gravitational_acceleration(pos, mass, 0.0, 0.1, out)
    assert np.all(out == 0.0)

    single = np.ones((1, 3))
    gravitational_acceleration(pos[:1], mass[:1], 1.0, 0.1, single)
    assert np.all(single == 0.0)


def test_coincident_bodies_stay_finite_with_softening():
    pos = np.zeros((2, 3))
    mass = np.array([1.0, 1.0])

    acc = pairwise_acceleration(pos, mass, G=1.0, softening=0.1)

    assert np.all(np.isfinite(acc))
    assert np.all(acc == 0.0)


def test_pair_indices_are_cached():
    assert pair_indices(4) is pair_indices(4)
    ii, jj = pair_indices(4)
    assert len(ii) == 6
    assert np.all(ii < jj)
