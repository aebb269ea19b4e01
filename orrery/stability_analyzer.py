from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .constants import G_CONST
from .physics_utils import position_of, state_arrays

"""
This module is the stateless stability-analysis library consumed by the scenario controllers and by the telemetry cache. It computes kinetic and potential energy (the potential uses the unsoftened separation while the force law is softened), the virial ratio, the mass-weighted centroid, total angular momentum, a centroid-distance symmetry score, pairwise distance extrema and their spread, Hill-sphere radii, pair binding energy, and circular orbital speed. analyze_stability bundles these into a StabilityMetrics record and evaluate_stability_status turns a record into a stable/warning/critical verdict by counting violated StabilityThresholds. Every function takes any sequence of body-like objects exposing position, velocity and mass, and guards its divisions with 0 or inf sentinels instead of raising.



"""

_SPREAD_COLLISION_DIST = 1.0e-3
_DEVIATION_EPS = 1.0e-3


@dataclass(frozen=True)
class EnergyBreakdown:
	total: float
	kinetic: float
	potential: float


@dataclass(frozen=True)
class StabilityMetrics:
	total_energy: float
	kinetic_energy: float
	potential_energy: float
	energy_deviation: float
	virial_ratio: float
	centroid: np.ndarray
	radius_std: float
	symmetry_score: float
	min_distance: float
	max_distance: float
	spatial_spread: float
	angular_momentum: np.ndarray


@dataclass
class StabilityThresholds:
	max_energy_deviation: float = 0.1
	min_virial_ratio: float = 0.4
	max_virial_ratio: float = 2.0
	max_pair_distance: float = 100.0
	min_symmetry_score: float = 0.8


@dataclass(frozen=True)
class StabilityVerdict:
	status: str
	issues: List[str] = field(default_factory=list)


def _pair_distances(pos: np.ndarray) -> np.ndarray:
	n = pos.shape[0]
	if n < 2:
		return np.empty(0, dtype=float)
	iu = np.triu_indices(n, 1)
	dr = pos[iu[1]] - pos[iu[0]]
	return np.sqrt(np.einsum("ij,ij->i", dr, dr))


def compute_energy(bodies: Sequence, G: float = G_CONST) -> EnergyBreakdown:
	pos, vel, m = state_arrays(bodies)
	kinetic = 0.5 * float(np.sum(m * np.sum(vel * vel, axis=1)))

	n = len(m)
	if n >= 2:
		iu = np.triu_indices(n, 1)
		r = _pair_distances(pos)
		potential = -float(G) * float(np.sum(m[iu[0]] * m[iu[1]] / r))
	else:
		potential = 0.0

	return EnergyBreakdown(kinetic + potential, kinetic, potential)


def compute_virial_ratio(kinetic_energy: float, potential_energy: float) -> float:
	if potential_energy == 0:
		return 0.0
	return 2.0 * kinetic_energy / abs(potential_energy)


def compute_minimum_pairwise_distance(bodies: Sequence) -> float:
	pos, _, _ = state_arrays(bodies)
	r = _pair_distances(pos)
	if r.size == 0:
		return math.inf
	return float(np.min(r))


def compute_maximum_pairwise_distance(bodies: Sequence) -> float:
	pos, _, _ = state_arrays(bodies)
	r = _pair_distances(pos)
	if r.size == 0:
		return 0.0
	return float(np.max(r))


def compute_centroid(bodies: Sequence) -> np.ndarray:
	pos, _, m = state_arrays(bodies)
	total_mass = float(np.sum(m))
	if total_mass == 0.0:
		return np.zeros(3)
	return np.sum(m[:, None] * pos, axis=0) / total_mass


def compute_angular_momentum(bodies: Sequence) -> np.ndarray:
	pos, vel, m = state_arrays(bodies)
	if len(m) == 0:
		return np.zeros(3)
	return np.sum(np.cross(pos, m[:, None] * vel), axis=0)


def compute_distance(a, b) -> float:
	d = position_of(a) - position_of(b)
	return float(math.sqrt(float(np.dot(d, d))))


def compute_std(values: Sequence[float]) -> float:
	if len(values) == 0:
		return 0.0
	return float(np.std(np.asarray(values, dtype=float)))


def compute_symmetry_score(bodies: Sequence) -> float:
	n = len(bodies)
	if n < 3:
		return 1.0
	centroid = compute_centroid(bodies)
	pos, _, _ = state_arrays(bodies)
	dist = np.linalg.norm(pos - centroid, axis=1)
	avg = float(np.mean(dist))
	std = float(np.std(dist))
	return 1.0 / (1.0 + std / (avg + _DEVIATION_EPS))


def compute_spatial_spread(bodies: Sequence) -> float:
	min_dist = compute_minimum_pairwise_distance(bodies)
	max_dist = compute_maximum_pairwise_distance(bodies)
	if min_dist < _SPREAD_COLLISION_DIST:
		return math.inf
	return max_dist / min_dist


def compute_hill_sphere(satellite, primary, distance: float) -> float:
	mass_ratio = satellite.mass / (3.0 * primary.mass)
	if mass_ratio <= 0:
		return 0.0
	return float(distance) * mass_ratio ** (1.0 / 3.0)


def compute_two_body_energy(body1, body2, G: float = G_CONST) -> float:
	r = compute_distance(body1, body2)
	dv = np.asarray(body1.velocity, dtype=float) - np.asarray(body2.velocity, dtype=float)
	v2 = float(np.dot(dv, dv))
	mu = body1.mass * body2.mass / (body1.mass + body2.mass)
	return 0.5 * mu * v2 - G * body1.mass * body2.mass / r


def compute_orbital_speed(central_mass: float, distance: float, G: float = G_CONST) -> float:
	if distance <= 0:
		return 0.0
	return math.sqrt(G * central_mass / distance)


def energy_deviation(total_energy: float, initial_energy: Optional[float]) -> float:
	if initial_energy is None:
		return 0.0
	return abs(total_energy - initial_energy) / (abs(initial_energy) + _DEVIATION_EPS)


def analyze_stability(
	bodies: Sequence,
	initial_energy: Optional[float] = None,
	G: float = G_CONST,
) -> StabilityMetrics:
	energy = compute_energy(bodies, G=G)
	virial = compute_virial_ratio(energy.kinetic, energy.potential)

	centroid = compute_centroid(bodies)
	pos, _, _ = state_arrays(bodies)
	r = _pair_distances(pos)
	if r.size:
		min_dist = float(np.min(r))
		max_dist = float(np.max(r))
	else:
		min_dist = math.inf
		max_dist = 0.0
	if min_dist < _SPREAD_COLLISION_DIST:
		spread = math.inf
	else:
		spread = max_dist / min_dist

	radius_std = compute_std(np.linalg.norm(pos - centroid, axis=1)) if len(pos) else 0.0

	return StabilityMetrics(
		total_energy=energy.total,
		kinetic_energy=energy.kinetic,
		potential_energy=energy.potential,
		energy_deviation=energy_deviation(energy.total, initial_energy),
		virial_ratio=virial,
		centroid=centroid,
		radius_std=radius_std,
		symmetry_score=compute_symmetry_score(bodies),
		min_distance=min_dist,
		max_distance=max_dist,
		spatial_spread=spread,
		angular_momentum=compute_angular_momentum(bodies),
	)


def evaluate_stability_status(
	metrics: StabilityMetrics,
	thresholds: StabilityThresholds | None = None,
) -> StabilityVerdict:
	th = thresholds or StabilityThresholds()
	issues: List[str] = []

	if metrics.energy_deviation > th.max_energy_deviation:
		issues.append(f"Energy deviation: {metrics.energy_deviation * 100:.1f}%")

	if metrics.virial_ratio > th.max_virial_ratio:
		issues.append(f"High kinetic energy ({metrics.virial_ratio:.2f})")
	elif metrics.virial_ratio < th.min_virial_ratio:
		issues.append(f"Low kinetic energy ({metrics.virial_ratio:.2f})")

	if metrics.max_distance > th.max_pair_distance:
		issues.append("Ejection detected (large distance)")

	if metrics.symmetry_score < th.min_symmetry_score:
		issues.append(f"Low symmetry: {metrics.symmetry_score:.2f}")

	if len(issues) >= 2:
		status = "critical"
	elif len(issues) >= 1:
		status = "warning"
	else:
		status = "stable"
	return StabilityVerdict(status, issues)
