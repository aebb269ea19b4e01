from __future__ import annotations
import math
from dataclasses import dataclass, asdict
from typing import Optional, Sequence

import numpy as np

from .stability_analyzer import (
	analyze_stability,
	evaluate_stability_status,
	StabilityThresholds,
)
from .physics_utils import state_arrays

"""
This module computes and reports the telemetry the integrator caches between samples. The StatsSnapshot record combines the energy triple and the planet habitability flag with the extended stability fields (energy deviation against the controller baseline, virial ratio, symmetry, pairwise distance extrema, the z component of angular momentum, spatial spread and the composite verdict). compute_habitability scans planet-star pairs for the habitable band around 1.5 sqrt(M_star) and vetoes planets closer than 2 units to any star. compute_stats builds a snapshot from a body sequence. diag_print is the package-wide rate-limited console reporter: the first diag_print_limit occurrences of a message key are printed and afterwards only every diag_print_interval-th, with both knobs read from the active SimConfig. It assumes the bodies are the integrator's live views or any equivalent body-like objects.

"""

_HABITABLE_SCALE = 1.5
_HABITABLE_BAND = 0.3
_BURN_DISTANCE = 2.0

_DIAG_LIMIT = 3
_DIAG_INTERVAL = 1000
_GLOBAL_DIAG_COUNTS: dict = {}


@dataclass(frozen=True)
class StatsSnapshot:
	total_energy: float
	kinetic_energy: float
	potential_energy: float
	habitable: bool
	energy_deviation: float = 0.0
	virial_ratio: float = 0.0
	symmetry_score: float = 1.0
	min_pairwise_distance: float = math.inf
	max_pairwise_distance: float = 0.0
	angular_momentum_z: float = 0.0
	spatial_spread: float = math.inf
	stability_status: str = "stable"
	time: float = 0.0

	def as_dict(self) -> dict:
		return asdict(self)


def compute_habitability(bodies: Sequence) -> bool:
	planet_idx = None
	for i, b in enumerate(bodies):
		if not b.is_star:
			planet_idx = i
	if planet_idx is None:
		return False

	pos, _, m = state_arrays(bodies)
	habitable = False
	min_star_dist = math.inf
	for j, b in enumerate(bodies):
		if j == planet_idx or not b.is_star:
			continue
		dist = float(np.linalg.norm(pos[planet_idx] - pos[j]))
		optimal = math.sqrt(m[j]) * _HABITABLE_SCALE
		if abs(dist - optimal) < optimal * _HABITABLE_BAND:
			habitable = True
		if dist < min_star_dist:
			min_star_dist = dist

	if min_star_dist < _BURN_DISTANCE:
		habitable = False
	return habitable


def compute_stats(
	bodies: Sequence,
	G: float,
	initial_energy: Optional[float] = None,
	time: float = 0.0,
	thresholds: StabilityThresholds | None = None,
) -> StatsSnapshot:
	metrics = analyze_stability(bodies, initial_energy, G=G)
	verdict = evaluate_stability_status(metrics, thresholds)
	return StatsSnapshot(
		total_energy=metrics.total_energy,
		kinetic_energy=metrics.kinetic_energy,
		potential_energy=metrics.potential_energy,
		habitable=compute_habitability(bodies),
		energy_deviation=metrics.energy_deviation,
		virial_ratio=metrics.virial_ratio,
		symmetry_score=metrics.symmetry_score,
		min_pairwise_distance=metrics.min_distance,
		max_pairwise_distance=metrics.max_distance,
		angular_momentum_z=float(metrics.angular_momentum[2]),
		spatial_spread=metrics.spatial_spread,
		stability_status=verdict.status,
		time=float(time),
	)


def diag_print(key: str, msg: str, cfg=None) -> None:
	if not getattr(cfg, "diag_prints", True):
		return
	limit = max(0, int(getattr(cfg, "diag_print_limit", _DIAG_LIMIT)))
	interval = max(1, int(getattr(cfg, "diag_print_interval", _DIAG_INTERVAL)))

	c = _GLOBAL_DIAG_COUNTS.get(key, 0) + 1
	_GLOBAL_DIAG_COUNTS[key] = c

	if c <= limit:
		print(msg)
	elif c % interval == 0:
		print(f"{msg} (occurrence #{c})")


def reset_diag_counts() -> None:
	_GLOBAL_DIAG_COUNTS.clear()
