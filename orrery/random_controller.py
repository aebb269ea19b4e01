from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np

from .body import Body, copy_bodies, make_body
from .constants import G_CONST
from .controller_base import ControllerResult, IntervalSchedule, UiFeedback
from .diagnostics import diag_print
from .presets import (
	STAR_COLORS,
	PLANET_COLOR,
	as_rng,
	letter,
	generate_distant_position,
	random_direction,
)
from .sim_config import ParameterOverrides
from .stability_analyzer import (
	StabilityMetrics,
	analyze_stability,
	compute_distance,
	compute_energy,
	compute_minimum_pairwise_distance,
	compute_virial_ratio,
)

"""
This module adds generation-time quality control and runtime monitoring to the Random scenario. RandomConfig holds the generation knobs. validate_random_configuration rejects a body set whose virial ratio leaves the configured range, whose closest pair is nearer than 0.8 of the minimum star distance, or which contains two similar-mass stars closer than 8 units (a Roche-lobe overflow heuristic). generate_random_scenario_with_validation draws up to max_attempts candidate systems from a seeded numpy generator and returns the first valid one, or the last candidate when none passes. RandomRuntimeMonitor evaluates the live system every five units, tightening parameters on virial imbalance or energy drift and capturing rapidly spreading configurations into a bounded history.

"""

_ROCHE_DISTANCE = 8.0
_ROCHE_MASS_CONTRAST = 0.3
_CLOSE_FRACTION = 0.8


@dataclass
class RandomConfig:
	min_star_distance: float = 12.0
	min_planet_distance: float = 8.0
	virial_ratio_range: Tuple[float, float] = (0.4, 1.5)
	mass_range: Tuple[float, float] = (9.0, 14.0)
	speed_range: Tuple[float, float] = (0.08, 0.22)
	max_attempts: int = 15


@dataclass
class ValidationResult:
	valid: bool
	reason: Optional[str] = None
	virial_ratio: float = 0.0
	min_distance: Optional[float] = None
	roche_lobe_violations: List[str] = field(default_factory=list)


@dataclass
class GenerationResult:
	bodies: List[Body]
	attempts: int
	validation: ValidationResult


def validate_random_configuration(bodies: Sequence, config: RandomConfig | None = None, G: float = G_CONST) -> ValidationResult:
	cfg = config or RandomConfig()
	energy = compute_energy(bodies, G=G)
	virial = compute_virial_ratio(energy.kinetic, energy.potential)

	lo, hi = cfg.virial_ratio_range
	if virial > hi:
		return ValidationResult(False, f"Too much kinetic energy: {virial:.2f}", virial)
	if virial < lo:
		return ValidationResult(False, f"Too little kinetic energy: {virial:.2f}", virial)

	min_dist = compute_minimum_pairwise_distance(bodies)
	if min_dist < cfg.min_star_distance * _CLOSE_FRACTION:
		return ValidationResult(
			False,
			f"Bodies too close: {min_dist:.2f} < {cfg.min_star_distance:g}",
			virial,
			min_dist,
		)

	violations = []
	for i in range(len(bodies)):
		for j in range(i + 1, len(bodies)):
			b1, b2 = bodies[i], bodies[j]
			if not (b1.is_star and b2.is_star):
				continue
			if compute_distance(b1, b2) >= _ROCHE_DISTANCE:
				continue
			if abs(b1.mass - b2.mass) / (b1.mass + b2.mass) < _ROCHE_MASS_CONTRAST:
				violations.append(f"{b1.name}-{b2.name}")

	if violations:
		return ValidationResult(False, "Roche lobe overflow risk", virial, min_dist, violations)

	return ValidationResult(True, None, virial, min_dist)


def _uniform(rng: np.random.Generator, bounds: Tuple[float, float]) -> float:
	lo, hi = bounds
	return lo + rng.random() * (hi - lo)


def _draw_candidate(rng: np.random.Generator, cfg: RandomConfig) -> List[Body]:
	bodies: List[Body] = []
	positions: List[np.ndarray] = []
	for i in range(3):
		pos = generate_distant_position(rng, positions, cfg.min_star_distance)
		positions.append(pos)
		mass = _uniform(rng, cfg.mass_range)
		speed = _uniform(rng, cfg.speed_range)
		bodies.append(make_body(
			f"Star {letter(i)}", mass, pos, speed * random_direction(rng), STAR_COLORS[i]
		))

	planet_pos = generate_distant_position(rng, positions, cfg.min_planet_distance)
	host = min(bodies, key=lambda b: compute_distance(planet_pos, b))
	host_dist = compute_distance(planet_pos, host)
	planet_speed = np.sqrt(host.mass / (host_dist + 0.001)) * (0.8 + rng.random() * 0.4)
	vel = planet_speed * np.array([
		(rng.random() - 0.5) * 2.0,
		(rng.random() - 0.5) * 2.0,
		(rng.random() - 0.5) * 0.5,
	])
	bodies.append(make_body("Planet", 0.01, planet_pos, vel, PLANET_COLOR, is_star=False))
	return bodies


def generate_random_scenario_with_validation(seed=None, config: RandomConfig | None = None) -> GenerationResult:
	cfg = config or RandomConfig()
	rng = as_rng(seed)
	max_attempts = max(1, int(cfg.max_attempts))

	attempts = 0
	while True:
		bodies = _draw_candidate(rng, cfg)
		validation = validate_random_configuration(bodies, cfg)
		attempts += 1
		if validation.valid or attempts >= max_attempts:
			return GenerationResult(bodies, attempts, validation)


@dataclass
class CapturedConfiguration:
	time: float
	bodies: List[Body]
	metrics: StabilityMetrics


class RandomRuntimeMonitor:
	def __init__(self, G: float = G_CONST, interval: float = 5.0, history: int = 5) -> None:
		self.G = float(G)
		self.initial_energy: Optional[float] = None
		self.captured: Deque[CapturedConfiguration] = deque(maxlen=history)
		self._schedule = IntervalSchedule(interval)

	def capture(self, state: Sequence, t: float) -> CapturedConfiguration:
		metrics = analyze_stability(state, self.initial_energy, G=self.G)
		entry = CapturedConfiguration(float(t), copy_bodies(state), metrics)
		self.captured.append(entry)
		diag_print(
			"random-capture",
			f"[capture] t={float(t):.2f} energy={metrics.total_energy:.2f} "
			f"virial={metrics.virial_ratio:.2f} spread={metrics.spatial_spread:.2f}",
		)
		return entry

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if self.initial_energy is None:
			self.initial_energy = compute_energy(state, G=self.G).total
		if not self._schedule.ready(t):
			return None

		stability = analyze_stability(state, self.initial_energy, G=self.G)

		imbalance = abs(stability.virial_ratio - 1.0)
		if imbalance > 0.5:
			return ControllerResult(
				param_overrides=ParameterOverrides(
					time_step=max(dt * 0.6, 0.003),
					softening=min(0.3, 0.15 * (1 + imbalance * 0.4)),
				),
				ui_feedback=UiFeedback(f"Virial ratio unstable: {stability.virial_ratio:.2f}", "warning"),
			)

		if stability.spatial_spread > 20:
			self.capture(state, t)
			return ControllerResult(ui_feedback=UiFeedback(
				f"Rapid spatial spread detected: {stability.spatial_spread:.1f}",
				"warning",
				"Unstable configuration captured",
			))

		if stability.energy_deviation > 0.15:
			return ControllerResult(
				param_overrides=ParameterOverrides(
					softening=min(0.4, 0.15 * (1 + stability.energy_deviation))
				),
				ui_feedback=UiFeedback(f"Energy drift: {stability.energy_deviation * 100:.1f}%", "warning"),
			)
		return None
