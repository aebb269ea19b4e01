from __future__ import annotations
import math
from typing import List, Sequence

import numpy as np

from .body import Body, make_body
from .constants import G_CONST

"""
This module provides the body layouts of the built-in scenarios. The ScenarioPresets class offers static methods for the Chande-Montgomery figure-eight with a light planet, a Sun-Earth-Moon style hierarchy, a chaotic three-star ejection setup, the equilateral Lagrange triangle and the six-petal Rosette ring, the last two built by the shared ring generator. generate_random_scenario draws three stars and one planet inside a 24-unit box while keeping minimum separations. Every call returns fresh Body instances so a running simulation never aliases a template.

"""

STAR_COLORS = ("#ffaa00", "#00aaff", "#ff4444")
RING_COLORS = ("#ffaa00", "#00aaff", "#ff4444", "#aaff00", "#ff66cc", "#66ccff")
PLANET_COLOR = "#ffffff"

LAGRANGE_SIDE = 12.0
LAGRANGE_RADIUS = LAGRANGE_SIDE / math.sqrt(3.0)
LAGRANGE_MASS = 10.0
LAGRANGE_SPEED = math.sqrt(G_CONST * LAGRANGE_MASS / LAGRANGE_SIDE)

ROSETTE_RADIUS = 12.0
ROSETTE_MASSES = (10.0, 8.0, 10.0, 8.0, 10.0, 8.0)
ROSETTE_SPEED_FRACTION = 0.55

RANDOM_BOX = 24.0
MIN_STAR_DISTANCE = 12.0
MIN_PLANET_DISTANCE = 8.0


def letter(i: int) -> str:
	return chr(65 + i)


def as_rng(seed) -> np.random.Generator:
	if isinstance(seed, np.random.Generator):
		return seed
	return np.random.default_rng(seed)


class ScenarioPresets:

	@staticmethod
	def ring(
		prefix: str,
		masses: Sequence[float],
		radius: float,
		speed: float,
		colors: Sequence[str] = RING_COLORS,
	) -> List[Body]:
		n = len(masses)
		angles = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
		bodies = []
		for i, a in enumerate(angles):
			bodies.append(make_body(
				f"{prefix} {letter(i)}",
				masses[i],
				(radius * math.cos(a), radius * math.sin(a), 0.0),
				(-speed * math.sin(a), speed * math.cos(a), 0.0),
				colors[i % len(colors)],
			))
		return bodies

	@staticmethod
	def figure8() -> List[Body]:
		return [
			make_body("Alpha", 10, (9.7000436, -2.4308753, 0), (0.4662036850, 0.4323657300, 0), "#ffaa00"),
			make_body("Beta", 10, (-9.7000436, 2.4308753, 0), (0.4662036850, 0.4323657300, 0), "#00aaff"),
			make_body("Gamma", 10, (0, 0, 0), (-0.93240737, -0.86473146, 0), "#ff4444"),
			make_body("Planet", 0.01, (1, 1, 2), (0.5, 0.5, 0.1), PLANET_COLOR, is_star=False),
		]

	@staticmethod
	def hierarchical() -> List[Body]:
		return [
			make_body("Sun A", 20, (0, 0, 0), (0, 0, 0), "#ffcc00"),
			make_body("Sun B", 5, (15, 0, 0), (0, 1.1, 0), "#ff4400"),
			make_body("Sun C", 2, (18, 0, 0), (0, 2.5, 0), "#00ccff"),
			make_body("Planet", 0.01, (5, 0, 0), (0, 2.0, 0), PLANET_COLOR, is_star=False),
		]

	@staticmethod
	def chaotic_ejection() -> List[Body]:
		return [
			make_body("Alpha", 10, (5, 0, 0), (-0.5, 0.5, 0), "#ffaa00"),
			make_body("Beta", 10, (-5, -2, 0), (0.5, 0.2, 0), "#00aaff"),
			make_body("Gamma", 8, (0, 5, 0), (0, -0.5, 0), "#ff4444"),
			make_body("Planet", 0.01, (1, 1, 0), (0.8, 0.5, 0.5), PLANET_COLOR, is_star=False),
		]

	@staticmethod
	def lagrange() -> List[Body]:
		return ScenarioPresets.ring(
			"Star", [LAGRANGE_MASS] * 3, LAGRANGE_RADIUS, LAGRANGE_SPEED, STAR_COLORS
		)

	@staticmethod
	def rosette() -> List[Body]:
		total = float(sum(ROSETTE_MASSES))
		speed = math.sqrt(G_CONST * total / ROSETTE_RADIUS) * ROSETTE_SPEED_FRACTION
		return ScenarioPresets.ring("Petal", ROSETTE_MASSES, ROSETTE_RADIUS, speed)


def random_position(rng: np.random.Generator, box: float = RANDOM_BOX) -> np.ndarray:
	return (rng.random(3) - 0.5) * box


def generate_distant_position(
	rng: np.random.Generator,
	existing: Sequence[np.ndarray],
	min_distance: float,
	max_attempts: int = 50,
) -> np.ndarray:
	for _ in range(max_attempts):
		pos = random_position(rng)
		if all(np.linalg.norm(pos - p) >= min_distance for p in existing):
			return pos
	return random_position(rng)


def random_direction(rng: np.random.Generator) -> np.ndarray:
	theta = rng.random() * 2.0 * math.pi
	phi = math.acos(2.0 * rng.random() - 1.0)
	return np.array([
		math.sin(phi) * math.cos(theta),
		math.sin(phi) * math.sin(theta),
		math.cos(phi),
	])


def generate_random_scenario(seed=None) -> List[Body]:
	rng = as_rng(seed)
	bodies: List[Body] = []
	positions: List[np.ndarray] = []

	for i in range(3):
		pos = generate_distant_position(rng, positions, MIN_STAR_DISTANCE)
		positions.append(pos)
		speed = 0.05 + rng.random() * 0.20
		mass = 8.0 + rng.random() * 7.0
		bodies.append(make_body(
			f"Star {letter(i)}", mass, pos, speed * random_direction(rng), STAR_COLORS[i]
		))

	planet_pos = generate_distant_position(rng, positions, MIN_PLANET_DISTANCE)
	planet_speed = 0.1 + rng.random() * 0.4
	bodies.append(make_body(
		"Planet", 0.01, planet_pos, planet_speed * random_direction(rng), PLANET_COLOR, is_star=False
	))
	return bodies
