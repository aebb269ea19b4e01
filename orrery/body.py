"""
This module defines the Body class, a simple data container for one point mass of a
scenario before it is handed to the integrator.

The class stores position and velocity as 3-component float64 numpy vectors, a constant
positive mass, the renderer-only radius and color, the display name that controllers
use as a lookup key, and the is_star flag separating stars from the single planet used
for habitability scoring. make_body derives the radius from the mass for stars and uses
a fixed radius otherwise. copy produces an independent instance so that a scenario
template is never aliased by a running simulation. The class makes no assumptions about
units, leaving those to the constants module.
"""

from __future__ import annotations
import numpy as np
from typing import Sequence


STAR_RADIUS_SCALE = 0.18
PLANET_RADIUS = 0.2


class Body:
	def __init__(
		self,
		name: str,
		mass: float,
		position: Sequence[float],
		velocity: Sequence[float],
		*,
		radius: float = PLANET_RADIUS,
		color: str = "#ffffff",
		is_star: bool = True,
	):
		self.name = str(name)
		self.mass = float(mass)
		self.position = np.array(position, dtype=np.float64).reshape(3)
		self.velocity = np.array(velocity, dtype=np.float64).reshape(3)
		self.radius = float(radius)
		self.color = color
		self.is_star = bool(is_star)

	def copy(self) -> "Body":
		return Body(
			self.name,
			self.mass,
			self.position.copy(),
			self.velocity.copy(),
			radius=self.radius,
			color=self.color,
			is_star=self.is_star,
		)

	def __repr__(self) -> str:
		p, v = self.position, self.velocity
		return (f"Body(name={self.name!r}, mass={self.mass}, "
				f"position=({p[0]}, {p[1]}, {p[2]}), velocity=({v[0]}, {v[1]}, {v[2]}))")


def make_body(
	name: str,
	mass: float,
	pos: Sequence[float],
	vel: Sequence[float],
	color: str,
	is_star: bool = True,
) -> Body:
	if is_star:
		radius = float(mass) ** (1.0 / 3.0) * STAR_RADIUS_SCALE
	else:
		radius = PLANET_RADIUS
	return Body(name, mass, pos, vel, radius=radius, color=color, is_star=is_star)


def copy_bodies(bodies: Sequence[Body]) -> list[Body]:
	return [b.copy() for b in bodies]
