"""
This module implements BodyView, a proxy class providing Body-like access to one
particle stored in an integrator's numpy arrays.

The position and velocity properties return row views of the owning (N, 3) arrays, so
in-place writes from a controller land directly in the live state, while assignment
copies the new vector into the row instead of rebinding it. Mass, name, color, radius
and the is_star flag are plain per-body attributes copied once at construction. This
lets the renderer, the stability analyzer and the controllers treat the live state as an
ordinary list of bodies without any data copying. The view assumes the owning arrays are
never reallocated for the lifetime of the integrator.
"""

from __future__ import annotations
import numpy as np

from .body import Body


class BodyView:
	__slots__ = ("_pos", "_vel", "_i", "name", "mass", "radius", "color", "is_star")

	def __init__(self, pos: np.ndarray, vel: np.ndarray, idx: int, template) -> None:
		self._pos = pos
		self._vel = vel
		self._i = int(idx)
		self.name = template.name
		self.mass = float(template.mass)
		self.radius = float(template.radius)
		self.color = template.color
		self.is_star = bool(template.is_star)

	@property
	def index(self) -> int:
		return self._i

	@property
	def position(self) -> np.ndarray:
		return self._pos[self._i]
	@position.setter
	def position(self, v) -> None:
		self._pos[self._i] = np.asarray(v, dtype=np.float64)

	@property
	def velocity(self) -> np.ndarray:
		return self._vel[self._i]
	@velocity.setter
	def velocity(self, v) -> None:
		self._vel[self._i] = np.asarray(v, dtype=np.float64)

	def copy(self) -> Body:
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
		return (f"BodyView(name={self.name!r}, mass={self.mass}, "
				f"position=({p[0]}, {p[1]}, {p[2]}), velocity=({v[0]}, {v[1]}, {v[2]}))")
