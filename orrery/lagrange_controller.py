from __future__ import annotations
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .controller_base import ControllerResult, IntervalSchedule, UiFeedback
from .physics_utils import state_arrays
from .stability_analyzer import compute_angular_momentum, compute_centroid

"""
This module keeps the Lagrange equilateral-triangle solution symmetric. compute_triangle_symmetry scores a three-body configuration from the spread of its side lengths, the spread of the vertex angles seen from the centroid and the drift of the centroid from the origin, averaged into one overall score in (0, 1]. LagrangeStableController evaluates that score every six time units and, below 0.9, installs a weak correction pulling each star toward its ideal vertex and circular velocity; otherwise it warns about centroid drift. ConservationController locks the initial angular momentum and kinetic energy on its first call and every twenty units installs an angular momentum correction. PeriodicRealignmentController resets the triangle to perfect symmetry every fifty units while preserving the kinetic energy. Configurations that do not hold exactly three bodies are scored as perfectly symmetric.

"""

_IDEAL_ANGLE = 2.0 * math.pi / 3.0
_EVAL_INTERVAL = 6.0
_SYMMETRY_FLOOR = 0.9
_CORRECTION_STRENGTH = 0.003
_CENTROID_DRIFT_WARN = 2.0
_DEFAULT_SIDE = 12.0


@dataclass(frozen=True)
class TriangleSymmetry:
	side_length_std: float
	angle_std: float
	centroid_drift: float
	overall_score: float


def compute_triangle_symmetry(bodies: Sequence) -> TriangleSymmetry:
	if len(bodies) != 3:
		return TriangleSymmetry(0.0, 0.0, 0.0, 1.0)

	pos, _, _ = state_arrays(bodies)
	sides = np.array([
		np.linalg.norm(pos[1] - pos[0]),
		np.linalg.norm(pos[2] - pos[0]),
		np.linalg.norm(pos[2] - pos[1]),
	])
	avg_side = float(np.mean(sides))
	side_std = float(np.std(sides))

	centroid = compute_centroid(bodies)
	angles = np.sort(np.arctan2(pos[:, 1] - centroid[1], pos[:, 0] - centroid[0]))
	gaps = np.diff(np.append(angles, angles[0] + 2.0 * math.pi))
	angle_std = float(np.std(gaps))

	drift = float(np.linalg.norm(centroid))

	side_score = 1.0 / (1.0 + side_std / (avg_side + 0.001))
	angle_score = 1.0 / (1.0 + angle_std / (_IDEAL_ANGLE + 0.001))
	centroid_score = 1.0 / (1.0 + drift)

	return TriangleSymmetry(side_std, angle_std, drift, (side_score + angle_score + centroid_score) / 3.0)


def triangle_vertices(centroid: np.ndarray, radius: float) -> np.ndarray:
	ang = np.arange(3) * _IDEAL_ANGLE
	out = np.zeros((3, 3))
	out[:, 0] = centroid[0] + radius * np.cos(ang)
	out[:, 1] = centroid[1] + radius * np.sin(ang)
	out[:, 2] = centroid[2]
	return out


def triangle_velocities(speed: float) -> np.ndarray:
	ang = np.arange(3) * _IDEAL_ANGLE
	out = np.zeros((3, 3))
	out[:, 0] = -speed * np.sin(ang)
	out[:, 1] = speed * np.cos(ang)
	return out


def _kinetic_energy(bodies: Sequence) -> float:
	_, vel, m = state_arrays(bodies)
	return 0.5 * float(np.sum(m * np.sum(vel * vel, axis=1)))


class LagrangeStableController:
	def __init__(self, target_side_length: float = _DEFAULT_SIDE) -> None:
		self.target_side_length = float(target_side_length)
		self.last_symmetry_score = 1.0
		self.correction_count = 0
		self.last_correction_time: Optional[float] = None
		self._schedule = IntervalSchedule(_EVAL_INTERVAL)

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if not self._schedule.ready(t):
			return None

		symmetry = compute_triangle_symmetry(state)
		self.last_symmetry_score = symmetry.overall_score

		if symmetry.overall_score < _SYMMETRY_FLOOR:
			self.correction_count += 1
			self.last_correction_time = float(t)

			centroid = compute_centroid(state)
			radius = self.target_side_length / math.sqrt(3.0)
			target_pos = triangle_vertices(centroid, radius)
			avg_mass = sum(b.mass for b in state) / len(state)
			target_vel = triangle_velocities(math.sqrt(avg_mass / self.target_side_length))

			def correction(bodies: Sequence, t: float) -> List:
				out: List = []
				for i, b in enumerate(bodies):
					if i >= 3:
						out.append(None)
						continue
					d_pos = target_pos[i] - np.asarray(b.position)
					d_vel = target_vel[i] - np.asarray(b.velocity)
					out.append((d_pos * 0.1 + d_vel) * _CORRECTION_STRENGTH)
				return out

			return ControllerResult(
				controller=correction,
				ui_feedback=UiFeedback(
					f"Symmetry correction applied: {symmetry.overall_score * 100:.1f}%", "info"
				),
			)

		if symmetry.centroid_drift > _CENTROID_DRIFT_WARN:
			return ControllerResult(ui_feedback=UiFeedback(
				f"Centroid drift: {symmetry.centroid_drift:.2f}",
				"warning",
				"Consider reducing numerical errors",
			))
		return None


class ConservationController:
	def __init__(self, interval: float = 20.0) -> None:
		self.angular_momentum: Optional[np.ndarray] = None
		self.kinetic_energy = 0.0
		self.locked = False
		self._schedule = IntervalSchedule(interval)

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if not self.locked:
			self.angular_momentum = compute_angular_momentum(state)
			self.kinetic_energy = _kinetic_energy(state)
			self.locked = True

		if not self._schedule.ready(t):
			return None

		dl = self.angular_momentum - compute_angular_momentum(state)

		def correction(bodies: Sequence, t: float) -> List:
			n = len(bodies)
			out: List = []
			for b in bodies:
				r = float(np.linalg.norm(b.position))
				if r < 0.001:
					out.append(np.zeros(3))
					continue
				out.append(dl / b.mass / (r * n) * 0.01)
			return out

		return ControllerResult(
			controller=correction,
			ui_feedback=UiFeedback("Conservation mode: Angular momentum correction", "info"),
		)


class PeriodicRealignmentController:
	def __init__(self, interval: float = 50.0, side_length: float = _DEFAULT_SIDE) -> None:
		self.radius = float(side_length) / math.sqrt(3.0)
		self.realignments = 0
		self._schedule = IntervalSchedule(interval, fire_first=False)

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if not self._schedule.ready(t) or len(state) < 3:
			return None

		tri = state[:3]
		centroid = compute_centroid(tri)
		before = _kinetic_energy(tri)

		verts = triangle_vertices(centroid, self.radius)
		ang = np.arange(3) * _IDEAL_ANGLE
		for i, b in enumerate(tri):
			speed = math.sqrt(b.mass / self.radius)
			b.position = verts[i]
			b.velocity = np.array([-speed * math.sin(ang[i]), speed * math.cos(ang[i]), 0.0])

		scale = math.sqrt(before / (_kinetic_energy(tri) + 0.001))
		for b in tri:
			b.velocity = np.asarray(b.velocity) * scale

		self.realignments += 1
		return ControllerResult(ui_feedback=UiFeedback(
			f"Periodic realignment performed (t={float(t):.1f})", "info"
		))
