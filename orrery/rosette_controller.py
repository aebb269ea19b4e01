from __future__ import annotations
import math
from typing import List, Optional, Sequence

import numpy as np

from .controller_base import ControllerResult, UiFeedback
from .physics_utils import state_arrays

"""
This module keeps the Rosette hexa-ring approximately circular, equally spaced and co-rotating. make_rosette_correction captures the target ring radius (mass-weighted mean of the initial radii, 12 when there are no petals) and the target angular velocity from the initial Petal bodies, and returns an acceleration-injection function. Each call measures the ring centroid, its velocity and the normal of the ring angular momentum, then applies a radial spring with damping, a tangential drive toward the target angular velocity with damping, and a small velocity drag, capped at A_MAX per body. Non-petal bodies receive zero. RosetteController installs that function on its first call and stays silent afterwards.

"""

K_R = 0.08
K_DR = 0.18
K_T = 0.12
K_DT = 0.08
K_C = 0.02
A_MAX = 0.04

_FALLBACK_RADIUS = 12.0
PETAL_PREFIX = "Petal"


def petal_indices(bodies: Sequence) -> List[int]:
	return [i for i, b in enumerate(bodies) if str(b.name).startswith(PETAL_PREFIX)]


def ring_targets(bodies: Sequence, idx: Sequence[int]):
	m_sum = 0.0
	mr_sum = 0.0
	w_sum = 0.0
	for i in idx:
		b = bodies[i]
		p = np.asarray(b.position, dtype=float)
		v = np.asarray(b.velocity, dtype=float)
		mr_sum += b.mass * float(np.linalg.norm(p))
		r_xy = math.hypot(p[0], p[1]) or 1e-6
		theta = math.atan2(p[1], p[0])
		vt = -v[0] * math.sin(theta) + v[1] * math.cos(theta)
		w_sum += b.mass * (vt / r_xy)
		m_sum += b.mass

	if m_sum > 0:
		return mr_sum / m_sum, w_sum / m_sum
	return _FALLBACK_RADIUS, 0.0


def make_rosette_correction(initial_bodies: Sequence):
	idx = np.asarray(petal_indices(initial_bodies), dtype=int)
	r_star, omega_star = ring_targets(initial_bodies, idx)

	def correction(state: Sequence, t: float) -> np.ndarray:
		n = len(state)
		acc = np.zeros((n, 3), dtype=np.float64)
		if idx.size == 0:
			return acc

		pos, vel, m = state_arrays([state[i] for i in idx])
		m_sum = float(np.sum(m))
		if m_sum <= 0:
			return acc

		c = np.sum(m[:, None] * pos, axis=0) / m_sum
		cv = np.sum(m[:, None] * vel, axis=0) / m_sum
		rel_p = pos - c
		rel_v = vel - cv

		L = np.sum(m[:, None] * np.cross(rel_p, rel_v), axis=0)
		Ln = float(np.linalg.norm(L)) or 1.0
		normal = L / Ln

		r = np.linalg.norm(rel_p, axis=1)
		r[r == 0.0] = 1e-9
		r_hat = rel_p / r[:, None]

		t_vec = np.cross(normal, r_hat)
		t_norm = np.linalg.norm(t_vec, axis=1)
		t_norm[t_norm == 0.0] = 1e-9
		t_hat = t_vec / t_norm[:, None]

		vr = np.einsum("ij,ij->i", rel_v, r_hat)
		vt = np.einsum("ij,ij->i", rel_v, t_hat)

		a_r = -K_R * (r - r_star) - K_DR * vr
		a_t = -K_T * (vt - omega_star * r) - K_DT * vt

		a = a_r[:, None] * r_hat + a_t[:, None] * t_hat - K_C * rel_v

		a_norm = np.linalg.norm(a, axis=1)
		over = a_norm > A_MAX
		a[over] *= (A_MAX / a_norm[over])[:, None]

		acc[idx] = a
		return acc

	correction.target_radius = r_star
	correction.target_angular_velocity = omega_star
	return correction


class RosetteController:
	def __init__(self, initial_bodies: Sequence) -> None:
		self.correction = make_rosette_correction(initial_bodies)
		self.installed = False

	@property
	def target_radius(self) -> float:
		return self.correction.target_radius

	@property
	def target_angular_velocity(self) -> float:
		return self.correction.target_angular_velocity

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if self.installed:
			return None
		self.installed = True
		return ControllerResult(
			controller=self.correction,
			ui_feedback=UiFeedback("Rosette ring corrector engaged", "info"),
		)
