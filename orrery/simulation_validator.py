"""
This module provides validation utilities for scenario bodies and integrator settings.

The SimulationValidator class offers static methods to check a body list (non-empty,
positive finite masses, finite 3-component positions and velocities, unique names) and a
SimConfig (positive finite G, time step and sample interval, non-negative softening),
and to print detailed diagnostics for whatever fails. The integrator itself never
validates its inputs; the session driver runs these checks before building one. The
checks assume body-like objects exposing name, mass, position and velocity.
"""

from __future__ import annotations
import math
from typing import List, Sequence
import numpy as np


class SimulationValidator:
	@staticmethod
	def state_is_valid(
		masses: Sequence[float],
		positions: Sequence,
		velocities: Sequence,
		softening: float = 0.0,
	) -> bool:

		if masses is None or positions is None or velocities is None:
			return False

		m = np.asarray(masses, dtype=float).ravel()
		r = np.asarray(positions, dtype=float)
		v = np.asarray(velocities, dtype=float)

		if r.ndim != 2 or v.ndim != 2 or r.shape != v.shape:
			return False
		if r.shape[0] != m.size or r.shape[1] != 3:
			return False

		for m_i in m:
			if not (m_i > 0.0 and math.isfinite(m_i)):
				return False

		if not np.all(np.isfinite(r)) or not np.all(np.isfinite(v)):
			return False

		if not (softening >= 0.0 and math.isfinite(softening)):
			return False

		return True

	@staticmethod
	def bodies_are_valid(bodies: Sequence, softening: float = 0.0) -> bool:
		if not bodies:
			return False
		try:
			masses = [b.mass for b in bodies]
			positions = [np.asarray(b.position, dtype=float).ravel() for b in bodies]
			velocities = [np.asarray(b.velocity, dtype=float).ravel() for b in bodies]
		except (TypeError, ValueError):
			return False

		if any(p.size != 3 for p in positions) or any(v.size != 3 for v in velocities):
			return False

		names = [b.name for b in bodies]
		if len(set(names)) != len(names):
			return False

		return SimulationValidator.state_is_valid(masses, positions, velocities, softening)

	@staticmethod
	def config_is_valid(cfg) -> bool:
		return not SimulationValidator.config_problems(cfg)

	@staticmethod
	def config_problems(cfg) -> List[str]:
		problems = []
		for name in ("G", "time_step", "energy_sample_interval"):
			val = getattr(cfg, name, None)
			if val is None or not math.isfinite(val) or val <= 0.0:
				problems.append(f"{name}={val!r} (expected a positive finite value)")
		soft = getattr(cfg, "softening", None)
		if soft is None or not math.isfinite(soft) or soft < 0.0:
			problems.append(f"softening={soft!r} (expected a non-negative finite value)")
		ctrl = getattr(cfg, "controller", None)
		if ctrl is not None and not callable(ctrl):
			problems.append("controller is not callable")
		return problems

	@staticmethod
	def report_invalid_bodies(label: str, bodies: Sequence) -> None:

		print(f"[invalid] {label}")
		if not bodies:
			print("  no bodies")
			return
		seen = set()
		for i, b in enumerate(bodies):
			name = getattr(b, "name", f"#{i}")
			if name in seen:
				print(f"  body[{i}] duplicate name {name!r}")
			seen.add(name)
			mass = getattr(b, "mass", None)
			if mass is None or not (mass > 0.0 and math.isfinite(mass)):
				print(f"  body[{i}] {name} has invalid mass {mass!r}")
			pos = np.asarray(getattr(b, "position", ()), dtype=float).ravel()
			vel = np.asarray(getattr(b, "velocity", ()), dtype=float).ravel()
			if pos.size != 3:
				print(f"  position[{i}] has {pos.size} dimensions (expected 3)")
			elif not np.all(np.isfinite(pos)):
				print(f"  position[{i}] is not finite: {pos}")
			if vel.size != 3:
				print(f"  velocity[{i}] has {vel.size} dimensions (expected 3)")
			elif not np.all(np.isfinite(vel)):
				print(f"  velocity[{i}] is not finite: {vel}")

	@staticmethod
	def report_invalid_config(label: str, cfg) -> None:

		print(f"[invalid] {label}")
		for problem in SimulationValidator.config_problems(cfg):
			print(f"  {problem}")
