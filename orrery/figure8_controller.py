from __future__ import annotations
from typing import Optional, Sequence

import numpy as np

from .constants import G_CONST
from .controller_base import ControllerResult, IntervalSchedule, UiFeedback
from .sim_config import ParameterOverrides
from .stability_analyzer import (
	analyze_stability,
	compute_angular_momentum,
	compute_distance,
	compute_energy,
)

"""
Figure-eight choreography monitors.

Figure8Controller checks the system every five time units. It records the
initial angular momentum and total energy on its first call, warns when any
angular momentum component drifts more than 5%, counts energy drifts above 5%
and, once more than three have accumulated, shrinks the step and raises the
softening slightly, and warns when all three star separations exceed 30.
Figure8MomentumController is the aggressive variant: every ten time units it
installs a tiny velocity-proportional correction toward the initial angular
momentum.
"""

_CHECK_INTERVAL = 5.0
_MOMENTUM_INTERVAL = 10.0
_MOMENTUM_TOL = 0.05
_ENERGY_TOL = 0.05
_DRIFT_LIMIT = 3
_BREAKUP_DISTANCE = 30.0
_CORRECTION_STRENGTH = 0.001


def _relative_component_drift(current: np.ndarray, initial: np.ndarray) -> float:
	return float(np.max(np.abs(current - initial) / (np.abs(initial) + 0.001)))


class Figure8Controller:
	def __init__(self, G: float = G_CONST) -> None:
		self.G = float(G)
		self.initial_angular_momentum: Optional[np.ndarray] = None
		self.initial_energy: Optional[float] = None
		self.energy_drift_count = 0
		self.max_energy_deviation = 0.0
		self._schedule = IntervalSchedule(_CHECK_INTERVAL)

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if not self._schedule.ready(t):
			return None

		if self.initial_angular_momentum is None:
			self.initial_angular_momentum = compute_angular_momentum(state)
			self.initial_energy = compute_energy(state, G=self.G).total

		stability = analyze_stability(state, self.initial_energy, G=self.G)

		drift = _relative_component_drift(stability.angular_momentum, self.initial_angular_momentum)
		if drift > _MOMENTUM_TOL:
			return ControllerResult(ui_feedback=UiFeedback(
				f"Angular momentum deviation: {drift * 100:.1f}%",
				"warning",
				"Consider reducing time step",
			))

		if stability.energy_deviation > _ENERGY_TOL:
			self.energy_drift_count += 1
			self.max_energy_deviation = max(self.max_energy_deviation, stability.energy_deviation)
			if self.energy_drift_count > _DRIFT_LIMIT:
				return ControllerResult(
					param_overrides=ParameterOverrides(
						time_step=max(dt * 0.7, 0.0005),
						softening=min(0.02, 0.01 * 1.2),
					),
					ui_feedback=UiFeedback(
						f"Energy drift detected ({stability.energy_deviation * 100:.1f}%). Adjusting parameters.",
						"info",
						"Automatically reduced time step",
					),
				)
		else:
			self.energy_drift_count = max(0, self.energy_drift_count - 1)

		stars = [b for b in state if b.is_star]
		if len(stars) >= 3:
			d01 = compute_distance(stars[0], stars[1])
			d12 = compute_distance(stars[1], stars[2])
			d20 = compute_distance(stars[2], stars[0])
			if min(d01, d12, d20) > _BREAKUP_DISTANCE:
				return ControllerResult(ui_feedback=UiFeedback(
					"Figure-8 pattern may be breaking apart",
					"warning",
					"Monitor for stabilization",
				))

		return None


def make_momentum_correction(delta_l: np.ndarray, strength: float = _CORRECTION_STRENGTH):
	dl = np.asarray(delta_l, dtype=float)

	def correction(state: Sequence, t: float) -> list:
		out = []
		for b in state:
			r = float(np.linalg.norm(b.position))
			if r < 0.001:
				out.append(np.zeros(3))
				continue
			out.append(dl / b.mass / r * strength)
		return out

	return correction


class Figure8MomentumController:
	def __init__(self) -> None:
		self.initial_angular_momentum: Optional[np.ndarray] = None
		self._schedule = IntervalSchedule(_MOMENTUM_INTERVAL, fire_first=False)

	@property
	def last_correction_time(self) -> Optional[float]:
		return self._schedule.last_fire

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if self.initial_angular_momentum is None:
			self.initial_angular_momentum = compute_angular_momentum(state)
			self._schedule.ready(t)
			return None

		if not self._schedule.ready(t):
			return None

		delta = self.initial_angular_momentum - compute_angular_momentum(state)
		return ControllerResult(
			controller=make_momentum_correction(delta),
			ui_feedback=UiFeedback("Applied angular momentum correction", "info"),
		)
