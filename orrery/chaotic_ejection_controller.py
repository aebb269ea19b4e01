from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .constants import G_CONST
from .controller_base import ControllerResult, IntervalSchedule, UiFeedback
from .diagnostics import diag_print
from .sim_config import ParameterOverrides
from .stability_analyzer import (
	compute_distance,
	compute_energy,
	compute_maximum_pairwise_distance,
	compute_two_body_energy,
)

"""
This module watches the ChaoticEjection preset through its phases. classify_phase maps the largest pairwise distance to stable-interaction, energy-exchange (beyond 50) or ejection-possible (beyond 100), and any recorded ejection pins the phase to post-ejection. find_unbound_pairs lists pairs farther apart than a threshold whose two-body energy is positive, naming the faster body as the escaper. ChaoticEjectionController reports phase changes, halves the step on rapid energy change before t = 20, raises the softening on close encounters between t = 10 and t = 100, records EjectionEvent entries from t = 20 onward and posts a summary every thirty units once something has escaped. HighSpeedMonitor tightens the step once for fast playback and EjectionRecorder keeps a log of unbound pairs beyond 100 units.

"""

STABLE_INTERACTION = "stable-interaction"
ENERGY_EXCHANGE = "energy-exchange"
EJECTION_POSSIBLE = "ejection-possible"
POST_EJECTION = "post-ejection"

PHASE_MESSAGES = {
	STABLE_INTERACTION: "System in stable interaction phase",
	ENERGY_EXCHANGE: "High energy exchange detected",
	EJECTION_POSSIBLE: "Ejection highly likely",
	POST_EJECTION: "Ejection confirmed",
}

_EXCHANGE_DISTANCE = 50.0
_EJECTION_POSSIBLE_DISTANCE = 100.0
_EJECTION_DISTANCE = 80.0
_CLOSE_ENCOUNTER = 3.0
_RATE_LIMIT = 0.1
_SUMMARY_INTERVAL = 30.0


@dataclass(frozen=True)
class EjectionEvent:
	body: str
	paired_with: str
	time: float
	speed: float


def classify_phase(max_distance: float, ejected_count: int) -> str:
	if ejected_count >= 1:
		return POST_EJECTION
	if max_distance > _EJECTION_POSSIBLE_DISTANCE:
		return EJECTION_POSSIBLE
	if max_distance > _EXCHANGE_DISTANCE:
		return ENERGY_EXCHANGE
	return STABLE_INTERACTION


def find_unbound_pairs(state: Sequence, min_distance: float, G: float = G_CONST) -> List[Tuple[object, object, float]]:
	out = []
	n = len(state)
	for i in range(n):
		for j in range(i + 1, n):
			b1, b2 = state[i], state[j]
			if compute_distance(b1, b2) <= min_distance:
				continue
			if compute_two_body_energy(b1, b2, G) <= 0:
				continue
			v1 = float(np.linalg.norm(b1.velocity))
			v2 = float(np.linalg.norm(b2.velocity))
			if v1 > v2:
				out.append((b1, b2, v1))
			else:
				out.append((b2, b1, v2))
	return out


def detect_close_encounters(state: Sequence, threshold: float = _CLOSE_ENCOUNTER) -> List[str]:
	pairs = []
	n = len(state)
	for i in range(n):
		for j in range(i + 1, n):
			if compute_distance(state[i], state[j]) < threshold:
				pairs.append(f"{state[i].name}-{state[j].name}")
	return pairs


class ChaoticEjectionController:
	def __init__(self, G: float = G_CONST) -> None:
		self.G = float(G)
		self.phase = STABLE_INTERACTION
		self.ejections: List[EjectionEvent] = []
		self.last_energy: Optional[float] = None
		self.energy_exchange_rate = 0.0
		self.close_encounter_count: Dict[str, int] = {}
		self._summary = IntervalSchedule(_SUMMARY_INTERVAL)

	@property
	def ejected_bodies(self) -> List[str]:
		return [e.body for e in self.ejections]

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		energy = compute_energy(state, G=self.G).total
		if self.last_energy is None:
			self.last_energy = energy
			return None

		previous_energy = self.last_energy
		self.last_energy = energy

		max_distance = compute_maximum_pairwise_distance(state)
		previous_phase = self.phase
		self.phase = classify_phase(max_distance, len(self.ejections))

		if self.phase != previous_phase:
			if self.phase in (EJECTION_POSSIBLE, POST_EJECTION):
				level = "critical"
			else:
				level = "info"
			return ControllerResult(ui_feedback=UiFeedback(
				f"Phase transition: {PHASE_MESSAGES[self.phase]}", level
			))

		if t < 20 and dt > 0:
			self.energy_exchange_rate = abs(energy - previous_energy) / dt
			if self.energy_exchange_rate > _RATE_LIMIT:
				return ControllerResult(
					param_overrides=ParameterOverrides(time_step=max(dt * 0.5, 0.002)),
					ui_feedback=UiFeedback(f"Rapid energy exchange: {self.energy_exchange_rate:.3f}", "warning"),
				)

		if 10 < t < 100:
			pairs = detect_close_encounters(state)
			for key in pairs:
				self.close_encounter_count[key] = self.close_encounter_count.get(key, 0) + 1
			if pairs:
				return ControllerResult(
					param_overrides=ParameterOverrides(softening=min(0.3, 0.15 * 1.2)),
					ui_feedback=UiFeedback(
						f"Close encounters: {len(pairs)}",
						"warning" if len(pairs) > 2 else "info",
					),
				)

		if t >= 20 and max_distance >= _EJECTION_DISTANCE:
			known = set(self.ejected_bodies)
			fresh = []
			for escaper, partner, speed in find_unbound_pairs(state, _EJECTION_DISTANCE, self.G):
				if escaper.name in known:
					continue
				known.add(escaper.name)
				event = EjectionEvent(escaper.name, partner.name, float(t), speed)
				self.ejections.append(event)
				fresh.append(event)

			if fresh:
				names = ", ".join(e.body for e in fresh)
				return ControllerResult(
					param_overrides=ParameterOverrides(time_step=min(dt, 0.003), softening=0.05),
					ui_feedback=UiFeedback(
						f"Ejection detected: {names}",
						"critical",
						"Simulation slowed for observation",
					),
				)

		if self.ejections and self._summary.ready(t):
			return ControllerResult(ui_feedback=UiFeedback(
				f"Post-ejection: {len(self.ejections)} body(ies) ejected",
				"info",
				"Remaining system likely stable",
			))

		return None


class HighSpeedMonitor:
	def __init__(self, simulation_speed: float) -> None:
		self.simulation_speed = float(simulation_speed)
		self.engaged = False

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if self.engaged or self.simulation_speed <= 4:
			return None
		self.engaged = True
		return ControllerResult(
			param_overrides=ParameterOverrides(time_step=min(dt * 0.5, 0.003)),
			ui_feedback=UiFeedback(
				f"High simulation speed ({self.simulation_speed:g}x) - enhanced precision", "info"
			),
		)


class EjectionRecorder:
	def __init__(self, distance: float = _EJECTION_POSSIBLE_DISTANCE, G: float = G_CONST) -> None:
		self.distance = float(distance)
		self.G = float(G)
		self.log: List[EjectionEvent] = []
		self._seen: set = set()

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if compute_maximum_pairwise_distance(state) <= self.distance:
			return None
		for escaper, partner, speed in find_unbound_pairs(state, self.distance, self.G):
			key = (escaper.name, partner.name)
			if key in self._seen:
				continue
			self._seen.add(key)
			self.log.append(EjectionEvent(escaper.name, partner.name, float(t), speed))
			diag_print(
				"ejection-record",
				f"[ejection] t={float(t):.2f} body={escaper.name} speed={speed:.2f} paired={partner.name}",
			)
		return None
