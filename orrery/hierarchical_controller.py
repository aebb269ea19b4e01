from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .constants import G_CONST
from .controller_base import ControllerResult, IntervalSchedule, UiFeedback
from .sim_config import ParameterOverrides
from .stability_analyzer import compute_distance, compute_hill_sphere, compute_orbital_speed

"""
This module protects nested orbital structures such as the Hierarchical preset. build_hierarchy turns a body list into a primary/satellite tree: the heaviest body is the root and every other body, taken in decreasing mass order, attaches to the nearest heavier non-root body whose distance is below 0.3 of its distance to the root, falling back to the root. Nodes store body indices so the tree can be evaluated against any state list with the same ordering. HierarchicalController builds the tree on its first call and every eight time units rates each satellite for ejection risk, orbital drift and, for satellites of non-root bodies, occupancy of the parent's Hill sphere about the root; high-risk findings shrink the step and raise the softening, and persistent ejection warnings on three or more bodies produce a critical message every twenty units. HillSphereMonitor reports the same occupancy check on its own every fifteen units, and OrbitalCorrectionController nudges tangential speeds toward the circular speed about the heaviest body every twelve units.

"""

_TREE_RATIO = 0.3
_EVAL_INTERVAL = 8.0
_CRITICAL_INTERVAL = 20.0
_HIGH_RISK = 0.6
_WARN_RISK = 0.5
_HILL_NEAR = 0.8


@dataclass
class HierarchyNode:
	index: int
	name: str
	parent: Optional["HierarchyNode"] = None
	children: List["HierarchyNode"] = field(default_factory=list)
	orbital_radius: float = 0.0
	hill_radius: float = math.inf

	def walk(self):
		for child in self.children:
			yield child
			yield from child.walk()


@dataclass
class HierarchyWarning:
	body: str
	risk: float
	issue: str


@dataclass
class HillOccupancy:
	name: str
	parent: str
	distance: float
	hill_radius: float

	@property
	def ratio(self) -> float:
		if self.hill_radius <= 0:
			return math.inf
		return self.distance / self.hill_radius


def build_hierarchy(bodies: Sequence) -> Optional[HierarchyNode]:
	if not bodies:
		return None
	order = sorted(range(len(bodies)), key=lambda i: -bodies[i].mass)
	root = HierarchyNode(order[0], bodies[order[0]].name)
	placed: List[HierarchyNode] = []

	for i in order[1:]:
		body = bodies[i]
		d_root = compute_distance(body, bodies[root.index])
		parent = root
		best = None
		for cand in placed:
			d = compute_distance(body, bodies[cand.index])
			if d < d_root * _TREE_RATIO and (best is None or d < best):
				parent = cand
				best = d

		distance = compute_distance(body, bodies[parent.index])
		node = HierarchyNode(
			i,
			body.name,
			parent=parent,
			orbital_radius=distance,
			hill_radius=compute_hill_sphere(body, bodies[parent.index], distance),
		)
		parent.children.append(node)
		placed.append(node)

	return root


def detect_ejection_risk(satellite, parent, current_distance: float, initial_distance: float, G: float = G_CONST) -> float:
	ratio = current_distance / initial_distance if initial_distance > 0 else 0.0
	if ratio > 3:
		return 0.9
	if ratio > 2:
		return 0.6
	if ratio > 1.5:
		return 0.3

	dv = np.asarray(satellite.velocity, dtype=float) - np.asarray(parent.velocity, dtype=float)
	rel_v2 = float(np.dot(dv, dv))
	if current_distance <= 0:
		return 0.0
	escape_v2 = 2.0 * G * parent.mass / current_distance

	if rel_v2 > escape_v2 * 0.8:
		return 0.8
	if rel_v2 > escape_v2 * 0.5:
		return 0.4
	return 0.0


def hill_occupancy(state: Sequence, root: HierarchyNode) -> List[HillOccupancy]:
	out: List[HillOccupancy] = []
	for node in root.walk():
		parent = node.parent
		if parent is None or parent is root:
			continue
		p_body = state[parent.index]
		hill = compute_hill_sphere(p_body, state[root.index], compute_distance(p_body, state[root.index]))
		out.append(HillOccupancy(
			node.name,
			parent.name,
			compute_distance(state[node.index], p_body),
			hill,
		))
	return out


class HierarchicalController:
	def __init__(self, G: float = G_CONST) -> None:
		self.G = float(G)
		self.hierarchy: Optional[HierarchyNode] = None
		self.ejection_warnings: Dict[str, int] = {}
		self.orbital_drifts: Dict[str, Dict[str, float]] = {}
		self._schedule = IntervalSchedule(_EVAL_INTERVAL, fire_first=False)
		self._critical = IntervalSchedule(_CRITICAL_INTERVAL)

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if self.hierarchy is None:
			self.hierarchy = build_hierarchy(state)
			if self.hierarchy is not None:
				for node in self.hierarchy.walk():
					r = compute_distance(state[node.index], state[node.parent.index])
					self.orbital_drifts[node.name] = {"initial_radius": r, "current_radius": r}
			self._schedule.ready(t)
			return None

		if not self._schedule.ready(t):
			return None

		warnings = self.evaluate(state)
		high = [w for w in warnings if w.risk > _HIGH_RISK]
		if high:
			k = len(high)
			return ControllerResult(
				param_overrides=self._overrides(dt, k),
				ui_feedback=UiFeedback(
					f"{k} satellite(s) at ejection risk",
					"warning",
					"Auto-adjusted time step and softening",
				),
			)

		if len(self.ejection_warnings) >= 3 and self._critical.ready(t):
			return ControllerResult(ui_feedback=UiFeedback(
				"Persistent orbital instability detected",
				"critical",
				"Recommendation: Check initial conditions or reduce simulation speed",
			))
		return None

	def _overrides(self, dt: float, k: int) -> ParameterOverrides:
		return ParameterOverrides(
			time_step=max(dt * 0.6, 0.002),
			softening=min(0.3, 0.15 * (1 + k * 0.2)),
		)

	def evaluate(self, state: Sequence) -> List[HierarchyWarning]:
		warnings: List[HierarchyWarning] = []
		if self.hierarchy is None:
			return warnings

		for node in self.hierarchy.walk():
			body = state[node.index]
			parent = state[node.parent.index]
			current = compute_distance(body, parent)
			drift = self.orbital_drifts.get(node.name)
			if drift is None:
				continue
			drift["current_radius"] = current

			risk = detect_ejection_risk(body, parent, current, drift["initial_radius"], G=self.G)
			if risk > _WARN_RISK:
				warnings.append(HierarchyWarning(node.name, risk, f"High ejection risk ({risk * 100:.0f}%)"))
				self.ejection_warnings[node.name] = self.ejection_warnings.get(node.name, 0) + 1

			if drift["initial_radius"] > 0:
				ratio = current / drift["initial_radius"]
				if ratio > 1.5 or ratio < 0.7:
					warnings.append(HierarchyWarning(node.name, 0.4, f"Orbital drift: {ratio * 100 - 100:.0f}%"))

		for occ in hill_occupancy(state, self.hierarchy):
			if occ.ratio > 1.0:
				warnings.append(HierarchyWarning(occ.name, 0.7, f"Outside Hill sphere of {occ.parent}"))
			elif occ.ratio > _HILL_NEAR:
				warnings.append(HierarchyWarning(occ.name, 0.4, f"Near Hill sphere boundary of {occ.parent}"))

		return warnings


class HillSphereMonitor:
	def __init__(self, interval: float = 15.0) -> None:
		self.hierarchy: Optional[HierarchyNode] = None
		self._schedule = IntervalSchedule(interval)

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if self.hierarchy is None:
			self.hierarchy = build_hierarchy(state)
		if self.hierarchy is None or not self._schedule.ready(t):
			return None

		for occ in hill_occupancy(state, self.hierarchy):
			if occ.ratio > 1.0:
				return ControllerResult(ui_feedback=UiFeedback(
					f"{occ.name} outside Hill sphere (ejected)",
					"critical",
					"Consider resetting simulation",
				))
			if occ.ratio > _HILL_NEAR:
				return ControllerResult(ui_feedback=UiFeedback(
					f"{occ.name} near Hill sphere boundary",
					"warning",
					f"Distance: {occ.distance:.1f}, Hill radius: {occ.hill_radius:.1f}",
				))
		return None


def _heaviest_index(state: Sequence) -> int:
	best = 0
	for i, b in enumerate(state):
		if b.mass > state[best].mass:
			best = i
	return best


class OrbitalCorrectionController:
	def __init__(self, correction_strength: float = 0.01, G: float = G_CONST, interval: float = 12.0) -> None:
		self.correction_strength = float(correction_strength)
		self.G = float(G)
		self._schedule = IntervalSchedule(interval)

	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		if not state or not self._schedule.ready(t):
			return None

		primary_idx = _heaviest_index(state)
		k = self.correction_strength
		G = self.G

		def correction(bodies: Sequence, t: float) -> List:
			primary = bodies[primary_idx]
			pp = np.asarray(primary.position, dtype=float)
			out: List = []
			for i, b in enumerate(bodies):
				if i == primary_idx:
					out.append(np.zeros(3))
					continue
				distance = compute_distance(b, primary)
				required = compute_orbital_speed(primary.mass, distance, G)
				dx = b.position[0] - pp[0]
				dy = b.position[1] - pp[1]
				r = math.hypot(dx, dy)
				if r < 0.001:
					out.append(np.zeros(3))
					continue
				tx, ty = -dy / r, dx / r
				current = abs(b.velocity[0] * tx + b.velocity[1] * ty)
				diff = required - current
				out.append(np.array([tx * diff * k, ty * diff * k, 0.0]))
			return out

		return ControllerResult(
			controller=correction,
			ui_feedback=UiFeedback("Applied orbital stability correction", "info"),
		)
