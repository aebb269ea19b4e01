from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from .body import Body, copy_bodies
from .chaotic_ejection_controller import ChaoticEjectionController
from .controller_base import StabilityController
from .figure8_controller import Figure8Controller
from .hierarchical_controller import HierarchicalController
from .lagrange_controller import LagrangeStableController
from .presets import ScenarioPresets, generate_random_scenario
from .random_controller import RandomRuntimeMonitor
from .rosette_controller import RosetteController

"""
This module maps scenario identifiers to the two factories a session needs: one producing fresh initial bodies and one producing the stability controller that watches them. Every call builds new instances, so controller state never leaks between runs. The Random scenario draws a new system from an optional seed; all other scenarios return copies of their fixed layouts. get_scenario prints an error and returns None for an unknown identifier.

"""

BodiesFactory = Callable[..., List[Body]]
ControllerFactory = Callable[[Sequence[Body]], StabilityController]


@dataclass(frozen=True)
class Scenario:
	id: str
	label: str
	bodies_factory: BodiesFactory
	controller_factory: Optional[ControllerFactory] = None

	def create_initial_bodies(self, seed=None) -> List[Body]:
		if self.id == "Random":
			return self.bodies_factory(seed)
		return copy_bodies(self.bodies_factory())

	def create_controller(self, initial_bodies: Sequence[Body]) -> Optional[StabilityController]:
		if self.controller_factory is None:
			return None
		return self.controller_factory(initial_bodies)


_SCENARIOS: Dict[str, Scenario] = {
	s.id: s for s in (
		Scenario("Figure8", "Stable Figure-8", ScenarioPresets.figure8,
				 lambda bodies: Figure8Controller()),
		Scenario("Random", "Random Cloud", generate_random_scenario,
				 lambda bodies: RandomRuntimeMonitor()),
		Scenario("Hierarchical", "Hierarchical (Sun-Earth-Moon)", ScenarioPresets.hierarchical,
				 lambda bodies: HierarchicalController()),
		Scenario("ChaoticEjection", "Chaotic Ejection", ScenarioPresets.chaotic_ejection,
				 lambda bodies: ChaoticEjectionController()),
		Scenario("LagrangeStable", "Lagrange Triangle", ScenarioPresets.lagrange,
				 lambda bodies: LagrangeStableController()),
		Scenario("Rosette", "Rosette Hexa-Ring", ScenarioPresets.rosette,
				 RosetteController),
	)
}


def get_all_scenarios() -> List[Scenario]:
	return list(_SCENARIOS.values())


def get_scenario(scenario_id: str) -> Optional[Scenario]:
	scenario = _SCENARIOS.get(scenario_id)
	if scenario is None:
		print(f"[error] Scenario not found: {scenario_id}")
	return scenario


def get_scenario_options() -> List[Dict[str, str]]:
	return [{"id": s.id, "label": s.label} for s in _SCENARIOS.values()]
