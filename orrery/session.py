from __future__ import annotations
import math
from collections import deque
from typing import Deque, List, Optional, Tuple

from .constants import DEFAULT_SOFTENING, DEFAULT_TIME_STEP, G_CONST, MAX_TRAIL_LENGTH
from .controller_base import UiFeedback
from .diagnostics import StatsSnapshot
from .integrator import Integrator
from .scenario_registry import Scenario, get_scenario
from .sim_config import SimConfig
from .simulation_validator import SimulationValidator
from .telemetry import TelemetryRecorder

"""
This module implements SimulationSession, the frame driver that sits between a presentation layer and the integrator. reset builds fresh bodies from the scenario registry, validates them together with the default configuration, constructs an Integrator, attaches the scenario controller and wires the stats callback into a TelemetryRecorder and the feedback callback into a bounded history. advance_frame runs ceil(2 * speed) equal substeps whose total equals DEFAULT_TIME_STEP * speed, so faster playback keeps the per-step size bounded. trail_length shortens trails at high speed and era labels the current snapshot Stable while the planet is habitable and Chaotic otherwise. A failed reset prints the validator report and leaves the previous run untouched.

"""

SAMPLE_INTERVAL = 1.0
FEEDBACK_HISTORY = 50


def substeps_for_speed(speed: float) -> Tuple[int, float]:
	steps = max(1, int(math.ceil(speed * 2)))
	return steps, DEFAULT_TIME_STEP * speed / steps


def trail_length_for_speed(speed: float) -> int:
	if speed > 8:
		return 40
	if speed > 5:
		return 80
	if speed > 2:
		return 150
	return MAX_TRAIL_LENGTH


class SimulationSession:
	def __init__(
		self,
		scenario_id: str = "Figure8",
		speed: float = 1.0,
		*,
		seed=None,
		feedback_history: int = FEEDBACK_HISTORY,
	) -> None:
		self.speed = float(speed)
		self.seed = seed
		self.scenario: Optional[Scenario] = None
		self.integrator: Optional[Integrator] = None
		self.telemetry = TelemetryRecorder()
		self.feedback: Deque[UiFeedback] = deque(maxlen=feedback_history)
		self.frame_count = 0
		self.reset(scenario_id)

	def default_config(self) -> SimConfig:
		return SimConfig(
			G=G_CONST,
			time_step=DEFAULT_TIME_STEP,
			softening=DEFAULT_SOFTENING,
			energy_sample_interval=SAMPLE_INTERVAL,
		)

	def reset(self, scenario_id: Optional[str] = None) -> bool:
		if scenario_id is None and self.scenario is not None:
			scenario_id = self.scenario.id
		scenario = get_scenario(scenario_id)
		if scenario is None:
			return False

		bodies = scenario.create_initial_bodies(self.seed)
		cfg = self.default_config()
		if not SimulationValidator.bodies_are_valid(bodies, cfg.softening):
			SimulationValidator.report_invalid_bodies(f"scenario {scenario.id}", bodies)
			return False
		if not SimulationValidator.config_is_valid(cfg):
			SimulationValidator.report_invalid_config(f"scenario {scenario.id}", cfg)
			return False

		integrator = Integrator(bodies, cfg)
		integrator.set_stability_controller(scenario.create_controller(bodies))

		self.scenario = scenario
		self.integrator = integrator
		self.frame_count = 0
		self.feedback.clear()
		self.telemetry.clear()
		integrator.set_feedback_callback(self.feedback.append)
		integrator.set_stats_callback(self.telemetry.record)
		return True

	def set_speed(self, speed: float) -> None:
		self.speed = float(speed)

	def substeps(self) -> Tuple[int, float]:
		return substeps_for_speed(self.speed)

	def advance_frame(self) -> None:
		if self.integrator is None:
			return
		steps, dt = self.substeps()
		for _ in range(steps):
			self.integrator.step(dt)
		self.frame_count += 1

	def advance(self, frames: int) -> None:
		for _ in range(int(frames)):
			self.advance_frame()

	def trail_length(self) -> int:
		return trail_length_for_speed(self.speed)

	@property
	def bodies(self) -> List:
		if self.integrator is None:
			return []
		return self.integrator.bodies

	@property
	def time(self) -> float:
		if self.integrator is None:
			return 0.0
		return self.integrator.current_time

	def stats(self) -> Optional[StatsSnapshot]:
		if self.integrator is None:
			return None
		return self.integrator.get_stats()

	@property
	def era(self) -> str:
		snap = self.stats()
		if snap is not None and snap.habitable:
			return "Stable"
		return "Chaotic"
