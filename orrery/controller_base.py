from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable

from .sim_config import AccelerationFn, ParameterOverrides

"""
This module defines the contract between the integrator and the per-scenario stability controllers. A controller exposes on_before_step(state, t, dt) and may return a ControllerResult whose optional members carry parameter overrides merged into the live SimConfig, a replacement acceleration-injection function used by every following RK4 stage, and a UiFeedback message for the presentation layer. Returning None means no side effect for this step. IntervalSchedule replaces modulo-on-floor(t) gating with an explicit elapsed-time check that fires on the first call (unless fire_first is off) and then once per elapsed interval. Controllers own all of their state; a fresh instance must be attached for every new scenario.

"""


@dataclass(frozen=True)
class UiFeedback:
	message: str
	level: str = "info"
	action: Optional[str] = None


@dataclass
class ControllerResult:
	param_overrides: Optional[ParameterOverrides] = None
	controller: Optional[AccelerationFn] = None
	ui_feedback: Optional[UiFeedback] = None

	def is_empty(self) -> bool:
		no_overrides = self.param_overrides is None or self.param_overrides.is_empty()
		return no_overrides and self.controller is None and self.ui_feedback is None


@runtime_checkable
class StabilityController(Protocol):
	def on_before_step(self, state: Sequence, t: float, dt: float) -> Optional[ControllerResult]:
		...


class IntervalSchedule:
	def __init__(self, interval: float, *, fire_first: bool = True) -> None:
		self.interval = float(interval)
		self._last_fire: Optional[float] = None
		self._fire_first = bool(fire_first)

	@property
	def last_fire(self) -> Optional[float]:
		return self._last_fire

	def ready(self, t: float) -> bool:
		t = float(t)
		if self._last_fire is None:
			self._last_fire = t
			return self._fire_first
		if t - self._last_fire >= self.interval:
			self._last_fire = t
			return True
		return False

	def reset(self) -> None:
		self._last_fire = None

