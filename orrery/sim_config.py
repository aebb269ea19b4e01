from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Callable, Optional, Sequence

from .constants import G_CONST, DEFAULT_TIME_STEP, DEFAULT_SOFTENING, DEFAULT_SAMPLE_INTERVAL

"""
This central configuration module defines the live integration parameters through the SimConfig dataclass. Key parameters include the gravitational constant, the nominal step size, the force softening length, the simulation-time interval between statistics refreshes, and an optional acceleration-injection function that controllers install to add corrective accelerations during every RK4 stage. ParameterOverrides carries the partial updates a controller or the driver may request; apply_overrides merges only the fields that are present. The diag_* knobs tune the rate-limited diagnostic printing. The module performs no validation of its own and assumes the caller supplies positive G and step values.

"""

AccelerationFn = Callable[[Sequence, float], Sequence]


@dataclass
class SimConfig:
	G: float = G_CONST
	time_step: float = DEFAULT_TIME_STEP
	softening: float = DEFAULT_SOFTENING
	energy_sample_interval: float = DEFAULT_SAMPLE_INTERVAL
	controller: Optional[AccelerationFn] = None
	diag_prints: bool = True
	diag_print_limit: int = 3
	diag_print_interval: int = 1000

	def copy(self) -> "SimConfig":
		new = object.__new__(SimConfig)
		new.__dict__ = dict(getattr(self, "__dict__", {}))
		return new


@dataclass
class ParameterOverrides:
	G: Optional[float] = None
	time_step: Optional[float] = None
	softening: Optional[float] = None
	energy_sample_interval: Optional[float] = None
	controller: Optional[AccelerationFn] = None

	def present(self) -> dict:
		out = {}
		for f in fields(self):
			val = getattr(self, f.name)
			if val is not None:
				out[f.name] = val
		return out

	def is_empty(self) -> bool:
		return not self.present()


def apply_overrides(cfg: SimConfig, overrides: ParameterOverrides | None) -> SimConfig:
	if overrides is None:
		return cfg
	for name, val in overrides.present().items():
		if name == "controller":
			cfg.controller = val
		else:
			setattr(cfg, name, float(val))
	return cfg
