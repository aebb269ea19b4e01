"""
This module implements the compensated simulation clock used by the integrator.

Fixed steps of a few hundredths of a time unit are added tens of thousands of times per
session, so the plain floating-point sum of dt drifts visibly from the true elapsed time
and breaks the interval arithmetic the controllers rely on. SimulationClock keeps the
current time and the time since the last statistics sample in Kahan accumulators, and
sample_due reports whether the sampling interval has been reached. reset_sample clears
only the sampling accumulator. It assumes every dt is a finite float.
"""

from __future__ import annotations
from dataclasses import dataclass



@dataclass
class _Kahan:
	total: float = 0.0
	comp: float = 0.0

	def add(self, x: float) -> None:
		y = float(x) - self.comp
		t = self.total + y
		self.comp = (t - self.total) - y
		self.total = t

	def reset(self) -> None:
		self.total = 0.0
		self.comp = 0.0


class SimulationClock:
	def __init__(self, start: float = 0.0) -> None:
		self._now = _Kahan(total=float(start))
		self._since_sample = _Kahan()

	@property
	def now(self) -> float:
		return self._now.total

	@property
	def since_sample(self) -> float:
		return self._since_sample.total

	def advance(self, dt: float) -> None:
		val = float(dt)
		self._now.add(val)
		self._since_sample.add(val)

	def sample_due(self, interval: float) -> bool:
		return self._since_sample.total >= float(interval)

	def reset_sample(self) -> None:
		self._since_sample.reset()
