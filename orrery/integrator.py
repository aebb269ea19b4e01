from __future__ import annotations
from typing import Callable, Optional, Sequence, Tuple
import numpy as np

from .body import copy_bodies
from .body_view import BodyView
from .clock import SimulationClock
from .controller_base import ControllerResult, StabilityController, UiFeedback
from .diagnostics import StatsSnapshot, compute_stats, diag_print
from .forces import gravitational_acceleration, pair_indices
from .physics_utils import add_scaled
from .sim_config import ParameterOverrides, SimConfig, apply_overrides
from .stability_analyzer import compute_energy, energy_deviation

"""
This central module implements the Integrator that advances a small body set with a fixed-step fourth-order Runge-Kutta scheme. Key responsibilities include owning the body state in contiguous (N, 3) arrays exposed to the renderer as BodyView objects, keeping four pre-allocated derivative buffers plus one scratch state that every stage reuses, invoking the attached stability controller before each step and merging whatever it returns, adding injected controller accelerations on top of gravity in every stage, and refreshing a cached StatsSnapshot on a simulation-time schedule with an optional synchronous observer. Steady-state stepping never reallocates any of these arrays. The implementation assumes positive masses, a non-negative softening and a caller that never runs two steps on the same instance concurrently.

"""

StatsCallback = Callable[[StatsSnapshot], None]
FeedbackCallback = Callable[[UiFeedback], None]


class DerivativeBuffer:
	__slots__ = ("d_pos", "d_vel")

	def __init__(self, n: int) -> None:
		self.d_pos = np.zeros((n, 3), dtype=np.float64)
		self.d_vel = np.zeros((n, 3), dtype=np.float64)


class Integrator:

	def __init__(self, initial_bodies: Sequence, config: SimConfig) -> None:
		templates = copy_bodies(initial_bodies)
		n = len(templates)
		self.n_bodies = n

		self._mass = np.array([b.mass for b in templates], dtype=np.float64)
		self._pos = np.zeros((n, 3), dtype=np.float64)
		self._vel = np.zeros((n, 3), dtype=np.float64)
		for i, b in enumerate(templates):
			self._pos[i] = b.position
			self._vel[i] = b.velocity

		self.bodies = [BodyView(self._pos, self._vel, i, b) for i, b in enumerate(templates)]

		self.config = config.copy()

		self._k1 = DerivativeBuffer(n)
		self._k2 = DerivativeBuffer(n)
		self._k3 = DerivativeBuffer(n)
		self._k4 = DerivativeBuffer(n)

		self._scratch_pos = np.zeros((n, 3), dtype=np.float64)
		self._scratch_vel = np.zeros((n, 3), dtype=np.float64)
		self._scratch_bodies = [
			BodyView(self._scratch_pos, self._scratch_vel, i, b) for i, b in enumerate(templates)
		]
		self._combine_buf = np.zeros((n, 3), dtype=np.float64)
		self._pairs = pair_indices(n)

		self._clock = SimulationClock()
		self._stats_callback: Optional[StatsCallback] = None
		self._feedback_callback: Optional[FeedbackCallback] = None
		self._stability_controller: Optional[StabilityController] = None
		self._injection_from_controller = False
		self._initial_energy: Optional[float] = None
		self.last_feedback: Optional[UiFeedback] = None

		self._stats_cache: Optional[StatsSnapshot] = self._calculate_stats()

	@property
	def current_time(self) -> float:
		return self._clock.now

	@property
	def positions(self) -> np.ndarray:
		return self._pos

	@property
	def velocities(self) -> np.ndarray:
		return self._vel

	@property
	def masses(self) -> np.ndarray:
		return self._mass

	@property
	def derivative_buffers(self) -> Tuple[DerivativeBuffer, DerivativeBuffer, DerivativeBuffer, DerivativeBuffer]:
		return self._k1, self._k2, self._k3, self._k4

	@property
	def scratch_bodies(self) -> list:
		return self._scratch_bodies

	@property
	def stability_controller(self) -> Optional[StabilityController]:
		return self._stability_controller

	def step(self, dt: float) -> None:
		dt = float(dt)

		ctrl = self._stability_controller
		if ctrl is not None:
			result = ctrl.on_before_step(self.bodies, self._clock.now, dt)
			if result is not None:
				self._apply_controller_result(result)

		self._evaluate(0.0, None, self._k1)
		self._evaluate(0.5 * dt, self._k1, self._k2)
		self._evaluate(0.5 * dt, self._k2, self._k3)
		self._evaluate(dt, self._k3, self._k4)

		k1, k2, k3, k4 = self._k1, self._k2, self._k3, self._k4
		self._combine(self._pos, k1.d_pos, k2.d_pos, k3.d_pos, k4.d_pos, dt)
		self._combine(self._vel, k1.d_vel, k2.d_vel, k3.d_vel, k4.d_vel, dt)

		self._clock.advance(dt)
		if self._clock.sample_due(self.config.energy_sample_interval):
			self._stats_cache = self._calculate_stats()
			self._clock.reset_sample()
			if self._stats_callback is not None:
				self._stats_callback(self._stats_cache)

	def _evaluate(
		self,
		dt_offset: float,
		derivative: Optional[DerivativeBuffer],
		out: DerivativeBuffer,
	) -> None:
		if derivative is None:
			np.copyto(self._scratch_pos, self._pos)
			np.copyto(self._scratch_vel, self._vel)
		else:
			add_scaled(self._scratch_pos, self._pos, derivative.d_pos, dt_offset)
			add_scaled(self._scratch_vel, self._vel, derivative.d_vel, dt_offset)

		cfg = self.config
		gravitational_acceleration(
			self._scratch_pos, self._mass, cfg.G, cfg.softening, out.d_vel, self._pairs
		)

		inject = cfg.controller
		if inject is not None:
			controls = inject(self._scratch_bodies, self._clock.now + dt_offset)
			self._add_controls(out.d_vel, controls)

		np.copyto(out.d_pos, self._scratch_vel)

	def _add_controls(self, acc: np.ndarray, controls) -> None:
		if controls is None or len(controls) != self.n_bodies:
			return
		if isinstance(controls, np.ndarray) and controls.shape == acc.shape:
			acc += controls
			return
		for i, u in enumerate(controls):
			if u is None:
				continue
			acc[i] += np.asarray(u, dtype=np.float64)

	def _combine(self, target: np.ndarray, a1, a2, a3, a4, dt: float) -> None:
		buf = self._combine_buf
		np.add(a2, a3, out=buf)
		buf *= 2.0
		buf += a1
		buf += a4
		buf *= dt / 6.0
		target += buf

	def _apply_controller_result(self, result: ControllerResult) -> None:
		if result.param_overrides is not None:
			self.apply_parameter_overrides(result.param_overrides)
		if result.controller is not None:
			self.config.controller = result.controller
			self._injection_from_controller = True
		if result.ui_feedback is not None:
			self._report_feedback(result.ui_feedback)

	def _report_feedback(self, fb: UiFeedback) -> None:
		self.last_feedback = fb
		msg = f"[feedback:{fb.level}] {fb.message}"
		if fb.action:
			msg += f" ({fb.action})"
		diag_print(f"feedback:{fb.level}", msg, self.config)
		if self._feedback_callback is not None:
			self._feedback_callback(fb)

	def _calculate_stats(self) -> StatsSnapshot:
		return compute_stats(
			self.bodies,
			self.config.G,
			initial_energy=self._initial_energy,
			time=self._clock.now,
		)

	def get_stats(self) -> StatsSnapshot:
		if self._stats_cache is None:
			self._stats_cache = self._calculate_stats()
		return self._stats_cache

	def refresh_stats(self) -> StatsSnapshot:
		self._stats_cache = self._calculate_stats()
		return self._stats_cache

	def set_stats_callback(self, cb: Optional[StatsCallback] = None) -> None:
		self._stats_callback = cb
		if cb is not None and self._stats_cache is not None:
			cb(self._stats_cache)

	def set_feedback_callback(self, cb: Optional[FeedbackCallback] = None) -> None:
		self._feedback_callback = cb

	def set_stability_controller(self, controller: Optional[StabilityController] = None) -> None:
		if self._injection_from_controller:
			self.config.controller = None
			self._injection_from_controller = False

		self._stability_controller = controller
		self.last_feedback = None
		self._initial_energy = compute_energy(self.bodies, G=self.config.G).total

	def apply_parameter_overrides(self, overrides: ParameterOverrides | dict) -> None:
		if isinstance(overrides, dict):
			overrides = ParameterOverrides(**overrides)
		apply_overrides(self.config, overrides)
		if overrides.controller is not None:
			self._injection_from_controller = False

	def get_config(self) -> SimConfig:
		return self.config.copy()

	def set_config(self, config: SimConfig) -> None:
		self.config = config.copy()
		self._injection_from_controller = False

	def get_energy_deviation(self) -> float:
		if self._initial_energy is None:
			return 0.0
		total = compute_energy(self.bodies, G=self.config.G).total
		return energy_deviation(total, self._initial_energy)
