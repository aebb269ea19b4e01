"""
Tests for the RK4 integrator core.
"""

import numpy as np
import pytest

from orrery.body import make_body
from orrery.controller_base import ControllerResult, UiFeedback
from orrery.integrator import Integrator
from orrery.presets import ScenarioPresets
from orrery.sim_config import ParameterOverrides, SimConfig
from orrery.stability_analyzer import compute_angular_momentum, compute_energy


def _figure8_stars():
    return [b for b in ScenarioPresets.figure8() if b.is_star]


def _drifters():
    return [
        make_body("A", 1.0, (0, 0, 0), (1.0, 0.5, -0.25), "#fff"),
        make_body("B", 2.0, (5, 0, 0), (0.0, -1.0, 0.0), "#fff"),
    ]


class _Recorder:
    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def on_before_step(self, state, t, dt):
        self.calls.append((state, t, dt))
        return self.result


def test_figure8_conserves_energy_and_angular_momentum():
    integ = Integrator(_figure8_stars(), SimConfig(softening=0.0))
    e0 = compute_energy(integ.bodies).total
    l0 = compute_angular_momentum(integ.bodies)

    for _ in range(2000):
        integ.step(0.01)

    e1 = compute_energy(integ.bodies).total
    assert abs(e1 - e0) / abs(e0) < 0.01
    np.testing.assert_allclose(compute_angular_momentum(integ.bodies), l0, atol=1e-4)
    assert integ.current_time == pytest.approx(20.0)


def test_zero_gravity_moves_in_straight_lines():
    bodies = _drifters()
    integ = Integrator(bodies, SimConfig(G=0.0, softening=0.1))

    for _ in range(100):
        integ.step(0.05)

    for src, live in zip(bodies, integ.bodies):
        np.testing.assert_allclose(live.position, src.position + src.velocity * 5.0, atol=1e-12)
        np.testing.assert_allclose(live.velocity, src.velocity, atol=1e-15)


def test_initial_bodies_are_deep_copied():
    bodies = _drifters()
    integ = Integrator(bodies, SimConfig(G=0.0))
    before = bodies[0].position.copy()

    integ.step(0.1)
    assert np.array_equal(bodies[0].position, before)

    bodies[1].position[0] = 99.0
    assert integ.bodies[1].position[0] != 99.0


def test_buffers_are_never_reallocated():
    integ = Integrator(ScenarioPresets.figure8(), SimConfig())
    body_list = integ.bodies
    arrays = [integ.positions, integ.velocities, integ.masses]
    for buf in integ.derivative_buffers:
        arrays.extend([buf.d_pos, buf.d_vel])
    scratch = integ.scratch_bodies
    ids = [id(a) for a in arrays]
    masses = integ.masses.copy()

    for _ in range(50):
        integ.step(0.01)

    again = [integ.positions, integ.velocities, integ.masses]
    for buf in integ.derivative_buffers:
        again.extend([buf.d_pos, buf.d_vel])
    assert [id(a) for a in again] == ids
    assert integ.bodies is body_list
    assert len(integ.bodies) == 4
    assert integ.scratch_bodies is scratch
    assert np.shares_memory(integ.bodies[2].position, integ.positions)
    np.testing.assert_array_equal(integ.masses, masses)


def test_controller_is_called_before_each_step():
    rec = _Recorder()
    integ = Integrator(_drifters(), SimConfig(G=0.0))
    integ.set_stability_controller(rec)

    for _ in range(3):
        integ.step(0.25)

    assert len(rec.calls) == 3
    assert all(state is integ.bodies for state, _, _ in rec.calls)
    assert [t for _, t, _ in rec.calls] == pytest.approx([0.0, 0.25, 0.5])
    assert all(dt == 0.25 for _, _, dt in rec.calls)


def test_injected_acceleration_is_integrated():
    body = [make_body("Probe", 1.0, (0, 0, 0), (0, 0, 0), "#fff")]
    push = ControllerResult(controller=lambda state, t: [(1.0, 0.0, 0.0)])
    integ = Integrator(body, SimConfig(G=0.0))
    integ.set_stability_controller(_Recorder(push))

    for _ in range(10):
        integ.step(0.1)

    np.testing.assert_allclose(integ.bodies[0].position, [0.5, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(integ.bodies[0].velocity, [1.0, 0.0, 0.0], atol=1e-12)


def test_mismatched_or_none_injection_is_ignored():
    bodies = _drifters()
    bad = ControllerResult(controller=lambda state, t: [(5.0, 0.0, 0.0)])
    integ = Integrator(bodies, SimConfig(G=0.0))
    integ.set_stability_controller(_Recorder(bad))
    integ.step(1.0)
    np.testing.assert_allclose(integ.bodies[0].velocity, bodies[0].velocity)

    partial = ControllerResult(controller=lambda state, t: [None, (0.0, 2.0, 0.0)])
    integ = Integrator(bodies, SimConfig(G=0.0))
    integ.set_stability_controller(_Recorder(partial))
    integ.step(1.0)
    np.testing.assert_allclose(integ.bodies[0].velocity, bodies[0].velocity)
    np.testing.assert_allclose(integ.bodies[1].velocity, bodies[1].velocity + [0.0, 2.0, 0.0])


def test_controller_overrides_and_feedback():
    fb = UiFeedback("tightening", "warning", "reduced step")
    result = ControllerResult(param_overrides=ParameterOverrides(softening=0.3), ui_feedback=fb)
    seen = []
    integ = Integrator(_drifters(), SimConfig(softening=0.1, diag_prints=False))
    integ.set_feedback_callback(seen.append)
    integ.set_stability_controller(_Recorder(result))

    integ.step(0.01)

    assert integ.get_config().softening == 0.3
    assert integ.last_feedback is fb
    assert seen == [fb]


def test_controller_exception_propagates():
    class Broken:
        def on_before_step(self, state, t, dt):
            raise RuntimeError("controller failure")

    integ = Integrator(_drifters(), SimConfig())
    integ.set_stability_controller(Broken())
    with pytest.raises(RuntimeError):
        integ.step(0.01)


def test_new_controller_drops_previous_injection():
    push = ControllerResult(controller=lambda state, t: [(1.0, 0.0, 0.0)] * len(state))
    integ = Integrator(_drifters(), SimConfig(G=0.0))
    integ.set_stability_controller(_Recorder(push))
    integ.step(0.1)
    assert integ.get_config().controller is not None

    integ.set_stability_controller(None)
    assert integ.get_config().controller is None


def test_overrides_change_only_given_fields():
    integ = Integrator(_drifters(), SimConfig())
    before = integ.get_config()

    integ.apply_parameter_overrides(ParameterOverrides(time_step=0.005))
    after = integ.get_config()

    assert after.time_step == 0.005
    assert after.G == before.G
    assert after.softening == before.softening
    assert after.energy_sample_interval == before.energy_sample_interval
    assert after.controller is before.controller

    integ.apply_parameter_overrides({"softening": 0.2})
    assert integ.get_config().softening == 0.2
    assert integ.get_config().time_step == 0.005


def test_get_config_returns_a_copy():
    integ = Integrator(_drifters(), SimConfig(G=1.0))
    cfg = integ.get_config()
    cfg.G = 42.0
    assert integ.get_config().G == 1.0

    integ.set_config(cfg)
    assert integ.get_config().G == 42.0


def test_stats_callback_gets_cached_snapshot_then_samples():
    snaps = []
    integ = Integrator(_figure8_stars(), SimConfig(energy_sample_interval=0.1))
    integ.set_stats_callback(snaps.append)
    assert len(snaps) == 1
    assert snaps[0] is integ.get_stats()

    for _ in range(25):
        integ.step(0.01)

    assert len(snaps) == 3
    assert snaps[-1].time > snaps[1].time > 0.0
    assert integ.get_stats() is snaps[-1]


def test_stats_seeded_at_construction():
    integ = Integrator(_figure8_stars(), SimConfig())
    snap = integ.get_stats()
    assert snap.time == 0.0
    assert snap.total_energy == pytest.approx(compute_energy(integ.bodies).total)
    assert snap.habitable is False


def test_energy_deviation_uses_attach_baseline():
    integ = Integrator(_figure8_stars(), SimConfig(softening=0.0))
    assert integ.get_energy_deviation() == 0.0

    integ.set_stability_controller(_Recorder())
    for _ in range(100):
        integ.step(0.01)

    assert 0.0 <= integ.get_energy_deviation() < 1e-3


def test_refresh_stats_recomputes_now():
    integ = Integrator(_figure8_stars(), SimConfig(energy_sample_interval=100.0))
    cached = integ.get_stats()
    integ.step(0.01)
    assert integ.get_stats() is cached

    fresh = integ.refresh_stats()
    assert fresh is integ.get_stats()
    assert fresh.time == pytest.approx(0.01)
