"""
Tests for habitability scoring, rate-limited printing, the clock and the config helpers.
"""

import numpy as np
import pytest

from orrery.body import make_body
from orrery.body_view import BodyView
from orrery.clock import SimulationClock
from orrery.diagnostics import compute_habitability, compute_stats, diag_print, reset_diag_counts
from orrery.presets import ScenarioPresets
from orrery.sim_config import ParameterOverrides, SimConfig, apply_overrides


def _star_and_planet(star_mass, distance):
    return [
        make_body("Sun", star_mass, (0, 0, 0), (0, 0, 0), "#fff"),
        make_body("Planet", 0.01, (distance, 0, 0), (0, 0, 0), "#fff", is_star=False),
    ]


def test_planet_in_band_is_habitable():
    assert compute_habitability(_star_and_planet(4.0, 3.0)) is True
    assert compute_habitability(_star_and_planet(4.0, 6.0)) is False


def test_planet_too_close_to_a_star_is_burned():
    assert compute_habitability(_star_and_planet(1.0, 1.5)) is False


def test_no_planet_is_not_habitable():
    assert compute_habitability(ScenarioPresets.lagrange()) is False


def test_compute_stats_snapshot():
    snap = compute_stats(ScenarioPresets.hierarchical(), 1.0, time=4.0)
    assert snap.habitable is True
    assert snap.time == 4.0
    assert snap.total_energy == pytest.approx(snap.kinetic_energy + snap.potential_energy)
    assert snap.as_dict()["habitable"] is True


def test_diag_print_rate_limit(capsys):
    reset_diag_counts()
    cfg = SimConfig(diag_print_limit=2, diag_print_interval=3)
    for _ in range(6):
        diag_print("probe", "[probe] hello", cfg)

    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "[probe] hello",
        "[probe] hello",
        "[probe] hello (occurrence #3)",
        "[probe] hello (occurrence #6)",
    ]


def test_diag_print_can_be_disabled(capsys):
    reset_diag_counts()
    diag_print("quiet", "[quiet] hidden", SimConfig(diag_prints=False))
    assert capsys.readouterr().out == ""


def test_diag_print_defaults_without_config(capsys):
    reset_diag_counts()
    for _ in range(4):
        diag_print("bare", "[bare] tick")

    assert capsys.readouterr().out.splitlines() == ["[bare] tick"] * 3

    reset_diag_counts()
    for _ in range(1000):
        diag_print("bare", "[bare] tick")
    assert capsys.readouterr().out.splitlines()[-1] == "[bare] tick (occurrence #1000)"


def test_clock_does_not_drift():
    clock = SimulationClock()
    for _ in range(100000):
        clock.advance(0.01)
    assert clock.now == pytest.approx(1000.0, abs=1e-10)


def test_clock_sample_window():
    clock = SimulationClock()
    clock.advance(0.6)
    assert not clock.sample_due(1.0)
    clock.advance(0.6)
    assert clock.sample_due(1.0)
    clock.reset_sample()
    assert clock.since_sample == 0.0
    assert clock.now == pytest.approx(1.2)


def test_config_copy_is_independent():
    cfg = SimConfig(softening=0.2)
    other = cfg.copy()
    other.softening = 0.5
    assert cfg.softening == 0.2
    assert other.G == cfg.G


def test_apply_overrides_sets_present_fields():
    cfg = SimConfig()
    apply_overrides(cfg, ParameterOverrides(G=2.0))
    assert cfg.G == 2.0
    assert cfg.time_step == SimConfig().time_step
    assert apply_overrides(cfg, None) is cfg
    assert ParameterOverrides(softening=0.1).present() == {"softening": 0.1}


def test_body_view_writes_through():
    pos = np.zeros((2, 3))
    vel = np.zeros((2, 3))
    template = make_body("Probe", 1.0, (0, 0, 0), (0, 0, 0), "#fff")
    view = BodyView(pos, vel, 1, template)

    view.position = (1.0, 2.0, 3.0)
    view.velocity[0] = 4.0

    assert pos[1].tolist() == [1.0, 2.0, 3.0]
    assert vel[1, 0] == 4.0
    copy = view.copy()
    copy.position[0] = 9.0
    assert pos[1, 0] == 1.0
    assert copy.name == "Probe"
