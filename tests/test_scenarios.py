"""
Tests for the preset layouts, the scenario registry and the validator.
"""

import math

import numpy as np
import pytest

from orrery.body import make_body
from orrery.controller_base import StabilityController
from orrery.presets import (
    LAGRANGE_SIDE,
    ROSETTE_MASSES,
    ROSETTE_RADIUS,
    ROSETTE_SPEED_FRACTION,
    ScenarioPresets,
)
from orrery.rosette_controller import RosetteController
from orrery.scenario_registry import get_all_scenarios, get_scenario, get_scenario_options
from orrery.sim_config import SimConfig
from orrery.simulation_validator import SimulationValidator
from orrery.stability_analyzer import compute_centroid, compute_distance

SCENARIO_IDS = ["Figure8", "Random", "Hierarchical", "ChaoticEjection", "LagrangeStable", "Rosette"]


def test_lagrange_is_equilateral():
    a, b, c = ScenarioPresets.lagrange()
    for p, q in ((a, b), (b, c), (c, a)):
        assert compute_distance(p, q) == pytest.approx(LAGRANGE_SIDE)
    assert [x.name for x in (a, b, c)] == ["Star A", "Star B", "Star C"]
    np.testing.assert_allclose(compute_centroid([a, b, c]), 0.0, atol=1e-12)


def test_rosette_ring_geometry():
    ring = ScenarioPresets.rosette()
    speed = math.sqrt(sum(ROSETTE_MASSES) / ROSETTE_RADIUS) * ROSETTE_SPEED_FRACTION

    assert [b.name for b in ring] == [f"Petal {c}" for c in "ABCDEF"]
    for b in ring:
        assert np.linalg.norm(b.position) == pytest.approx(ROSETTE_RADIUS)
        assert np.linalg.norm(b.velocity) == pytest.approx(speed)
        assert np.dot(b.position, b.velocity) == pytest.approx(0.0, abs=1e-9)
    assert [b.mass for b in ring] == list(ROSETTE_MASSES)


def test_presets_return_fresh_bodies():
    a = ScenarioPresets.figure8()
    b = ScenarioPresets.figure8()
    a[0].position[0] = 123.0
    assert b[0].position[0] != 123.0


def test_registry_ids_and_labels():
    assert [s.id for s in get_all_scenarios()] == SCENARIO_IDS
    options = get_scenario_options()
    assert options[0] == {"id": "Figure8", "label": "Stable Figure-8"}
    assert len(options) == 6


def test_unknown_scenario(capsys):
    assert get_scenario("Nope") is None
    assert "[error] Scenario not found: Nope" in capsys.readouterr().out


@pytest.mark.parametrize("scenario_id", SCENARIO_IDS)
def test_scenarios_build_valid_bodies_and_controllers(scenario_id):
    scenario = get_scenario(scenario_id)
    bodies = scenario.create_initial_bodies(seed=3)

    assert SimulationValidator.bodies_are_valid(bodies, 0.15)
    controller = scenario.create_controller(bodies)
    assert isinstance(controller, StabilityController)
    assert controller is not scenario.create_controller(bodies)


def test_scenarios_hand_out_copies():
    scenario = get_scenario("Hierarchical")
    first = scenario.create_initial_bodies()
    first[0].position[0] = 50.0
    assert scenario.create_initial_bodies()[0].position[0] == 0.0


def test_rosette_controller_uses_initial_bodies():
    scenario = get_scenario("Rosette")
    controller = scenario.create_controller(scenario.create_initial_bodies())
    assert isinstance(controller, RosetteController)
    assert controller.target_radius == pytest.approx(ROSETTE_RADIUS)


def test_random_scenario_is_seeded():
    scenario = get_scenario("Random")
    a = scenario.create_initial_bodies(seed=11)
    b = scenario.create_initial_bodies(seed=11)
    np.testing.assert_array_equal(a[1].velocity, b[1].velocity)


def test_validator_rejects_bad_bodies(capsys):
    good = ScenarioPresets.lagrange()
    assert SimulationValidator.bodies_are_valid(good)
    assert not SimulationValidator.bodies_are_valid([])

    dup = good + [make_body("Star A", 1, (50, 0, 0), (0, 0, 0), "#fff")]
    assert not SimulationValidator.bodies_are_valid(dup)

    broken = ScenarioPresets.lagrange()
    broken[1].mass = -1.0
    broken[2].velocity[0] = math.nan
    assert not SimulationValidator.bodies_are_valid(broken)

    SimulationValidator.report_invalid_bodies("broken", broken)
    out = capsys.readouterr().out
    assert "[invalid] broken" in out
    assert "invalid mass" in out
    assert "velocity[2] is not finite" in out


def test_validator_config_problems():
    assert SimulationValidator.config_is_valid(SimConfig())
    bad = SimConfig(time_step=0.0, softening=-1.0)
    problems = SimulationValidator.config_problems(bad)
    assert len(problems) == 2
    assert problems[0].startswith("time_step=0.0")
    assert not SimulationValidator.state_is_valid([1.0], np.zeros((1, 3)), np.zeros((1, 2)))
