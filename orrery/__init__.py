"""
This initialization file serves as the main entry point for the orrery package, exposing
its public API through a single namespace.

It re-exports the body containers (Body, BodyView), configuration (SimConfig,
ParameterOverrides), the RK4 Integrator and its gravity evaluator, the stateless
stability-analysis functions, the controller protocol with every scenario controller, the
preset layouts and scenario registry, the validator, the session driver and the telemetry
recorder, so callers can import any major component directly from the package root.
"""

from .constants import G_CONST, DEFAULT_TIME_STEP, DEFAULT_SOFTENING, MAX_TRAIL_LENGTH
from .sim_config import SimConfig, ParameterOverrides, apply_overrides
from .simulation_validator import SimulationValidator

from .body import Body, make_body, copy_bodies
from .body_view import BodyView
from .forces import gravitational_acceleration, pairwise_acceleration
from .integrator import Integrator, DerivativeBuffer
from .diagnostics import StatsSnapshot, compute_stats, compute_habitability, diag_print

from .stability_analyzer import (
    EnergyBreakdown,
    StabilityMetrics,
    StabilityThresholds,
    StabilityVerdict,
    analyze_stability,
    evaluate_stability_status,
    compute_energy,
    compute_virial_ratio,
    compute_centroid,
    compute_angular_momentum,
    compute_symmetry_score,
    compute_minimum_pairwise_distance,
    compute_maximum_pairwise_distance,
    compute_spatial_spread,
    compute_hill_sphere,
    compute_two_body_energy,
    compute_orbital_speed,
    compute_distance,
)

from .controller_base import (
    ControllerResult,
    UiFeedback,
    StabilityController,
    IntervalSchedule,
)
from .rosette_controller import RosetteController, make_rosette_correction
from .figure8_controller import Figure8Controller, Figure8MomentumController
from .lagrange_controller import (
    LagrangeStableController,
    ConservationController,
    PeriodicRealignmentController,
)
from .hierarchical_controller import (
    HierarchicalController,
    HillSphereMonitor,
    OrbitalCorrectionController,
    build_hierarchy,
)
from .chaotic_ejection_controller import (
    ChaoticEjectionController,
    HighSpeedMonitor,
    EjectionRecorder,
    EjectionEvent,
)
from .random_controller import (
    RandomConfig,
    RandomRuntimeMonitor,
    validate_random_configuration,
    generate_random_scenario_with_validation,
)

from .presets import ScenarioPresets, generate_random_scenario
from .scenario_registry import Scenario, get_all_scenarios, get_scenario, get_scenario_options
from .session import SimulationSession
from .telemetry import TelemetryRecorder
