# Licensed under the PolyForm Noncommercial License 1.0.0
"""Freefall Simulator - A Python package for simulating parachute jumps through Earth's atmosphere."""

from .models import (
    R_air,
    R_earth,
    g0,
    gamma_air,
    AtmosphereLayer,
    AtmosphericProperties,
    JumpParameters,
    SolverSettings,
    Sample,
    SimulationEvent,
    SimulationResult,
)
from .errors import (
    SimulationError,
    InvalidParameterError,
    DerivativeError,
    IntegrationFailure,
)
from .atmosphere import AtmosphereModel, build_layers, default_atmosphere
from .drag import DEFAULT_DRAG_TABLE, DragModel, default_drag_model, drag_coefficient, gravity
from .equations import MotionEquations, DerivativeResult
from .events import GroundImpactDetector, DeploymentDetector
from .integration import IntegrationStatus, IntegrationOutcome, StepInterval, integrate
from .sampling import TrajectorySampler
from .core import FreefallSimulator, simulate_jump

__version__ = "0.1.0"
__all__ = [
    "simulate_jump",
    "FreefallSimulator",
    "JumpParameters",
    "SolverSettings",
    "Sample",
    "SimulationEvent",
    "SimulationResult",
    "AtmosphereLayer",
    "AtmosphericProperties",
    "AtmosphereModel",
    "build_layers",
    "default_atmosphere",
    "DragModel",
    "DEFAULT_DRAG_TABLE",
    "default_drag_model",
    "drag_coefficient",
    "gravity",
    "MotionEquations",
    "DerivativeResult",
    "GroundImpactDetector",
    "DeploymentDetector",
    "IntegrationStatus",
    "IntegrationOutcome",
    "StepInterval",
    "integrate",
    "TrajectorySampler",
    "SimulationError",
    "InvalidParameterError",
    "DerivativeError",
    "IntegrationFailure",
    "R_air",
    "R_earth",
    "g0",
    "gamma_air",
]
