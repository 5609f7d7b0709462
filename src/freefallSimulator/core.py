# Licensed under the PolyForm Noncommercial License 1.0.0
"""Core simulation logic for the freefall simulator."""

import logging
from typing import List, Optional

import numpy as np

from .atmosphere import AtmosphereModel, default_atmosphere
from .drag import DragModel, default_drag_model
from .equations import MotionEquations
from .errors import IntegrationFailure, SimulationError
from .events import DeploymentDetector, GroundImpactDetector
from .integration import IntegrationOutcome, IntegrationStatus, integrate
from .models import (
    PARACHUTE_TRIGGER,
    JumpParameters,
    SimulationEvent,
    SimulationResult,
    SolverSettings,
)
from .sampling import TrajectorySampler

logger = logging.getLogger(__name__)


class FreefallSimulator:
    """
    Simulates a vertical jump through the atmosphere with a deploying parachute.
    """

    def __init__(self, params: JumpParameters,
                 settings: Optional[SolverSettings] = None,
                 atmosphere: Optional[AtmosphereModel] = None,
                 drag_model: Optional[DragModel] = None):
        """
        Initialize the simulator.

        Args:
            params: Jump description; validated here
            settings: Solver configuration, defaults to SolverSettings()
            atmosphere: Atmosphere model, defaults to the shared standard atmosphere
            drag_model: Drag coefficient model, defaults to the standard Mach table

        Raises:
            InvalidParameterError: If params or settings are out of range
        """
        self.params = params.validate()
        self.settings = (settings if settings is not None else SolverSettings()).validate()
        self.atmosphere = atmosphere if atmosphere is not None else default_atmosphere()
        self.drag_model = drag_model if drag_model is not None else default_drag_model()
        self.equations = MotionEquations(self.params, self.atmosphere, self.drag_model)
        self.last_outcome: Optional[IntegrationOutcome] = None

    def initial_state(self) -> np.ndarray:
        return np.array([self.params.initial_height, 0.0, 0.0])

    def simulate(self) -> SimulationResult:
        """
        Run the jump from release to ground impact.

        Returns:
            SimulationResult sampled every settings.output_step seconds

        Raises:
            DerivativeError: A derivative evaluation was not finite
            IntegrationFailure: The run ended without reaching the ground
            SimulationError: No samples were produced
        """
        p = self.params
        sampler = TrajectorySampler(self.equations, self.settings.output_step)
        events = [GroundImpactDetector()]

        pre_events: List[SimulationEvent] = []
        if p.initial_height <= p.deploy_altitude:
            # Released below the trigger altitude: the canopy opens from the start
            pre_events.append(SimulationEvent(0.0, PARACHUTE_TRIGGER, {
                'altitude': p.initial_height,
                'velocity': 0.0,
            }))
        else:
            events.append(DeploymentDetector(p.deploy_altitude))

        logger.info("Simulating jump: mass=%.1f kg, height=%.1f m, area=%.3f m^2, "
                    "parachute=%.3f m^2 at %.1f m over %.2f s",
                    p.mass, p.initial_height, p.area, p.area_parachute,
                    p.deploy_altitude, p.transition_time)

        outcome = integrate(self.equations.evaluate, 0.0, self.initial_state(), self.settings,
                            events=events, step_handler=sampler)
        self.last_outcome = outcome

        if outcome.status is IntegrationStatus.DERIVATIVE_ERROR:
            raise outcome.error
        if outcome.status is not IntegrationStatus.LANDED:
            raise IntegrationFailure(outcome.message, outcome.status.value, outcome.t, outcome.y)
        if not sampler.samples:
            raise SimulationError("simulation produced no samples")

        result = sampler.finalize(p, pre_events + outcome.events)
        logger.info("Landed after %.2f s at %.2f m/s (%d samples, %d steps, %d evaluations)",
                    result.landing_time, result.impact_velocity, len(result),
                    outcome.n_steps, outcome.nfev)
        return result


def simulate_jump(mass: float, initial_height: float, area: float, area_parachute: float,
                  deploy_altitude: float, transition_time: float,
                  settings: Optional[SolverSettings] = None) -> SimulationResult:
    """
    Simulate a parachute jump.

    Args:
        mass: Mass of jumper and equipment (kg)
        initial_height: Release altitude (m)
        area: Cross-sectional area in free fall (m^2)
        area_parachute: Cross-sectional area under a fully open canopy (m^2)
        deploy_altitude: Altitude at which the canopy starts opening (m), may be zero
        transition_time: Canopy opening time (s)
        settings: Optional solver configuration. Very short transition times
            (around a millisecond) need a min_step below the 1e-8 s default.

    Returns:
        The complete sampled trajectory

    Raises:
        InvalidParameterError: If an input is out of range
        DerivativeError: A derivative evaluation was not finite
        IntegrationFailure: The run ended without reaching the ground
    """
    params = JumpParameters(mass, initial_height, area, area_parachute, deploy_altitude, transition_time)
    return FreefallSimulator(params, settings).simulate()
