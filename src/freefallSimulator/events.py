# Licensed under the PolyForm Noncommercial License 1.0.0
"""
Event functions checked on every accepted integrator step.

Each detector follows the solve_ivp event protocol: calling it with
``(t, y)`` returns a scalar whose zero crossing marks the event,
``terminal`` says whether the crossing stops the integration and
``direction`` restricts which crossings count (-1 for falling, +1 for
rising, 0 for both).
"""

import numpy as np

from .models import GROUND_IMPACT, PARACHUTE_TRIGGER


class GroundImpactDetector:
    """Stops the integration when altitude crosses zero on the way down."""

    label = GROUND_IMPACT
    terminal = True
    direction = -1

    def __call__(self, t: float, y: np.ndarray) -> float:
        return y[0]


class DeploymentDetector:
    """Marks the time the trigger altitude is passed. Does not stop the run."""

    label = PARACHUTE_TRIGGER
    terminal = False
    direction = -1

    def __init__(self, deploy_altitude: float):
        self.deploy_altitude = deploy_altitude

    def __call__(self, t: float, y: np.ndarray) -> float:
        return y[0] - self.deploy_altitude
