# Licensed under the PolyForm Noncommercial License 1.0.0
"""Equations of motion for a vertical fall with a deploying parachute."""

import math
from typing import NamedTuple, Optional

import numpy as np

from .atmosphere import AtmosphereModel, default_atmosphere
from .drag import DragModel, default_drag_model, gravity
from .errors import DerivativeError
from .models import JumpParameters

# Components of the state vector
ALTITUDE, VELOCITY, DEPLOYMENT = 0, 1, 2


class AeroState(NamedTuple):
    """Forces and flow quantities derived from a single state."""
    mach_number: float
    drag_coefficient: float
    density: float
    effective_area: float
    drag_force: float
    gravity: float
    acceleration: float


class DerivativeResult(NamedTuple):
    """Outcome of one derivative evaluation: either ``value`` or ``error`` is set."""
    value: Optional[np.ndarray]
    error: Optional[DerivativeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MotionEquations:
    """
    Right-hand side of the fall dynamics.

    State vector: [h, v, x]
        h: altitude (m)
        v: vertical velocity (m/s), positive up
        x: parachute deployment progress, 0 closed to 1 fully open
    """

    def __init__(self, params: JumpParameters,
                 atmosphere: Optional[AtmosphereModel] = None,
                 drag_model: Optional[DragModel] = None):
        self.params = params
        self.atmosphere = atmosphere if atmosphere is not None else default_atmosphere()
        self.drag_model = drag_model if drag_model is not None else default_drag_model()

    def aero_state(self, t: float, state: np.ndarray) -> AeroState:
        """
        Evaluate the forces acting at a state.

        Altitude below ground and deployment beyond fully open are clamped
        here; the state itself is left untouched.
        """
        h, v, x = state
        p = self.params
        h_eff = max(h, 0.0)
        progress = min(max(x, 0.0), 1.0)

        atm = self.atmosphere.properties(h_eff)
        mach = abs(v) / atm.speed_of_sound if atm.speed_of_sound > 0 else 0.0
        cd = self.drag_model(mach)

        area = p.area + (p.area_parachute - p.area) * progress
        drag_force = 0.5 * cd * atm.density * area * v * abs(v)
        g = gravity(h_eff)

        return AeroState(
            mach_number=mach,
            drag_coefficient=cd,
            density=atm.density,
            effective_area=area,
            drag_force=drag_force,
            gravity=g,
            acceleration=-g - drag_force / p.mass,
        )

    def deployment_rate(self, state: np.ndarray) -> float:
        h, _, x = state
        if h <= self.params.deploy_altitude and x < 1.0:
            return 1.0 / self.params.transition_time
        return 0.0

    def evaluate(self, t: float, state: np.ndarray) -> DerivativeResult:
        """
        Compute d[h, v, x]/dt.

        Args:
            t: Time (s)
            state: State vector [h, v, x]

        Returns:
            DerivativeResult holding the derivative vector, or a DerivativeError
            when the state or any derivative component is not finite
        """
        if not all(math.isfinite(s) for s in state):
            return DerivativeResult(None, DerivativeError("non-finite state", t, state))

        aero = self.aero_state(t, state)
        derivatives = np.array([state[VELOCITY], aero.acceleration, self.deployment_rate(state)])

        if not np.all(np.isfinite(derivatives)):
            return DerivativeResult(None, DerivativeError(
                f"non-finite derivative (gravity={aero.gravity:.6g}, drag_force={aero.drag_force:.6g})",
                t, state))

        return DerivativeResult(derivatives)
