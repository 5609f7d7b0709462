# Licensed under the PolyForm Noncommercial License 1.0.0
"""Exceptions raised by the freefall simulator."""

from typing import Optional

import numpy as np


class SimulationError(Exception):
    """Base class for every failure reported by the simulator."""


class InvalidParameterError(SimulationError, ValueError):
    """A jump parameter or solver setting is outside its valid range."""


class DerivativeError(SimulationError):
    """
    A derivative evaluation produced a non-finite value.

    Attributes:
        t: Time of the offending evaluation (s)
        state: Copy of the state vector [h, v, x] at that time
    """

    def __init__(self, message: str, t: float, state: np.ndarray):
        super().__init__(message)
        self.t = t
        self.state = np.array(state, dtype=float)

    def __str__(self) -> str:
        h, v, x = self.state
        return f"{self.args[0]} (t={self.t:.6g} s, altitude={h:.6g}, velocity={v:.6g}, deployment={x:.6g})"


class IntegrationFailure(SimulationError):
    """
    The integrator stopped without reaching the ground.

    Attributes:
        status: Terminal integration status name
        t: Time at which the run stopped (s)
        state: State vector at that time, if known
    """

    def __init__(self, message: str, status: str, t: float, state: Optional[np.ndarray] = None):
        super().__init__(message)
        self.status = status
        self.t = t
        self.state = None if state is None else np.array(state, dtype=float)
