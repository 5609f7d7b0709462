# Licensed under the PolyForm Noncommercial License 1.0.0
"""
Step-by-step driver around scipy's DOP853 solver.

solve_ivp only reports results once the whole run is over. This driver
advances the solver one accepted step at a time so that the dense output
of every step can be handed to a step handler, event functions can be
root-found on it, and a failing derivative evaluation can end the run
cleanly instead of unwinding through the solver.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Protocol, Sequence

import numpy as np
from scipy.integrate import DOP853
from scipy.optimize import brentq

from .equations import DerivativeResult
from .errors import DerivativeError
from .models import SimulationEvent, SolverSettings

logger = logging.getLogger(__name__)


class IntegrationStatus(Enum):
    """State of a run. Every value other than RUNNING ends it."""
    RUNNING = "running"
    LANDED = "landed"
    TIME_EXCEEDED = "time_exceeded"
    DERIVATIVE_ERROR = "derivative_error"
    SOLVER_FAILED = "solver_failed"

    @property
    def is_terminal(self) -> bool:
        return self is not IntegrationStatus.RUNNING


class StepInterval(NamedTuple):
    """One accepted step and its continuous solution."""
    t_start: float
    t_end: float
    sol: Callable[[float], np.ndarray]

    def __call__(self, t: float) -> np.ndarray:
        return self.sol(t)


class StepHandler(Protocol):
    def start(self, t0: float, y0: np.ndarray) -> None: ...

    def handle_step(self, interval: StepInterval, is_last: bool) -> list: ...


class EventFunction(Protocol):
    label: str
    terminal: bool
    direction: int

    def __call__(self, t: float, y: np.ndarray) -> float: ...


@dataclass
class IntegrationOutcome:
    """How and where an integration ended.

    Attributes:
        status: Terminal status
        t: Final time (s)
        y: Final state
        events: Events located during the run, in time order
        error: The derivative failure when status is DERIVATIVE_ERROR
        message: Human readable description of the ending
        n_steps: Number of accepted steps
        nfev: Number of derivative evaluations
    """
    status: IntegrationStatus
    t: float
    y: np.ndarray
    events: List[SimulationEvent] = field(default_factory=list)
    error: Optional[DerivativeError] = None
    message: str = ""
    n_steps: int = 0
    nfev: int = 0


class _GuardedDerivative:
    """Adapts a DerivativeResult-returning function to what the solver expects.

    The first failure is kept and NaNs are handed to the solver, which then
    rejects the step; the driver checks ``error`` after every step.
    """

    def __init__(self, rhs: Callable[[float, np.ndarray], DerivativeResult]):
        self.rhs = rhs
        self.error: Optional[DerivativeError] = None
        self.nfev = 0

    def __call__(self, t: float, y: np.ndarray) -> np.ndarray:
        self.nfev += 1
        result = self.rhs(t, y)
        if result.ok:
            return result.value
        if self.error is None:
            self.error = result.error
        return np.full(len(y), np.nan)


def _crossed(g_old: float, g_new: float, direction: int) -> bool:
    down = g_old > 0 >= g_new
    up = g_old < 0 <= g_new
    if direction < 0:
        return down
    if direction > 0:
        return up
    return down or up


def _locate_root(event: EventFunction, interval: StepInterval, xtol: float) -> float:
    """Time of the event's zero inside the interval, refined on the dense output."""
    def g(t):
        return event(t, interval(t))

    g_a, g_b = g(interval.t_start), g(interval.t_end)
    if g_a == 0:
        return interval.t_start
    if g_b == 0 or np.sign(g_a) == np.sign(g_b):
        # Interpolant rounding disagrees with the step endpoints
        return interval.t_end
    return brentq(g, interval.t_start, interval.t_end, xtol=xtol)


def integrate(rhs: Callable[[float, np.ndarray], DerivativeResult],
              t0: float,
              y0: Sequence[float],
              settings: SolverSettings,
              events: Sequence[EventFunction] = (),
              step_handler: Optional[StepHandler] = None) -> IntegrationOutcome:
    """
    Integrate from t0 until a terminal event, a failure, or settings.t_max.

    Args:
        rhs: Derivative function returning a DerivativeResult
        t0: Start time (s)
        y0: Initial state
        settings: Tolerances, step bounds and time limit
        events: Event functions checked on every accepted step
        step_handler: Receives the initial state and every accepted step

    Returns:
        IntegrationOutcome with a terminal status
    """
    y0 = np.asarray(y0, dtype=float)
    fun = _GuardedDerivative(rhs)
    located: List[SimulationEvent] = []

    def outcome(status, t, y, message, error=None):
        return IntegrationOutcome(status=status, t=t, y=np.array(y, dtype=float), events=located,
                                  error=error, message=message, n_steps=n_steps, nfev=fun.nfev)

    n_steps = 0
    solver = DOP853(fun, t0, y0, settings.t_max, max_step=settings.max_step,
                    rtol=settings.rtol, atol=settings.atol)

    # The solver evaluates the derivative while picking its first step
    if fun.error is not None:
        logger.error("Derivative failed at start: %s", fun.error)
        return outcome(IntegrationStatus.DERIVATIVE_ERROR, t0, y0, str(fun.error), fun.error)

    if step_handler is not None:
        step_handler.start(t0, y0)

    g_old = [event(t0, y0) for event in events]
    status = IntegrationStatus.RUNNING

    while status is IntegrationStatus.RUNNING:
        message = solver.step()

        if fun.error is not None:
            logger.error("Derivative failed: %s", fun.error)
            return outcome(IntegrationStatus.DERIVATIVE_ERROR, fun.error.t, fun.error.state,
                           str(fun.error), fun.error)

        if solver.status == 'failed':
            logger.error("Solver failed at t=%.6g s: %s", solver.t, message)
            return outcome(IntegrationStatus.SOLVER_FAILED, solver.t, solver.y, message or "solver failed")

        n_steps += 1
        interval = StepInterval(solver.t_old, solver.t, solver.dense_output())
        g_new = [event(solver.t, solver.y) for event in events]

        roots = []
        for event, before, after in zip(events, g_old, g_new):
            if _crossed(before, after, event.direction):
                roots.append((_locate_root(event, interval, settings.event_tolerance), event))
        roots.sort(key=lambda root: root[0])
        g_old = g_new

        stop_time = None
        for t_root, event in roots:
            if stop_time is not None:
                break
            y_root = interval(t_root)
            located.append(SimulationEvent(t_root, event.label, {
                'altitude': float(y_root[0]),
                'velocity': float(y_root[1]),
            }))
            logger.debug("Event %s at t=%.6f s", event.label, t_root)
            if event.terminal:
                stop_time = t_root

        if stop_time is not None:
            interval = StepInterval(interval.t_start, stop_time, interval.sol)
            if step_handler is not None:
                step_handler.handle_step(interval, True)
            return outcome(IntegrationStatus.LANDED, stop_time, interval(stop_time),
                           f"terminal event at t={stop_time:.6f} s")

        if step_handler is not None:
            step_handler.handle_step(interval, False)

        if solver.status == 'finished':
            status = IntegrationStatus.TIME_EXCEEDED
        elif solver.step_size < settings.min_step:
            logger.error("Step size %.3g s fell below minimum %.3g s at t=%.6g s",
                         solver.step_size, settings.min_step, solver.t)
            return outcome(IntegrationStatus.SOLVER_FAILED, solver.t, solver.y,
                           f"step size {solver.step_size:.3g} s below minimum {settings.min_step:.3g} s")

    logger.warning("Reached t_max=%.1f s without a terminal event", settings.t_max)
    return outcome(status, solver.t, solver.y, f"no terminal event before t_max={settings.t_max} s")
