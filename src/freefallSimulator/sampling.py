# Licensed under the PolyForm Noncommercial License 1.0.0
"""Fixed-cadence trajectory recording from the integrator's dense output."""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from .equations import MotionEquations
from .errors import SimulationError
from .integration import StepInterval
from .models import JumpParameters, Sample, SimulationEvent, SimulationResult

logger = logging.getLogger(__name__)

# Final state closer than this to the last grid sample replaces it (s)
COINCIDENCE_TOLERANCE = 1e-9


class TrajectorySampler:
    """
    Records samples on a uniform time grid, independent of the solver's steps.

    Grid times are ``t0 + k * output_step``. Whenever an accepted step covers
    one or more grid times, the step's continuous solution is evaluated there.
    The initial and final states are always recorded exactly.
    """

    def __init__(self, equations: MotionEquations, output_step: float = 0.1):
        if not output_step > 0:
            raise ValueError(f"output_step must be positive, got {output_step!r}")
        self.equations = equations
        self.output_step = output_step
        self.samples: List[Sample] = []
        self._t0 = 0.0
        self._next_index = 1

    def record(self, t: float, y: np.ndarray) -> Sample:
        """Append the sample for state y at time t; auxiliary channels are recomputed from (t, y)."""
        h, v, x = (float(value) for value in y)
        if not (math.isfinite(h) and math.isfinite(v) and math.isfinite(x)):
            raise SimulationError(f"non-finite state at t={t:.6g} s: altitude={h}, velocity={v}, deployment={x}")

        aero = self.equations.aero_state(t, y)
        sample = Sample(
            time=float(t),
            altitude=max(h, 0.0),
            velocity=v,
            acceleration=aero.acceleration,
            mach_number=aero.mach_number,
            drag_coefficient=aero.drag_coefficient,
            deployment_progress=min(max(x, 0.0), 1.0),
        )
        self.samples.append(sample)
        logger.debug("t=%.3f h=%.3f v=%.4f a=%.4f M=%.4f Cd=%.4f x=%.4f", *sample)
        return sample

    def start(self, t0: float, y0: np.ndarray) -> None:
        self.samples = []
        self._t0 = t0
        self._next_index = 1
        self.record(t0, y0)

    def handle_step(self, interval: StepInterval, is_last: bool) -> List[Sample]:
        """
        Record every grid time covered by an accepted step.

        Args:
            interval: The step's bounds and continuous solution
            is_last: True when interval.t_end is the final time of the run

        Returns:
            The samples recorded for this step
        """
        recorded = []
        direction = 1.0 if interval.t_end >= interval.t_start else -1.0
        step = direction * self.output_step

        t_next = self._t0 + self._next_index * step
        while direction * (interval.t_end - t_next) >= 0:
            recorded.append(self.record(t_next, interval(t_next)))
            self._next_index += 1
            t_next = self._t0 + self._next_index * step

        if is_last:
            y_end = interval(interval.t_end)
            last = self.samples[-1]
            if abs(interval.t_end - last.time) <= COINCIDENCE_TOLERANCE and len(self.samples) > 1:
                self.samples.pop()
                if recorded and recorded[-1] is last:
                    recorded.pop()
            recorded.append(self.record(interval.t_end, y_end))

        return recorded

    @property
    def average_time_step(self) -> float:
        if len(self.samples) < 2:
            return self.output_step
        return (self.samples[-1].time - self.samples[0].time) / (len(self.samples) - 1)

    def finalize(self, parameters: Optional[JumpParameters] = None,
                 events: Sequence[SimulationEvent] = ()) -> SimulationResult:
        """Build the immutable result. The sampler is emptied."""
        if not self.samples:
            raise SimulationError("no samples were recorded")

        result = SimulationResult.from_samples(self.samples, self.average_time_step,
                                               events=events, parameters=parameters)
        self.samples = []
        return result
