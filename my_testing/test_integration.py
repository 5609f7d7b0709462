"""Unit tests for the step driver and the trajectory sampler."""

import math

import numpy as np
import pytest

from freefallSimulator import (
    DerivativeError,
    DerivativeResult,
    DeploymentDetector,
    GroundImpactDetector,
    IntegrationStatus,
    MotionEquations,
    SimulationError,
    SolverSettings,
    StepInterval,
    TrajectorySampler,
    integrate,
)


def constant_gravity(t, y):
    return DerivativeResult(np.array([y[1], -9.81, 0.0]))


def test_constant_gravity_lands_on_time():
    """Drop from 100 m under constant gravity hits the ground at sqrt(2h/g)."""
    outcome = integrate(constant_gravity, 0.0, [100.0, 0.0, 0.0], SolverSettings(),
                        events=[GroundImpactDetector()])

    assert outcome.status is IntegrationStatus.LANDED
    assert outcome.t == pytest.approx(math.sqrt(2 * 100.0 / 9.81), rel=1e-7)
    assert abs(outcome.y[0]) < 1e-6
    assert outcome.events[-1].label == "GROUND_IMPACT"
    assert outcome.n_steps > 0
    assert outcome.nfev > 0


def test_non_terminal_event_is_recorded():
    """The trigger event is located and the run carries on to the ground."""
    outcome = integrate(constant_gravity, 0.0, [100.0, 0.0, 0.0], SolverSettings(),
                        events=[GroundImpactDetector(), DeploymentDetector(50.0)])

    labels = [e.label for e in outcome.events]
    assert labels == ["PARACHUTE_TRIGGER", "GROUND_IMPACT"]
    assert outcome.events[0].t == pytest.approx(math.sqrt(2 * 50.0 / 9.81), rel=1e-7)
    assert outcome.events[0].details['altitude'] == pytest.approx(50.0, abs=1e-6)


def test_time_limit_without_landing():
    """A run that never lands ends at t_max with TIME_EXCEEDED."""
    def climbing(t, y):
        return DerivativeResult(np.array([1.0, 0.0, 0.0]))

    outcome = integrate(climbing, 0.0, [10.0, 1.0, 0.0], SolverSettings(t_max=5.0),
                        events=[GroundImpactDetector()])

    assert outcome.status is IntegrationStatus.TIME_EXCEEDED
    assert outcome.t == pytest.approx(5.0)
    assert outcome.y[0] == pytest.approx(15.0)


def test_derivative_error_mid_run():
    """A failing derivative after t=1 s ends the run with its error."""
    def failing(t, y):
        if t > 1.0:
            return DerivativeResult(None, DerivativeError("boom", t, y))
        return constant_gravity(t, y)

    outcome = integrate(failing, 0.0, [100.0, 0.0, 0.0], SolverSettings(),
                        events=[GroundImpactDetector()])

    assert outcome.status is IntegrationStatus.DERIVATIVE_ERROR
    assert isinstance(outcome.error, DerivativeError)
    assert outcome.error.t > 1.0
    assert outcome.status.is_terminal


def test_derivative_error_at_start():
    """A derivative failing on the first call ends the run at t0."""
    def failing(t, y):
        return DerivativeResult(None, DerivativeError("boom", t, y))

    outcome = integrate(failing, 0.0, [100.0, 0.0, 0.0], SolverSettings(),
                        events=[GroundImpactDetector()])

    assert outcome.status is IntegrationStatus.DERIVATIVE_ERROR
    assert outcome.t == 0.0


def linear_fall(t):
    return np.array([1000.0 - t, -1.0, 0.0])


def test_sampler_records_grid_and_final_point(reference_params):
    """Samples land on the fixed grid, plus the exact final point."""
    sampler = TrajectorySampler(MotionEquations(reference_params), output_step=0.1)
    sampler.start(0.0, linear_fall(0.0))

    first = sampler.handle_step(StepInterval(0.0, 0.35, linear_fall), False)
    last = sampler.handle_step(StepInterval(0.35, 0.47, linear_fall), True)

    times = [s.time for s in sampler.samples]
    assert [s.time for s in first] == pytest.approx([0.1, 0.2, 0.3])
    assert [s.time for s in last] == pytest.approx([0.4, 0.47])
    assert times == pytest.approx([0.0, 0.1, 0.2, 0.3, 0.4, 0.47])
    assert sampler.average_time_step == pytest.approx(0.47 / 5)


def test_sampler_replaces_coinciding_grid_point(reference_params):
    """A final point on a grid time replaces that grid sample."""
    sampler = TrajectorySampler(MotionEquations(reference_params), output_step=0.1)
    sampler.start(0.0, linear_fall(0.0))
    sampler.handle_step(StepInterval(0.0, 0.5, linear_fall), True)

    times = [s.time for s in sampler.samples]
    assert times == pytest.approx([0.0, 0.1, 0.2, 0.3, 0.4, 0.5])
    assert len(set(times)) == len(times)


def test_sampler_step_without_grid_point(reference_params):
    """A step shorter than the cadence records nothing."""
    sampler = TrajectorySampler(MotionEquations(reference_params), output_step=0.1)
    sampler.start(0.0, linear_fall(0.0))

    assert sampler.handle_step(StepInterval(0.0, 0.05, linear_fall), False) == []
    assert len(sampler.samples) == 1
    assert sampler.average_time_step == 0.1


def test_sampler_recomputes_channels(reference_params):
    """Acceleration, Mach and drag coefficient are recomputed from the sampled state."""
    eq = MotionEquations(reference_params)
    sampler = TrajectorySampler(eq, output_step=0.1)
    state = np.array([-0.5, -12.0, 1.3])

    sample = sampler.record(3.0, state)
    aero = eq.aero_state(3.0, state)

    assert sample.altitude == 0.0
    assert sample.deployment_progress == 1.0
    assert sample.acceleration == aero.acceleration
    assert sample.mach_number == aero.mach_number
    assert sample.drag_coefficient == aero.drag_coefficient


def test_sampler_rejects_non_finite_state(reference_params):
    """Recording an infinite state raises."""
    sampler = TrajectorySampler(MotionEquations(reference_params))
    with pytest.raises(SimulationError):
        sampler.record(0.0, np.array([np.inf, 0.0, 0.0]))


def test_empty_sampler_cannot_finalize(reference_params):
    """A sampler with no samples cannot produce a result."""
    sampler = TrajectorySampler(MotionEquations(reference_params))
    with pytest.raises(SimulationError):
        sampler.finalize()


def test_sampler_finalize_builds_result(reference_params):
    """finalize() hands over the samples and clears the sampler."""
    sampler = TrajectorySampler(MotionEquations(reference_params), output_step=0.1)
    sampler.start(0.0, linear_fall(0.0))
    sampler.handle_step(StepInterval(0.0, 0.25, linear_fall), True)

    result = sampler.finalize(reference_params)

    assert len(result) == 4
    assert result.parameters is reference_params
    assert result[-1].time == pytest.approx(0.25)
    assert sampler.samples == []
