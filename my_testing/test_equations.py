"""Unit tests for the equations of motion."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from conftest import BrokenAtmosphere
from freefallSimulator import (
    AtmosphereModel,
    DerivativeError,
    MotionEquations,
    default_atmosphere,
    default_drag_model,
    gravity,
)


def test_at_rest_only_gravity_acts(reference_params):
    """With zero velocity the only acceleration is gravity."""
    eq = MotionEquations(reference_params)
    result = eq.evaluate(0.0, np.array([39000.0, 0.0, 0.0]))

    assert result.ok
    assert_allclose(result.value, [0.0, -gravity(39000.0), 0.0])


def test_drag_opposes_motion(reference_params):
    """Drag decelerates a falling body and adds to gravity for a rising one."""
    eq = MotionEquations(reference_params)

    falling = eq.evaluate(0.0, np.array([10000.0, -100.0, 0.0])).value
    rising = eq.evaluate(0.0, np.array([10000.0, 100.0, 0.0])).value

    assert falling[0] == -100.0
    assert falling[1] > -gravity(10000.0)
    assert rising[1] < -gravity(10000.0)


def test_drag_force_matches_formula(reference_params):
    """Drag force is 0.5 * cd * rho * A * v * |v|."""
    eq = MotionEquations(reference_params)
    atm = AtmosphereModel().properties(5000.0)
    v = -150.0

    aero = eq.aero_state(0.0, np.array([5000.0, v, 0.0]))

    assert aero.mach_number == pytest.approx(150.0 / atm.speed_of_sound)
    assert aero.drag_coefficient == 0.5
    assert aero.drag_force == pytest.approx(0.5 * 0.5 * atm.density * 0.5 * v * abs(v))
    assert aero.acceleration == pytest.approx(-gravity(5000.0) - aero.drag_force / 104.0)


def test_effective_area_follows_deployment(reference_params):
    """Area grows linearly with deployment progress, capped when fully open."""
    eq = MotionEquations(reference_params)

    closed = eq.aero_state(0.0, np.array([1000.0, -50.0, 0.0]))
    half = eq.aero_state(0.0, np.array([1000.0, -50.0, 0.5]))
    full = eq.aero_state(0.0, np.array([1000.0, -50.0, 1.0]))
    overshoot = eq.aero_state(0.0, np.array([1000.0, -50.0, 1.2]))

    assert closed.effective_area == pytest.approx(0.5)
    assert half.effective_area == pytest.approx(12.75)
    assert full.effective_area == pytest.approx(25.0)
    assert overshoot.effective_area == pytest.approx(25.0)


def test_deployment_rate(reference_params):
    """Progress grows at 1/transition_time below the trigger altitude, never past 1."""
    eq = MotionEquations(reference_params)

    assert eq.evaluate(0.0, np.array([2000.0, -50.0, 0.0])).value[2] == 0.0
    assert eq.evaluate(0.0, np.array([1500.0, -50.0, 0.0])).value[2] == pytest.approx(0.25)
    assert eq.evaluate(0.0, np.array([800.0, -10.0, 0.6])).value[2] == pytest.approx(0.25)
    assert eq.evaluate(0.0, np.array([800.0, -10.0, 1.0])).value[2] == 0.0


def test_negative_altitude_clamped(reference_params):
    """States below ground are evaluated at ground level."""
    eq = MotionEquations(reference_params)

    below = eq.aero_state(0.0, np.array([-3.0, -10.0, 1.0]))
    ground = eq.aero_state(0.0, np.array([0.0, -10.0, 1.0]))

    assert below == ground


def test_non_finite_state_returns_error(reference_params):
    """A NaN state gives an error value carrying the time."""
    eq = MotionEquations(reference_params)
    result = eq.evaluate(2.0, np.array([np.nan, -10.0, 0.0]))

    assert not result.ok
    assert result.value is None
    assert isinstance(result.error, DerivativeError)
    assert result.error.t == 2.0


def test_non_finite_derivative_returns_error(reference_params):
    """A contrived atmosphere without speed of sound yields an error value, not NaN."""
    eq = MotionEquations(reference_params, atmosphere=BrokenAtmosphere())
    result = eq.evaluate(0.0, np.array([39000.0, 0.0, 0.0]))

    assert not result.ok
    assert_allclose(result.error.state, [39000.0, 0.0, 0.0])
    assert "non-finite derivative" in str(result.error)


def test_defaults_use_shared_models(reference_params):
    """Equations built without models reuse the shared atmosphere and drag table."""
    first = MotionEquations(reference_params)
    second = MotionEquations(reference_params)

    assert first.atmosphere is default_atmosphere()
    assert first.drag_model is default_drag_model()
    assert second.drag_model is first.drag_model
