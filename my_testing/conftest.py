"""Shared fixtures for the freefall simulator tests."""

import pytest

from freefallSimulator import AtmosphereModel, AtmosphericProperties, JumpParameters, simulate_jump

REFERENCE_JUMP = dict(
    mass=104.0,
    initial_height=39000.0,
    area=0.5,
    area_parachute=25.0,
    deploy_altitude=1500.0,
    transition_time=4.0,
)


class BrokenAtmosphere(AtmosphereModel):
    """Atmosphere with zero temperature: infinite density, no speed of sound."""

    def properties(self, altitude):
        return AtmosphericProperties(
            altitude=altitude,
            temperature=0.0,
            pressure=101325.0,
            density=float("inf"),
            speed_of_sound=0.0,
        )


@pytest.fixture
def reference_params():
    return JumpParameters(**REFERENCE_JUMP)


@pytest.fixture(scope="module")
def reference_result():
    return simulate_jump(**REFERENCE_JUMP)
