# Licensed under the PolyForm Noncommercial License 1.0.0
"""Data models and constants for the freefall simulator."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from .errors import InvalidParameterError

# Physical constants
R_air = 287.05  # Specific gas constant of dry air (J kg^-1 K^-1)
gamma_air = 1.4  # Ratio of specific heats
R_earth = 6.371e6  # Earth's radius (m)
g0 = 9.80665  # Standard gravity (m/s^2)
P0 = 101325.0  # Sea level pressure (Pa)
T0 = 288.15  # Sea level temperature (K)

# Sutherland's law for air
mu_ref = 1.716e-5  # Reference viscosity (Pa s)
T_ref = 273.15  # Reference temperature (K)
S_sutherland = 110.4  # Sutherland constant (K)

# Event labels
PARACHUTE_TRIGGER = "PARACHUTE_TRIGGER"
GROUND_IMPACT = "GROUND_IMPACT"


@dataclass(frozen=True)
class AtmosphereLayer:
    """One band of the standard atmosphere.

    Attributes:
        altitude_base: Bottom of the layer (m)
        altitude_top: Top of the layer (m)
        base_temperature: Temperature at altitude_base (K)
        lapse_rate: Temperature gradient inside the layer (K/m), zero when isothermal
        base_pressure: Pressure at altitude_base (Pa)
    """
    altitude_base: float
    altitude_top: float
    base_temperature: float
    lapse_rate: float
    base_pressure: float

    @property
    def is_isothermal(self) -> bool:
        return self.lapse_rate == 0.0


@dataclass(frozen=True)
class AtmosphericProperties:
    """Air state at one altitude."""
    altitude: float
    temperature: float
    pressure: float
    density: float
    speed_of_sound: float
    dynamic_viscosity: float = 0.0


@dataclass(frozen=True)
class JumpParameters:
    """Physical description of a jump, in SI units.

    Attributes:
        mass: Mass of jumper and equipment (kg)
        initial_height: Release altitude (m)
        area: Cross-sectional area before deployment (m^2)
        area_parachute: Cross-sectional area with the canopy fully open (m^2)
        deploy_altitude: Altitude at or below which the canopy starts opening (m)
        transition_time: Time for the canopy to go from closed to fully open (s)
    """
    mass: float
    initial_height: float
    area: float
    area_parachute: float
    deploy_altitude: float
    transition_time: float

    def validate(self) -> "JumpParameters":
        for name in ("mass", "initial_height", "area", "area_parachute", "transition_time"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise InvalidParameterError(f"{name} must be a finite positive number, got {value!r}")
        if not math.isfinite(self.deploy_altitude) or self.deploy_altitude < 0:
            raise InvalidParameterError(
                f"deploy_altitude must be a finite non-negative number, got {self.deploy_altitude!r}")
        return self


@dataclass(frozen=True)
class SolverSettings:
    """Integrator and sampler configuration.

    Attributes:
        rtol: Relative error tolerance
        atol: Absolute error tolerance
        min_step: Shortest accepted step before the run is abandoned (s). The
            solver shrinks its step sharply where the canopy finishes opening;
            a transition_time of a few milliseconds needs a smaller value.
        max_step: Longest step the integrator may take (s)
        output_step: Spacing of the recorded samples (s)
        t_max: Upper time bound; reaching it without landing is a failure (s)
        event_tolerance: Root-finding tolerance for event times (s)
    """
    rtol: float = 1e-8
    atol: float = 1e-8
    min_step: float = 1e-8
    max_step: float = 1.0
    output_step: float = 0.1
    t_max: float = 1e5
    event_tolerance: float = 1e-8

    def validate(self) -> "SolverSettings":
        for name in ("rtol", "atol", "min_step", "max_step", "output_step", "t_max", "event_tolerance"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise InvalidParameterError(f"{name} must be a finite positive number, got {value!r}")
        if self.min_step > self.max_step:
            raise InvalidParameterError(
                f"min_step ({self.min_step}) must not exceed max_step ({self.max_step})")
        return self


class Sample(NamedTuple):
    """One recorded point of the trajectory."""
    time: float
    altitude: float
    velocity: float
    acceleration: float
    mach_number: float
    drag_coefficient: float
    deployment_progress: float


@dataclass(frozen=True)
class SimulationEvent:
    """A located event: trigger altitude passed or ground reached, with the state there."""
    t: float
    label: str
    details: Dict[str, Any] = field(default_factory=dict)


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """Complete trajectory of one jump.

    The sample channels are parallel read-only arrays: index ``i`` of every
    channel belongs to the same instant. Times are strictly increasing and
    spaced by the output step, except the final interval which ends exactly
    at ground impact.

    Attributes:
        time: Sample times (s)
        altitude: Altitude above sea level (m), clamped at zero
        velocity: Vertical velocity (m/s), negative when falling
        acceleration: Vertical acceleration (m/s^2)
        mach_number: Speed over local speed of sound
        drag_coefficient: Drag coefficient at the sample's Mach number
        deployment_progress: Canopy opening progress in [0, 1]
        average_time_step: Mean spacing of the samples (s)
        events: Located events, in time order
        parameters: Jump parameters that produced this trajectory
    """
    time: np.ndarray
    altitude: np.ndarray
    velocity: np.ndarray
    acceleration: np.ndarray
    mach_number: np.ndarray
    drag_coefficient: np.ndarray
    deployment_progress: np.ndarray
    average_time_step: float
    events: Tuple[SimulationEvent, ...] = ()
    parameters: Optional[JumpParameters] = None

    @classmethod
    def from_samples(cls, samples: List[Sample], average_time_step: float,
                     events: Optional[List[SimulationEvent]] = None,
                     parameters: Optional[JumpParameters] = None) -> "SimulationResult":
        columns = list(zip(*samples)) if samples else [()] * len(Sample._fields)
        channels = {name: _readonly(col) for name, col in zip(Sample._fields, columns)}
        return cls(average_time_step=average_time_step, events=tuple(events or ()),
                   parameters=parameters, **channels)

    def __len__(self) -> int:
        return len(self.time)

    def __getitem__(self, index: int) -> Sample:
        return Sample(*(float(getattr(self, name)[index]) for name in Sample._fields))

    def __iter__(self) -> Iterator[Sample]:
        for i in range(len(self)):
            yield self[i]

    def as_dict(self) -> Dict[str, Any]:
        """Return the channels as a dictionary of arrays keyed like the solver output."""
        results = {name: getattr(self, name) for name in Sample._fields}
        results.update({
            't': self.time,
            'speed': np.abs(self.velocity),
            'time_step': self.average_time_step,
            'events': self.events,
        })
        return results

    def event_time(self, label: str) -> Optional[float]:
        for event in self.events:
            if event.label == label:
                return event.t
        return None

    @property
    def landing_time(self) -> float:
        return float(self.time[-1])

    @property
    def impact_velocity(self) -> float:
        """Speed at ground impact (m/s)."""
        return float(abs(self.velocity[-1]))

    @property
    def max_speed(self) -> float:
        return float(np.max(np.abs(self.velocity)))

    @property
    def max_mach(self) -> float:
        return float(np.max(self.mach_number))

    @property
    def deployment_time(self) -> Optional[float]:
        """Time the canopy started opening, or None if it never did."""
        return self.event_time(PARACHUTE_TRIGGER)
