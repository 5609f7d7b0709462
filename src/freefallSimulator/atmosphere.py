# Licensed under the PolyForm Noncommercial License 1.0.0
"""
Layered standard atmosphere.

The atmosphere is split into seven bands between sea level and 84 852 m.
Each band has a constant lapse rate; temperature and pressure at the base
of every band above the first are derived from the band below so both are
continuous across boundaries:

    0 - 11 km      troposphere     -6.5 K/km
    11 - 20 km     tropopause      isothermal
    20 - 32 km     stratosphere    +1.0 K/km
    32 - 47 km     stratosphere    +2.8 K/km
    47 - 51 km     stratopause     isothermal
    51 - 71 km     mesosphere      -2.8 K/km
    71 - 84.852 km mesosphere      -2.0 K/km
"""

import logging
import math
from bisect import bisect_right
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from .models import (
    AtmosphereLayer,
    AtmosphericProperties,
    P0,
    R_air,
    S_sutherland,
    T0,
    T_ref,
    g0,
    gamma_air,
    mu_ref,
)

logger = logging.getLogger(__name__)

# (altitude_base, altitude_top, lapse_rate) of every band, bottom first (m, m, K/m)
STANDARD_BANDS: Tuple[Tuple[float, float, float], ...] = (
    (0.0, 11000.0, -0.0065),
    (11000.0, 20000.0, 0.0),
    (20000.0, 32000.0, 0.001),
    (32000.0, 47000.0, 0.0028),
    (47000.0, 51000.0, 0.0),
    (51000.0, 71000.0, -0.0028),
    (71000.0, 84852.0, -0.002),
)


def _barometric(layer: AtmosphereLayer, delta_h: float) -> Tuple[float, float]:
    """Temperature and pressure delta_h metres above the base of a layer."""
    T_b, p_b = layer.base_temperature, layer.base_pressure
    if layer.is_isothermal:
        return T_b, p_b * math.exp(-g0 * delta_h / (R_air * T_b))

    T = T_b + layer.lapse_rate * delta_h
    p = p_b * (T / T_b) ** (-g0 / (layer.lapse_rate * R_air))
    return T, p


def build_layers(bands: Sequence[Tuple[float, float, float]] = STANDARD_BANDS,
                 surface_temperature: float = T0,
                 surface_pressure: float = P0) -> Tuple[AtmosphereLayer, ...]:
    """
    Build the layer table from band limits and lapse rates.

    Args:
        bands: (altitude_base, altitude_top, lapse_rate) per band, ascending and contiguous
        surface_temperature: Temperature at the base of the first band (K)
        surface_pressure: Pressure at the base of the first band (Pa)

    Returns:
        Immutable tuple of AtmosphereLayer, bottom first
    """
    if not bands:
        raise ValueError("at least one atmosphere band is required")

    layers = []
    T_base, p_base = surface_temperature, surface_pressure
    for i, (h_base, h_top, lapse) in enumerate(bands):
        if h_top <= h_base:
            raise ValueError(f"band {i} has top {h_top} not above base {h_base}")
        if layers:
            previous = layers[-1]
            if h_base != previous.altitude_top:
                raise ValueError(f"band {i} starts at {h_base}, previous band ends at {previous.altitude_top}")
            T_base, p_base = _barometric(previous, h_base - previous.altitude_base)
        layers.append(AtmosphereLayer(h_base, h_top, T_base, lapse, p_base))

    return tuple(layers)


def sutherland_viscosity(temperature: float) -> float:
    """Dynamic viscosity of air (Pa s) from Sutherland's formula."""
    return mu_ref * (temperature / T_ref) ** 1.5 * (T_ref + S_sutherland) / (temperature + S_sutherland)


class AtmosphereModel:
    """
    Property lookup over an immutable layer table.

    The model holds no mutable state after construction, so one instance can
    serve any number of simulations.
    """

    def __init__(self, layers: Optional[Sequence[AtmosphereLayer]] = None):
        """
        Args:
            layers: Ascending, contiguous layer table. Defaults to the standard bands.
        """
        self.layers = tuple(layers) if layers is not None else build_layers()
        if not self.layers:
            raise ValueError("layer table is empty")
        self._bases = [layer.altitude_base for layer in self.layers]

    @property
    def max_altitude(self) -> float:
        return self.layers[-1].altitude_top

    def layer_at(self, altitude: float) -> AtmosphereLayer:
        """Layer whose [base, top) holds altitude; the last layer at or above its top."""
        index = bisect_right(self._bases, altitude) - 1
        return self.layers[min(max(index, 0), len(self.layers) - 1)]

    def properties(self, altitude: float) -> AtmosphericProperties:
        """
        Air properties at a given altitude.

        Args:
            altitude: Geometric altitude (m); clamped to the table's range

        Returns:
            AtmosphericProperties at the clamped altitude
        """
        h = min(max(altitude, self.layers[0].altitude_base), self.max_altitude)
        layer = self.layer_at(h)

        T, p = _barometric(layer, h - layer.altitude_base)
        rho = p / (R_air * T)
        a = math.sqrt(gamma_air * R_air * T)

        return AtmosphericProperties(
            altitude=h,
            temperature=T,
            pressure=p,
            density=rho,
            speed_of_sound=a,
            dynamic_viscosity=sutherland_viscosity(T),
        )

    def temperature(self, altitude: float) -> float:
        return self.properties(altitude).temperature

    def pressure(self, altitude: float) -> float:
        return self.properties(altitude).pressure

    def density(self, altitude: float) -> float:
        return self.properties(altitude).density

    def speed_of_sound(self, altitude: float) -> float:
        return self.properties(altitude).speed_of_sound

    def profile(self, altitudes: Union[Iterable[float], np.ndarray]) -> Dict[str, np.ndarray]:
        """
        Properties over a range of altitudes.

        Args:
            altitudes: Altitudes (m)

        Returns:
            Dictionary of arrays keyed by property name
        """
        altitudes = np.atleast_1d(np.asarray(altitudes, dtype=float))
        rows = [self.properties(float(h)) for h in altitudes]

        return {
            'altitude': altitudes,
            'temperature': np.array([r.temperature for r in rows]),
            'pressure': np.array([r.pressure for r in rows]),
            'density': np.array([r.density for r in rows]),
            'speed_of_sound': np.array([r.speed_of_sound for r in rows]),
            'dynamic_viscosity': np.array([r.dynamic_viscosity for r in rows]),
        }


_default_atmosphere = AtmosphereModel()
logger.debug("Built standard atmosphere with %d layers up to %.0f m",
             len(_default_atmosphere.layers), _default_atmosphere.max_altitude)


def default_atmosphere() -> AtmosphereModel:
    """Shared standard atmosphere, built once at import."""
    return _default_atmosphere
