# Licensed under the PolyForm Noncommercial License 1.0.0
"""Gravity and drag coefficient models."""

from typing import Sequence, Tuple, Union

import numpy as np

from .models import R_earth, g0

# (Mach number, drag coefficient) control points, ascending in Mach.
# Subsonic plateau, transonic rise, supersonic relief.
DEFAULT_DRAG_TABLE: Tuple[Tuple[float, float], ...] = (
    (0.8, 0.5),
    (1.0, 1.0),
    (1.2, 1.0),
    (1.5, 0.8),
)


def gravity(altitude: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Gravitational acceleration (m/s^2) at altitude (m), inverse-square from the surface value."""
    return g0 * (R_earth / (R_earth + altitude)) ** 2


class DragModel:
    """
    Drag coefficient as a function of Mach number.

    Linear interpolation between table points; the first and last
    coefficients are held below and above the table.
    """

    def __init__(self, table: Sequence[Tuple[float, float]] = DEFAULT_DRAG_TABLE):
        """
        Args:
            table: (mach, cd) pairs with strictly increasing Mach numbers
        """
        points = np.array(table, dtype=float).reshape(-1, 2)
        if len(points) == 0:
            raise ValueError("drag table needs at least one point")
        if not np.all(np.isfinite(points)):
            raise ValueError("drag table contains non-finite values")
        if np.any(np.diff(points[:, 0]) <= 0):
            raise ValueError("drag table Mach numbers must be strictly increasing")

        self.table = tuple((float(m), float(cd)) for m, cd in points)
        self._mach = points[:, 0]
        self._cd = points[:, 1]

    def coefficient(self, mach_number: float) -> float:
        """Drag coefficient at the given Mach number."""
        # np.interp holds the end values outside the table
        return float(np.interp(mach_number, self._mach, self._cd))

    def __call__(self, mach_number: float) -> float:
        return self.coefficient(mach_number)


_default_drag_model = DragModel()


def default_drag_model() -> DragModel:
    """Shared model over DEFAULT_DRAG_TABLE."""
    return _default_drag_model


def drag_coefficient(mach_number: float) -> float:
    """Drag coefficient from the default table."""
    return _default_drag_model.coefficient(mach_number)
