"""
Real-space and reciprocal lattice descriptors.
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from meshflux.errors import RangeError


@dataclass
class Lattice:
    """
    Real-space or reciprocal lattice.

    Lengths are in metres for the real lattice and 1/m for the reciprocal one.
    ``dimension`` is 0 for an unpatterned stack, 1 for gratings and 2 for
    two-dimensional patterns. ``angle`` is in degrees.
    """
    dimension: int = 0
    bx: Tuple[float, float] = (0.0, 0.0)
    by: Tuple[float, float] = (0.0, 0.0)
    area: float = 0.0
    angle: float = 90.0

    @property
    def is_set(self) -> bool:
        if self.dimension == 1:
            return self.bx[0] != 0
        if self.dimension == 2:
            return self.bx[0] != 0 and self.by[1] != 0
        return False

    @classmethod
    def grating(cls, period: float) -> Tuple['Lattice', 'Lattice']:
        """Real and reciprocal lattice of a 1D grating with the given period."""
        if period <= 0:
            raise RangeError(f"Lattice period must be positive, got {period}")
        real = cls(1, (period, 0.0), (0.0, 0.0), period, 90.0)
        recip = cls(1, (2 * np.pi / period, 0.0), (0.0, 0.0), 2 * np.pi / period, 90.0)
        return real, recip

    @classmethod
    def oblique(cls, x_len: float, y_len: float, angle: float = 90.0) -> Tuple['Lattice', 'Lattice']:
        """
        Real and reciprocal lattice of a 2D lattice.

        :param x_len: Length of the first lattice vector, along x
        :param y_len: Length of the second lattice vector
        :param angle: Angle between the two vectors in degrees, in (0, 180)
        """
        if not 0 < angle < 180:
            raise RangeError("Lattice angle should be in (0, 180) degrees!")
        if x_len <= 0 or y_len <= 0:
            raise RangeError("Lattice lengths must be positive")
        theta = np.deg2rad(angle)
        by = (y_len * np.cos(theta), y_len * np.sin(theta))
        real = cls(2, (x_len, 0.0), by, x_len * by[1], angle)
        rbx = (2 * np.pi / x_len, -2 * np.pi * by[0] / (by[1] * x_len))
        rby = (0.0, 2 * np.pi / by[1])
        recip = cls(2, rbx, rby, abs(rby[1] * rbx[0]), 180.0 - angle)
        return real, recip

    def scaled(self, factor: float) -> 'Lattice':
        """Copy with the basis vectors multiplied by ``factor``, area by ``factor ** dimension``."""
        power = max(self.dimension, 1)
        return Lattice(self.dimension,
                       (self.bx[0] * factor, self.bx[1] * factor),
                       (self.by[0] * factor, self.by[1] * factor),
                       self.area * factor ** power, self.angle)
