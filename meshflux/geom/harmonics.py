"""
Reciprocal-lattice harmonics retained in the Fourier expansion.
"""
from enum import Enum
from typing import Tuple, Union

import numpy as np

from meshflux.errors import ConfigurationError, RangeError
from meshflux.geom.lattice import Lattice


class Truncation(Enum):
    CIRCULAR = 'circular'
    PARALLELOGRAMIC = 'parallelogramic'

    @classmethod
    def parse(cls, value: Union[str, 'Truncation']) -> 'Truncation':
        if isinstance(value, Truncation):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                "truncation should be one of Circular or Parallelogramic!") from None


def generate_harmonics(num_of_g: int, reciprocal: Lattice, dimension: int,
                       truncation: Union[str, Truncation] = Truncation.CIRCULAR
                       ) -> Tuple[np.ndarray, np.ndarray]:
    """
    Truncated set of reciprocal lattice vectors ``i*b1 + j*b2``.

    * no lattice: the single harmonic G = 0;
    * 1D: ``2M + 1`` harmonics ``n*b1`` with ``M = (num_of_g - 1) // 2``, zero in the middle;
    * 2D circular: the ``num_of_g`` shortest vectors, zero first;
    * 2D parallelogramic: the largest odd ``n x n`` grid with ``n^2 <= num_of_g``,
      row-major, zero in the middle.

    :param num_of_g: Requested number of harmonics
    :param reciprocal: Reciprocal lattice, in the units the harmonics should have
    :param dimension: 0, 1 or 2
    :param truncation: Truncation scheme for 2D lattices
    :return: (gx, gy) arrays; their length is the number actually kept
    """
    truncation = Truncation.parse(truncation)
    if num_of_g < 1:
        raise RangeError(f"Number of harmonics must be positive, got {num_of_g}")

    if dimension == 0:
        return np.zeros(1), np.zeros(1)

    b1 = np.asarray(reciprocal.bx, dtype=float)
    if dimension == 1:
        order = (num_of_g - 1) // 2
        n = np.arange(-order, order + 1)
        return n * b1[0], n * b1[1]

    b2 = np.asarray(reciprocal.by, dtype=float)
    if truncation is Truncation.PARALLELOGRAMIC:
        side = int(np.floor(np.sqrt(num_of_g)))
        if side % 2 == 0:
            side -= 1
        order = (side - 1) // 2
        i, j = np.meshgrid(np.arange(-order, order + 1), np.arange(-order, order + 1), indexing='ij')
        i, j = i.ravel(), j.ravel()
        return i * b1[0] + j * b2[0], i * b1[1] + j * b2[1]

    return _circular(num_of_g, b1, b2)


def _circular(num_of_g: int, b1: np.ndarray, b2: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # grow the search square until no vector on its rim can be shorter than the kept ones
    order = int(np.ceil(np.sqrt(num_of_g))) + 1
    while True:
        i, j = np.meshgrid(np.arange(-order, order + 1), np.arange(-order, order + 1), indexing='ij')
        i, j = i.ravel(), j.ravel()
        gx = i * b1[0] + j * b2[0]
        gy = i * b1[1] + j * b2[1]
        norm = np.hypot(gx, gy)
        # ties resolved by (i, j) so the selection is deterministic
        keys = np.lexsort((j, i, np.round(norm, 12)))
        kept = keys[:num_of_g]
        rim = (np.abs(i) == order) | (np.abs(j) == order)
        if norm[kept].max() < norm[rim].min():
            return gx[kept], gy[kept]
        order *= 2
