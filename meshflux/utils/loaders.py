"""
Loader for tabulated permittivity files.

Each non-empty line holds an angular frequency followed by 2, 6 or 10 numbers:
the real and imaginary parts of a scalar permittivity, of the diagonal
(xx, yy, zz), or of the five in-plane/normal tensor components
(xx, xy, yx, yy, zz). Loss is written as a positive imaginary part in the
file; the loaded values carry the negated imaginary part.
"""
import os
from typing import Tuple

import numpy as np

from meshflux.errors import MalformedInputError
from meshflux.model.material import EpsilonType


_WIDTH_TO_TYPE = {
    2: EpsilonType.SCALAR,
    6: EpsilonType.DIAGONAL,
    10: EpsilonType.TENSOR,
}


def load_permittivity(path: str) -> Tuple[np.ndarray, np.ndarray, EpsilonType]:
    """
    Read a permittivity table from disk.

    :param path: Path to the whitespace separated table
    :return: (omega, values, eps_type), values has shape (n_omega, 2|6|10)
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"{path} not exists!")

    omega = []
    rows = []
    width = None
    with open(path, 'r', encoding='utf-8') as f:
        for lineno, line in enumerate(f, start=1):
            fields = line.split()
            if not fields:
                continue
            try:
                numbers = [float(v) for v in fields]
            except ValueError as err:
                raise MalformedInputError(f"{path}:{lineno}: non-numeric field") from err
            n_values = len(numbers) - 1
            if n_values not in _WIDTH_TO_TYPE:
                raise MalformedInputError(
                    f"{path}:{lineno}: expected 2, 6 or 10 values after the frequency, got {n_values}")
            if width is None:
                width = n_values
            elif n_values != width:
                raise MalformedInputError(
                    f"{path}:{lineno}: row has {n_values} values, previous rows have {width}")
            omega.append(numbers[0])
            rows.append(numbers[1:])

    if width is None:
        raise MalformedInputError(f"{path}: file contains no data")

    values = np.asarray(rows, dtype=float)
    values[:, 1::2] *= -1.0
    return np.asarray(omega, dtype=float), values, _WIDTH_TO_TYPE[width]


__all__ = ['load_permittivity']
