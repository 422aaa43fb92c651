"""Numerical shorthands and unit constants shared across the package."""
import numpy as np
from scipy import constants

# metres -> micrometres; all internal lengths are in micrometres
MICRON = 1e6
C0 = constants.c


def complex_identity(n: int) -> np.ndarray:
    return np.eye(n, dtype=complex)


def complex_zeros(shape) -> np.ndarray:
    return np.zeros(shape, dtype=complex)


def block(matrix: np.ndarray, n: int, row: int, col: int) -> np.ndarray:
    """Return the (row, col) n x n block of a block matrix (view)."""
    return matrix[row * n:(row + 1) * n, col * n:(col + 1) * n]
