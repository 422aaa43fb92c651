"""
Per-frequency solve state.
"""
from dataclasses import dataclass, field
from typing import List

import numpy as np


@dataclass
class SolveState:
    """
    Operators of every layer at one frequency.

    The matrices only depend on the frequency, never on (kx, ky), so one state
    serves a whole wavevector sweep. ``omega_index`` is -1 while empty.
    """
    omega_index: int = -1
    e_matrices: List[np.ndarray] = field(default_factory=list)
    grand_imaginary: List[np.ndarray] = field(default_factory=list)
    eps_zz_inv: List[np.ndarray] = field(default_factory=list)

    def needs_rebuild(self, omega_index: int) -> bool:
        return self.omega_index != omega_index

    def invalidate(self):
        self.omega_index = -1
        self.e_matrices = []
        self.grand_imaginary = []
        self.eps_zz_inv = []

    def snapshot(self) -> 'SolveState':
        """Copy holding references to the same (read-only) matrices."""
        return SolveState(self.omega_index, list(self.e_matrices),
                          list(self.grand_imaginary), list(self.eps_zz_inv))
