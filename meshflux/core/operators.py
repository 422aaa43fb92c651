"""
Coupled-wave operators assembled from a layer's permittivity matrices.
"""
from typing import Tuple

import numpy as np

from meshflux.core.matrices import LayerMatrices


def assemble_operators(matrices: LayerMatrices) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the E matrix and the grand imaginary matrix of a layer.

    E = [[eps_yy, -eps_yx], [-eps_xy, eps_xx]]   (2N x 2N)

    grand imaginary = [[im_xx, im_xy, 0], [im_yx, im_yy, 0], [0, 0, im_zz]]   (3N x 3N)

    :return: (e_matrix, grand_imaginary)
    """
    m = matrices
    e_matrix = np.block([
        [m.eps_yy, -m.eps_yx],
        [-m.eps_xy, m.eps_xx],
    ])
    zeros = np.zeros_like(m.im_zz)
    grand_imaginary = np.block([
        [m.im_xx, m.im_xy, zeros],
        [m.im_yx, m.im_yy, zeros],
        [zeros, zeros, m.im_zz],
    ])
    return e_matrix, grand_imaginary
