"""
Fourier-space permittivity matrices of a single layer at one frequency.
"""
import logging
from dataclasses import dataclass, fields

import numpy as np
from numpy.typing import ArrayLike

from meshflux.geom.fourier import XX, XY, YX, YY, ZZ, factorize_pattern
from meshflux.model.layer import Layer
from meshflux.model.material import hermitian_part_imag
from meshflux.shorthand import MICRON, complex_identity, complex_zeros

logger = logging.getLogger(__name__)


@dataclass
class LayerMatrices:
    """Permittivity convolution matrices of one layer and their imaginary (absorptive) parts."""
    eps_xx: np.ndarray
    eps_xy: np.ndarray
    eps_yx: np.ndarray
    eps_yy: np.ndarray
    eps_zz: np.ndarray
    eps_zz_inv: np.ndarray
    im_xx: np.ndarray
    im_xy: np.ndarray
    im_yx: np.ndarray
    im_yy: np.ndarray
    im_zz: np.ndarray

    def __iter__(self):
        for f in fields(self):
            yield getattr(self, f.name)


def build_layer_matrices(layer: Layer, omega_index: int, num_of_g: int,
                         gx: ArrayLike, gy: ArrayLike, area: float) -> LayerMatrices:
    """
    Fold the background and the ordered inclusions of a layer into its Fourier matrices.

    Each pattern contributes relative to the material it is embedded in: the
    background for top-level patterns, the parent's material for nested ones.
    The background is added last as a scaled identity. ``eps_zz`` is inverted
    as a full matrix (inverse rule), never element by element.

    :param layer: Layer to build
    :param omega_index: Frequency index into the material tables
    :param num_of_g: Number of harmonics
    :param gx: Harmonic x components in 1/µm
    :param gy: Harmonic y components in 1/µm
    :param area: Unit cell area in µm^dim (ignored for unpatterned layers)
    :return: LayerMatrices
    """
    eps = [complex_zeros((num_of_g, num_of_g)) for _ in range(5)]
    imag = [complex_zeros((num_of_g, num_of_g)) for _ in range(5)]

    background = layer.background.tensor_at(omega_index)
    for pattern in layer.patterns:
        if pattern.parent == -1:
            embedding = background
        else:
            embedding = layer.patterns[pattern.parent].material.tensor_at(omega_index)
        inclusion = pattern.material.tensor_at(omega_index)
        d_eps, d_imag = factorize_pattern(pattern.scaled(MICRON), embedding, inclusion,
                                          gx, gy, area, layer.has_tensor)
        for k in range(5):
            eps[k] += d_eps[k]
            imag[k] += d_imag[k]

    identity = complex_identity(num_of_g)
    background_imag = hermitian_part_imag(background)
    components = (XX, YY, ZZ, XY, YX) if layer.has_tensor else (XX, YY, ZZ)
    for k in components:
        eps[k] += background[k] * identity
        imag[k] += background_imag[k] * identity

    eps_zz_inv = np.linalg.solve(eps[ZZ], identity)
    logger.debug("built %dx%d matrices for layer %s at omega index %d",
                 num_of_g, num_of_g, layer.name, omega_index)
    return LayerMatrices(eps[XX], eps[XY], eps[YX], eps[YY], eps[ZZ], eps_zz_inv,
                         imag[XX], imag[XY], imag[YX], imag[YY], imag[ZZ])
