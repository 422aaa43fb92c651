"""
Closed-form Fourier transforms of the pattern shapes.

Every kernel returns the matrix ``F[m, n] = F(G_m - G_n)`` with

    F(G) = (1/A) * integral over the shape of exp(-i G.r) d^2r

(a line integral over the grating strip in 1D, ``A`` being the period). All
lengths are in micrometres and ``G`` in 1/µm.
"""
from typing import Callable, Dict, List, Tuple

import numpy as np
from numpy.typing import ArrayLike
from scipy import special

from meshflux.geom.pattern import Pattern, ShapeKind
from meshflux.model.material import hermitian_part_imag

# indices into a (xx, xy, yx, yy, zz) tensor
XX, XY, YX, YY, ZZ = range(5)


def _sinc(x):
    """sin(x) / x with the removable singularity filled in."""
    return np.sinc(x / np.pi)


def _difference_grid(gx: ArrayLike, gy: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    gx = np.asarray(gx, dtype=float)
    gy = np.asarray(gy, dtype=float)
    return gx[:, None] - gx[None, :], gy[:, None] - gy[None, :]


def _rotate(dgx: np.ndarray, dgy: np.ndarray, angle: float) -> Tuple[np.ndarray, np.ndarray]:
    """Components of G in the frame of a shape rotated by ``angle`` degrees."""
    theta = np.deg2rad(angle)
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    return dgx * cos_t + dgy * sin_t, -dgx * sin_t + dgy * cos_t


def _airy(rho: np.ndarray) -> np.ndarray:
    """2 J1(rho) / rho, equal to 1 at rho = 0."""
    out = np.ones_like(rho)
    nonzero = rho > 1e-12
    out[nonzero] = 2.0 * special.j1(rho[nonzero]) / rho[nonzero]
    return out


def grating_transform(pattern: Pattern, gx: ArrayLike, gy: ArrayLike, area: float) -> np.ndarray:
    center, width = pattern.arg1
    dgx, _ = _difference_grid(gx, gy)
    return width / area * np.exp(-1j * dgx * center) * _sinc(dgx * width / 2.0)


def rectangle_transform(pattern: Pattern, gx: ArrayLike, gy: ArrayLike, area: float) -> np.ndarray:
    (cx, cy), (wx, wy) = pattern.arg1, pattern.arg2
    dgx, dgy = _difference_grid(gx, gy)
    gxr, gyr = _rotate(dgx, dgy, pattern.angle)
    phase = np.exp(-1j * (dgx * cx + dgy * cy))
    return wx * wy / area * phase * _sinc(gxr * wx / 2.0) * _sinc(gyr * wy / 2.0)


def circle_transform(pattern: Pattern, gx: ArrayLike, gy: ArrayLike, area: float) -> np.ndarray:
    (cx, cy), radius = pattern.arg1, pattern.arg2[0]
    dgx, dgy = _difference_grid(gx, gy)
    rho = np.hypot(dgx, dgy) * radius
    phase = np.exp(-1j * (dgx * cx + dgy * cy))
    return np.pi * radius ** 2 / area * phase * _airy(rho)


def ellipse_transform(pattern: Pattern, gx: ArrayLike, gy: ArrayLike, area: float) -> np.ndarray:
    (cx, cy), (a, b) = pattern.arg1, pattern.arg2
    dgx, dgy = _difference_grid(gx, gy)
    gxr, gyr = _rotate(dgx, dgy, pattern.angle)
    rho = np.hypot(a * gxr, b * gyr)
    phase = np.exp(-1j * (dgx * cx + dgy * cy))
    return np.pi * a * b / area * phase * _airy(rho)


def polygon_transform(pattern: Pattern, gx: ArrayLike, gy: ArrayLike, area: float) -> np.ndarray:
    """
    Edge-sum transform of a counter-clockwise polygon.

    For G != 0 the divergence theorem turns the area integral into
    ``(i/|G|^2) sum_k (Gx e_y - Gy e_x) exp(-i G.m_k) sinc(G.e_k / 2)`` with
    ``e_k`` the edge vectors and ``m_k`` their midpoints. At G = 0 it is the
    shoelace area.
    """
    theta = np.deg2rad(pattern.angle)
    rot = np.array([[np.cos(theta), -np.sin(theta)],
                    [np.sin(theta), np.cos(theta)]])
    vertices = pattern.edges @ rot.T + np.asarray(pattern.arg1)
    edges = np.roll(vertices, -1, axis=0) - vertices
    mids = vertices + edges / 2.0

    dgx, dgy = _difference_grid(gx, gy)
    g2 = dgx ** 2 + dgy ** 2
    zero = g2 < 1e-24
    g2_safe = np.where(zero, 1.0, g2)

    total = np.zeros(dgx.shape, dtype=complex)
    for (ex, ey), (mx, my) in zip(edges, mids):
        total += (dgx * ey - dgy * ex) * np.exp(-1j * (dgx * mx + dgy * my)) \
            * _sinc((dgx * ex + dgy * ey) / 2.0)
    transform = 1j / g2_safe * total
    shoelace = 0.5 * np.sum(vertices[:, 0] * np.roll(vertices[:, 1], -1)
                            - np.roll(vertices[:, 0], -1) * vertices[:, 1])
    transform[zero] = shoelace
    return transform / area


_KERNELS: Dict[ShapeKind, Callable[[Pattern, ArrayLike, ArrayLike, float], np.ndarray]] = {
    ShapeKind.GRATING: grating_transform,
    ShapeKind.RECTANGLE: rectangle_transform,
    ShapeKind.CIRCLE: circle_transform,
    ShapeKind.ELLIPSE: ellipse_transform,
    ShapeKind.POLYGON: polygon_transform,
}


def shape_transform(pattern: Pattern, gx: ArrayLike, gy: ArrayLike, area: float) -> np.ndarray:
    try:
        kernel = _KERNELS[pattern.kind]
    except KeyError:
        raise ValueError(f"No Fourier kernel for shape kind {pattern.kind}") from None
    return kernel(pattern, gx, gy, area)


def factorize_pattern(pattern: Pattern, embedding: ArrayLike, inclusion: ArrayLike,
                      gx: ArrayLike, gy: ArrayLike, area: float,
                      anisotropic: bool) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """
    Contribution of one inclusion to the layer's Fourier matrices.

    :param pattern: Pattern with its geometry in micrometres
    :param embedding: (xx, xy, yx, yy, zz) tensor of the material the pattern sits in
    :param inclusion: (xx, xy, yx, yy, zz) tensor of the pattern material
    :param gx: Harmonic x components (1/µm)
    :param gy: Harmonic y components (1/µm)
    :param area: Unit cell area (µm^2, or µm in 1D)
    :param anisotropic: Whether to fill the off-diagonal components
    :return: Two lists of five matrices each, permittivity and its imaginary part,
        in (xx, xy, yx, yy, zz) order
    """
    delta = np.asarray(inclusion, dtype=complex) - np.asarray(embedding, dtype=complex)
    delta_im = hermitian_part_imag(delta)
    transform = shape_transform(pattern, gx, gy, area)
    zeros = np.zeros_like(transform)

    eps = []
    imag = []
    for component in range(5):
        if component in (XY, YX) and not anisotropic:
            eps.append(zeros)
            imag.append(zeros)
            continue
        eps.append(delta[component] * transform)
        imag.append(delta_im[component] * transform)
    return eps, imag
