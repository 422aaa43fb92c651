"""
Fluctuational-electrodynamics flux through a layer stack.

The stored permittivity matrices use the exp(+i w t) sign convention (loss is
a negative imaginary part). They are mapped to the physical exp(-i w t)
convention at the start of every evaluation: each N x N block of the E matrix
and the zz inverse become their conjugate transpose, each block of the grand
imaginary matrix its negated conjugate transpose.

Lengths are normalised by ``k0 = omega / c`` (``z -> k0 z``, ``k -> k / k0``).
In every layer the transverse fields are written as

    e = [Ex, Ey] = Phi (f a + g b),  hbar = [Hy, -Hx] = V (f a - g b)

with ``f = exp(i q z)``, ``g = exp(-i q z)``, ``Im q > 0`` and
``V = (Eps - Khat) Phi / q``. Reflections are propagated with the stable
R-matrix recursion so no growing exponential is ever formed.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike

from meshflux.errors import ConfigurationError, RangeError
from meshflux.shorthand import block, complex_identity

logger = logging.getLogger(__name__)

# scales the absorption operator to the current correlation so that a black
# body emits one unit per polarisation and propagating order
CURRENT_CORRELATION = 8.0
_Q_FLOOR = 1e-12


class Polarization(Enum):
    BOTH = 'both'
    TE = 'te'
    TM = 'tm'

    @classmethod
    def parse(cls, value: Union[str, 'Polarization']) -> 'Polarization':
        if isinstance(value, Polarization):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError("polarization should be one of 'both', 'TE' or 'TM'") from None


@dataclass
class LayerModes:
    q: np.ndarray
    phi: np.ndarray
    v: np.ndarray
    phi_inv: np.ndarray
    v_inv: np.ndarray
    eta: np.ndarray


def _conj_blocks(matrix: np.ndarray, n: int, size: int) -> np.ndarray:
    """Conjugate-transpose every n x n block in place of the block."""
    out = np.empty_like(matrix)
    for r in range(size):
        for c in range(size):
            out[r * n:(r + 1) * n, c * n:(c + 1) * n] = block(matrix, n, r, c).conj().T
    return out


def physical_permittivity(e_matrix: np.ndarray, n: int) -> np.ndarray:
    """[[xx, xy], [yx, yy]] in the exp(-i w t) convention from a stored E matrix."""
    yy = block(e_matrix, n, 0, 0)
    yx = -block(e_matrix, n, 0, 1)
    xy = -block(e_matrix, n, 1, 0)
    xx = block(e_matrix, n, 1, 1)
    return np.block([[xx.conj().T, xy.conj().T],
                     [yx.conj().T, yy.conj().T]])


def solve_modes(eps: np.ndarray, eta: np.ndarray, kx: np.ndarray, ky: np.ndarray) -> LayerModes:
    """
    Eigenmodes of one layer.

    :param eps: Physical in-plane permittivity [[xx, xy], [yx, yy]]
    :param eta: Physical inverse of the zz convolution matrix
    :param kx: Normalised kx + Gx / k0 per harmonic
    :param ky: Normalised ky + Gy / k0 per harmonic
    """
    n = kx.size
    Kx = np.diag(kx).astype(complex)
    Ky = np.diag(ky).astype(complex)
    T = np.block([[Kx @ eta @ Kx, Kx @ eta @ Ky],
                  [Ky @ eta @ Kx, Ky @ eta @ Ky]])
    Khat = np.block([[Ky @ Ky, -Ky @ Kx],
                     [-Kx @ Ky, Kx @ Kx]])
    curl_h = eps - Khat
    w, phi = np.linalg.eig((complex_identity(2 * n) - T) @ curl_h)
    q = np.sqrt(w.astype(complex))
    # forward modes decay (or propagate) upwards
    flip = q.imag < -1e-14 * np.abs(q)
    q[flip] = -q[flip]
    small = np.abs(q) < _Q_FLOOR
    q[small] = _Q_FLOOR
    v = curl_h @ phi / q[None, :]
    return LayerModes(q, phi, v, _safe_inverse(phi), _safe_inverse(v), eta)


def _safe_inverse(matrix: np.ndarray) -> np.ndarray:
    try:
        return np.linalg.inv(matrix)
    except np.linalg.LinAlgError:
        # a mode exactly on the light line carries no field in one component
        logger.debug("singular mode matrix, using the pseudo-inverse")
        return np.linalg.pinv(matrix)


def _interface(a: LayerModes, b: LayerModes, r_b: np.ndarray):
    """
    Reflection and transmission at the interface from layer ``a`` into ``b``.

    ``r_b`` is the reflection seen in ``b`` at the interface. Returns ``(r, tau)``
    with ``r`` the reflection seen in ``a`` and ``tau`` mapping the incident
    amplitude in ``a`` to the transmitted one in ``b``.
    """
    identity = np.eye(r_b.shape[0])
    p = a.phi_inv @ b.phi @ (identity + r_b)
    s = a.v_inv @ b.v @ (identity - r_b)
    inv_sum = np.linalg.inv(p + s)
    return (p - s) @ inv_sum, 2.0 * inv_sum


def _propagate(x: np.ndarray, r: np.ndarray) -> np.ndarray:
    """diag(x) r diag(x)."""
    return x[:, None] * r * x[None, :]


def overlap(a: np.ndarray, b: np.ndarray, d: float) -> np.ndarray:
    """
    Elementwise integral of exp(i a z) exp(i b (d - z)) for z in [0, d].
    """
    a = np.asarray(a, dtype=complex)
    b = np.asarray(b, dtype=complex)
    a, b = np.broadcast_arrays(a, b)
    diff = a - b
    out = np.empty(a.shape, dtype=complex)
    close = np.abs(diff * d) < 1e-10
    far = ~close
    out[far] = (np.exp(1j * a[far] * d) - np.exp(1j * b[far] * d)) / (1j * diff[far])
    out[close] = d * np.exp(1j * a[close] * d)
    return out


def _polarization_mask(n: int, polarization: Polarization) -> np.ndarray:
    mask = np.ones(3 * n)
    if polarization is Polarization.TE:
        mask[:n] = 0.0
        mask[2 * n:] = 0.0
    elif polarization is Polarization.TM:
        mask[n:2 * n] = 0.0
    return mask


def _emission(modes: LayerModes, kx: np.ndarray, ky: np.ndarray):
    """
    Amplitudes radiated up (A) and down (B) by a current sheet, as operators on
    the (jx, jy, jz) current vector.
    """
    n = kx.size
    zeros = np.zeros((n, n), dtype=complex)
    identity = complex_identity(n)
    jump_e = np.block([[zeros, zeros, np.diag(kx) @ modes.eta],
                       [zeros, zeros, np.diag(ky) @ modes.eta]])
    jump_h = -np.block([[identity, zeros, zeros],
                        [zeros, identity, zeros]])
    from_e = modes.phi_inv @ jump_e
    from_h = modes.v_inv @ jump_h
    up = 0.5 * (from_h + from_e)
    down = 0.5 * (from_h - from_e)
    return up, down


def poynting_flux(omega: float, thicknesses: ArrayLike, kx: float, ky: float,
                  e_matrices: Sequence[np.ndarray], grand_imaginary: Sequence[np.ndarray],
                  eps_zz_inv: Sequence[np.ndarray], gx: ArrayLike, gy: ArrayLike,
                  sources: Sequence[bool], target: int, num_of_g: int,
                  polarization: Union[str, Polarization] = Polarization.BOTH) -> float:
    """
    Thermally averaged z-flux into the target layer from the source layers.

    The result is the transmission factor: a black-body half-space contributes
    one unit per polarisation and per propagating diffraction order.

    :param omega: k0 = omega / c in 1/µm
    :param thicknesses: Layer thicknesses in µm, bottom to top (first and last are semi-infinite)
    :param kx: In-plane wavevector normalised by k0
    :param ky: In-plane wavevector normalised by k0
    :param e_matrices: Stored E matrices, one per layer
    :param grand_imaginary: Stored grand imaginary matrices, one per layer
    :param eps_zz_inv: Stored inverse zz matrices, one per layer
    :param gx: Harmonic x components in 1/µm
    :param gy: Harmonic y components in 1/µm
    :param sources: Source flag per layer
    :param target: Index of the probe layer
    :param num_of_g: Number of harmonics
    :param polarization: Restrict the source currents to TE (jy) or TM (jx, jz)
    """
    polarization = Polarization.parse(polarization)
    n = num_of_g
    num_layers = len(e_matrices)
    source_indices = [i for i, flag in enumerate(sources) if flag]
    if not 0 <= target < num_layers:
        raise RangeError(f"Probe layer index {target} out of range")
    if any(s > target for s in source_indices):
        raise RangeError("Probe layer cannot be lower than source layer!")
    if target == num_layers - 1 and target in source_indices:
        raise ConfigurationError("The top layer cannot be both source and probe")

    k0 = omega
    kxs = kx + np.asarray(gx[:n], dtype=float) / k0
    kys = ky + np.asarray(gy[:n], dtype=float) / k0
    depth = np.asarray(thicknesses, dtype=float) * k0

    modes: List[LayerModes] = []
    for e_matrix, eta in zip(e_matrices, eps_zz_inv):
        modes.append(solve_modes(physical_permittivity(e_matrix, n), eta.conj().T, kxs, kys))
    phase = [np.exp(1j * m.q * d) for m, d in zip(modes, depth)]

    size = 2 * n
    zeros = np.zeros((size, size), dtype=complex)

    # upward recursion, from the top layer down
    r_up_top: List[np.ndarray] = [zeros] * num_layers
    r_up_bottom: List[np.ndarray] = [zeros] * num_layers
    tau: List[np.ndarray] = [zeros] * num_layers
    for l in range(num_layers - 2, -1, -1):
        r_up_top[l], tau[l] = _interface(modes[l], modes[l + 1], r_up_bottom[l + 1])
        r_up_bottom[l] = _propagate(phase[l], r_up_top[l])

    # downward recursion, from the bottom layer up
    r_down_top: List[np.ndarray] = [zeros] * num_layers
    r_down_bottom: List[np.ndarray] = [zeros] * num_layers
    for l in range(1, max(source_indices, default=0) + 1):
        r_down_bottom[l], _ = _interface(modes[l], modes[l - 1], r_down_top[l - 1])
        r_down_top[l] = _propagate(phase[l], r_down_bottom[l])

    mask = _polarization_mask(n, polarization)
    result = 0.0
    for s in source_indices:
        m = modes[s]
        absorption = -_conj_blocks(grand_imaginary[s], n, 3)
        correlation = CURRENT_CORRELATION * mask[:, None] * absorption * mask[None, :]
        up, down = _emission(m, kxs, kys)
        aca = up @ correlation @ up.conj().T
        q_m = m.q[:, None]
        q_n = m.q.conj()[None, :]

        if s == 0:
            denom = q_m - q_n
            tiny = np.abs(denom) < 1e-14
            weight = np.where(tiny, 0.0, 1j / np.where(tiny, 1.0, denom))
            uu = aca * weight
        else:
            d = depth[s]
            x = phase[s]
            identity = complex_identity(size)
            mult = np.linalg.inv(identity - _propagate(x, r_down_bottom[s]) @ r_up_top[s])
            l1 = mult @ (x[:, None] * r_down_bottom[s])
            l2 = mult
            bcb = down @ correlation @ down.conj().T
            bca = down @ correlation @ up.conj().T
            acb = up @ correlation @ down.conj().T
            o11 = overlap(q_m - q_n, 0.0, d)
            o12 = overlap(q_m, -q_n, d)
            o21 = overlap(-q_n, q_m, d)
            o22 = overlap(0.0, q_m - q_n, d)
            uu = (l1 @ (bcb * o11) @ l1.conj().T + l1 @ (bca * o12) @ l2.conj().T
                  + l2 @ (acb * o21) @ l1.conj().T + l2 @ (aca * o22) @ l2.conj().T)

        if target == s:
            transfer = complex_identity(size)
            reflection = r_up_top[s]
        else:
            transfer = tau[s]
            for l in range(s + 1, target):
                transfer = tau[l] @ (phase[l][:, None] * transfer)
            reflection = r_up_bottom[target]
        t_modes = modes[target]
        identity = complex_identity(size)
        g = t_modes.phi @ (identity + reflection) @ transfer
        h = t_modes.v @ (identity - reflection) @ transfer
        quad = 0.25 * (g.conj().T @ h + h.conj().T @ g)
        result += float(np.real(np.trace(quad @ uu)))

    logger.debug("flux at k0=%g kx=%g ky=%g: %g", k0, kx, ky, result)
    return result
