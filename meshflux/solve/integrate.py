"""
Wavevector integration strategies.

All strategies are built on one per-point primitive supplied by the
simulation (``FluxSource``): ``prepare(omega_index)`` returns the solve state
of a frequency, rebuilding it only when the cached index differs, and
``phi_from_state(state, kx, ky)`` evaluates the flux for that state.

The frequency loop is always sequential. Inside one frequency the state is
built by the calling thread before any worker starts, then only read, and
every worker writes its own slot of the result array.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
import progressbar
from joblib import Parallel, delayed
from numpy.polynomial import legendre
from scipy import integrate

from meshflux.errors import ConfigurationError, RangeError
from meshflux.shorthand import C0
from meshflux.solve.cache import SolveState
from meshflux.solve.options import IntegralMethod

logger = logging.getLogger(__name__)


@dataclass
class Axis:
    """
    Sampling of one in-plane axis.

    :param points: Number of samples, at least 2
    :param end: Upper bound (normalised if ``preset``, in 1/m otherwise)
    :param symmetric: Integrate over [0, end] instead of [-end, end]
    :param preset: Bound given by the user (normalised by k0) rather than derived from the lattice
    """
    points: int
    end: float
    symmetric: bool = False
    preset: bool = True

    def __post_init__(self):
        if self.points < 2:
            raise RangeError("Needs no less than 2 points!")

    @property
    def start(self) -> float:
        return 0.0 if self.symmetric else -self.end

    @property
    def step(self) -> float:
        return (self.end - self.start) / (self.points - 1)

    def values(self) -> np.ndarray:
        return self.start + self.step * np.arange(self.points)

    def scale(self, omega: float) -> float:
        """Factor turning the axis values into normalised wavevectors."""
        return 1.0 if self.preset else omega / C0


@dataclass
class KGrid:
    """
    Rectangular (kx, ky) sampling, sheared by the reciprocal lattice angle.
    """
    kx: Axis
    ky: Axis
    angle: float = 90.0

    @property
    def size(self) -> int:
        return self.kx.points * self.ky.points

    @property
    def prefactor(self) -> float:
        return 2.0 ** (int(self.kx.symmetric) + int(self.ky.symmetric))

    def points(self, omega: float) -> Tuple[np.ndarray, np.ndarray]:
        """Normalised (kx, ky) of every grid point, kx-major."""
        kx, ky = np.meshgrid(self.kx.values(), self.ky.values(), indexing='ij')
        kx, ky = kx.ravel(), ky.ravel()
        return self.shear(kx, ky, omega)

    def shear(self, kx, ky, omega: float):
        skew = np.deg2rad(self.angle - 90.0)
        kx_n = kx * np.cos(skew) / self.kx.scale(omega)
        ky_n = (ky - kx * np.sin(skew)) / self.ky.scale(omega)
        return kx_n, ky_n

    def weight(self, omega: float) -> float:
        """Quadrature weight of one grid point at a frequency."""
        return (self.prefactor * self.kx.step / self.kx.scale(omega) * self.ky.step / self.ky.scale(omega)
                * (omega / C0) ** 2 * abs(np.sin(np.deg2rad(self.angle))))


def chunk_bounds(total: int, rank: int, size: int) -> Tuple[int, int]:
    """
    Contiguous slice ``[start, end)`` of ``range(total)`` owned by ``rank`` out of ``size``.

    The first ``total % size`` ranks get one extra element.
    """
    if size <= 0:
        raise RangeError("Number of chunks should >= 1!")
    if not 0 <= rank < size:
        raise RangeError(f"rank {rank} out of range for {size} chunks")
    chunk, left = divmod(total, size)
    if rank < left:
        start = rank * (chunk + 1)
        end = start + chunk + 1
    else:
        start = left * (chunk + 1) + (rank - left) * chunk
        end = start + chunk
    return start, min(end, total)


def _frequencies(count: int, show_progress: bool):
    if show_progress:
        return progressbar.progressbar(range(count), max_value=count)
    return range(count)


def _report(omega: float, kx: float, ky: float, value: float):
    print(f"{omega}\t{kx}\t{ky}\t{value}")


def integrate_grid(prepare: Callable[[int], SolveState],
                   phi_from_state: Callable[[SolveState, float, float], float],
                   omega: Sequence[float], grid: KGrid, num_threads: int = 1,
                   print_intermediate: bool = False, show_progress: bool = False) -> np.ndarray:
    """
    Shared-memory strategy: sequential frequencies, threaded grid points.

    :return: Flux spectrum, one value per frequency
    """
    omega = np.asarray(omega, dtype=float)
    phi = np.zeros(omega.size)
    pool = Parallel(n_jobs=num_threads, backend='threading')
    for i in _frequencies(omega.size, show_progress):
        state = prepare(i).snapshot()
        kx, ky = grid.points(omega[i])
        values = np.asarray(pool(delayed(phi_from_state)(state, x, y) for x, y in zip(kx, ky)), dtype=float)
        if print_intermediate:
            for x, y, v in zip(kx, ky, values):
                _report(omega[i], x, y, v)
        phi[i] = grid.weight(omega[i]) * values.sum()
        logger.debug("omega index %d: %d points, phi = %g", i, grid.size, phi[i])
    return phi


def integrate_chunk(evaluate: Callable[[int, float, float], float], omega: Sequence[float],
                    grid: KGrid, start: int, end: int,
                    print_intermediate: bool = False) -> np.ndarray:
    """
    Distributed strategy: evaluate flat indices ``[start, end)`` of the
    (omega, kx, ky) index space one by one.

    :param evaluate: Per-point primitive ``(omega_index, kx, ky) -> phi``
    :return: Partial flux spectrum of this chunk
    """
    omega = np.asarray(omega, dtype=float)
    phi = np.zeros(omega.size)
    per_omega = grid.size
    kx_values = grid.kx.values()
    ky_values = grid.ky.values()
    for index in range(start, end):
        i, residue = divmod(index, per_omega)
        kx_index, ky_index = divmod(residue, grid.ky.points)
        kx, ky = grid.shear(kx_values[kx_index], ky_values[ky_index], omega[i])
        value = evaluate(i, kx, ky)
        if print_intermediate:
            _report(omega[i], kx, ky, value)
        phi[i] += grid.weight(omega[i]) * value
    logger.debug("chunk [%d, %d) done", start, end)
    return phi


def gauss_legendre(func: Callable[[float], float], start: float, end: float, degree: int,
                   rule: Optional[Tuple[np.ndarray, np.ndarray]] = None) -> float:
    nodes, weights = rule if rule is not None else legendre.leggauss(degree)
    half = (end - start) / 2.0
    mid = (end + start) / 2.0
    return half * float(np.sum(weights * np.array([func(half * x + mid) for x in nodes])))


def gauss_kronrod(func: Callable[[float], float], start: float, end: float,
                  abs_error: float, rel_error: float) -> float:
    value, _ = integrate.quad(func, start, end, epsabs=abs_error, epsrel=rel_error, limit=200)
    return value


def integrate_k_parallel(prepare: Callable[[int], SolveState],
                         flux_from_state: Callable[[SolveState, float], float],
                         omega: Sequence[float], start: float, end: float,
                         method: IntegralMethod, degree: int = 1024,
                         abs_error: float = 0.0, rel_error: float = 1e-10,
                         num_threads: int = 1, show_progress: bool = False) -> np.ndarray:
    """
    Quadrature strategy for unpatterned stacks.

    Integrates ``k * flux(k)`` over the normalised radial wavevector and scales
    by ``(omega/c)^3 / pi^2``. The states of all frequencies are built first;
    the frequencies are then integrated in parallel.
    """
    omega = np.asarray(omega, dtype=float)
    if end <= start:
        raise ConfigurationError("k-parallel integral needs end > start")
    states = [prepare(i).snapshot() for i in _frequencies(omega.size, show_progress)]
    rule = legendre.leggauss(degree) if method is IntegralMethod.GAUSS_LEGENDRE else None

    def one(state: SolveState) -> float:
        def integrand(k: float) -> float:
            return k * flux_from_state(state, k)
        if method is IntegralMethod.GAUSS_LEGENDRE:
            return gauss_legendre(integrand, start, end, degree, rule)
        return gauss_kronrod(integrand, start, end, abs_error, rel_error)

    values = Parallel(n_jobs=num_threads, backend='threading')(delayed(one)(s) for s in states)
    phi = np.asarray(values, dtype=float) * (omega / C0) ** 3 / np.pi ** 2
    logger.debug("k-parallel integral over [%g, %g] done for %d frequencies", start, end, omega.size)
    return phi
