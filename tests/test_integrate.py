import numpy as np
import pytest

from meshflux.errors import ConfigurationError, RangeError
from meshflux.shorthand import C0
from meshflux.solve import Axis, KGrid, SolveState, chunk_bounds
from meshflux.solve.integrate import (gauss_kronrod, gauss_legendre, integrate_chunk, integrate_grid,
                                      integrate_k_parallel)
from meshflux.solve.options import IntegralMethod

OMEGA = np.array([C0, 2 * C0])  # k0 = 1 and 2 in 1/m


def prepare(i):
    return SolveState(omega_index=i)


def even_integrand(state, kx, ky):
    # vanishes on both axes, so the symmetric rule has no double-counted lines
    return (state.omega_index + 1) * (kx * ky) ** 2 * np.exp(-kx ** 2 - 0.5 * ky ** 2)


def test_axis_values():
    axis = Axis(5, 2.0)
    np.testing.assert_allclose(axis.values(), [-2, -1, 0, 1, 2])
    symmetric = Axis(5, 2.0, symmetric=True)
    np.testing.assert_allclose(symmetric.values(), [0, 0.5, 1, 1.5, 2])
    with pytest.raises(RangeError):
        Axis(1, 2.0)


def test_lattice_bound_is_normalised_by_k0():
    axis = Axis(3, 4.0, preset=False)
    assert axis.scale(2 * C0) == pytest.approx(2.0)
    assert Axis(3, 4.0).scale(2 * C0) == 1.0


@pytest.mark.parametrize('total,size', [(10, 3), (7, 7), (3, 5), (100, 8)])
def test_chunk_bounds_cover_range(total, size):
    bounds = [chunk_bounds(total, rank, size) for rank in range(size)]
    assert bounds[0][0] == 0
    assert bounds[-1][1] == total
    for (_, end), (start, _) in zip(bounds, bounds[1:]):
        assert end == start
    lengths = [end - start for start, end in bounds]
    assert max(lengths) - min(lengths) <= 1
    assert lengths == sorted(lengths, reverse=True)


def test_chunk_bounds_invalid():
    with pytest.raises(RangeError):
        chunk_bounds(10, 3, 3)
    with pytest.raises(RangeError):
        chunk_bounds(10, 0, 0)


def test_symmetric_grid_equals_full_grid():
    full = KGrid(Axis(41, 3.0), Axis(31, 3.0))
    sym = KGrid(Axis(21, 3.0, symmetric=True), Axis(16, 3.0, symmetric=True))
    phi_full = integrate_grid(prepare, even_integrand, OMEGA, full)
    phi_sym = integrate_grid(prepare, even_integrand, OMEGA, sym)
    np.testing.assert_allclose(phi_sym, phi_full, rtol=1e-12)


def test_threads_do_not_change_result():
    grid = KGrid(Axis(11, 2.0), Axis(9, 2.0))
    serial = integrate_grid(prepare, even_integrand, OMEGA, grid, num_threads=1)
    threaded = integrate_grid(prepare, even_integrand, OMEGA, grid, num_threads=4)
    np.testing.assert_allclose(threaded, serial, rtol=1e-13)


def test_chunks_sum_to_grid():
    grid = KGrid(Axis(7, 1.5), Axis(5, 1.0, symmetric=True), angle=75.0)
    whole = integrate_grid(prepare, even_integrand, OMEGA, grid)

    def evaluate(i, kx, ky):
        return even_integrand(prepare(i), kx, ky)

    total = OMEGA.size * grid.size
    parts = [integrate_chunk(evaluate, OMEGA, grid, *chunk_bounds(total, rank, 4)) for rank in range(4)]
    np.testing.assert_allclose(np.sum(parts, axis=0), whole, rtol=1e-12)


def test_sheared_grid_weight_and_points():
    grid = KGrid(Axis(3, 1.0), Axis(3, 1.0), angle=60.0)
    kx, ky = grid.points(C0)
    assert kx.size == 9
    # the middle point stays at the origin
    assert kx[4] == pytest.approx(0.0) and ky[4] == pytest.approx(0.0)
    assert grid.weight(C0) == pytest.approx(np.sin(np.deg2rad(60.0)))


def test_integrate_grid_prints_samples(capsys):
    grid = KGrid(Axis(2, 1.0), Axis(2, 1.0))
    integrate_grid(prepare, even_integrand, OMEGA[:1], grid, print_intermediate=True)
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 4
    assert len(lines[0].split('\t')) == 4


def test_quadrature_rules():
    assert gauss_legendre(lambda k: k ** 3, 0.0, 2.0, 8) == pytest.approx(4.0)
    assert gauss_kronrod(np.cos, 0.0, np.pi / 2, 0.0, 1e-12) == pytest.approx(1.0)


def test_integrate_k_parallel_scaling():
    def flux(state, k):
        return 1.0

    for method in (IntegralMethod.GAUSS_LEGENDRE, IntegralMethod.GAUSS_KRONROD):
        phi = integrate_k_parallel(prepare, flux, OMEGA, 0.0, 1.0, method, degree=16)
        np.testing.assert_allclose(phi, 0.5 * np.array([1.0, 8.0]) / np.pi ** 2, rtol=1e-10)
    with pytest.raises(ConfigurationError):
        integrate_k_parallel(prepare, flux, OMEGA, 1.0, 1.0, IntegralMethod.GAUSS_LEGENDRE)
