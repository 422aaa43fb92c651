import numpy as np
import pytest

from meshflux import (SimulationGrating, SimulationPattern, SimulationPlanar)
from meshflux.errors import (ConfigurationError, MalformedInputError, NameInUseError, NameNotFoundError,
                             RangeError)
from meshflux.shorthand import C0

OMEGA = [1.0e14, 1.5e14]
# file convention: loss is a positive imaginary part
LOSSY = [[4.0, 1.0], [4.0, 1.0]]
VACUUM = [[1.0, 0.0], [1.0, 0.0]]


def fresnel_emissivity(k, eps=4.0 + 1.0j):
    q0 = np.sqrt(eps - k ** 2)
    q1 = np.sqrt(1.0 - k ** 2)
    r_te = (q1 - q0) / (q1 + q0)
    r_tm = (eps * q1 - q0) / (eps * q1 + q0)
    return 2.0 - abs(r_te) ** 2 - abs(r_tm) ** 2


def half_space(sim=None):
    sim = sim or SimulationPlanar()
    sim.add_material_from_values('Lossy', OMEGA, LOSSY)
    sim.add_material_from_values('Vacuum', OMEGA, VACUUM)
    sim.add_layer('Bottom', 0.0, 'Lossy')
    sim.add_layer('Top', 0.0, 'Vacuum')
    sim.set_source_layer('Bottom')
    sim.set_probe_layer('Top')
    return sim


def film_stack(thickness, values=LOSSY, eps_type='scalar'):
    sim = SimulationPlanar()
    sim.add_material_from_values('Lossy', OMEGA, LOSSY)
    sim.add_material_from_values('Vacuum', OMEGA, VACUUM)
    sim.add_material_from_values('Crystal', OMEGA, values, eps_type)
    sim.add_layer('Bottom', 0.0, 'Vacuum')
    sim.add_layer('Film', thickness, 'Crystal')
    sim.add_layer('Top', 0.0, 'Vacuum')
    sim.set_source_layer('Film')
    sim.set_probe_layer('Top')
    return sim


class TestPlanar:
    def test_phi_at_k_parallel_matches_fresnel(self):
        sim = half_space()
        sim.set_k_parallel_integral(1.0)
        sim.init_simulation()
        k0 = OMEGA[1] / C0
        for k in (0.0, 0.4, 0.9):
            expected = k0 * k * fresnel_emissivity(k) / (2 * np.pi)
            assert sim.get_phi_at_k_parallel(1, k) == pytest.approx(expected, rel=1e-8, abs=1e-30)

    def test_phi_at_kx_ky_matches_fresnel(self):
        sim = half_space()
        sim.init_simulation()
        value = sim.get_phi_at_kx_ky(0, 0.3, 0.4)
        assert value == pytest.approx(fresnel_emissivity(0.5) / (4 * np.pi ** 2), rel=1e-8)

    def test_k_parallel_needs_configuration(self):
        sim = half_space()
        sim.init_simulation()
        with pytest.raises(ConfigurationError):
            sim.get_phi_at_k_parallel(0, 0.5)

    def test_grid_agrees_with_radial_quadrature(self):
        radial = half_space()
        radial.set_k_parallel_integral(1.0)
        radial.opt_use_quadgl(400)
        spectrum = radial.run()

        grid = half_space()
        grid.set_kx_integral(80, 1.0)
        grid.set_ky_integral(80, 1.0)
        grid.set_thread(2)
        grid_spectrum = grid.run()
        np.testing.assert_allclose(grid_spectrum.phi, spectrum.phi, rtol=2e-2)
        assert np.all(spectrum.phi > 0)

    def test_chunks_sum_to_full_integration(self):
        sim = half_space()
        sim.set_kx_integral(6, 1.2)
        sim.set_ky_integral_sym(5, 1.2)
        sim.init_simulation()
        whole = sim.integrate_kx_ky().phi

        sim.init_simulation()
        parts = [sim.integrate_kx_ky_chunk(rank, 3) for rank in range(3)]
        total = parts[0] + parts[1] + parts[2]
        np.testing.assert_allclose(total.phi, whole, rtol=1e-10)
        np.testing.assert_allclose(sim.get_phi(), whole, rtol=1e-10)

    def test_get_epsilon_of_homogeneous_layer(self):
        sim = half_space()
        sim.init_simulation()
        np.testing.assert_allclose(sim.get_epsilon(0, (0.0, 0.0, -1e-6)),
                                   [4, 1, 0, 0, 0, 0, 4, 1, 4, 1], atol=1e-12)
        np.testing.assert_allclose(sim.get_epsilon(1, (0.0, 0.0, 1e-6)),
                                   [1, 0, 0, 0, 0, 0, 1, 0, 1, 0], atol=1e-12)

    def test_polarization_split(self):
        sim = half_space()
        sim.init_simulation()
        both = sim.get_phi_at_kx_ky(0, 0.5, 0.0)
        te = half_space()
        te.opt_only_compute_te()
        te.init_simulation()
        tm = half_space()
        tm.opt_only_compute_tm()
        tm.init_simulation()
        assert te.get_phi_at_kx_ky(0, 0.5, 0.0) + tm.get_phi_at_kx_ky(0, 0.5, 0.0) == pytest.approx(both)


class TestValidation:
    def test_probe_below_source_raises_at_init(self):
        sim = half_space()
        sim.set_source_layer('Top')
        sim.set_probe_layer('Bottom')
        with pytest.raises(RangeError, match='Probe layer cannot be lower than source layer!'):
            sim.init_simulation()

    def test_source_and_probe_required(self):
        sim = SimulationPlanar()
        sim.add_material_from_values('Vacuum', OMEGA, VACUUM)
        sim.add_layer('Bottom', 0.0, 'Vacuum')
        sim.add_layer('Top', 0.0, 'Vacuum')
        with pytest.raises(ConfigurationError):
            sim.init_simulation()
        sim.set_probe_layer('Top')
        with pytest.raises(ConfigurationError):
            sim.init_simulation()

    def test_top_layer_cannot_be_source_and_probe(self):
        sim = half_space()
        sim.set_source_layer('Top')
        with pytest.raises(ConfigurationError):
            sim.init_simulation()

    def test_mismatched_sample_count_raises_at_add(self):
        sim = SimulationPlanar()
        sim.add_material_from_values('A', OMEGA, VACUUM)
        with pytest.raises(MalformedInputError):
            sim.add_material_from_values('B', [1.0e14, 1.5e14, 2.0e14], VACUUM + [[1.0, 0.0]])
        assert 'B' not in sim.materials

    def test_mismatched_file_raises_at_add(self, write_table):
        sim = SimulationPlanar()
        sim.add_material_from_values('A', OMEGA, VACUUM)
        path = write_table('three.txt', [[1e14, 1, 0], [1.5e14, 1, 0], [2e14, 1, 0]])
        with pytest.raises(MalformedInputError):
            sim.add_material('B', path)

    def test_names(self):
        sim = half_space()
        with pytest.raises(NameInUseError):
            sim.add_material_from_values('Lossy', OMEGA, LOSSY)
        with pytest.raises(NameInUseError):
            sim.add_layer('Top', 0.0, 'Vacuum')
        with pytest.raises(NameNotFoundError):
            sim.add_layer('Middle', 1e-7, 'Gold')
        with pytest.raises(NameNotFoundError):
            sim.set_probe_layer('Middle')
        with pytest.raises(KeyError):
            sim.get_layer('Middle')
        # failed calls leave the stack untouched
        assert sim.structure.layers.names() == ['Bottom', 'Top']

    def test_delete_probe_layer_clears_probe(self):
        sim = half_space()
        sim.delete_layer('Top')
        assert sim.probe is None

    def test_integration_bounds(self):
        sim = half_space()
        with pytest.raises(RangeError):
            sim.set_kx_integral(1, 1.0)
        with pytest.raises(ConfigurationError):
            sim.set_kx_integral(10, 0.0)
        with pytest.raises(RangeError):
            sim.set_k_parallel_integral(0.0)
        with pytest.raises(RangeError):
            sim.set_thread(0)
        with pytest.raises(RangeError):
            sim.set_num_of_g(0)

    def test_integration_needs_both_axes(self):
        sim = half_space()
        sim.set_kx_integral(5, 1.0)
        sim.init_simulation()
        with pytest.raises(ConfigurationError):
            sim.integrate_kx_ky()

    def test_results_need_init(self):
        sim = half_space()
        with pytest.raises(ConfigurationError, match='Please do integration first!'):
            sim.get_phi()
        assert sim.get_num_of_omega() == 2
        with pytest.raises(ConfigurationError):
            sim.get_phi_at_kx_ky(0, 0.0, 0.0)

    def test_omega_index_out_of_range(self):
        sim = half_space()
        sim.init_simulation()
        with pytest.raises(RangeError):
            sim.get_phi_at_kx_ky(2, 0.0, 0.0)

    def test_structure_changes_require_reinit(self):
        sim = film_stack(1e-6)
        sim.init_simulation()
        sim.get_phi_at_kx_ky(0, 0.3, 0.0)
        sim.set_layer_thickness('Film', 3e-7)
        with pytest.raises(ConfigurationError, match='not initialised'):
            sim.get_phi_at_kx_ky(0, 0.3, 0.0)
        sim.init_simulation()
        fresh = film_stack(3e-7)
        fresh.init_simulation()
        assert sim.get_phi_at_kx_ky(0, 0.3, 0.0) == pytest.approx(fresh.get_phi_at_kx_ky(0, 0.3, 0.0), rel=1e-12)

    @pytest.mark.parametrize('change', [
        lambda sim: sim.add_layer('Extra', 1e-7, 'Lossy'),
        lambda sim: sim.add_layer_copy('FilmCopy', 'Film'),
        lambda sim: sim.set_layer('Film', 2e-7, 'Vacuum'),
        lambda sim: sim.set_source_layer('Bottom'),
        lambda sim: sim.set_probe_layer('Film'),
        lambda sim: sim.set_num_of_g(3),
    ])
    def test_mutators_reset_initialisation(self, change):
        sim = film_stack(1e-6)
        sim.init_simulation()
        change(sim)
        with pytest.raises(ConfigurationError, match='not initialised'):
            sim.get_phi_at_kx_ky(0, 0.3, 0.0)

    def test_delete_layer_then_reinit(self):
        sim = film_stack(1e-6)
        sim.init_simulation()
        sim.delete_layer('Film')
        with pytest.raises(ConfigurationError, match='not initialised'):
            sim.get_phi_at_kx_ky(0, 0.3, 0.0)
        sim.set_layer('Bottom', 0.0, 'Lossy')
        sim.set_source_layer('Bottom')
        sim.init_simulation()
        expected = fresnel_emissivity(0.3) / (4 * np.pi ** 2)
        assert sim.get_phi_at_kx_ky(0, 0.3, 0.0) == pytest.approx(expected, rel=1e-8)

    def test_values_not_matching_omega_count(self):
        sim = SimulationPlanar()
        with pytest.raises(MalformedInputError):
            sim.add_material_from_values('A', OMEGA, [1.0, 0.0, 1.0])
        assert 'A' not in sim.materials


class TestAnisotropy:
    def test_flag_toggles_with_material_type(self):
        sim = half_space()
        sim.add_material_from_values('Crystal', OMEGA, VACUUM)
        sim.add_layer('Film', 1e-7, 'Crystal')
        bottom, film = sim.get_layer('Bottom'), sim.get_layer('Film')
        assert not film.has_tensor
        tensor = [[2, 0.1, 0.2, 0, 0.2, 0, 3, 0.1, 1, 0]] * 2
        sim.set_material('Crystal', tensor, 'tensor')
        assert film.has_tensor
        assert not bottom.has_tensor
        sim.set_material('Crystal', [[2, 0.1, 3, 0.1, 1, 0]] * 2, 'diagonal')
        assert not film.has_tensor

    def test_set_material_uses_file_convention(self):
        sim = half_space()
        sim.set_material('Lossy', [[9.0, 2.0], [9.0, 2.0]])
        sim.init_simulation()
        np.testing.assert_allclose(sim.get_epsilon(0, (0, 0, -1e-6))[:2], [9.0, 2.0])

    def test_set_material_rejects_wrong_shape(self):
        sim = half_space()
        with pytest.raises(MalformedInputError):
            sim.set_material('Lossy', [[9.0, 2.0]])

    def test_rotated_film_matches_rotated_wavevector(self):
        theta = np.deg2rad(30.0)
        c, s = np.cos(theta), np.sin(theta)
        a, b, zz = 4.0 + 1.0j, 2.0 + 0.5j, 3.0 + 0.2j

        def tensor(xx, xy, yx, yy):
            row = [xx, xy, yx, yy, zz]
            return [[v for z in row for v in (z.real, z.imag)]] * 2

        rotated = film_stack(5e-7, tensor(a * c * c + b * s * s, (a - b) * c * s, (a - b) * c * s,
                                          a * s * s + b * c * c), 'tensor')
        plain = film_stack(5e-7, tensor(a, 0j, 0j, b), 'tensor')
        rotated.init_simulation()
        plain.init_simulation()
        assert rotated.get_layer('Film').has_tensor

        kx, ky = 0.3, 0.4
        expected = plain.get_phi_at_kx_ky(0, c * kx + s * ky, -s * kx + c * ky)
        assert expected > 0
        assert rotated.get_phi_at_kx_ky(0, kx, ky) == pytest.approx(expected, rel=1e-9)

    def test_film_emission_equals_absorptivity(self):
        thickness, k = 3e-6, 0.5
        eps = 4.0 + 1.0j
        sim = film_stack(thickness)
        sim.init_simulation()

        beta = OMEGA[0] / C0 * np.sqrt(eps - k ** 2) * thickness
        q0, q1 = np.sqrt(1.0 - k ** 2), np.sqrt(eps - k ** 2)
        phase = np.exp(2j * beta)
        emission = 0.0
        for r01 in ((q0 - q1) / (q0 + q1), (eps * q0 - q1) / (eps * q0 + q1)):
            r = r01 * (1.0 - phase) / (1.0 - r01 ** 2 * phase)
            t = (1.0 - r01 ** 2) * np.exp(1j * beta) / (1.0 - r01 ** 2 * phase)
            emission += 1.0 - abs(r) ** 2 - abs(t) ** 2
        assert sim.get_phi_at_kx_ky(0, k, 0.0) == pytest.approx(emission / (4 * np.pi ** 2), rel=1e-8)


def grating():
    sim = SimulationGrating()
    sim.add_material_from_values('Lossy', OMEGA, LOSSY)
    sim.add_material_from_values('Vacuum', OMEGA, VACUUM)
    sim.add_layer('Bottom', 0.0, 'Lossy')
    sim.add_layer('Grating', 2e-7, 'Vacuum')
    sim.add_layer('Top', 0.0, 'Vacuum')
    sim.set_source_layer('Bottom')
    sim.set_probe_layer('Top')
    return sim


class TestPatterned:
    def test_lattice_required(self):
        sim = grating()
        with pytest.raises(ConfigurationError):
            sim.set_kx_integral(10)
        with pytest.raises(ConfigurationError):
            sim.init_simulation()

    def test_grating_rebuild_is_bit_identical(self):
        sim = grating()
        sim.set_lattice(1e-6)
        sim.set_layer_pattern_grating('Grating', 'Lossy', 0.0, 4e-7)
        sim.set_num_of_g(7)
        sim.init_simulation()
        assert sim.get_num_of_g() == 7
        first = sim.build_rcwa_matrices(0).snapshot()
        second = sim.build_rcwa_matrices(0)
        for a, b in zip(first.e_matrices + first.grand_imaginary, second.e_matrices + second.grand_imaginary):
            assert np.array_equal(a, b)

    def test_grating_brillouin_zone_bound(self):
        sim = grating()
        sim.set_lattice(1e-6)
        sim.set_kx_integral(5)
        assert sim._kx.end == pytest.approx(np.pi / 1e-6)
        assert not sim.options.kx_preset
        with pytest.raises(ConfigurationError):
            sim.set_ky_integral(5)

    def test_pattern_flux_is_positive_and_finite(self):
        sim = SimulationPattern()
        sim.add_material_from_values('Lossy', OMEGA, LOSSY)
        sim.add_material_from_values('Vacuum', OMEGA, VACUUM)
        sim.add_layer('Bottom', 0.0, 'Lossy')
        sim.add_layer('Holes', 1e-7, 'Lossy')
        sim.add_layer('Top', 0.0, 'Vacuum')
        sim.set_lattice(1e-6, 1e-6, 90)
        sim.set_layer_pattern_circle('Holes', 'Vacuum', (0.0, 0.0), 2e-7)
        sim.set_layer_pattern_polygon('Holes', 'Vacuum', (4e-7, 4e-7), 0.0,
                                      [(-5e-8, -5e-8), (5e-8, -5e-8), (0.0, 5e-8)])
        sim.set_source_layer('Bottom')
        sim.set_probe_layer('Top')
        sim.set_num_of_g(9)
        sim.init_simulation()
        e_matrix = sim.build_rcwa_matrices(0).e_matrices[1]
        assert e_matrix.shape == (18, 18)
        value = sim.get_phi_at_kx_ky(0, 0.1, 0.2)
        assert np.isfinite(value) and value > 0

    def test_polygon_needs_three_vertices(self):
        sim = SimulationPattern()
        sim.add_material_from_values('Vacuum', OMEGA, VACUUM)
        sim.add_layer('Slab', 1e-7, 'Vacuum')
        with pytest.raises(RangeError):
            sim.set_layer_pattern_polygon('Slab', 'Vacuum', (0, 0), 0, [(0, 0), (1e-7, 0)])
        assert not sim.get_layer('Slab').patterns

    def test_lattice_angle(self):
        sim = SimulationPattern()
        with pytest.raises(RangeError):
            sim.set_lattice(1e-6, 1e-6, 180)
        sim.set_lattice(1e-6, 1e-6, 60)
        b = sim.get_reciprocal_lattice()
        assert b[0] == pytest.approx(2 * np.pi / 1e-6)

    def test_layer_pattern_realization(self):
        sim = grating()
        sim.set_lattice(1e-6)
        sim.set_layer_pattern_grating('Grating', 'Lossy', 0.0, 4e-7)
        sim.set_num_of_g(11)
        sim.init_simulation()
        samples = sim.get_layer_pattern_realization(0, 'Grating', 5, 1)
        assert samples.shape == (5, 12)
        np.testing.assert_allclose(samples[:, 0], np.linspace(0, 1e-6, 5))
        # strip centre is closer to the inclusion than the midpoint between strips
        assert samples[0, 2] > samples[2, 2]
        with pytest.raises(RangeError):
            sim.get_layer_pattern_realization(0, 'Grating', 0, 1)

    def test_describe_lists_layers(self):
        sim = grating()
        sim.set_lattice(1e-6)
        sim.set_layer_pattern_grating('Grating', 'Lossy', 0.0, 4e-7)
        text = sim.describe()
        assert 'Layer index 1: Grating' in text
        assert 'Is source: YES' in text
        assert 'grating, (c, w)' in text

    def test_top_layer_realization_samples_top_material(self):
        sim = grating()
        sim.set_lattice(1e-6)
        sim.set_layer_pattern_grating('Grating', 'Lossy', 0.0, 4e-7)
        sim.init_simulation()
        samples = sim.get_layer_pattern_realization(0, 'Top', 3, 1)
        np.testing.assert_allclose(samples[:, 2:], [[1, 0, 0, 0, 0, 0, 1, 0, 1, 0]] * 3, atol=1e-12)
        z_top = sim.structure.thicknesses()[1:-1].sum() + 1e-6
        np.testing.assert_allclose(sim.get_epsilon(0, (0.0, 0.0, z_top)), samples[0, 2:])
