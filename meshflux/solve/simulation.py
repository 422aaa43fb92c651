"""
Simulation orchestrators.

A simulation owns the material registry, the layer stack, the solver options,
the per-frequency solve state and the flux spectrum. Lengths passed in are in
metres and frequencies in rad/s; everything is rescaled to micrometres once,
in ``init_simulation``.
"""
import logging
import os
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

from meshflux.core.flux import Polarization, poynting_flux
from meshflux.core.matrices import build_layer_matrices
from meshflux.core.operators import assemble_operators
from meshflux.errors import ConfigurationError, MalformedInputError, RangeError
from meshflux.geom.harmonics import Truncation, generate_harmonics
from meshflux.geom.lattice import Lattice
from meshflux.geom.pattern import Pattern, ShapeKind
from meshflux.model.layer import Layer, Structure
from meshflux.model.material import EpsilonType, Material
from meshflux.model.registry import Registry
from meshflux.shorthand import C0, MICRON
from meshflux.solve.cache import SolveState
from meshflux.solve.integrate import (Axis, KGrid, chunk_bounds, integrate_chunk, integrate_grid,
                                      integrate_k_parallel)
from meshflux.solve.options import IntegralMethod, SimulationOptions
from meshflux.solve.results import FluxSpectrum
from meshflux.utils.loaders import load_permittivity

logger = logging.getLogger(__name__)


class Simulation:
    """
    Base simulation: materials, layers, source/probe designation, options and
    the (kx, ky) grid integration shared by every lattice dimensionality.
    """
    dimension = 0

    def __init__(self):
        self.materials: Registry[Material] = Registry('Material')
        self.structure = Structure()
        self.options = SimulationOptions()
        self.state = SolveState()
        self.num_of_g = 1
        self.probe: Optional[str] = None
        self.omega: Optional[np.ndarray] = None
        self.phi: Optional[np.ndarray] = None
        self._kx: Optional[Axis] = None
        self._ky: Optional[Axis] = None
        self._gx = np.zeros(1)
        self._gy = np.zeros(1)
        self._thickness = np.zeros(0)
        self._sources: List[bool] = []
        self._target = -1
        self._initialized = False

    # ------------------------------------------------------------------
    # materials
    # ------------------------------------------------------------------
    def add_material(self, name: str, path: str) -> Material:
        """
        Load a material from a permittivity file.

        :param name: Unique material name
        :param path: Path to the table (omega followed by 2, 6 or 10 values per row)
        """
        self.materials.require_free(name)
        omega, values, eps_type = load_permittivity(path)
        return self._register_material(Material(name, omega, values, eps_type))

    def add_material_from_values(self, name: str, omega: ArrayLike, values: ArrayLike,
                                 eps_type: Union[str, EpsilonType] = EpsilonType.SCALAR) -> Material:
        """
        Register a material from in-memory samples, in the file sign convention
        (loss is a positive imaginary part).
        """
        self.materials.require_free(name)
        values = np.array(values, dtype=float)
        num_of_omega = np.size(omega)
        if num_of_omega == 0 or values.size % num_of_omega:
            raise MalformedInputError(
                f"{name}: {values.size} values cannot be split over {num_of_omega} omega points")
        values = values.reshape(num_of_omega, -1)
        values[:, 1::2] *= -1.0
        return self._register_material(Material(name, omega, values, eps_type))

    def _register_material(self, material: Material) -> Material:
        if len(self.materials):
            reference = self.materials.at(0)
            if material.num_of_omega != reference.num_of_omega:
                raise MalformedInputError(
                    f"{material.name}: wrong omega points! expected {reference.num_of_omega}, "
                    f"got {material.num_of_omega}")
            if not np.allclose(material.omega, reference.omega, rtol=1e-12, atol=0.0):
                raise MalformedInputError(f"{material.name}: omega values differ from {reference.name}")
        self.materials.add(material)
        return material

    def get_material(self, name: str) -> Material:
        return self.materials[name]

    def set_material(self, name: str, values: ArrayLike,
                     eps_type: Union[str, EpsilonType] = EpsilonType.SCALAR):
        """
        Replace the permittivity of an existing material, in the file sign
        convention. Every layer using it has its anisotropy flag fixed up.
        """
        material = self.materials[name]
        material.set_epsilon(values, eps_type)
        material.values[:, 1::2] *= -1.0
        for layer in self.structure:
            if layer.uses(material) and layer.refresh_anisotropy():
                logger.debug("layer %s anisotropy is now %s", layer.name, layer.has_tensor)
        self.state.invalidate()

    # ------------------------------------------------------------------
    # layers
    # ------------------------------------------------------------------
    def add_layer(self, name: str, thickness: float, material_name: str) -> Layer:
        material = self.materials[material_name]
        self.structure.layers.require_free(name)
        layer = Layer(name, material, thickness)
        self.structure.add_layer(layer)
        self.reset_simulation()
        return layer

    def get_layer(self, name: str) -> Layer:
        return self.structure.get_layer(name)

    def set_layer(self, name: str, thickness: float, material_name: str):
        """Change the background material and the thickness of a layer."""
        material = self.materials[material_name]
        layer = self.structure.get_layer(name)
        layer.set_thickness(thickness)
        layer.set_background(material)
        self.reset_simulation()

    def set_layer_thickness(self, name: str, thickness: float):
        self.structure.get_layer(name).set_thickness(thickness)
        self.reset_simulation()

    def add_layer_copy(self, name: str, original_name: str) -> Layer:
        original = self.structure.get_layer(original_name)
        self.structure.layers.require_free(name)
        layer = original.copy(name)
        self.structure.add_layer(layer)
        self.reset_simulation()
        return layer

    def delete_layer(self, name: str):
        self.structure.delete_layer(name)
        if self.probe == name:
            self.probe = None
        self.reset_simulation()

    def set_source_layer(self, name: str):
        """Mark a layer as the emitter; any previous source loses its flag."""
        self.structure.set_source(name)
        self.reset_simulation()

    def set_probe_layer(self, name: str):
        self.structure.get_layer(name)
        self.probe = name
        self.reset_simulation()

    def _add_pattern(self, layer_name: str, material_name: str, pattern: Pattern) -> int:
        material = self.materials[material_name]
        layer = self.structure.get_layer(layer_name)
        pattern.material = material
        index = layer.add_pattern(pattern)
        self.state.invalidate()
        return index

    # ------------------------------------------------------------------
    # lattice and options
    # ------------------------------------------------------------------
    def get_reciprocal_lattice(self) -> Tuple[float, float, float, float]:
        """Reciprocal basis (b1x, b1y, b2x, b2y) in 1/m."""
        r = self.structure.reciprocal
        return r.bx[0], r.bx[1], r.by[0], r.by[1]

    def set_num_of_g(self, num_of_g: int):
        if num_of_g < 1:
            raise RangeError("Number of G should >= 1!")
        self.num_of_g = int(num_of_g)
        self.reset_simulation()

    def get_num_of_g(self) -> int:
        return self.num_of_g

    def opt_print_intermediate(self):
        self.options.print_intermediate = True

    def opt_show_progress(self):
        self.options.show_progress = True

    def opt_only_compute_te(self):
        self.options.polarization = Polarization.TE

    def opt_only_compute_tm(self):
        self.options.polarization = Polarization.TM

    def opt_set_lattice_truncation(self, truncation: Union[str, Truncation]):
        """:param truncation: 'Circular' or 'Parallelogramic'"""
        self.options.truncation = Truncation.parse(truncation)
        self.reset_simulation()

    def set_thread(self, num_threads: int):
        if num_threads <= 0:
            raise RangeError("Number of thread should >= 1!")
        self.options.num_threads = min(int(num_threads), os.cpu_count() or 1)

    # ------------------------------------------------------------------
    # integration setup
    # ------------------------------------------------------------------
    def _kx_axis(self, points: int, end: float, symmetric: bool) -> Axis:
        if points < 2:
            raise RangeError("Needs no less than 2 points!")
        if self.dimension != 0 and not self.structure.reciprocal.is_set:
            raise ConfigurationError("Lattice not set!")
        if self.dimension == 0 and end == 0.0:
            raise ConfigurationError("integral upper bound cannot be zero!")
        if end != 0:
            self.options.kx_preset = True
            return Axis(points, end, symmetric, preset=True)
        self.options.kx_preset = False
        b1 = self.structure.reciprocal.bx
        return Axis(points, float(np.hypot(*b1)) / 2.0, symmetric, preset=False)

    def _ky_axis(self, points: int, end: float, symmetric: bool) -> Axis:
        if points < 2:
            raise RangeError("Needs no less than 2 points!")
        if self.dimension == 2 and not self.structure.reciprocal.is_set:
            raise ConfigurationError("Lattice not set!")
        if self.dimension in (0, 1) and end == 0.0:
            raise ConfigurationError("integral upper bound cannot be zero!")
        if end != 0:
            self.options.ky_preset = True
            return Axis(points, end, symmetric, preset=True)
        self.options.ky_preset = False
        b2 = self.structure.reciprocal.by
        return Axis(points, float(np.hypot(*b2)) / 2.0, symmetric, preset=False)

    def set_kx_integral(self, points: int, end: float = 0.0):
        """
        Integrate kx over [-end, end] with ``points`` samples.

        ``end`` is normalised by omega/c. With ``end == 0`` the bound is half
        the first reciprocal vector (first Brillouin zone), which needs a lattice.
        """
        self._kx = self._kx_axis(points, end, symmetric=False)

    def set_kx_integral_sym(self, points: int, end: float = 0.0):
        """Like ``set_kx_integral`` over [0, end], for structures symmetric in x."""
        self._kx = self._kx_axis(points, end, symmetric=True)

    def set_ky_integral(self, points: int, end: float = 0.0):
        self._ky = self._ky_axis(points, end, symmetric=False)

    def set_ky_integral_sym(self, points: int, end: float = 0.0):
        self._ky = self._ky_axis(points, end, symmetric=True)

    def k_grid(self) -> KGrid:
        if self._kx is None or self._ky is None:
            raise ConfigurationError("Set both the kx and the ky integral before integrating")
        return KGrid(self._kx, self._ky, self.structure.reciprocal.angle)

    # ------------------------------------------------------------------
    # solve
    # ------------------------------------------------------------------
    def reset_simulation(self):
        self.state.invalidate()
        self._sources = []
        self._thickness = np.zeros(0)
        self._initialized = False

    def init_simulation(self):
        """
        Validate the configuration and prepare everything that does not depend
        on the frequency: harmonics, thicknesses in µm, source flags, target
        index and a zeroed flux spectrum.
        """
        self.reset_simulation()
        num_layers = len(self.structure)
        if num_layers == 0:
            raise ConfigurationError("No layer in the structure")
        if self.dimension != 0:
            self.structure.require_lattice()
        if self.probe is None:
            raise ConfigurationError("Probe layer not set")

        sources = [layer.is_source for layer in self.structure]
        if not any(sources):
            raise ConfigurationError("Source layer not set")
        target = self.structure.layer_index(self.probe)
        if any(flag and i > target for i, flag in enumerate(sources)):
            raise RangeError("Probe layer cannot be lower than source layer!")
        if target == num_layers - 1 and sources[target]:
            raise ConfigurationError("The top layer cannot be both source and probe")

        reference = self.structure.layers.at(0).background
        for layer in self.structure:
            for material in layer.materials():
                if material.num_of_omega != reference.num_of_omega or \
                        not np.allclose(material.omega, reference.omega, rtol=1e-12, atol=0.0):
                    raise MalformedInputError(f"{material.name}: wrong omega points!")

        reciprocal = self.structure.reciprocal.scaled(1.0 / MICRON)
        self._gx, self._gy = generate_harmonics(self.num_of_g, reciprocal, self.dimension,
                                                self.options.truncation)
        self.num_of_g = int(self._gx.size)

        thickness = self.structure.thicknesses() * MICRON
        thickness[0] = 0.0
        thickness[-1] = 0.0
        self._thickness = thickness
        self._sources = sources
        self._target = target
        self.omega = reference.omega.copy()
        self.phi = np.zeros(self.omega.size)
        self._initialized = True
        logger.info("initialised %d layers, %d harmonics, %d frequencies, source %s, probe %s",
                    num_layers, self.num_of_g, self.omega.size,
                    [l.name for l in self.structure if l.is_source], self.probe)

    def _require_init(self):
        if not self._initialized:
            raise ConfigurationError("Simulation not initialised, call init_simulation() first")

    def _area(self) -> float:
        lattice = self.structure.lattice
        if self.dimension == 0:
            return 1.0
        return lattice.area * MICRON ** self.dimension

    def build_rcwa_matrices(self, omega_index: Optional[int] = None) -> SolveState:
        """Rebuild the solve state of every layer at a frequency index."""
        self._require_init()
        if omega_index is None:
            omega_index = max(self.state.omega_index, 0)
        self._check_omega_index(omega_index)
        e_matrices, grand_imaginary, eps_zz_inv = [], [], []
        area = self._area()
        for layer in self.structure:
            matrices = build_layer_matrices(layer, omega_index, self.num_of_g, self._gx, self._gy, area)
            e_matrix, imaginary = assemble_operators(matrices)
            e_matrices.append(e_matrix)
            grand_imaginary.append(imaginary)
            eps_zz_inv.append(matrices.eps_zz_inv)
        self.state = SolveState(omega_index, e_matrices, grand_imaginary, eps_zz_inv)
        logger.debug("rebuilt solve state at omega index %d", omega_index)
        return self.state

    def _check_omega_index(self, omega_index: int):
        if not 0 <= omega_index < self.omega.size:
            raise RangeError(f"{omega_index}: out of range!")

    def prepare(self, omega_index: int) -> SolveState:
        """Solve state at a frequency, rebuilt only when the cached index differs."""
        self._require_init()
        self._check_omega_index(omega_index)
        if self.state.needs_rebuild(omega_index):
            self.build_rcwa_matrices(omega_index)
        return self.state

    def _flux(self, state: SolveState, kx: float, ky: float, num_of_g: int) -> float:
        """Poynting flux per unit normalised k-space area, in the units the prefactors expect."""
        k0 = self.omega[state.omega_index] / C0
        xi = poynting_flux(k0 / MICRON, self._thickness, kx, ky, state.e_matrices,
                           state.grand_imaginary, state.eps_zz_inv, self._gx, self._gy,
                           self._sources, self._target, num_of_g, self.options.polarization)
        return np.pi * xi / (2.0 * k0)

    def phi_from_state(self, state: SolveState, kx: float, ky: float) -> float:
        k0 = self.omega[state.omega_index] / C0
        return k0 / np.pi ** 3 / 2.0 * self._flux(state, kx, ky, self.num_of_g)

    def get_phi_at_kx_ky(self, omega_index: int, kx: float, ky: float) -> float:
        """
        Flux density at one frequency and one normalised (kx, ky).

        :param omega_index: Frequency index
        :param kx: kx normalised by omega/c
        :param ky: ky normalised by omega/c
        """
        return self.phi_from_state(self.prepare(omega_index), kx, ky)

    def integrate_kx_ky(self) -> FluxSpectrum:
        """Grid integration over all frequencies, accumulated into the spectrum."""
        self._require_init()
        grid = self.k_grid()
        self.phi += integrate_grid(self.prepare, self.phi_from_state, self.omega, grid,
                                   self.options.num_threads, self.options.print_intermediate,
                                   self.options.show_progress)
        return self.get_spectrum()

    def integrate_kx_ky_chunk(self, rank: int, size: int) -> FluxSpectrum:
        """
        Integrate only the ``rank``-th of ``size`` contiguous chunks of the
        flattened (omega, kx, ky) index space.

        :return: The partial spectrum of this chunk (also accumulated into ``phi``)
        """
        self._require_init()
        grid = self.k_grid()
        start, end = chunk_bounds(self.omega.size * grid.size, rank, size)
        partial = integrate_chunk(self.get_phi_at_kx_ky, self.omega, grid, start, end,
                                  self.options.print_intermediate)
        self.phi += partial
        return FluxSpectrum(self.omega, partial)

    def run(self) -> FluxSpectrum:
        self.init_simulation()
        return self.integrate_kx_ky()

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------
    def get_phi(self) -> np.ndarray:
        if self.phi is None:
            raise ConfigurationError("Please do integration first!")
        return self.phi.copy()

    def get_omega(self) -> np.ndarray:
        if self.omega is None:
            raise ConfigurationError("omega does not exist!")
        return self.omega.copy()

    def get_num_of_omega(self) -> int:
        if self.omega is not None:
            return int(self.omega.size)
        if len(self.materials):
            return self.materials.at(0).num_of_omega
        return 0

    def get_spectrum(self) -> FluxSpectrum:
        return FluxSpectrum(self.get_omega(), self.get_phi())

    def get_epsilon(self, omega_index: int, position: Sequence[float]) -> np.ndarray:
        """
        Effective permittivity reconstructed from the Fourier matrices at a point.

        :param omega_index: Frequency index
        :param position: (x, y, z) in metres; z = 0 is the top of the bottom layer
        :return: (Re xx, Im xx, Re xy, Im xy, Re yx, Im yx, Re yy, Im yy, Re zz, Im zz)
            with loss as a positive imaginary part
        """
        state = self.prepare(omega_index)
        x, y, z = (float(p) for p in position)
        index = self.structure.locate(z)
        n = self.num_of_g
        e_matrix = state.e_matrices[index]
        zero = int(np.argmin(np.hypot(self._gx, self._gy)))
        phase = np.exp(-1j * (self._gx * x * MICRON + self._gy * y * MICRON))

        def at(matrix):
            return np.sum(matrix[zero, :] * phase)

        eps_yy = at(e_matrix[:n, :n])
        eps_yx = -at(e_matrix[:n, n:])
        eps_xy = -at(e_matrix[n:, :n])
        eps_xx = at(e_matrix[n:, n:])
        eps_zz = at(np.linalg.inv(state.eps_zz_inv[index]))
        out = np.empty(10)
        for k, value in enumerate((eps_xx, eps_xy, eps_yx, eps_yy, eps_zz)):
            out[2 * k] = value.real
            out[2 * k + 1] = -value.imag
        return out

    def get_layer_pattern_realization(self, omega_index: int, name: str, nu: int, nv: int) -> np.ndarray:
        """
        Sample the reconstructed permittivity of a layer over one unit cell.

        :return: Array of shape (nu * nv, 12): x, y and the ten values of ``get_epsilon``
        """
        if nu <= 0 or nv <= 0:
            raise RangeError("Number of point needs to be positive!")
        target = self.structure.layer_index(name)
        thickness = self.structure.thicknesses()
        if target == 0:
            z = 0.0
        elif target == len(thickness) - 1:
            z = thickness[1:-1].sum() + 1e-6
        else:
            z = thickness[1:target].sum() + thickness[target] / 2.0

        lattice = self.structure.lattice
        a1 = np.asarray(lattice.bx, dtype=float)
        a2 = np.asarray(lattice.by, dtype=float)
        u = np.arange(nu) / (nu - 1) if nu > 1 else np.zeros(1)
        v = np.arange(nv) / (nv - 1) if nv > 1 else np.zeros(1)
        rows = []
        for ui in u:
            for vj in v:
                x, y = ui * a1 + vj * a2
                rows.append(np.concatenate([[x, y], self.get_epsilon(omega_index, (x, y, z))]))
        return np.asarray(rows)

    def describe(self) -> str:
        """Human-readable summary of the layer stack, bottom to top."""
        lines = ["=" * 50, f"The system has in total {len(self.structure)} layers."]
        lattice = self.structure.lattice
        if self.dimension == 1:
            lines.append(f"Periodicity in x direction is {lattice.bx[0]}")
        elif self.dimension == 2:
            lines.append(f"Lattice coordinates are ({lattice.bx[0]}, {lattice.bx[1]}), "
                         f"({lattice.by[0]}, {lattice.by[1]})")
        lines += ["=" * 50, "Printing from bottom to up.", "=" * 50]
        for index, layer in enumerate(self.structure):
            lines.append(f"Layer index {index}: {layer.name}")
            lines.append(f"Thickness: {layer.thickness}")
            lines.append(f"contains off diagonal epsilon: {'YES' if layer.has_tensor else 'NO'}")
            lines.append(f"Is source: {'YES' if layer.is_source else 'NO'}")
            lines.append(f"Is probe: {'YES' if layer.name == self.probe else 'NO'}")
            lines.append(f"Its background is: {layer.background.name}")
            if layer.patterns:
                lines.append("It has other components:")
                for count, pattern in enumerate(layer.patterns, start=1):
                    lines.append(f"Material for pattern {count}: {pattern.material.name}")
                    lines.append(f"Pattern {count} is: {pattern.describe()}")
            lines.append("=" * 50)
        return "\n".join(lines)


class SimulationPlanar(Simulation):
    """
    Unpatterned stack. Besides the (kx, ky) grid it supports the radial
    k-parallel integral, valid for isotropic or uniaxial (z-axis) layers.
    """
    dimension = 0

    def __init__(self):
        super().__init__()
        self._k_start = 0.0
        self._k_end = 0.0

    def set_k_parallel_integral(self, end: float):
        """Integrate over the normalised in-plane wavevector in [0, end]."""
        if end <= 0:
            raise RangeError("integral upper bound should be positive!")
        self._k_start = 0.0
        self._k_end = float(end)
        self.options.integrate_k_parallel = True

    def opt_use_quadgl(self, degree: int = 1024):
        if degree < 1:
            raise RangeError("Gauss-Legendre degree should >= 1!")
        self.options.integral_method = IntegralMethod.GAUSS_LEGENDRE
        self.options.degree = int(degree)

    def opt_use_quadgk(self):
        self.options.integral_method = IntegralMethod.GAUSS_KRONROD

    def _require_k_parallel(self):
        if not self.options.integrate_k_parallel:
            raise ConfigurationError("Cannot use kparallel integral here!")

    def flux_at_k_parallel(self, state: SolveState, k: float) -> float:
        return self._flux(state, k, 0.0, 1)

    def get_phi_at_k_parallel(self, omega_index: int, k_parallel: float) -> float:
        self._require_k_parallel()
        state = self.prepare(omega_index)
        k0 = self.omega[omega_index] / C0
        return k0 ** 2 / np.pi ** 2 * k_parallel * self.flux_at_k_parallel(state, k_parallel)

    def integrate_k_parallel(self) -> FluxSpectrum:
        self._require_k_parallel()
        self._require_init()
        opts = self.options
        self.phi = integrate_k_parallel(self.prepare, self.flux_at_k_parallel, self.omega,
                                        self._k_start, self._k_end, opts.integral_method, opts.degree,
                                        opts.abs_error, opts.rel_error, opts.num_threads,
                                        opts.show_progress)
        return self.get_spectrum()

    def run(self) -> FluxSpectrum:
        self.init_simulation()
        if self.options.integrate_k_parallel:
            return self.integrate_k_parallel()
        return self.integrate_kx_ky()


class SimulationGrating(Simulation):
    """Stack with one-dimensional periodicity along x."""
    dimension = 1

    def set_lattice(self, period: float):
        real, reciprocal = Lattice.grating(period)
        self.structure.set_lattice(real, reciprocal)
        self.reset_simulation()

    def set_layer_pattern_grating(self, layer_name: str, material_name: str,
                                  center: float, width: float) -> int:
        """Add a strip of ``material_name`` of the given width, centred at ``center`` (metres)."""
        return self._add_pattern(layer_name, material_name,
                                 Pattern(ShapeKind.GRATING, None, (center, width)))


class SimulationPattern(Simulation):
    """Stack with two-dimensional periodicity."""
    dimension = 2

    def set_lattice(self, x_len: float, y_len: float, angle: float = 90.0):
        """
        :param x_len: Length of the first lattice vector, along x (metres)
        :param y_len: Length of the second lattice vector (metres)
        :param angle: Angle between the lattice vectors in degrees, in (0, 180)
        """
        real, reciprocal = Lattice.oblique(x_len, y_len, angle)
        self.structure.set_lattice(real, reciprocal)
        self.reset_simulation()

    def set_layer_pattern_rectangle(self, layer_name: str, material_name: str,
                                    center: Tuple[float, float], angle: float,
                                    widths: Tuple[float, float]) -> int:
        return self._add_pattern(layer_name, material_name,
                                 Pattern(ShapeKind.RECTANGLE, None, center, widths, angle))

    def set_layer_pattern_circle(self, layer_name: str, material_name: str,
                                 center: Tuple[float, float], radius: float) -> int:
        return self._add_pattern(layer_name, material_name,
                                 Pattern(ShapeKind.CIRCLE, None, center, (radius, radius)))

    def set_layer_pattern_ellipse(self, layer_name: str, material_name: str,
                                  center: Tuple[float, float], angle: float,
                                  half_widths: Tuple[float, float]) -> int:
        return self._add_pattern(layer_name, material_name,
                                 Pattern(ShapeKind.ELLIPSE, None, center, half_widths, angle))

    def set_layer_pattern_polygon(self, layer_name: str, material_name: str,
                                  center: Tuple[float, float], angle: float,
                                  vertices: ArrayLike) -> int:
        """
        :param vertices: (n, 2) vertices relative to ``center``, n >= 3
        """
        vertices = np.asarray(vertices, dtype=float).reshape(-1, 2)
        if vertices.shape[0] < 3:
            raise RangeError("Needs no less than 3 vertices!")
        return self._add_pattern(layer_name, material_name,
                                 Pattern(ShapeKind.POLYGON, None, center, angle=angle, edges=vertices))
