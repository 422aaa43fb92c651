__version__ = '0.1.0'

from meshflux.errors import (MeshFluxError, NameNotFoundError, NameInUseError, RangeError,
                             ConfigurationError, MalformedInputError)
from meshflux.shorthand import MICRON, C0
from meshflux.model import EpsilonType, Material, Layer, Structure
from meshflux.geom import Pattern, ShapeKind, Lattice, Truncation
from meshflux.core import Polarization, build_layer_matrices, assemble_operators, poynting_flux
from meshflux.solve import (SimulationOptions, IntegralMethod, FluxSpectrum, Simulation,
                            SimulationPlanar, SimulationGrating, SimulationPattern)
from meshflux.utils import load_permittivity
from meshflux.config import load_config

__all__ = [
    'MeshFluxError', 'NameNotFoundError', 'NameInUseError', 'RangeError', 'ConfigurationError',
    'MalformedInputError', 'MICRON', 'C0', 'EpsilonType', 'Material', 'Layer', 'Structure',
    'Pattern', 'ShapeKind', 'Lattice', 'Truncation', 'Polarization', 'build_layer_matrices',
    'assemble_operators', 'poynting_flux', 'SimulationOptions', 'IntegralMethod', 'FluxSpectrum',
    'Simulation', 'SimulationPlanar', 'SimulationGrating', 'SimulationPattern', 'load_permittivity',
    'load_config',
]
