"""
Solver options shared by every simulation kind.
"""
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Union

from meshflux.core.flux import Polarization
from meshflux.errors import ConfigurationError
from meshflux.geom.harmonics import Truncation


class IntegralMethod(Enum):
    GAUSS_LEGENDRE = 'gauss_legendre'
    GAUSS_KRONROD = 'gauss_kronrod'

    @classmethod
    def parse(cls, value: Union[str, 'IntegralMethod']) -> 'IntegralMethod':
        if isinstance(value, IntegralMethod):
            return value
        aliases = {'quadgl': cls.GAUSS_LEGENDRE, 'quadgk': cls.GAUSS_KRONROD}
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(
                "integral method should be one of 'gauss_legendre' or 'gauss_kronrod'") from None


@dataclass
class SimulationOptions:
    """
    :param polarization: Restrict the source currents to TE or TM, or keep both
    :param truncation: Harmonic truncation for 2D lattices
    :param integral_method: Quadrature rule for the k-parallel integral
    :param degree: Number of Gauss-Legendre nodes
    :param abs_error: Absolute tolerance of the adaptive rule
    :param rel_error: Relative tolerance of the adaptive rule
    :param kx_preset: kx bounds were given explicitly (already normalised)
    :param ky_preset: ky bounds were given explicitly (already normalised)
    :param integrate_k_parallel: Planar radial integral is configured
    :param print_intermediate: Print every (omega, kx, ky, value) sample to stdout
    :param show_progress: Show a progress bar over frequencies
    :param num_threads: Worker threads for the grid and quadrature strategies
    """
    polarization: Polarization = Polarization.BOTH
    truncation: Truncation = Truncation.CIRCULAR
    integral_method: IntegralMethod = IntegralMethod.GAUSS_LEGENDRE
    degree: int = 1024
    abs_error: float = 0.0
    rel_error: float = 1e-10
    kx_preset: bool = False
    ky_preset: bool = False
    integrate_k_parallel: bool = False
    print_intermediate: bool = False
    show_progress: bool = False
    num_threads: int = 1

    def __post_init__(self):
        self.polarization = Polarization.parse(self.polarization)
        self.truncation = Truncation.parse(self.truncation)
        self.integral_method = IntegralMethod.parse(self.integral_method)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SimulationOptions':
        """Build options from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        return cls(**dict(data))
