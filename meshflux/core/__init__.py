"""
Per-frequency layer matrices and the flux kernel.
"""
from .matrices import LayerMatrices, build_layer_matrices
from .operators import assemble_operators
from .flux import Polarization, poynting_flux

__all__ = ['LayerMatrices', 'build_layer_matrices', 'assemble_operators', 'Polarization', 'poynting_flux']
