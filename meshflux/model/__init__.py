"""
Materials, layers and the layer stack.
"""
from .material import EpsilonType, Material, hermitian_part_imag, to_tensor
from .registry import Registry
from .layer import Layer, Structure

__all__ = ['EpsilonType', 'Material', 'hermitian_part_imag', 'to_tensor', 'Registry', 'Layer', 'Structure']
