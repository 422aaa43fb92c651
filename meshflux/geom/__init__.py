"""
Pattern geometry, lattices and their Fourier-space representation.
"""
from .pattern import Pattern, ShapeKind
from .lattice import Lattice
from .harmonics import Truncation, generate_harmonics
from .fourier import factorize_pattern, shape_transform

__all__ = ['Pattern', 'ShapeKind', 'Lattice', 'Truncation', 'generate_harmonics',
           'factorize_pattern', 'shape_transform']
