"""
Layers and the layer stack.
"""
import warnings
from typing import List, Optional

import numpy as np

from meshflux.errors import ConfigurationError, RangeError
from meshflux.geom.lattice import Lattice
from meshflux.geom.pattern import Pattern, ShapeKind
from meshflux.model.material import Material
from meshflux.model.registry import Registry


class Layer:
    """
    A slab of background material with an ordered list of inclusions.

    Patterns are append-only: their position in ``patterns`` is what ``parent``
    refers to, so an existing pattern is never moved or removed.

    :param name: Unique layer name
    :param background: Background material (shared, not owned)
    :param thickness: Thickness in metres, must be >= 0
    """
    def __init__(self, name: str, background: Material, thickness: float = 0.0):
        _check_thickness(thickness)
        self.name = name
        self.background = background
        self.thickness = float(thickness)
        self.patterns: List[Pattern] = []
        self.is_source = False
        self.has_tensor = background.is_tensor

    def materials(self) -> List[Material]:
        """Background first, then the pattern materials in insertion order."""
        return [self.background] + [p.material for p in self.patterns]

    def uses(self, material: Material) -> bool:
        return any(m is material for m in self.materials())

    def refresh_anisotropy(self) -> bool:
        """
        Recompute ``has_tensor`` from the constituent materials.

        :return: True if the flag changed
        """
        has_tensor = any(m.is_tensor for m in self.materials())
        changed = has_tensor != self.has_tensor
        self.has_tensor = has_tensor
        return changed

    def set_background(self, material: Material):
        self.background = material
        self.refresh_anisotropy()

    def set_thickness(self, thickness: float):
        _check_thickness(thickness)
        self.thickness = float(thickness)

    @property
    def is_patterned(self) -> bool:
        return len(self.patterns) > 0

    def add_pattern(self, pattern: Pattern) -> int:
        """
        Append a pattern, resolving its parent.

        An explicit ``pattern.parent`` must index an earlier pattern. With
        ``parent == -1`` the latest earlier pattern that encloses the new one
        becomes its parent. Partial overlaps that are not nestings are reported
        with a warning.

        :return: Index of the new pattern
        """
        if pattern.parent != -1:
            if not 0 <= pattern.parent < len(self.patterns):
                raise RangeError(
                    f"Layer {self.name}: parent index {pattern.parent} out of range "
                    f"[0, {len(self.patterns)})")
        else:
            pattern.parent = self._find_parent(pattern)
        self.patterns.append(pattern)
        self.refresh_anisotropy()
        return len(self.patterns) - 1

    def _find_parent(self, pattern: Pattern) -> int:
        points = pattern.boundary_points()
        parent = -1
        for index, other in enumerate(self.patterns):
            if other.kind is not pattern.kind and ShapeKind.GRATING in (other.kind, pattern.kind):
                continue
            inside = np.asarray(other.contains(points[:, 0], points[:, 1]))
            if inside.all():
                parent = index
                continue
            earlier = other.boundary_points()
            covered = np.asarray(pattern.contains(earlier[:, 0], earlier[:, 1]))
            if covered.all():
                warnings.warn(
                    f"Layer {self.name}: new {pattern.kind.value} encloses pattern {index + 1}, "
                    f"enclosing patterns must be added before the patterns they contain", UserWarning)
            elif inside.any() or covered.any() or other.contains(*pattern.center):
                warnings.warn(
                    f"Layer {self.name}: new {pattern.kind.value} overlaps pattern {index + 1} "
                    f"without being contained in it", UserWarning)
        return parent

    def copy(self, name: str) -> 'Layer':
        """Independent copy with the same background, thickness and patterns."""
        layer = Layer(name, self.background, self.thickness)
        for pattern in self.patterns:
            layer.patterns.append(Pattern(pattern.kind, pattern.material, pattern.arg1, pattern.arg2,
                                          pattern.angle, pattern.edges, pattern.parent))
        layer.refresh_anisotropy()
        return layer

    def __str__(self):
        return f'Layer {self.name}: {self.background.name}, thickness {self.thickness}'


def _check_thickness(thickness: float):
    if thickness < 0:
        raise RangeError(f"Thickness must be non-negative, got {thickness}")


class Structure:
    """
    Bottom-to-top layer stack (index 0 is the bottom) with its lattice.
    """
    def __init__(self):
        self.layers: Registry[Layer] = Registry('Layer')
        self.lattice = Lattice()
        self.reciprocal = Lattice()

    def __len__(self):
        return len(self.layers)

    def __iter__(self):
        return iter(self.layers)

    def add_layer(self, layer: Layer) -> int:
        return self.layers.add(layer)

    def get_layer(self, name: str) -> Layer:
        return self.layers[name]

    def layer_index(self, name: str) -> int:
        return self.layers.index(name)

    def delete_layer(self, name: str) -> Layer:
        return self.layers.remove(name)

    def source_layer(self) -> Optional[Layer]:
        sources = self.layers.find(lambda layer: layer.is_source)
        return sources[0] if sources else None

    def set_source(self, name: str):
        """Mark one layer as the source, clearing the flag on every other layer."""
        target = self.layers[name]
        for layer in self.layers:
            layer.is_source = False
        target.is_source = True

    def set_lattice(self, real: Lattice, reciprocal: Lattice):
        self.lattice = real
        self.reciprocal = reciprocal

    def require_lattice(self):
        if not self.reciprocal.is_set:
            raise ConfigurationError("Lattice not set")

    def thicknesses(self) -> np.ndarray:
        """Thicknesses in metres, bottom to top."""
        return np.array([layer.thickness for layer in self.layers], dtype=float)

    def locate(self, z: float) -> int:
        """
        Index of the layer containing height ``z`` (metres).

        The bottom layer occupies z <= 0 and the top layer everything above the
        last interface; intermediate layers are found from cumulative thickness.
        """
        if len(self.layers) == 0:
            raise ConfigurationError("Structure has no layers")
        if z <= 0 or len(self.layers) == 1:
            return 0
        offset = 0.0
        for index in range(1, len(self.layers) - 1):
            offset += self.layers.at(index).thickness
            if z <= offset:
                return index
        return len(self.layers) - 1
