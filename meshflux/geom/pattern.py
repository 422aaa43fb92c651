"""
Geometric inclusions of a patterned layer.

A pattern is a closed tagged union: a ShapeKind plus the payload that kind
needs. Geometry is kept in the units it was given (metres for the public API)
and rescaled with ``scaled`` right before Fourier factorisation.

Payload conventions:

* grating: ``arg1 = (center, width)``
* rectangle: ``arg1 = (cx, cy)``, ``arg2 = (wx, wy)``, rotation ``angle``
* circle: ``arg1 = (cx, cy)``, ``arg2 = (r, r)``
* ellipse: ``arg1 = (cx, cy)``, ``arg2 = (a, b)`` half-widths, rotation ``angle``
* polygon: ``arg1 = (cx, cy)``, ``edges`` vertices relative to the centre,
  rotation ``angle``

Angles are in degrees.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np

from meshflux.errors import RangeError


class ShapeKind(Enum):
    GRATING = 'grating'
    RECTANGLE = 'rectangle'
    CIRCLE = 'circle'
    ELLIPSE = 'ellipse'
    POLYGON = 'polygon'


@dataclass
class Pattern:
    """
    One inclusion inside a layer.

    :param kind: Shape kind
    :param material: Inclusion material
    :param arg1: Primary parameter pair (see module docstring)
    :param arg2: Secondary parameter pair
    :param angle: Rotation in degrees, counter-clockwise
    :param edges: (n, 2) polygon vertices relative to the centre
    :param parent: Index of the enclosing pattern in the same layer, -1 for the background
    """
    kind: ShapeKind
    material: object
    arg1: Tuple[float, float]
    arg2: Tuple[float, float] = (0.0, 0.0)
    angle: float = 0.0
    edges: Optional[np.ndarray] = None
    parent: int = -1

    def __post_init__(self):
        self.arg1 = (float(self.arg1[0]), float(self.arg1[1]))
        self.arg2 = (float(self.arg2[0]), float(self.arg2[1]))
        self.angle = float(self.angle)
        if self.kind is ShapeKind.POLYGON:
            if self.edges is None:
                raise RangeError("Polygon needs a vertex list")
            edges = np.asarray(self.edges, dtype=float).reshape(-1, 2)
            if edges.shape[0] < 3:
                raise RangeError("Polygon needs at least 3 vertices!")
            # counter-clockwise orientation
            if _signed_area(edges) < 0:
                edges = edges[::-1].copy()
            self.edges = edges

    @property
    def center(self) -> Tuple[float, float]:
        if self.kind is ShapeKind.GRATING:
            return (self.arg1[0], 0.0)
        return self.arg1

    def scaled(self, factor: float) -> 'Pattern':
        """Copy of this pattern with every length multiplied by ``factor``."""
        edges = None if self.edges is None else self.edges * factor
        return replace(self,
                       arg1=(self.arg1[0] * factor, self.arg1[1] * factor),
                       arg2=(self.arg2[0] * factor, self.arg2[1] * factor),
                       edges=edges)

    def _local(self, x, y):
        """Translate and rotate points into the shape frame."""
        cx, cy = self.center
        dx = np.asarray(x, dtype=float) - cx
        dy = np.asarray(y, dtype=float) - cy
        theta = np.deg2rad(self.angle)
        cos_t, sin_t = np.cos(theta), np.sin(theta)
        return dx * cos_t + dy * sin_t, -dx * sin_t + dy * cos_t

    def contains(self, x: Union[float, np.ndarray], y: Union[float, np.ndarray] = 0.0,
                 tol: float = 1e-12) -> Union[bool, np.ndarray]:
        """
        Test if point(s) are inside the pattern (boundary included).

        :param x: x-coordinate(s)
        :param y: y-coordinate(s), ignored for gratings
        :param tol: Relative tolerance on the boundary
        :return: Boolean or boolean array
        """
        if self.kind is ShapeKind.GRATING:
            c, w = self.arg1
            inside = np.abs(np.asarray(x, dtype=float) - c) <= w / 2.0 * (1 + tol)
            return inside if np.ndim(inside) else bool(inside)

        lx, ly = self._local(x, y)
        if self.kind is ShapeKind.RECTANGLE:
            hx, hy = self.arg2[0] / 2.0, self.arg2[1] / 2.0
            inside = (np.abs(lx) <= hx * (1 + tol)) & (np.abs(ly) <= hy * (1 + tol))
        elif self.kind in (ShapeKind.CIRCLE, ShapeKind.ELLIPSE):
            a, b = self.arg2
            inside = (lx / a) ** 2 + (ly / b) ** 2 <= 1.0 + tol
        else:
            inside = _point_in_polygon(np.atleast_1d(lx), np.atleast_1d(ly), self.edges, tol)
            inside = inside.reshape(np.shape(lx))
        return inside if np.ndim(inside) else bool(inside)

    def boundary_points(self, num_points: int = 64) -> np.ndarray:
        """
        Sample points on the pattern boundary.

        :return: Array of shape (n, 2) in the same units as the pattern
        """
        if self.kind is ShapeKind.GRATING:
            c, w = self.arg1
            return np.array([[c - w / 2.0, 0.0], [c + w / 2.0, 0.0]])

        if self.kind is ShapeKind.RECTANGLE:
            hx, hy = self.arg2[0] / 2.0, self.arg2[1] / 2.0
            local = np.array([[-hx, -hy], [hx, -hy], [hx, hy], [-hx, hy]])
            local = _densify(local, max(num_points // 4, 1))
        elif self.kind in (ShapeKind.CIRCLE, ShapeKind.ELLIPSE):
            t = np.linspace(0.0, 2.0 * np.pi, num_points, endpoint=False)
            local = np.column_stack([self.arg2[0] * np.cos(t), self.arg2[1] * np.sin(t)])
        else:
            local = _densify(self.edges, max(num_points // len(self.edges), 1))

        theta = np.deg2rad(self.angle)
        rot = np.array([[np.cos(theta), -np.sin(theta)],
                        [np.sin(theta), np.cos(theta)]])
        return local @ rot.T + np.asarray(self.center)

    def area(self) -> float:
        """Area (or width, for gratings) of the pattern."""
        if self.kind is ShapeKind.GRATING:
            return self.arg1[1]
        if self.kind is ShapeKind.RECTANGLE:
            return self.arg2[0] * self.arg2[1]
        if self.kind in (ShapeKind.CIRCLE, ShapeKind.ELLIPSE):
            return np.pi * self.arg2[0] * self.arg2[1]
        return _signed_area(self.edges)

    def describe(self) -> str:
        if self.kind is ShapeKind.GRATING:
            text = f"grating, (c, w) = ({self.arg1[0]}, {self.arg1[1]})"
        elif self.kind is ShapeKind.RECTANGLE:
            text = (f"rectangle, (c_x, w_x) = ({self.arg1[0]}, {self.arg2[0]}), "
                    f"(c_y, w_y) = ({self.arg1[1]}, {self.arg2[1]}), angle = {self.angle}")
        elif self.kind is ShapeKind.CIRCLE:
            text = f"circle, (c_x, c_y) = ({self.arg1[0]}, {self.arg1[1]}), r = {self.arg2[0]}"
        elif self.kind is ShapeKind.ELLIPSE:
            text = (f"ellipse, (c_x, a) = ({self.arg1[0]}, {self.arg2[0]}), "
                    f"(c_y, b) = ({self.arg1[1]}, {self.arg2[1]}), angle = {self.angle}")
        else:
            vertices = ", ".join(f"({x + self.arg1[0]}, {y + self.arg1[1]})" for x, y in self.edges)
            text = f"polygon, (c_x, c_y) = ({self.arg1[0]}, {self.arg1[1]}), angle = {self.angle}, vertices = {vertices}"
        if self.parent != -1:
            text += f" [contained in pattern {self.parent + 1}]"
        return text


def _signed_area(vertices: np.ndarray) -> float:
    x, y = vertices[:, 0], vertices[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def _densify(vertices: np.ndarray, per_edge: int) -> np.ndarray:
    """Insert evenly spaced points along each closed-polygon edge."""
    start = vertices
    stop = np.roll(vertices, -1, axis=0)
    t = np.arange(per_edge) / per_edge
    pts = start[:, None, :] + t[None, :, None] * (stop - start)[:, None, :]
    return pts.reshape(-1, 2)


def _point_in_polygon(x: np.ndarray, y: np.ndarray, vertices: np.ndarray, tol: float) -> np.ndarray:
    """Ray casting test; points on an edge count as inside."""
    x = x.ravel()
    y = y.ravel()
    inside = np.zeros(x.shape, dtype=bool)
    on_edge = np.zeros(x.shape, dtype=bool)
    scale = max(np.ptp(vertices[:, 0]), np.ptp(vertices[:, 1]), 1e-300)
    n = len(vertices)
    j = n - 1
    for i in range(n):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        crosses = (yi > y) != (yj > y)
        denom = yj - yi
        if abs(denom) > 0:
            x_cross = (xj - xi) * (y - yi) / denom + xi
            inside ^= crosses & (x < x_cross)
        # distance to segment for boundary points
        ex, ey = xj - xi, yj - yi
        length2 = ex * ex + ey * ey
        if length2 > 0:
            t = np.clip(((x - xi) * ex + (y - yi) * ey) / length2, 0.0, 1.0)
            dist = np.hypot(x - (xi + t * ex), y - (yi + t * ey))
            on_edge |= dist <= tol * scale
        j = i
    return inside | on_edge
