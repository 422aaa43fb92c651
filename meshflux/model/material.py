"""
Frequency-sampled permittivity of a single material.
"""
from enum import Enum
from typing import Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

from meshflux.errors import ConfigurationError, MalformedInputError


class EpsilonType(Enum):
    SCALAR = 'scalar'
    DIAGONAL = 'diagonal'
    TENSOR = 'tensor'

    @property
    def width(self) -> int:
        """Number of real values per frequency sample."""
        return {'scalar': 2, 'diagonal': 6, 'tensor': 10}[self.value]

    @classmethod
    def parse(cls, value: Union[str, 'EpsilonType']) -> 'EpsilonType':
        if isinstance(value, EpsilonType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                "Please choose 'type' from 'scalar', 'diagonal' or 'tensor'!") from None


class Material:
    """
    Permittivity of a material sampled on a list of angular frequencies.

    Values are stored as real/imaginary pairs with the imaginary part negated
    with respect to the file convention, i.e. a lossy material has a negative
    imaginary permittivity here.

    :param name: Unique material name
    :param omega: Angular frequencies (rad/s), one per sample
    :param values: Array of shape (n_omega, 2), (n_omega, 6) or (n_omega, 10)
    :param eps_type: One of EpsilonType or 'scalar' / 'diagonal' / 'tensor'
    """
    def __init__(self, name: str, omega: ArrayLike, values: ArrayLike,
                 eps_type: Union[str, EpsilonType] = EpsilonType.SCALAR):
        self.name = name
        self.omega = np.asarray(omega, dtype=float)
        if self.omega.ndim != 1 or self.omega.size == 0:
            raise MalformedInputError(f"{name}: omega must be a non-empty 1D array")
        self.eps_type = EpsilonType.SCALAR
        self.values = np.zeros((self.omega.size, 2))
        self.set_epsilon(values, eps_type)

    @property
    def num_of_omega(self) -> int:
        return int(self.omega.size)

    @property
    def is_tensor(self) -> bool:
        return self.eps_type is EpsilonType.TENSOR

    def set_epsilon(self, values: ArrayLike, eps_type: Union[str, EpsilonType]):
        """
        Replace the permittivity samples, keeping the frequency list.

        :param values: Array of shape (n_omega, width) for the given type
        :param eps_type: New permittivity type
        """
        eps_type = EpsilonType.parse(eps_type)
        values = np.array(values, dtype=float)
        if values.ndim == 1 and eps_type is EpsilonType.SCALAR and values.size == 2 * self.num_of_omega:
            values = values.reshape(self.num_of_omega, 2)
        if values.shape != (self.num_of_omega, eps_type.width):
            raise MalformedInputError(
                f"{self.name}: expected values of shape ({self.num_of_omega}, {eps_type.width}) "
                f"for type '{eps_type.value}', got {values.shape}")
        self.values = values
        self.eps_type = eps_type

    def epsilon_at(self, index: int) -> np.ndarray:
        """Raw real/imaginary sample at a frequency index."""
        return self.values[index]

    def tensor_at(self, index: int) -> np.ndarray:
        """Canonical (xx, xy, yx, yy, zz) complex tensor at a frequency index."""
        return to_tensor(self.values[index], self.eps_type)

    def __eq__(self, other):
        if not isinstance(other, Material):
            return NotImplemented
        return self.name == other.name and self.eps_type == other.eps_type \
            and np.array_equal(self.omega, other.omega) and np.array_equal(self.values, other.values)

    __hash__ = object.__hash__

    def __str__(self):
        return f'Material {self.name} ({self.eps_type.value}, {self.num_of_omega} frequencies)'


def to_tensor(sample: ArrayLike, eps_type: EpsilonType) -> np.ndarray:
    """
    Convert one real/imaginary sample into the five complex components
    (xx, xy, yx, yy, zz).
    """
    v = np.asarray(sample, dtype=float)
    c = v[0::2] + 1j * v[1::2]
    if eps_type is EpsilonType.SCALAR:
        return np.array([c[0], 0, 0, c[0], c[0]], dtype=complex)
    if eps_type is EpsilonType.DIAGONAL:
        return np.array([c[0], 0, 0, c[1], c[2]], dtype=complex)
    return c.astype(complex)


def hermitian_part_imag(tensor: ArrayLike) -> Tuple[complex, complex, complex, complex, complex]:
    """
    Components of (eps - eps^H) / 2i for a (xx, xy, yx, yy, zz) tensor.

    The off-diagonal entries mix the xy and yx components so that the
    absorption tensor stays Hermitian.
    """
    xx, xy, yx, yy, zz = np.asarray(tensor, dtype=complex)
    return (
        xx.imag,
        (xy - np.conj(yx)) / 2.0 / 1j,
        (yx - np.conj(xy)) / 2.0 / 1j,
        yy.imag,
        zz.imag,
    )
