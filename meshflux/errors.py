"""
Exception hierarchy for meshflux.

Every error raised on purpose by the package derives from MeshFluxError and
from the builtin exception a caller would naturally catch, so
``except KeyError`` keeps working for unknown names and ``except ValueError``
for bad arguments.
"""


class MeshFluxError(Exception):
    """Base class for all meshflux errors."""


class NameNotFoundError(MeshFluxError, KeyError):
    """A material or layer name is not registered."""

    def __str__(self):
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ''


class NameInUseError(MeshFluxError, KeyError):
    """A material or layer name is already registered."""

    def __str__(self):
        return str(self.args[0]) if self.args else ''


class RangeError(MeshFluxError, ValueError):
    """An index or count is outside its allowed range."""


class ConfigurationError(MeshFluxError, ValueError):
    """The simulation is not configured for the requested operation."""


class MalformedInputError(MeshFluxError, ValueError):
    """Input data (a permittivity table, a frequency list) is inconsistent."""


__all__ = [
    'MeshFluxError',
    'NameNotFoundError',
    'NameInUseError',
    'RangeError',
    'ConfigurationError',
    'MalformedInputError',
]
