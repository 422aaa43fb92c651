import os
import sys

import pytest

# Ensure repository root is on sys.path so 'meshflux' imports work when running tests
_HERE = os.path.dirname(__file__)
_ROOT = os.path.abspath(os.path.join(_HERE, '..'))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)


@pytest.fixture
def write_table(tmp_path):
    """Write a whitespace separated permittivity table and return its path."""
    def _write(name, rows):
        path = tmp_path / name
        path.write_text("\n".join(" ".join(str(v) for v in row) for row in rows) + "\n")
        return str(path)
    return _write
