import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from meshflux.solve import FluxSpectrum


def test_spectrum_addition_and_iteration():
    a = FluxSpectrum([1.0, 2.0], [0.5, 1.5])
    b = FluxSpectrum([1.0, 2.0], [0.25, 0.5])
    total = a + b
    np.testing.assert_allclose(total.phi, [0.75, 2.0])
    assert list(total) == [(1.0, 0.75), (2.0, 2.0)]
    with pytest.raises(ValueError):
        a + FluxSpectrum([1.0, 3.0], [0.0, 0.0])
    with pytest.raises(ValueError):
        FluxSpectrum([1.0, 2.0], [1.0])


def test_to_dataframe():
    df = FluxSpectrum([1.0, 2.0, 3.0], [0.1, 0.2, 0.3]).to_dataframe()
    assert list(df.columns) == ['omega', 'phi']
    assert df['phi'].iloc[-1] == pytest.approx(0.3)


def test_plot_returns_axes():
    ax = FluxSpectrum([1.0, 2.0, 3.0], [0.1, 0.2, 0.3]).plot(logy=True, label='emission')
    assert ax.get_xlabel() == 'omega (rad/s)'
    assert ax.get_yscale() == 'log'
