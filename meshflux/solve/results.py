import numpy as np
from dataclasses import dataclass
from typing import Optional


@dataclass
class FluxSpectrum:
    """
    Flux spectrum of a simulation: one value of Phi per angular frequency.

    :param omega: Angular frequencies (rad/s)
    :param phi: Accumulated flux per frequency
    """
    omega: np.ndarray
    phi: np.ndarray

    def __post_init__(self):
        self.omega = np.asarray(self.omega, dtype=float)
        self.phi = np.asarray(self.phi, dtype=float)
        if self.omega.shape != self.phi.shape:
            raise ValueError(f"omega and phi must have the same shape, got {self.omega.shape} and {self.phi.shape}")

    def __len__(self):
        return self.omega.size

    def __iter__(self):
        return iter(zip(self.omega, self.phi))

    def __add__(self, other: 'FluxSpectrum') -> 'FluxSpectrum':
        """Sum of two partial spectra over the same frequencies (e.g. chunk results)."""
        if not np.array_equal(self.omega, other.omega):
            raise ValueError("Cannot add spectra sampled on different frequencies")
        return FluxSpectrum(self.omega, self.phi + other.phi)

    def to_dataframe(self):
        """Return a pandas DataFrame with 'omega' and 'phi' columns."""
        import pandas as pd
        return pd.DataFrame({'omega': self.omega, 'phi': self.phi})

    def plot(self, ax=None, show: bool = False, logy: bool = False, label: Optional[str] = None):
        """Quick plot of Phi against omega."""
        import matplotlib.pyplot as plt  # local import
        if ax is None:
            fig, ax = plt.subplots()
        ax.plot(self.omega, self.phi, label=label)
        ax.set_xlabel('omega (rad/s)')
        ax.set_ylabel('Phi')
        if logy:
            ax.set_yscale('log')
        if label is not None:
            ax.legend()
        if show:
            plt.show()
        return ax
