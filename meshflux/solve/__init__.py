from .options import IntegralMethod, SimulationOptions
from .cache import SolveState
from .results import FluxSpectrum
from .integrate import Axis, KGrid, chunk_bounds
from .simulation import Simulation, SimulationPlanar, SimulationGrating, SimulationPattern

__all__ = ['IntegralMethod', 'SimulationOptions', 'SolveState', 'FluxSpectrum', 'Axis', 'KGrid',
           'chunk_bounds', 'Simulation', 'SimulationPlanar', 'SimulationGrating', 'SimulationPattern']
