"""
macfluid/ — 2D Smoke Physics Package
=====================================
Exports the main interfaces used by the driver, the viewer and the
frame exporter.

visualizer.py imports      : FluidSolver, SimulationConfig
frame_pipeline.py imports  : FluidSolver → step(), to_image(), snapshot()  (save_fields)
"""

from .config import SimulationConfig
from .forces import cubic_pulse
from .grid import DoubleBuffer, FluidQuantity
from .simulation import FluidSolver
from .solver import PressureSolveResult, RELAX_GAUSS_SEIDEL, RELAX_JACOBI

__all__ = [
    "DoubleBuffer", "FluidQuantity", "FluidSolver", "PressureSolveResult",
    "RELAX_GAUSS_SEIDEL", "RELAX_JACOBI", "SimulationConfig", "cubic_pulse",
]
