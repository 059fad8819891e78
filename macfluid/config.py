"""
config.py — Run Configuration
==============================
Everything the driver loop needs to run a simulation, in one place.

The defaults reproduce the classic plume demo: a 128×128 box, a thin
inflow strip near the top edge pushing smoke along +y, 8 simulated seconds
rendered every 4 steps.
"""

from dataclasses import dataclass, asdict

from .solver import PRESSURE_ITERATIONS, PRESSURE_TOLERANCE, RELAX_GAUSS_SEIDEL, check_method


@dataclass
class SimulationConfig:
    # Grid
    width: int = 128
    height: int = 128
    density: float = 0.1          # fluid density rho

    # Time
    timestep: float = 0.005
    duration: float = 8.0         # total simulated seconds
    steps_per_frame: int = 4      # solver steps between exported frames

    # Inflow rectangle (world units, shorter domain side = 1.0) and values
    inflow_x: float = 0.45
    inflow_y: float = 0.2
    inflow_width: float = 0.15
    inflow_height: float = 0.03
    inflow_density: float = 1.0
    inflow_u: float = 0.0
    inflow_v: float = 3.0

    # Pressure solve
    relaxation: str = RELAX_GAUSS_SEIDEL
    pressure_iterations: int = PRESSURE_ITERATIONS
    pressure_tolerance: float = PRESSURE_TOLERANCE

    def validate(self) -> "SimulationConfig":
        """Raise ValueError on any setting the solver can't run with."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Grid size must be positive, got {self.width}x{self.height}")
        if self.density <= 0.0:
            raise ValueError(f"Fluid density must be positive, got {self.density}")
        if self.timestep <= 0.0:
            raise ValueError(f"Timestep must be positive, got {self.timestep}")
        if self.duration < 0.0:
            raise ValueError(f"Duration must not be negative, got {self.duration}")
        if self.steps_per_frame <= 0:
            raise ValueError(f"steps_per_frame must be positive, got {self.steps_per_frame}")
        if self.inflow_width < 0.0 or self.inflow_height < 0.0:
            raise ValueError(
                f"Inflow size must not be negative, got {self.inflow_width}x{self.inflow_height}"
            )
        if self.pressure_iterations <= 0:
            raise ValueError(f"pressure_iterations must be positive, got {self.pressure_iterations}")
        if self.pressure_tolerance <= 0.0:
            raise ValueError(f"pressure_tolerance must be positive, got {self.pressure_tolerance}")
        check_method(self.relaxation)
        return self

    @property
    def inflow(self) -> tuple:
        """Arguments for FluidSolver.add_inflow()."""
        return (self.inflow_x, self.inflow_y, self.inflow_width, self.inflow_height,
                self.inflow_density, self.inflow_u, self.inflow_v)

    def to_dict(self) -> dict:
        return asdict(self)
