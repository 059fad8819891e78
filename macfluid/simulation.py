"""
simulation.py — Master Physics Loop
====================================
The complete simulation step that ties everything together.
One call to `step()` advances the fluid by `timestep` seconds.

Physics pipeline per step:
  1. Build divergence of the face velocities
  2. Solve for pressure                     (relaxation, fixed budget)
  3. Subtract the pressure gradient         (velocity becomes divergence-free)
  4. Advect density, u and v                (through the corrected velocity)
  5. Commit every quantity's next buffer

Advection of u and v reads the corrected velocity from the current buffers
while writing the next ones, so the three advections see the same field.
"""

import logging
import time

import numpy as np

from .forces import check_rect
from .grid import FluidQuantity
from .solver import (
    PRESSURE_ITERATIONS, PRESSURE_TOLERANCE, RELAX_GAUSS_SEIDEL, RELAX_JACOBI,
    apply_pressure, build_divergence, check_method, divergence, solve_pressure,
)

logger = logging.getLogger(__name__)


class FluidSolver:
    """
    2D incompressible smoke solver on a w × h MAC grid.

    Usage:
        solver = FluidSolver(128, 128, density=0.1)
        for frame in range(100):
            solver.add_inflow(0.45, 0.2, 0.15, 0.03, 1.0, 0.0, 3.0)
            solver.step(0.005)
            rgba = solver.to_image()     # Hand to an image writer
    """

    def __init__(self, w: int, h: int, density: float,
                 relaxation: str = RELAX_GAUSS_SEIDEL,
                 iterations: int = PRESSURE_ITERATIONS,
                 tolerance: float = PRESSURE_TOLERANCE):
        """
        Args:
            w, h       : Grid resolution in cells
            density    : Fluid density rho (heavier = stiffer pressure response)
            relaxation : RELAX_GAUSS_SEIDEL or RELAX_JACOBI
            iterations : Pressure iteration budget per step
            tolerance  : Pressure convergence threshold
        """
        if w <= 0 or h <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {w}x{h}")
        if density <= 0.0:
            raise ValueError(f"Fluid density must be positive, got {density}")
        if iterations <= 0:
            raise ValueError(f"Iteration budget must be positive, got {iterations}")
        if tolerance <= 0.0:
            raise ValueError(f"Tolerance must be positive, got {tolerance}")

        self.w = w
        self.h = h
        self.rho = density
        self.relaxation = check_method(relaxation)
        self.iterations = iterations
        self.tolerance = tolerance

        # Square cells, shorter side of the domain has unit length
        self.hx = 1.0 / min(w, h)

        self.density = FluidQuantity(w,     h,     0.5, 0.5, self.hx)
        self.u       = FluidQuantity(w + 1, h,     0.0, 0.5, self.hx)
        self.v       = FluidQuantity(w,     h + 1, 0.5, 0.0, self.hx)

        self.rhs      = np.zeros((h, w), dtype=np.float64)
        self.pressure = np.zeros((h, w), dtype=np.float64)
        # Jacobi needs a second pressure buffer for the synchronous update
        self.pressure_next = np.zeros((h, w), dtype=np.float64) if relaxation == RELAX_JACOBI else None

        self.frame = 0
        self.time = 0.0
        self.last_solve = None
        self.perf_log = []   # stores timing data per step

    def add_inflow(self, x: float, y: float, width: float, height: float,
                   density: float, u: float, v: float):
        """
        Inject smoke and momentum into the rectangle [x, x+width] × [y, y+height]
        (world units). Every quantity gets the same rectangle.
        """
        check_rect(x, y, x + width, y + height)
        self.density.inject_inflow(x, y, x + width, y + height, density)
        self.u.inject_inflow(x, y, x + width, y + height, u)
        self.v.inject_inflow(x, y, x + width, y + height, v)

    def project(self, timestep: float):
        """Make the velocity field divergence-free. Returns the solve result."""
        u = self.u.values
        v = self.v.values

        build_divergence(u, v, self.hx, self.rhs)
        result = solve_pressure(
            self.rhs, self.pressure,
            scale=timestep / (self.rho * self.hx * self.hx),
            iterations=self.iterations,
            tolerance=self.tolerance,
            method=self.relaxation,
            scratch=self.pressure_next,
        )
        if result.converged:
            logger.debug("Exiting solver after %d iterations, maximum change is %g",
                         result.iterations, result.max_delta)
        else:
            logger.warning("Exceeded budget of %d iterations, maximum change was %g",
                           result.iterations, result.max_delta)

        apply_pressure(u, v, self.pressure, timestep / (self.rho * self.hx))
        self.last_solve = result
        return result

    def advect(self, timestep: float):
        """Advect all quantities through the current velocity, then commit."""
        self.density.advect(timestep, self.u, self.v)
        self.u.advect(timestep, self.u, self.v)
        self.v.advect(timestep, self.u, self.v)

        self.density.commit()
        self.u.commit()
        self.v.commit()

    def step(self, timestep: float) -> dict:
        """
        Advance the simulation by one timestep.

        Returns performance metrics dict for benchmarking.
        """
        if timestep < 0.0:
            raise ValueError(f"Timestep must not be negative, got {timestep}")

        t_total_start = time.perf_counter()

        # ── Step 1-3: Pressure projection ──────────────────────────────────
        t0 = time.perf_counter()
        result = self.project(timestep)
        t_project = (time.perf_counter() - t0) * 1000
        projected_divergence = self.max_divergence()

        # ── Step 4-5: Advection + commit ───────────────────────────────────
        t0 = time.perf_counter()
        self.advect(timestep)
        t_advect = (time.perf_counter() - t0) * 1000

        # ── Frame bookkeeping ──────────────────────────────────────────────
        self.frame += 1
        self.time += timestep
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "frame"           : self.frame,
            "time"            : self.time,
            "total_ms"        : t_total,
            "project_ms"      : t_project,
            "advect_ms"       : t_advect,
            "converged"       : result.converged,
            "iterations"      : result.iterations,
            "max_delta"       : result.max_delta,
            "divergence_max"  : projected_divergence,    # before advection
            "density_total"   : float(self.density.values.sum()),
        }
        self.perf_log.append(metrics)
        return metrics

    def divergence(self) -> np.ndarray:
        """(h, w) divergence of the current velocity field."""
        return divergence(self.u.values, self.v.values, self.hx)

    def max_divergence(self) -> float:
        return float(np.abs(self.divergence()).max())

    def to_image(self) -> np.ndarray:
        """
        Density as an (h, w, 4) uint8 RGBA image.

        Density 0 is white, density 1 is black; alpha is always opaque.
        """
        shade = np.trunc((1.0 - self.density.values) * 255.0)
        shade = np.clip(shade, 0, 255).astype(np.uint8)

        rgba = np.empty((self.h, self.w, 4), dtype=np.uint8)
        rgba[..., :3] = shade[..., np.newaxis]
        rgba[..., 3] = 0xFF
        return rgba

    def snapshot(self) -> dict:
        """Copies of the current fields, ready to be saved as .npy files."""
        return {
            "frame"     : self.frame,
            "density"   : self.density.values.copy(),
            "velocity_u": self.u.values.copy(),
            "velocity_v": self.v.values.copy(),
            "pressure"  : self.pressure.copy(),
            "divergence": self.divergence(),
        }

    def reset(self):
        """Zero out all fields. Useful for running multiple simulations."""
        for quantity in (self.density, self.u, self.v):
            quantity.reset()
        for arr in (self.rhs, self.pressure, self.pressure_next):
            if arr is not None:
                arr[:] = 0.0
        self.frame = 0
        self.time = 0.0
        self.last_solve = None
        self.perf_log = []

    def __repr__(self):
        d = self.density.values
        max_vel = max(np.abs(self.u.values).max(), np.abs(self.v.values).max())
        return (
            f"FluidSolver({self.w}x{self.h}, rho={self.rho}, {self.relaxation})\n"
            f"  density  : max={d.max():.4f}, sum={d.sum():.2f}\n"
            f"  velocity : max_component={max_vel:.4f}\n"
            f"  divergence: max={self.max_divergence():.6f} (target: ~0)"
        )
