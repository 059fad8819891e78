"""
grid.py — Staggered (MAC) Grid Quantities
==========================================
The foundation of the entire simulation.

Every simulated field is a FluidQuantity: a 2D array of samples plus the
sub-cell offset at which those samples sit. On a MAC grid with w × h cells:

  - Density `d` lives at CELL CENTERS   → w   × h   samples, offset (0.5, 0.5)
  - Velocity `u` lives on X-FACES       → w+1 × h   samples, offset (0.0, 0.5)
  - Velocity `v` lives on Y-FACES       → w   × h+1 samples, offset (0.5, 0.0)

Why staggered? It prevents the "checkerboard" pressure instability
that appears on collocated grids.

Arrays are row-major: array[y, x], shape (rows, cols) = (h, w).
"""

import numpy as np

from .advect import advect_quantity
from .forces import apply_inflow
from .interpolate import bilinear, bicubic


class DoubleBuffer:
    """
    Two equally sized arrays, "current" and "next".

    Readers use read(); writers fill write_next(); commit() swaps the two
    without copying. commit() is the only way to change which array is
    current, so a sweep can never read values it wrote itself.
    """

    def __init__(self, shape: tuple, dtype=np.float64):
        self._current = np.zeros(shape, dtype=dtype)
        self._next = np.zeros(shape, dtype=dtype)

    @property
    def shape(self) -> tuple:
        return self._current.shape

    def read(self) -> np.ndarray:
        return self._current

    def write_next(self) -> np.ndarray:
        return self._next

    def commit(self):
        self._current, self._next = self._next, self._current


class FluidQuantity:
    """
    One scalar field on the staggered grid (density, u or v).

    Owned exclusively by a FluidSolver; allocated zeroed at construction.
    """

    def __init__(self, w: int, h: int, ox: float, oy: float, hx: float):
        """
        Args:
            w, h   : Sample counts along x (columns) and y (rows)
            ox, oy : Offset of the first sample in grid units
            hx     : Cell spacing in world units
        """
        if w <= 0 or h <= 0:
            raise ValueError(f"Quantity dimensions must be positive, got {w}x{h}")
        if hx <= 0.0:
            raise ValueError(f"Cell spacing must be positive, got {hx}")

        self.w = w
        self.h = h
        self.ox = ox
        self.oy = oy
        self.hx = hx
        self.buffer = DoubleBuffer((h, w))

    @property
    def shape(self) -> tuple:
        return (self.h, self.w)

    @property
    def values(self) -> np.ndarray:
        """The current samples, shape (h, w)."""
        return self.buffer.read()

    def at(self, x: int, y: int) -> float:
        """Current sample at integer column x, row y (bounds-checked)."""
        if not (0 <= x < self.w and 0 <= y < self.h):
            raise IndexError(f"Sample ({x}, {y}) outside {self.w}x{self.h} quantity")
        return float(self.buffer.read()[y, x])

    def fill(self, values):
        """Overwrite the current samples (scalar or (h, w) array)."""
        self.buffer.read()[:] = values

    def reset(self):
        """Zero both buffers."""
        self.buffer.read()[:] = 0.0
        self.buffer.write_next()[:] = 0.0

    def sample(self, x, y):
        """
        Bilinear interpolation at grid coordinates (x, y).

        The quantity's own offset is removed first, then the position is
        clamped to the sample range (edge-clamped outside the domain).
        """
        return bilinear(self.buffer.read(), np.asarray(x) - self.ox, np.asarray(y) - self.oy)

    def sample_cubic(self, x, y):
        """Clamped Catmull-Rom interpolation at grid coordinates (x, y)."""
        return bicubic(self.buffer.read(), np.asarray(x) - self.ox, np.asarray(y) - self.oy)

    def advect(self, timestep: float, u: "FluidQuantity", v: "FluidQuantity"):
        """Semi-Lagrangian advection into the next buffer."""
        advect_quantity(self, timestep, u, v)

    def inject_inflow(self, x0: float, y0: float, x1: float, y1: float, value: float):
        """
        Raise samples inside [x0, x1] × [y0, y1] (world units) towards
        `value` with a smooth falloff. Writes the current buffer.
        """
        apply_inflow(self.buffer.read(), self.ox, self.oy, self.hx,
                     x0, y0, x1, y1, value)

    def commit(self):
        self.buffer.commit()

    def __repr__(self):
        d = self.buffer.read()
        return (
            f"FluidQuantity({self.w}x{self.h}, offset=({self.ox}, {self.oy}), "
            f"min={d.min():.4f}, max={d.max():.4f})"
        )
