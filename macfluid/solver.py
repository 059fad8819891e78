"""
solver.py — Pressure Projection
================================
The pressure projection step enforces INCOMPRESSIBILITY:
  div(v) = 0 everywhere

Before advection the velocity field is generally NOT divergence-free
(fluid "piles up" in some cells). We fix this by:
  1. Computing the divergence of the current velocity field
  2. Solving the Poisson equation for pressure
  3. Subtracting the pressure gradient from the face velocities
  4. Zeroing every velocity component that points through a wall

The discrete system is the 5-point Laplacian. At the domain edge a missing
neighbour drops out of both the diagonal and the off-diagonal sum, which is
a zero-gradient (Neumann) condition on pressure.

Two relaxation strategies solve it, picked by name:
  - GAUSS_SEIDEL : in-place, row-major sweep; each update sees the values
                   already updated earlier in the same sweep. Sequential,
                   so the sweep is compiled with numba.
  - JACOBI       : every new value comes from the previous iterate only
                   (numpy-vectorised), then the result is copied back.
                   Order independent, slower to converge.

Neither strategy fails when it runs out of iterations: the last iterate is
used as-is and the caller is told via PressureSolveResult.
"""

from dataclasses import dataclass

import numpy as np
from numba import njit


# ── Relaxation strategy switch ────────────────────────────────────────────────
RELAX_GAUSS_SEIDEL = "GAUSS_SEIDEL"
RELAX_JACOBI       = "JACOBI"

PRESSURE_ITERATIONS = 600     # iteration budget per solve
PRESSURE_TOLERANCE  = 1e-5    # stop once no cell changes by more than this


@dataclass(frozen=True)
class PressureSolveResult:
    """Outcome of one pressure solve."""
    converged: bool
    iterations: int
    max_delta: float
    method: str

    def as_dict(self) -> dict:
        return {
            "converged" : self.converged,
            "iterations": self.iterations,
            "max_delta" : self.max_delta,
            "method"    : self.method,
        }


def build_divergence(u: np.ndarray, v: np.ndarray, hx: float, out: np.ndarray) -> np.ndarray:
    """
    Negated divergence of the face velocities, per cell.

      out[y, x] = -(u[y, x+1] - u[y, x] + v[y+1, x] - v[y, x]) / hx

    Args:
        u   : (h, w+1) horizontal face velocities
        v   : (h+1, w) vertical face velocities
        hx  : Cell spacing
        out : (h, w) right-hand-side buffer, overwritten

    Returns: out
    """
    scale = 1.0 / hx
    out[:] = -scale * (u[:, 1:] - u[:, :-1] + v[1:, :] - v[:-1, :])
    return out


def neighbour_count(shape: tuple) -> np.ndarray:
    """Number of in-domain axis neighbours of every cell (0 to 4)."""
    count = np.zeros(shape, dtype=np.float64)
    count[:, 1:] += 1.0
    count[:, :-1] += 1.0
    count[1:, :] += 1.0
    count[:-1, :] += 1.0
    return count


@njit(cache=True)
def _gauss_seidel_sweep(p, rhs, scale):
    """One in-place row-major sweep. Returns the largest change."""
    h, w = p.shape
    max_delta = 0.0

    for y in range(h):
        for x in range(w):
            diag = 0.0
            off_diag = 0.0

            if x > 0:
                diag += scale
                off_diag -= scale * p[y, x - 1]
            if y > 0:
                diag += scale
                off_diag -= scale * p[y - 1, x]
            if x < w - 1:
                diag += scale
                off_diag -= scale * p[y, x + 1]
            if y < h - 1:
                diag += scale
                off_diag -= scale * p[y + 1, x]

            # A single isolated cell has no equation to relax
            if diag == 0.0:
                continue

            new_p = (rhs[y, x] - off_diag) / diag
            delta = abs(p[y, x] - new_p)
            if delta > max_delta:
                max_delta = delta
            p[y, x] = new_p

    return max_delta


def relax_gauss_seidel(pressure: np.ndarray, rhs: np.ndarray, scale: float,
                       scratch: np.ndarray = None, diag: np.ndarray = None) -> tuple:
    """
    Gauss-Seidel relaxation, updates `pressure` in place.

    Returns: (pressure, max_delta)
    """
    max_delta = _gauss_seidel_sweep(pressure, rhs, scale)
    return pressure, float(max_delta)


def relax_jacobi(pressure: np.ndarray, rhs: np.ndarray, scale: float,
                 scratch: np.ndarray = None, diag: np.ndarray = None) -> tuple:
    """
    Jacobi relaxation: compute the next iterate into `scratch` from
    `pressure` only, then copy it back.

    `diag` is scale * neighbour_count(shape); solve_pressure builds it once
    per solve so a sweep allocates nothing.

    Returns: (pressure, max_delta)
    """
    if scratch is None:
        scratch = np.empty_like(pressure)
    if diag is None:
        diag = scale * neighbour_count(pressure.shape)

    # Nothing is coupled on a 1x1 grid or at zero scale
    if not diag.any():
        return pressure, 0.0

    # Sum of the in-domain neighbours, via slicing
    scratch.fill(0.0)
    scratch[:, 1:]  += pressure[:, :-1]
    scratch[:, :-1] += pressure[:, 1:]
    scratch[1:, :]  += pressure[:-1, :]
    scratch[:-1, :] += pressure[1:, :]

    # newP = (rhs - offDiag) / diag  with  offDiag = -scale * neighbours
    scratch *= scale
    scratch += rhs
    scratch /= diag

    np.subtract(pressure, scratch, out=pressure)
    max_delta = float(max(pressure.max(), -pressure.min()))
    np.copyto(pressure, scratch)
    return pressure, max_delta


RELAXATION = {
    RELAX_GAUSS_SEIDEL: relax_gauss_seidel,
    RELAX_JACOBI      : relax_jacobi,
}


def check_method(method: str) -> str:
    if method not in RELAXATION:
        raise ValueError(
            f"Unknown relaxation: {method}. Use '{RELAX_GAUSS_SEIDEL}' or '{RELAX_JACOBI}'."
        )
    return method


def solve_pressure(rhs: np.ndarray, pressure: np.ndarray, scale: float,
                   iterations: int = PRESSURE_ITERATIONS,
                   tolerance: float = PRESSURE_TOLERANCE,
                   method: str = RELAX_GAUSS_SEIDEL,
                   scratch: np.ndarray = None) -> PressureSolveResult:
    """
    Relax the pressure Poisson equation until no cell changes by more than
    `tolerance`, or until the iteration budget is spent.

    Args:
        rhs        : (h, w) negated divergence (see build_divergence)
        pressure   : (h, w) initial guess, updated in place
        scale      : dt / (rho * hx²), coupling between neighbours
        iterations : Iteration budget
        tolerance  : Convergence threshold on the max per-cell change
        method     : RELAX_GAUSS_SEIDEL or RELAX_JACOBI
        scratch    : (h, w) second pressure buffer for Jacobi

    Returns:
        PressureSolveResult. iterations counts completed sweeps.
    """
    relax = RELAXATION[check_method(method)]
    if iterations <= 0:
        raise ValueError(f"Iteration budget must be positive, got {iterations}")
    if tolerance <= 0.0:
        raise ValueError(f"Tolerance must be positive, got {tolerance}")

    diag = None
    if method == RELAX_JACOBI:
        diag = scale * neighbour_count(pressure.shape)
        if scratch is None:
            scratch = np.empty_like(pressure)

    max_delta = 0.0
    for sweep in range(1, iterations + 1):
        _, max_delta = relax(pressure, rhs, scale, scratch, diag)
        if max_delta < tolerance:
            return PressureSolveResult(True, sweep, max_delta, method)

    return PressureSolveResult(False, iterations, max_delta, method)


def apply_pressure(u: np.ndarray, v: np.ndarray, pressure: np.ndarray, scale: float):
    """
    Subtract the pressure gradient from the face velocities, then enforce
    the no-flow condition on every wall.

    Each cell pushes its pressure onto its four faces: minus on the
    left/bottom face, plus on the right/top face.

    Args:
        u, v     : Face velocity arrays, modified in place
        pressure : (h, w) pressure field
        scale    : dt / (rho * hx)
    """
    delta = scale * pressure

    u[:, :-1] -= delta
    u[:, 1:]  += delta
    v[:-1, :] -= delta
    v[1:, :]  += delta

    # Normal velocity at walls = 0 (fluid can't pass through the box)
    u[:, 0]  = 0.0
    u[:, -1] = 0.0
    v[0, :]  = 0.0
    v[-1, :] = 0.0


def divergence(u: np.ndarray, v: np.ndarray, hx: float) -> np.ndarray:
    """
    Divergence of the face velocity field per cell.
    For an incompressible fluid this should be ~0 everywhere.
    """
    return (u[:, 1:] - u[:, :-1] + v[1:, :] - v[:-1, :]) / hx
