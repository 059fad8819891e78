"""
forces.py — Inflow Sources
===========================
Injects smoke and momentum into the grid each frame.

A hard rectangular source leaves visible seams in the smoke and kicks the
velocity field with a step discontinuity. Instead the injected value is
shaped by a "cubic pulse" (smoothstep) falloff:

  pulse(d) = 1 - d²·(3 - 2d)     for |d| <= 1
           = 0                   for |d| >= 1

where d is the normalised distance from the centre of the rectangle
(d = 1 on the inscribed ellipse).

A sample is only overwritten when the new magnitude is larger than what it
already holds, so a source that fires every frame tops the field up rather
than resetting it.
"""

import numpy as np


def cubic_pulse(x):
    """
    Smooth bump: 1 at x=0, 0 for |x| >= 1, monotone in between.

    Accepts scalars or numpy arrays.
    """
    x = np.minimum(np.abs(x), 1.0)
    return 1.0 - x * x * (3.0 - 2.0 * x)


def check_rect(x0: float, y0: float, x1: float, y1: float):
    """Reject rectangles whose corners are given in the wrong order."""
    if x1 < x0:
        raise ValueError(f"Inflow rectangle has x1 < x0 ({x1} < {x0})")
    if y1 < y0:
        raise ValueError(f"Inflow rectangle has y1 < y0 ({y1} < {y0})")


def apply_inflow(field: np.ndarray, ox: float, oy: float, hx: float,
                 x0: float, y0: float, x1: float, y1: float, value: float):
    """
    Write a smoothly fading inflow into `field` (modified in-place).

    Args:
        field          : (rows, cols) sample array of one quantity
        ox, oy         : Sample offset of the quantity in grid units
        hx             : Cell spacing (world units per grid unit)
        x0, y0, x1, y1 : Inflow rectangle in world units
        value          : Peak value at the centre of the rectangle

    Only samples whose world position lies inside the rectangle are touched.
    """
    check_rect(x0, y0, x1, y1)
    if x1 == x0 or y1 == y0:
        return

    h, w = field.shape

    # Index range of samples at (i + ox) * hx inside [x0, x1], clamped to
    # this field's own extent in each axis
    ix0 = max(int(np.ceil(x0 / hx - ox)), 0)
    ix1 = min(int(np.floor(x1 / hx - ox)), w - 1)
    iy0 = max(int(np.ceil(y0 / hx - oy)), 0)
    iy1 = min(int(np.floor(y1 / hx - oy)), h - 1)
    if ix0 > ix1 or iy0 > iy1:
        return

    px = (np.arange(ix0, ix1 + 1, dtype=np.float64) + ox) * hx
    py = (np.arange(iy0, iy1 + 1, dtype=np.float64) + oy) * hx
    px, py = np.meshgrid(px, py)

    dist = np.hypot(
        (2.0 * px - (x0 + x1)) / (x1 - x0),
        (2.0 * py - (y0 + y1)) / (y1 - y0),
    )
    injected = cubic_pulse(dist) * value

    region = field[iy0:iy1 + 1, ix0:ix1 + 1]
    stronger = np.abs(region) < np.abs(injected)
    region[stronger] = injected[stronger]
