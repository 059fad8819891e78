"""
Tests for the cubic pulse falloff and inflow injection.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from macfluid.forces import apply_inflow, cubic_pulse
from macfluid.grid import FluidQuantity
from macfluid.simulation import FluidSolver


class TestCubicPulse:

    def test_peak_and_support(self):
        assert cubic_pulse(0.0) == 1.0
        assert cubic_pulse(1.0) == 0.0
        assert cubic_pulse(-1.0) == 0.0
        assert cubic_pulse(2.5) == 0.0
        assert cubic_pulse(-7.0) == 0.0

    def test_symmetric(self):
        x = np.linspace(0.0, 1.5, 31)
        assert np.array_equal(cubic_pulse(x), cubic_pulse(-x))

    def test_monotone_in_distance(self):
        x = np.linspace(0.0, 1.5, 301)
        values = cubic_pulse(x)
        assert np.all(np.diff(values) <= 0.0)

    def test_range(self):
        values = cubic_pulse(np.linspace(-2.0, 2.0, 101))
        assert values.min() >= 0.0
        assert values.max() <= 1.0


class TestInflow:
    """Test FluidQuantity.inject_inflow."""

    @pytest.fixture
    def quantity(self):
        """8×8 cell-centred quantity on a unit square."""
        return FluidQuantity(8, 8, 0.5, 0.5, 1.0 / 8)

    def test_only_cells_inside_rect(self, quantity):
        quantity.inject_inflow(0.0, 0.0, 0.5, 0.5, 1.0)
        d = quantity.values

        # Corners of the rectangle lie outside the inscribed ellipse
        assert d[0, 0] == 0.0
        assert np.all(d[1:3, 1:3] > 0.0)
        assert np.all(d[4:, :] == 0.0)
        assert np.all(d[:, 4:] == 0.0)

    def test_peak_bounded_by_value(self, quantity):
        quantity.inject_inflow(0.0, 0.0, 1.0, 1.0, 0.8)
        assert quantity.values.max() <= 0.8
        assert quantity.values.min() >= 0.0

    def test_repeated_injection_never_decreases(self, quantity):
        quantity.inject_inflow(0.2, 0.2, 0.8, 0.8, 1.0)
        first = quantity.values.copy()

        quantity.inject_inflow(0.2, 0.2, 0.8, 0.8, 1.0)
        assert np.array_equal(quantity.values, first)

        quantity.inject_inflow(0.2, 0.2, 0.8, 0.8, 0.4)
        assert np.array_equal(quantity.values, first)

        quantity.inject_inflow(0.0, 0.0, 1.0, 1.0, 0.5)
        assert np.all(quantity.values >= first)

    def test_stronger_negative_value_replaces(self, quantity):
        quantity.fill(0.1)
        quantity.inject_inflow(0.25, 0.25, 0.75, 0.75, -2.0)
        d = quantity.values
        assert d[3, 3] < -0.1
        assert d[0, 0] == 0.1

    def test_uses_own_width_for_horizontal_range(self):
        """A wide, short quantity must receive inflow past column h."""
        quantity = FluidQuantity(8, 2, 0.5, 0.5, 0.125)
        quantity.inject_inflow(0.0, 0.0, 1.0, 0.25, 1.0)
        assert np.all(quantity.values[:, 2:6] > 0.0)

    def test_writes_current_buffer_only(self, quantity):
        quantity.inject_inflow(0.0, 0.0, 1.0, 1.0, 1.0)
        assert quantity.values.max() > 0.0
        assert np.all(quantity.buffer.write_next() == 0.0)

    def test_inverted_rect_rejected(self, quantity):
        with pytest.raises(ValueError):
            quantity.inject_inflow(0.5, 0.0, 0.2, 1.0, 1.0)
        with pytest.raises(ValueError):
            quantity.inject_inflow(0.0, 0.5, 1.0, 0.2, 1.0)

    def test_empty_rect_is_noop(self, quantity):
        quantity.inject_inflow(0.3, 0.3, 0.3, 0.6, 1.0)
        assert np.all(quantity.values == 0.0)

    def test_rect_outside_domain_is_noop(self, quantity):
        quantity.inject_inflow(2.0, 2.0, 3.0, 3.0, 1.0)
        assert np.all(quantity.values == 0.0)

    def test_apply_inflow_on_plain_array(self):
        field = np.zeros((4, 4))
        apply_inflow(field, 0.5, 0.5, 0.25, 0.0, 0.0, 1.0, 1.0, 1.0)
        assert np.allclose(field, field[:, ::-1])
        assert np.allclose(field, field.T)


class TestSolverInflow:

    def test_forwards_to_every_quantity(self):
        solver = FluidSolver(16, 16, 1.0)
        solver.add_inflow(0.25, 0.25, 0.5, 0.5, 1.0, 2.0, -3.0)

        assert solver.density.values.max() > 0.0
        assert solver.u.values.max() > 0.0
        assert solver.v.values.min() < 0.0

    def test_negative_size_rejected(self):
        solver = FluidSolver(8, 8, 1.0)
        with pytest.raises(ValueError):
            solver.add_inflow(0.5, 0.5, -0.1, 0.2, 1.0, 0.0, 0.0)
