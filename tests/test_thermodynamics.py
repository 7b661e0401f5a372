"""Tests for pressure, potential temperature and geopotential height."""

from __future__ import annotations

import numpy as np
import pytest

from regcm_post.diagnostics.constants import rovg
from regcm_post.diagnostics.thermodynamics import (
    geopotential_height,
    potential_temperature,
    pressure_from_sigma,
)


class TestPressureFromSigma:

    def test_values(self):
        ps = np.array([1000.0, 800.0])
        p = pressure_from_sigma(ps, 50.0, np.array([0.0, 0.5, 1.0]))

        assert p.shape == (3, 2)
        np.testing.assert_allclose(p[0], [50.0, 50.0])
        np.testing.assert_allclose(p[1], [525.0, 425.0])
        np.testing.assert_allclose(p[2], ps)


class TestPotentialTemperature:

    def test_equals_temperature_at_reference_pressure(self):
        t = np.array([250.0, 280.0, 310.0])
        np.testing.assert_allclose(potential_temperature(t, 1000.0), t)

    def test_exceeds_temperature_aloft(self):
        assert potential_temperature(250.0, 500.0) > 250.0

    def test_below_temperature_above_reference(self):
        assert potential_temperature(300.0, 1050.0) < 300.0


class TestGeopotentialHeight:
    """Hydrostatic integration from the surface layer upward."""

    def _column(self, t_profile, ps=1000.0, ptop=50.0, sigma=(0.1, 0.35, 0.65, 0.875, 0.975)):
        sigma = np.asarray(sigma)
        ps = np.array([ps])
        p = pressure_from_sigma(ps, ptop, sigma)
        t = np.asarray(t_profile, dtype=float).reshape(-1, 1)
        return t, p, ps

    def test_surface_layer_equals_topography_when_pressures_match(self):
        """ln(ps / p) = 0 when the lowest layer sits at the surface."""
        t, p, ps = self._column([230.0, 250.0, 270.0, 285.0, 290.0], sigma=(0.1, 0.35, 0.65, 0.875, 1.0))
        zs = np.array([312.0])

        h = geopotential_height(t, p, ps, zs)

        np.testing.assert_allclose(h[-1], zs)

    def test_isothermal_column_is_exact(self):
        t_iso = 260.0
        t, p, ps = self._column(np.full(5, t_iso))
        zs = np.array([100.0])

        h = geopotential_height(t, p, ps, zs)

        expected = zs + rovg * t_iso * np.log(ps / p)
        np.testing.assert_allclose(h, expected, rtol=1e-12)

    def test_layer_mean_temperature_step(self):
        t, p, ps = self._column([220.0, 240.0, 260.0, 280.0, 290.0])
        h = geopotential_height(t, p, ps, np.zeros(1))

        for k in range(4):
            step = rovg * 0.5 * (t[k] + t[k + 1]) * np.log(p[k + 1] / p[k])
            np.testing.assert_allclose(h[k] - h[k + 1], step)

    def test_height_increases_upward(self):
        t, p, ps = self._column([220.0, 240.0, 260.0, 280.0, 290.0])
        h = geopotential_height(t, p, ps, np.zeros(1))
        assert np.all(np.diff(h[:, 0]) < 0.0)

    def test_fills_supplied_buffer(self):
        t, p, ps = self._column(np.full(5, 270.0))
        out = np.zeros((5, 1))

        result = geopotential_height(t, p, ps, np.zeros(1), out=out)

        assert result is out
        assert np.all(out[:-1] > 0.0)


@pytest.mark.parametrize("ps", [1013.25, 850.0, 600.0])
def test_pressure_top_and_surface_bounds(ps):
    p = pressure_from_sigma(np.array([ps]), 50.0, np.array([0.0, 1.0]))
    assert p[0, 0] == pytest.approx(50.0)
    assert p[1, 0] == pytest.approx(ps)
