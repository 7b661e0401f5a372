"""Tests for the time-slice pipeline."""

from __future__ import annotations

import logging

import numpy as np
import pytest

import regcm_post as rp
from regcm_post import MISSING_VALUE, UnresolvablePressureBracketError, process_time_slice
from regcm_post.core.exceptions import ParameterError

LEVELS = [850.0, 700.0, 500.0, 300.0, 200.0]


@pytest.fixture
def slice_inputs(grid, surface_pressure, temperature, humidity, uniform_winds):
    u, v = uniform_winds
    return dict(grid=grid, ps=surface_pressure, t=temperature, qv=humidity, u=u, v=v)


class TestProcessTimeSlice:

    def test_datasets_and_dims(self, slice_inputs, grid):
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        assert isinstance(result, rp.TimeSliceResult)
        assert set(result.sigma.data_vars) == {'p', 'rh', 'td', 'pt', 'ht', 'vr', 'dv'}
        assert set(result.pressure.data_vars) == set(rp.PRESSURE_LEVEL_SCHEMES)
        assert result.pressure['t'].dims == ('plev', 'x', 'y')
        assert result.pressure['t'].shape == (len(LEVELS), grid.nx, grid.ny)
        np.testing.assert_array_equal(result.pressure['plev'].values, LEVELS)
        assert result.pressure['plev'].attrs['units'] == 'hPa'
        assert len(result.surface.data_vars) == 0

    def test_attributes(self, slice_inputs):
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        assert result.pressure['ht'].attrs['units'] == 'm'
        assert result.pressure['t'].attrs['standard_name'] == 'air_temperature'
        for name in result.pressure.data_vars:
            assert result.pressure[name].attrs['missing_value'] == MISSING_VALUE

    def test_temperature_uses_log_interpolation(self, slice_inputs, grid):
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        interp = rp.PressureLevelInterpolator.from_grid(grid, LEVELS)
        expected = interp.intlog(slice_inputs['t'], slice_inputs['ps'])
        np.testing.assert_allclose(result.pressure['t'].values, expected)

    def test_winds_stay_uniform(self, slice_inputs):
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        np.testing.assert_allclose(result.pressure['u'].values, 5.0)
        np.testing.assert_allclose(result.pressure['v'].values, -3.0)

    def test_heights_increase_with_altitude(self, slice_inputs):
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        ht = result.pressure['ht'].values
        assert np.all(np.diff(ht, axis=0) > 0.0)

    def test_masked_column(self, slice_inputs):
        slice_inputs['ps'][2, 0] = 0.0
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        for name in result.pressure.data_vars:
            assert np.all(result.pressure[name].values[:, 2, 0] == MISSING_VALUE), name
        assert np.all(result.sigma['rh'].values[:, 2, 0] == MISSING_VALUE)

    def test_missing_temperature_column(self, slice_inputs):
        slice_inputs['t'][:, 1, 2] = MISSING_VALUE
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        for name in ('t', 'ht', 'rh'):
            assert np.all(result.pressure[name].values[:, 1, 2] == MISSING_VALUE), name
            assert np.all(result.pressure[name].values[:, 0, 0] != MISSING_VALUE), name
        np.testing.assert_allclose(result.pressure['u'].values[:, 1, 2], 5.0)
        assert np.all(result.sigma['pt'].values[:, 1, 2] == MISSING_VALUE)

    def test_surface_products(self, slice_inputs, grid):
        tg = np.full(grid.horizontal_shape, 288.0)
        t2m = np.full(grid.horizontal_shape, 287.0)
        q2m = np.full(grid.horizontal_shape, 6.0e-3)

        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS, tg=tg, t2m=t2m, q2m=q2m)

        assert set(result.surface.data_vars) == {'r2', 'slp1', 'slp2'}
        assert result.surface['slp1'].dims == ('x', 'y')
        # Flat terrain: sea-level pressure equals surface pressure
        np.testing.assert_allclose(result.surface['slp1'].values, slice_inputs['ps'])
        assert np.all((result.surface['r2'].values > 0.0) & (result.surface['r2'].values <= 1.0))

    def test_t2m_without_q2m_rejected(self, slice_inputs, grid):
        with pytest.raises(ParameterError, match="t2m/q2m"):
            process_time_slice(**slice_inputs, pressure_levels=LEVELS, t2m=np.full(grid.nh, 290.0))

    def test_bracket_error_propagates(self, slice_inputs):
        with pytest.raises(UnresolvablePressureBracketError):
            process_time_slice(**slice_inputs, pressure_levels=[500.0, -1.0])

    def test_logs_summary(self, slice_inputs, caplog):
        with caplog.at_level(logging.INFO, logger="regcm_post"):
            process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        assert "Processed time slice: 4x3 columns, 5 layers, 5 pressure levels" in caplog.text

    def test_warns_about_masked_columns(self, slice_inputs, caplog):
        slice_inputs['ps'][0, 0] = -1.0
        with caplog.at_level(logging.WARNING, logger="regcm_post"):
            process_time_slice(**slice_inputs, pressure_levels=LEVELS)

        assert "1 columns have a non-positive surface pressure" in caplog.text

    def test_as_dict(self, slice_inputs):
        result = process_time_slice(**slice_inputs, pressure_levels=LEVELS)
        assert set(result.as_dict()) == {'sigma', 'pressure', 'surface'}
