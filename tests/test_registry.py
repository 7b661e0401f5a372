"""Tests for the diagnostic registry and compute engine."""

from __future__ import annotations

import numpy as np
import pytest

from regcm_post.core.exceptions import DataProcessingError, ParameterError
from regcm_post.diagnostics import (
    compute_diagnostics,
    get_diagnostic_metadata,
    get_registry,
    get_required_fields,
    list_available_diagnostics,
)
from regcm_post.diagnostics.registry import DiagnosticRegistry


def _noop(fields, grid, diagnostics, out):
    return out


class TestRegistryContents:

    def test_sigma_diagnostics_in_registration_order(self):
        assert list_available_diagnostics('sigma') == ['p', 'pt', 'ht', 'rh', 'td', 'vr', 'dv']

    def test_surface_diagnostics(self):
        assert list_available_diagnostics('surface') == ['r2']

    def test_metadata(self):
        meta = get_diagnostic_metadata('td')
        assert meta['units'] == 'K'
        assert meta['standard_name'] == 'dew_point_temperature'

    def test_unknown_metadata_raises(self):
        with pytest.raises(KeyError, match="not registered"):
            get_diagnostic_metadata('does_not_exist')

    def test_required_fields_follow_dependencies(self):
        assert get_required_fields(['td']) == {'ps', 't', 'qv'}
        assert get_required_fields(['vr']) == {'u', 'v'}


class TestComputationOrder:

    def test_dependencies_come_first(self):
        order = get_registry().resolve_computation_order(['td'])
        assert order == ['p', 'rh', 'td']

    def test_ties_broken_by_registration_order(self):
        order = get_registry().resolve_computation_order(['dv', 'td', 'ht', 'pt', 'vr'])
        assert order == ['p', 'pt', 'ht', 'rh', 'td', 'vr', 'dv']

    def test_cycle_detected(self):
        registry = DiagnosticRegistry()
        registry.register('a', _noop, diagnostic_dependencies=['b'])
        registry.register('b', _noop, diagnostic_dependencies=['a'])
        with pytest.raises(ValueError, match="Circular dependency"):
            registry.resolve_computation_order(['a'])

    def test_unknown_dependency(self):
        registry = DiagnosticRegistry()
        registry.register('a', _noop, diagnostic_dependencies=['missing'])
        with pytest.raises(KeyError):
            registry.resolve_computation_order(['a'])

    def test_invalid_level_type(self):
        registry = DiagnosticRegistry()
        with pytest.raises(ValueError, match="level_type"):
            registry.register('a', _noop, level_type='column')


class TestComputeDiagnostics:

    def test_unknown_variable(self, grid):
        with pytest.raises(KeyError, match="not registered"):
            compute_diagnostics({}, grid, ['nope'], {})

    def test_missing_field(self, grid):
        buffers = {'p': np.empty((grid.nk, grid.nh))}
        with pytest.raises(DataProcessingError, match="Missing required fields"):
            compute_diagnostics({}, grid, ['p'], buffers)

    def test_missing_buffer(self, grid):
        fields = {'ps': np.full(grid.nh, 1000.0)}
        with pytest.raises(DataProcessingError, match="No output buffer"):
            compute_diagnostics(fields, grid, ['p'], {})

    def test_fills_buffers_in_place(self, grid):
        fields = {'ps': np.full(grid.nh, 1000.0)}
        buffer = np.zeros((grid.nk, grid.nh))

        computed = compute_diagnostics(fields, grid, ['p'], {'p': buffer})

        assert computed['p'] is buffer
        np.testing.assert_allclose(buffer[:, 0], 950.0 * grid.sigma_mid + 50.0)

    def test_unexpected_failure_wrapped(self, grid, monkeypatch):
        def broken(fields, grid, diagnostics, out):
            raise ZeroDivisionError("boom")

        registry = DiagnosticRegistry()
        registry.register('x', broken)
        monkeypatch.setattr('regcm_post.diagnostics.compute.get_registry', lambda: registry)

        with pytest.raises(DataProcessingError, match="ZeroDivisionError: boom"):
            compute_diagnostics({}, grid, ['x'], {'x': np.empty(1)})

    def test_package_errors_propagate(self, grid, monkeypatch):
        def strict(fields, grid, diagnostics, out):
            raise ParameterError("x", "1", "rejected")

        registry = DiagnosticRegistry()
        registry.register('x', strict)
        monkeypatch.setattr('regcm_post.diagnostics.compute.get_registry', lambda: registry)

        with pytest.raises(ParameterError, match="rejected"):
            compute_diagnostics({}, grid, ['x'], {'x': np.empty(1)})

    def test_cycle_becomes_processing_error(self, grid, monkeypatch):
        registry = DiagnosticRegistry()
        registry.register('a', _noop, diagnostic_dependencies=['b'])
        registry.register('b', _noop, diagnostic_dependencies=['a'])
        monkeypatch.setattr('regcm_post.diagnostics.compute.get_registry', lambda: registry)

        with pytest.raises(DataProcessingError, match="dependency resolution"):
            compute_diagnostics({}, grid, ['a'], {})
