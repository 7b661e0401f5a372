"""Shared fixtures for regcm_post tests."""

from __future__ import annotations

import numpy as np
import pytest

from regcm_post import GridDescriptor

NX, NY = 4, 3
PTOP = 50.0
SIGMA_FULL = [0.0, 0.2, 0.5, 0.8, 0.95, 1.0]


@pytest.fixture
def grid() -> GridDescriptor:
    """Small flat domain: 4x3 columns, 5 layers, 50 hPa top, unit map factors."""
    nh = NX * NY
    return GridDescriptor(
        nx=NX,
        ny=NY,
        ptop=PTOP,
        sigma_full=SIGMA_FULL,
        ds=30000.0,
        xmap=np.ones(nh),
        dmap=np.ones(nh),
        zs=np.zeros(nh),
    )


@pytest.fixture
def hilly_grid() -> GridDescriptor:
    """Same domain with topography rising along x."""
    zs = np.repeat([0.0, 150.0, 400.0, 900.0], NY)
    return GridDescriptor(
        nx=NX,
        ny=NY,
        ptop=PTOP,
        sigma_full=SIGMA_FULL,
        ds=30000.0,
        xmap=np.ones(NX * NY),
        dmap=np.ones(NX * NY),
        zs=zs,
    )


@pytest.fixture
def surface_pressure(grid) -> np.ndarray:
    """Surface pressure [hPa] shaped (nx, ny)."""
    return np.full(grid.horizontal_shape, 1000.0)


@pytest.fixture
def temperature(grid) -> np.ndarray:
    """Temperature [K] shaped (nk, nx, ny), warming towards the surface."""
    profile = 220.0 + 70.0 * grid.sigma_mid
    return np.broadcast_to(profile[:, None, None], (grid.nk,) + grid.horizontal_shape).copy()


@pytest.fixture
def humidity(grid) -> np.ndarray:
    """Specific humidity [kg/kg] shaped (nk, nx, ny), moist near the surface."""
    profile = 1.0e-4 + 1.0e-2 * grid.sigma_mid ** 3
    return np.broadcast_to(profile[:, None, None], (grid.nk,) + grid.horizontal_shape).copy()


@pytest.fixture
def uniform_winds(grid) -> tuple[np.ndarray, np.ndarray]:
    """Spatially uniform winds (5, -3) m/s on every layer."""
    shape = (grid.nk,) + grid.horizontal_shape
    return np.full(shape, 5.0), np.full(shape, -3.0)
