"""
RegCM Post Main Interface

This module provides the main API function for post-processing one RegCM
time slice: sigma-layer diagnostics, pressure-level interpolation and the
optional surface products, packaged as xarray datasets.
"""

import logging
from typing import Sequence

import numpy as np
import xarray as xr

from .core.config import (
    DEFAULT_PRESSURE_LEVELS, MISSING_VALUE, PLEV_DIM, PRESSURE_LEVEL_SCHEMES, X_DIM, Y_DIM,
)
from .core.core_types import GridDescriptor, TimeSliceResult, as_horizontal
from .core.exceptions import ParameterError
from .diagnostics import AtmosphereCalculator, SurfaceCalculator, get_diagnostic_metadata
from .processing import PressureLevelInterpolator

# Get logger for this module
logger = logging.getLogger('regcm_post.main')

# Attributes of the raw model fields carried onto pressure levels
FIELD_ATTRS = {
    't': {'long_name': 'air temperature', 'units': 'K', 'standard_name': 'air_temperature'},
    'qv': {'long_name': 'specific humidity', 'units': 'kg kg-1', 'standard_name': 'specific_humidity'},
    'u': {'long_name': 'eastward wind', 'units': 'm s-1', 'standard_name': 'eastward_wind'},
    'v': {'long_name': 'northward wind', 'units': 'm s-1', 'standard_name': 'northward_wind'},
}

SLP_ATTRS = {
    'slp1': {'long_name': 'sea level pressure (lapse-rate reduction)', 'units': 'hPa',
             'standard_name': 'air_pressure_at_mean_sea_level'},
    'slp2': {'long_name': 'sea level pressure (ground temperature reduction)', 'units': 'hPa',
             'standard_name': 'air_pressure_at_mean_sea_level'},
}


def _attrs(name: str) -> dict:
    if name in FIELD_ATTRS:
        attrs = dict(FIELD_ATTRS[name])
    else:
        attrs = {k: v for k, v in get_diagnostic_metadata(name).items() if v}
    attrs['missing_value'] = MISSING_VALUE
    return attrs


# ============================================================================
# Main API Function
# ============================================================================

def process_time_slice(
    grid: GridDescriptor,
    ps,
    t,
    qv,
    u,
    v,
    pressure_levels: Sequence[float] = DEFAULT_PRESSURE_LEVELS,
    *,
    tg=None,
    t2m=None,
    q2m=None,
) -> TimeSliceResult:
    """
    Post-process one time slice of RegCM atmosphere output.

    Computes the sigma-layer diagnostics, interpolates height, temperature,
    humidity and winds to the pressure levels, and optionally adds sea-level
    pressure (when tg is given) and 2 m relative humidity (when t2m and q2m
    are given).

    Args:
        grid: Domain geometry
        ps: Surface pressure [hPa], nx*ny values
        t: Temperature [K], nk*nx*ny values
        qv: Specific humidity [kg/kg], nk*nx*ny values
        u, v: Wind components on dot points [m/s], nk*nx*ny values
        pressure_levels: Target pressures [hPa]
        tg: Ground temperature [K], nx*ny values
        t2m: 2 m temperature [K], nx*ny values
        q2m: 2 m specific humidity [kg/kg], nx*ny values

    Returns:
        TimeSliceResult with the sigma, pressure and surface datasets

    Raises:
        UnresolvablePressureBracketError: If a target level fits no regime
        GridShapeError: If an input array does not match the grid
        ParameterError: If only one of t2m and q2m is given

    Examples:
        >>> result = process_time_slice(grid, ps, t, qv, u, v, pressure_levels=[850, 500])
        >>> result.pressure['t'].sel(plev=500)
    """
    if (t2m is None) != (q2m is None):
        raise ParameterError("t2m/q2m", "one of them is None",
                             "2 m relative humidity needs both t2m and q2m")

    shape = grid.horizontal_shape
    ps2d = as_horizontal('ps', ps, grid.nh).reshape(shape)
    n_masked = int(np.count_nonzero(~(ps2d > 0.0)))
    if n_masked:
        logger.warning("%d columns have a non-positive surface pressure and are set to missing", n_masked)

    # Sigma-layer diagnostics
    logger.debug("Computing sigma-layer diagnostics on %d layers", grid.nk)
    atmosphere = AtmosphereCalculator(grid)
    derived = atmosphere.compute(ps2d, t, qv, u, v)
    sigma_ds = derived.to_dataset()

    # Pressure levels
    interpolator = PressureLevelInterpolator.from_grid(grid, pressure_levels)
    sources = {'ht': derived.ht, 't': t, 'qv': qv, 'rh': derived.rh, 'u': u, 'v': v}
    zs2d = grid.zs.reshape(shape)

    data_vars = {}
    for name, scheme in PRESSURE_LEVEL_SCHEMES.items():
        logger.debug("Interpolating '%s' to pressure levels (%s)", name, scheme)
        if scheme == 'height':
            values = interpolator.height(derived.ht, t, ps2d, zs2d)
        elif scheme == 'log':
            values = interpolator.intlog(sources[name], ps2d)
        else:
            values = interpolator.intlin(sources[name], ps2d)
        data_vars[name] = xr.DataArray(values, dims=(PLEV_DIM, X_DIM, Y_DIM), attrs=_attrs(name))

    coords = {PLEV_DIM: (PLEV_DIM, interpolator.plevs.copy(),
                         {'long_name': 'pressure', 'units': 'hPa', 'positive': 'down'})}
    pressure_ds = xr.Dataset(data_vars, coords=coords)

    # Surface products
    surface_ds = xr.Dataset()
    if t2m is not None:
        logger.debug("Computing 2 m relative humidity")
        surface = SurfaceCalculator.from_grid(grid)
        surface.compute(ps2d, t2m, q2m)
        surface_ds = surface.to_dataset()

    if tg is not None:
        logger.debug("Computing sea level pressure")
        slp1, slp2 = interpolator.slpres(derived.ht, t, ps2d, zs2d, tg)
        surface_ds = surface_ds.assign({
            'slp1': xr.DataArray(slp1, dims=(X_DIM, Y_DIM), attrs={**SLP_ATTRS['slp1'], 'missing_value': MISSING_VALUE}),
            'slp2': xr.DataArray(slp2, dims=(X_DIM, Y_DIM), attrs={**SLP_ATTRS['slp2'], 'missing_value': MISSING_VALUE}),
        })

    logger.info(
        "Processed time slice: %dx%d columns, %d layers, %d pressure levels, surface fields %s",
        grid.nx, grid.ny, grid.nk, interpolator.nplev, sorted(surface_ds.data_vars),
    )

    return TimeSliceResult(sigma=sigma_ds, pressure=pressure_ds, surface=surface_ds)


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    'process_time_slice',
]
