"""
Moisture Diagnostic Variables

This module implements moisture-related diagnostic variables including:
- Relative humidity on sigma layers (rh)
- Dew-point temperature on sigma layers (td)
- 2 m relative humidity (r2)

The formulas work on numpy arrays of any shape and on plain scalars.
"""

import numpy as np
from typing import Dict

from .constants import (
    tzero, ep2, svp1, svp2, svp3, svp4, svp5, svp6,
    dpd_a0, dpd_a1, dpd_b0, dpd_b1, dpd_c0, dpd_c1,
)
from .registry import register_diagnostic
from ..core.config import DEFAULT_DTYPE, MISSING_VALUE

import logging
logger = logging.getLogger(__name__)

# ============================================================================
# Saturation Vapor Pressure
# ============================================================================

def saturation_vapor_pressure(t):
    """
    Calculate saturation vapor pressure with the Bolton-type formula.

    Args:
        t: Temperature [K]

    Returns:
        Saturation vapor pressure [hPa]

    Formula:
        t >  tzero: es = svp1 * exp(svp2 * (t - tzero) / (t - svp3))
        t <= tzero: es = svp4 * exp(svp5 - svp6 / t)
    """
    t = np.asarray(t, dtype=DEFAULT_DTYPE)
    warm = t > tzero
    es = np.empty_like(t)
    es[warm] = svp1 * np.exp(svp2 * (t[warm] - tzero) / (t[warm] - svp3))
    es[~warm] = svp4 * np.exp(svp5 - svp6 / t[~warm])
    return es[()]


def saturation_specific_humidity(p, t):
    """
    Calculate saturation specific humidity.

    Args:
        p: Pressure [hPa]
        t: Temperature [K]

    Returns:
        Saturation specific humidity [kg/kg]

    Note:
        Undefined where p equals the saturation vapor pressure.
    """
    es = saturation_vapor_pressure(t)
    return ep2 * es / (np.asarray(p, dtype=DEFAULT_DTYPE) - es)


def relative_humidity(p, t, q):
    """
    Relative humidity as a fraction clamped to [0, 1].

    Args:
        p: Pressure [hPa]
        t: Temperature [K]
        q: Specific humidity [kg/kg]

    Returns:
        Relative humidity [1]
    """
    qs = saturation_specific_humidity(p, t)
    rh = np.clip(np.asarray(q, dtype=DEFAULT_DTYPE) / qs, 0.0, 1.0)
    return rh[()]


def dewpoint_temperature(t, rh):
    """
    Dew-point temperature from temperature and relative humidity.

    The dew-point depression is an empirical polynomial in the humidity
    deficit rx = 1 - rh with Celsius-temperature dependent coefficients:

        dpd = (14.55 + 0.144 tc) rx + 2 ((2.5 + 0.007 tc) rx)^3
              + (15.9 + 0.117 tc) rx^14

    Args:
        t: Temperature [K]
        rh: Relative humidity [1]

    Returns:
        Dew-point temperature [K]
    """
    t = np.asarray(t, dtype=DEFAULT_DTYPE)
    rx = 1.0 - np.asarray(rh, dtype=DEFAULT_DTYPE)
    tx = t - tzero
    dpd = ((dpd_a0 + dpd_a1 * tx) * rx +
           2.0 * ((dpd_b0 + dpd_b1 * tx) * rx) ** 3 +
           (dpd_c0 + dpd_c1 * tx) * rx ** 14)
    return (t - dpd)[()]

# ============================================================================
# Registered Sigma-Level Diagnostics
# ============================================================================

@register_diagnostic(
    name='rh',
    file_dependencies=['t', 'qv'],
    diagnostic_dependencies=['p'],
    long_name='relative humidity',
    units='1',
    description='relative humidity from layer pressure, temperature and specific humidity',
    standard_name='relative_humidity'
)
def fill_relative_humidity(fields: Dict[str, np.ndarray], grid,  # noqa: ARG001
                           diagnostics: Dict[str, np.ndarray], out: np.ndarray) -> np.ndarray:
    """Fill the layer relative humidity buffer."""
    out[...] = relative_humidity(diagnostics['p'], fields['t'], fields['qv'])
    return out


@register_diagnostic(
    name='td',
    file_dependencies=['t'],
    diagnostic_dependencies=['rh'],
    long_name='dew point temperature',
    units='K',
    description='dew point from the empirical dew-point depression polynomial',
    standard_name='dew_point_temperature'
)
def fill_dewpoint(fields: Dict[str, np.ndarray], grid,  # noqa: ARG001
                  diagnostics: Dict[str, np.ndarray], out: np.ndarray) -> np.ndarray:
    """Fill the layer dew-point buffer."""
    out[...] = dewpoint_temperature(fields['t'], diagnostics['rh'])
    return out

# ============================================================================
# Registered Surface Diagnostics
# ============================================================================

@register_diagnostic(
    name='r2',
    level_type='surface',
    file_dependencies=['ps', 't2m', 'q2m'],
    long_name='2 m relative humidity',
    units='1',
    description='near-surface relative humidity; missing where surface pressure is not positive',
    standard_name='relative_humidity'
)
def fill_surface_relative_humidity(fields: Dict[str, np.ndarray], grid,  # noqa: ARG001
                                   diagnostics: Dict[str, np.ndarray],  # noqa: ARG001
                                   out: np.ndarray) -> np.ndarray:
    """Fill the 2 m relative humidity buffer, writing MISSING_VALUE on masked cells."""
    ps = fields['ps']
    t2m = fields['t2m']
    q2m = fields['q2m']

    valid = (ps > 0.0) & (t2m != MISSING_VALUE) & (q2m != MISSING_VALUE)
    out.fill(MISSING_VALUE)
    out[valid] = relative_humidity(ps[valid], t2m[valid], q2m[valid])

    n_masked = int(out.size - np.count_nonzero(valid))
    if n_masked:
        logger.debug(f"r2: {n_masked} masked cells set to missing")
    return out


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    'saturation_vapor_pressure',
    'saturation_specific_humidity',
    'relative_humidity',
    'dewpoint_temperature',
    'fill_relative_humidity',
    'fill_dewpoint',
    'fill_surface_relative_humidity',
]
