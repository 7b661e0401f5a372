"""
Thermodynamic Diagnostic Variables

This module implements thermodynamic diagnostic variables on sigma layers:
- Pressure (p)
- Potential temperature (pt)
- Geopotential height (ht)

Layer arrays are shaped (nk, nh) with k = 0 at the model top and
k = nk - 1 the layer nearest the surface.
"""

import numpy as np
from typing import Dict, Optional

from .constants import rovcp, rovg, p00
from .registry import register_diagnostic
from ..core.config import DEFAULT_DTYPE

import logging
logger = logging.getLogger(__name__)

# ============================================================================
# Sigma to Pressure
# ============================================================================

def pressure_from_sigma(ps: np.ndarray, ptop: float, sigma: np.ndarray) -> np.ndarray:
    """
    Pressure on sigma layers.

    Formula:
        p[k, i] = (ps[i] - ptop) * sigma[k] + ptop

    Args:
        ps: Surface pressure [hPa], shape (nh,)
        ptop: Model top pressure [hPa]
        sigma: Sigma values, shape (nk,)

    Returns:
        Pressure [hPa], shape (nk, nh)
    """
    ps = np.asarray(ps, dtype=DEFAULT_DTYPE)
    sigma = np.asarray(sigma, dtype=DEFAULT_DTYPE)
    return np.multiply.outer(sigma, ps - ptop) + ptop


def potential_temperature(t, p):
    """
    Potential temperature referred to 1000 hPa.

    Formula:
        pt = t * (1000 / p) ** (R / Cp)

    Args:
        t: Temperature [K]
        p: Pressure [hPa]

    Returns:
        Potential temperature [K]
    """
    t = np.asarray(t, dtype=DEFAULT_DTYPE)
    return (t * (p00 / np.asarray(p, dtype=DEFAULT_DTYPE)) ** rovcp)[()]


def geopotential_height(t: np.ndarray, p: np.ndarray, ps: np.ndarray, zs: np.ndarray,
                        out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Hydrostatic geopotential height of every sigma layer.

    The integration starts at the surface layer and proceeds strictly
    upward, each layer using the one below it:

        h[nk-1] = zs + (R/g) * t[nk-1] * ln(ps / p[nk-1])
        h[k]    = h[k+1] + (R/g) * (t[k] + t[k+1]) / 2 * ln(p[k+1] / p[k])

    Args:
        t: Temperature [K], shape (nk, nh)
        p: Pressure [hPa], shape (nk, nh)
        ps: Surface pressure [hPa], shape (nh,)
        zs: Topography height [m], shape (nh,)
        out: Optional (nk, nh) buffer to fill

    Returns:
        Geopotential height [m], shape (nk, nh)
    """
    t = np.asarray(t, dtype=DEFAULT_DTYPE)
    p = np.asarray(p, dtype=DEFAULT_DTYPE)
    if out is None:
        out = np.empty_like(t)

    nk = t.shape[0]
    out[nk - 1] = zs + rovg * t[nk - 1] * np.log(ps / p[nk - 1])
    for k in range(nk - 2, -1, -1):
        tbar = 0.5 * (t[k] + t[k + 1])
        out[k] = out[k + 1] + rovg * tbar * np.log(p[k + 1] / p[k])
    return out

# ============================================================================
# Registered Diagnostics
# ============================================================================

@register_diagnostic(
    name='p',
    file_dependencies=['ps'],
    grid_dependencies=['ptop', 'sigma_mid'],
    long_name='pressure',
    units='hPa',
    description='pressure on sigma layers',
    standard_name='air_pressure'
)
def fill_pressure(fields: Dict[str, np.ndarray], grid,
                  diagnostics: Dict[str, np.ndarray], out: np.ndarray) -> np.ndarray:  # noqa: ARG001
    """Fill the layer pressure buffer."""
    out[...] = pressure_from_sigma(fields['ps'], grid.ptop, grid.sigma_mid)
    return out


@register_diagnostic(
    name='pt',
    file_dependencies=['t'],
    diagnostic_dependencies=['p'],
    long_name='potential temperature',
    units='K',
    description='potential temperature referred to 1000 hPa',
    standard_name='air_potential_temperature'
)
def fill_potential_temperature(fields: Dict[str, np.ndarray], grid,  # noqa: ARG001
                               diagnostics: Dict[str, np.ndarray], out: np.ndarray) -> np.ndarray:
    """Fill the potential temperature buffer."""
    out[...] = potential_temperature(fields['t'], diagnostics['p'])
    return out


@register_diagnostic(
    name='ht',
    file_dependencies=['ps', 't'],
    grid_dependencies=['zs'],
    diagnostic_dependencies=['p'],
    long_name='geopotential height',
    units='m',
    description='hydrostatic height integrated upward from the topography',
    standard_name='geopotential_height'
)
def fill_geopotential_height(fields: Dict[str, np.ndarray], grid,
                             diagnostics: Dict[str, np.ndarray], out: np.ndarray) -> np.ndarray:
    """Fill the geopotential height buffer."""
    return geopotential_height(fields['t'], diagnostics['p'], fields['ps'], grid.zs, out=out)


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    # Formulas
    'pressure_from_sigma',
    'potential_temperature',
    'geopotential_height',

    # Registered diagnostics
    'fill_pressure',
    'fill_potential_temperature',
    'fill_geopotential_height',
]
