"""
Dynamic Diagnostic Variables

This module implements dynamics-related diagnostic variables including:
- Relative vorticity (vr)
- Horizontal divergence (dv)

Winds live on dot points and scalars on cross points. Each cross point
(i, j) is surrounded by the dot points

    1 = (i, j)    2 = (i, j+1)    3 = (i+1, j)    4 = (i+1, j+1)

and the quarter-cell stencil differences the map-factor unscaled winds
over two grid lengths. The last row and column have no stencil and are
set to zero. A cell whose stencil touches a MISSING_VALUE wind is set to
MISSING_VALUE.
"""

import numpy as np
from typing import Dict, Optional, Tuple

from .registry import register_diagnostic
from ..core.config import DEFAULT_DTYPE, MISSING_VALUE
from ..core.exceptions import GridShapeError, ParameterError

import logging
logger = logging.getLogger(__name__)

# ============================================================================
# Stencil Helpers
# ============================================================================

def _corner_winds(u: np.ndarray, v: np.ndarray, dmap: np.ndarray) -> Tuple[tuple, tuple]:
    """
    Unscale the winds by the dot-point map factor and pick the four corners.

    Args:
        u, v: Wind components, shape (nk, nx, ny)
        dmap: Dot-point map factor, shape (nx, ny)

    Returns:
        ((u1, u2, u3, u4), (v1, v2, v3, v4)), each shaped (nk, nx-1, ny-1)
    """
    us = u / dmap
    vs = v / dmap
    corners = []
    for w in (us, vs):
        corners.append((
            w[:, :-1, :-1],
            w[:, :-1, 1:],
            w[:, 1:, :-1],
            w[:, 1:, 1:],
        ))
    return corners[0], corners[1]


def any_corner(bad: np.ndarray) -> np.ndarray:
    """
    Flag every cell whose four stencil corners include a flagged point.

    Works on the last two axes of ``bad`` (nx, ny). The last row and column
    keep their own flag.
    """
    touched = bad.copy()
    touched[..., :-1, :-1] |= bad[..., :-1, 1:] | bad[..., 1:, :-1] | bad[..., 1:, 1:]
    return touched


def _prepare(u, v, xmap, dmap):
    xmap = np.asarray(xmap, dtype=DEFAULT_DTYPE)
    if xmap.ndim != 2:
        raise ParameterError("xmap", str(xmap.shape), "Map factors must be shaped (nx, ny)")
    nx, ny = xmap.shape
    dmap = np.asarray(dmap, dtype=DEFAULT_DTYPE)
    if dmap.size != nx * ny:
        raise GridShapeError("dmap", nx * ny, dmap.size)
    u = np.asarray(u, dtype=DEFAULT_DTYPE)
    v = np.asarray(v, dtype=DEFAULT_DTYPE)
    nk = max(u.size // (nx * ny), 1)
    for name, w in (('u', u), ('v', v)):
        if w.size != nk * nx * ny:
            raise GridShapeError(name, nk * nx * ny, w.size)
    return u.reshape(nk, nx, ny), v.reshape(nk, nx, ny), xmap, dmap.reshape(nx, ny)


def _mask_missing_winds(u: np.ndarray, v: np.ndarray, out: np.ndarray) -> None:
    bad = any_corner((u == MISSING_VALUE) | (v == MISSING_VALUE))
    # the edge row and column have no stencil of their own
    bad[:, -1, :] = False
    bad[:, :, -1] = False
    out[bad] = MISSING_VALUE


def _output(out: Optional[np.ndarray], shape) -> np.ndarray:
    if out is None:
        return np.zeros(shape, dtype=DEFAULT_DTYPE)
    out = out.reshape(shape)
    out[:, -1, :] = 0.0
    out[:, :, -1] = 0.0
    return out

# ============================================================================
# Vorticity and Divergence
# ============================================================================

def relative_vorticity(u, v, xmap, dmap, ds: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Relative vorticity on cross points.

    Formula:
        vr = xmap^2 / (2 ds) * ((v4 - v2 + v3 - v1) - (u2 - u1 + u4 - u3))

    Args:
        u, v: Wind components on dot points [m/s], shape (nk, nx, ny) or flat
        xmap: Cross-point map factor, shape (nx, ny)
        dmap: Dot-point map factor, shape (nx, ny)
        ds: Grid spacing [m]
        out: Optional buffer with nk*nx*ny elements

    Returns:
        Relative vorticity [s-1], shape (nk, nx, ny)
        (MISSING_VALUE where a stencil corner has a missing wind)
    """
    u, v, xmap, dmap = _prepare(u, v, xmap, dmap)
    (u1, u2, u3, u4), (v1, v2, v3, v4) = _corner_winds(u, v, dmap)
    scale = xmap[:-1, :-1] ** 2 / (2.0 * ds)

    out = _output(out, u.shape)
    out[:, :-1, :-1] = scale * ((v4 - v2 + v3 - v1) - (u2 - u1 + u4 - u3))
    _mask_missing_winds(u, v, out)
    return out


def divergence(u, v, xmap, dmap, ds: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Horizontal divergence on cross points.

    Formula:
        dv = xmap^2 / (2 ds) * ((u3 - u1 + u4 - u2) + (v2 - v1 + v4 - v3))

    Args:
        u, v: Wind components on dot points [m/s], shape (nk, nx, ny) or flat
        xmap: Cross-point map factor, shape (nx, ny)
        dmap: Dot-point map factor, shape (nx, ny)
        ds: Grid spacing [m]
        out: Optional buffer with nk*nx*ny elements

    Returns:
        Divergence [s-1], shape (nk, nx, ny)
        (MISSING_VALUE where a stencil corner has a missing wind)
    """
    u, v, xmap, dmap = _prepare(u, v, xmap, dmap)
    (u1, u2, u3, u4), (v1, v2, v3, v4) = _corner_winds(u, v, dmap)
    scale = xmap[:-1, :-1] ** 2 / (2.0 * ds)

    out = _output(out, u.shape)
    out[:, :-1, :-1] = scale * ((u3 - u1 + u4 - u2) + (v2 - v1 + v4 - v3))
    _mask_missing_winds(u, v, out)
    return out

# ============================================================================
# Registered Diagnostics
# ============================================================================

@register_diagnostic(
    name='vr',
    file_dependencies=['u', 'v'],
    grid_dependencies=['xmap', 'dmap', 'ds'],
    long_name='relative vorticity',
    units='s-1',
    description='relative vorticity from the staggered quarter-cell stencil',
    standard_name='atmosphere_relative_vorticity'
)
def fill_vorticity(fields: Dict[str, np.ndarray], grid,
                   diagnostics: Dict[str, np.ndarray], out: np.ndarray) -> np.ndarray:  # noqa: ARG001
    """Fill the relative vorticity buffer."""
    shape = grid.horizontal_shape
    relative_vorticity(fields['u'], fields['v'], grid.xmap.reshape(shape),
                       grid.dmap.reshape(shape), grid.ds, out=out)
    return out


@register_diagnostic(
    name='dv',
    file_dependencies=['u', 'v'],
    grid_dependencies=['xmap', 'dmap', 'ds'],
    long_name='divergence',
    units='s-1',
    description='horizontal wind divergence from the staggered quarter-cell stencil',
    standard_name='divergence_of_wind'
)
def fill_divergence(fields: Dict[str, np.ndarray], grid,
                    diagnostics: Dict[str, np.ndarray], out: np.ndarray) -> np.ndarray:  # noqa: ARG001
    """Fill the divergence buffer."""
    shape = grid.horizontal_shape
    divergence(fields['u'], fields['v'], grid.xmap.reshape(shape),
               grid.dmap.reshape(shape), grid.ds, out=out)
    return out


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    'any_corner',
    'relative_vorticity',
    'divergence',
    'fill_vorticity',
    'fill_divergence',
]
