"""
Diagnostic Calculators

Calculators own one buffer per derived field, allocated once from the grid
size. Every compute call overwrites the buffers in place and hands out
read-only views of them, so results must be consumed (or copied) before the
next call on the same instance. Instances are not safe for concurrent use.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np
import xarray as xr

from .compute import compute_diagnostics
from .dynamics import any_corner
from .registry import get_registry
from ..core.config import DEFAULT_DTYPE, MISSING_VALUE, VERTICAL_DIM, X_DIM, Y_DIM
from ..core.core_types import GridDescriptor, as_columns, as_horizontal, readonly_view
from ..core.exceptions import ParameterError

import logging
logger = logging.getLogger(__name__)


def _variable_attrs(name: str) -> Dict[str, object]:
    attrs = dict(get_registry().get_metadata(name))
    if not attrs['standard_name']:
        del attrs['standard_name']
    attrs['missing_value'] = MISSING_VALUE
    return attrs

# ============================================================================
# Surface Diagnostics
# ============================================================================

class SurfaceCalculator:
    """
    2 m relative humidity over a full domain or a rectangular sub-window.

    Args:
        nx: Points along the first horizontal index
        ny: Points along the second horizontal index
    """

    def __init__(self, nx: int, ny: int):
        if nx < 1 or ny < 1:
            raise ParameterError("nx/ny", f"{nx}x{ny}", "Horizontal extent must be positive")
        self.nx = nx
        self.ny = ny
        self.nh = nx * ny
        self._buffers = {
            name: np.full(self.nh, MISSING_VALUE, dtype=DEFAULT_DTYPE)
            for name in get_registry().list_all('surface')
        }
        self._views = {name: readonly_view(buf) for name, buf in self._buffers.items()}

    @classmethod
    def from_grid(cls, grid: GridDescriptor) -> "SurfaceCalculator":
        return cls(grid.nx, grid.ny)

    @property
    def r2(self) -> np.ndarray:
        """Read-only view of the 2 m relative humidity buffer."""
        return self._views['r2']

    def compute(self, ps, t2m, q2m) -> np.ndarray:
        """
        Compute 2 m relative humidity.

        Cells with a non-positive surface pressure get MISSING_VALUE.

        Args:
            ps: Surface pressure [hPa], nh values
            t2m: 2 m temperature [K], nh values
            q2m: 2 m specific humidity [kg/kg], nh values

        Returns:
            Read-only view of the relative humidity buffer, valid until the next call
        """
        fields = {
            'ps': as_horizontal('ps', ps, self.nh),
            't2m': as_horizontal('t2m', t2m, self.nh),
            'q2m': as_horizontal('q2m', q2m, self.nh),
        }
        compute_diagnostics(fields, None, ['r2'], self._buffers)
        return self._views['r2']

    def to_dataset(self) -> xr.Dataset:
        """Snapshot the current surface buffers as an xarray Dataset."""
        data_vars = {
            name: xr.DataArray(
                view.reshape(self.nx, self.ny).copy(),
                dims=(X_DIM, Y_DIM),
                attrs=_variable_attrs(name),
            )
            for name, view in self._views.items()
        }
        return xr.Dataset(data_vars)

# ============================================================================
# Atmospheric Diagnostics
# ============================================================================

@dataclass(frozen=True)
class AtmosphereDerived:
    """
    Read-only views of the atmospheric calculator buffers.

    Each array is flat with nk*nh values, index k*nh + i*ny + j, k = 0 at
    the model top.
    """
    p: np.ndarray
    rh: np.ndarray
    td: np.ndarray
    pt: np.ndarray
    ht: np.ndarray
    vr: np.ndarray
    dv: np.ndarray
    nx: int
    ny: int
    sigma: np.ndarray

    @property
    def nk(self) -> int:
        return int(self.sigma.size)

    def field(self, name: str) -> np.ndarray:
        """Return one derived field shaped (nk, nx, ny), still read-only."""
        return getattr(self, name).reshape(self.nk, self.nx, self.ny)

    def to_dataset(self, variables: Optional[Sequence[str]] = None) -> xr.Dataset:
        """Snapshot the derived fields as an xarray Dataset on (kz, x, y)."""
        names = list(variables) if variables is not None else AtmosphereCalculator.VARIABLES
        data_vars = {
            name: xr.DataArray(
                self.field(name).copy(),
                dims=(VERTICAL_DIM, X_DIM, Y_DIM),
                attrs=_variable_attrs(name),
            )
            for name in names
        }
        coords = {'sigma': (VERTICAL_DIM, np.array(self.sigma), {'long_name': 'sigma at layer midpoints'})}
        return xr.Dataset(data_vars, coords=coords)


class AtmosphereCalculator:
    """
    Pressure, humidity, temperature, height and wind diagnostics on sigma layers.

    Buffers hold nk*nh values each and are reused by every call to compute.
    """

    VARIABLES = ['p', 'rh', 'td', 'pt', 'ht', 'vr', 'dv']
    WIND_VARIABLES = ('vr', 'dv')

    def __init__(self, grid: GridDescriptor):
        self.grid = grid
        self.nk = grid.nk
        self.nh = grid.nh
        self._buffers = {
            name: np.full((self.nk, self.nh), MISSING_VALUE, dtype=DEFAULT_DTYPE)
            for name in self.VARIABLES
        }
        self._derived = AtmosphereDerived(
            **{name: readonly_view(buf) for name, buf in self._buffers.items()},
            nx=grid.nx,
            ny=grid.ny,
            sigma=grid.sigma_mid,
        )
        logger.debug(f"Allocated {len(self._buffers)} buffers of {self.nk}x{self.nh} values")

    @property
    def derived(self) -> AtmosphereDerived:
        """Views of the buffers as left by the last compute call."""
        return self._derived

    def compute(self, ps, t, qv, u=None, v=None,
                variables: Optional[Sequence[str]] = None) -> AtmosphereDerived:
        """
        Compute the atmospheric diagnostics for one time slice.

        Pressure comes first; humidity, dew point, potential temperature and
        height follow from it; vorticity and divergence use the winds only.
        Columns whose surface pressure is not positive are set to
        MISSING_VALUE in every computed field, and so are the cells derived
        from an input value that already holds MISSING_VALUE.

        Args:
            ps: Surface pressure [hPa], nh values
            t: Temperature [K], nk*nh values
            qv: Specific humidity [kg/kg], nk*nh values
            u, v: Wind components on dot points [m/s], nk*nh values
            variables: Subset to compute (dependencies are added). Defaults to
                all of them, or all but vr and dv when the winds are omitted.
                Fields left out keep their previous buffer contents.

        Returns:
            AtmosphereDerived views, valid until the next call
        """
        fields = {
            'ps': as_horizontal('ps', ps, self.nh),
            't': as_columns('t', t, self.nk, self.nh),
            'qv': as_columns('qv', qv, self.nk, self.nh),
        }
        if u is not None:
            fields['u'] = as_columns('u', u, self.nk, self.nh)
        if v is not None:
            fields['v'] = as_columns('v', v, self.nk, self.nh)

        if variables is not None:
            requested = list(variables)
        elif u is None or v is None:
            requested = [name for name in self.VARIABLES if name not in self.WIND_VARIABLES]
        else:
            requested = list(self.VARIABLES)
        unknown = set(requested) - set(self.VARIABLES)
        if unknown:
            raise ParameterError("variables", str(sorted(unknown)),
                                 f"Sigma-level diagnostics are {self.VARIABLES}")

        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            computed = compute_diagnostics(fields, self.grid, requested, self._buffers)

        for name, mask in self._missing_masks(fields, computed).items():
            if mask.any():
                logger.debug(f"{name}: {int(np.count_nonzero(mask))} masked cells set to missing")
                computed[name][mask] = MISSING_VALUE

        return self._derived

    def _missing_masks(self, fields, computed) -> Dict[str, np.ndarray]:
        """
        Cells of every computed field that have to hold MISSING_VALUE.

        A column is masked when its surface pressure is not positive. A
        layer cell is masked when an input it reads holds MISSING_VALUE;
        heights are integrated upward, so a missing temperature also masks
        every layer above it. Vorticity and divergence mask each cell whose
        stencil touches a masked column (missing winds are handled by the
        stencil itself).
        """
        columns = ~(fields['ps'] > 0.0)
        t_missing = fields['t'] == MISSING_VALUE
        q_missing = fields['qv'] == MISSING_VALUE
        t_at_or_below = np.logical_or.accumulate(t_missing[::-1], axis=0)[::-1]
        stencil = any_corner(columns.reshape(self.grid.horizontal_shape)).reshape(self.nh)

        masks = {
            'p': np.broadcast_to(columns, (self.nk, self.nh)),
            'pt': columns | t_missing,
            'rh': columns | t_missing | q_missing,
            'td': columns | t_missing | q_missing,
            'ht': columns | t_at_or_below,
            'vr': np.broadcast_to(stencil, (self.nk, self.nh)),
            'dv': np.broadcast_to(stencil, (self.nk, self.nh)),
        }
        return {name: masks[name] for name in computed}


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    'SurfaceCalculator',
    'AtmosphereCalculator',
    'AtmosphereDerived',
]
