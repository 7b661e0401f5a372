"""
RegCM Post Type Definitions and Data Classes

This module defines the grid descriptor, result containers and the array
validation helpers shared by the calculators and the interpolation engine.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union, Dict, Sequence
import numpy as np
import xarray as xr

from .config import DEFAULT_DTYPE
from .exceptions import ParameterError, check_array_size

# ============================================================================
# Type Aliases
# ============================================================================

ArrayLike = Union[np.ndarray, Sequence[float]]
HorizontalShape = Tuple[int, ...]

# ============================================================================
# Validation Utilities (Module Level)
# ============================================================================

def validate_sigma(name: str, sigma: np.ndarray) -> None:
    """Validate a sigma table: increasing values inside [0, 1]."""
    if sigma.ndim != 1 or sigma.size < 2:
        raise ParameterError(name, str(sigma), "Need a 1-D table with at least 2 values")
    if np.any(sigma < 0.0) or np.any(sigma > 1.0):
        raise ParameterError(name, str(sigma), "Sigma values must lie in [0, 1]")
    if np.any(np.diff(sigma) <= 0.0):
        raise ParameterError(name, str(sigma), "Sigma values must be strictly increasing")


def as_horizontal(name: str, values: ArrayLike, nh: int) -> np.ndarray:
    """
    Return a 2D field as a flat (nh,) array.

    Accepts flattened input or input shaped (nx, ny). The result is a view
    whenever the input is already contiguous and of the working dtype.
    """
    arr = np.asarray(values, dtype=DEFAULT_DTYPE)
    check_array_size(name, arr.size, nh)
    return arr.reshape(nh)


def as_columns(name: str, values: ArrayLike, nlev: int, nh: int) -> np.ndarray:
    """
    Return a 3D field as a (nlev, nh) array.

    Accepts flattened input (index k*nh + i) or input shaped (nlev, nx, ny)
    or (nlev, nh).
    """
    arr = np.asarray(values, dtype=DEFAULT_DTYPE)
    check_array_size(name, arr.size, nlev * nh)
    return arr.reshape(nlev, nh)


def readonly_view(buffer: np.ndarray) -> np.ndarray:
    """Flat read-only view sharing memory with a calculator buffer."""
    view = buffer.reshape(-1).view()
    view.flags.writeable = False
    return view

# ============================================================================
# Grid Descriptor
# ============================================================================

@dataclass
class GridDescriptor:
    """
    Domain geometry for one model run.

    Attributes:
        nx: Number of points along the first horizontal index
        ny: Number of points along the second horizontal index
        ptop: Model top pressure [hPa]
        sigma_full: Sigma full levels, increasing from the top to 1 at the surface
        ds: Horizontal grid spacing [m]
        xmap: Map factor on cross (mass) points, nx*ny values
        dmap: Map factor on dot (velocity) points, nx*ny values
        zs: Topography height on cross points [m], nx*ny values
        sigma_mid: Sigma layer midpoints; derived from sigma_full when omitted
    """
    nx: int
    ny: int
    ptop: float
    sigma_full: ArrayLike
    ds: float
    xmap: ArrayLike
    dmap: ArrayLike
    zs: ArrayLike
    sigma_mid: Optional[ArrayLike] = None

    def __post_init__(self):
        """Validate the grid and normalise arrays."""
        if self.nx < 2 or self.ny < 2:
            raise ParameterError("nx/ny", f"{self.nx}x{self.ny}", "Need at least 2 points in each direction")
        if self.ptop < 0.0:
            raise ParameterError("ptop", str(self.ptop), "Top pressure must be non-negative")
        if self.ds <= 0.0:
            raise ParameterError("ds", str(self.ds), "Grid spacing must be positive")

        self.sigma_full = np.asarray(self.sigma_full, dtype=DEFAULT_DTYPE)
        validate_sigma("sigma_full", self.sigma_full)
        if self.sigma_full[-1] != 1.0:
            raise ParameterError("sigma_full", str(self.sigma_full[-1]), "Last full level must be 1 (surface)")

        if self.sigma_mid is None:
            self.sigma_mid = 0.5 * (self.sigma_full[:-1] + self.sigma_full[1:])
        else:
            self.sigma_mid = np.asarray(self.sigma_mid, dtype=DEFAULT_DTYPE)
        check_array_size("sigma_mid", self.sigma_mid.size, self.sigma_full.size - 1)
        if self.sigma_mid.size > 1:
            validate_sigma("sigma_mid", self.sigma_mid)

        self.xmap = as_horizontal("xmap", self.xmap, self.nh)
        self.dmap = as_horizontal("dmap", self.dmap, self.nh)
        self.zs = as_horizontal("zs", self.zs, self.nh)

    @property
    def nh(self) -> int:
        """Number of horizontal cells."""
        return self.nx * self.ny

    @property
    def nk(self) -> int:
        """Number of sigma layers."""
        return int(self.sigma_mid.size)

    @property
    def horizontal_shape(self) -> HorizontalShape:
        return (self.nx, self.ny)

# ============================================================================
# Pipeline Results
# ============================================================================

@dataclass
class TimeSliceResult:
    """
    Datasets produced for one time slice.

    Attributes:
        sigma: Atmospheric diagnostics on sigma layers
        pressure: Fields interpolated to pressure levels
        surface: Surface diagnostics (and sea-level pressure when available)
    """
    sigma: xr.Dataset
    pressure: xr.Dataset
    surface: xr.Dataset = field(default_factory=xr.Dataset)

    def as_dict(self) -> Dict[str, xr.Dataset]:
        return {'sigma': self.sigma, 'pressure': self.pressure, 'surface': self.surface}
