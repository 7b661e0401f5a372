"""
RegCM Post - Post-processing of RegCM sigma-coordinate model output.

This package computes diagnostic fields on the model's sigma layers and
interpolates them to fixed pressure levels, packaging the results as
xarray datasets.

Key Features:
- Pressure, potential temperature, geopotential height, relative humidity,
  dew point, vorticity and divergence on sigma layers
- 2 m relative humidity and sea-level pressure
- Height, log-sigma and linear-sigma interpolation to pressure levels
- Missing-value masking of columns without a valid surface pressure

Quick Start:
    >>> import regcm_post as rp
    >>> grid = rp.GridDescriptor(nx, ny, ptop, sigma_full, ds, xmap, dmap, zs)
    >>> result = rp.process_time_slice(grid, ps, t, qv, u, v)
    >>> result.pressure['ht'].sel(plev=500)
"""

__version__ = "1.0.0"
__author__ = "RegCM Post Development Team"

# Import main interface functions
from .main import process_time_slice

# Import data classes
from .core.core_types import GridDescriptor, TimeSliceResult

# Import configuration for advanced users
from .core.config import (
    MISSING_VALUE,
    DEFAULT_PRESSURE_LEVELS,
    PRESSURE_LEVEL_SCHEMES,
    VERTICAL_DIM,
    PLEV_DIM,
)

# Import exceptions for error handling
from .core.exceptions import (
    RegcmPostError,
    GridShapeError,
    ParameterError,
    UnresolvablePressureBracketError,
    InterpolatorStateError,
    DataProcessingError,
)

# Import logging configuration
from .core.logging_config import setup_logging, set_log_level

# Import diagnostics module
from . import diagnostics
from .diagnostics import (
    AtmosphereCalculator,
    AtmosphereDerived,
    SurfaceCalculator,
    compute_diagnostics,
    list_available_diagnostics,
)
from .processing import PressureLevelInterpolator

# Define what gets imported with "from regcm_post import *"
__all__ = [
    # Version info
    '__version__',

    # Main interface
    'process_time_slice',
    'GridDescriptor',
    'TimeSliceResult',

    # Calculators and interpolation
    'AtmosphereCalculator',
    'AtmosphereDerived',
    'SurfaceCalculator',
    'PressureLevelInterpolator',

    # Configuration constants
    'MISSING_VALUE',
    'DEFAULT_PRESSURE_LEVELS',
    'PRESSURE_LEVEL_SCHEMES',
    'VERTICAL_DIM',
    'PLEV_DIM',

    # Exception classes
    'RegcmPostError',
    'GridShapeError',
    'ParameterError',
    'UnresolvablePressureBracketError',
    'InterpolatorStateError',
    'DataProcessingError',

    # Logging configuration
    'setup_logging',
    'set_log_level',

    # Diagnostics
    'diagnostics',
    'compute_diagnostics',
    'list_available_diagnostics',
]

import logging
_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
