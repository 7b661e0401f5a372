"""
RegCM Post Configuration and Constants

This module centralizes configuration parameters and default values
for better maintainability and consistency across the codebase.
"""

import os

import numpy as np

# ============================================================================
# Dimension Names
# ============================================================================

VERTICAL_DIM = 'kz'
X_DIM = 'x'
Y_DIM = 'y'
PLEV_DIM = 'plev'

# ============================================================================
# Missing Data
# ============================================================================

# Marks masked or invalid horizontal cells; propagated, never computed
MISSING_VALUE = -1.0e34

# ============================================================================
# Numerical Defaults
# ============================================================================

DEFAULT_DTYPE = np.float64

# ============================================================================
# Pressure Levels
# ============================================================================

# Standard output levels [hPa]
# Users can override via REGCM_POST_PRESSURE_LEVELS="1000,850,500"
_STANDARD_PRESSURE_LEVELS = (
    1000.0, 925.0, 850.0, 700.0, 600.0, 500.0,
    400.0, 300.0, 250.0, 200.0, 150.0, 100.0,
)


def _pressure_levels_from_env(default: tuple) -> tuple:
    """Read the default pressure-level list from the environment."""
    raw = os.environ.get("REGCM_POST_PRESSURE_LEVELS")
    if not raw:
        return default
    try:
        levels = tuple(float(tok) for tok in raw.split(",") if tok.strip())
    except ValueError as e:
        raise ValueError(f"REGCM_POST_PRESSURE_LEVELS is not a list of numbers: {raw!r}") from e
    return levels or default


DEFAULT_PRESSURE_LEVELS = _pressure_levels_from_env(_STANDARD_PRESSURE_LEVELS)

# ============================================================================
# Pressure-Level Interpolation Schemes
# ============================================================================

# 'height' uses the hydrostatic height routine, 'log' the log-sigma
# interpolation with underground lapse-rate extrapolation, 'linear' the
# linear-in-sigma interpolation with boundary values held constant.
PRESSURE_LEVEL_SCHEMES = {
    "ht": "height",
    "t": "log",
    "qv": "linear",
    "rh": "linear",
    "u": "linear",
    "v": "linear",
}
