"""
Physical Constants for Sigma-Level Diagnostics

This module defines the physical and empirical constants shared by every
diagnostic and interpolation routine. Pressures are in hPa, temperatures
in K, heights in m.

References:
    - Bolton (1980): The Computation of Equivalent Potential Temperature.
      Mon. Wea. Rev., 108, 1046-1053
    - WMO recommended values
"""

# ============================================================================
# Fundamental Physical Constants
# ============================================================================

rgas = 287.0058       # Specific gas constant for dry air [J kg^-1 K^-1]
cpd = 1005.46         # Specific heat of dry air at constant pressure [J kg^-1 K^-1]
gti = 9.80665         # Gravitational acceleration [m s^-2]
ep2 = 0.62197         # Ratio of water vapor to dry air molecular weight [dimensionless]

# ============================================================================
# Derived Constants
# ============================================================================

rgti = 1.0 / gti      # Inverse gravity [s^2 m^-1]
rovcp = rgas / cpd    # Poisson exponent R/Cp ≈ 0.2854 [dimensionless]
rovg = rgas / gti     # Hydrostatic scale factor R/g [m K^-1]

# ============================================================================
# Reference Values
# ============================================================================

tzero = 273.15        # Freezing point of water [K]
p00 = 1000.0          # Potential temperature reference pressure [hPa]
stdt = 288.15         # Standard atmosphere surface temperature [K]

# ============================================================================
# Vertical Structure
# ============================================================================

bltop = 0.96          # Sigma of the boundary-layer top used for extrapolation
lrate = 0.00649       # Environmental lapse rate [K m^-1]

# ============================================================================
# Saturation Vapor Pressure Parameters
# ============================================================================

# Over liquid water, t > tzero: es = svp1 * exp(svp2 * (t - tzero) / (t - svp3))
svp1 = 6.112          # Saturation vapor pressure at tzero [hPa]
svp2 = 17.67          # Empirical constant [dimensionless]
svp3 = 29.65          # Empirical constant [K]

# Over ice, t <= tzero: es = svp4 * exp(svp5 - svp6 / t)
svp4 = svp1           # [hPa]
svp5 = 22.514         # Empirical constant [dimensionless]
svp6 = 6150.0         # Empirical constant [K]

# ============================================================================
# Dew-Point Depression Polynomial
# ============================================================================

# dpd = (a0 + a1*tc)*rx + 2*((b0 + b1*tc)*rx)**3 + (c0 + c1*tc)*rx**14
# with rx = 1 - rh and tc the Celsius temperature
dpd_a0, dpd_a1 = 14.55, 0.144
dpd_b0, dpd_b1 = 2.5, 0.007
dpd_c0, dpd_c1 = 15.9, 0.117

# ============================================================================
# Physical Constant Validation
# ============================================================================

def validate_constants():
    """
    Validate that physical constants are self-consistent.

    Returns:
        bool: True if all validation checks pass

    Raises:
        AssertionError: If any consistency check fails
    """
    assert abs(rovcp - 0.2854) < 0.001, "rovcp should be approximately 0.2854"
    assert abs(ep2 - 0.622) < 0.001, "ep2 should be approximately 0.622"
    assert 0.0 < bltop < 1.0, "bltop must be a sigma value"
    assert svp4 == svp1, "Both saturation branches share the reference pressure"

    return True

# ============================================================================
# Package Metadata
# ============================================================================

__all__ = [
    # Gas constants and gravity
    'rgas', 'cpd', 'gti', 'ep2',

    # Derived constants
    'rgti', 'rovcp', 'rovg',

    # Reference values
    'tzero', 'p00', 'stdt',

    # Vertical structure
    'bltop', 'lrate',

    # Saturation vapor pressure parameters
    'svp1', 'svp2', 'svp3', 'svp4', 'svp5', 'svp6',

    # Dew-point depression polynomial
    'dpd_a0', 'dpd_a1', 'dpd_b0', 'dpd_b1', 'dpd_c0', 'dpd_c1',

    # Validation
    'validate_constants',
]
