"""
RegCM Post Diagnostics Module

This module provides diagnostic variable calculations on RegCM sigma layers.

Key Features:
- Automatic dependency resolution
- Pre-allocated calculator buffers exposed as read-only views
- Masking of columns without a valid surface pressure

Usage:
    from regcm_post.diagnostics import AtmosphereCalculator

    calc = AtmosphereCalculator(grid)
    derived = calc.compute(ps, t, qv, u, v)
    rh = derived.field('rh')

Available Diagnostic Variables:
    Sigma layers:
        - p: Pressure
        - pt: Potential temperature
        - ht: Geopotential height
        - rh: Relative humidity
        - td: Dew-point temperature
        - vr: Relative vorticity
        - dv: Divergence

    Surface:
        - r2: 2 m relative humidity
"""

# Import all diagnostic calculation modules to register variables
from . import thermodynamics
from . import moisture
from . import dynamics

# Import core components
from .constants import *
from .registry import get_registry, register_diagnostic

# Import computation engine
from .compute import (
    compute_diagnostics,
    list_available_diagnostics,
    get_diagnostic_metadata,
    get_required_fields,
)

from .calculators import AtmosphereCalculator, AtmosphereDerived, SurfaceCalculator

__version__ = "1.0.0"

__all__ = [
    # Calculators
    'AtmosphereCalculator',
    'AtmosphereDerived',
    'SurfaceCalculator',

    # Main computation functions
    'compute_diagnostics',
    'list_available_diagnostics',
    'get_diagnostic_metadata',
    'get_required_fields',

    # Registry
    'get_registry',
    'register_diagnostic',

    # Constants (from constants module)
    'rgas', 'cpd', 'gti', 'rovcp', 'rovg', 'tzero', 'bltop', 'lrate', 'stdt',
]


def print_diagnostic_info():
    """Print information about available diagnostic variables."""
    registry = get_registry()

    print(f"""
RegCM Post Diagnostics v{__version__}
{'=' * 60}

Available Diagnostic Variables ({len(registry.list_all())}):
{'=' * 60}
""")

    for level_type in ('sigma', 'surface'):
        print(f"\n{level_type.capitalize()}:")
        print("-" * 60)
        for var in registry.list_all(level_type):
            metadata = registry.get_metadata(var)
            print(f"  {var:10s} - {metadata['long_name']:40s} [{metadata['units']}]")

    print("\n" + "=" * 60)
    print("\nFor more information, use:")
    print("  >>> from regcm_post.diagnostics import get_registry")
    print("  >>> registry = get_registry()")
    print("  >>> metadata = registry.get_metadata('rh')")
    print()
