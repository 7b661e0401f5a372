"""
RegCM Post Data Processing

This package provides the pressure-level interpolation engine.
"""

from .vertical import PressureLevelInterpolator

__all__ = [
    "PressureLevelInterpolator",
]
