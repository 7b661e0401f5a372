"""
Diagnostic Computation Engine

This module provides the computation engine for diagnostic variables,
including dependency resolution and in-place filling of calculator buffers.
"""

import numpy as np
from typing import List, Dict, Mapping, Optional, Set

from .registry import get_registry
from ..core.exceptions import DataProcessingError, RegcmPostError

import logging
logger = logging.getLogger(__name__)

# ============================================================================
# Main Computation Function
# ============================================================================

def compute_diagnostics(
    fields: Mapping[str, np.ndarray],
    grid,
    variables: List[str],
    buffers: Mapping[str, np.ndarray],
) -> Dict[str, np.ndarray]:
    """
    Compute diagnostic variables into pre-allocated buffers.

    Args:
        fields: Raw model fields, 3D ones shaped (nk, nh) and 2D ones (nh,)
        grid: GridDescriptor of the run
        variables: Diagnostic variable names to compute
        buffers: Output buffer for every variable in the resolved order

    Returns:
        Mapping of every computed variable (dependencies included) to its buffer

    Raises:
        KeyError: If a requested variable is not registered
        DataProcessingError: If computation fails
    """
    registry = get_registry()

    for var in variables:
        if not registry.is_registered(var):
            available = registry.list_all()
            raise KeyError(
                f"Diagnostic variable '{var}' not registered. "
                f"Available: {available}"
            )

    try:
        computation_order = registry.resolve_computation_order(variables)
    except ValueError as e:
        raise DataProcessingError("dependency resolution", str(e))

    diagnostics = {}

    for var_name in computation_order:
        logger.debug(f"Computing diagnostic variable: {var_name}")

        diag_var = registry.get(var_name)

        missing_deps = diag_var.file_dependencies - set(fields)
        if missing_deps:
            raise DataProcessingError(
                "diagnostic computation",
                f"Missing required fields for '{var_name}': {sorted(missing_deps)}"
            )

        if var_name not in buffers:
            raise DataProcessingError(
                "diagnostic computation",
                f"No output buffer allocated for '{var_name}'"
            )

        try:
            diag_var.compute_func(fields, grid, diagnostics, buffers[var_name])
        except RegcmPostError:
            raise
        except Exception as e:
            raise DataProcessingError(
                f"computing '{var_name}'",
                f"{type(e).__name__}: {e}"
            )

        diagnostics[var_name] = buffers[var_name]

    return diagnostics


def get_required_fields(diagnostic_variables: List[str]) -> Set[str]:
    """
    Get all raw model fields required to compute diagnostic variables.

    Example:
        >>> get_required_fields(["td"])
        {'ps', 't', 'qv'}
    """
    registry = get_registry()

    try:
        return registry.get_file_dependencies(diagnostic_variables)
    except KeyError as e:
        raise KeyError(f"Unknown diagnostic variable: {e}")


def list_available_diagnostics(level_type: Optional[str] = None) -> List[str]:
    """
    List available diagnostic variables in registration order.

    Args:
        level_type: 'sigma' or 'surface' to filter, None for all

    Example:
        >>> list_available_diagnostics('sigma')
        ['p', 'pt', 'ht', 'rh', 'td', 'vr', 'dv']
    """
    return get_registry().list_all(level_type)


def get_diagnostic_metadata(variable: str) -> Dict[str, str]:
    """
    Get metadata for a diagnostic variable.

    Raises:
        KeyError: If variable is not registered
    """
    return get_registry().get_metadata(variable)


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    'compute_diagnostics',
    'get_required_fields',
    'list_available_diagnostics',
    'get_diagnostic_metadata',
]
