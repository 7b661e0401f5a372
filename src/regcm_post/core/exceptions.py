"""
RegCM Post Custom Exception Classes

This module defines all custom exception classes for better error handling
and more informative error messages.
"""

from typing import Optional, Sequence, Tuple, Union

# ============================================================================
# Base Exception
# ============================================================================

class RegcmPostError(Exception):
    """Base exception class for all RegCM post-processing errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        full_message = f"{message}\nDetails: {details}" if details else message
        super().__init__(full_message)

# ============================================================================
# Grid and Input Errors
# ============================================================================

class GridShapeError(RegcmPostError):
    """Array size does not match the grid descriptor."""

    def __init__(self, name: str, expected: Union[int, Tuple[int, ...]], actual: Union[int, Tuple[int, ...]]):
        super().__init__(
            f"Invalid shape for '{name}': {actual}",
            f"Expected {expected} elements"
        )
        self.name = name
        self.expected = expected
        self.actual = actual

class ParameterError(RegcmPostError):
    """Parameter validation errors."""

    def __init__(self, parameter: str, value: str, reason: str):
        super().__init__(f"Invalid parameter '{parameter}': {value}", reason)
        self.parameter = parameter
        self.value = value

# ============================================================================
# Interpolation Errors
# ============================================================================

class UnresolvablePressureBracketError(RegcmPostError):
    """
    A target pressure level cannot be placed in any interpolation regime.

    This signals that the pressure-level list is inconsistent with the
    column pressure range. It is never recoverable for the current call.
    """

    kind = "unresolvable-pressure-bracket"

    def __init__(self, routine: str, reason: str, levels: Optional[Sequence[float]] = None):
        super().__init__(f"Unresolvable pressure bracket in {routine}", reason)
        self.routine = routine
        self.levels = list(levels) if levels is not None else None

class InterpolatorStateError(RegcmPostError):
    """Pressure-level interpolator used in the wrong setup state."""

    def __init__(self, state: str, reason: str):
        super().__init__(f"Pressure-level interpolator is {state}", reason)
        self.state = state

# ============================================================================
# Processing Errors
# ============================================================================

class DataProcessingError(RegcmPostError):
    """Data processing related errors."""

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Data processing failed during {operation}", reason)
        self.operation = operation

# ============================================================================
# Utility Functions
# ============================================================================

def check_array_size(name: str, size: int, expected: int) -> None:
    """Raise GridShapeError unless an array holds exactly `expected` elements."""
    if size != expected:
        raise GridShapeError(name, expected, size)
