"""
Diagnostic Registry

Each derived field is declared once, next to the function that fills its
buffer, together with what it needs: raw model fields, grid descriptor
items and other diagnostics. The registry turns a request for some
fields into the ordered list of everything that has to be computed.
"""

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set
import logging

logger = logging.getLogger(__name__)

LEVEL_TYPES = ('sigma', 'surface')

# ============================================================================
# Registry Entries
# ============================================================================

@dataclass(frozen=True)
class DiagnosticVariable:
    """
    One registered diagnostic.

    Attributes:
        name: Short field name ('p', 'rh', 'vr', ...)
        compute_func: Called as compute_func(fields, grid, diagnostics, out)
        level_type: 'sigma' for layer fields, 'surface' for 2D fields
        file_dependencies: Raw model fields read from ``fields``
        grid_dependencies: GridDescriptor attributes read from ``grid``
        diagnostic_dependencies: Diagnostics read from ``diagnostics``
        long_name, units, description, standard_name: Output metadata
        order: Registration index
    """
    name: str
    compute_func: Callable
    level_type: str = 'sigma'
    file_dependencies: FrozenSet[str] = frozenset()
    grid_dependencies: FrozenSet[str] = frozenset()
    diagnostic_dependencies: FrozenSet[str] = frozenset()
    long_name: str = ""
    units: str = ""
    description: str = ""
    standard_name: Optional[str] = None
    order: int = 0

    def __post_init__(self):
        if self.level_type not in LEVEL_TYPES:
            raise ValueError(f"level_type must be one of {LEVEL_TYPES}, got '{self.level_type}'")

    @property
    def all_dependencies(self) -> FrozenSet[str]:
        return self.file_dependencies | self.grid_dependencies | self.diagnostic_dependencies

# ============================================================================
# Registry
# ============================================================================

class DiagnosticRegistry:
    """Name-indexed collection of DiagnosticVariable entries."""

    def __init__(self):
        self._entries: Dict[str, DiagnosticVariable] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_all())

    def __getitem__(self, name: str) -> DiagnosticVariable:
        try:
            return self._entries[name]
        except KeyError:
            raise KeyError(f"Diagnostic variable '{name}' not registered") from None

    def __repr__(self) -> str:
        return f"DiagnosticRegistry({len(self)} variables: {', '.join(self.list_all())})"

    def register(
        self,
        name: str,
        compute_func: Callable,
        level_type: str = 'sigma',
        file_dependencies: Optional[Iterable[str]] = None,
        grid_dependencies: Optional[Iterable[str]] = None,
        diagnostic_dependencies: Optional[Iterable[str]] = None,
        long_name: str = "",
        units: str = "",
        description: str = "",
        standard_name: Optional[str] = None,
    ) -> DiagnosticVariable:
        """
        Add (or replace) a diagnostic.

        A replaced entry keeps its original position in the registration
        order.
        """
        previous = self._entries.get(name)
        if previous is not None:
            logger.warning(f"Replacing registered diagnostic '{name}'")

        entry = DiagnosticVariable(
            name=name,
            compute_func=compute_func,
            level_type=level_type,
            file_dependencies=frozenset(file_dependencies or ()),
            grid_dependencies=frozenset(grid_dependencies or ()),
            diagnostic_dependencies=frozenset(diagnostic_dependencies or ()),
            long_name=long_name,
            units=units,
            description=description,
            standard_name=standard_name,
            order=previous.order if previous is not None else len(self._entries),
        )
        self._entries[name] = entry
        logger.debug(f"Registered {level_type} diagnostic '{name}'")
        return entry

    def is_registered(self, name: str) -> bool:
        return name in self

    def get(self, name: str) -> Optional[DiagnosticVariable]:
        return self._entries.get(name)

    def list_all(self, level_type: Optional[str] = None) -> List[str]:
        """Registered names in registration order, optionally for one level type."""
        entries = sorted(self._entries.values(), key=lambda entry: entry.order)
        return [e.name for e in entries if level_type is None or e.level_type == level_type]

    def resolve_computation_order(self, variables: Iterable[str]) -> List[str]:
        """
        Order the requested diagnostics and everything they depend on.

        Depth-first: each diagnostic is emitted after its dependencies.
        Requests and dependencies are visited in registration order, so the
        result does not depend on the order of ``variables``.

        Raises:
            KeyError: If a name (or a dependency) is not registered
            ValueError: If the dependencies form a cycle
        """
        result: List[str] = []
        done: Set[str] = set()
        active: List[str] = []

        def visit(name: str) -> None:
            if name in done:
                return
            if name in active:
                cycle = active[active.index(name):] + [name]
                raise ValueError(f"Circular dependency detected: {' -> '.join(cycle)}")
            entry = self[name]
            active.append(name)
            for dep in self._by_order(entry.diagnostic_dependencies):
                visit(dep)
            active.pop()
            done.add(name)
            result.append(name)

        for name in self._by_order(variables):
            visit(name)

        logger.debug(f"Computation order: {result}")
        return result

    def get_file_dependencies(self, variables: Iterable[str]) -> Set[str]:
        """Raw model fields needed for the given diagnostics and their dependencies."""
        fields: Set[str] = set()
        for name in self.resolve_computation_order(variables):
            fields |= self[name].file_dependencies
        return fields

    def get_metadata(self, name: str) -> Dict[str, str]:
        entry = self[name]
        return {
            'long_name': entry.long_name,
            'units': entry.units,
            'description': entry.description,
            'standard_name': entry.standard_name or '',
        }

    def _by_order(self, names: Iterable[str]) -> List[str]:
        # Unknown names sort last so that visit() reports them
        return sorted(set(names), key=lambda n: self._entries[n].order if n in self._entries else len(self._entries))


# ============================================================================
# Module Registry
# ============================================================================

_global_registry = DiagnosticRegistry()


def get_registry() -> DiagnosticRegistry:
    """Registry populated by the thermodynamics, moisture and dynamics modules."""
    return _global_registry


def register_diagnostic(
    name: str,
    level_type: str = 'sigma',
    file_dependencies: Optional[List[str]] = None,
    grid_dependencies: Optional[List[str]] = None,
    diagnostic_dependencies: Optional[List[str]] = None,
    long_name: str = "",
    units: str = "",
    description: str = "",
    standard_name: Optional[str] = None,
):
    """
    Register the decorated buffer-filling function with the module registry.

    The function is called as ``func(fields, grid, diagnostics, out)`` where
    ``fields`` maps raw field names to arrays shaped (nk, nh) or (nh,),
    ``diagnostics`` maps already computed names to their buffers and ``out``
    is the buffer to fill in place.

    Example:
        @register_diagnostic(
            name='p',
            file_dependencies=['ps'],
            grid_dependencies=['ptop', 'sigma_mid'],
            long_name='pressure',
            units='hPa'
        )
        def fill_pressure(fields, grid, diagnostics, out):
            ...
    """
    def decorator(func: Callable) -> Callable:
        _global_registry.register(
            name, func,
            level_type=level_type,
            file_dependencies=file_dependencies,
            grid_dependencies=grid_dependencies,
            diagnostic_dependencies=diagnostic_dependencies,
            long_name=long_name,
            units=units,
            description=description,
            standard_name=standard_name,
        )
        return func

    return decorator


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    'DiagnosticVariable',
    'DiagnosticRegistry',
    'get_registry',
    'register_diagnostic',
]
