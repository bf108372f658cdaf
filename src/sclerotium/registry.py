#!/usr/bin/env python3
"""
Declaration Registry

Discovers the compute functions of a record type once and caches the result
for the lifetime of the registry, keyed by the record type itself.

A declaration is the (output field, dependencies, function) triple for one
compute function. Discovery is a pure function of the type, so concurrent
first lookups may race harmlessly; population is still done under a lock so
the discovery step runs only once per type.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .conventions import list_compute_functions, match
from .exceptions import DeclarationError
from .introspection import dependency_names, is_unbound


logger = logging.getLogger(__name__)


# ======================================================================================
# Declarations
# ======================================================================================


@dataclass(frozen=True)
class ComputeDeclaration:
    """
    Discovered metadata for a single compute function.

    Attributes:
        method_name: Name of the compute function on the record type
        output_field: Field the function's return value is assigned to
        dependencies: Field names passed positionally, in parameter order
        function: The compute function as found on the record type
        bound: Whether the function takes the record as its first argument
    """
    method_name: str
    output_field: str
    dependencies: Tuple[str, ...]
    function: Callable
    bound: bool = True

    @property
    def is_self_dependent(self) -> bool:
        """True if the output field also appears among the dependencies."""
        return self.output_field in self.dependencies


Declarations = Tuple[ComputeDeclaration, ...]


def declared_fields(record_type: type) -> Optional[frozenset[str]]:
    """
    Get the field names a record type declares, if it can tell.

    Pydantic models expose ``model_fields``; other types may define a
    ``field_names()`` classmethod. Returns None when neither is available.
    """
    model_fields = getattr(record_type, "model_fields", None)
    if isinstance(model_fields, dict):
        return frozenset(model_fields)
    field_names = getattr(record_type, "field_names", None)
    if callable(field_names):
        return frozenset(field_names())
    return None


def discover(
    record_type: type,
    conventions: Optional[Iterable[Any]] = None,
    validate: Optional[bool] = None,
) -> Declarations:
    """
    Scan a record type for compute functions and build their declarations.

    Args:
        record_type: The record class to scan
        conventions: Naming conventions to use (defaults to configured ones)
        validate: Check dependencies against declared fields (defaults to
            the configured ``validate_dependencies``)

    Returns:
        Declarations in declaration order

    Raises:
        DeclarationError: If a signature is unusable, or when validating and
            a dependency isn't a declared field
    """
    from .config import get_config

    config = get_config()
    conventions = tuple(conventions) if conventions is not None else config.conventions
    validate = config.validate_dependencies if validate is None else validate

    declarations = []
    for name, function in list_compute_functions(record_type, conventions):
        convention = match(name, conventions)
        bound = is_unbound(record_type, name)
        declaration = ComputeDeclaration(
            method_name=name,
            output_field=convention.output_field(name),
            dependencies=dependency_names(
                function,
                drop_receiver=bound,
                record_type=record_type,
            ),
            function=function,
            bound=bound,
        )

        if declaration.is_self_dependent:
            logger.warning(
                "%s.%s depends on its own output field '%s'",
                record_type.__name__, name, declaration.output_field,
            )

        declarations.append(declaration)

    if validate:
        _validate(record_type, declarations)

    logger.debug(
        "Discovered %d compute function(s) on %s: %s",
        len(declarations), record_type.__name__,
        [d.method_name for d in declarations],
    )
    return tuple(declarations)


def _validate(record_type: type, declarations: Iterable[ComputeDeclaration]) -> None:
    """Fail fast on dependencies that aren't declared fields."""
    fields = declared_fields(record_type)
    if fields is None:
        logger.debug("%s doesn't declare its fields; skipping validation", record_type.__name__)
        return

    for declaration in declarations:
        for dependency in declaration.dependencies:
            if dependency not in fields:
                raise DeclarationError(
                    f"{record_type.__name__}.{declaration.method_name} depends on "
                    f"unknown field '{dependency}'",
                    record_type=record_type,
                    method_name=declaration.method_name,
                    field_name=dependency,
                )


# ======================================================================================
# Registry
# ======================================================================================


class DeclarationRegistry:
    """
    Lookup-or-populate cache of declarations keyed by record type.

    Example:
        registry = DeclarationRegistry()
        for declaration in registry.get(Article):
            print(declaration.output_field, declaration.dependencies)
    """

    def __init__(self, discover: Callable[[type], Declarations] = discover):
        """
        Initialize the registry.

        Args:
            discover: Function building the declarations for a type. Called
                at most once per type until the type is invalidated.
        """
        self._discover = discover
        self._declarations: Dict[type, Declarations] = {}
        self._lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, record_type: type) -> Declarations:
        """
        Get the declarations for a record type, discovering them on first use.

        Raises:
            DeclarationError: Propagated from discovery; nothing is cached
        """
        try:
            declarations = self._declarations[record_type]
            self._count(hit=True)
            return declarations
        except KeyError:
            pass

        with self._lock:
            # Another thread may have populated it while we waited
            if record_type in self._declarations:
                self._count(hit=True)
                return self._declarations[record_type]
            self._count(hit=False)
            declarations = tuple(self._discover(record_type))
            self._declarations[record_type] = declarations
            return declarations

    def register(self, record_type: type, declarations: Iterable[ComputeDeclaration]) -> None:
        """Explicitly set the declarations for a type, bypassing discovery."""
        with self._lock:
            self._declarations[record_type] = tuple(declarations)

    def output_fields(self, record_type: type) -> Dict[str, str]:
        """Map compute function names to output field names, in order."""
        return {d.method_name: d.output_field for d in self.get(record_type)}

    def invalidate(self, record_type: type) -> None:
        """Forget the declarations of one type."""
        with self._lock:
            self._declarations.pop(record_type, None)

    def clear(self) -> None:
        """
        Clear all cached declarations and reset statistics.

        Useful for testing.
        """
        with self._lock, self._stats_lock:
            self._declarations.clear()
            self._hits = 0
            self._misses = 0

    def _count(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics for monitoring and debugging."""
        with self._stats_lock:
            return {
                'types': len(self._declarations),
                'hits': self._hits,
                'misses': self._misses,
            }

    def __contains__(self, record_type: type) -> bool:
        return record_type in self._declarations

    def __len__(self) -> int:
        return len(self._declarations)


# Global registry
_registry = DeclarationRegistry()


def get_registry() -> DeclarationRegistry:
    """Get the process-wide declaration registry."""
    return _registry
