#!/usr/bin/env python3
"""
Recompute Engine

Runs the compute functions of a record and writes their results back onto
the record:

- ``recompute_all`` runs every compute function unconditionally
- ``recompute_dirty`` runs only those with at least one dirty dependency
  (this is what the pre-persist hook calls)
- ``recompute_async`` captures the record into a task and hands it to a
  queue; the task later runs ``recompute()`` and ``save()``, so the deferred
  path always recomputes everything

Compute functions are run in declaration order. The first failing function
aborts the pass; assignments made earlier in the pass stay on the record.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, TYPE_CHECKING

from .exceptions import DeclarationError
from .registry import ComputeDeclaration, Declarations, DeclarationRegistry, get_registry

if TYPE_CHECKING:
    from .tasks import TaskQueue


logger = logging.getLogger(__name__)


class ComputedAttributes:
    """
    Computed attribute capability a record type holds and delegates to.

    The engine keeps no state between calls. Declarations come from a
    registry and deferred tasks go to a queue; either defaults to the global
    one when not given.

    Example:
        ```python
        engine = ComputedAttributes()
        engine.install(Article)      # recompute dirty attributes on save

        article.text = "hello world"
        engine.recompute_dirty(article)
        ```
    """

    def __init__(
        self,
        registry: Optional[DeclarationRegistry] = None,
        queue: Optional["TaskQueue"] = None,
    ):
        self._registry = registry
        self._queue = queue

    @property
    def registry(self) -> DeclarationRegistry:
        return self._registry if self._registry is not None else get_registry()

    @property
    def queue(self) -> "TaskQueue":
        if self._queue is not None:
            return self._queue
        from .config import get_config
        return get_config().queue

    def declarations(self, record: Any) -> Declarations:
        """Get the declarations for a record (or record type)."""
        record_type = record if isinstance(record, type) else type(record)
        return self.registry.get(record_type)

    # ------------------------------------------------------------------
    # Recompute passes
    # ------------------------------------------------------------------

    def recompute_all(self, record: Any) -> Any:
        """
        Recompute every computed attribute on the record.

        Returns:
            The same record, mutated
        """
        for declaration in self.declarations(record):
            self.apply(record, declaration)
        return record

    def recompute_dirty(self, record: Any) -> Any:
        """
        Recompute the computed attributes whose dependencies are dirty.

        Compute functions whose dependencies are all clean are skipped: they
        aren't called and their output fields are left untouched.

        Returns:
            The same record, mutated
        """
        for declaration in self.declarations(record):
            if self.dependencies_dirty(record, declaration):
                self.apply(record, declaration)
            else:
                logger.debug(
                    "Skipping %s.%s: dependencies clean",
                    type(record).__name__, declaration.method_name,
                )
        return record

    def recompute_async(self, record: Any) -> Any:
        """
        Queue a task that recomputes all attributes and saves the record.

        Nothing is recomputed synchronously. The record is captured by value
        when the task is created.

        Returns:
            The same record, unchanged

        Raises:
            QueueError: If the record was never saved, or the queue refuses
                the task
        """
        from .tasks import RecomputeTask

        task = RecomputeTask.capture(record)
        self.queue.enqueue(task)
        logger.debug("Queued %r", task)
        return record

    # ------------------------------------------------------------------
    # Per-declaration steps
    # ------------------------------------------------------------------

    def dependencies_dirty(self, record: Any, declaration: ComputeDeclaration) -> bool:
        """Check whether at least one dependency of a declaration is dirty."""
        for name in declaration.dependencies:
            if record.is_dirty(name):
                return True
        return False

    def dependency_values(self, record: Any, declaration: ComputeDeclaration) -> List[Any]:
        """
        Read the current dependency values, in parameter order.

        Raises:
            DeclarationError: If the record has no field for a dependency
        """
        values = []
        for name in declaration.dependencies:
            try:
                values.append(record.get_field(name))
            except (AttributeError, KeyError) as e:
                raise DeclarationError(
                    f"{type(record).__name__}.{declaration.method_name} depends on "
                    f"'{name}', which is not a field of the record",
                    record_type=type(record),
                    method_name=declaration.method_name,
                    field_name=name,
                ) from e
        return values

    def apply(self, record: Any, declaration: ComputeDeclaration) -> Any:
        """
        Call one compute function and assign its result to the output field.

        Exceptions raised by the compute function propagate unchanged.
        """
        args = self.dependency_values(record, declaration)
        logger.debug(
            "Computing %s.%s from %s",
            type(record).__name__, declaration.output_field, declaration.dependencies,
        )
        function = declaration.function
        if declaration.bound:
            function = function.__get__(record, type(record))
        value = function(*args)
        record.set_field(declaration.output_field, value)
        return value

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def install(self, record_type: type) -> bool:
        """Run ``recompute_dirty`` before every save of ``record_type``."""
        from .hooks import install
        return install(record_type, self)


# Global engine
_engine = ComputedAttributes()


def get_engine() -> ComputedAttributes:
    """Get the engine bound to the global registry and configured queue."""
    return _engine


def recompute_all(record: Any) -> Any:
    """Recompute every computed attribute on the record."""
    return _engine.recompute_all(record)


def recompute_dirty(record: Any) -> Any:
    """Recompute computed attributes whose dependencies are dirty."""
    return _engine.recompute_dirty(record)


def recompute_async(record: Any) -> Any:
    """Queue a recompute-and-save of the record."""
    return _engine.recompute_async(record)
