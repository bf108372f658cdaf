#!/usr/bin/env python3
"""
Record Contracts

Protocols describing what the recompute engine and the task queues need from
a host record type. Any class with matching methods satisfies them; no
inheritance required.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Record(Protocol):
    """
    The capability surface the recompute engine works over.

    Example:
        >>> class Row:
        ...     def is_dirty(self, name): return False
        ...     def get_field(self, name): return getattr(self, name)
        ...     def set_field(self, name, value): setattr(self, name, value)
        ...     def save(self): pass
        >>> isinstance(Row(), Record)
        True
    """

    def is_dirty(self, name: str) -> bool:
        """True if the field differs from its loaded/persisted value."""
        ...

    def get_field(self, name: str) -> Any:
        """Read a field by name. Raises AttributeError or KeyError if unknown."""
        ...

    def set_field(self, name: str, value: Any) -> None:
        """Write a field by name, through the record's ordinary assignment."""
        ...

    def save(self) -> Any:
        """Persist the current field state."""
        ...


@runtime_checkable
class Recomputable(Protocol):
    """
    What a deferred recompute task needs to run against any record type.
    """

    def recompute(self) -> Any:
        """Recompute all computed attributes without saving."""
        ...

    def recompute_async(self) -> Any:
        """Recompute attributes in a task handled by a queue."""
        ...

    def save(self) -> Any:
        """Persist the object's attributes."""
        ...


@runtime_checkable
class Snapshottable(Protocol):
    """
    A record that can be captured by value and rebuilt in another context.

    ``snapshot()`` returns the record's persisted identity and field state;
    the ``restore`` classmethod rebuilds an equivalent record from them.
    """

    def snapshot(self) -> tuple[Any, dict[str, Any]]:
        ...

    @classmethod
    def restore(cls, key: Any, state: dict[str, Any]) -> Any:
        ...
