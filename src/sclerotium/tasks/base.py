#!/usr/bin/env python3
"""
Deferred recompute tasks and the queue interface.

A RecomputeTask captures a record by value (type, persisted key, and field
state) so it can be executed later, possibly in another thread or process,
without sharing the live object. Queues only need ``enqueue(task)``.
"""

from __future__ import annotations

import copy
import importlib
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol

from ..contracts import Snapshottable
from ..exceptions import QueueError


@dataclass(frozen=True)
class RecomputeTask:
    """
    Unit of work recomputing all attributes of a record, then saving it.

    Attributes:
        record_type: Class used to rebuild the record
        key: Persisted identity of the record
        state: Field values captured when the task was created
    """
    record_type: type
    key: Any
    state: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def capture(cls, record: Any) -> "RecomputeTask":
        """
        Capture a record by value.

        Raises:
            TypeError: If the record can't be snapshotted
            QueueError: If the record has never been saved
        """
        if not isinstance(record, Snapshottable):
            raise TypeError(
                f"{type(record).__name__} can't be queued for recompute: "
                f"it must implement snapshot() and restore()"
            )
        key, state = record.snapshot()
        if key is None:
            raise QueueError(
                f"{type(record).__name__} can't be queued for recompute before it is saved"
            )
        return cls(record_type=type(record), key=key, state=copy.deepcopy(state))

    def resolve(self) -> Any:
        """Rebuild the record in the current context."""
        return self.record_type.restore(self.key, copy.deepcopy(self.state))

    def run(self) -> Any:
        """Recompute every computed attribute and persist the record."""
        record = self.resolve()
        record.recompute()
        record.save()
        return record

    def __call__(self) -> Any:
        return self.run()

    def to_dict(self) -> Dict[str, Any]:
        """
        Plain representation for queues that serialize their tasks.

        The record type is referenced by import path, so it must be defined
        at module level.
        """
        return {
            "record_type": f"{self.record_type.__module__}:{self.record_type.__qualname__}",
            "key": self.key,
            "state": copy.deepcopy(self.state),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecomputeTask":
        """Rebuild a task from ``to_dict()`` output."""
        module_name, _, qualname = data["record_type"].partition(":")
        record_type: Any = importlib.import_module(module_name)
        for part in qualname.split("."):
            record_type = getattr(record_type, part)
        return cls(record_type=record_type, key=data["key"], state=data.get("state", {}))


class TaskQueue(Protocol):
    """
    Protocol for queues accepting recompute tasks.

    ``enqueue`` must not block on the task's execution (except for queues
    that deliberately run tasks inline) and raises QueueError when it can't
    accept the task.
    """

    def enqueue(self, task: RecomputeTask) -> None:
        ...

    def close(self) -> None:
        """Stop accepting tasks and release resources."""
        ...
