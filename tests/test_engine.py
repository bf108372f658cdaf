#!/usr/bin/env python3
"""Tests for the recompute engine over a plain (non-pydantic) record."""

import sys
sys.path.insert(0, "src")

import pytest

from sclerotium.contracts import Record
from sclerotium.engine import (
    ComputedAttributes,
    get_engine,
    recompute_all,
    recompute_dirty,
    recompute_async,
)
from sclerotium.exceptions import DeclarationError, QueueError
from sclerotium.registry import DeclarationRegistry
from sclerotium.tasks import ImmediateQueue, RecomputeTask


# ============================================================================
# Test Fixtures
# ============================================================================

_MISSING = object()


class Row:
    """Minimal record: a dict of fields plus a baseline for dirty checks."""

    def __init__(self, key=None, **fields):
        self.key = key
        self.fields = dict(fields)
        self.original = dict(fields)
        self.calls = []
        self.saves = 0

    def is_dirty(self, name):
        return name in self.fields and self.fields[name] != self.original.get(name, _MISSING)

    def get_field(self, name):
        return self.fields[name]

    def set_field(self, name, value):
        self.fields[name] = value

    def save(self):
        self.saves += 1
        self.original = dict(self.fields)
        return self

    def snapshot(self):
        return self.key, dict(self.fields)

    @classmethod
    def restore(cls, key, state):
        return cls(key, **state)

    def recompute(self):
        return recompute_all(self)


class Pair(Row):
    def computeAAttribute(self, x):
        self.calls.append(("a", x))
        return x * 2

    def computeBAttribute(self, y):
        self.calls.append(("b", y))
        return y * 3


class Ordered(Row):
    def computeLabelAttribute(self, last, first):
        self.calls.append(("label", last, first))
        return f"{last}, {first}"


class Failing(Row):
    def computeFirstAttribute(self, x):
        return x + 1

    def computeSecondAttribute(self, x):
        raise RuntimeError("boom")

    def computeThirdAttribute(self, x):
        self.calls.append("third")
        return x


class Unknown(Row):
    def computeTotalAttribute(self, missing):
        return missing


class Enumerated(Row):
    """Supplies its compute functions itself; none are members of the type."""

    @classmethod
    def list_compute_functions(cls):
        return [
            ("computeDoubleAttribute", lambda x: x * 2),
            ("helper", lambda: None),
            ("computeSumAttribute", lambda x, y: x + y),
        ]


class Scaled(Row):
    @staticmethod
    def computeHalfAttribute(x):
        return x // 2

    def computeTwiceAttribute(self, x):
        self.calls.append(("twice", x))
        return x * 2


class RecordingQueue:
    def __init__(self):
        self.tasks = []

    def enqueue(self, task):
        self.tasks.append(task)

    def close(self):
        pass


def clean_pair(**fields):
    values = {"x": 1, "y": 1, "a": None, "b": None}
    values.update(fields)
    return Pair(**values)


# ============================================================================
# recompute_all
# ============================================================================

def test_row_satisfies_record_protocol():
    assert isinstance(clean_pair(), Record)


def test_recompute_all_runs_every_function_once():
    """Every compute function runs regardless of dirtiness."""
    row = clean_pair(x=2, y=5)

    result = recompute_all(row)

    assert result is row
    assert row.calls == [("a", 2), ("b", 5)]
    assert row.fields["a"] == 4
    assert row.fields["b"] == 15


def test_recompute_all_passes_values_in_parameter_order():
    row = Ordered(first="Ada", last="Lovelace", label=None)

    recompute_all(row)

    assert row.calls == [("label", "Lovelace", "Ada")]
    assert row.fields["label"] == "Lovelace, Ada"


def test_recompute_all_calls_enumerated_functions():
    """Callables supplied by list_compute_functions need not be members."""
    row = Enumerated(x=3, y=4, double=None, sum=None)

    recompute_all(row)

    assert row.fields["double"] == 6
    assert row.fields["sum"] == 7
    assert "helper" not in row.fields


def test_recompute_all_binds_only_member_functions():
    row = Scaled(x=8, half=None, twice=None)

    recompute_all(row)

    assert row.fields["half"] == 4
    assert row.fields["twice"] == 16
    assert row.calls == [("twice", 8)]


# ============================================================================
# recompute_dirty
# ============================================================================

def test_recompute_dirty_only_runs_functions_with_dirty_dependencies():
    """With only x dirty, a is recomputed and b keeps its prior value."""
    row = clean_pair(x=1, y=1, a=10, b=20)
    row.set_field("x", 7)

    recompute_dirty(row)

    assert row.calls == [("a", 7)]
    assert row.fields["a"] == 14
    assert row.fields["b"] == 20


def test_recompute_dirty_with_clean_record_does_nothing():
    row = clean_pair(a=10, b=20)

    recompute_dirty(row)

    assert row.calls == []
    assert row.fields["a"] == 10
    assert row.fields["b"] == 20


def test_recompute_dirty_uses_current_values():
    row = Ordered(first="Ada", last="Lovelace", label=None)
    row.set_field("first", "Augusta")

    recompute_dirty(row)

    assert row.fields["label"] == "Lovelace, Augusta"


def test_any_dirty_dependency_triggers_recompute():
    row = Ordered(first="Ada", last="Lovelace", label="old")
    row.set_field("last", "King")

    recompute_dirty(row)

    assert row.calls == [("label", "King", "Ada")]


def test_dirty_check_short_circuits():
    """The first dirty dependency decides; later ones aren't asked about."""
    asked = []

    class Watched(Ordered):
        def is_dirty(self, name):
            asked.append(name)
            return super().is_dirty(name)

    row = Watched(first="Ada", last="Lovelace", label=None)
    row.set_field("last", "King")

    recompute_dirty(row)

    assert asked == ["last"]


# ============================================================================
# Errors
# ============================================================================

def test_unknown_dependency_raises_declaration_error():
    row = Unknown(total=0)

    with pytest.raises(DeclarationError) as exc_info:
        recompute_all(row)

    assert exc_info.value.field_name == "missing"
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_failing_compute_function_propagates_unchanged():
    """Fail fast: earlier assignments stay, later functions don't run."""
    row = Failing(x=1, first=None, second=None, third=None)

    with pytest.raises(RuntimeError, match="boom"):
        recompute_all(row)

    assert row.fields["first"] == 2
    assert row.fields["second"] is None
    assert row.calls == []


# ============================================================================
# recompute_async
# ============================================================================

def test_recompute_async_only_enqueues():
    """No output field is touched synchronously."""
    queue = RecordingQueue()
    engine = ComputedAttributes(queue=queue)
    row = clean_pair(key=3, x=5)

    result = engine.recompute_async(row)

    assert result is row
    assert row.calls == []
    assert row.fields["a"] is None
    assert len(queue.tasks) == 1
    task = queue.tasks[0]
    assert isinstance(task, RecomputeTask)
    assert task.record_type is Pair
    assert task.key == 3
    assert task.state["x"] == 5


def test_recompute_async_uses_configured_queue():
    from sclerotium.config import configure

    queue = RecordingQueue()
    configure(queue=queue)

    recompute_async(clean_pair(key=1))

    assert len(queue.tasks) == 1


def test_queued_task_recomputes_everything_and_saves():
    """The deferred path ignores dirtiness."""
    queue = RecordingQueue()
    ComputedAttributes(queue=queue).recompute_async(clean_pair(key=1, x=2, y=3))

    record = queue.tasks[0].run()

    assert record.fields["a"] == 4
    assert record.fields["b"] == 9
    assert record.saves == 1


def test_enqueue_failure_propagates():
    queue = ImmediateQueue()
    queue.close()
    engine = ComputedAttributes(queue=queue)

    with pytest.raises(QueueError):
        engine.recompute_async(clean_pair(key=1))


def test_recompute_async_requires_snapshot_support():
    class Plain:
        def is_dirty(self, name):
            return False

    with pytest.raises(TypeError):
        ComputedAttributes(queue=RecordingQueue()).recompute_async(Plain())


def test_recompute_async_requires_a_saved_record():
    queue = RecordingQueue()

    with pytest.raises(QueueError, match="before it is saved"):
        ComputedAttributes(queue=queue).recompute_async(clean_pair())

    assert queue.tasks == []


# ============================================================================
# Engine wiring
# ============================================================================

def test_engine_uses_its_own_registry():
    registry = DeclarationRegistry()
    engine = ComputedAttributes(registry=registry)

    engine.recompute_all(clean_pair())

    assert Pair in registry


def test_declarations_accepts_type_or_instance():
    engine = ComputedAttributes(registry=DeclarationRegistry())
    assert engine.declarations(Pair) == engine.declarations(clean_pair())


def test_global_engine():
    assert get_engine() is get_engine()
