#!/usr/bin/env python3
"""
Sclerotium - Computed attributes stored with the record.

Computed attributes are fields whose value is derived from other fields of
the same record and persisted with it. Unlike accessors, which are evaluated
on every read, they are evaluated when the record is saved, and only when one
of their dependencies changed.

A computed attribute is declared with a method named after it. If you need an
attribute called ``excerpt`` that depends on ``text``, define a method called
``computeExcerptAttribute`` (or ``compute_excerpt_attribute``) taking
``text`` as its argument. Before the record is saved, if ``text`` is dirty,
the method is called with the current value of ``text`` and its return value
is stored in ``excerpt``.

Usage:
    ```python
    from typing import Optional
    from sclerotium import ComputedModel, MemoryRepository

    class Article(ComputedModel):
        id: Optional[int] = None
        text: str = ""
        excerpt: Optional[str] = None

        def computeExcerptAttribute(self, text):
            return text[:5]

    Article.use_repository(MemoryRepository())
    article = Article(text="hello world").save()
    assert article.excerpt == "hello"
    ```

Any other record type can use the engine directly as long as it provides
``is_dirty``, ``get_field``, ``set_field`` and ``save`` (see
``sclerotium.contracts.Record``).
"""

from .config import SclerotiumConfig, configure, get_config, reset_config
from .contracts import Record, Recomputable, Snapshottable
from .conventions import (
    NamingConvention,
    CAMEL_CASE,
    SNAKE_CASE,
    DEFAULT_CONVENTIONS,
    snake,
)
from .engine import (
    ComputedAttributes,
    get_engine,
    recompute_all,
    recompute_dirty,
    recompute_async,
)
from .exceptions import (
    ComputedAttributeError,
    DeclarationError,
    PersistenceError,
    QueueError,
)
from .hooks import saving, fire_saving, install
from .introspection import dependency_names
from .model import ComputedModel, MemoryRepository, Repository
from .registry import ComputeDeclaration, DeclarationRegistry, get_registry
from .tasks import (
    RecomputeTask,
    TaskQueue,
    ImmediateQueue,
    ThreadPoolQueue,
    AsyncioQueue,
)

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "SclerotiumConfig",
    "configure",
    "get_config",
    "reset_config",

    # Contracts
    "Record",
    "Recomputable",
    "Snapshottable",

    # Conventions
    "NamingConvention",
    "CAMEL_CASE",
    "SNAKE_CASE",
    "DEFAULT_CONVENTIONS",
    "snake",
    "dependency_names",

    # Engine
    "ComputedAttributes",
    "get_engine",
    "recompute_all",
    "recompute_dirty",
    "recompute_async",

    # Registry
    "ComputeDeclaration",
    "DeclarationRegistry",
    "get_registry",

    # Hooks
    "saving",
    "fire_saving",
    "install",

    # Models
    "ComputedModel",
    "MemoryRepository",
    "Repository",

    # Tasks
    "RecomputeTask",
    "TaskQueue",
    "ImmediateQueue",
    "ThreadPoolQueue",
    "AsyncioQueue",

    # Exceptions
    "ComputedAttributeError",
    "DeclarationError",
    "PersistenceError",
    "QueueError",
]
