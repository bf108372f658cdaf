#!/usr/bin/env python3
"""
Computed Models

A pydantic-based record type with dirty tracking, a ``saving`` hook and a
pluggable repository. Subclasses get their computed attributes recomputed on
every save, for the attributes whose dependencies changed.

Example:
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

    article = Article(text="hello world")
    article.save()
    article.excerpt  # "hello"
    ```
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from typing import Any, ClassVar, Dict, Optional, Protocol, Tuple

from pydantic import BaseModel, PrivateAttr

from .engine import ComputedAttributes, get_engine
from .exceptions import PersistenceError
from .hooks import fire_saving, install


logger = logging.getLogger(__name__)


# ============================================================================
# Repositories
# ============================================================================

class Repository(Protocol):
    """
    Protocol for the storage behind computed models.

    ``persist`` returns the key the record is stored under; a None key means
    the record is new and the repository assigns one.
    """

    def fetch(self, record_type: type, key: Any) -> Optional[Dict[str, Any]]:
        ...

    def persist(self, record_type: type, key: Any, state: Dict[str, Any]) -> Any:
        ...


class MemoryRepository:
    """
    Thread-safe in-memory repository.

    Rows are stored per record type; new records get increasing integer keys.
    """

    def __init__(self):
        self._rows: Dict[Tuple[type, Any], Dict[str, Any]] = {}
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()
        self.writes = 0

    def fetch(self, record_type: type, key: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._rows.get((record_type, key))
            return copy.deepcopy(row) if row is not None else None

    def persist(self, record_type: type, key: Any, state: Dict[str, Any]) -> Any:
        with self._lock:
            if key is None:
                key = next(self._sequence)
            self._rows[(record_type, key)] = copy.deepcopy(state)
            self.writes += 1
            return key

    def __len__(self) -> int:
        return len(self._rows)


# ============================================================================
# Computed Model
# ============================================================================

class ComputedModel(BaseModel):
    """
    Base model whose computed attributes are recomputed on save.

    A field is dirty when its value differs from the value it was loaded or
    last saved with. A freshly constructed model has no baseline, so every
    field is dirty until the first save.

    Class attributes:
        __key__: Name of the field holding the persisted key (if the model
            declares no such field, the key is kept privately)
        __repository__: Repository used by ``save()`` and ``load()``
        __computed__: Engine the model delegates recomputation to
    """

    __key__: ClassVar[str] = "id"
    __repository__: ClassVar[Optional[Repository]] = None
    __computed__: ClassVar[ComputedAttributes] = get_engine()

    _original: Dict[str, Any] = PrivateAttr(default_factory=dict)
    _exists: bool = PrivateAttr(default=False)
    _key: Any = PrivateAttr(default=None)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        """Boot each subclass: recompute dirty attributes before saving."""
        super().__pydantic_init_subclass__(**kwargs)
        install(cls, cls.__computed__)

    # ------------------------------------------------------------------
    # Repository
    # ------------------------------------------------------------------

    @classmethod
    def use_repository(cls, repository: Optional[Repository]) -> None:
        cls.__repository__ = repository

    @classmethod
    def repository(cls) -> Repository:
        if cls.__repository__ is None:
            raise PersistenceError(f"No repository configured for {cls.__name__}")
        return cls.__repository__

    @classmethod
    def load(cls, key: Any) -> "ComputedModel":
        """
        Load a persisted record.

        Raises:
            PersistenceError: If there's no record with that key
        """
        state = cls.repository().fetch(cls, key)
        if state is None:
            raise PersistenceError(f"No {cls.__name__} with key {key!r}")
        return cls._hydrate(key, state)

    @classmethod
    def restore(cls, key: Any, state: Dict[str, Any]) -> "ComputedModel":
        """Rebuild a record captured with ``snapshot()``."""
        return cls._hydrate(key, state)

    @classmethod
    def _hydrate(cls, key: Any, state: Dict[str, Any]) -> "ComputedModel":
        record = cls.model_validate(state)
        record._set_key(key)
        record._exists = key is not None
        record.sync_original()
        return record

    def snapshot(self) -> Tuple[Any, Dict[str, Any]]:
        """Capture the persisted key and current field state."""
        return self.get_key(), self.model_dump()

    def save(self) -> "ComputedModel":
        """
        Run the saving hooks, then persist the record.

        Errors from hooks (including compute functions) abort the save before
        anything is persisted.
        """
        repository = self.repository()
        fire_saving(self)
        key = repository.persist(type(self), self.get_key(), self.model_dump())
        self._set_key(key)
        self._exists = True
        self.sync_original()
        logger.debug("Saved %s %r", type(self).__name__, key)
        return self

    def refresh(self) -> "ComputedModel":
        """Reload field values from the repository."""
        fresh = type(self).load(self.get_key())
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))
        self.sync_original()
        return self

    @property
    def exists(self) -> bool:
        return self._exists

    def get_key(self) -> Any:
        if self.__key__ in type(self).model_fields:
            return getattr(self, self.__key__)
        return self._key

    def _set_key(self, key: Any) -> None:
        self._key = key
        if self.__key__ in type(self).model_fields:
            setattr(self, self.__key__, key)

    # ------------------------------------------------------------------
    # Fields and dirty tracking
    # ------------------------------------------------------------------

    def get_field(self, name: str) -> Any:
        if name not in type(self).model_fields:
            raise AttributeError(f"{type(self).__name__} has no field '{name}'")
        return getattr(self, name)

    def set_field(self, name: str, value: Any) -> None:
        setattr(self, name, value)

    def is_dirty(self, *names: str) -> bool:
        """
        Check whether fields differ from their baseline.

        With no names, checks every field. Names that aren't fields are
        never dirty.
        """
        fields = type(self).model_fields
        for name in names or fields:
            if name not in fields:
                continue
            if name not in self._original or self._original[name] != getattr(self, name):
                return True
        return False

    def get_dirty(self) -> Dict[str, Any]:
        """Get the dirty fields and their current values."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if self.is_dirty(name)
        }

    def get_original(self, name: str, default: Any = None) -> Any:
        return self._original.get(name, default)

    def sync_original(self) -> None:
        """Make the current field values the clean baseline."""
        self._original = {
            name: copy.deepcopy(getattr(self, name))
            for name in type(self).model_fields
        }

    # ------------------------------------------------------------------
    # Computed attributes
    # ------------------------------------------------------------------

    def recompute(self) -> "ComputedModel":
        """Recompute all computed attributes without saving."""
        return self.__computed__.recompute_all(self)

    def recompute_dirty(self) -> "ComputedModel":
        """Recompute the computed attributes whose dependencies are dirty."""
        return self.__computed__.recompute_dirty(self)

    def recompute_async(self) -> "ComputedModel":
        """Recompute all attributes and save, in a queued task."""
        return self.__computed__.recompute_async(self)
