#!/usr/bin/env python3
"""
Pre-persist lifecycle hooks.

Host record types call ``fire_saving(record)`` right before they persist.
Callbacks are registered per record type and are not inherited: each subclass
is its own type and gets its own callbacks, so installing the recompute hook
on a base class and a subclass never runs it twice for one save.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .engine import ComputedAttributes


logger = logging.getLogger(__name__)

SavingCallback = Callable[[Any], Any]

_saving_callbacks: Dict[type, List[SavingCallback]] = {}
_installed: Dict[type, "ComputedAttributes"] = {}
_lock = threading.Lock()


def saving(record_type: type, callback: Optional[SavingCallback] = None):
    """
    Register a callback to run before records of ``record_type`` are saved.

    Can be used directly or as a decorator:

        saving(Article, notify)

        @saving(Article)
        def touch(article):
            ...
    """
    def register(func: SavingCallback) -> SavingCallback:
        with _lock:
            _saving_callbacks.setdefault(record_type, []).append(func)
        return func

    if callback is None:
        return register
    return register(callback)


def fire_saving(record: Any) -> None:
    """
    Run the saving callbacks registered for the record's exact type, in
    registration order. Exceptions propagate and abort the save.
    """
    callbacks = _saving_callbacks.get(type(record), ())
    for callback in list(callbacks):
        callback(record)


def install(record_type: type, engine: Optional["ComputedAttributes"] = None) -> bool:
    """
    Make saves of ``record_type`` recompute attributes with dirty dependencies.

    Installing is idempotent per type.

    Args:
        record_type: The record class to boot
        engine: Engine whose ``recompute_dirty`` runs before each save
            (defaults to the module-level engine)

    Returns:
        True if the hook was installed by this call, False if already present
    """
    if engine is None:
        from .engine import get_engine
        engine = get_engine()

    with _lock:
        if record_type in _installed:
            return False
        _installed[record_type] = engine
        _saving_callbacks.setdefault(record_type, []).append(engine.recompute_dirty)

    logger.debug("Installed recompute hook on %s", record_type.__name__)
    return True


def is_installed(record_type: type) -> bool:
    """Check whether the recompute hook is installed on a type."""
    return record_type in _installed


def clear_hooks(record_type: Optional[type] = None) -> None:
    """
    Remove registered callbacks, for one type or for all types.

    Useful for testing.
    """
    with _lock:
        if record_type is None:
            _saving_callbacks.clear()
            _installed.clear()
        else:
            _saving_callbacks.pop(record_type, None)
            _installed.pop(record_type, None)
