#!/usr/bin/env python3
"""
Sclerotium Configuration

Global configuration for convention matching, dependency validation and the
queue used for asynchronous recomputation.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .conventions import DEFAULT_CONVENTIONS, NamingConvention

if TYPE_CHECKING:
    from .tasks import TaskQueue


logger = logging.getLogger(__name__)


@dataclass
class SclerotiumConfig:
    """
    Global configuration for computed attributes.

    Attributes:
        conventions: Naming conventions tried in order when scanning a type
        validate_dependencies: Check dependency names against the record
            type's fields at discovery instead of at first recompute
        queue: Queue receiving tasks from recompute_async (defaults to an
            ImmediateQueue, which runs tasks inline)
    """
    conventions: tuple[NamingConvention, ...] = DEFAULT_CONVENTIONS
    validate_dependencies: bool = False
    queue: Optional["TaskQueue"] = None

    def __post_init__(self):
        """Set default queue if not provided."""
        if self.queue is None:
            from .tasks import ImmediateQueue
            self.queue = ImmediateQueue()
        self.conventions = tuple(self.conventions)


# Global state
_config: Optional[SclerotiumConfig] = None
_config_lock = threading.Lock()


def configure(
    conventions: tuple[NamingConvention, ...] = DEFAULT_CONVENTIONS,
    validate_dependencies: bool = False,
    queue: Optional["TaskQueue"] = None,
) -> SclerotiumConfig:
    """
    Configure Sclerotium.

    This should be called once at application startup, before records are
    first saved. Changing conventions after discovery has no effect on types
    already cached; call ``get_registry().clear()`` for that.

    Example:
        ```python
        from sclerotium import configure
        from sclerotium.tasks import ThreadPoolQueue

        configure(queue=ThreadPoolQueue(max_workers=4))
        ```
    """
    global _config

    with _config_lock:
        _config = SclerotiumConfig(
            conventions=conventions,
            validate_dependencies=validate_dependencies,
            queue=queue,
        )
    logger.debug("Configured sclerotium: %s", _config)
    return _config


def get_config() -> SclerotiumConfig:
    """Get the current configuration, creating the default one on first use."""
    global _config

    if _config is None:
        with _config_lock:
            if _config is None:
                _config = SclerotiumConfig()
    return _config


def reset_config() -> None:
    """Drop the current configuration. Useful for testing."""
    global _config

    with _config_lock:
        _config = None
