#!/usr/bin/env python3
"""
Sclerotium-specific exceptions.

All Sclerotium exceptions inherit from ComputedAttributeError for easy catching.
Exceptions raised by compute functions themselves are never wrapped; they reach
the caller of save (or recompute) unchanged.
"""


class ComputedAttributeError(Exception):
    """Base exception for all Sclerotium errors."""


class DeclarationError(ComputedAttributeError):
    """
    A compute function declares a dependency the record cannot provide.

    Raised when dependency values are gathered (or at discovery time when
    eager validation is enabled, or when a signature cannot be called
    positionally).
    """

    def __init__(self, message: str, record_type: type | None = None,
                 method_name: str | None = None, field_name: str | None = None):
        self.record_type = record_type
        self.method_name = method_name
        self.field_name = field_name
        super().__init__(message)


class PersistenceError(ComputedAttributeError):
    """Error raised by a repository while loading or persisting a record."""


class QueueError(ComputedAttributeError):
    """A recompute task could not be enqueued."""
