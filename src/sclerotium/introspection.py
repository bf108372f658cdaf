#!/usr/bin/env python3
"""
Dependency introspection for compute functions.

The parameter names of a compute function are the names of the fields it
depends on, in the order the values are passed.
"""

from __future__ import annotations

import inspect
from typing import Callable, Optional

from sclerotium.exceptions import DeclarationError


_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def is_unbound(record_type: type, method_name: str) -> bool:
    """
    Check whether a member is a plain function that receives the instance.

    ``staticmethod`` and ``classmethod`` members don't take ``self``.
    """
    raw = inspect.getattr_static(record_type, method_name, None)
    if isinstance(raw, (staticmethod, classmethod)):
        return False
    return inspect.isfunction(raw)


def dependency_names(
    function: Callable,
    drop_receiver: bool = True,
    record_type: Optional[type] = None,
) -> tuple[str, ...]:
    """
    Get the ordered dependency names of a compute function.

    Args:
        function: The compute function as found on the record type
        drop_receiver: Skip the first positional parameter (``self``)
        record_type: Used for error context only

    Returns:
        Parameter names in declaration order

    Raises:
        DeclarationError: If the signature can't be inspected, or has a
            required keyword-only parameter (values are passed positionally)
    """
    func_name = getattr(function, "__name__", repr(function))

    try:
        sig = inspect.signature(function)
    except (TypeError, ValueError) as e:
        raise DeclarationError(
            f"Cannot inspect signature of {func_name}: {e}",
            record_type=record_type,
            method_name=func_name,
        ) from e

    params = list(sig.parameters.values())
    if drop_receiver and params and params[0].kind in _POSITIONAL:
        params = params[1:]

    names = []
    for param in params:
        if param.kind in _POSITIONAL:
            names.append(param.name)
        elif param.kind is inspect.Parameter.KEYWORD_ONLY and param.default is param.empty:
            raise DeclarationError(
                f"{func_name} has required keyword-only parameter '{param.name}'; "
                f"dependencies are passed positionally",
                record_type=record_type,
                method_name=func_name,
                field_name=param.name,
            )

    return tuple(names)
