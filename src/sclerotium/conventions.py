#!/usr/bin/env python3
"""
Naming Conventions for Compute Functions

A compute function is a callable member of a record type whose name follows a
fixed shape: a literal prefix, a field token, and a literal suffix. The field
token names the attribute the function populates.

    computeTextExcerptAttribute     -> text_excerpt
    compute_text_excerpt_attribute  -> text_excerpt

This module is pure: it knows nothing about records, dirtiness or caching.
The registry memoizes its output per record type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence


# ============================================================================
# Conventions
# ============================================================================

@dataclass(frozen=True)
class NamingConvention:
    """
    A prefix/suffix pair identifying compute functions.

    Attributes:
        prefix: Literal text every compute function name starts with
        suffix: Literal text every compute function name ends with
    """
    prefix: str
    suffix: str

    def matches(self, name: str) -> bool:
        """
        Check whether a member name is shaped like a compute function.

        The name must start with the prefix, end with the suffix, and have at
        least one character in between (so ``computeAttribute`` never matches).
        """
        return (
            name.startswith(self.prefix)
            and name.endswith(self.suffix)
            and len(name) > len(self.prefix) + len(self.suffix)
        )

    def field_token(self, name: str) -> str:
        """Return the text between prefix and suffix."""
        return name[len(self.prefix):len(name) - len(self.suffix)]

    def output_field(self, name: str) -> str:
        """Derive the output field name for a matching member name."""
        return snake(self.field_token(name))


CAMEL_CASE = NamingConvention(prefix="compute", suffix="Attribute")
SNAKE_CASE = NamingConvention(prefix="compute_", suffix="_attribute")

DEFAULT_CONVENTIONS: tuple[NamingConvention, ...] = (CAMEL_CASE, SNAKE_CASE)


# ============================================================================
# Case Conversion
# ============================================================================

_WHITESPACE = re.compile(r"\s+")
_BEFORE_UPPER = re.compile(r"(.)(?=[A-Z])")


def snake(value: str, delimiter: str = "_") -> str:
    """
    Convert a camel-case token to lower-case words joined by ``delimiter``.

    Every upper-case letter that follows another character starts a new word,
    so acronyms are split letter by letter (``HTMLBody`` -> ``h_t_m_l_body``).
    Tokens that are already snake case pass through unchanged.

    Example:
        >>> snake("TextExcerpt")
        'text_excerpt'
        >>> snake("Html")
        'html'
    """
    if value.islower() and not _WHITESPACE.search(value):
        return value
    words = _WHITESPACE.split(value.strip())
    value = "".join(word[:1].upper() + word[1:] for word in words)
    return _BEFORE_UPPER.sub(r"\1" + delimiter, value).lower()


# ============================================================================
# Discovery
# ============================================================================

def member_names(record_type: type) -> Iterator[str]:
    """
    Yield the member names of a type.

    Members are yielded in declaration order, walking the MRO from the most
    basic class to the most derived one. An overridden member keeps the
    position of its first declaration.
    """
    seen: set[str] = set()
    for klass in reversed(record_type.__mro__):
        for name in vars(klass):
            if name in seen:
                continue
            seen.add(name)
            yield name


def list_compute_functions(
    record_type: type,
    conventions: Sequence[NamingConvention] = DEFAULT_CONVENTIONS,
) -> list[tuple[str, Callable]]:
    """
    Enumerate the candidate members a record type exposes.

    A record type may take over enumeration by defining a classmethod named
    ``list_compute_functions`` that returns ordered ``(name, callable)`` pairs.
    Otherwise all callable members are scanned.
    """
    hook = getattr(record_type, "list_compute_functions", None)
    if callable(hook):
        return [(name, member) for name, member in hook() if match(name, conventions)]

    found = []
    for name in member_names(record_type):
        if not match(name, conventions):
            continue
        member = getattr(record_type, name, None)
        if callable(member):
            found.append((name, member))
    return found


def match(
    name: str,
    conventions: Sequence[NamingConvention] = DEFAULT_CONVENTIONS,
) -> Optional[NamingConvention]:
    """Return the first convention a member name matches, or None."""
    for convention in conventions:
        if convention.matches(name):
            return convention
    return None
