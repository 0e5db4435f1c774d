"""Shared utility helpers for mrdi."""

from __future__ import annotations

import reprlib
from collections.abc import Mapping
from typing import Any
from uuid import UUID

# Types written as bare JSON scalars instead of tagged nodes. ``str`` is deliberately absent: a
# bare string in a document is always a type tag or a UUID reference.
BASIC_TYPES: tuple[type, ...] = (bool, int, float, type(None))


def build_repr(class_name: str, *leading: str, kwargs: Mapping[str, Any] | None = None) -> str:
    """Build a concise repr string: ``ClassName(leading…, k=v, …)``."""
    parts = list(leading)
    if kwargs:
        parts.extend(f"{k}={reprlib.Repr().repr(v)}" for k, v in kwargs.items())
    return f"{class_name}({', '.join(parts)})"


def try_parse_uuid(value: Any) -> UUID | None:
    """Return ``value`` as a UUID if it is a canonical UUID string, otherwise None."""
    if not isinstance(value, str) or len(value) != 36:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def is_basic_value(value: Any) -> bool:
    """Whether ``value`` is one of the closed set of types written as bare JSON scalars."""
    return type(value) in BASIC_TYPES
