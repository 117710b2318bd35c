"""Helpers for narrowing untyped TOML data.

Used at the config boundary, where ``tomllib`` hands back plain objects.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TypeGuard, cast

StrDict = dict[str, object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value, stripped.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def non_str_keys(table: Mapping[str, object], keys: Iterable[str]) -> list[str]:
    """Keys that are present in ``table`` but hold something other than a string."""
    return [k for k in keys if k in table and not isinstance(table[k], str)]


def unknown_keys(table: Mapping[str, object], allowed: Iterable[str]) -> list[str]:
    allowed_set = set(allowed)
    return sorted(k for k in table if k not in allowed_set)
