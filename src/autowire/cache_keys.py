from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

_SCALAR_TYPES = (type(None), bool, int, float, complex, str, bytes)


class IdentityKey:
    """Hash and compare a value by identity.

    Holds a strong reference so the wrapped object's id cannot be reused while
    the key is alive.
    """

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __hash__(self) -> int:
        return id(self.value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IdentityKey) and other.value is self.value

    def __repr__(self) -> str:
        return f"IdentityKey({type(self.value).__qualname__}@{id(self.value):#x})"


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Object cache key: type, consuming parameter name and canonical positional arguments."""

    type_id: Any
    name: str | None
    args: tuple[Hashable, ...]


def make_cache_key(type_id: Any, name: str | None, args: Iterable[Any]) -> CacheKey:
    return CacheKey(
        type_id=canonicalize(type_id),
        name=name or None,
        args=tuple(canonicalize(arg) for arg in args),
    )


def canonicalize(value: Any) -> Hashable:
    """Turn a value into a hashable cache-key component.

    Scalars and built-in containers hash by content. Objects that define their
    own ``__eq__`` and are hashable hash structurally; every other object hashes
    by identity, so two distinct but equal instances produce different keys.
    """
    if isinstance(value, _SCALAR_TYPES):
        return (type(value), value)
    if isinstance(value, list | tuple):
        return (type(value), tuple(canonicalize(item) for item in value))
    if isinstance(value, dict):
        return (
            type(value),
            tuple((canonicalize(key), canonicalize(item)) for key, item in value.items()),
        )
    if isinstance(value, set | frozenset):
        return (type(value), frozenset(canonicalize(item) for item in value))
    if isinstance(value, type):
        return value
    if _has_structural_equality(value):
        return value
    return IdentityKey(value)


def _has_structural_equality(value: Any) -> bool:
    value_type = type(value)
    if value_type.__eq__ is object.__eq__ or isinstance(value, Mapping):
        return False
    try:
        hash(value)
    except TypeError:
        return False
    return True
