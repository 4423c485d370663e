from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from autowire.defaults import (
    DEFAULT_CACHE_OBJECTS,
    DEFAULT_COERCE_GLOBALS,
    DEFAULT_COERCE_KW_ARGS,
    DEFAULT_COERCE_POS_ARGS,
    DEFAULT_MEMOIZE_FUNCTIONS,
    DEFAULT_MEMOIZE_METHODS,
    DEFAULT_PROPAGATE_KW_ARGS,
)


@dataclass(frozen=True, slots=True, kw_only=True)
class ContainerOptions:
    """Immutable configuration fixed at container creation."""

    cache_objects: bool = DEFAULT_CACHE_OBJECTS
    """Cache constructed objects keyed by type, parameter name and positional arguments."""

    memoize_functions: bool = DEFAULT_MEMOIZE_FUNCTIONS
    """Memoize ``call`` results of functions, closures and static methods."""

    memoize_methods: bool = DEFAULT_MEMOIZE_METHODS
    """Memoize ``call`` results of bound methods, instance methods and call operators."""

    coerce_pos_args: bool = DEFAULT_COERCE_POS_ARGS
    """Bubble mismatched positional arguments into the declared type's constructor."""

    coerce_kw_args: bool = DEFAULT_COERCE_KW_ARGS
    """Bubble mismatched keyword arguments into the declared type's constructor."""

    coerce_globals: bool = DEFAULT_COERCE_GLOBALS
    """Bubble mismatched globals into the declared type's constructor."""

    propagate_kw_args: bool = DEFAULT_PROPAGATE_KW_ARGS
    """Forward the outer keyword arguments into recursively constructed dependencies."""

    coerce_callback: Callable[..., Any] | None = None
    """Called with the mismatched value instead of constructing the declared type."""

    globals: Mapping[str, Any] = field(default_factory=dict)
    """Initial container-wide values, matched by parameter name."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "globals", MappingProxyType(dict(self.globals)))
