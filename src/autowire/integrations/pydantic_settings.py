from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import Field, ImportString
from pydantic_settings import BaseSettings, SettingsConfigDict

from autowire.container import Container
from autowire.defaults import (
    DEFAULT_CACHE_OBJECTS,
    DEFAULT_COERCE_GLOBALS,
    DEFAULT_COERCE_KW_ARGS,
    DEFAULT_COERCE_POS_ARGS,
    DEFAULT_MEMOIZE_FUNCTIONS,
    DEFAULT_MEMOIZE_METHODS,
    DEFAULT_PROPAGATE_KW_ARGS,
)
from autowire.options import ContainerOptions


class AutowireSettings(BaseSettings):
    """Container options read from ``AUTOWIRE_*`` environment variables.

    ``AUTOWIRE_GLOBALS`` is parsed as a JSON object and ``AUTOWIRE_COERCE_CALLBACK``
    as an import string (``"pkg.module:function"``).
    """

    model_config = SettingsConfigDict(env_prefix="AUTOWIRE_", extra="ignore")

    cache_objects: bool = DEFAULT_CACHE_OBJECTS
    memoize_functions: bool = DEFAULT_MEMOIZE_FUNCTIONS
    memoize_methods: bool = DEFAULT_MEMOIZE_METHODS
    coerce_pos_args: bool = DEFAULT_COERCE_POS_ARGS
    coerce_kw_args: bool = DEFAULT_COERCE_KW_ARGS
    coerce_globals: bool = DEFAULT_COERCE_GLOBALS
    propagate_kw_args: bool = DEFAULT_PROPAGATE_KW_ARGS
    coerce_callback: ImportString[Callable[..., Any]] | None = None
    globals: dict[str, Any] = Field(default_factory=dict)

    def to_options(self) -> ContainerOptions:
        return ContainerOptions(
            cache_objects=self.cache_objects,
            memoize_functions=self.memoize_functions,
            memoize_methods=self.memoize_methods,
            coerce_pos_args=self.coerce_pos_args,
            coerce_kw_args=self.coerce_kw_args,
            coerce_globals=self.coerce_globals,
            propagate_kw_args=self.propagate_kw_args,
            coerce_callback=self.coerce_callback,
            globals=self.globals,
        )

    def build_container(self) -> Container:
        return Container.from_options(self.to_options())


__all__ = ["AutowireSettings"]
