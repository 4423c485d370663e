from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from autowire.options import ContainerOptions


@dataclass(frozen=True, slots=True)
class Found:
    """A registry hit. ``value`` may legitimately be ``None``."""

    value: Any


class IContainer(ABC):
    """Interface the coercer and parameter resolver use to recurse into the container."""

    @property
    @abstractmethod
    def options(self) -> ContainerOptions: ...

    @property
    @abstractmethod
    def globals(self) -> Mapping[str, Any]: ...

    @abstractmethod
    def lookup(
        self,
        key: Any,
        name: str | None = None,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Found | None:
        """Invoke the registered factory for ``key``, or return ``None`` when nothing matches."""

    @abstractmethod
    def call(self, descriptor: Any, args: Any = None, kwargs: Any = None) -> Any: ...

    @abstractmethod
    def construct(
        self,
        type_id: Any,
        args: Any = None,
        kwargs: Any = None,
        *,
        name: str | None = None,
    ) -> Any: ...
