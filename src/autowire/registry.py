from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

Factory: TypeAlias = Callable[..., Any]
"""A callable producing a value; it may declare injectable parameters itself."""

NamePattern: TypeAlias = str | re.Pattern[str]


@dataclass(frozen=True, slots=True)
class NamedRegistration:
    """Factory qualified by a pattern matched against the consuming parameter name."""

    pattern: re.Pattern[str]
    factory: Factory

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None


@dataclass(slots=True)
class Registry:
    """Factory overrides keyed by type (or any hashable token).

    Unnamed registrations hold exactly one factory per key, last registration
    wins. Named registrations keep every ``(pattern, factory)`` pair in
    registration order; the first pattern matching the parameter name wins.
    """

    unnamed: dict[Any, Factory] = field(default_factory=dict)
    named: dict[Any, list[NamedRegistration]] = field(default_factory=dict)

    def add(self, key: Any, factory: Factory, name_pattern: NamePattern | None = None) -> None:
        if name_pattern is None or name_pattern == "":
            self.unnamed[key] = factory
            return
        pattern = name_pattern if isinstance(name_pattern, re.Pattern) else re.compile(name_pattern)
        self.named.setdefault(key, []).append(NamedRegistration(pattern=pattern, factory=factory))

    def find(self, key: Any, name: str | None = None) -> Factory | None:
        """Return the factory registered for ``key`` as consumed by parameter ``name``."""
        if name:
            for registration in self.named.get(key, ()):
                if registration.matches(name):
                    return registration.factory
        return self.unnamed.get(key)

    def __contains__(self, key: Any) -> bool:
        return key in self.unnamed or key in self.named
