from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from autowire.coercion import ValueCoercer
from autowire.container_interface import IContainer
from autowire.exceptions import AutowireUnresolvableParameterError
from autowire.parameters import ParameterSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedArgument:
    """A value bound to a parameter slot; ``parameter`` is ``None`` for overflow values."""

    parameter: ParameterSpec | None
    value: Any


class ParameterResolver:
    """Fill a parameter list from positional, keyword and global sources.

    Positional values always bind left to right to the earliest unconsumed
    positional parameters, regardless of names. Keyword values, then globals,
    only fill what positional values did not reach. Whatever is still missing
    is constructed (object-typed parameters) or defaulted.
    """

    def __init__(self, container: IContainer, coercer: ValueCoercer) -> None:
        self._container = container
        self._coercer = coercer

    def fill(
        self,
        parameters: Sequence[ParameterSpec],
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
        *,
        callable_name: str,
    ) -> list[ResolvedArgument]:
        options = self._container.options
        container_globals = self._container.globals
        resolved: list[ResolvedArgument] = []

        positional = deque(spec for spec in parameters if spec.accepts_positional)
        consumed: set[str] = set()
        for value in args:
            spec = positional[0] if positional else None
            if spec is not None:
                consumed.add(spec.name)
                if not spec.is_variadic:
                    positional.popleft()
            resolved.append(
                ResolvedArgument(
                    parameter=spec,
                    value=self._coercer.coerce(spec, value, kwargs, bubble=options.coerce_pos_args),
                ),
            )

        seed: Mapping[str, Any] = kwargs if options.propagate_kw_args else {}
        for spec in parameters:
            if spec.name in consumed:
                continue
            if spec.name in kwargs:
                value = self._coercer.coerce(
                    spec,
                    kwargs[spec.name],
                    seed,
                    bubble=options.coerce_kw_args,
                )
            elif spec.name in container_globals:
                value = self._coercer.coerce(
                    spec,
                    container_globals[spec.name],
                    seed,
                    bubble=options.coerce_globals,
                )
            elif spec.is_variadic:
                continue
            elif spec.declared_type is not None:
                value = self._construct_dependency(spec, seed)
            elif spec.has_default:
                value = spec.default
            else:
                raise AutowireUnresolvableParameterError(spec.name, callable_name)
            resolved.append(ResolvedArgument(parameter=spec, value=value))

        return resolved

    def _construct_dependency(self, spec: ParameterSpec, seed: Mapping[str, Any]) -> Any:
        declared_type = spec.declared_type
        if not spec.has_default:
            return self._container.construct(declared_type, (), seed, name=spec.name)
        try:
            return self._container.construct(declared_type, (), seed, name=spec.name)
        except Exception:  # noqa: BLE001
            logger.debug(
                "Could not construct %r for parameter %r, using its default",
                declared_type,
                spec.name,
                exc_info=True,
            )
            return spec.default
