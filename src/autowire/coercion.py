from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from autowire.container_interface import IContainer
from autowire.exceptions import AutowireCoercionError
from autowire.parameters import ParameterSpec

logger = logging.getLogger(__name__)


class ValueCoercer:
    """Reconcile a supplied value with the declared type of the parameter receiving it.

    A value that already satisfies the declared type is used as-is. Otherwise a
    registry override for the type (qualified by the parameter name) wins, and
    failing that the value is "bubbled": used as the sole positional argument
    for constructing the declared type, or handed to the configured
    ``coerce_callback``. Bubbling is allowed or refused per argument source by
    the caller.
    """

    def __init__(self, container: IContainer) -> None:
        self._container = container

    def coerce(
        self,
        spec: ParameterSpec | None,
        value: Any,
        kwargs: Mapping[str, Any],
        *,
        bubble: bool,
    ) -> Any:
        """Coerce ``value`` for ``spec``.

        Args:
            spec: The receiving parameter, or ``None`` for an overflow positional value.
            value: The raw supplied value.
            kwargs: Keyword arguments forwarded to registry factories and bubbled constructors.
            bubble: Whether a type mismatch may be resolved by constructing the declared type.

        Raises:
            AutowireCoercionError: The value does not match and bubbling is not allowed.

        """
        if spec is None:
            return value
        if value is None and spec.nullable:
            return None

        declared_type = spec.declared_type
        if declared_type is None:
            if spec.aggregate is not None:
                return to_container(value, spec)
            return value
        if _is_instance(value, declared_type):
            return value

        found = self._container.lookup(declared_type, spec.name, (value,), kwargs)
        if found is not None:
            return found.value

        if not bubble:
            raise AutowireCoercionError(type(value), declared_type, spec.name)

        callback = self._container.options.coerce_callback
        if callback is not None:
            logger.debug("Coercing %r for parameter %r with %r", value, spec.name, callback)
            return self._container.call(callback, (value,), {**self._container.globals, **kwargs})

        logger.debug(
            "Bubbling %s into %s for parameter %r",
            type(value).__qualname__,
            declared_type.__qualname__,
            spec.name,
        )
        return self._container.construct(declared_type, (value,), kwargs)


def to_container(value: Any, spec: ParameterSpec) -> Any:
    """Convert ``value`` to the ordered or keyed container form the parameter declares."""
    container_type = spec.container_type or (dict if spec.aggregate == "keyed" else list)
    if isinstance(value, container_type):
        return value

    if spec.aggregate == "keyed":
        if isinstance(value, Mapping):
            return dict(value)
        if value is None:
            return {}
        if isinstance(value, list | tuple):
            return dict(enumerate(value))
        return {0: value}

    if value is None:
        elements: list[Any] = []
    elif isinstance(value, str | bytes | bytearray | Mapping):
        elements = [value]
    elif isinstance(value, Iterable):
        elements = list(value)
    else:
        elements = [value]
    return container_type(elements)


def _is_instance(value: Any, declared_type: type[Any]) -> bool:
    try:
        return isinstance(value, declared_type)
    except TypeError:
        # Protocols that are not runtime checkable.
        return False
