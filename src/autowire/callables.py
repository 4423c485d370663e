from __future__ import annotations

import importlib
import inspect
import re
import sys
import types
from dataclasses import dataclass
from enum import Enum
from typing import Any

from autowire.exceptions import AutowireInvalidCallableError
from autowire.parameters import ParametersExtractor, ParameterSpec

_METHOD_SEPARATOR = re.compile(r"::|->|@")
_METHOD_PAIR_LENGTH = 2


class CallableKind(str, Enum):
    """Defines how a resolved callable is invoked."""

    FUNCTION = "function"
    """A module-level function or builtin."""

    CLOSURE = "closure"
    """A lambda or a function defined inside another function."""

    BOUND_METHOD = "bound_method"
    """A method bound to an instance, or a classmethod bound to its class."""

    STATIC_METHOD = "static_method"
    """A staticmethod, called without a receiver."""

    INSTANCE_METHOD = "instance_method"
    """A method accessed through its class; the receiver is constructed by the container."""

    CONSTRUCTOR = "constructor"
    """A class, instantiated with the filled constructor arguments."""

    CALL_OPERATOR = "call_operator"
    """An object implementing ``__call__``."""


@dataclass(frozen=True, slots=True)
class ResolvedCallable:
    """Invocation target plus its parameter list.

    ``parameters`` is ``None`` when the target has no introspectable signature;
    such targets receive the caller's positional arguments unchanged.
    """

    kind: CallableKind
    target: Any
    parameters: tuple[ParameterSpec, ...] | None
    name: str
    owner: type[Any] | None = None


class CallableResolver:
    """Turn callable descriptors into ``ResolvedCallable`` values.

    Accepted descriptors are classes, functions, closures, bound methods,
    static methods, functions accessed through their class, callable objects,
    ``(class_or_instance, "method")`` pairs, and import strings such as
    ``"pkg.module:func"``, ``"pkg.module.func"`` or ``"pkg.module.Class::method"``
    (``->`` and ``@`` are accepted as method separators too).
    """

    def __init__(self, parameters_extractor: ParametersExtractor | None = None) -> None:
        self._parameters_extractor = parameters_extractor or ParametersExtractor()

    def resolve(self, descriptor: Any) -> ResolvedCallable:
        if isinstance(descriptor, str):
            return self._resolve_string(descriptor)
        if isinstance(descriptor, tuple | list):
            return self._resolve_pair(descriptor)
        if isinstance(descriptor, type):
            return self._resolve_class(descriptor)
        if isinstance(descriptor, types.MethodType):
            return self._resolve_bound_method(descriptor)
        if isinstance(descriptor, staticmethod):
            return self._resolve_function(descriptor.__func__)
        if isinstance(descriptor, types.FunctionType):
            return self._resolve_function(descriptor)
        if isinstance(descriptor, types.BuiltinFunctionType | types.BuiltinMethodType):
            return ResolvedCallable(
                kind=CallableKind.FUNCTION,
                target=descriptor,
                parameters=self._parameters_extractor.extract(descriptor),
                name=_qualified_name(descriptor),
            )
        if callable(descriptor):
            return ResolvedCallable(
                kind=CallableKind.CALL_OPERATOR,
                target=descriptor,
                parameters=self._parameters_extractor.extract_call_operator(descriptor),
                name=f"{_qualified_name(type(descriptor))}.__call__",
            )
        msg = f"expected a callable, got {type(descriptor).__qualname__}"
        raise AutowireInvalidCallableError(descriptor, msg)

    def _resolve_class(self, cls: type[Any]) -> ResolvedCallable:
        return ResolvedCallable(
            kind=CallableKind.CONSTRUCTOR,
            target=cls,
            parameters=self._parameters_extractor.extract_constructor(cls),
            name=_qualified_name(cls),
            owner=cls,
        )

    def _resolve_bound_method(self, method: types.MethodType) -> ResolvedCallable:
        receiver = method.__self__
        owner = receiver if isinstance(receiver, type) else type(receiver)
        return ResolvedCallable(
            kind=CallableKind.BOUND_METHOD,
            target=method,
            parameters=self._parameters_extractor.extract(method.__func__, skip_first=True),
            name=f"{_qualified_name(owner)}.{method.__name__}",
            owner=owner,
        )

    def _resolve_function(self, func: types.FunctionType) -> ResolvedCallable:
        owner = _find_owner(func)
        if owner is not None:
            attribute = inspect.getattr_static(owner, func.__name__, None)
            if isinstance(attribute, staticmethod):
                return self._static_method(owner, func)
            if attribute is func:
                return self._instance_method(owner, func)

        is_closure = "<locals>" in func.__qualname__ or func.__name__ == "<lambda>"
        return ResolvedCallable(
            kind=CallableKind.CLOSURE if is_closure else CallableKind.FUNCTION,
            target=func,
            parameters=self._parameters_extractor.extract(func),
            name=_qualified_name(func),
        )

    def _resolve_pair(self, descriptor: tuple[Any, ...] | list[Any]) -> ResolvedCallable:
        if len(descriptor) != _METHOD_PAIR_LENGTH:
            msg = (
                "method descriptors must have exactly 2 elements "
                "(class or instance, and method name)"
            )
            raise AutowireInvalidCallableError(descriptor, msg)

        target, method_name = descriptor
        if not isinstance(method_name, str):
            msg = f"method name must be a string, got {type(method_name).__qualname__}"
            raise AutowireInvalidCallableError(descriptor, msg)

        owner = target if isinstance(target, type) else type(target)
        try:
            attribute = inspect.getattr_static(owner, method_name)
        except AttributeError:
            if isinstance(target, type):
                msg = f"{_qualified_name(owner)} has no attribute {method_name!r}"
                raise AutowireInvalidCallableError(descriptor, msg) from None
            attribute = None

        if isinstance(attribute, staticmethod):
            return self._static_method(owner, attribute.__func__)
        if isinstance(target, type) and isinstance(attribute, types.FunctionType):
            return self._instance_method(owner, attribute)

        try:
            bound = getattr(target, method_name)
        except AttributeError as e:
            msg = f"{_qualified_name(owner)} has no attribute {method_name!r}"
            raise AutowireInvalidCallableError(descriptor, msg) from e
        if not callable(bound):
            msg = f"{_qualified_name(owner)}.{method_name} is not callable"
            raise AutowireInvalidCallableError(descriptor, msg)
        return self.resolve(bound)

    def _resolve_string(self, descriptor: str) -> ResolvedCallable:
        parts = _METHOD_SEPARATOR.split(descriptor, maxsplit=1)
        if len(parts) == _METHOD_PAIR_LENGTH:
            owner, _, _ = import_object(parts[0])
            return self._resolve_pair((owner, parts[1]))

        obj, parent, attribute_name = import_object(descriptor)
        if isinstance(parent, type) and attribute_name is not None:
            return self._resolve_pair((parent, attribute_name))
        return self.resolve(obj)

    def _static_method(self, owner: type[Any], func: Any) -> ResolvedCallable:
        return ResolvedCallable(
            kind=CallableKind.STATIC_METHOD,
            target=func,
            parameters=self._parameters_extractor.extract(func),
            name=f"{_qualified_name(owner)}.{func.__name__}",
            owner=owner,
        )

    def _instance_method(self, owner: type[Any], func: types.FunctionType) -> ResolvedCallable:
        return ResolvedCallable(
            kind=CallableKind.INSTANCE_METHOD,
            target=func,
            parameters=self._parameters_extractor.extract(func, skip_first=True),
            name=f"{_qualified_name(owner)}.{func.__name__}",
            owner=owner,
        )


def import_object(path: str) -> tuple[Any, Any, str | None]:
    """Import ``path`` and return ``(obj, parent, attribute_name)``.

    ``"pkg.module:attr.path"`` splits the module explicitly; a plain dotted path
    imports the longest importable module prefix and walks the rest as
    attributes.
    """
    module_path, separator, attribute_path = path.partition(":")
    if separator:
        module = _import_module(path, module_path)
        return _walk_attributes(path, module, attribute_path.split("."))

    segments = path.split(".")
    for index in range(len(segments), 0, -1):
        candidate = ".".join(segments[:index])
        try:
            module = importlib.import_module(candidate)
        except ImportError:
            continue
        return _walk_attributes(path, module, segments[index:])

    msg = "no importable module prefix"
    raise AutowireInvalidCallableError(path, msg)


def _import_module(path: str, module_path: str) -> types.ModuleType:
    try:
        return importlib.import_module(module_path)
    except ImportError as e:
        msg = f"cannot import module {module_path!r}"
        raise AutowireInvalidCallableError(path, msg) from e


def _walk_attributes(path: str, module: Any, names: list[str]) -> tuple[Any, Any, str | None]:
    obj: Any = module
    parent: Any = None
    name: str | None = None
    for name in filter(None, names):
        parent = obj
        try:
            obj = getattr(obj, name)
        except AttributeError as e:
            msg = f"{_qualified_name(parent)} has no attribute {name!r}"
            raise AutowireInvalidCallableError(path, msg) from e
    return obj, parent, name


def _find_owner(func: types.FunctionType) -> type[Any] | None:
    """Find the class a function was defined in, when it is reachable from its module."""
    qualname_parts = func.__qualname__.split(".")
    if len(qualname_parts) < _METHOD_PAIR_LENGTH or "<locals>" in qualname_parts:
        return None
    obj: Any = sys.modules.get(func.__module__)
    for part in qualname_parts[:-1]:
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj if isinstance(obj, type) else None


def _qualified_name(obj: Any) -> str:
    qualname = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or repr(obj)
    module = getattr(obj, "__module__", None)
    if isinstance(obj, types.ModuleType):
        return obj.__name__
    if not module or module == "builtins":
        return qualname
    return f"{module}.{qualname}"
