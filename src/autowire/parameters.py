from __future__ import annotations

import collections.abc
import contextlib
import inspect
import logging
import types
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any, Literal, TypeAlias, Union, get_args, get_origin, get_type_hints

from autowire.defaults import KEYED_AGGREGATE_TYPES, ORDERED_AGGREGATE_TYPES, PRIMITIVE_TYPES

logger = logging.getLogger(__name__)
_MISSING: Any = object()
_ANNOTATION_HOLDER_CODE = (lambda: None).__code__

Aggregate: TypeAlias = Literal["ordered", "keyed"]

_POSITIONAL_KINDS = frozenset(
    {
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
        inspect.Parameter.VAR_POSITIONAL,
    },
)

_ABSTRACT_ORDERED: frozenset[Any] = frozenset(
    {
        collections.abc.Iterable,
        collections.abc.Collection,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
    },
)
_ABSTRACT_KEYED: frozenset[Any] = frozenset(
    {collections.abc.Mapping, collections.abc.MutableMapping},
)


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """Information about a constructor/function parameter."""

    name: str
    kind: int
    """One of the ``inspect.Parameter`` kind constants."""

    annotation: Any = inspect.Parameter.empty
    declared_type: type[Any] | None = None
    has_default: bool = False
    default: Any = None
    nullable: bool = True
    aggregate: Aggregate | None = None
    container_type: type[Any] | None = None

    @property
    def is_variadic(self) -> bool:
        return self.kind is inspect.Parameter.VAR_POSITIONAL

    @property
    def accepts_positional(self) -> bool:
        return self.kind in _POSITIONAL_KINDS

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


@dataclass(frozen=True, slots=True)
class _AnnotationInfo:
    declared_type: type[Any] | None = None
    nullable: bool = False
    aggregate: Aggregate | None = None
    container_type: type[Any] | None = None


class ParametersExtractor:
    """Extract parameter lists from functions, methods and constructors."""

    def __init__(self) -> None:
        # Weakly keyed by functions and classes, so throwaway closures and
        # lambdas are not kept alive. Callable objects are never cached.
        self._cache: weakref.WeakKeyDictionary[Any, dict[bool, tuple[ParameterSpec, ...] | None]]
        self._cache = weakref.WeakKeyDictionary()

    def extract(
        self,
        func: Callable[..., Any],
        *,
        skip_first: bool = False,
    ) -> tuple[ParameterSpec, ...] | None:
        """Return the parameter list of ``func``, or ``None`` if it has no introspectable signature.

        Args:
            func: Function, builtin or other callable to inspect.
            skip_first: Drop the leading ``self``/``cls`` parameter of a
                function accessed through its class.

        """
        cached = self._cached(func, skip_first)
        if cached is not _MISSING:
            return cached

        result = self._extract(func, hints_source=func, skip_first=skip_first)
        self._store(func, skip_first, result)
        return result

    def extract_constructor(self, cls: type[Any]) -> tuple[ParameterSpec, ...] | None:
        """Return the constructor parameter list of ``cls`` without ``self``."""
        cached = self._cached(cls, True)
        if cached is not _MISSING:
            return cached

        if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
            result: tuple[ParameterSpec, ...] | None = ()
        else:
            init = cls.__init__
            hints_source = init if isinstance(init, types.FunctionType) else cls.__new__
            result = self._extract(cls, hints_source=hints_source, skip_first=False)
        self._store(cls, True, result)
        return result

    def extract_call_operator(self, obj: Callable[..., Any]) -> tuple[ParameterSpec, ...] | None:
        """Return the parameter list of a callable object (``functools.partial``, ``__call__``)."""
        return self._extract(obj, hints_source=type(obj).__call__, skip_first=False)

    def _extract(
        self,
        func: Callable[..., Any],
        *,
        hints_source: Any,
        skip_first: bool,
    ) -> tuple[ParameterSpec, ...] | None:
        try:
            signature = inspect.signature(func)
        except (ValueError, TypeError):
            logger.debug("No introspectable signature for %r", func)
            return None

        hints = self._resolved_annotations(hints_source)
        parameters = list(signature.parameters.values())
        if skip_first and parameters and parameters[0].kind in _POSITIONAL_KINDS:
            parameters = parameters[1:]

        specs: list[ParameterSpec] = []
        for parameter in parameters:
            if parameter.kind is inspect.Parameter.VAR_KEYWORD:
                continue
            specs.append(
                self._build_spec(
                    parameter=parameter,
                    annotation=hints.get(parameter.name, parameter.annotation),
                ),
            )
        return tuple(specs)

    def _cached(self, key: Any, skip_first: bool) -> Any:
        try:
            entries = self._cache.get(key)
        except TypeError:
            # Builtins and unhashable callables cannot be weakly referenced.
            return _MISSING
        if entries is None:
            return _MISSING
        return entries.get(skip_first, _MISSING)

    def _store(
        self,
        key: Any,
        skip_first: bool,
        result: tuple[ParameterSpec, ...] | None,
    ) -> None:
        with contextlib.suppress(TypeError):
            self._cache.setdefault(key, {})[skip_first] = result

    def _resolved_annotations(self, func: Callable[..., Any]) -> dict[str, Any]:
        """Resolve callable annotations.

        When one annotation cannot be resolved, the others are resolved one by
        one, so only the broken parameter is left with its raw annotation.
        """
        try:
            return get_type_hints(func, include_extras=True)
        except (AttributeError, NameError, TypeError):
            logger.debug("Resolving annotations of %r one by one", func, exc_info=True)
            return _resolve_each_annotation(func)

    def _build_spec(self, *, parameter: inspect.Parameter, annotation: Any) -> ParameterSpec:
        has_default = parameter.default is not inspect.Parameter.empty
        default = parameter.default if has_default else None
        info = analyze_annotation(annotation)
        untyped = (
            annotation is inspect.Parameter.empty
            or annotation is Any
            or isinstance(annotation, str)
        )
        return ParameterSpec(
            name=parameter.name,
            kind=parameter.kind,
            annotation=annotation,
            declared_type=info.declared_type,
            has_default=has_default,
            default=default,
            nullable=untyped or info.nullable or (has_default and default is None),
            aggregate=info.aggregate,
            container_type=info.container_type,
        )


def analyze_annotation(annotation: Any) -> _AnnotationInfo:
    """Classify an annotation as an object type, an aggregate, or neither."""
    if annotation is inspect.Parameter.empty or isinstance(annotation, str):
        return _AnnotationInfo()
    if annotation is None or annotation is type(None):
        return _AnnotationInfo(nullable=True)

    annotation = _strip_annotated(annotation)
    nullable = False
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = get_args(annotation)
        non_null = [member for member in members if member is not type(None)]
        nullable = len(non_null) != len(members)
        if len(non_null) != 1:
            return _AnnotationInfo(nullable=nullable)
        annotation = _strip_annotated(non_null[0])
        origin = get_origin(annotation)

    target = origin if origin is not None else annotation
    try:
        hash(target)
    except TypeError:
        return _AnnotationInfo(nullable=nullable)

    if target in KEYED_AGGREGATE_TYPES or target in _ABSTRACT_KEYED:
        return _AnnotationInfo(nullable=nullable, aggregate="keyed", container_type=dict)
    if target in ORDERED_AGGREGATE_TYPES:
        return _AnnotationInfo(nullable=nullable, aggregate="ordered", container_type=target)
    if target in _ABSTRACT_ORDERED:
        return _AnnotationInfo(nullable=nullable, aggregate="ordered", container_type=list)

    if is_runtime_class(target) and target not in PRIMITIVE_TYPES:
        return _AnnotationInfo(declared_type=target, nullable=nullable)
    return _AnnotationInfo(nullable=nullable)


def _resolve_each_annotation(func: Callable[..., Any]) -> dict[str, Any]:
    annotations = getattr(func, "__annotations__", None)
    globalns = getattr(inspect.unwrap(func), "__globals__", None)
    if not isinstance(annotations, dict) or not isinstance(globalns, dict):
        return {}

    hints: dict[str, Any] = {}
    for name, annotation in annotations.items():
        holder = types.FunctionType(_ANNOTATION_HOLDER_CODE, globalns)
        holder.__annotations__ = {name: annotation}
        try:
            hints.update(get_type_hints(holder, include_extras=True))
        except (AttributeError, NameError, TypeError):
            logger.debug("Could not resolve annotation %r of %r", annotation, func)
    return hints


def is_runtime_class(candidate: object) -> bool:
    """Return true when candidate is a runtime class safe for ``isinstance`` checks."""
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def _strip_annotated(annotation: Any) -> Any:
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation
