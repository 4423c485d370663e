from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, TypeVar, overload

from typing_extensions import Self

from autowire.cache_keys import CacheKey, IdentityKey, canonicalize, make_cache_key
from autowire.callables import CallableKind, CallableResolver, ResolvedCallable
from autowire.coercion import ValueCoercer
from autowire.container_interface import Found, IContainer
from autowire.defaults import (
    DEFAULT_CACHE_OBJECTS,
    DEFAULT_COERCE_GLOBALS,
    DEFAULT_COERCE_KW_ARGS,
    DEFAULT_COERCE_POS_ARGS,
    DEFAULT_MEMOIZE_FUNCTIONS,
    DEFAULT_MEMOIZE_METHODS,
    DEFAULT_PROPAGATE_KW_ARGS,
)
from autowire.exceptions import (
    AutowireClassNotFoundError,
    AutowireConfigurationError,
    AutowireInvalidCallableError,
)
from autowire.options import ContainerOptions
from autowire.parameters import ParametersExtractor
from autowire.registry import Factory, NamePattern, Registry
from autowire.resolver import ParameterResolver, ResolvedArgument

T = TypeVar("T")

logger = logging.getLogger(__name__)
_MISSING: Any = object()

_FUNCTION_KINDS = frozenset(
    {CallableKind.FUNCTION, CallableKind.CLOSURE, CallableKind.STATIC_METHOD},
)
_METHOD_KINDS = frozenset(
    {CallableKind.BOUND_METHOD, CallableKind.INSTANCE_METHOD, CallableKind.CALL_OPERATOR},
)


class Container(IContainer):
    """Dependency injection container that fills callable parameters by reflection.

    Values come, in order of precedence, from caller positional arguments,
    caller keyword arguments, container globals, and finally recursive
    construction of object-typed parameters (or their declared defaults).
    Registered factories override construction per type, optionally only for
    parameters whose name matches a pattern.

    Constructed objects are cached by type, consuming parameter name and
    positional arguments when ``cache_objects`` is enabled.
    """

    __slots__ = (
        "_callable_resolver",
        "_coercer",
        "_globals",
        "_memo",
        "_object_cache",
        "_options",
        "_parameter_resolver",
        "_registry",
    )

    def __init__(
        self,
        *,
        cache_objects: bool = DEFAULT_CACHE_OBJECTS,
        memoize_functions: bool = DEFAULT_MEMOIZE_FUNCTIONS,
        memoize_methods: bool = DEFAULT_MEMOIZE_METHODS,
        coerce_pos_args: bool = DEFAULT_COERCE_POS_ARGS,
        coerce_kw_args: bool = DEFAULT_COERCE_KW_ARGS,
        coerce_globals: bool = DEFAULT_COERCE_GLOBALS,
        propagate_kw_args: bool = DEFAULT_PROPAGATE_KW_ARGS,
        coerce_callback: Callable[..., Any] | None = None,
        globals: Mapping[str, Any] | None = None,  # noqa: A002
    ) -> None:
        """Initialize a container with its immutable options.

        Args:
            cache_objects: Reuse constructed objects for identical construction requests.
            memoize_functions: Memoize ``call`` results of functions, closures and
                static methods, keyed by the explicit arguments.
            memoize_methods: Memoize ``call`` results of bound methods, instance
                methods and callable objects.
            coerce_pos_args: Bubble mismatched positional arguments into the
                declared type's constructor instead of raising.
            coerce_kw_args: Same as ``coerce_pos_args`` for keyword arguments.
            coerce_globals: Same as ``coerce_pos_args`` for globals.
            propagate_kw_args: Forward keyword arguments of the outer call into
                recursively constructed dependencies.
            coerce_callback: Called with a mismatched value instead of the
                declared type's constructor when bubbling.
            globals: Initial container-wide values matched by parameter name.

        """
        self._options = ContainerOptions(
            cache_objects=cache_objects,
            memoize_functions=memoize_functions,
            memoize_methods=memoize_methods,
            coerce_pos_args=coerce_pos_args,
            coerce_kw_args=coerce_kw_args,
            coerce_globals=coerce_globals,
            propagate_kw_args=propagate_kw_args,
            coerce_callback=coerce_callback,
            globals=globals or {},
        )
        self._globals: dict[str, Any] = dict(self._options.globals)
        self._registry = Registry()
        self._object_cache: dict[CacheKey, Any] = {}
        self._memo: dict[Hashable, Any] = {}
        self._callable_resolver = CallableResolver(ParametersExtractor())
        self._coercer = ValueCoercer(self)
        self._parameter_resolver = ParameterResolver(self, self._coercer)

    @classmethod
    def from_options(cls, options: ContainerOptions) -> Self:
        """Create a container from an existing ``ContainerOptions`` value."""
        return cls(
            cache_objects=options.cache_objects,
            memoize_functions=options.memoize_functions,
            memoize_methods=options.memoize_methods,
            coerce_pos_args=options.coerce_pos_args,
            coerce_kw_args=options.coerce_kw_args,
            coerce_globals=options.coerce_globals,
            propagate_kw_args=options.propagate_kw_args,
            coerce_callback=options.coerce_callback,
            globals=options.globals,
        )

    @property
    def options(self) -> ContainerOptions:
        return self._options

    @property
    def globals(self) -> Mapping[str, Any]:
        return MappingProxyType(self._globals)

    def register_factory(
        self,
        key: Any,
        factory: Factory,
        name_pattern: NamePattern | None = None,
    ) -> None:
        """Use ``factory`` whenever ``key`` is requested.

        The factory is invoked through the container, so its own parameters are
        injected too. When it is used to coerce a mismatched value, that value is
        its first positional argument.

        Args:
            key: Usually a class; any hashable token works with ``get``.
            factory: Callable producing the value.
            name_pattern: Regular expression searched in the consuming parameter
                name. Named registrations are tried in registration order and take
                precedence over the unnamed one.

        """
        self._registry.add(key, factory, name_pattern)

    def register_instance(self, instance: Any, name_pattern: NamePattern | None = None) -> None:
        """Return ``instance`` whenever its exact type is requested."""

        def factory() -> Any:
            return instance

        self.register_factory(type(instance), factory, name_pattern)

    def register_interface(
        self,
        abstract: Any,
        concrete: type[Any],
        name_pattern: NamePattern | None = None,
    ) -> None:
        """Construct ``concrete`` whenever ``abstract`` is requested.

        Raises:
            AutowireConfigurationError: ``abstract`` and ``concrete`` are the same
                type, which would recurse forever at resolution time.

        """
        if abstract is concrete:
            raise AutowireConfigurationError(
                abstract,
                "interface and concrete class cannot be the same type",
            )

        def factory() -> Any:
            return self.construct(concrete)

        self.register_factory(abstract, factory, name_pattern)

    def register_global(self, name: str, value: Any) -> None:
        self._globals[name] = value

    def register_globals(self, values: Mapping[str, Any]) -> None:
        """Register several globals at once; new values replace existing names."""
        self._globals.update(values)

    def lookup(
        self,
        key: Any,
        name: str | None = None,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Found | None:
        factory = self._registry.find(key, name)
        if factory is None:
            return None
        logger.debug("Using registered factory for %r (parameter %r)", key, name)
        resolved = self.resolve_callable(factory)
        return Found(self._invoke(resolved, tuple(args), dict(kwargs or {})))

    @overload
    def get(
        self,
        key: type[T],
        name: str | None = None,
        args: Any = None,
        kwargs: Any = None,
        default: Any = ...,
    ) -> T: ...

    @overload
    def get(
        self,
        key: Any,
        name: str | None = None,
        args: Any = None,
        kwargs: Any = None,
        default: Any = ...,
    ) -> Any: ...

    def get(
        self,
        key: Any,
        name: str | None = None,
        args: Any = None,
        kwargs: Any = None,
        default: Any = _MISSING,
    ) -> Any:
        """Return the registered value for ``key`` without falling back to construction.

        Raises:
            AutowireClassNotFoundError: Nothing is registered and no ``default`` was given.

        """
        found = self.lookup(key, name, normalize_args(args), normalize_kwargs(kwargs))
        if found is not None:
            return found.value
        if default is not _MISSING:
            return default
        raise AutowireClassNotFoundError(key, name)

    def call(self, descriptor: Any, args: Any = None, kwargs: Any = None) -> Any:
        """Call ``descriptor``, injecting every parameter the caller did not supply.

        Args:
            descriptor: Function, closure, method, class, callable object,
                ``(class_or_instance, "method")`` pair or import string.
            args: Positional arguments; a single non-iterable value (or a string)
                counts as one argument.
            kwargs: Keyword arguments matched by parameter name.

        """
        positional = normalize_args(args)
        keyword = normalize_kwargs(kwargs)

        if isinstance(descriptor, type) and not positional and not keyword:
            found = self.lookup(descriptor)
            if found is not None:
                return found.value

        resolved = self.resolve_callable(descriptor)
        memo_key = self._memo_key(resolved, positional, keyword)
        if memo_key is not None:
            memoized = self._memo.get(memo_key, _MISSING)
            if memoized is not _MISSING:
                logger.debug("Memoized result for %s", resolved.name)
                return memoized

        result = self._invoke(resolved, positional, keyword)
        if memo_key is not None:
            self._memo[memo_key] = result
        return result

    @overload
    def construct(
        self,
        type_id: type[T],
        args: Any = None,
        kwargs: Any = None,
        *,
        name: str | None = None,
    ) -> T: ...

    @overload
    def construct(
        self,
        type_id: Any,
        args: Any = None,
        kwargs: Any = None,
        *,
        name: str | None = None,
    ) -> Any: ...

    def construct(
        self,
        type_id: Any,
        args: Any = None,
        kwargs: Any = None,
        *,
        name: str | None = None,
    ) -> Any:
        """Construct (or reuse) an instance of ``type_id``.

        The object cache is consulted first, then registered factories (qualified
        by ``name``, the consuming parameter name), then the class constructor is
        called with its parameters filled. Constructor exceptions propagate
        unmodified.
        """
        positional = normalize_args(args)
        keyword = normalize_kwargs(kwargs)

        cache_key: CacheKey | None = None
        if self._options.cache_objects:
            cache_key = make_cache_key(type_id, name, positional)
            cached = self._object_cache.get(cache_key, _MISSING)
            if cached is not _MISSING:
                logger.debug("Object cache hit for %r", cache_key)
                return cached

        found = self.lookup(type_id, name, positional, keyword)
        if found is not None:
            instance = found.value
        elif isinstance(type_id, type):
            logger.debug("Constructing %s", type_id.__qualname__)
            instance = self._invoke(self.resolve_callable(type_id), positional, keyword)
        else:
            raise AutowireInvalidCallableError(type_id, "expected a class or a registered key")

        if cache_key is not None:
            self._object_cache[cache_key] = instance
        return instance

    def resolve_callable(self, descriptor: Any) -> ResolvedCallable:
        return self._callable_resolver.resolve(descriptor)

    def get_callable_name(self, descriptor: Any) -> str:
        """Return a readable name for ``descriptor``, for debugging and error messages."""
        return self.resolve_callable(descriptor).name

    def _invoke(
        self,
        resolved: ResolvedCallable,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        if resolved.parameters is None:
            call_args: list[Any] = list(args)
            call_kwargs = kwargs
        else:
            arguments = self._parameter_resolver.fill(
                resolved.parameters,
                args,
                kwargs,
                callable_name=resolved.name,
            )
            call_args, call_kwargs = self._split_arguments(resolved, arguments)

        if resolved.kind is CallableKind.INSTANCE_METHOD:
            receiver = self.construct(resolved.owner)
            return resolved.target(receiver, *call_args, **call_kwargs)
        return resolved.target(*call_args, **call_kwargs)

    def _split_arguments(
        self,
        resolved: ResolvedCallable,
        arguments: list[ResolvedArgument],
    ) -> tuple[list[Any], dict[str, Any]]:
        call_args: list[Any] = []
        call_kwargs: dict[str, Any] = {}
        for argument in arguments:
            parameter = argument.parameter
            if parameter is None:
                logger.debug(
                    "Dropping extra positional argument %r for %s",
                    argument.value,
                    resolved.name,
                )
                continue
            if parameter.keyword_only:
                call_kwargs[parameter.name] = argument.value
            else:
                call_args.append(argument.value)
        return call_args, call_kwargs

    def _memo_key(
        self,
        resolved: ResolvedCallable,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Hashable | None:
        if resolved.kind in _FUNCTION_KINDS:
            if not self._options.memoize_functions:
                return None
        elif resolved.kind in _METHOD_KINDS:
            if not self._options.memoize_methods:
                return None
        else:
            return None

        target = resolved.target
        receiver = getattr(target, "__self__", None)
        target_key = (
            IdentityKey(getattr(target, "__func__", target)),
            IdentityKey(receiver),
            resolved.owner,
        )
        return (
            target_key,
            tuple(canonicalize(arg) for arg in args),
            tuple((key, canonicalize(kwargs[key])) for key in sorted(kwargs)),
        )


def normalize_args(args: Any) -> tuple[Any, ...]:
    """Normalize caller positional input to a tuple.

    ``None`` means no arguments, strings and other non-iterables are a single
    argument, and mappings contribute their values.
    """
    if args is None:
        return ()
    if isinstance(args, tuple):
        return args
    if isinstance(args, str | bytes | bytearray):
        return (args,)
    if isinstance(args, Mapping):
        return tuple(args.values())
    if isinstance(args, Iterable):
        return tuple(args)
    return (args,)


def normalize_kwargs(kwargs: Any) -> dict[str, Any]:
    """Normalize caller keyword input (a mapping or pairs) to a dict."""
    if kwargs is None:
        return {}
    return dict(kwargs)
