from abc import ABC, abstractmethod
from dataclasses import MISSING, dataclass, fields

import pytest

from autowire.container import Container, normalize_args, normalize_kwargs
from autowire.exceptions import (
    AutowireClassNotFoundError,
    AutowireCoercionError,
    AutowireConfigurationError,
    AutowireInvalidCallableError,
    AutowireUnresolvableParameterError,
)
from autowire.options import ContainerOptions


class Foo:
    def __init__(self, bar=1) -> None:
        self.bar = bar


class Bar:
    def __init__(self, foo: Foo) -> None:
        self.foo = foo


class Baz:
    def __init__(self, bar: Bar, foo: Foo) -> None:
        self.bar = bar
        self.foo = foo


class Quux:
    def __init__(self, x) -> None:
        self.x = x


class Corge:
    def __init__(self, q: Quux | None = None) -> None:
        self.q = q


class Grault:
    GROOT = "groot"

    def __init__(self, x=GROOT) -> None:
        self.x = x


class Garply:
    def __init__(self, grault: Grault, *variadic) -> None:
        self.grault = grault
        self.variadic = variadic


class Waldo:
    def __init__(self, grault: Grault | None = None, *variadic) -> None:
        self.grault = grault
        self.variadic = variadic


class Fred(ABC):
    @abstractmethod
    def value(self) -> int: ...


class Plugh(Fred):
    def __init__(self, quux: Quux) -> None:
        self.quux = quux

    def value(self) -> int:
        return self.quux.x


class Exploding:
    def __init__(self) -> None:
        msg = "boom"
        raise RuntimeError(msg)


class Holder:
    def __init__(self, token) -> None:
        self.token = token


class Token:
    pass


@dataclass(frozen=True)
class Point:
    x: int
    y: int


def quake(alpha: Quux, beta: Quux) -> int:
    return alpha.x + beta.x


def use_fred(fred: Fred) -> int:
    return fred.value()


def test_constructs_class_without_dependencies(container: Container) -> None:
    foo = container.construct(Foo)

    assert isinstance(foo, Foo)
    assert foo.bar == 1


def test_constructs_nested_dependencies(container: Container) -> None:
    bar = container.construct(Bar)

    assert isinstance(bar, Bar)
    assert isinstance(bar.foo, Foo)


def test_cached_objects_are_shared_by_parameter_name(container: Container) -> None:
    baz = container.construct(Baz)

    assert baz.foo is baz.bar.foo


def test_disabled_cache_constructs_fresh_objects(container_no_cache: Container) -> None:
    baz = container_no_cache.construct(Baz)

    assert baz.foo is not baz.bar.foo
    assert container_no_cache.construct(Foo) is not container_no_cache.construct(Foo)


def test_identical_requests_return_cached_instance(container: Container) -> None:
    assert container.construct(Foo) is container.construct(Foo)
    assert container.construct(Quux, [1]) is container.construct(Quux, [1])


def test_different_arguments_produce_different_instances(container: Container) -> None:
    assert container.construct(Quux, [1]) is not container.construct(Quux, [2])


def test_positional_arguments(container: Container) -> None:
    assert container.construct(Quux, [1]).x == 1


def test_single_scalar_counts_as_one_positional_argument(container: Container) -> None:
    assert container.construct(Quux, 5).x == 5
    assert container.construct(Quux, "abc").x == "abc"


def test_keyword_arguments(container: Container) -> None:
    assert container.construct(Quux, kwargs={"x": 4}).x == 4


def test_keyword_arguments_are_not_part_of_the_cache_key(container: Container) -> None:
    first = container.construct(Quux, kwargs={"x": 4})
    second = container.construct(Quux, kwargs={"x": 5})

    assert second is first
    assert second.x == 4


def test_positional_argument_bubbles_into_declared_type(container: Container) -> None:
    corge = container.construct(Corge, [2])

    assert isinstance(corge.q, Quux)
    assert corge.q.x == 2


def test_bubbling_disabled_for_positional_arguments_raises() -> None:
    container = Container(coerce_pos_args=False)

    with pytest.raises(AutowireCoercionError) as exc_info:
        container.construct(Corge, [2])

    assert exc_info.value.expected_type is Quux
    assert exc_info.value.value_type is int
    assert exc_info.value.parameter == "q"


def test_missing_required_untyped_argument_raises(container: Container) -> None:
    with pytest.raises(AutowireUnresolvableParameterError) as exc_info:
        container.construct(Quux)

    assert exc_info.value.parameter == "x"


def test_default_used_when_dependency_cannot_be_constructed(container: Container) -> None:
    assert container.construct(Corge).q is None
    assert container.construct(Grault).x == Grault.GROOT


def test_non_none_default_used_when_dependency_construction_fails(container: Container) -> None:
    class UsesExploding:
        def __init__(self, dep: Exploding = "fallback") -> None:  # type: ignore[assignment]
            self.dep = dep

    assert container.construct(UsesExploding).dep == "fallback"


def test_constructor_exceptions_propagate(container: Container) -> None:
    with pytest.raises(RuntimeError, match="boom"):
        container.construct(Exploding)


def test_variadic_parameter_without_arguments(container: Container) -> None:
    garply = container.construct(Garply)

    assert garply.grault.x == Grault.GROOT
    assert garply.variadic == ()


def test_variadic_parameter_collects_overflow_positionals(container: Container) -> None:
    garply = container.construct(Garply, [1, 2, 3])

    assert isinstance(garply.grault, Grault)
    assert garply.grault.x == 1
    assert garply.variadic == (2, 3)


def test_none_for_non_nullable_parameter_is_bubbled(container: Container) -> None:
    garply = container.construct(Garply, [None, 2, 3])

    assert isinstance(garply.grault, Grault)
    assert garply.grault.x is None


def test_none_for_nullable_parameter_is_kept(container: Container) -> None:
    waldo = container.construct(Waldo, [None, 2, 3])

    assert waldo.grault is None
    assert waldo.variadic == (2, 3)


def test_optional_dependency_is_constructed_when_possible(container: Container) -> None:
    waldo = container.construct(Waldo)

    assert isinstance(waldo.grault, Grault)


def test_registered_instance_is_returned(container: Container) -> None:
    quux = Quux(99)
    container.register_instance(quux)

    assert container.get(Quux) is quux
    assert container.construct(Quux) is quux
    assert container.construct(Corge).q is quux


def test_named_registration_matches_parameter_name(container: Container) -> None:
    quux = Quux(99)
    container.register_instance(quux, r"^q")

    assert container.get(Quux, "qbar") is quux
    assert container.get(Quux, "qwaldo") is quux
    with pytest.raises(AutowireClassNotFoundError):
        container.get(Quux, "xbar")


def test_named_registrations_select_by_consuming_parameter(container: Container) -> None:
    container.register_instance(Quux(1), "^a")
    container.register_instance(Quux(5), "^b")

    assert container.call(quake) == 6


def test_named_registration_takes_precedence_over_unnamed(container: Container) -> None:
    unnamed = Quux(1)
    named = Quux(2)
    container.register_instance(unnamed)
    container.register_instance(named, "^alpha$")

    assert container.get(Quux, "alpha") is named
    assert container.get(Quux, "beta") is unnamed
    assert container.get(Quux) is unnamed


def test_get_returns_default_when_nothing_is_registered(container: Container) -> None:
    assert container.get(Quux, default=None) is None


def test_get_does_not_construct(container: Container) -> None:
    with pytest.raises(AutowireClassNotFoundError) as exc_info:
        container.get(Foo)

    assert exc_info.value.key is Foo


def test_arbitrary_registry_keys(container: Container) -> None:
    container.register_factory("xyzzy", lambda: Quux(99))

    assert isinstance(container.get("xyzzy"), Quux)
    assert container.construct("xyzzy").x == 99


def test_unregistered_non_class_key_raises(container: Container) -> None:
    with pytest.raises(AutowireInvalidCallableError):
        container.construct("nothing-registered")


def test_factory_parameters_are_injected(container: Container) -> None:
    def make_bar(foo: Foo) -> Bar:
        foo.bar = 42
        return Bar(foo)

    container.register_factory(Bar, make_bar)

    assert container.construct(Bar).foo.bar == 42


def test_registered_interface_constructs_concrete_class(container: Container) -> None:
    quux = Quux(10)
    container.register_instance(quux)
    container.register_interface(Fred, Plugh)

    fred = container.construct(Fred)

    assert isinstance(fred, Plugh)
    assert fred.quux is quux
    assert container.call(use_fred) == 10


def test_interface_bound_to_itself_raises(container: Container) -> None:
    with pytest.raises(AutowireConfigurationError) as exc_info:
        container.register_interface(Quux, Quux)

    assert exc_info.value.key is Quux


def test_globals_fill_parameters_by_name() -> None:
    container = Container(globals={"x": 3})

    assert container.construct(Quux).x == 3


def test_register_globals_new_values_replace_existing(container: Container) -> None:
    container.register_globals({"x": 1, "y": 2})
    container.register_globals({"x": 3})
    container.register_global("z", 4)

    assert dict(container.globals) == {"x": 3, "y": 2, "z": 4}


def test_globals_view_is_read_only(container: Container) -> None:
    with pytest.raises(TypeError):
        container.globals["x"] = 1  # type: ignore[index]


def test_calling_a_class_without_arguments_uses_registry(container: Container) -> None:
    quux = Quux(99)
    container.register_instance(quux)

    assert container.call(Quux) is quux
    assert container.call(Quux, [7]).x == 7


def test_cache_key_hashes_plain_objects_by_identity(container: Container) -> None:
    token = Token()

    assert container.construct(Holder, [token]) is container.construct(Holder, [token])
    assert container.construct(Holder, [Token()]) is not container.construct(Holder, [Token()])


def test_cache_key_hashes_value_objects_structurally(container: Container) -> None:
    first = container.construct(Holder, [Point(1, 2)])
    second = container.construct(Holder, [Point(1, 2)])

    assert first is second


def test_from_options_copies_configuration() -> None:
    options = ContainerOptions(cache_objects=False, coerce_globals=True, globals={"x": 1})

    container = Container.from_options(options)

    assert container.options == options
    assert container.construct(Quux).x == 1
    assert container.construct(Foo) is not container.construct(Foo)


def test_default_globals_are_a_fresh_read_only_mapping() -> None:
    globals_field = next(item for item in fields(ContainerOptions) if item.name == "globals")
    first = ContainerOptions()
    second = ContainerOptions()

    assert globals_field.default is MISSING
    assert dict(first.globals) == {}
    assert first.globals is not second.globals
    with pytest.raises(TypeError):
        first.globals["x"] = 1  # type: ignore[index]


def test_default_options() -> None:
    options = Container().options

    assert options.cache_objects is True
    assert options.memoize_functions is False
    assert options.memoize_methods is False
    assert options.coerce_pos_args is True
    assert options.coerce_kw_args is True
    assert options.coerce_globals is False
    assert options.propagate_kw_args is False
    assert options.coerce_callback is None


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (None, ()),
        ((1, 2), (1, 2)),
        ([1, 2], (1, 2)),
        ("abc", ("abc",)),
        (7, (7,)),
        ({"a": 1, "b": 2}, (1, 2)),
    ],
)
def test_normalize_args(args: object, expected: tuple[object, ...]) -> None:
    assert normalize_args(args) == expected


def test_normalize_kwargs() -> None:
    assert normalize_kwargs(None) == {}
    assert normalize_kwargs([("a", 1)]) == {"a": 1}
