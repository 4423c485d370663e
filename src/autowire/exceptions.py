from typing import Any


class AutowireError(Exception):
    """Represent a base class for all autowire-specific failures.

    Catch this type when you want to handle any autowire error path without
    matching each concrete exception class individually.
    """


class AutowireConfigurationError(AutowireError):
    """Signal an invalid registration.

    Raised eagerly by registration APIs such as ``Container.register_interface``
    when the registration could never be resolved, for example binding a class
    to itself (which would recurse forever at resolution time).

    Typical fix is binding the abstract type to a distinct concrete subclass.
    """

    def __init__(self, key: Any, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid registration for {_describe(key)}: {reason}")


class AutowireClassNotFoundError(AutowireError):
    """Signal that ``Container.get`` found no registry entry and no default.

    Only the explicit lookup entry point raises this error; ``construct`` always
    falls through to real construction instead.

    Typical fixes include registering a factory or instance for the key, or
    passing ``default=...`` when the lookup is optional.
    """

    def __init__(self, key: Any, name: str | None = None) -> None:
        self.key = key
        self.name = name
        qualifier = f" for parameter {name!r}" if name else ""
        super().__init__(f"No registration found for {_describe(key)}{qualifier}")


class AutowireCoercionError(AutowireError):
    """Signal that a supplied value cannot satisfy a declared parameter type.

    Raised when the value's runtime type does not match, no registry override
    exists, and bubbling is disabled for the argument source the value came
    from (see ``coerce_pos_args``, ``coerce_kw_args`` and ``coerce_globals``).
    """

    def __init__(self, value_type: type, expected_type: type, parameter: str) -> None:
        self.value_type = value_type
        self.expected_type = expected_type
        self.parameter = parameter
        super().__init__(
            f"Could not coerce argument of type {_describe(value_type)} "
            f"to {_describe(expected_type)} for parameter {parameter!r}",
        )


class AutowireUnresolvableParameterError(AutowireError):
    """Signal a required parameter that no source could supply.

    The container never invents zero values for primitive or untyped
    parameters.

    Typical fixes include passing the value positionally or by keyword,
    registering a global under the parameter name, or declaring a default.
    """

    def __init__(self, parameter: str, callable_name: str) -> None:
        self.parameter = parameter
        self.callable_name = callable_name
        super().__init__(
            f"Cannot inject non-optional, non-object parameter {parameter!r} "
            f"without a default value in {callable_name}",
        )


class AutowireInvalidCallableError(AutowireError):
    """Signal a malformed callable descriptor.

    Raised before resolution begins, for example for a method tuple that is not
    of the form ``(class_or_instance, "method_name")``, an import string that
    cannot be imported, or a value that is not callable at all.
    """

    def __init__(self, descriptor: Any, reason: str) -> None:
        self.descriptor = descriptor
        self.reason = reason
        super().__init__(f"Invalid callable {descriptor!r}: {reason}")


def _describe(value: Any) -> str:
    if isinstance(value, type):
        return f"{value.__module__}.{value.__qualname__}"
    return repr(value)
