from autowire.callables import CallableKind, ResolvedCallable
from autowire.container import Container
from autowire.container_interface import Found
from autowire.exceptions import (
    AutowireClassNotFoundError,
    AutowireCoercionError,
    AutowireConfigurationError,
    AutowireError,
    AutowireInvalidCallableError,
    AutowireUnresolvableParameterError,
)
from autowire.options import ContainerOptions
from autowire.parameters import ParameterSpec

__all__ = [
    "AutowireClassNotFoundError",
    "AutowireCoercionError",
    "AutowireConfigurationError",
    "AutowireError",
    "AutowireInvalidCallableError",
    "AutowireUnresolvableParameterError",
    "CallableKind",
    "Container",
    "ContainerOptions",
    "Found",
    "ParameterSpec",
    "ResolvedCallable",
]
