from typing import Any

DEFAULT_CACHE_OBJECTS = True
DEFAULT_MEMOIZE_FUNCTIONS = False
DEFAULT_MEMOIZE_METHODS = False
DEFAULT_COERCE_POS_ARGS = True
DEFAULT_COERCE_KW_ARGS = True
DEFAULT_COERCE_GLOBALS = False
DEFAULT_PROPAGATE_KW_ARGS = False

# Annotations that never trigger recursive construction or bubbling.
PRIMITIVE_TYPES: frozenset[type[Any]] = frozenset(
    {
        int,
        float,
        complex,
        bool,
        str,
        bytes,
        bytearray,
        object,
        type(None),
    },
)

ORDERED_AGGREGATE_TYPES: frozenset[type[Any]] = frozenset({list, tuple, set, frozenset})

KEYED_AGGREGATE_TYPES: frozenset[type[Any]] = frozenset({dict})
