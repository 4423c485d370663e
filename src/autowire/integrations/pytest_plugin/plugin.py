from __future__ import annotations

from typing import Any

import pytest

from autowire.container import Container

AUTOWIRE_MARKER = "autowire"


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        f"{AUTOWIRE_MARKER}(**options): configure the autowire_container fixture "
        "with Container keyword options",
    )


@pytest.fixture()
def autowire_container(request: pytest.FixtureRequest) -> Container:
    """Create a per-test container.

    Options come from the closest ``@pytest.mark.autowire(...)`` marker, so a
    test can opt into, for example, ``coerce_globals=True`` without building its
    own container. The fixture is function-scoped; registrations and the object
    cache never leak between tests.

    Returns:
        A new ``Container`` instance.

    """
    options: dict[str, Any] = {}
    for marker in reversed(list(request.node.iter_markers(AUTOWIRE_MARKER))):
        options.update(marker.kwargs)
    return Container(**options)
