from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, cast, get_type_hints

import pytest

from wireless.container import Container, ContainerState
from wireless.markers import is_injected_annotation, strip_injected_annotation

_WIRELESS_CONTAINER_ATTR = "_wireless_container"
_WIRELESS_INJECTED_PARAMETERS_ATTR = "__wireless_pytest_injected_parameters__"


@dataclass(frozen=True, slots=True)
class InjectedParameter:
    """A test function parameter resolved from the container."""

    name: str
    dependency: Any


@pytest.fixture()
def wireless_container() -> Container:
    """Fixture hook for the plugin-managed test container.

    Users must override this fixture in their own test suite to provide
    registrations for injected dependencies. The plugin resolves the returned
    container when it is still new; cleaning it up stays with the fixture.

    """
    msg = (
        "The wireless pytest plugin requires overriding the 'wireless_container' fixture in "
        "your test suite. Define @pytest.fixture() def wireless_container() -> Container: ... "
        "and return a configured container."
    )
    raise RuntimeError(msg)


@pytest.fixture(autouse=True)
def _wireless_state(request: pytest.FixtureRequest) -> None:
    """Store the container on test nodes that declare ``Injected[...]`` parameters."""
    node = cast("Any", request.node)
    test_function = getattr(node, "obj", None)
    if not getattr(test_function, _WIRELESS_INJECTED_PARAMETERS_ATTR, None):
        return
    container = cast("Container", request.getfixturevalue("wireless_container"))
    if container.state is ContainerState.NEW:
        container.resolve()
    setattr(node, _WIRELESS_CONTAINER_ATTR, container)


def pytest_pycollect_makeitem(
    collector: Any,
    name: str,
    obj: object,
) -> Any | None:
    """Hide ``Injected[...]`` parameters from pytest fixture name matching.

    Pytest treats test function parameters as fixture names. This hook
    records the injected parameters and rewrites the public signature so
    they are not interpreted as missing fixtures.

    Args:
        collector: Pytest collector instance.
        name: Collected object name.
        obj: Candidate object.

    Returns:
        ``None`` to continue default collection flow.

    """
    if not callable(obj):
        return None
    if not collector.istestfunction(obj, name):
        return None

    callable_obj = cast("Callable[..., Any]", obj)
    injected_parameters = injected_parameters_of(callable_obj)
    if not injected_parameters:
        return None

    signature = inspect.signature(callable_obj)
    injected_names = {parameter.name for parameter in injected_parameters}
    obj_as_any = cast("Any", obj)
    obj_as_any.__dict__[_WIRELESS_INJECTED_PARAMETERS_ATTR] = injected_parameters
    obj_as_any.__signature__ = signature.replace(
        parameters=[
            parameter
            for parameter in signature.parameters.values()
            if parameter.name not in injected_names
        ],
    )
    return None


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> Iterator[None]:
    """Wrap test function execution to resolve ``Injected[...]`` parameters.

    If the test declares no injected parameters or no container state is
    attached to the item, this hook is a no-op.

    Args:
        pyfuncitem: Collected pytest function item.

    Yields:
        Control back to pytest around test execution.

    """
    original_callable = cast("Callable[..., Any]", pyfuncitem.obj)
    injected_parameters = cast(
        "tuple[InjectedParameter, ...] | None",
        getattr(original_callable, _WIRELESS_INJECTED_PARAMETERS_ATTR, None),
    )
    container = cast("Container | None", getattr(pyfuncitem, _WIRELESS_CONTAINER_ATTR, None))
    if not injected_parameters or container is None:
        yield
        return

    @functools.wraps(original_callable)
    def _invoke_with_injected(*args: Any, **kwargs: Any) -> Any:
        for parameter in injected_parameters:
            if parameter.name not in kwargs:
                kwargs[parameter.name] = container.inject_as(parameter.dependency)
        return original_callable(*args, **kwargs)

    pyfuncitem.obj = _invoke_with_injected
    try:
        yield
    finally:
        pyfuncitem.obj = original_callable


def injected_parameters_of(callable_obj: Callable[..., Any]) -> tuple[InjectedParameter, ...]:
    """Return the parameters of ``callable_obj`` annotated with ``Injected[...]``."""
    try:
        annotations = get_type_hints(callable_obj, include_extras=True)
    except (AttributeError, NameError, TypeError):
        return ()
    return tuple(
        InjectedParameter(name=name, dependency=strip_injected_annotation(annotation))
        for name, annotation in annotations.items()
        if name != "return" and is_injected_annotation(annotation)
    )


__all__ = [
    "InjectedParameter",
    "injected_parameters_of",
    "pytest_pycollect_makeitem",
    "pytest_pyfunc_call",
    "wireless_container",
]
