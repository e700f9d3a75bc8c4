from __future__ import annotations

import pytest

from wireless.exceptions import (
    WirelessAlreadyCleanedError,
    WirelessAlreadyResolvedError,
    WirelessConfigurationError,
    WirelessDependencyCycleError,
    WirelessDependencyNotRegisteredError,
    WirelessError,
    WirelessInvalidInjectionTargetError,
    WirelessInvalidProviderError,
    WirelessNotResolvedError,
    WirelessStateError,
    type_name,
)


class Widget:
    class Part:
        pass


@pytest.mark.parametrize(
    "error_type",
    [
        WirelessInvalidProviderError,
        WirelessConfigurationError,
        WirelessDependencyNotRegisteredError,
        WirelessDependencyCycleError,
        WirelessInvalidInjectionTargetError,
        WirelessStateError,
        WirelessAlreadyResolvedError,
        WirelessNotResolvedError,
        WirelessAlreadyCleanedError,
    ],
)
def test_errors_share_base_class(error_type: type[Exception]) -> None:
    assert issubclass(error_type, WirelessError)


@pytest.mark.parametrize(
    "error_type",
    [WirelessAlreadyResolvedError, WirelessNotResolvedError, WirelessAlreadyCleanedError],
)
def test_state_errors_share_state_base(error_type: type[Exception]) -> None:
    assert issubclass(error_type, WirelessStateError)


def test_configuration_error_joins_messages() -> None:
    errors = [WirelessInvalidProviderError("first"), WirelessInvalidProviderError("second")]

    error = WirelessConfigurationError(errors)

    assert error.errors == tuple(errors)
    assert str(error) == "first; second"


def test_not_registered_error_without_provider_name() -> None:
    error = WirelessDependencyNotRegisteredError(Widget)

    assert error.required_by is None
    assert str(error) == "No provider found for type Widget"


def test_cycle_error_renders_trace() -> None:
    error = WirelessDependencyCycleError(["A", "B", "A"])

    assert error.trace == ("A", "B", "A")
    assert str(error) == "Dependency cycle detected: A -> B -> A"


def test_state_error_messages() -> None:
    assert str(WirelessAlreadyResolvedError()) == "Container already resolved."
    assert str(WirelessNotResolvedError()) == "Container not resolved."
    assert str(WirelessAlreadyCleanedError()) == "Container already cleaned."


def test_type_name_uses_qualified_class_names() -> None:
    assert type_name(Widget.Part) == "Widget.Part"
    assert type_name(list[int]) == "list[int]"
