from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

import pytest

from wireless import Container, Injected, bind, func

pytest_plugins = ["wireless.integrations.pytest_plugin"]


class _Service(Protocol):
    def name(self) -> str: ...


class _FakeService:
    def name(self) -> str:
        return "fake"


@pytest.fixture()
def wireless_container() -> Iterator[Container]:
    container = Container()
    container.provide(bind(_Service, _FakeService), func(_FakeService))
    yield container
    container.clean()


@pytest.fixture()
def value() -> int:
    return 42


def test_injected_parameters_are_resolved_from_wireless_container(
    value: int,
    service: Injected[_Service],
) -> None:
    assert value == 42
    assert isinstance(service, _FakeService)


def test_injected_parameters_share_container_instances(
    service: Injected[_Service],
    fake: Injected[_FakeService],
) -> None:
    assert service is fake


def test_regular_fixture_resolution_still_works_without_injected_parameters(value: int) -> None:
    assert value == 42


def test_public_wireless_container_fixture_is_available(wireless_container: Container) -> None:
    assert isinstance(wireless_container, Container)
