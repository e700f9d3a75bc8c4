"""Errors reported by ``resolve()`` before any factory runs.

This module covers:

1. ``WirelessConfigurationError`` aggregating every invalid declaration.
2. ``WirelessDependencyNotRegisteredError`` for a missing factory parameter.
3. ``WirelessDependencyCycleError`` with the full cycle trace.
4. ``if_not_exists()`` letting the earlier registration win.
"""

from __future__ import annotations

from wireless import Container, func, if_not_exists, value
from wireless.exceptions import (
    WirelessConfigurationError,
    WirelessDependencyCycleError,
    WirelessDependencyNotRegisteredError,
)


class Config:
    def __init__(self, name: str = "default") -> None:
        self.name = name


class Egg:
    pass


class Chicken:
    pass


def lay_egg(chicken: Chicken) -> Egg:
    return Egg()


def hatch(egg: Egg) -> Chicken:
    return Chicken()


def main() -> None:
    container = Container()
    container.provide(value(Config()), value(Config("second")), value(None))
    try:
        container.resolve()
    except WirelessConfigurationError as error:
        print(f"configuration_errors={len(error.errors)}")  # => configuration_errors=2

    container = Container()
    container.provide(func(lay_egg))
    try:
        container.resolve()
    except WirelessDependencyNotRegisteredError as error:
        print(f"missing={error}")
    # => missing=No provider found for type Chicken required by provider 'lay_egg'

    container = Container()
    container.provide(func(lay_egg), func(hatch))
    try:
        container.resolve()
    except WirelessDependencyCycleError as error:
        print(f"cycle={' -> '.join(error.trace)}")  # => cycle=Egg -> Chicken -> Egg

    container = Container()
    container.provide(value(Config("first")), if_not_exists(value(Config("second"))))
    container.resolve()
    print(f"config={container.inject_as(Config).name}")  # => config=first


if __name__ == "__main__":
    main()
