"""Resolve protocols and abstract classes through bindings.

This module covers:

1. ``bind()`` from a protocol to a concrete class provided by ``func()``.
2. ``interface_value()`` registering an instance under a protocol.
3. ``inject()`` filling annotated attributes, skipping ``Omit[...]`` ones.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

from wireless import Container, Omit, bind, func, interface_value


class Clock(Protocol):
    def now(self) -> str: ...


class FixedClock:
    def now(self) -> str:
        return "12:00"


class Repository(ABC):
    @abstractmethod
    def find(self, key: str) -> str:
        """Return the stored value for key."""


class MemoryRepository(Repository):
    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def find(self, key: str) -> str:
        return f"{key}@{self.clock.now()}"


@dataclass
class Handler:
    repository: Repository
    clock: Clock
    debug: Omit[bool] = False


def main() -> None:
    container = Container()
    container.provide(
        interface_value(Clock, FixedClock()),
        bind(Repository, MemoryRepository),
        func(MemoryRepository),
    )
    container.resolve()

    repository = container.inject_as(Repository)
    print(f"repository_type={type(repository).__name__}")  # => repository_type=MemoryRepository
    print(f"lookup={repository.find('user')}")  # => lookup=user@12:00

    placeholder = MemoryRepository(FixedClock())
    handler = container.inject(Handler(repository=placeholder, clock=FixedClock()))
    print(f"handler_shares_repository={handler.repository is repository}")
    # => handler_shares_repository=True
    print(f"debug_untouched={handler.debug is False}")  # => debug_untouched=True

    container.clean()


if __name__ == "__main__":
    main()
