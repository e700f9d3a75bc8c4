"""Cleanup runs dependents before the dependencies they were built from.

This module covers:

1. ``(value, cleanup)`` tuples, generators and context managers as providers.
2. ``clean()`` running captured cleanups in reverse creation order.
3. A second ``clean()`` being a no-op.
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager

from wireless import Container, func


class Pool:
    pass


class Session:
    def __init__(self, pool: Pool) -> None:
        self.pool = pool


class Transaction:
    def __init__(self, session: Session) -> None:
        self.session = session


def open_pool() -> tuple[Pool, Callable[[], None]]:
    print("open pool")
    return Pool(), lambda: print("close pool")


def open_session(pool: Pool) -> Generator[Session, None, None]:
    print("open session")
    yield Session(pool)
    print("close session")


@contextmanager
def begin_transaction(session: Session) -> Iterator[Transaction]:
    print("begin transaction")
    yield Transaction(session)
    print("commit transaction")


def main() -> None:
    container = Container()
    container.provide(func(begin_transaction), func(open_session), func(open_pool))
    container.resolve()

    container.inject_as(Transaction)
    # => open pool
    # => open session
    # => begin transaction

    container.clean()
    # => commit transaction
    # => close session
    # => close pool

    container.clean()
    print("second_clean_ran_nothing=True")  # => second_clean_ran_nothing=True


if __name__ == "__main__":
    main()
