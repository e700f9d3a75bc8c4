from __future__ import annotations

import threading
from collections.abc import Callable, Generator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from typing import Any

from wireless.lock_mode import LockMode


class ReadWriteLock:
    """Shared/exclusive lock for container state.

    Readers only wait for an active writer, so a factory may issue nested
    injection requests while its own request holds the shared side.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Generator[None, None, None]:
        with self._condition:
            while self._writing:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if not self._readers:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Generator[None, None, None]:
        with self._condition:
            while self._writing or self._readers:
                self._condition.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._condition:
                self._writing = False
                self._condition.notify_all()


class NoopReadWriteLock:
    """Read/write lock stand-in used with ``LockMode.NONE``."""

    def read(self) -> AbstractContextManager[None]:
        return nullcontext()

    def write(self) -> AbstractContextManager[None]:
        return nullcontext()


def state_lock_for(lock_mode: LockMode) -> ReadWriteLock | NoopReadWriteLock:
    if lock_mode is LockMode.THREAD:
        return ReadWriteLock()
    return NoopReadWriteLock()


def lock_factory_for(lock_mode: LockMode) -> Callable[[], AbstractContextManager[Any]]:
    if lock_mode is LockMode.THREAD:
        return threading.Lock
    return nullcontext
