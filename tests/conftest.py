"""Shared pytest fixtures for wireless tests."""

import pytest

from wireless import Container, LockMode


@pytest.fixture()
def container() -> Container:
    """Default container with thread locking."""
    return Container()


@pytest.fixture()
def unlocked_container() -> Container:
    """Container with lock_mode=LockMode.NONE."""
    return Container(lock_mode=LockMode.NONE)
