from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for container state and provider execution.

    Pass one of these values as ``Container(lock_mode=...)``. The default
    ``THREAD`` mode is safe for containers shared between threads; ``NONE``
    removes locking overhead for containers used by a single flow.
    """

    THREAD = "thread"
    """Guard container state with a read/write lock and each provider with ``threading.Lock``."""

    NONE = "none"
    """Disable locking; every guard becomes ``contextlib.nullcontext``."""
