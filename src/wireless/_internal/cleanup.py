from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import ExitStack

from wireless._internal.providers import ProviderNode
from wireless.exceptions import type_name

logger = logging.getLogger(__name__)


class CleanupManager:
    """Runs captured provider cleanups in reverse order of the execution log."""

    def __init__(self, execution_log: Sequence[ProviderNode]) -> None:
        self._execution_log = execution_log

    def run(self) -> None:
        """Invoke every captured cleanup once, last log entry first.

        All callbacks run even when one of them raises; the error is
        propagated after the remaining callbacks finished.
        """
        with ExitStack() as stack:
            # ExitStack unwinds LIFO, so pushing in log order tears down in reverse.
            for node in self._execution_log:
                if node.cleanup is not None:
                    stack.callback(self._invoke, node)

    def _invoke(self, node: ProviderNode) -> None:
        cleanup, node.cleanup = node.cleanup, None
        if cleanup is None:
            return
        logger.debug("Cleaning up %s provided by %s", type_name(node.provides), node.name)
        cleanup()
