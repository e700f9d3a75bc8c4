from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from typing import Any

from wireless._internal.providers import ProviderNode
from wireless.exceptions import (
    WirelessDependencyCycleError,
    WirelessDependencyNotRegisteredError,
    type_name,
)

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """Builds requested types on demand and memoizes every provider result.

    Each request executes the not-yet-executed ancestors of the requested
    node in dependency order. Executed nodes are recorded in
    ``execution_log``, kept sorted by ascending depth for teardown.

    Each thread tracks the providers it is running, so a provider that
    requests, through the container, a type depending on itself fails with
    a cycle error instead of recursing or blocking on its own lock.
    """

    def __init__(
        self,
        *,
        values: Mapping[Any, Any],
        bindings: Mapping[Any, Any],
        providers: Mapping[Any, ProviderNode],
        lock_factory: Callable[[], AbstractContextManager[Any]],
    ) -> None:
        self._values = values
        self._bindings = bindings
        self._providers = providers
        self._log_lock = lock_factory()
        self._local = threading.local()
        self.execution_log: list[ProviderNode] = []

    def resolve_dependency(self, dependency: Any) -> Any:
        """Return the instance provided for ``dependency``.

        Raises:
            WirelessDependencyNotRegisteredError: When nothing provides ``dependency``.
            WirelessDependencyCycleError: When a running provider requests a type
                that depends on that provider.

        """
        if dependency in self._values:
            return self._values[dependency]

        node = self._providers.get(dependency)
        if node is None:
            bound_type = self._bindings.get(dependency)
            if bound_type is None:
                raise WirelessDependencyNotRegisteredError(dependency)
            if bound_type in self._values:
                return self._values[bound_type]
            node = self._providers.get(bound_type)
            if node is None:
                raise WirelessDependencyNotRegisteredError(dependency)

        if not node.is_executed:
            self._execute_with_ancestors(node)
        return node.value

    def _execute_with_ancestors(self, node: ProviderNode) -> None:
        closure: list[ProviderNode] = []
        self._collect_unexecuted(node, closure=closure, seen=set())
        self._check_reentry(node, closure)
        executed_count = 0
        try:
            for pending in closure:
                if self._execute(pending):
                    executed_count += 1
        finally:
            if executed_count:
                with self._log_lock:
                    self.execution_log.sort(key=lambda item: item.depth)

    def _running(self) -> list[ProviderNode]:
        running = getattr(self._local, "running", None)
        if running is None:
            running = self._local.running = []
        return running

    def _check_reentry(self, node: ProviderNode, closure: list[ProviderNode]) -> None:
        running = self._running()
        for pending in closure:
            if pending in running:
                cycle = running[running.index(pending) :]
                path = _dependency_path(node, pending) or [pending]
                trace = [type_name(item.provides) for item in (*cycle, *path)]
                raise WirelessDependencyCycleError(trace)

    def _collect_unexecuted(
        self,
        node: ProviderNode,
        *,
        closure: list[ProviderNode],
        seen: set[int],
    ) -> None:
        if node.slot in seen or node.is_executed:
            return
        seen.add(node.slot)
        for dependency in node.dependencies:
            self._collect_unexecuted(dependency, closure=closure, seen=seen)
        closure.append(node)

    def _execute(self, node: ProviderNode) -> bool:
        """Run ``node`` unless another request already did; return whether it ran."""
        with node.lock:
            if node.is_executed:
                return False
            if node.error is not None:
                raise node.error.with_traceback(node.error_traceback)

            logger.debug("Executing provider %s for %s", node.name, type_name(node.provides))
            running = self._running()
            running.append(node)
            try:
                value, cleanup = node.build()
            except Exception as error:
                node.error = error
                node.error_traceback = error.__traceback__
                logger.warning(
                    "Provider %s for %s raised %s",
                    node.name,
                    type_name(node.provides),
                    type(error).__name__,
                )
                raise
            finally:
                running.pop()
            node.cleanup = cleanup
            node.value = value

        with self._log_lock:
            self.execution_log.append(node)
        return True


def _dependency_path(node: ProviderNode, target: ProviderNode) -> list[ProviderNode] | None:
    if node is target:
        return [node]
    for dependency in node.dependencies:
        path = _dependency_path(dependency, target)
        if path is not None:
            return [node, *path]
    return None
