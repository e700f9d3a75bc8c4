from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from wireless._internal.providers import (
    BoundNodeInput,
    LiteralInput,
    NodeInput,
    ProviderNode,
    ResolvedInput,
)
from wireless.exceptions import (
    WirelessDependencyCycleError,
    WirelessDependencyNotRegisteredError,
    type_name,
)


class DependencyGraphBuilder:
    """Wires provider node inputs and checks the resulting graph for cycles."""

    def __init__(
        self,
        *,
        values: Mapping[Any, Any],
        providers: Mapping[Any, ProviderNode],
        bindings: Mapping[Any, Any],
    ) -> None:
        self._values = values
        self._providers = providers
        self._bindings = bindings

    def build(self, nodes: Sequence[ProviderNode]) -> None:
        """Resolve the inputs of every node, then assign depths.

        Raises:
            WirelessDependencyNotRegisteredError: When a parameter type has no provider.
            WirelessDependencyCycleError: When the graph is not acyclic.

        """
        for node in nodes:
            node.inputs = [
                self._match(node, requirement.provides) for requirement in node.requirements
            ]
            node.dependencies = [
                resolved.node for resolved in node.inputs if not isinstance(resolved, LiteralInput)
            ]
            node.depth = -1

        visited: set[int] = set()
        for node in nodes:
            if node.slot not in visited:
                self._assign_depths(node, visited=visited, path=[])

    def _match(self, node: ProviderNode, dependency: Any) -> ResolvedInput:
        if dependency in self._values:
            return LiteralInput(self._values[dependency])
        provider = self._providers.get(dependency)
        if provider is not None:
            return NodeInput(provider)

        bound_type = self._bindings.get(dependency)
        if bound_type is not None:
            if bound_type in self._values:
                return LiteralInput(self._values[bound_type])
            provider = self._providers.get(bound_type)
            if provider is not None:
                return BoundNodeInput(provider, bound_as=dependency)

        raise WirelessDependencyNotRegisteredError(dependency, required_by=node.name)

    def _assign_depths(
        self,
        node: ProviderNode,
        *,
        visited: set[int],
        path: list[ProviderNode],
    ) -> None:
        visited.add(node.slot)
        path.append(node)
        max_depth = -1
        for dependency in node.dependencies:
            if dependency in path:
                cycle = path[path.index(dependency) :]
                trace = [type_name(item.provides) for item in (*cycle, dependency)]
                raise WirelessDependencyCycleError(trace)
            if dependency.slot not in visited:
                self._assign_depths(dependency, visited=visited, path=path)
            max_depth = max(max_depth, dependency.depth)
        node.depth = max_depth + 1
        path.pop()
