from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, NoReturn

from wireless._internal.providers import (
    ProviderDependenciesExtractor,
    ProviderDependency,
    ProviderNode,
    ProviderReturnShape,
    ProviderReturnShapeExtractor,
    provider_name,
)
from wireless._internal.type_checks import (
    implements,
    is_instance_of,
    is_interface,
    is_runtime_class,
)
from wireless.exceptions import WirelessError, WirelessInvalidProviderError, type_name
from wireless.providers import (
    BindingProvider,
    FuncProvider,
    InterfaceValueProvider,
    Provider,
    ProviderRegistry,
    Registration,
    ValueProvider,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MatchResult:
    """Tables and provider nodes produced from the registered declarations."""

    values: dict[Any, Any]
    bindings: dict[Any, Any] = field(default_factory=dict)
    providers: dict[Any, ProviderNode] = field(default_factory=dict)
    nodes: list[ProviderNode] = field(default_factory=list)
    errors: list[WirelessError] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _Claim:
    """A validated declaration waiting to take the type it provides."""

    sequence: int
    provides: Any
    provider: Provider
    commit: Callable[[], None]


class ProviderMatcher:
    """Turns provider declarations into table entries and provider nodes.

    Every declaration is validated once, kind by kind. Valid declarations
    then claim their provided type in declaration order, so the earlier of
    two providers for one type wins. Problems are collected in
    ``MatchResult.errors`` instead of stopping the scan.
    """

    def __init__(
        self,
        *,
        values: dict[Any, Any],
        lock_factory: Callable[[], AbstractContextManager[Any]],
    ) -> None:
        self._result = MatchResult(values=dict(values))
        self._lock_factory = lock_factory
        self._slots = itertools.count(1)
        self._dependencies_extractor = ProviderDependenciesExtractor()
        self._return_shape_extractor = ProviderReturnShapeExtractor()

    def match(self, registry: ProviderRegistry) -> MatchResult:
        passes: list[tuple[list[Registration], Callable[[Registration], _Claim]]] = [
            (registry.bindings, self._match_binding),
            (registry.interface_values, self._match_interface_value),
            (registry.values, self._match_value),
            (registry.funcs, self._match_func),
            (registry.unsupported, self._reject_unsupported),
        ]
        claims: list[_Claim] = []
        for registrations, matcher in passes:
            for registration in registrations:
                try:
                    claims.append(matcher(registration))
                except WirelessInvalidProviderError as error:
                    self._result.errors.append(error)

        for claim in sorted(claims, key=lambda item: item.sequence):
            try:
                if self._claim(claim.provides, claim.provider):
                    claim.commit()
            except WirelessInvalidProviderError as error:
                self._result.errors.append(error)
        return self._result

    def _match_binding(self, registration: Registration) -> _Claim:
        binding: BindingProvider = registration.provider
        interface, concrete_type = binding.interface, binding.concrete_type
        if not is_runtime_class(interface) or not is_runtime_class(concrete_type):
            msg = (
                "Bindings must be declared with types, not instances: "
                f"{interface!r} -> {concrete_type!r}."
            )
            raise WirelessInvalidProviderError(msg)
        if not is_interface(interface):
            msg = (
                f"Binding interface {type_name(interface)} is not a protocol or abstract class: "
                f"{type_name(interface)} -> {type_name(concrete_type)}."
            )
            raise WirelessInvalidProviderError(msg)
        if is_interface(concrete_type) or not implements(concrete_type, interface):
            msg = (
                f"Bound type {type_name(concrete_type)} is not a concrete implementation of "
                f"{type_name(interface)}."
            )
            raise WirelessInvalidProviderError(msg)

        def commit() -> None:
            self._result.bindings[interface] = concrete_type

        return _Claim(registration.sequence, interface, binding, commit)

    def _match_interface_value(self, registration: Registration) -> _Claim:
        provider: InterfaceValueProvider = registration.provider
        interface, instance = provider.interface, provider.instance
        if instance is None:
            msg = f"Interface value provider for {type_name(interface)} is None."
            raise WirelessInvalidProviderError(msg)
        if not is_interface(interface):
            msg = (
                f"Interface value type {type_name(interface)} is not a protocol or abstract "
                f"class: {type_name(interface)} -> {type_name(type(instance))}."
            )
            raise WirelessInvalidProviderError(msg)
        if not is_instance_of(instance, interface):
            msg = (
                f"Interface value of type {type_name(type(instance))} does not implement "
                f"{type_name(interface)}."
            )
            raise WirelessInvalidProviderError(msg)

        def commit() -> None:
            self._result.values[interface] = instance

        return _Claim(registration.sequence, interface, provider, commit)

    def _match_value(self, registration: Registration) -> _Claim:
        provider: ValueProvider = registration.provider
        instance = provider.instance
        if instance is None:
            msg = "Value provider is None."
            raise WirelessInvalidProviderError(msg)
        provides = type(instance)

        def commit() -> None:
            self._result.values[provides] = instance

        return _Claim(registration.sequence, provides, provider, commit)

    def _match_func(self, registration: Registration) -> _Claim:
        provider: FuncProvider = registration.provider
        factory = provider.provider
        if not callable(factory):
            msg = f"Provider {factory!r} is not callable."
            raise WirelessInvalidProviderError(msg)

        shape = self._return_shape_extractor.extract(factory)
        requirements = self._dependencies_extractor.extract(factory)

        def commit() -> None:
            self._add_node(provider, shape, requirements)

        return _Claim(registration.sequence, shape.provides, provider, commit)

    def _add_node(
        self,
        provider: FuncProvider,
        shape: ProviderReturnShape,
        requirements: list[ProviderDependency],
    ) -> None:
        node = ProviderNode(
            slot=next(self._slots),
            provider=provider.provider,
            provides=shape.provides,
            kind=shape.kind,
            requirements=requirements,
            lock=self._lock_factory(),
            namespace=provider.options.namespace,
        )
        self._result.providers[shape.provides] = node
        self._result.nodes.append(node)

    def _reject_unsupported(self, registration: Registration) -> NoReturn:
        msg = (
            f"Unsupported provider declaration {registration.provider!r}. Wrap it with "
            "value(), interface_value(), bind() or func()."
        )
        raise WirelessInvalidProviderError(msg)

    def _claim(self, provides: Any, provider: Provider) -> bool:
        """Return whether ``provider`` becomes the authoritative provider for ``provides``."""
        result = self._result
        if provides not in result.values and provides not in result.providers and (
            provides not in result.bindings
        ):
            return True
        if provider.options.if_not_exists:
            logger.debug(
                "Skipping provider %s for %s: type already provided",
                _describe(provider),
                type_name(provides),
            )
            return False
        msg = f"Provider for type {type_name(provides)} already exists."
        raise WirelessInvalidProviderError(msg)


def _describe(provider: Provider) -> str:
    if isinstance(provider, FuncProvider):
        return provider_name(provider.provider)
    return type(provider).__name__
