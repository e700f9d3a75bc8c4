from __future__ import annotations

import dataclasses
import itertools
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeAlias, TypeVar

T = TypeVar("T")

UserDependency: TypeAlias = Any
"""A type token registered or requested by the user's code."""

UserProviderObject: TypeAlias = Any
"""An object, function, or class provided by the user as a provider payload."""


@dataclass(frozen=True, slots=True)
class ProviderOptions:
    """Modifiers attached to a provider declaration."""

    if_not_exists: bool = False
    """Silently drop this provider when its type already has one."""

    namespace: str = ""
    """Namespace label. Stored for introspection, ignored by resolution."""


@dataclass(frozen=True)
class Provider:
    """Base class of all provider declarations accepted by ``Container.provide``."""

    options: ProviderOptions = field(default_factory=ProviderOptions, kw_only=True)

    def with_options(self, **changes: Any) -> Provider:
        """Return a copy of this provider with updated options."""
        return dataclasses.replace(self, options=dataclasses.replace(self.options, **changes))


@dataclass(frozen=True)
class ValueProvider(Provider):
    """Provide an existing instance under its runtime type."""

    instance: UserDependency


@dataclass(frozen=True)
class InterfaceValueProvider(Provider):
    """Provide an existing instance under an interface type it satisfies."""

    interface: UserDependency
    instance: UserDependency


@dataclass(frozen=True)
class BindingProvider(Provider):
    """Resolve requests for an interface through a concrete type."""

    interface: UserDependency
    concrete_type: UserDependency


@dataclass(frozen=True)
class FuncProvider(Provider):
    """Build a value with a factory callable whose parameters are dependencies."""

    provider: UserProviderObject


class ProviderSet(tuple):  # type: ignore[type-arg]
    """An ordered group of providers, possibly nested, registered together."""

    def with_options(self, **changes: Any) -> ProviderSet:
        """Return a copy of the set with the options applied to every member."""
        return ProviderSet(_apply_options(item, changes) for item in self)

    def __repr__(self) -> str:
        return f"ProviderSet{tuple.__repr__(self)}"


def value(instance: T) -> ValueProvider:
    """Declare a ready instance provided under ``type(instance)``.

    Args:
        instance: The object returned for every request of its type.

    Examples:
        .. code-block:: python

            container.provide(value(Config(addr="localhost")))

    """
    return ValueProvider(instance)


def interface_value(interface: type[T], instance: T) -> InterfaceValueProvider:
    """Declare a ready instance provided under an interface type.

    Args:
        interface: A ``typing.Protocol`` class or abstract base class.
        instance: An object implementing ``interface``.

    """
    return InterfaceValueProvider(interface, instance)


def bind(interface: type[Any], concrete_type: type[Any]) -> BindingProvider:
    """Declare that requests for ``interface`` are served by ``concrete_type``.

    The concrete type still needs its own value or factory provider.

    Args:
        interface: A ``typing.Protocol`` class or abstract base class.
        concrete_type: A non-abstract class implementing ``interface``.

    Examples:
        .. code-block:: python

            container.provide(
                bind(Repository, SqlRepository),
                func(SqlRepository),
            )

    """
    return BindingProvider(interface, concrete_type)


def func(provider: Callable[..., Any]) -> FuncProvider:
    """Declare a factory provider.

    Every annotated parameter of ``provider`` is a dependency. The return
    annotation selects the provided type and how the value is cleaned up:
    ``T``, ``tuple[T, Callable[[], None]]``, ``Generator[T, None, None]`` or
    ``AbstractContextManager[T]``. Classes provide themselves and take their
    dependencies from ``__init__``.

    Args:
        provider: Factory function or class.

    """
    return FuncProvider(provider)


def provider_set(*providers: Any) -> ProviderSet:
    """Group providers so they can be registered or modified together."""
    return ProviderSet(providers)


def if_not_exists(provider: Any) -> Any:
    """Drop ``provider`` instead of failing when its type is already provided."""
    return _apply_options(provider, {"if_not_exists": True})


def namespace(name: str, provider: Any) -> Any:
    """Attach a namespace label to ``provider``.

    Namespaces are kept on the declaration and on the resulting provider node
    but do not change how dependencies are matched.
    """
    return _apply_options(provider, {"namespace": name})


def _apply_options(provider: Any, changes: dict[str, Any]) -> Any:
    if isinstance(provider, (Provider, ProviderSet)):
        return provider.with_options(**changes)
    if isinstance(provider, (list, tuple)):
        return ProviderSet(_apply_options(item, changes) for item in provider)
    # Unsupported objects are reported when the container resolves.
    return provider


@dataclass(frozen=True, slots=True)
class Registration:
    """A provider declaration and its position among all declarations of a container."""

    sequence: int
    provider: UserProviderObject


class ProviderRegistry:
    """Accumulates provider declarations of a container, partitioned by kind.

    Every declaration is numbered in the order it was provided, across all
    kinds, so duplicates can be settled by declaration order.
    """

    def __init__(self) -> None:
        self.values: list[Registration] = []
        self.interface_values: list[Registration] = []
        self.bindings: list[Registration] = []
        self.funcs: list[Registration] = []
        self.unsupported: list[Registration] = []
        self._sequence = itertools.count()

    def add(self, providers: Iterable[Any]) -> None:
        """Add declarations, flattening nested sets, lists and tuples."""
        for provider in providers:
            if isinstance(provider, (ProviderSet, list, tuple)):
                self.add(provider)
                continue
            registration = Registration(next(self._sequence), provider)
            if isinstance(provider, ValueProvider):
                self.values.append(registration)
            elif isinstance(provider, InterfaceValueProvider):
                self.interface_values.append(registration)
            elif isinstance(provider, BindingProvider):
                self.bindings.append(registration)
            elif isinstance(provider, FuncProvider):
                self.funcs.append(registration)
            else:
                self.unsupported.append(registration)

    def __len__(self) -> int:
        return (
            len(self.values)
            + len(self.interface_values)
            + len(self.bindings)
            + len(self.funcs)
            + len(self.unsupported)
        )
