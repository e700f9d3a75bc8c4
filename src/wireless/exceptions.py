from __future__ import annotations

import types
from collections.abc import Sequence
from typing import Any


class WirelessError(Exception):
    """Represent a base class for all wireless-specific failures.

    Catch this type when you want to handle any container error path without
    matching each concrete exception class individually. Exceptions raised by
    user factories are never wrapped and do not derive from this class.
    """


class WirelessInvalidProviderError(WirelessError):
    """Signal a single invalid provider declaration.

    Produced while ``Container.resolve`` scans the registered providers, for
    example for duplicate providers of one type, factories with unsupported
    return annotations, or bindings to classes that do not implement the
    interface. These errors are collected and raised together inside a
    ``WirelessConfigurationError``.
    """


class WirelessConfigurationError(WirelessError):
    """Signal that one or more provider declarations are invalid.

    Raised by ``Container.resolve`` after every declaration was scanned once,
    so a single run reports every configuration mistake. The same instance is
    raised again by later ``resolve``, ``inject_as`` and ``inject`` calls.

    Typical fixes include removing duplicate registrations or marking them
    with ``if_not_exists``, and annotating factory parameters and return types.
    """

    def __init__(self, errors: Sequence[WirelessError]) -> None:
        self.errors = tuple(errors)
        super().__init__("; ".join(str(error) for error in self.errors))


class WirelessDependencyNotRegisteredError(WirelessError):
    """Signal that a dependency type has no provider.

    Raised by ``Container.resolve`` when a factory parameter cannot be
    matched to a value, factory or binding, and by ``inject_as``/``inject``
    for unknown requested types.

    Typical fixes include registering the dependency with ``value``/``func``
    or binding the requested interface to a concrete type with ``bind``.
    """

    def __init__(self, dependency: Any, required_by: str | None = None) -> None:
        self.dependency = dependency
        self.required_by = required_by
        msg = f"No provider found for type {type_name(dependency)}"
        if required_by is not None:
            msg = f"{msg} required by provider '{required_by}'"
        super().__init__(msg)


class WirelessDependencyCycleError(WirelessError):
    """Signal a cycle in the provider dependency graph.

    Raised by ``Container.resolve``, and by ``Container.inject_as`` when a
    running provider requests a type that depends on that provider.
    ``trace`` lists the provided type names along the cycle, starting and
    ending with the same type.
    """

    def __init__(self, trace: Sequence[str]) -> None:
        self.trace = tuple(trace)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.trace)}")


class WirelessInvalidInjectionTargetError(WirelessError):
    """Signal a wrongly shaped ``inject_as`` or ``inject`` argument.

    ``inject_as`` expects a type token such as a class, a protocol or a
    generic alias. ``inject`` expects an instance of a user-defined class
    with annotated attributes.
    """


class WirelessStateError(WirelessError):
    """Signal a call that is not allowed in the current container state.

    Containers move through ``NEW -> RESOLVED -> CLEANED`` and never back.
    """


class WirelessAlreadyResolvedError(WirelessStateError):
    """Signal ``resolve`` or ``provide`` on an already resolved container."""

    def __init__(self) -> None:
        super().__init__("Container already resolved.")


class WirelessNotResolvedError(WirelessStateError):
    """Signal injection from a container that was not resolved yet.

    Typical fix is calling ``container.resolve()`` after registrations.
    """

    def __init__(self) -> None:
        super().__init__("Container not resolved.")


class WirelessAlreadyCleanedError(WirelessStateError):
    """Signal use of a container after ``clean`` ran."""

    def __init__(self) -> None:
        super().__init__("Container already cleaned.")


def type_name(dependency: Any) -> str:
    """Render a type token for error messages and cycle traces."""
    if isinstance(dependency, type) and not isinstance(dependency, types.GenericAlias):
        return dependency.__qualname__
    return repr(dependency)
