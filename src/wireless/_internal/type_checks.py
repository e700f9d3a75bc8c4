from __future__ import annotations

import inspect
import types
from typing import Any, NewType, TypeGuard, get_origin

from typing_extensions import get_protocol_members, is_protocol


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_interface(candidate: object) -> bool:
    """Return true for protocol classes and abstract classes with abstract members."""
    if not is_runtime_class(candidate):
        return False
    return is_protocol(candidate) or inspect.isabstract(candidate)


def implements(concrete_type: type[Any], interface: type[Any]) -> bool:
    """Return true when instances of ``concrete_type`` satisfy ``interface``.

    Protocols are matched structurally, abstract classes nominally.
    """
    if is_protocol(interface):
        return all(
            hasattr(concrete_type, member) or _declares_attribute(concrete_type, member)
            for member in get_protocol_members(interface)
        )
    try:
        return issubclass(concrete_type, interface)
    except TypeError:
        return False


def is_instance_of(instance: object, interface: type[Any]) -> bool:
    """Return true when ``instance`` satisfies ``interface``."""
    if is_protocol(interface):
        return all(hasattr(instance, member) for member in get_protocol_members(interface))
    return isinstance(instance, interface)


def is_type_token(candidate: object) -> bool:
    """Return true for objects usable as dependency keys.

    Classes, protocols, parametrized generics, ``Annotated`` keys and
    ``NewType`` aliases qualify. Instances and strings do not.
    """
    if candidate is None:
        return False
    if isinstance(candidate, (type, NewType)):
        return True
    return get_origin(candidate) is not None


def _declares_attribute(concrete_type: type[Any], member: str) -> bool:
    return any(member in inspect.get_annotations(base) for base in concrete_type.__mro__)


__all__ = [
    "implements",
    "is_instance_of",
    "is_interface",
    "is_runtime_class",
    "is_type_token",
]
