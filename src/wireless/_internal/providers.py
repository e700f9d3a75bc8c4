from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Generator, Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from inspect import Parameter
from types import TracebackType
from typing import Any, get_args, get_origin, get_type_hints

from wireless._internal.type_checks import is_runtime_class
from wireless.exceptions import WirelessInvalidProviderError, type_name

_MISSING_ANNOTATION: Any = object()
_UNSET: Any = object()
_IMPLICIT_FIRST_PARAMETER_NAMES = {"self", "cls"}
_CLEANUP_TUPLE_LENGTH = 2
_VARIADIC_KINDS = (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)
_GENERATOR_ORIGINS: tuple[Any, ...] = (Generator, Iterator, Iterable)
_CONTEXT_MANAGER_ORIGINS: tuple[Any, ...] = (AbstractContextManager,)


class ProviderKind(Enum):
    """How a factory hands over its value and its cleanup."""

    FACTORY = auto()
    """Returns the value. No cleanup."""

    CLEANUP_TUPLE = auto()
    """Returns ``(value, cleanup)`` where cleanup takes no arguments."""

    GENERATOR = auto()
    """Yields the value once; the code after ``yield`` is the cleanup."""

    CONTEXT_MANAGER = auto()
    """Returns a context manager; ``__enter__`` gives the value, ``__exit__`` cleans up."""


@dataclass(slots=True)
class ProviderDependency:
    """Represents a dependency required by a provider."""

    provides: Any
    parameter: Parameter


@dataclass(frozen=True, slots=True)
class ProviderReturnShape:
    """The provided type of a factory and the way it produces its value."""

    provides: Any
    kind: ProviderKind


@dataclass(frozen=True, slots=True)
class LiteralInput:
    """An argument taken from the value table."""

    value: Any

    def get(self) -> Any:
        return self.value


@dataclass(frozen=True, slots=True)
class NodeInput:
    """An argument produced by another provider node."""

    node: ProviderNode

    def get(self) -> Any:
        return self.node.value


@dataclass(frozen=True, slots=True)
class BoundNodeInput:
    """An argument produced by a node whose type is bound to the requested interface."""

    node: ProviderNode
    bound_as: Any

    def get(self) -> Any:
        return self.node.value


ResolvedInput = LiteralInput | NodeInput | BoundNodeInput


@dataclass(slots=True, kw_only=True, eq=False)
class ProviderNode:
    """The executable graph node of a factory provider.

    Nodes are created by ``Container.resolve`` and keep their memoized value,
    captured cleanup and failure for the lifetime of the container.
    """

    slot: int
    """Assignment order, unique within a container."""
    provider: Callable[..., Any]
    provides: Any
    kind: ProviderKind
    requirements: list[ProviderDependency]
    """Parameter dependencies in signature order."""
    lock: AbstractContextManager[Any]
    """Once-only execution guard."""
    namespace: str = ""

    inputs: list[ResolvedInput] = field(default_factory=list)
    """Resolved arguments, aligned with ``requirements``."""
    dependencies: list[ProviderNode] = field(default_factory=list)
    """Direct dependency nodes."""
    depth: int = -1
    """Longest dependency chain below this node; -1 before cycle detection."""
    value: Any = _UNSET
    cleanup: Callable[[], Any] | None = None
    error: BaseException | None = None
    error_traceback: TracebackType | None = None
    """Traceback of the first failure, restored on every re-raise."""

    @property
    def name(self) -> str:
        return provider_name(self.provider)

    @property
    def is_executed(self) -> bool:
        return self.value is not _UNSET

    def build(self) -> tuple[Any, Callable[[], Any] | None]:
        """Call the provider with resolved inputs and return its value and cleanup."""
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for requirement, resolved in zip(self.requirements, self.inputs, strict=True):
            if requirement.parameter.kind is Parameter.POSITIONAL_ONLY:
                args.append(resolved.get())
            else:
                kwargs[requirement.parameter.name] = resolved.get()

        if self.kind is ProviderKind.GENERATOR:
            context_manager = contextmanager(self.provider)(*args, **kwargs)
        elif self.kind is ProviderKind.CONTEXT_MANAGER:
            context_manager = self.provider(*args, **kwargs)
        else:
            result = self.provider(*args, **kwargs)
            if self.kind is ProviderKind.FACTORY:
                return result, None
            if (
                not isinstance(result, tuple)
                or len(result) != _CLEANUP_TUPLE_LENGTH
                or (result[1] is not None and not callable(result[1]))
            ):
                msg = (
                    f"Provider '{self.name}' must return a (value, cleanup) tuple, "
                    f"got {result!r}."
                )
                raise WirelessInvalidProviderError(msg)
            # A None cleanup means there is nothing to release.
            return result[0], result[1]

        value = context_manager.__enter__()
        return value, functools.partial(context_manager.__exit__, None, None, None)


@dataclass(frozen=True, slots=True)
class _Annotations:
    """Resolved annotations of a callable and the error hit while resolving them."""

    hints: dict[str, Any]
    error: Exception | None

    @classmethod
    def of(cls, target: Callable[..., Any]) -> _Annotations:
        try:
            return cls(get_type_hints(target, include_extras=True), None)
        except (AttributeError, NameError, TypeError) as error:
            return cls({}, error)

    def lookup(self, name: str, raw: Any) -> Any:
        """Return the resolved annotation of ``name``, else ``raw`` unless it is a string."""
        if name in self.hints:
            return self.hints[name]
        if raw is Parameter.empty or isinstance(raw, str):
            return _MISSING_ANNOTATION
        return raw

    def invalid(self, msg: str) -> WirelessInvalidProviderError:
        if self.error is not None:
            msg = f"{msg} Original annotation error: {self.error}"
        return WirelessInvalidProviderError(msg)


class ProviderDependenciesExtractor:
    """Reads the ordered parameter dependencies of factories and classes.

    Classes contribute the parameters of ``__init__`` after ``self``.
    Variadic parameters are ignored, and so are unannotated parameters
    that have a default value.
    """

    def extract(self, provider: Callable[..., Any]) -> list[ProviderDependency]:
        name = provider_name(provider)
        is_class = is_runtime_class(provider)
        target = provider.__init__ if is_class else provider
        try:
            parameters = list(inspect.signature(target).parameters.values())
        except (TypeError, ValueError) as error:
            msg = f"Unable to read the signature of provider '{name}': {error}"
            raise WirelessInvalidProviderError(msg) from error
        if is_class and parameters and parameters[0].name in _IMPLICIT_FIRST_PARAMETER_NAMES:
            del parameters[0]

        annotations = _Annotations.of(target)
        dependencies: list[ProviderDependency] = []
        for parameter in parameters:
            if parameter.kind in _VARIADIC_KINDS:
                continue
            provides = annotations.lookup(parameter.name, parameter.annotation)
            if provides is not _MISSING_ANNOTATION:
                dependencies.append(ProviderDependency(provides=provides, parameter=parameter))
            elif parameter.default is Parameter.empty:
                msg = (
                    f"Required parameter '{parameter.name}' of provider '{name}' "
                    "has no type annotation."
                )
                raise annotations.invalid(msg) from annotations.error
        return dependencies


class ProviderReturnShapeExtractor:
    """Maps the return annotation of a factory to its provided type and kind."""

    def extract(self, provider: Callable[..., Any]) -> ProviderReturnShape:
        """Return the provided type and kind of ``provider``.

        Raises:
            WirelessInvalidProviderError: When the provider is asynchronous or its
                return annotation is missing or not one of the supported shapes.

        """
        if is_runtime_class(provider):
            return ProviderReturnShape(provides=provider, kind=ProviderKind.FACTORY)

        name = provider_name(provider)
        unwrapped = inspect.unwrap(provider)
        if inspect.iscoroutinefunction(unwrapped) or inspect.isasyncgenfunction(unwrapped):
            msg = f"Provider '{name}' is asynchronous. Async providers are not supported."
            raise WirelessInvalidProviderError(msg)

        annotations = _Annotations.of(provider)
        provides = annotations.lookup("return", self._raw_return_annotation(provider))
        if provides is _MISSING_ANNOTATION:
            msg = f"Provider '{name}' has no return type annotation."
            raise annotations.invalid(msg) from annotations.error
        if provides is None or provides is type(None):
            msg = f"Provider '{name}' must return a value, but its return annotation is None."
            raise WirelessInvalidProviderError(msg)

        if inspect.isgeneratorfunction(provider):
            return self._generator_shape(name, provides)
        if self._is_context_manager(provides) or (
            get_origin(provides) in _GENERATOR_ORIGINS and inspect.isgeneratorfunction(unwrapped)
        ):
            return self._context_manager_shape(name, provides)
        if get_origin(provides) is tuple:
            return self._tuple_shape(name, provides)
        return ProviderReturnShape(provides=provides, kind=ProviderKind.FACTORY)

    def _raw_return_annotation(self, provider: Callable[..., Any]) -> Any:
        try:
            return inspect.signature(provider).return_annotation
        except (TypeError, ValueError):
            return Parameter.empty

    def _generator_shape(self, name: str, annotation: Any) -> ProviderReturnShape:
        args = get_args(annotation)
        if get_origin(annotation) not in _GENERATOR_ORIGINS or not args:
            msg = (
                f"Generator provider '{name}' must be annotated as "
                f"`Generator[T, None, None]` or `Iterator[T]`, got {type_name(annotation)}."
            )
            raise WirelessInvalidProviderError(msg)
        return ProviderReturnShape(provides=args[0], kind=ProviderKind.GENERATOR)

    def _is_context_manager(self, annotation: Any) -> bool:
        return (
            annotation in _CONTEXT_MANAGER_ORIGINS
            or get_origin(annotation) in _CONTEXT_MANAGER_ORIGINS
        )

    def _context_manager_shape(self, name: str, annotation: Any) -> ProviderReturnShape:
        args = get_args(annotation)
        if not args:
            msg = f"Context manager provider '{name}' must declare the managed type."
            raise WirelessInvalidProviderError(msg)
        return ProviderReturnShape(provides=args[0], kind=ProviderKind.CONTEXT_MANAGER)

    def _tuple_shape(self, name: str, annotation: Any) -> ProviderReturnShape:
        """Treat ``tuple[T, Callable]`` as a cleanup pair; any other tuple is a plain value."""
        args = get_args(annotation)
        if len(args) != _CLEANUP_TUPLE_LENGTH:
            return ProviderReturnShape(provides=annotation, kind=ProviderKind.FACTORY)
        provided, cleanup = args
        if cleanup is not Callable and get_origin(cleanup) is not Callable:
            return ProviderReturnShape(provides=annotation, kind=ProviderKind.FACTORY)

        cleanup_args = get_args(cleanup)
        takes_nothing = len(cleanup_args) == _CLEANUP_TUPLE_LENGTH and cleanup_args[0] == []
        if not takes_nothing or cleanup_args[1] not in (None, type(None)):
            msg = (
                f"Provider '{name}' has invalid cleanup type {type_name(cleanup)}. "
                "Expected `Callable[[], None]`."
            )
            raise WirelessInvalidProviderError(msg)
        return ProviderReturnShape(provides=provided, kind=ProviderKind.CLEANUP_TUPLE)


def provider_name(provider: Callable[..., Any]) -> str:
    return getattr(provider, "__qualname__", repr(provider))
