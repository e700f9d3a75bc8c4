from __future__ import annotations

import logging
from collections.abc import Iterator
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, get_origin, get_type_hints, overload

if TYPE_CHECKING:
    from typing_extensions import Self

from wireless._internal.cleanup import CleanupManager
from wireless._internal.graph import DependencyGraphBuilder
from wireless._internal.locks import lock_factory_for, state_lock_for
from wireless._internal.matcher import ProviderMatcher
from wireless._internal.resolution import ResolutionEngine
from wireless._internal.type_checks import is_type_token
from wireless.exceptions import (
    WirelessAlreadyCleanedError,
    WirelessAlreadyResolvedError,
    WirelessConfigurationError,
    WirelessError,
    WirelessInvalidInjectionTargetError,
    WirelessNotResolvedError,
)
from wireless.lock_mode import LockMode
from wireless.markers import is_omit_annotation
from wireless.providers import ProviderRegistry

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ContainerState(Enum):
    """Lifecycle state of a container. Transitions only move forward."""

    NEW = "new"
    """Accepting providers. ``resolve`` has not succeeded yet."""

    RESOLVED = "resolved"
    """Provider graph validated; injection requests are served."""

    CLEANED = "cleaned"
    """Cleanups ran; the container refuses further use."""


class Container:
    """Manage provider registration, graph validation, lazy injection and teardown.

    Register providers with ``provide``, validate the provider graph once with
    ``resolve``, then request instances with ``inject_as`` or fill annotated
    attributes with ``inject``. Every provider runs at most once per
    container. ``clean`` runs captured cleanups in reverse creation order.

    The container provides itself, so factories may declare a ``Container``
    parameter and request more dependencies while they run.

    Examples:
        .. code-block:: python

            container = Container()
            container.provide(
                value(Config(addr="localhost")),
                func(new_service),
            )
            with container:
                service = container.inject_as(Service)
                service.run()

    """

    def __init__(self, *, lock_mode: LockMode = LockMode.THREAD) -> None:
        """Initialize an empty container.

        Args:
            lock_mode: ``LockMode.THREAD`` guards state and provider execution for
                use from several threads; ``LockMode.NONE`` disables locking.

        """
        self._lock_mode = lock_mode
        self._state_lock = state_lock_for(lock_mode)
        self._lock_factory = lock_factory_for(lock_mode)
        self._registry = ProviderRegistry()
        self._values: dict[Any, Any] = {Container: self, type(self): self}
        self._state = ContainerState.NEW
        self._failure: WirelessError | None = None
        self._failure_traceback: TracebackType | None = None
        self._engine: ResolutionEngine | None = None

    @property
    def state(self) -> ContainerState:
        return self._state

    @property
    def lock_mode(self) -> LockMode:
        return self._lock_mode

    # region Registration

    def provide(self, *providers: Any) -> None:
        """Register provider declarations.

        Accepts declarations built with ``value``, ``interface_value``,
        ``bind`` and ``func``, and nested provider sets, lists or tuples of
        them. Declarations are only validated by ``resolve``.

        Raises:
            WirelessAlreadyResolvedError: If the container is already resolved.
            WirelessAlreadyCleanedError: If the container is already cleaned.

        """
        if self._state is ContainerState.CLEANED:
            raise WirelessAlreadyCleanedError
        if self._state is ContainerState.RESOLVED:
            raise WirelessAlreadyResolvedError
        self._registry.add(providers)

    def resolve(self) -> None:
        """Validate all registered providers and build the dependency graph.

        Every declaration is checked once and all configuration problems are
        reported together. Missing dependencies and cycles are reported after
        configuration errors. No factory runs here.

        Raises:
            WirelessAlreadyCleanedError: If the container is already cleaned.
            WirelessAlreadyResolvedError: If the container is already resolved.
            WirelessConfigurationError: If any provider declaration is invalid.
            WirelessDependencyNotRegisteredError: If a factory parameter has no provider.
            WirelessDependencyCycleError: If provider dependencies form a cycle.

        """
        self._ensure_resolvable()
        with self._state_lock.write():
            self._ensure_resolvable()
            try:
                self._engine = self._build_engine()
            except WirelessError as error:
                self._failure = error
                self._failure_traceback = error.__traceback__
                raise
            self._state = ContainerState.RESOLVED

    def _ensure_resolvable(self) -> None:
        if self._state is ContainerState.CLEANED:
            raise WirelessAlreadyCleanedError
        if self._state is ContainerState.RESOLVED:
            raise WirelessAlreadyResolvedError
        if self._failure is not None:
            raise self._failure.with_traceback(self._failure_traceback)

    def _build_engine(self) -> ResolutionEngine:
        matcher = ProviderMatcher(values=self._values, lock_factory=self._lock_factory)
        result = matcher.match(self._registry)
        if result.errors:
            raise WirelessConfigurationError(result.errors)

        DependencyGraphBuilder(
            values=result.values,
            providers=result.providers,
            bindings=result.bindings,
        ).build(result.nodes)

        logger.info(
            "Container resolved: provider_count=%d value_count=%d binding_count=%d max_depth=%d",
            len(result.nodes),
            len(result.values),
            len(result.bindings),
            max((node.depth for node in result.nodes), default=-1),
        )
        return ResolutionEngine(
            values=result.values,
            bindings=result.bindings,
            providers=result.providers,
            lock_factory=self._lock_factory,
        )

    # endregion Registration

    # region Injection

    @overload
    def inject_as(self, dependency: type[T]) -> T: ...

    @overload
    def inject_as(self, dependency: Any) -> Any: ...

    def inject_as(self, dependency: Any) -> Any:
        """Return the instance provided for ``dependency``.

        Providers needed for the dependency run now, dependencies first, unless
        an earlier request already ran them.

        Args:
            dependency: Requested type: a class, protocol, generic alias or
                ``Annotated`` key. Interfaces resolve through their binding.

        Raises:
            WirelessNotResolvedError: If ``resolve`` did not succeed yet.
            WirelessAlreadyCleanedError: If the container is already cleaned.
            WirelessInvalidInjectionTargetError: If ``dependency`` is not a type.
            WirelessDependencyNotRegisteredError: If nothing provides ``dependency``.

        Any exception raised by a factory propagates unchanged.

        """
        with self._state_lock.read():
            engine = self._ensure_injectable()
            if not is_type_token(dependency):
                msg = f"Injection target must be a type, got {dependency!r}."
                raise WirelessInvalidInjectionTargetError(msg)
            return engine.resolve_dependency(dependency)

    def inject(self, target: T) -> T:
        """Set every injectable annotated attribute of ``target``.

        Attributes are visited in declaration order, base classes first.
        Private attributes (leading underscore), ``ClassVar`` entries and
        attributes annotated with ``Omit[...]`` are skipped.

        Args:
            target: Instance of a user-defined class with annotated attributes.

        Returns:
            The same ``target`` instance.

        Raises:
            WirelessNotResolvedError: If ``resolve`` did not succeed yet.
            WirelessAlreadyCleanedError: If the container is already cleaned.
            WirelessInvalidInjectionTargetError: If ``target`` is not an instance of
                a user-defined class.
            WirelessDependencyNotRegisteredError: If an attribute type has no provider.

        """
        with self._state_lock.read():
            engine = self._ensure_injectable()
            for name, annotation in self._injectable_attributes(target):
                setattr(target, name, engine.resolve_dependency(annotation))
        return target

    def _ensure_injectable(self) -> ResolutionEngine:
        if self._state is ContainerState.CLEANED:
            raise WirelessAlreadyCleanedError
        if self._failure is not None:
            raise self._failure.with_traceback(self._failure_traceback)
        if self._state is not ContainerState.RESOLVED or self._engine is None:
            raise WirelessNotResolvedError
        return self._engine

    def _injectable_attributes(self, target: object) -> Iterator[tuple[str, Any]]:
        if target is None:
            msg = "Injection target is None."
            raise WirelessInvalidInjectionTargetError(msg)
        target_type = type(target)
        if isinstance(target, type) or target_type.__module__ == "builtins":
            msg = (
                "Injection target must be an instance of a user-defined class, "
                f"got {target!r}."
            )
            raise WirelessInvalidInjectionTargetError(msg)

        try:
            annotations = get_type_hints(target_type, include_extras=True)
        except (AttributeError, NameError, TypeError) as error:
            msg = f"Unable to read attribute annotations of {target_type.__qualname__}: {error}"
            raise WirelessInvalidInjectionTargetError(msg) from error

        for name, annotation in annotations.items():
            if name.startswith("_"):
                continue
            if annotation is ClassVar or get_origin(annotation) is ClassVar:
                continue
            if is_omit_annotation(annotation):
                continue
            yield name, annotation

    # endregion Injection

    # region Cleanup

    def clean(self) -> None:
        """Run captured cleanups, dependents before their dependencies.

        Safe to call unconditionally: a second call, or a call on a container
        whose resolution failed, does nothing harmful. All cleanups run even
        if one raises; the error propagates afterwards.
        """
        if self._state is ContainerState.CLEANED:
            return
        with self._state_lock.write():
            if self._state is ContainerState.CLEANED:
                return
            self._state = ContainerState.CLEANED
            if self._engine is not None:
                CleanupManager(self._engine.execution_log).run()

    def __enter__(self) -> Self:
        """Resolve the container when it is still new and return it."""
        if self._state is ContainerState.NEW:
            self.resolve()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Clean the container."""
        self.clean()

    # endregion Cleanup
