from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, ClassVar, Protocol

import pytest

from wireless import (
    Container,
    ContainerState,
    LockMode,
    Omit,
    bind,
    func,
    interface_value,
    provider_set,
    value,
)
from wireless.exceptions import (
    WirelessAlreadyCleanedError,
    WirelessAlreadyResolvedError,
    WirelessDependencyNotRegisteredError,
    WirelessInvalidInjectionTargetError,
    WirelessNotResolvedError,
)


@dataclass
class Config:
    addr: str


class Logger:
    def log(self, message: str) -> str:
        return message


@dataclass
class Service:
    log: Logger
    cfg: Config

    def run(self) -> str:
        return self.log.log(f"running service on address: {self.cfg.addr}")


class Greeter(Protocol):
    def greet(self) -> str: ...


class EnglishGreeter:
    def greet(self) -> str:
        return "hello"


class Repository(ABC):
    @abstractmethod
    def get(self) -> str:
        """Return a stored value."""


class SqlRepository(Repository):
    def __init__(self, cfg: Config) -> None:
        self.cfg = cfg

    def get(self) -> str:
        return f"sql:{self.cfg.addr}"


@dataclass(frozen=True)
class Point:
    x: int
    y: int


class A:
    def __init__(self, started: bool = False) -> None:
        self.started = started


class B:
    def __init__(self, started: bool = False) -> None:
        self.started = started


class C:
    def __init__(self, started: bool = False) -> None:
        self.started = started


def new_logger() -> Logger:
    return Logger()


def new_service(log: Logger, cfg: Config) -> Service:
    return Service(log=log, cfg=cfg)


class TestValueProviders:
    def test_value_returns_registered_instance(self, container: Container) -> None:
        cfg = Config(addr="ptr")
        container.provide(value(cfg))
        container.resolve()

        assert container.inject_as(Config) is cfg

    def test_plain_data_value_is_equal(self, container: Container) -> None:
        container.provide(value(Point(1, 2)), value("text"), value(42))
        container.resolve()

        assert container.inject_as(Point) == Point(1, 2)
        assert container.inject_as(str) == "text"
        assert container.inject_as(int) == 42

    def test_interface_value_is_provided_under_interface(self, container: Container) -> None:
        greeter = EnglishGreeter()
        container.provide(interface_value(Greeter, greeter))
        container.resolve()

        assert container.inject_as(Greeter) is greeter

    def test_container_provides_itself(self, container: Container) -> None:
        container.resolve()

        assert container.inject_as(Container) is container


class TestFactoryProviders:
    def test_factory_dependencies_are_injected(self, container: Container) -> None:
        container.provide(
            value(Config(addr="localhost")),
            func(new_service),
            func(new_logger),
        )
        container.resolve()

        service = container.inject_as(Service)

        assert service.run() == "running service on address: localhost"

    def test_factory_result_is_memoized(self, container: Container) -> None:
        calls: list[str] = []

        def build_logger() -> Logger:
            calls.append("logger")
            return Logger()

        def build_service(log: Logger, cfg: Config) -> Service:
            calls.append("service")
            return Service(log=log, cfg=cfg)

        container.provide(value(Config(addr="a")), func(build_logger), func(build_service))
        container.resolve()

        first = container.inject_as(Service)
        second = container.inject_as(Service)
        logger = container.inject_as(Logger)

        assert first is second
        assert logger is first.log
        assert calls == ["logger", "service"]

    def test_factories_do_not_run_during_resolve(self, container: Container) -> None:
        calls: list[str] = []

        def build_logger() -> Logger:
            calls.append("logger")
            return Logger()

        container.provide(func(build_logger))
        container.resolve()

        assert calls == []

    def test_only_required_subgraph_is_executed(self, container: Container) -> None:
        calls: list[str] = []

        def build_a(b: B) -> A:
            calls.append("a")
            return A(started=b.started)

        def build_b(c: C) -> B:
            calls.append("b")
            return B(started=c.started)

        def build_c() -> C:
            calls.append("c")
            return C(started=True)

        container.provide(func(build_a), func(build_b), func(build_c))
        container.resolve()

        b = container.inject_as(B)

        assert b.started
        assert calls == ["c", "b"]

        container.inject_as(A)

        assert calls == ["c", "b", "a"]

    def test_class_provider_uses_init_dependencies(self, container: Container) -> None:
        container.provide(value(Config(addr="db")), func(SqlRepository))
        container.resolve()

        repository = container.inject_as(SqlRepository)

        assert repository.get() == "sql:db"

    def test_factory_may_request_container(self, container: Container) -> None:
        def config_from_container(injector: Container) -> Config:
            return Config(addr=injector.inject_as(str))

        container.provide(value("from-container"), func(config_from_container))
        container.resolve()

        assert container.inject_as(Config).addr == "from-container"

    def test_nested_provider_sets_are_flattened(self, container: Container) -> None:
        container.provide(
            provider_set(
                value(Config(addr="nested")),
                [func(new_logger), provider_set(func(new_service))],
            ),
        )
        container.resolve()

        assert container.inject_as(Service).cfg.addr == "nested"

    def test_unlocked_container_resolves(self, unlocked_container: Container) -> None:
        unlocked_container.provide(value(Config(addr="x")), func(new_logger), func(new_service))
        unlocked_container.resolve()

        assert unlocked_container.lock_mode is LockMode.NONE
        assert unlocked_container.inject_as(Service).cfg.addr == "x"


class TestBindings:
    def test_interface_resolves_to_bound_factory(self, container: Container) -> None:
        container.provide(
            bind(Repository, SqlRepository),
            func(SqlRepository),
            value(Config(addr="bound")),
        )
        container.resolve()

        repository = container.inject_as(Repository)

        assert type(repository) is SqlRepository
        assert isinstance(repository, SqlRepository)
        assert repository is container.inject_as(SqlRepository)

    def test_interface_resolves_to_bound_value(self, container: Container) -> None:
        greeter = EnglishGreeter()
        container.provide(bind(Greeter, EnglishGreeter), value(greeter))
        container.resolve()

        assert container.inject_as(Greeter) is greeter

    def test_factory_parameter_resolves_through_binding(self, container: Container) -> None:
        def describe(repository: Repository) -> str:
            return repository.get()

        container.provide(
            value(Config(addr="param")),
            bind(Repository, SqlRepository),
            func(SqlRepository),
            func(describe),
        )
        container.resolve()

        assert container.inject_as(str) == "sql:param"


@dataclass
class Destination:
    a: A
    b: B
    c: Omit[C | None] = None
    _private: Logger | None = None
    label: ClassVar[str] = "destination"


@dataclass
class AnnotatedDestination:
    greeting: Annotated[str, "greeting"]


class PlainDestination:
    logger: Logger
    config: Config


class TestInject:
    def test_inject_populates_exported_fields(self, container: Container) -> None:
        def build_a(b: B) -> A:
            return A(started=b.started)

        def build_b() -> B:
            return B(started=True)

        def build_c() -> C:
            return C(started=True)

        container.provide(func(build_a), func(build_b), func(build_c), func(new_logger))
        container.resolve()

        destination = Destination(a=A(), b=B())
        result = container.inject(destination)

        assert result is destination
        assert destination.a.started
        assert destination.b.started
        assert destination.c is None
        assert destination._private is None

    def test_inject_supports_plain_annotated_classes(self, container: Container) -> None:
        cfg = Config(addr="plain")
        container.provide(value(cfg), func(new_logger))
        container.resolve()

        destination = container.inject(PlainDestination())

        assert destination.config is cfg
        assert isinstance(destination.logger, Logger)

    def test_inject_uses_annotated_keys(self, container: Container) -> None:
        def greeting() -> Annotated[str, "greeting"]:
            return "hi"

        container.provide(func(greeting))
        container.resolve()

        assert container.inject(AnnotatedDestination(greeting="")).greeting == "hi"

    def test_inject_reports_missing_field_provider(self, container: Container) -> None:
        container.provide(func(new_logger))
        container.resolve()

        with pytest.raises(WirelessDependencyNotRegisteredError, match="Config"):
            container.inject(PlainDestination())

    @pytest.mark.parametrize("target", [None, 42, "text", PlainDestination])
    def test_inject_rejects_wrongly_shaped_targets(
        self,
        container: Container,
        target: object,
    ) -> None:
        container.resolve()

        with pytest.raises(WirelessInvalidInjectionTargetError):
            container.inject(target)

    @pytest.mark.parametrize("dependency", [None, 42, "Config", Config(addr="instance")])
    def test_inject_as_rejects_non_type_tokens(
        self,
        container: Container,
        dependency: object,
    ) -> None:
        container.resolve()

        with pytest.raises(WirelessInvalidInjectionTargetError):
            container.inject_as(dependency)

    def test_inject_as_reports_missing_provider(self, container: Container) -> None:
        container.resolve()

        with pytest.raises(WirelessDependencyNotRegisteredError, match="No provider found"):
            container.inject_as(Config)


class TestLifecycle:
    def test_state_moves_forward(self, container: Container) -> None:
        assert container.state is ContainerState.NEW

        container.resolve()
        assert container.state is ContainerState.RESOLVED

        container.clean()
        assert container.state is ContainerState.CLEANED

    def test_inject_before_resolve_fails(self, container: Container) -> None:
        with pytest.raises(WirelessNotResolvedError):
            container.inject_as(Container)
        with pytest.raises(WirelessNotResolvedError):
            container.inject(PlainDestination())

    def test_resolve_twice_fails(self, container: Container) -> None:
        container.resolve()

        with pytest.raises(WirelessAlreadyResolvedError):
            container.resolve()

    def test_provide_after_resolve_fails(self, container: Container) -> None:
        container.resolve()

        with pytest.raises(WirelessAlreadyResolvedError):
            container.provide(value(Config(addr="late")))

    def test_calls_after_clean_fail(self, container: Container) -> None:
        container.resolve()
        container.clean()

        with pytest.raises(WirelessAlreadyCleanedError):
            container.resolve()
        with pytest.raises(WirelessAlreadyCleanedError):
            container.inject_as(Container)
        with pytest.raises(WirelessAlreadyCleanedError):
            container.inject(PlainDestination())
        with pytest.raises(WirelessAlreadyCleanedError):
            container.provide(value(Config(addr="late")))

    def test_context_manager_resolves_and_cleans(self, container: Container) -> None:
        cleaned: list[str] = []

        def build_logger() -> tuple[Logger, Callable[[], None]]:
            return Logger(), lambda: cleaned.append("logger")

        container.provide(func(build_logger))

        with container as resolved:
            assert resolved is container
            assert container.state is ContainerState.RESOLVED
            container.inject_as(Logger)

        assert container.state is ContainerState.CLEANED
        assert cleaned == ["logger"]

    def test_context_manager_keeps_resolved_container(self, container: Container) -> None:
        container.resolve()

        with container:
            assert container.state is ContainerState.RESOLVED

        assert container.state is ContainerState.CLEANED

