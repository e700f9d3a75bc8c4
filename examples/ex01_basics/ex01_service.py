"""Register a value and a factory, resolve once, inject lazily.

This module covers:

1. ``value()`` for ready instances and ``func()`` for factories.
2. ``resolve()`` validating the graph without running factories.
3. ``inject_as()`` building the service and its logger on first request.
4. A factory requesting the container itself.
"""

from __future__ import annotations

from dataclasses import dataclass

from wireless import Container, func, value


@dataclass
class Config:
    addr: str


class Logger:
    def log(self, message: str) -> None:
        print(message)


@dataclass
class Service:
    log: Logger
    cfg: Config

    def run(self) -> None:
        self.log.log(f"running service on address: {self.cfg.addr}")


def new_logger() -> Logger:
    return Logger()


def new_service(container: Container) -> Service:
    return Service(log=container.inject_as(Logger), cfg=container.inject_as(Config))


def main() -> None:
    container = Container()
    container.provide(
        value(Config(addr="localhost")),
        func(new_logger),
        func(new_service),
    )

    with container:
        service = container.inject_as(Service)
        service.run()  # => running service on address: localhost

        same_service = container.inject_as(Service) is service
        print(f"same_service={same_service}")  # => same_service=True


if __name__ == "__main__":
    main()
