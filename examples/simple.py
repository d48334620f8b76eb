"""
Minimal three-module application.

    foo  <-  bar  <-  baz
     ^---------------/

Run with ``python examples/simple.py``.
"""

import logging

from ecosystem import Engine, Module, setup_logging


logger = logging.getLogger(__name__)


class Foo(Module):
    def init(self, config, registry, next):
        self.greeting = config.get("greeting", "hello")
        next()


class Bar(Module):
    depends_on = ("foo",)

    def start(self, next):
        logger.info(f"bar sees foo saying {self.dependency('foo').greeting!r}")
        next()


class Baz(Module):
    depends_on = ("foo", "bar")

    def stop(self, next):
        logger.info("baz going down first")
        next()


def build_registry():
    """Registry listed out of dependency order on purpose."""
    return {
        "baz": Baz("baz"),
        "bar": Bar("bar"),
        "foo": Foo("foo"),
    }


def main() -> None:
    setup_logging("INFO")

    engine = Engine(build_registry())
    engine.init_all({"greeting": "hi"})
    engine.start_all()
    engine.stop_all()

    logger.info(f"Final status: {engine.get_status()['modules']}")


if __name__ == "__main__":
    main()
