"""
Ecosystem - Engine.

============================================================
RESPONSIBILITY
============================================================
Drives one lifecycle phase across every module of a registry.

- Owns one registry per orchestration run
- Exposes init_all / start_all / stop_all (continuation style)
- Bridges the continuation API to asyncio
- Plans the static startup order
- Reports module statuses

============================================================
ORDERING
============================================================
The engine iterates the registry in its own order. It does not
need to be topological: each module pulls its prerequisites in
first through the phase runner.

============================================================
"""

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from ecosystem.core.exceptions import ConfigurationError
from ecosystem.core.status import ModuleStatus
from ecosystem.models import EngineConfig, Phase
from ecosystem.module import Continuation, Module
from ecosystem.resolver import DependencyResolver
from ecosystem.runner import ErrorHandler, PhaseListener, PhaseRunner, SequentialDrain


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Set up process-wide logging.

    Replaces the root logger's handlers with a single stdout handler.
    Meant for entry points, not for library use.

    Args:
        level: Log level
        log_format: Output format (json or text)
        correlation_id: Correlation ID for tracing

    Returns:
        The package logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
                "correlation_id": correlation_id or "",
            })
        )
    else:
        formatter = logging.Formatter(
            f"%(asctime)s | %(levelname)-8s | %(name)s | {correlation_id or ''} | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("ecosystem")


# ============================================================
# ENGINE
# ============================================================

class Engine:
    """
    Lifecycle engine for one registry of modules.

    Independent engines share no state, so several orchestrations
    can run side by side (e.g. in tests).
    """

    def __init__(
        self,
        registry: Mapping[str, Module],
        config: Optional[EngineConfig] = None,
    ):
        """
        Initialize engine.

        Args:
            registry: Mapping of name to module, in iteration order
            config: Engine configuration (defaults when omitted)

        Raises:
            ConfigurationError: If the config or the registry is invalid
        """
        self._config = config or EngineConfig()

        errors = self._config.validate()
        if errors:
            raise ConfigurationError(
                message=f"Invalid configuration: {', '.join(errors)}",
            )

        for name, module in registry.items():
            if not isinstance(module, Module):
                raise ConfigurationError(
                    message=f"Registry entry '{name}' is not a Module: {type(module).__name__}",
                    config_key=name,
                )

        self._registry = registry
        self._view = MappingProxyType(dict(registry))
        self._listeners: List[PhaseListener] = []

        self._correlation_id = (
            f"{self._config.correlation_id_prefix}_"
            f"{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        )
        self._logger = logging.getLogger(__name__)

        self._logger.debug(
            f"Engine created | modules={len(registry)} | "
            f"stop_order={self._config.stop_order.value} | "
            f"correlation_id={self._correlation_id}"
        )

    # --------------------------------------------------------
    # Properties
    # --------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        """Get configuration."""
        return self._config

    @property
    def registry(self) -> Mapping[str, Module]:
        """Get a read-only view of the registry."""
        return self._view

    @property
    def correlation_id(self) -> str:
        return self._correlation_id

    # --------------------------------------------------------
    # Listeners
    # --------------------------------------------------------

    def add_listener(self, listener: PhaseListener) -> None:
        """Register a listener called as (module, phase) after each completion."""
        self._listeners.append(listener)

    def remove_listener(self, listener: PhaseListener) -> None:
        """Unregister a listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --------------------------------------------------------
    # Phases (continuation style)
    # --------------------------------------------------------

    def init_all(
        self,
        config: Any = None,
        next: Optional[Continuation] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> "Engine":
        """
        Initialise every module, dependencies first.

        Args:
            config: Application config handed to every init hook
            next: Called once every module is initialised
            on_error: Receives errors raised after an asynchronous completion

        Raises:
            UnknownDependency: If a declared dependency has no match
            CircularDependency: If the dependency graph has a cycle
        """
        return self._run_phase(Phase.INIT, config, next, on_error)

    def start_all(
        self,
        next: Optional[Continuation] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> "Engine":
        """Start every module, dependencies first."""
        return self._run_phase(Phase.START, None, next, on_error)

    def stop_all(
        self,
        next: Optional[Continuation] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> "Engine":
        """Stop every module, ordered by the configured stop policy."""
        return self._run_phase(Phase.STOP, None, next, on_error)

    def _run_phase(
        self,
        phase: Phase,
        config: Any,
        next: Optional[Continuation],
        on_error: Optional[ErrorHandler],
    ) -> "Engine":
        runner = PhaseRunner(
            phase,
            registry=self._view,
            config=config,
            stop_order=self._config.stop_order,
            strict_continuations=self._config.strict_continuations,
            on_error=on_error,
            listeners=self._listeners,
        )

        pending = [
            module for module in self._registry.values()
            if not phase.is_complete_for(module.status)
        ]

        def finished() -> None:
            self._logger.info(f"{phase.complete_label} {len(runner.completed)} modules")
            if next is not None:
                next()

        self._logger.info(f"=== {phase.progress_label.upper()} {len(pending)} MODULES ===")
        SequentialDrain(pending, runner.run, finished).start()
        return self

    # --------------------------------------------------------
    # Phases (asyncio)
    # --------------------------------------------------------

    async def init_all_async(self, config: Any = None) -> None:
        """Initialise every module; returns once the last continuation fired."""
        await self._await_phase(lambda done, fail: self.init_all(config, done, fail))

    async def start_all_async(self) -> None:
        """Start every module; returns once the last continuation fired."""
        await self._await_phase(lambda done, fail: self.start_all(done, fail))

    async def stop_all_async(self) -> None:
        """Stop every module; returns once the last continuation fired."""
        await self._await_phase(lambda done, fail: self.stop_all(done, fail))

    async def _await_phase(
        self,
        launch: Callable[[Continuation, ErrorHandler], Any],
    ) -> None:
        """
        Run a continuation-style phase and wait for it.

        Hooks must call their continuation on the running loop's
        thread (e.g. via ``loop.call_soon``). There is no timeout: a
        hook that never completes suspends the await indefinitely.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def done() -> None:
            if not future.done():
                future.set_result(None)

        def fail(error: BaseException) -> None:
            if not future.done():
                future.set_exception(error)

        launch(done, fail)
        await future

    # --------------------------------------------------------
    # Planning & status
    # --------------------------------------------------------

    def startup_order(self) -> List[str]:
        """Static dependency-first order of the registry; runs no hooks."""
        return DependencyResolver(self._view).startup_order()

    def shutdown_order(self) -> List[str]:
        """Static reverse of ``startup_order()``."""
        return DependencyResolver(self._view).shutdown_order()

    def get_status(self) -> Dict[str, Any]:
        """Get a summary of module statuses."""
        status_counts = {status.value: 0 for status in ModuleStatus}
        for module in self._registry.values():
            status_counts[module.status.value] += 1

        return {
            "correlation_id": self._correlation_id,
            "total_modules": len(self._registry),
            "status_counts": status_counts,
            "modules": {
                name: module.status.value
                for name, module in self._registry.items()
            },
        }


# ============================================================
# ENGINE FACTORY
# ============================================================

def create_engine(
    registry: Mapping[str, Module],
    config: Optional[EngineConfig] = None,
) -> Engine:
    """
    Factory function to create an engine.

    Args:
        registry: Mapping of name to module
        config: Configuration (or load from environment)

    Returns:
        Configured Engine instance
    """
    if config is None:
        config = EngineConfig.from_env()

    return Engine(registry, config=config)


# ============================================================
# ONE-SHOT HELPERS
# ============================================================

def init_all(
    config: Any,
    registry: Mapping[str, Module],
    next: Optional[Continuation] = None,
) -> Engine:
    """Initialise every module of ``registry`` with a fresh engine."""
    return Engine(registry).init_all(config, next)


def start_all(
    registry: Mapping[str, Module],
    next: Optional[Continuation] = None,
) -> Engine:
    """Start every module of ``registry`` with a fresh engine."""
    return Engine(registry).start_all(next)


def stop_all(
    registry: Mapping[str, Module],
    next: Optional[Continuation] = None,
) -> Engine:
    """Stop every module of ``registry`` with a fresh engine."""
    return Engine(registry).stop_all(next)


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "Engine",
    "create_engine",
    "setup_logging",
    "init_all",
    "start_all",
    "stop_all",
]
