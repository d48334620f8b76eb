"""
Ecosystem - Phase Runner.

============================================================
RESPONSIBILITY
============================================================
Drives one lifecycle phase (init, start or stop) for a module.

- Skips modules that already completed the phase
- Detects dependency cycles before any further hook runs
- Resolves dependencies on init entry
- Completes every prerequisite before the module's own hook
- Signals completion through continuations

============================================================
STATE MACHINE (per module, per phase)
============================================================
  complete     -> call next() immediately
  in progress  -> CircularDependency
  stuck        -> (stop only) warn, call next() immediately
  otherwise    -> [resolve] -> in progress -> prerequisites
                  -> hook(next) -> complete -> listeners -> next()

Prerequisites are the resolved dependencies, except for the stop
phase under StopOrder.REVERSE where they are the module's
dependents.

============================================================
FAN-IN
============================================================
Prerequisites run strictly one after another in declaration
order. Only one hook is ever waiting on its continuation.

============================================================
"""

import logging
from collections import deque
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, TypeVar

from ecosystem.core.exceptions import (
    CircularDependency,
    ConfigurationError,
    HookContractError,
)
from ecosystem.models import Phase, StopOrder
from ecosystem.module import Continuation, Module
from ecosystem.resolver import DependencyResolver


logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorHandler = Callable[[BaseException], None]
PhaseListener = Callable[[Module, Phase], None]


# ============================================================
# CONTINUATION
# ============================================================

class PhaseContinuation:
    """
    One-shot completion callback handed to a hook.

    Once the hook has returned, a later call is an asynchronous
    completion: if an error handler is set, errors raised further
    down the chain go to it instead of the caller.
    """

    def __init__(
        self,
        module: str,
        phase: Phase,
        resume: Continuation,
        strict: bool = True,
        on_error: Optional[ErrorHandler] = None,
    ):
        self._module = module
        self._phase = phase
        self._resume = resume
        self._strict = strict
        self._on_error = on_error
        self._fired = False
        self._hook_returned = False

    @property
    def fired(self) -> bool:
        return self._fired

    def mark_hook_returned(self) -> None:
        self._hook_returned = True

    def __call__(self) -> None:
        if self._fired:
            message = f"{self._module} completed '{self._phase.event}' more than once"
            if self._strict:
                raise HookContractError(message, module=self._module, phase=self._phase.event)
            logger.warning(message)
            return

        self._fired = True

        if self._hook_returned and self._on_error is not None:
            try:
                self._resume()
            except Exception as e:
                self._on_error(e)
            return

        self._resume()


# ============================================================
# SEQUENTIAL DRAIN
# ============================================================

class SequentialDrain:
    """
    Applies ``step(item, next)`` to each item in turn, then calls ``done``.

    Each step resumes the drain through ``next``. Steps that call
    ``next`` before returning are looped instead of nested, so a
    long run of synchronous steps does not deepen the stack.
    """

    def __init__(
        self,
        items: Iterable[T],
        step: Callable[[T, Continuation], None],
        done: Continuation,
    ):
        self._pending = deque(items)
        self._step = step
        self._done = done
        self._looping = False
        self._ready = False

    def start(self) -> None:
        self._advance()

    def _advance(self) -> None:
        self._ready = True
        if self._looping:
            return

        self._looping = True
        try:
            while self._ready:
                self._ready = False
                if not self._pending:
                    self._done()
                    return
                self._step(self._pending.popleft(), self._advance)
        finally:
            self._looping = False


# ============================================================
# PHASE RUNNER
# ============================================================

class PhaseRunner:
    """
    Per-phase state machine over the modules of one registry.

    One runner is used for one engine entry point call; it keeps
    the chain of modules currently in progress to report cycles.
    """

    def __init__(
        self,
        phase: Phase,
        registry: Optional[Mapping[str, Module]] = None,
        config: Any = None,
        stop_order: StopOrder = StopOrder.REVERSE,
        strict_continuations: bool = True,
        on_error: Optional[ErrorHandler] = None,
        listeners: Sequence[PhaseListener] = (),
    ):
        """
        Initialize phase runner.

        Args:
            phase: Phase to drive
            registry: Registry passed to init hooks and used for resolution
            config: Application config passed to init hooks
            stop_order: Stop phase ordering policy
            strict_continuations: Raise on a second continuation call
            on_error: Receives errors raised after an asynchronous completion
            listeners: Engine-level listeners called as (module, phase)
        """
        if phase is Phase.INIT and registry is None:
            raise ConfigurationError("The init phase needs a registry to resolve dependencies")

        self._phase = phase
        self._registry = registry
        self._config = config
        self._stop_order = stop_order
        self._strict = strict_continuations
        self._on_error = on_error
        self._listeners = list(listeners)
        self._resolver = DependencyResolver(registry) if registry is not None else None
        self._active: List[str] = []
        self._completed: List[str] = []

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def completed(self) -> List[str]:
        """Names of modules this runner completed, in completion order."""
        return list(self._completed)

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------

    def run(self, module: Module, next: Continuation) -> None:
        """
        Drive ``module`` through the phase, then call ``next``.

        Raises:
            CircularDependency: If the module is already in progress
            UnknownDependency: If a declared dependency has no match
            StateTransitionError: If the module cannot enter the phase
        """
        phase = self._phase
        status = module.status

        if phase.is_complete_for(status):
            logger.debug(f"{module.name} is {status.value}, nothing to {phase.event}")
            next()
            return

        if status == phase.in_progress:
            raise CircularDependency(
                module.name,
                phase=phase.event,
                chain=self._cycle_chain(module.name),
            )

        if phase is Phase.STOP and not module.can_transition_to(phase.in_progress):
            # Left mid-phase by a failed init or start
            logger.warning(f"Skipping stop of {module.name}: stuck in {status.value}")
            next()
            return

        if phase is Phase.INIT:
            self._resolver.resolve(module)

        module.transition_to(phase.in_progress)
        self._active.append(module.name)
        logger.info(f"{phase.progress_label} {module.name}")

        SequentialDrain(
            self._prerequisites(module),
            self.run,
            lambda: self._invoke_hook(module, next),
        ).start()

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    def _prerequisites(self, module: Module) -> List[Module]:
        if self._phase is Phase.STOP and self._stop_order is StopOrder.REVERSE:
            return module.dependents
        return list(module.resolved_dependencies.values())

    def _cycle_chain(self, name: str) -> List[str]:
        if name in self._active:
            return self._active[self._active.index(name):] + [name]
        return [name]

    def _invoke_hook(self, module: Module, next: Continuation) -> None:
        hook = module.hooks.for_phase(self._phase)
        finish = PhaseContinuation(
            module.name,
            self._phase,
            lambda: self._complete(module, next),
            strict=self._strict,
            on_error=self._on_error,
        )

        if hook is None:
            finish()
            return

        if self._phase is Phase.INIT:
            hook(self._config, self._registry, finish)
        else:
            hook(finish)
        finish.mark_hook_returned()

    def _complete(self, module: Module, next: Continuation) -> None:
        module.transition_to(self._phase.complete)
        if module.name in self._active:
            self._active.remove(module.name)
        self._completed.append(module.name)
        logger.info(f"{self._phase.complete_label} {module.name}")

        module.notify(self._phase)
        for listener in self._listeners:
            try:
                listener(module, self._phase)
            except Exception as e:
                logger.error(
                    f"Phase listener error for {module.name} '{self._phase.event}': {e}",
                    exc_info=True,
                )

        next()


__all__ = [
    "ErrorHandler",
    "PhaseListener",
    "PhaseContinuation",
    "SequentialDrain",
    "PhaseRunner",
]
