"""
Ecosystem - Module.

============================================================
RESPONSIBILITY
============================================================
Base class for every module the engine drives.

- Declares dependency names
- Captures which lifecycle hooks a subclass implements
- Exposes resolved dependencies to the module itself
- Fires completion notifications to registered listeners

============================================================
HOOKS
============================================================
A subclass implements any of these, each of which MUST call
``next()`` exactly once, synchronously or later:

    def init(self, config, registry, next): ...
    def start(self, next): ...
    def stop(self, next): ...

A missing hook completes its phase immediately.

============================================================
"""

import logging
import weakref
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ecosystem.core.exceptions import ConfigurationError, StateTransitionError
from ecosystem.core.status import ModuleStatus, StatusTracker, StatusTransition
from ecosystem.models import Phase
from ecosystem.resolver import find_suffix_match


Continuation = Callable[[], None]
Listener = Callable[[], None]


# ============================================================
# HOOK SET
# ============================================================

@dataclass(frozen=True)
class HookSet:
    """The lifecycle hooks a module implements, captured once."""

    init: Optional[Callable[..., Any]] = None
    start: Optional[Callable[..., Any]] = None
    stop: Optional[Callable[..., Any]] = None

    @classmethod
    def from_module(cls, module: Any) -> "HookSet":
        def _hook(attr: str) -> Optional[Callable[..., Any]]:
            hook = getattr(module, attr, None)
            return hook if callable(hook) else None

        return cls(
            init=_hook(Phase.INIT.event),
            start=_hook(Phase.START.event),
            stop=_hook(Phase.STOP.event),
        )

    def for_phase(self, phase: Phase) -> Optional[Callable[..., Any]]:
        """Get the hook for a phase, or None when the module has none."""
        return getattr(self, phase.event)

    @property
    def implemented(self) -> List[str]:
        return [phase.event for phase in Phase if self.for_phase(phase) is not None]


# ============================================================
# MODULE
# ============================================================

class Module:
    """
    A named unit with a lifecycle status and optional phase hooks.

    Declare dependencies with the ``depends_on`` class attribute or
    by overriding ``dependencies()``::

        class Reporter(Module):
            depends_on = ("database",)

            def start(self, next):
                self.dependency("database").connect(next)
    """

    depends_on: Sequence[str] = ()

    def __init__(self, name: str):
        self._name = name
        self._tracker = StatusTracker(name)
        self._declared: Optional[Tuple[str, ...]] = None
        self._resolved: Dict[str, "Module"] = {}
        self._bound = False
        self._dependents: List["weakref.ReferenceType[Module]"] = []
        self._listeners: Dict[Phase, List[Listener]] = {phase: [] for phase in Phase}
        self._hooks = HookSet.from_module(self)
        self._logger = logging.getLogger(__name__)

    # --------------------------------------------------------
    # Properties
    # --------------------------------------------------------

    @property
    def name(self) -> str:
        """Get module name."""
        return self._name

    @property
    def status(self) -> ModuleStatus:
        """Get current lifecycle status."""
        return self._tracker.status

    @property
    def hooks(self) -> HookSet:
        """Get the hooks captured at construction."""
        return self._hooks

    @property
    def resolved_dependencies(self) -> Mapping[str, "Module"]:
        """Read-only mapping of declared name to resolved module."""
        return MappingProxyType(self._resolved)

    @property
    def is_resolved(self) -> bool:
        """Check if dependencies were resolved during init."""
        return self._bound

    @property
    def dependents(self) -> List["Module"]:
        """Modules that resolved this one as a dependency, still alive."""
        live = []
        for ref in self._dependents:
            module = ref()
            if module is not None:
                live.append(module)
        return live

    def get_status_history(self, limit: int = 10) -> List[StatusTransition]:
        """Get recent status transitions."""
        return self._tracker.get_history(limit)

    # --------------------------------------------------------
    # Dependencies
    # --------------------------------------------------------

    def dependencies(self) -> Sequence[str]:
        """Declared dependency names. Override or set ``depends_on``."""
        return self.depends_on

    def declared_dependencies(self) -> Tuple[str, ...]:
        """``dependencies()``, queried once and cached."""
        if self._declared is None:
            names = self.dependencies() or ()
            if isinstance(names, str):
                raise ConfigurationError(
                    f"dependencies() of {self._name} must return a sequence of names, got a string",
                    config_key="dependencies",
                    actual_value=names,
                )
            self._declared = tuple(names)
        return self._declared

    def dependency(self, name: str) -> Optional["Module"]:
        """
        Get a resolved dependency by (possibly short) name.

        Returns:
            The matched module, or None when nothing matches
        """
        match = find_suffix_match(self._resolved, name)
        return match[1] if match else None

    def bind_dependencies(self, resolved: Mapping[str, "Module"]) -> None:
        """Record resolved dependencies. Allowed once."""
        if self._bound:
            raise StateTransitionError(
                f"Dependencies of {self._name} are already resolved",
                module=self._name,
                phase=Phase.INIT.event,
            )
        self._resolved.update(resolved)
        self._bound = True

    def add_dependent(self, module: "Module") -> None:
        """Record a weak back-reference to a module depending on this one."""
        self._dependents.append(weakref.ref(module))

    # --------------------------------------------------------
    # Status
    # --------------------------------------------------------

    def can_transition_to(self, status: ModuleStatus) -> bool:
        """Check if the module may move to ``status``."""
        return self._tracker.can_transition_to(status)

    def transition_to(self, status: ModuleStatus) -> StatusTransition:
        """Move to a new lifecycle status (validated)."""
        return self._tracker.transition_to(status)

    # --------------------------------------------------------
    # Notifications
    # --------------------------------------------------------

    def on(self, event: Union[str, Phase], listener: Listener) -> "Module":
        """Register a zero-argument listener fired when a phase completes."""
        self._listeners[Phase.from_event(event)].append(listener)
        return self

    def off(self, event: Union[str, Phase], listener: Listener) -> "Module":
        """Unregister a listener."""
        listeners = self._listeners[Phase.from_event(event)]
        if listener in listeners:
            listeners.remove(listener)
        return self

    def notify(self, phase: Phase) -> None:
        """Fire listeners for a completed phase."""
        for listener in list(self._listeners[phase]):
            try:
                listener()
            except Exception as e:
                self._logger.error(
                    f"Listener error on {self._name} '{phase.event}': {e}",
                    exc_info=True,
                )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._name!r} status={self.status.value}>"


__all__ = [
    "Continuation",
    "Listener",
    "HookSet",
    "Module",
]
