"""
Core Module - Status Tracker.

============================================================
RESPONSIBILITY
============================================================
Tracks the lifecycle status of a single module.

- Holds the current status
- Validates transitions against the lifecycle state machine
- Keeps a bounded transition history for diagnostics

============================================================
STATE MACHINE
============================================================
    new          -> initialising | stopping
    initialising -> initialised
    initialised  -> starting | stopping
    starting     -> started
    started      -> stopping
    stopping     -> stopped

- Starting requires a completed init
- Stopping is allowed from new, initialised and started
- stopped is terminal (no restart)

============================================================
"""

from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set
import logging

from .constants import MAX_STATUS_HISTORY
from .exceptions import StateTransitionError


# ============================================================
# MODULE STATUS
# ============================================================

class ModuleStatus(Enum):
    """Module lifecycle status, in lifecycle order."""

    NEW = "new"
    """Created by the loader, nothing run yet."""

    INITIALISING = "initialising"
    """Init phase in progress."""

    INITIALISED = "initialised"
    """Init hook completed."""

    STARTING = "starting"
    """Start phase in progress."""

    STARTED = "started"
    """Start hook completed."""

    STOPPING = "stopping"
    """Stop phase in progress."""

    STOPPED = "stopped"
    """Stop hook completed. Terminal."""

    @property
    def rank(self) -> int:
        """Position of this status in the lifecycle."""
        return _STATUS_ORDER.index(self)

    @property
    def is_in_progress(self) -> bool:
        """Check if a phase is currently running for the module."""
        return self in (
            ModuleStatus.INITIALISING,
            ModuleStatus.STARTING,
            ModuleStatus.STOPPING,
        )

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self == ModuleStatus.STOPPED

    def is_at_or_past(self, other: "ModuleStatus") -> bool:
        """Check if this status is the same as or later than ``other``."""
        return self.rank >= other.rank


_STATUS_ORDER: List[ModuleStatus] = list(ModuleStatus)


# ============================================================
# STATUS TRANSITIONS
# ============================================================

VALID_TRANSITIONS: Dict[ModuleStatus, Set[ModuleStatus]] = {
    ModuleStatus.NEW: {
        ModuleStatus.INITIALISING,
        ModuleStatus.STOPPING,
    },
    ModuleStatus.INITIALISING: {
        ModuleStatus.INITIALISED,
    },
    ModuleStatus.INITIALISED: {
        ModuleStatus.STARTING,
        ModuleStatus.STOPPING,
    },
    ModuleStatus.STARTING: {
        ModuleStatus.STARTED,
    },
    ModuleStatus.STARTED: {
        ModuleStatus.STOPPING,
    },
    ModuleStatus.STOPPING: {
        ModuleStatus.STOPPED,
    },
    ModuleStatus.STOPPED: set(),  # Terminal - no transitions
}


@dataclass
class StatusTransition:
    """Record of a status transition."""

    module: str
    from_status: ModuleStatus
    to_status: ModuleStatus
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "module": self.module,
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================
# STATUS TRACKER
# ============================================================

class StatusTracker:
    """
    Current status of one module plus its transition history.

    Not thread-safe: the engine drives modules from a single
    thread of control.
    """

    def __init__(
        self,
        module: str,
        initial_status: ModuleStatus = ModuleStatus.NEW,
        max_history: int = MAX_STATUS_HISTORY,
    ):
        self._module = module
        self._status = initial_status
        self._history: List[StatusTransition] = []
        self._max_history = max_history
        self._logger = logging.getLogger(__name__)

    @property
    def status(self) -> ModuleStatus:
        """Get current status."""
        return self._status

    @property
    def last_transition(self) -> Optional[StatusTransition]:
        """Get last transition, if any."""
        return self._history[-1] if self._history else None

    def get_history(self, limit: int = 10) -> List[StatusTransition]:
        """Get transition history."""
        return self._history[-limit:]

    def can_transition_to(self, target: ModuleStatus) -> bool:
        """Check if transition to target status is valid."""
        return target in VALID_TRANSITIONS.get(self._status, set())

    def transition_to(self, target: ModuleStatus) -> StatusTransition:
        """
        Move to a new status.

        Args:
            target: Target status

        Returns:
            StatusTransition record

        Raises:
            StateTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target):
            raise StateTransitionError(
                message=(
                    f"Invalid status transition for {self._module}: "
                    f"{self._status.value} -> {target.value}"
                ),
                module=self._module,
                from_status=self._status.value,
                to_status=target.value,
            )

        transition = StatusTransition(
            module=self._module,
            from_status=self._status,
            to_status=target,
        )
        self._status = target

        self._history.append(transition)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        self._logger.debug(
            f"Status transition: {self._module} "
            f"{transition.from_status.value} -> {target.value}"
        )
        return transition


__all__ = [
    "ModuleStatus",
    "StatusTransition",
    "StatusTracker",
    "VALID_TRANSITIONS",
]
