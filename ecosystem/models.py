"""
Ecosystem - Models.

============================================================
RESPONSIBILITY
============================================================
Defines data models for the lifecycle engine.

- Lifecycle phases and the statuses they move a module through
- Stop ordering policy
- Engine configuration

============================================================
"""

from enum import Enum
from dataclasses import dataclass
from typing import List, Union
import os

from dotenv import load_dotenv

from ecosystem.core.constants import (
    ENV_CORRELATION_PREFIX,
    ENV_LOG_FORMAT,
    ENV_LOG_LEVEL,
    ENV_STOP_ORDER,
    ENV_STRICT_CONTINUATIONS,
    FALSE_VALUES,
    LOG_FORMATS,
    LOG_LEVELS,
    TRUE_VALUES,
)
from ecosystem.core.exceptions import InvalidConfigError
from ecosystem.core.status import ModuleStatus


# ============================================================
# PHASES
# ============================================================

class Phase(Enum):
    """
    Lifecycle phases in the order every module passes through them.

    Each phase carries the event name fired on completion, the
    status a module holds while the phase runs, and the status it
    reaches once the phase completes.
    """

    INIT = ("init", ModuleStatus.INITIALISING, ModuleStatus.INITIALISED, "Initialising", "Initialised")
    START = ("start", ModuleStatus.STARTING, ModuleStatus.STARTED, "Starting", "Started")
    STOP = ("stop", ModuleStatus.STOPPING, ModuleStatus.STOPPED, "Stopping", "Stopped")

    def __init__(
        self,
        event: str,
        in_progress: ModuleStatus,
        complete: ModuleStatus,
        progress_label: str,
        complete_label: str,
    ):
        self._event = event
        self._in_progress = in_progress
        self._complete = complete
        self._progress_label = progress_label
        self._complete_label = complete_label

    @property
    def event(self) -> str:
        """Name of the notification fired when the phase completes."""
        return self._event

    @property
    def in_progress(self) -> ModuleStatus:
        """Status held while the phase runs."""
        return self._in_progress

    @property
    def complete(self) -> ModuleStatus:
        """Status reached when the phase completes."""
        return self._complete

    @property
    def progress_label(self) -> str:
        return self._progress_label

    @property
    def complete_label(self) -> str:
        return self._complete_label

    def is_complete_for(self, status: ModuleStatus) -> bool:
        """Check if a module in ``status`` has nothing left to do in this phase."""
        return status.is_at_or_past(self._complete)

    @classmethod
    def from_event(cls, event: Union[str, "Phase"]) -> "Phase":
        """Look up a phase by its event name ("init", "start", "stop")."""
        if isinstance(event, Phase):
            return event
        for phase in cls:
            if phase.event == event:
                return phase
        raise ValueError(f"Unknown lifecycle event: {event!r}")


# ============================================================
# ENVIRONMENT PARSING
# ============================================================

def _env_flag(key: str, default: bool) -> bool:
    """
    Read a boolean environment variable.

    Raises:
        InvalidConfigError: If the value is not a recognised flag
    """
    raw = os.getenv(key)
    if raw is None:
        return default

    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise InvalidConfigError(
        key,
        raw,
        f"expected one of {list(TRUE_VALUES + FALSE_VALUES)}",
    )


# ============================================================
# STOP ORDER
# ============================================================

class StopOrder(Enum):
    """Ordering policy for the stop phase."""

    REVERSE = "reverse"
    """Dependents stop before the modules they depend on."""

    FORWARD = "forward"
    """Dependencies stop first, same walk as init and start."""


# ============================================================
# ENGINE CONFIGURATION
# ============================================================

@dataclass
class EngineConfig:
    """Configuration for the lifecycle engine."""

    # Ordering
    stop_order: StopOrder = StopOrder.REVERSE
    """Stop phase ordering policy."""

    # Hook contract
    strict_continuations: bool = True
    """Raise when a hook completes its phase more than once (warn otherwise)."""

    # Logging
    log_level: str = "INFO"
    """Logging level."""

    log_format: str = "text"
    """Log output format (text or json)."""

    correlation_id_prefix: str = "run"
    """Prefix for correlation IDs."""

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables (and a .env file)."""
        load_dotenv()

        raw_stop_order = os.getenv(ENV_STOP_ORDER, StopOrder.REVERSE.value).lower()
        try:
            stop_order = StopOrder(raw_stop_order)
        except ValueError:
            raise InvalidConfigError(
                ENV_STOP_ORDER,
                raw_stop_order,
                f"expected one of {[o.value for o in StopOrder]}",
            )

        return cls(
            stop_order=stop_order,
            strict_continuations=_env_flag(ENV_STRICT_CONTINUATIONS, True),
            log_level=os.getenv(ENV_LOG_LEVEL, "INFO").upper(),
            log_format=os.getenv(ENV_LOG_FORMAT, "text").lower(),
            correlation_id_prefix=os.getenv(ENV_CORRELATION_PREFIX, "run"),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not isinstance(self.stop_order, StopOrder):
            errors.append(f"stop_order must be one of {[o.value for o in StopOrder]}")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {list(LOG_LEVELS)}")

        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {list(LOG_FORMATS)}")

        if not self.correlation_id_prefix:
            errors.append("correlation_id_prefix must not be empty")

        return errors


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "Phase",
    "StopOrder",
    "EngineConfig",
]
