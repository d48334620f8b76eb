"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the lifecycle engine.

- Provides clear exception hierarchy
- Enables specific error handling
- Supports error categorization for alerting
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
EcosystemError (base)
├── ConfigurationError
│   └── InvalidConfigError
└── LifecycleError
    ├── DependencyError
    │   ├── UnknownDependency
    │   └── CircularDependency
    ├── StateTransitionError
    ├── HookContractError
    └── ModuleLoadError

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for alerting."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, the current phase cannot complete."""

    CRITICAL = "critical"
    """Critical issue, requires immediate action."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    RECOVERABLE = "recoverable"
    """Error can be recovered from automatically."""

    TRANSIENT = "transient"
    """Temporary error, retry may succeed."""

    NON_RECOVERABLE = "non_recoverable"
    """Permanent error, requires intervention."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class EcosystemError(Exception):
    """
    Base exception for all lifecycle engine errors.

    All exceptions carry:
    - severity: for alerting
    - context: for debugging
    - recoverable: for error handling decisions
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_recoverable: bool = True
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/storage."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for structured logging."""
        line = (
            f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
            f" | recoverable={self.recoverable}"
        )
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        if ctx_str:
            line = f"{line} | {ctx_str}"
        return line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(EcosystemError):
    """Error in configuration."""

    default_severity = Severity.HIGH
    default_recoverable = False
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid configuration for {key}: {reason}",
            config_key=key,
            actual_value=value,
            context={"reason": reason},
        )


# ============================================================
# LIFECYCLE ERRORS
# ============================================================

class LifecycleError(EcosystemError):
    """Base class for orchestration errors."""

    default_severity = Severity.HIGH
    default_recoverable = False
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        module: Optional[str] = None,
        phase: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if module:
            context["module"] = module
        if phase:
            context["phase"] = phase

        super().__init__(message, context=context, **kwargs)

        self.module = module
        self.phase = phase


class DependencyError(LifecycleError):
    """Base class for dependency graph errors."""


class UnknownDependency(DependencyError):
    """A declared dependency has no entry in the registry."""

    def __init__(self, name: str, module: Optional[str] = None):
        message = f"No such module: {name}"
        if module:
            message = f"{message} (declared by {module})"
        super().__init__(
            message,
            module=module,
            phase="init",
            context={"dependency": name},
        )
        self.dependency = name


class CircularDependency(DependencyError):
    """A module re-entered a phase that is still in progress for it."""

    def __init__(
        self,
        name: str,
        phase: Optional[str] = None,
        chain: Optional[Sequence[str]] = None,
    ):
        self.chain: List[str] = list(chain) if chain else [name]
        path = " -> ".join(self.chain)
        message = f"Circular dependency discovered: {path}"
        if phase:
            message = f"{message} (phase={phase})"
        super().__init__(
            message,
            module=name,
            phase=phase,
            context={"chain": path},
        )


class StateTransitionError(LifecycleError):
    """Invalid status transition for a module."""

    def __init__(
        self,
        message: str,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if from_status:
            context["from_status"] = from_status
        if to_status:
            context["to_status"] = to_status

        super().__init__(message, context=context, **kwargs)


class HookContractError(LifecycleError):
    """A hook broke its contract, e.g. completed a phase twice."""


class ModuleLoadError(LifecycleError):
    """The loader could not import or instantiate a module."""

    def __init__(
        self,
        message: str,
        module: Optional[str] = None,
        path: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if path:
            context["path"] = path

        super().__init__(message, module=module, context=context, **kwargs)


__all__ = [
    "Severity",
    "ErrorClassification",
    "EcosystemError",
    "ConfigurationError",
    "InvalidConfigError",
    "LifecycleError",
    "DependencyError",
    "UnknownDependency",
    "CircularDependency",
    "StateTransitionError",
    "HookContractError",
    "ModuleLoadError",
]
