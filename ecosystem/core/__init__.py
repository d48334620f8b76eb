"""
Core Module Package.

This package contains the infrastructure components that the
orchestration layer depends on.

Components:
- exceptions: Custom exception hierarchy
- status: Per-module lifecycle status tracking
- constants: Package-wide constants
"""

from ecosystem.core.status import ModuleStatus, StatusTracker, StatusTransition

__all__ = [
    "ModuleStatus",
    "StatusTracker",
    "StatusTransition",
]
