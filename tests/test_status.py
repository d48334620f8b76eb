"""
Tests for module status tracking.

Tests cover:
- Lifecycle ordering of statuses
- Allowed and forbidden transitions
- Transition history
"""

import pytest

from ecosystem.core.exceptions import StateTransitionError
from ecosystem.core.status import (
    VALID_TRANSITIONS,
    ModuleStatus,
    StatusTracker,
)


# =============================================================
# TEST: ModuleStatus
# =============================================================

class TestModuleStatus:
    """Test lifecycle ordering helpers."""

    def test_statuses_are_in_lifecycle_order(self):
        """Ranks follow new -> stopped."""
        ranks = [status.rank for status in ModuleStatus]
        assert ranks == sorted(ranks)
        assert ModuleStatus.NEW.rank == 0
        assert ModuleStatus.STOPPED.rank == len(ModuleStatus) - 1

    def test_is_at_or_past(self):
        assert ModuleStatus.STARTED.is_at_or_past(ModuleStatus.INITIALISED)
        assert ModuleStatus.INITIALISED.is_at_or_past(ModuleStatus.INITIALISED)
        assert not ModuleStatus.STARTING.is_at_or_past(ModuleStatus.STARTED)

    def test_in_progress_statuses(self):
        in_progress = {s for s in ModuleStatus if s.is_in_progress}
        assert in_progress == {
            ModuleStatus.INITIALISING,
            ModuleStatus.STARTING,
            ModuleStatus.STOPPING,
        }

    def test_only_stopped_is_terminal(self):
        assert [s for s in ModuleStatus if s.is_terminal] == [ModuleStatus.STOPPED]
        assert VALID_TRANSITIONS[ModuleStatus.STOPPED] == set()


# =============================================================
# TEST: StatusTracker
# =============================================================

class TestStatusTracker:
    """Test transition validation and history."""

    def test_starts_new(self):
        tracker = StatusTracker("foo")
        assert tracker.status == ModuleStatus.NEW
        assert tracker.last_transition is None

    def test_full_lifecycle(self):
        """A module can walk the whole lifecycle in order."""
        tracker = StatusTracker("foo")
        for status in list(ModuleStatus)[1:]:
            tracker.transition_to(status)

        assert tracker.status == ModuleStatus.STOPPED
        assert len(tracker.get_history(limit=100)) == len(ModuleStatus) - 1

    def test_start_requires_init(self):
        """new -> starting is rejected."""
        tracker = StatusTracker("foo")

        with pytest.raises(StateTransitionError) as exc_info:
            tracker.transition_to(ModuleStatus.STARTING)

        assert exc_info.value.module == "foo"
        assert exc_info.value.context["from_status"] == "new"
        assert exc_info.value.context["to_status"] == "starting"
        assert tracker.status == ModuleStatus.NEW

    def test_stop_allowed_without_start(self):
        """Modules that never started may still be stopped."""
        tracker = StatusTracker("foo")
        tracker.transition_to(ModuleStatus.STOPPING)
        tracker.transition_to(ModuleStatus.STOPPED)
        assert tracker.status == ModuleStatus.STOPPED

    def test_no_restart_after_stop(self):
        tracker = StatusTracker("foo", initial_status=ModuleStatus.STOPPED)
        assert not tracker.can_transition_to(ModuleStatus.INITIALISING)

        with pytest.raises(StateTransitionError):
            tracker.transition_to(ModuleStatus.STARTING)

    def test_history_is_bounded(self):
        tracker = StatusTracker("foo", max_history=2)
        tracker.transition_to(ModuleStatus.INITIALISING)
        tracker.transition_to(ModuleStatus.INITIALISED)
        tracker.transition_to(ModuleStatus.STARTING)

        history = tracker.get_history()
        assert len(history) == 2
        assert history[0].from_status == ModuleStatus.INITIALISING
        assert history[-1].to_status == ModuleStatus.STARTING

    def test_transition_to_dict(self):
        tracker = StatusTracker("foo")
        transition = tracker.transition_to(ModuleStatus.INITIALISING)

        data = transition.to_dict()
        assert data["module"] == "foo"
        assert data["from_status"] == "new"
        assert data["to_status"] == "initialising"
        assert "timestamp" in data
