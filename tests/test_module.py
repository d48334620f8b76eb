"""
Tests for the Module base class.

Tests cover:
- Hook capture
- Dependency declaration and lookup
- Completion listeners
"""

import gc
import logging

import pytest

from ecosystem.core.exceptions import ConfigurationError, StateTransitionError
from ecosystem.core.status import ModuleStatus
from ecosystem.models import Phase
from ecosystem.module import HookSet, Module


class Plain(Module):
    pass


class StartsOnly(Module):
    def start(self, next):
        next()


class Declared(Module):
    depends_on = ("foo", "./lib/bar")


class Dynamic(Module):
    def dependencies(self):
        return ["foo"]


# =============================================================
# TEST: Hooks
# =============================================================

class TestHookSet:
    """Test hook capture at construction."""

    def test_plain_module_has_no_hooks(self):
        hooks = Plain("plain").hooks
        assert hooks == HookSet()
        assert hooks.implemented == []

    def test_captures_implemented_hooks(self):
        hooks = StartsOnly("s").hooks
        assert hooks.implemented == ["start"]
        assert hooks.for_phase(Phase.START) is not None
        assert hooks.for_phase(Phase.INIT) is None


# =============================================================
# TEST: Dependencies
# =============================================================

class TestDependencies:
    """Test declaration and resolved lookup."""

    def test_class_attribute(self):
        assert Declared("d").declared_dependencies() == ("foo", "./lib/bar")

    def test_overridden_method(self):
        assert Dynamic("d").declared_dependencies() == ("foo",)

    def test_no_dependencies(self):
        assert Plain("p").declared_dependencies() == ()

    def test_string_is_rejected(self):
        """A bare string would otherwise declare one dependency per character."""
        module = Plain("p")
        module.depends_on = "foo"

        with pytest.raises(ConfigurationError):
            module.declared_dependencies()

    def test_dependency_lookup_by_suffix(self):
        module = Declared("d")
        foo, bar = Plain("foo"), Plain("./lib/bar")
        module.bind_dependencies({"foo": foo, "./lib/bar": bar})

        assert module.dependency("foo") is foo
        assert module.dependency("bar") is bar
        assert module.dependency("./lib/bar") is bar
        assert module.dependency("baz") is None

    def test_dependency_before_resolution(self):
        assert Declared("d").dependency("foo") is None

    def test_resolved_dependencies_read_only(self):
        module = Declared("d")
        module.bind_dependencies({"foo": Plain("foo")})

        with pytest.raises(TypeError):
            module.resolved_dependencies["bar"] = Plain("bar")

    def test_bind_only_once(self):
        module = Declared("d")
        module.bind_dependencies({})

        with pytest.raises(StateTransitionError):
            module.bind_dependencies({})

    def test_dependents_are_weak(self):
        target = Plain("target")
        dependent = Plain("dependent")
        target.add_dependent(dependent)
        assert target.dependents == [dependent]

        del dependent
        gc.collect()
        assert target.dependents == []


# =============================================================
# TEST: Listeners
# =============================================================

class TestListeners:
    """Test completion notifications."""

    def test_on_and_notify(self):
        module = Plain("p")
        calls = []

        module.on("init", lambda: calls.append("init")).on(Phase.STOP, lambda: calls.append("stop"))
        module.notify(Phase.INIT)
        module.notify(Phase.START)
        module.notify(Phase.STOP)

        assert calls == ["init", "stop"]

    def test_off(self):
        module = Plain("p")
        calls = []
        listener = lambda: calls.append(1)  # noqa: E731

        module.on("start", listener)
        module.off("start", listener)
        module.notify(Phase.START)

        assert calls == []

    def test_unknown_event(self):
        with pytest.raises(ValueError):
            Plain("p").on("restart", lambda: None)

    def test_listener_error_is_logged(self, caplog):
        """A failing listener does not stop the others."""
        module = Plain("p")
        calls = []

        def broken():
            raise RuntimeError("boom")

        module.on("init", broken).on("init", lambda: calls.append("ok"))

        with caplog.at_level(logging.ERROR, logger="ecosystem.module"):
            module.notify(Phase.INIT)

        assert calls == ["ok"]
        assert "boom" in caplog.text


# =============================================================
# TEST: Status
# =============================================================

class TestModuleStatus:
    def test_new_module(self):
        module = Plain("p")
        assert module.status == ModuleStatus.NEW
        assert repr(module) == "<Plain 'p' status=new>"

    def test_transition_history(self):
        module = Plain("p")
        module.transition_to(ModuleStatus.INITIALISING)

        history = module.get_status_history()
        assert [t.to_status for t in history] == [ModuleStatus.INITIALISING]
