"""
Tests for the module loader.

Tests cover:
- File and dotted-name loading
- Registry ordering and duplicate detection
- Load failures
"""

from pathlib import Path

import pytest

from ecosystem.core.exceptions import ModuleLoadError
from ecosystem.core.status import ModuleStatus
from ecosystem.engine import Engine
from ecosystem.loader import ModuleLoader, is_path_name, load_all


EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"

LIFECYCLE_SOURCE = '''
from ecosystem import Module


class Lifecycle(Module):
    depends_on = {deps!r}

    def init(self, config, registry, next):
        self.config = config
        next()
'''


def write_module(directory, filename, deps=()):
    path = directory / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(LIFECYCLE_SOURCE.format(deps=tuple(deps)))
    return path


# =============================================================
# TEST: Name classification
# =============================================================

class TestIsPathName:
    @pytest.mark.parametrize("name", ["./mysql", "/abs/mysql", "services/db", "db.py"])
    def test_paths(self, name):
        assert is_path_name(name)

    @pytest.mark.parametrize("name", ["mysql", "pkg.services.mysql"])
    def test_dotted(self, name):
        assert not is_path_name(name)


# =============================================================
# TEST: ModuleLoader
# =============================================================

class TestModuleLoader:
    """Test loading modules into a registry."""

    def test_load_relative_files(self, tmp_path):
        write_module(tmp_path, "mysql.py")
        write_module(tmp_path, "services/app.py", deps=["mysql"])

        registry = load_all(["./services/app", "./mysql.py"], root=tmp_path)

        assert list(registry) == ["./services/app", "./mysql.py"]
        assert registry["./services/app"].name == "./services/app"
        assert registry["./services/app"].declared_dependencies() == ("mysql",)
        assert all(m.status == ModuleStatus.NEW for m in registry.values())

    def test_load_package_directory(self, tmp_path):
        write_module(tmp_path, "cache/__init__.py")

        registry = ModuleLoader(tmp_path).load_all(["./cache"])

        assert registry["./cache"].name == "./cache"

    def test_load_dotted_name(self, tmp_path, monkeypatch):
        write_module(tmp_path, "loader_pkg/__init__.py")
        write_module(tmp_path, "loader_pkg/store.py")
        monkeypatch.syspath_prepend(str(tmp_path))

        registry = load_all(["loader_pkg.store"])

        assert registry["loader_pkg.store"].name == "loader_pkg.store"

    def test_loaded_registry_runs(self, tmp_path):
        write_module(tmp_path, "mysql.py")
        write_module(tmp_path, "app.py", deps=["mysql"])

        registry = load_all(["./app", "./mysql"], root=tmp_path)
        Engine(registry).init_all({"k": 1})

        assert registry["./app"].dependency("mysql") is registry["./mysql"]
        assert registry["./app"].config == {"k": 1}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ModuleLoadError) as exc_info:
            load_all(["./missing"], root=tmp_path)

        assert exc_info.value.module == "./missing"
        assert "no such file" in str(exc_info.value)

    def test_missing_dotted_module(self):
        with pytest.raises(ModuleLoadError) as exc_info:
            load_all(["no_such_package_anywhere"])

        assert exc_info.value.context["cause_type"] == "ModuleNotFoundError"

    def test_import_error_in_file(self, tmp_path):
        (tmp_path / "broken.py").write_text("raise RuntimeError('bad module')\n")

        with pytest.raises(ModuleLoadError) as exc_info:
            load_all(["./broken"], root=tmp_path)

        assert "bad module" in str(exc_info.value)

    def test_missing_lifecycle_class(self, tmp_path):
        (tmp_path / "empty.py").write_text("VALUE = 1\n")

        with pytest.raises(ModuleLoadError) as exc_info:
            load_all(["./empty"], root=tmp_path)

        assert "Lifecycle" in str(exc_info.value)

    def test_lifecycle_must_be_module(self, tmp_path):
        (tmp_path / "wrong.py").write_text("class Lifecycle:\n    pass\n")

        with pytest.raises(ModuleLoadError):
            load_all(["./wrong"], root=tmp_path)

    def test_custom_attribute(self, tmp_path):
        (tmp_path / "custom.py").write_text(
            "from ecosystem import Module\n\n\nclass Service(Module):\n    pass\n"
        )

        registry = ModuleLoader(tmp_path, attribute="Service").load_all(["./custom"])

        assert type(registry["./custom"]).__name__ == "Service"

    def test_duplicate_names(self, tmp_path):
        write_module(tmp_path, "mysql.py")

        with pytest.raises(ModuleLoadError, match="listed twice"):
            load_all(["./mysql", "./mysql"], root=tmp_path)


# =============================================================
# TEST: Example services
# =============================================================

class TestExampleServices:
    """Run the bundled database-backed example."""

    def test_database_and_reporter(self):
        registry = load_all(["./reporter", "./database"], root=EXAMPLES_DIR / "services")
        engine = Engine(registry)

        engine.init_all({"database": {"url": "sqlite://"}}).start_all()

        reporter = registry["./reporter"]
        database = registry["./database"]
        assert reporter.dependency("database") is database
        assert reporter.report == {"ping": 1}

        engine.stop_all()

        assert database.connection is None
        assert all(m.status == ModuleStatus.STOPPED for m in registry.values())
