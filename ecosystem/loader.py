"""
Ecosystem - Module Loader.

============================================================
RESPONSIBILITY
============================================================
Turns a list of module names into a registry of new modules.

- Dotted names are imported as Python modules
- Path-like names ("./mysql", "services/db.py") are loaded from
  files relative to a root directory
- Each loaded module exposes a ``Lifecycle`` class, a Module
  subclass, instantiated with the name it was listed under

============================================================
"""

import importlib
import importlib.util
import logging
import os
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Dict, Iterable, Optional, Type, Union

from ecosystem.core.constants import LOADED_MODULE_PREFIX, LOADER_ENTRY_ATTRIBUTE
from ecosystem.core.exceptions import ModuleLoadError
from ecosystem.module import Module


logger = logging.getLogger(__name__)


def is_path_name(name: str) -> bool:
    """Check if a module name refers to a file rather than an import path."""
    return (
        name.startswith((".", "/"))
        or "/" in name
        or os.sep in name
        or name.endswith(".py")
    )


class ModuleLoader:
    """
    Loads and instantiates modules for a registry.
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        attribute: str = LOADER_ENTRY_ATTRIBUTE,
    ):
        """
        Initialize loader.

        Args:
            root: Directory that path-like names are relative to (default: cwd)
            attribute: Name of the Module subclass each loaded module exposes
        """
        self._root = Path(root) if root is not None else Path.cwd()
        self._attribute = attribute

    @property
    def root(self) -> Path:
        return self._root

    # --------------------------------------------------------
    # Import
    # --------------------------------------------------------

    def _resolve_path(self, name: str) -> Path:
        path = Path(name)
        if not path.is_absolute():
            path = self._root / path
        path = path.resolve()

        if path.is_dir():
            return path / "__init__.py"
        if path.suffix != ".py":
            return path.with_name(path.name + ".py")
        return path

    def _import_file(self, name: str) -> ModuleType:
        path = self._resolve_path(name)
        if not path.is_file():
            raise ModuleLoadError(
                f"Failed to load {name}: no such file",
                module=name,
                path=str(path),
            )

        module_name = f"{LOADED_MODULE_PREFIX}_{re.sub(r'[^0-9A-Za-z_]', '_', str(path))}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ModuleLoadError(
                f"Failed to load {name}: not importable",
                module=name,
                path=str(path),
            )

        py_module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = py_module
        try:
            spec.loader.exec_module(py_module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ModuleLoadError(
                f"Failed to load {name}: {type(e).__name__}: {e}",
                module=name,
                path=str(path),
                cause=e,
            ) from e
        return py_module

    def _import_dotted(self, name: str) -> ModuleType:
        try:
            return importlib.import_module(name)
        except Exception as e:
            raise ModuleLoadError(
                f"Failed to load {name}: {type(e).__name__}: {e}",
                module=name,
                cause=e,
            ) from e

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------

    def load_class(self, name: str) -> Type[Module]:
        """
        Import ``name`` and return its lifecycle class.

        Raises:
            ModuleLoadError: If the import fails or the class is missing
        """
        py_module = self._import_file(name) if is_path_name(name) else self._import_dotted(name)

        cls = getattr(py_module, self._attribute, None)
        if not isinstance(cls, type) or not issubclass(cls, Module):
            raise ModuleLoadError(
                f"Failed to load {name}: no Module subclass named '{self._attribute}'",
                module=name,
            )
        return cls

    def load(self, name: str) -> Module:
        """Load ``name`` and instantiate its lifecycle class."""
        cls = self.load_class(name)
        try:
            module = cls(name)
        except Exception as e:
            raise ModuleLoadError(
                f"Failed to instantiate {name}: {type(e).__name__}: {e}",
                module=name,
                cause=e,
            ) from e

        logger.debug(f"Loaded module {name} ({cls.__name__})")
        return module

    def load_all(self, names: Iterable[str]) -> Dict[str, Module]:
        """
        Load every name into a registry, in the given order.

        Raises:
            ModuleLoadError: If a name is listed twice or fails to load
        """
        registry: Dict[str, Module] = {}
        for name in names:
            if name in registry:
                raise ModuleLoadError(f"Module listed twice: {name}", module=name)
            registry[name] = self.load(name)
        return registry


def load_all(
    names: Iterable[str],
    root: Optional[Union[str, Path]] = None,
) -> Dict[str, Module]:
    """Load and instantiate every named module (see ``ModuleLoader``)."""
    return ModuleLoader(root).load_all(names)


__all__ = [
    "is_path_name",
    "ModuleLoader",
    "load_all",
]
