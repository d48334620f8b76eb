"""
Pydantic schema for application manifests.

A manifest lists the modules of an application and the config
handed to their init hooks::

    {
        "modules": ["./database", "./reporter"],
        "root": ".",
        "config": {"database": {"url": "sqlite://"}}
    }

``root`` defaults to the manifest's own directory; a relative
``root`` is taken relative to it.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ecosystem.core.exceptions import ConfigurationError


class AppManifest(BaseModel):
    """Modules to load and the config passed to every init hook."""

    modules: List[str] = Field(..., min_length=1)
    root: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AppManifest":
        """
        Read and validate a JSON manifest.

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        path = Path(path)

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read manifest {path}: {e}",
                config_key="manifest",
                cause=e,
            ) from e

        try:
            manifest = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid manifest {path}: {e}",
                config_key="manifest",
                cause=e,
            ) from e

        base_dir = path.resolve().parent
        root = base_dir if manifest.root is None else base_dir / manifest.root
        return manifest.model_copy(update={"root": str(root)})
