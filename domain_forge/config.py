"""Domain Forge configuration.

Centralised, typed configuration for the module scaffolder. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


CONFIG_FILENAME = "domain-forge.json"

MODULE_NAME_PATTERN = r"^[A-Z][A-Za-z0-9]*$"
MODULE_NAME_MAX_LENGTH = 50


class ForgeConfig(BaseModel):
    """Global Domain Forge configuration.

    Every relative path is resolved against ``project_root``.  Instances are
    typically created once by the CLI entry point and then passed to the
    ``Scaffolder``.
    """

    project_root: Path = Field(default=Path("."))
    contexts_path: str = Field(
        default="src/contexts", description="Where generated modules are placed"
    )
    namespace: str | None = Field(
        default=None,
        description="Dotted import root of generated modules (defaults to contexts_path)",
    )
    registry_file: str = Field(
        default="bootstrap/providers.py",
        description="Aggregator file patched with each new module",
    )
    registry_function: str = Field(default="register")
    registry_list: str = Field(default="PROVIDERS")
    stubs_path: str = Field(
        default="stubs/domain_forge", description="Project-local stub overrides"
    )
    package_stubs_dir: Path | None = Field(
        default=None, description="Shared package-level stub overrides"
    )
    models_path: str = Field(
        default="app/models", description="Where storage models are created"
    )

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def contexts_dir(self) -> Path:
        """Base target directory for generated modules."""
        return self.project_root / self.contexts_path

    @property
    def registry_path(self) -> Path:
        """Absolute-ish path of the aggregator registry file."""
        return self.project_root / self.registry_file

    @property
    def stubs_dir(self) -> Path:
        """Project-local stub override directory."""
        return self.project_root / self.stubs_path

    @property
    def models_dir(self) -> Path:
        """Directory for storage models created by the model collaborator."""
        return self.project_root / self.models_path

    @property
    def import_root(self) -> str:
        """Dotted import prefix of generated modules, e.g. ``src.contexts``."""
        if self.namespace:
            return self.namespace.strip(".")
        return ".".join(part for part in Path(self.contexts_path).parts if part not in (".", "/"))

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<project_root>/domain-forge.json``.

        Returns:
            The path where the file was written.
        """
        target = path or (self.project_root / CONFIG_FILENAME)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ForgeConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, **overrides: Any) -> "ForgeConfig":
        """Build a ``ForgeConfig`` from environment variables.

        Recognised variables (all optional):
            DOMAIN_FORGE_PROJECT_ROOT, DOMAIN_FORGE_CONTEXTS_PATH,
            DOMAIN_FORGE_NAMESPACE, DOMAIN_FORGE_REGISTRY_FILE,
            DOMAIN_FORGE_REGISTRY_FUNCTION, DOMAIN_FORGE_REGISTRY_LIST,
            DOMAIN_FORGE_STUBS_PATH, DOMAIN_FORGE_PACKAGE_STUBS,
            DOMAIN_FORGE_MODELS_PATH.

        Keyword *overrides* take precedence over the environment.
        """
        env_map = {
            "project_root": "DOMAIN_FORGE_PROJECT_ROOT",
            "contexts_path": "DOMAIN_FORGE_CONTEXTS_PATH",
            "namespace": "DOMAIN_FORGE_NAMESPACE",
            "registry_file": "DOMAIN_FORGE_REGISTRY_FILE",
            "registry_function": "DOMAIN_FORGE_REGISTRY_FUNCTION",
            "registry_list": "DOMAIN_FORGE_REGISTRY_LIST",
            "stubs_path": "DOMAIN_FORGE_STUBS_PATH",
            "package_stubs_dir": "DOMAIN_FORGE_PACKAGE_STUBS",
            "models_path": "DOMAIN_FORGE_MODELS_PATH",
        }
        kwargs: dict[str, Any] = {}
        for field_name, variable in env_map.items():
            if os.environ.get(variable):
                kwargs[field_name] = os.environ[variable]
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)
