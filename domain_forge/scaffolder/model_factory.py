"""Storage-model collaborator invoked by ``domain-forge make --with-model``."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

from domain_forge.config import ForgeConfig
from domain_forge.utils import snake

from .filesystem import Filesystem
from .templates import TemplateRenderer


ArtifactWriter = Callable[[Path, str], Awaitable[None]]


class ModelFactory(Protocol):
    """Creates the storage model for a module, at most once."""

    def model_path(self, name: str) -> Path: ...

    async def create(self, name: str, writer: ArtifactWriter) -> Path | None:
        """Create the model through *writer*.

        Returns the created path, or ``None`` when a model of that name
        already exists (nothing is written).
        """
        ...


class TemplateModelFactory:
    """Renders the ``model`` stub (a Pydantic model) into ``models_path``."""

    def __init__(
        self,
        config: ForgeConfig,
        renderer: TemplateRenderer,
        filesystem: Filesystem | None = None,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.fs = filesystem or Filesystem()

    def model_path(self, name: str) -> Path:
        return self.config.models_dir / f"{snake(name)}.py"

    async def create(self, name: str, writer: ArtifactWriter) -> Path | None:
        path = self.model_path(name)
        if await asyncio.to_thread(self.fs.exists, path):
            return None
        content = self.renderer.render("model", {"module": name})
        await writer(path, content)
        return path
