"""Exception hierarchy for Domain Forge.

Every fatal condition raised while scaffolding a module derives from
``ForgeError``.  Diagnostics (malformed property tokens and the like) are
never raised; they are collected as warnings on the result models instead.
"""

from __future__ import annotations

from pathlib import Path


class ForgeError(Exception):
    """Base class for fatal scaffolding errors."""


class InvalidModuleNameError(ForgeError):
    """Raised when a module name fails format or length validation."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid module name {name!r}: {reason}")


class TargetNotWritableError(ForgeError):
    """Raised when the target root (or the registry file) cannot be written."""

    def __init__(self, path: Path, detail: str = "") -> None:
        self.path = path
        message = f"No write permissions for: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class TemplateNotFoundError(ForgeError):
    """Raised when no content provider knows a template identifier."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"No template found for {template_id!r}")


class DuplicateArtifactError(ForgeError):
    """Raised when two artifacts of one invocation target the same path."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Artifact path generated twice: {path}")


class ArtifactConflictError(ForgeError):
    """Raised when a target file already exists before it is written."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Refusing to overwrite existing file: {path}")


class ArtifactWriteError(ForgeError):
    """Raised when a directory or file could not be created."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        super().__init__(f"Failed to create {path}: {cause}")


class PatchAnchorError(ForgeError):
    """Raised when the registry file has no recognisable insertion anchor."""

    def __init__(self, path: Path, anchor: str) -> None:
        self.path = path
        self.anchor = anchor
        super().__init__(f"Could not locate {anchor} in {path}")


class ModelCreationError(ForgeError):
    """Raised when the storage-model collaborator fails."""


class RegistryReadError(ForgeError):
    """Raised when the registry file exists but cannot be read as text."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        super().__init__(f"Could not read registry file {path}: {cause}")


class TemplateRenderError(ForgeError):
    """Raised when a resolved stub cannot be loaded, parsed or rendered."""

    def __init__(self, template_id: str, cause: BaseException) -> None:
        self.template_id = template_id
        super().__init__(f"Template {template_id!r} could not be rendered: {cause}")
