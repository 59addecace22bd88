"""Module scaffolding orchestrator.

Takes a module name plus a property specification and generates the layered
skeleton of one bounded module (entity, value objects, enums, repository
contract and implementation, mapper, routes, service provider), then wires it
into the project's registry file.

Every directory and file created during one ``generate`` call is recorded in
a ``CreationLedger`` before it is written.  Any exception rolls the ledger
back newest-first and is then re-raised.  The registry patch is the last
side-effecting step, so a patch is never left behind by a later failure.
"""

from __future__ import annotations

import asyncio
import keyword
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from domain_forge.config import MODULE_NAME_MAX_LENGTH, MODULE_NAME_PATTERN, ForgeConfig
from domain_forge.errors import (
    ArtifactConflictError,
    ArtifactWriteError,
    DuplicateArtifactError,
    ForgeError,
    InvalidModuleNameError,
    ModelCreationError,
    TargetNotWritableError,
)
from domain_forge.parser import ParseResult, parse_properties
from domain_forge.utils import (
    print_creation_summary,
    print_success,
    print_warning,
    relative_to,
    snake,
)

from .filesystem import Filesystem
from .ledger import CreationLedger
from .model_factory import ModelFactory, TemplateModelFactory
from .patcher import PatchResult, PatchStatus, Registration, SourcePatcher
from .rollback import RollbackManager
from .rules import (
    LAYER_CONTRACTS,
    LAYER_ENTITIES,
    LAYER_ENUMS,
    LAYER_INFRASTRUCTURE,
    LAYER_MAPPERS,
    LAYER_REPOSITORIES,
    LAYER_ROUTES,
    LAYER_VALUE_OBJECTS,
    EntityRules,
    derive_rules,
)
from .templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Module topology
# ---------------------------------------------------------------------------

MODULE_DIRECTORIES: tuple[tuple[str, ...], ...] = (
    ("application", "commands"),
    ("application", "dtos"),
    ("application", "handlers"),
    ("application", "services"),
    ("application", "use_cases"),
    LAYER_CONTRACTS,
    LAYER_ENTITIES,
    ("domain", "exceptions"),
    LAYER_VALUE_OBJECTS,
    ("infrastructure", "http", "controllers"),
    ("infrastructure", "http", "requests"),
    ("infrastructure", "http", "resources"),
    LAYER_ROUTES,
    LAYER_MAPPERS,
    LAYER_REPOSITORIES,
)

_NAME_RE = re.compile(MODULE_NAME_PATTERN)


# ---------------------------------------------------------------------------
# Plan / result models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlannedArtifact:
    """One rendered file; ``path`` is relative to the module directory."""

    path: Path
    template: str
    content: str


@dataclass
class ArtifactPlan:
    """Everything one invocation will create, computed without side effects."""

    module: str
    module_dir: Path
    rules: EntityRules
    registration: Registration
    directories: list[Path] = field(default_factory=list)
    artifacts: list[PlannedArtifact] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add(self, path: Path, template: str, content: str) -> PlannedArtifact:
        """Append an artifact.

        Raises:
            DuplicateArtifactError: If *path* is already planned.
        """
        if path in self.paths:
            raise DuplicateArtifactError(self.module_dir / path)
        artifact = PlannedArtifact(path=path, template=template, content=content)
        self.artifacts.append(artifact)
        return artifact

    @property
    def paths(self) -> list[Path]:
        return [a.path for a in self.artifacts]

    def get(self, path: str | Path) -> PlannedArtifact | None:
        for artifact in self.artifacts:
            if artifact.path == Path(path):
                return artifact
        return None


class ScaffoldResult(BaseModel):
    """Summary of a successful ``Scaffolder.generate`` call."""

    module: str
    module_dir: Path
    files: list[Path] = Field(default_factory=list)
    directories: list[Path] = Field(default_factory=list)
    model_path: Path | None = None
    patch_status: PatchStatus = PatchStatus.SKIPPED
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Scaffolder
# ---------------------------------------------------------------------------

class Scaffolder:
    """Generates one module per ``generate`` call.

    All collaborators are injectable; by default they are built from
    *config*.
    """

    def __init__(
        self,
        config: ForgeConfig,
        renderer: TemplateRenderer | None = None,
        filesystem: Filesystem | None = None,
        model_factory: ModelFactory | None = None,
    ) -> None:
        self.config = config
        self.fs = filesystem or Filesystem()
        self.renderer = renderer or TemplateRenderer.for_project(config)
        self.model_factory = model_factory or TemplateModelFactory(
            config, self.renderer, self.fs
        )
        self.patcher = SourcePatcher(
            self.fs, config.registry_function, config.registry_list
        )
        self.rollback_manager = RollbackManager(self.fs)

    # -- Public API --------------------------------------------------------

    @staticmethod
    def validate_name(name: str) -> None:
        """Check a module name.

        Raises:
            InvalidModuleNameError: If the name is malformed, too long or
                would produce a keyword as its package name.
        """
        if len(name) > MODULE_NAME_MAX_LENGTH:
            raise InvalidModuleNameError(
                name, f"must be at most {MODULE_NAME_MAX_LENGTH} characters"
            )
        if not _NAME_RE.match(name):
            raise InvalidModuleNameError(name, f"must match {MODULE_NAME_PATTERN}")
        package = _package_name(name)
        if keyword.iskeyword(package) or package == "self":
            raise InvalidModuleNameError(name, f"package name {package!r} is reserved")

    def plan(self, name: str, props: str | None = None) -> ArtifactPlan:
        """Validate, parse and render everything for *name* without writing."""
        self.validate_name(name)
        parsed = parse_properties(props)
        return self._build_plan(name, parsed)

    async def generate(
        self, name: str, props: str | None = None, with_model: bool = False
    ) -> ScaffoldResult:
        """Generate module *name* on disk and register it.

        Returns:
            A ``ScaffoldResult`` listing the created files and directories.

        Raises:
            ForgeError: On any fatal condition, after rolling back.
        """
        ledger = CreationLedger()
        warnings: list[str] = []
        try:
            plan, model_path, patch = await self._run(
                name, props, with_model, ledger, warnings
            )
        except Exception:
            report = self.rollback_manager.rollback(ledger)
            print_warning(
                f"Rolled back {len(report.deleted_files)} file(s) and "
                f"{len(report.deleted_directories)} directory(ies)."
            )
            raise

        # 10. Summary
        result = ScaffoldResult(
            module=name,
            module_dir=plan.module_dir,
            files=ledger.files,
            directories=ledger.directories,
            model_path=model_path,
            patch_status=patch.status,
            warnings=warnings,
        )
        self._print_summary(result)
        return result

    # -- Generation sequence -----------------------------------------------

    async def _run(
        self,
        name: str,
        props: str | None,
        with_model: bool,
        ledger: CreationLedger,
        warnings: list[str],
    ) -> tuple[ArtifactPlan, Path | None, PatchResult]:
        # 1. Module name
        self.validate_name(name)

        # 2. Target root and registry file must be writable
        root = self.config.contexts_dir
        await self._ensure_directory(ledger, root)
        if not await asyncio.to_thread(self.fs.is_writable, root):
            raise TargetNotWritableError(root)
        registry = self.config.registry_path
        if await asyncio.to_thread(self.fs.exists, registry) and not await asyncio.to_thread(
            self.fs.is_writable, registry
        ):
            raise TargetNotWritableError(registry, "registry file")

        # 3. Properties (diagnostics only) and rendering
        parsed = parse_properties(props)
        for message in parsed.warnings:
            self._warn(warnings, message)
        plan = self._build_plan(name, parsed)

        # 4. Directory topology
        await self._ensure_directory(ledger, plan.module_dir)
        for directory in plan.directories:
            await self._ensure_directory(ledger, plan.module_dir / directory)

        # 5-7. Enums, value objects, entity and infrastructure, in plan order
        for artifact in plan.artifacts:
            await self._write_file(ledger, plan.module_dir / artifact.path, artifact.content)

        # 8. Storage model
        model_path: Path | None = None
        if with_model:
            model_path = await self._create_model(name, ledger, warnings)

        # 9. Registry
        patch = await asyncio.to_thread(
            self.patcher.patch, registry, plan.registration
        )
        if patch.status is PatchStatus.SKIPPED:
            warnings.append(f"Registry file not found at {registry}; skipping registration.")
        return plan, model_path, patch

    async def _create_model(
        self, name: str, ledger: CreationLedger, warnings: list[str]
    ) -> Path | None:
        async def writer(path: Path, content: str) -> None:
            await self._write_file(ledger, path, content)

        try:
            created = await self.model_factory.create(name, writer)
        except ForgeError:
            raise
        except Exception as exc:
            raise ModelCreationError(f"Failed to create model {name}: {exc}") from exc
        if created is None:
            self._warn(warnings, f"Model {name} already exists.")
        return created

    # -- Planning ----------------------------------------------------------

    def _build_plan(self, name: str, parsed: ParseResult) -> ArtifactPlan:
        rules = derive_rules(name, parsed, self.config.import_root)
        names = rules.names
        plan = ArtifactPlan(
            module=name,
            module_dir=self.config.contexts_dir / names.package,
            rules=rules,
            registration=_registration(rules),
            warnings=list(parsed.warnings),
        )

        plan.directories = [Path(*layer) for layer in MODULE_DIRECTORIES]
        if rules.enums:
            plan.directories.append(Path(*LAYER_ENUMS))

        context = _module_context(rules)
        for rule in rules.enums:
            plan.add(
                Path(*LAYER_ENUMS, f"{rule.stem}.py"),
                "enum",
                self.renderer.render("enum", {**context, "class_name": rule.class_name, "rule": rule}),
            )
        for rule in rules.value_objects:
            plan.add(
                Path(*LAYER_VALUE_OBJECTS, f"{rule.stem}.py"),
                "value-object",
                self.renderer.render(
                    "value-object", {**context, "class_name": rule.class_name, "rule": rule}
                ),
            )

        entity_template = "entity" if rules.properties else "entity-simple"
        stem = names.package
        plan.add(
            Path(*LAYER_ENTITIES, f"{stem}.py"),
            entity_template,
            self.renderer.render(entity_template, context),
        )
        plan.add(
            Path(*LAYER_CONTRACTS, f"{stem}_repository_contract.py"),
            "repository-contract",
            self.renderer.render("repository-contract", context),
        )
        plan.add(
            Path(*LAYER_REPOSITORIES, f"{stem}_repository.py"),
            "repository",
            self.renderer.render("repository", context),
        )
        if rules.properties:
            plan.add(
                Path(*LAYER_MAPPERS, f"{stem}_mapper.py"),
                "mapper",
                self.renderer.render("mapper", context),
            )
        plan.add(
            Path(*LAYER_ROUTES, f"{stem}.py"),
            "routes",
            self.renderer.render("routes", context),
        )
        plan.add(
            Path(*LAYER_INFRASTRUCTURE, f"{stem}_service_provider.py"),
            "service-provider",
            self.renderer.render("service-provider", context),
        )
        return plan

    # -- Ledgered side effects ---------------------------------------------

    async def _ensure_directory(self, ledger: CreationLedger, path: Path) -> list[Path]:
        """Create *path* and any missing ancestors, recording each new one."""
        missing: list[Path] = []
        current = path
        while not await asyncio.to_thread(self.fs.is_dir, current):
            if await asyncio.to_thread(self.fs.exists, current):
                raise ArtifactWriteError(current, NotADirectoryError(str(current)))
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent

        for directory in reversed(missing):
            ledger.record_directory(directory)
            try:
                await asyncio.to_thread(self.fs.make_directory, directory)
            except OSError as exc:
                raise ArtifactWriteError(directory, exc) from exc
        return list(reversed(missing))

    async def _write_file(self, ledger: CreationLedger, path: Path, content: str) -> None:
        await self._ensure_directory(ledger, path.parent)
        if await asyncio.to_thread(self.fs.exists, path):
            raise ArtifactConflictError(path)
        ledger.record_file(path)
        try:
            await asyncio.to_thread(self.fs.write_text, path, content)
        except OSError as exc:
            raise ArtifactWriteError(path, exc) from exc

    # -- Reporting ---------------------------------------------------------

    @staticmethod
    def _warn(warnings: list[str], message: str) -> None:
        warnings.append(message)
        print_warning(message)

    def _print_summary(self, result: ScaffoldResult) -> None:
        root = self.config.project_root
        print_creation_summary(result.directories, result.files, root)
        registry = relative_to(self.config.registry_path, root)
        if result.patch_status is PatchStatus.APPLIED:
            print_success(f"Registered {result.module} in {registry}")
        elif result.patch_status is PatchStatus.ALREADY_PRESENT:
            print_success(f"{result.module} was already registered in {registry}")
        print_success(f"Module {result.module} created successfully.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _package_name(name: str) -> str:
    return snake(name)


def _module_context(rules: EntityRules) -> dict[str, Any]:
    """Template context shared by every artifact of one module."""
    names = rules.names
    stem = names.package
    return {
        "module": names.name,
        "names": names,
        "rules": rules,
        "entity_import": names.import_path(LAYER_ENTITIES, stem),
        "contract_import": names.import_path(LAYER_CONTRACTS, f"{stem}_repository_contract"),
        "repository_import": names.import_path(LAYER_REPOSITORIES, f"{stem}_repository"),
        "routes_import": names.import_path(LAYER_ROUTES, stem),
        "provider_import": names.import_path(LAYER_INFRASTRUCTURE, f"{stem}_service_provider"),
    }


def _registration(rules: EntityRules) -> Registration:
    """Lines one module contributes to the registry file."""
    context = _module_context(rules)
    module = rules.names.name
    contract = f"{module}RepositoryContract"
    repository = f"{module}Repository"
    provider = f"{module}ServiceProvider"
    return Registration(
        imports=(
            f"from {context['contract_import']} import {contract}",
            f"from {context['repository_import']} import {repository}",
        ),
        statement=f"container.bind({contract}, {repository})",
        entry_imports=(f"from {context['provider_import']} import {provider}",),
        entry=provider,
    )
