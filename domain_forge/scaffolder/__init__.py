"""Domain Forge scaffolder -- generates one layered module per invocation.

Quick usage::

    from domain_forge.config import ForgeConfig
    from domain_forge.scaffolder import Scaffolder

    scaffolder = Scaffolder(ForgeConfig(project_root=Path("/path/to/project")))
    plan = scaffolder.plan("Invoice", "id:string,total:float")
    result = await scaffolder.generate("Invoice", "id:string,total:float")
"""

from domain_forge.scaffolder.filesystem import Filesystem
from domain_forge.scaffolder.generator import (
    ArtifactPlan,
    PlannedArtifact,
    ScaffoldResult,
    Scaffolder,
)
from domain_forge.scaffolder.ledger import CreationLedger, EntryKind, LedgerEntry
from domain_forge.scaffolder.model_factory import ModelFactory, TemplateModelFactory
from domain_forge.scaffolder.patcher import (
    PatchResult,
    PatchStatus,
    Registration,
    RegistryDocument,
    SourcePatcher,
)
from domain_forge.scaffolder.rollback import RollbackManager, RollbackReport
from domain_forge.scaffolder.rules import EntityRules, PropertyRule, derive_rules
from domain_forge.scaffolder.templates import (
    BuiltinProvider,
    DirectoryProvider,
    TemplateRenderer,
    publish_stubs,
)

__all__ = [
    "ArtifactPlan",
    "BuiltinProvider",
    "CreationLedger",
    "DirectoryProvider",
    "EntityRules",
    "EntryKind",
    "Filesystem",
    "LedgerEntry",
    "ModelFactory",
    "PatchResult",
    "PatchStatus",
    "PlannedArtifact",
    "PropertyRule",
    "Registration",
    "RegistryDocument",
    "RollbackManager",
    "RollbackReport",
    "ScaffoldResult",
    "Scaffolder",
    "SourcePatcher",
    "TemplateModelFactory",
    "TemplateRenderer",
    "derive_rules",
    "publish_stubs",
]
