"""Integration tests for the parse-then-scaffold pipeline.

These tests run the real parser, renderer, scaffolder and patcher against a
temporary project and then import the generated module to check that the
artifacts are consistent with each other.

No external services are required; ``fastapi`` is not imported because the
routes and provider artifacts are only checked textually.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest

from domain_forge.config import ForgeConfig
from domain_forge.errors import ArtifactConflictError
from domain_forge.scaffolder import PatchStatus, Scaffolder


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def importable_config(project_root: Path, monkeypatch) -> ForgeConfig:
    """Config whose generated code is importable as ``e2e_app.contexts``."""
    monkeypatch.syspath_prepend(str(project_root))
    yield ForgeConfig(project_root=project_root, contexts_path="e2e_app/contexts")
    for name in [m for m in sys.modules if m == "e2e_app" or m.startswith("e2e_app.")]:
        del sys.modules[name]


def _load(module: str):
    return importlib.import_module(f"e2e_app.contexts.invoice.{module}")


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestInvoiceModule:
    """The canonical Invoice example."""

    async def test_generates_and_registers(
        self, forge_config, registry_path, invoice_props
    ):
        before = registry_path.read_text(encoding="utf-8").splitlines()

        result = await Scaffolder(forge_config).generate("Invoice", invoice_props)

        module_dir = forge_config.contexts_dir / "invoice"
        total = module_dir / "domain" / "value_objects" / "invoice_total.py"
        status = module_dir / "domain" / "enums" / "invoice_status.py"
        entity = module_dir / "domain" / "entities" / "invoice.py"
        assert total in result.files
        assert status in result.files
        assert "class InvoiceTotal:" in total.read_text(encoding="utf-8")

        status_text = status.read_text(encoding="utf-8")
        assert status_text.count(' = "') == 3
        assert status_text.index("DRAFT") < status_text.index("SENT") < status_text.index("PAID")

        entity_text = entity.read_text(encoding="utf-8")
        create = entity_text[entity_text.index("def create("):entity_text.index("def from_primitives(")]
        assert "id: InvoiceId" not in create
        assert "id=InvoiceId.generate()," in create

        after = registry_path.read_text(encoding="utf-8").splitlines()
        added = [line for line in after if line not in before]
        assert result.patch_status is PatchStatus.APPLIED
        assert added == [
            "from src.contexts.invoice.domain.contracts.invoice_repository_contract "
            "import InvoiceRepositoryContract",
            "from src.contexts.invoice.infrastructure.persistence.repositories.invoice_repository "
            "import InvoiceRepository",
            "    container.bind(InvoiceRepositoryContract, InvoiceRepository)",
        ]

    async def test_second_run_conflicts_and_keeps_first(
        self, forge_config, project_root, registry_path, invoice_props, take_snapshot
    ):
        scaffolder = Scaffolder(forge_config)
        await scaffolder.generate("Invoice", invoice_props)
        after_first = take_snapshot(project_root)

        with pytest.raises(ArtifactConflictError):
            await scaffolder.generate("Invoice", invoice_props)

        assert take_snapshot(project_root) == after_first


@pytest.mark.integration
class TestGeneratedCodeRuns:
    """Import the generated module and exercise it."""

    async def test_entity_round_trip(self, importable_config):
        props = "id:string,total:float,status:enum[draft|sent|paid],password:string,paid_at:?timestamp"
        await Scaffolder(importable_config).generate("Invoice", props)

        Invoice = _load("domain.entities.invoice").Invoice
        InvoiceTotal = _load("domain.value_objects.invoice_total").InvoiceTotal
        InvoiceStatus = _load("domain.enums.invoice_status").InvoiceStatus
        InvoicePassword = _load("domain.value_objects.invoice_password").InvoicePassword
        InvoicePaidAt = _load("domain.value_objects.invoice_paid_at").InvoicePaidAt

        assert InvoiceStatus.all() == [InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.PAID]
        assert InvoiceStatus.from_nullable_string(None) is None
        assert InvoiceStatus.from_string("paid").to_string() == "paid"

        invoice = Invoice.create(
            total=InvoiceTotal.from_float(12.5),
            status=InvoiceStatus.from_string("sent"),
            password=InvoicePassword.hash("s3cret"),
            paid_at=InvoicePaidAt.from_nullable_string(None),
        )
        assert len(invoice.id.value) == 36
        assert invoice.password.value.startswith("pbkdf2_sha256$")

        primitives = invoice.to_primitives()
        assert primitives["total"] == 12.5
        assert primitives["status"] == "sent"
        assert primitives["paid_at"] is None

        restored = Invoice.from_primitives(**primitives)
        assert restored.to_primitives() == primitives

    async def test_mapper_and_repository(self, importable_config):
        await Scaffolder(importable_config).generate("Invoice", "id:string,total:float,note:?string")

        Invoice = _load("domain.entities.invoice").Invoice
        InvoiceMapper = _load("infrastructure.persistence.mappers.invoice_mapper").InvoiceMapper
        InvoiceRepository = _load(
            "infrastructure.persistence.repositories.invoice_repository"
        ).InvoiceRepository
        contract = _load("domain.contracts.invoice_repository_contract").InvoiceRepositoryContract

        invoice = InvoiceMapper.to_domain({"id": "abc", "total": 3.0})
        assert isinstance(invoice, Invoice)
        assert invoice.note.value is None
        assert InvoiceMapper.to_persistence(invoice) == {"total": 3.0, "note": None}

        repository = InvoiceRepository()
        assert isinstance(repository, contract)
        repository.save(invoice)
        assert repository.all() == [invoice]

    async def test_int_identity_is_assigned_by_storage(self, importable_config):
        await Scaffolder(importable_config).generate("Invoice", "id:int,total:float")
        InvoiceId = _load("domain.value_objects.invoice_id").InvoiceId
        with pytest.raises(RuntimeError, match="must be assigned by storage"):
            InvoiceId.generate()
