"""Shared pytest fixtures for the Domain Forge test suite.

Provides reusable fixtures for:
- Temporary project trees with a registry file
- Registry file variants (registration function, list literal)
- Pre-built configuration and scaffolder instances
- Filesystem snapshots for rollback assertions
- Fault-injecting Filesystem subclasses
"""

from __future__ import annotations

from pathlib import Path

import pytest

from domain_forge.config import ForgeConfig
from domain_forge.scaffolder import Filesystem, Scaffolder


# ---------------------------------------------------------------------------
# Registry file contents
# ---------------------------------------------------------------------------

FUNCTION_REGISTRY = '''"""Service registry: every module binds its contracts here."""

from __future__ import annotations

from app.audit import AuditLog, AuditLogContract


def register(container):
    container.bind(AuditLogContract, AuditLog)
'''

LIST_REGISTRY = '''"""Service providers loaded at boot."""

from __future__ import annotations

from app.providers.app_service_provider import AppServiceProvider

PROVIDERS = [
    AppServiceProvider
]
'''

INVOICE_PROPS = "id:string,total:float,status:enum[draft|sent|paid]"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Temporary project with ``bootstrap/providers.py`` (function variant)."""
    root = tmp_path / "project"
    (root / "bootstrap").mkdir(parents=True)
    (root / "bootstrap" / "providers.py").write_text(FUNCTION_REGISTRY, encoding="utf-8")
    yield root


@pytest.fixture
def registry_path(project_root: Path) -> Path:
    return project_root / "bootstrap" / "providers.py"


@pytest.fixture
def forge_config(project_root: Path) -> ForgeConfig:
    return ForgeConfig(project_root=project_root)


@pytest.fixture
def scaffolder(forge_config: ForgeConfig) -> Scaffolder:
    return Scaffolder(forge_config)


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def snapshot(root: Path) -> dict[str, str | None]:
    """Map every path under *root* to its text (``None`` for directories)."""
    tree: dict[str, str | None] = {}
    for path in sorted(root.rglob("*")):
        key = path.relative_to(root).as_posix()
        tree[key] = path.read_text(encoding="utf-8") if path.is_file() else None
    return tree


@pytest.fixture
def take_snapshot():
    """Return the ``snapshot`` helper as a fixture."""
    return snapshot


# ---------------------------------------------------------------------------
# Fault injection
# ---------------------------------------------------------------------------

class FailingFilesystem(Filesystem):
    """Raises ``OSError`` on the n-th call of a chosen operation.

    Args:
        operation: Name of the ``Filesystem`` method to sabotage.
        fail_at: 1-based call number that raises.
    """

    def __init__(self, operation: str, fail_at: int) -> None:
        self.operation = operation
        self.fail_at = fail_at
        self.calls = 0

    def _tick(self, operation: str, path: Path) -> None:
        if operation != self.operation:
            return
        self.calls += 1
        if self.calls == self.fail_at:
            raise OSError(f"injected {operation} failure on {path}")

    def write_text(self, path: Path, content: str) -> None:
        self._tick("write_text", path)
        super().write_text(path, content)

    def make_directory(self, path: Path) -> None:
        self._tick("make_directory", path)
        super().make_directory(path)


class CountingFilesystem(Filesystem):
    """Records every path written through ``write_text``."""

    def __init__(self) -> None:
        self.writes: list[Path] = []

    def write_text(self, path: Path, content: str) -> None:
        self.writes.append(path)
        super().write_text(path, content)


@pytest.fixture
def failing_fs():
    """Factory: ``failing_fs("write_text", 3)`` fails on the third write."""
    return FailingFilesystem


@pytest.fixture
def counting_fs() -> CountingFilesystem:
    return CountingFilesystem()


@pytest.fixture
def function_registry() -> str:
    return FUNCTION_REGISTRY


@pytest.fixture
def list_registry() -> str:
    return LIST_REGISTRY


@pytest.fixture
def invoice_props() -> str:
    return INVOICE_PROPS
