"""Synchronous file-system collaborator.

Every side effect the scaffolder performs goes through a ``Filesystem``
instance so tests can substitute one that fails at a chosen moment.  All
operations are blocking and immediately consistent.
"""

from __future__ import annotations

import os
from pathlib import Path


class Filesystem:
    """Thin ``pathlib`` wrapper used by the scaffolder, patcher and rollback."""

    # -- Queries -----------------------------------------------------------

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_writable(self, path: Path) -> bool:
        return os.access(path, os.W_OK)

    def list_dir(self, path: Path) -> list[Path]:
        """Return the entries of *path*, sorted for determinism."""
        return sorted(path.iterdir())

    def is_empty_dir(self, path: Path) -> bool:
        return path.is_dir() and not any(path.iterdir())

    # -- Reads / writes ----------------------------------------------------

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> None:
        """Write *content* to *path*; the parent directory must exist."""
        path.write_text(content, encoding="utf-8")

    def make_directory(self, path: Path) -> None:
        """Create exactly one directory level; the parent must exist."""
        path.mkdir()

    # -- Deletion ----------------------------------------------------------

    def delete_file(self, path: Path) -> None:
        path.unlink()

    def remove_dir(self, path: Path) -> None:
        """Remove an empty directory (``OSError`` if it is not empty)."""
        path.rmdir()
