"""In-memory creation ledger.

Records every directory and file the scaffolder creates, in creation order,
so a fatal error can be undone in reverse.  An entry is appended *before* the
corresponding write is attempted: after a partial failure the ledger may name
a path that never materialised (rollback skips it), but it never misses one
that did.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class LedgerEntry:
    kind: EntryKind
    path: Path


@dataclass
class CreationLedger:
    """Append-only record of filesystem side effects for one invocation.

    Entries are never re-ordered.  ``pop`` hands them back newest-first and
    is only used by rollback.
    """

    _entries: list[LedgerEntry] = field(default_factory=list)

    def record_file(self, path: Path) -> LedgerEntry:
        return self._append(LedgerEntry(EntryKind.FILE, path))

    def record_directory(self, path: Path) -> LedgerEntry:
        return self._append(LedgerEntry(EntryKind.DIRECTORY, path))

    def _append(self, entry: LedgerEntry) -> LedgerEntry:
        self._entries.append(entry)
        return entry

    def pop(self) -> LedgerEntry:
        """Remove and return the most recent entry."""
        return self._entries.pop()

    def __contains__(self, path: object) -> bool:
        return any(entry.path == path for entry in self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def files(self) -> list[Path]:
        return [e.path for e in self._entries if e.kind is EntryKind.FILE]

    @property
    def directories(self) -> list[Path]:
        return [e.path for e in self._entries if e.kind is EntryKind.DIRECTORY]
