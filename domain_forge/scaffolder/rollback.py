"""Best-effort reversal of a failed scaffolding run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from domain_forge.utils import print_warning

from .filesystem import Filesystem
from .ledger import CreationLedger, EntryKind


@dataclass
class RollbackReport:
    """What rollback removed, what it had to leave behind and why."""

    deleted_files: list[Path] = field(default_factory=list)
    deleted_directories: list[Path] = field(default_factory=list)
    kept_directories: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class RollbackManager:
    """Consumes a ``CreationLedger`` newest-first.

    Files are deleted if they still exist.  Directories are removed only
    when empty at that moment, so content not created by this run is never
    destroyed.  A failing deletion is reported and skipped; it never stops
    the remaining entries from being processed.
    """

    def __init__(self, filesystem: Filesystem | None = None) -> None:
        self.fs = filesystem or Filesystem()

    def rollback(self, ledger: CreationLedger) -> RollbackReport:
        report = RollbackReport()
        while len(ledger):
            entry = ledger.pop()
            if entry.kind is EntryKind.FILE:
                self._delete_file(entry.path, report)
            else:
                self._delete_directory(entry.path, report)
        return report

    def _delete_file(self, path: Path, report: RollbackReport) -> None:
        try:
            if not self.fs.is_file(path):
                return
            self.fs.delete_file(path)
        except OSError as exc:
            message = f"Could not delete {path}: {exc}"
            report.errors.append(message)
            print_warning(message)
            return
        report.deleted_files.append(path)

    def _delete_directory(self, path: Path, report: RollbackReport) -> None:
        try:
            if not self.fs.is_dir(path):
                return
            if not self.fs.is_empty_dir(path):
                report.kept_directories.append(path)
                return
            self.fs.remove_dir(path)
        except OSError as exc:
            message = f"Could not remove directory {path}: {exc}"
            report.errors.append(message)
            print_warning(message)
            return
        report.deleted_directories.append(path)
