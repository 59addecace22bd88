"""Idempotent patching of the aggregator registry file.

The registry is a hand-maintained Python module that wires every generated
module into the application, either through a registration function::

    from __future__ import annotations

    def register(container):
        container.bind(InvoiceRepositoryContract, InvoiceRepository)

or through a list literal::

    PROVIDERS = [
        InvoiceServiceProvider,
    ]

The file is parsed once into a ``RegistryDocument`` (its lines plus the
located anchors), mutated in memory and written back only when something
actually changed.  Matching is anchor based, not a full Python parse.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from domain_forge.errors import ArtifactWriteError, PatchAnchorError, RegistryReadError
from domain_forge.utils import print_warning

from .filesystem import Filesystem


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_FUTURE_PATTERN = re.compile(r"^from\s+__future__\s+import\b")
_DOCSTRING_OPEN = re.compile(r"^[rRuU]?(\"\"\"|''')")
_SIGNATURE_TAIL = re.compile(r"\)\s*(->.*)?:\s*$")
_RETURN_PATTERN = re.compile(r"^return\b")

LIST_INDENT = "    "


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class PatchStatus(str, Enum):
    APPLIED = "applied"
    ALREADY_PRESENT = "already_present"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Registration:
    """What one module contributes to the registry.

    ``imports``/``statement`` are used when the registry has a registration
    function; ``entry_imports``/``entry`` when it has a list literal.
    """

    imports: tuple[str, ...]
    statement: str
    entry_imports: tuple[str, ...] = ()
    entry: str = ""


@dataclass
class PatchResult:
    path: Path
    status: PatchStatus
    anchor: str | None = None
    imports_added: list[str] = field(default_factory=list)
    statement_added: bool = False


# ---------------------------------------------------------------------------
# RegistryDocument
# ---------------------------------------------------------------------------

class RegistryDocument:
    """Line model of a registry file with anchor lookup and insertion."""

    def __init__(self, text: str) -> None:
        self.newline = "\r\n" if "\r\n" in text else "\n"
        self.lines: list[str] = text.splitlines(keepends=True)

    def render(self) -> str:
        return "".join(self.lines)

    # -- Queries -----------------------------------------------------------

    def has_line(self, literal: str) -> bool:
        """Return ``True`` if some line equals *literal* ignoring surrounding whitespace."""
        wanted = literal.strip()
        return any(line.strip() == wanted for line in self.lines)

    def declaration_index(self) -> int | None:
        """Index of the module declaration line.

        That is the last ``from __future__ import`` line, or failing that the
        line closing the module docstring.
        """
        future = [i for i, line in enumerate(self.lines) if _FUTURE_PATTERN.match(line)]
        if future:
            return future[-1]
        return self._docstring_end()

    def function_body(self, name: str) -> tuple[int, str] | None:
        """Locate the body of ``def <name>(...)``.

        Returns:
            ``(index of the last body line, body indentation)`` or ``None``.
        """
        pattern = re.compile(
            rf"^(?P<indent>[ \t]*)(?:async\s+)?def\s+{re.escape(name)}\s*\("
        )
        for start, line in enumerate(self.lines):
            match = pattern.match(line)
            if not match:
                continue
            signature_end = self._signature_end(start)
            if signature_end is None:
                return None
            def_width = _indent_width(match.group("indent"))
            last_body: int | None = None
            body_indent = ""
            for index in range(signature_end + 1, len(self.lines)):
                stripped = self.lines[index].strip()
                if not stripped or stripped.startswith("#"):
                    continue
                indent = _leading_whitespace(self.lines[index])
                if _indent_width(indent) <= def_width:
                    break
                if last_body is None:
                    body_indent = indent
                last_body = index
            if last_body is None:
                return None
            return last_body, body_indent
        return None

    def list_span(self, name: str) -> tuple[int, int] | None:
        """Locate ``<name> = [`` and the line holding its matching ``]``.

        Brackets inside strings and comments are ignored.  Returns ``None``
        when the list is absent or never closed.
        """
        bounds = self._list_bounds(name)
        if bounds is None:
            return None
        start, _, close, _ = bounds
        return start, close

    # -- Mutations ---------------------------------------------------------

    def insert_after(self, index: int, new_lines: list[str]) -> None:
        if index >= 0 and not self.lines[index].endswith("\n"):
            self.lines[index] += self.newline
        self.lines[index + 1:index + 1] = [text + self.newline for text in new_lines]

    def insert_statement(self, function_name: str, statement: str) -> bool:
        """Append *statement* to the function body unless already present."""
        if self.has_line(statement):
            return False
        body = self.function_body(function_name)
        if body is None:
            raise LookupError(function_name)
        last_body, indent = body
        final = self._final_statement(last_body, indent)
        if _RETURN_PATTERN.match(self.lines[final].strip()):
            self.lines.insert(final, indent + statement + self.newline)
        else:
            self.insert_after(last_body, [indent + statement])
        return True

    def append_entry(self, list_name: str, entry: str) -> bool:
        """Insert *entry* before the list's closing bracket unless already present.

        A list closed on the same line as its opening or its last element is
        first reflowed so the closing bracket sits on a line of its own.
        """
        bounds = self._list_bounds(list_name)
        if bounds is None:
            raise LookupError(list_name)
        if entry in self._list_items(bounds):
            return False
        start, close = self._isolate_closing_bracket(bounds)

        previous: int | None = None
        for index in range(start + 1, close):
            stripped = self.lines[index].strip()
            if stripped and not stripped.startswith("#"):
                previous = index

        if previous is None:
            indent = _leading_whitespace(self.lines[close]) + LIST_INDENT
        else:
            indent = _leading_whitespace(self.lines[previous])
            line = self.lines[previous].rstrip("\r\n")
            cut = _comment_start(line)
            code, comment = line[:cut].rstrip(), line[cut:]
            if not code.endswith((",", "[")):
                code += ","
            self.lines[previous] = code + ("  " + comment if comment else "") + self.newline

        self.lines.insert(close, f"{indent}{entry},{self.newline}")
        return True

    def insert_imports(self, imports: tuple[str, ...] | list[str]) -> list[str]:
        """Insert the missing *imports* right after the module declaration.

        Relative order among the inserted lines is preserved.
        """
        missing = [line for line in dict.fromkeys(imports) if not self.has_line(line)]
        if not missing:
            return []
        index = self.declaration_index()
        if index is None:
            raise LookupError("module declaration")
        self.insert_after(index, missing)
        return missing

    # -- Helpers -----------------------------------------------------------

    def _final_statement(self, last_body: int, indent: str) -> int:
        """Index of the last line of the body that sits at *indent* itself."""
        for index in range(last_body, -1, -1):
            line = self.lines[index]
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and _leading_whitespace(line) == indent:
                return index
        return last_body

    def _list_bounds(self, name: str) -> tuple[int, int, int, int] | None:
        """``(open line, open column, close line, close column)`` of ``<name> = [...]``."""
        pattern = re.compile(
            rf"^(?P<indent>[ \t]*){re.escape(name)}\s*(?::[^=]*)?=\s*\["
        )
        for start, line in enumerate(self.lines):
            match = pattern.match(line)
            if not match:
                continue
            open_column = match.end() - 1
            closing = self._matching_bracket(start, open_column)
            if closing is None:
                return None
            return start, open_column, closing[0], closing[1]
        return None

    def _matching_bracket(self, line_index: int, column: int) -> tuple[int, int] | None:
        """Find the ``]`` closing the ``[`` at *line_index*/*column*."""
        depth = 0
        quote: str | None = None
        for index in range(line_index, len(self.lines)):
            line = self.lines[index]
            position = column if index == line_index else 0
            while position < len(line):
                char = line[position]
                if quote is not None:
                    if char == "\\":
                        position += 2
                        continue
                    if line.startswith(quote, position):
                        position += len(quote)
                        quote = None
                        continue
                elif char == "#":
                    break
                elif char in "\"'":
                    quote = char * 3 if line.startswith(char * 3, position) else char
                    position += len(quote)
                    continue
                elif char == "[":
                    depth += 1
                elif char == "]":
                    depth -= 1
                    if depth == 0:
                        return index, position
                position += 1
            if quote is not None and len(quote) == 1:
                quote = None
        return None

    def _list_items(self, bounds: tuple[int, int, int, int]) -> list[str]:
        """Top-level-ish comma separated items between the brackets."""
        start, open_column, close, close_column = bounds
        chunks: list[str] = []
        for index in range(start, close + 1):
            line = self.lines[index].rstrip("\r\n")
            begin = open_column + 1 if index == start else 0
            end = close_column if index == close else len(line)
            text = line[begin:end]
            chunks.append(text[:_comment_start(text)])
        return [item.strip() for item in " ".join(chunks).split(",") if item.strip()]

    def _isolate_closing_bracket(self, bounds: tuple[int, int, int, int]) -> tuple[int, int]:
        """Rewrite the list so ``]`` starts its own line; return ``(open, close)`` lines."""
        start, open_column, close, close_column = bounds
        open_indent = _leading_whitespace(self.lines[start])
        closing = self.lines[close].rstrip("\r\n")
        tail = closing[close_column:]

        if close == start:
            head = closing[:open_column + 1]
            inner = closing[open_column + 1:close_column].strip()
            replacement = [head]
            if inner:
                replacement.append(open_indent + LIST_INDENT + inner)
            replacement.append(open_indent + tail)
            self.lines[start:start + 1] = [text + self.newline for text in replacement]
            return start, start + len(replacement) - 1

        before = closing[:close_column]
        if before.strip():
            self.lines[close:close + 1] = [
                before.rstrip() + self.newline,
                open_indent + tail + self.newline,
            ]
            return start, close + 1
        return start, close

    def _signature_end(self, start: int) -> int | None:
        depth = 0
        for index in range(start, len(self.lines)):
            code = self.lines[index].split("#", 1)[0].rstrip()
            depth += code.count("(") - code.count(")")
            if depth <= 0:
                return index if _SIGNATURE_TAIL.search(code) else None
        return None

    def _docstring_end(self) -> int | None:
        for index, line in enumerate(self.lines):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            match = _DOCSTRING_OPEN.match(stripped)
            if not match:
                return None
            quote = match.group(1)
            if quote in stripped[match.end():]:
                return index
            for end in range(index + 1, len(self.lines)):
                if quote in self.lines[end]:
                    return end
            return None
        return None


# ---------------------------------------------------------------------------
# SourcePatcher
# ---------------------------------------------------------------------------

class SourcePatcher:
    """Applies a ``Registration`` to a registry file at most once.

    Running the patcher again on an already-patched file leaves it
    byte-identical (the file is not even rewritten).
    """

    def __init__(
        self,
        filesystem: Filesystem | None = None,
        function_name: str = "register",
        list_name: str = "PROVIDERS",
    ) -> None:
        self.fs = filesystem or Filesystem()
        self.function_name = function_name
        self.list_name = list_name

    def patch(self, path: Path, registration: Registration) -> PatchResult:
        """Patch *path*.

        Raises:
            PatchAnchorError: If neither a registration function nor a list
                literal (or, when imports are missing, a module declaration)
                can be located.  Nothing is written in that case.
            RegistryReadError: If the file cannot be read as text.
            ArtifactWriteError: If writing the patched text fails.
        """
        if not self.fs.exists(path):
            print_warning(f"Registry file not found at {path}; skipping registration.")
            return PatchResult(path=path, status=PatchStatus.SKIPPED)

        try:
            original = self.fs.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise RegistryReadError(path, exc) from exc
        document = RegistryDocument(original)

        try:
            if document.function_body(self.function_name) is not None:
                anchor = "function"
                added = document.insert_statement(self.function_name, registration.statement)
                imports = registration.imports
            elif document.list_span(self.list_name) is not None:
                anchor = "list"
                added = document.append_entry(self.list_name, registration.entry)
                imports = registration.entry_imports
            else:
                raise PatchAnchorError(
                    path,
                    f"registration function '{self.function_name}' "
                    f"or list '{self.list_name}'",
                )
            imports_added = document.insert_imports(imports)
        except LookupError as exc:
            raise PatchAnchorError(path, str(exc)) from exc

        patched = document.render()
        if patched == original:
            return PatchResult(path=path, status=PatchStatus.ALREADY_PRESENT, anchor=anchor)

        try:
            self.fs.write_text(path, patched)
        except OSError as exc:
            raise ArtifactWriteError(path, exc) from exc
        return PatchResult(
            path=path,
            status=PatchStatus.APPLIED,
            anchor=anchor,
            imports_added=imports_added,
            statement_added=added,
        )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def _indent_width(indent: str) -> int:
    return len(indent.expandtabs(4))


def _comment_start(line: str) -> int:
    """Index where a trailing ``#`` comment starts, or ``len(line)``."""
    quote: str | None = None
    position = 0
    while position < len(line):
        char = line[position]
        if quote is not None:
            if char == "\\":
                position += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "#":
            return position
        position += 1
    return len(line)
