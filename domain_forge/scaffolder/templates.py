"""Jinja2 template rendering for module scaffolding.

Provides the TemplateRenderer class which resolves a template identifier
through an ordered list of content providers (project override, package-level
override, built-in fallback; first non-empty hit wins) and renders it with a
context dictionary.

Placeholders naming a variable that the context does not supply are rendered
back verbatim (``{{ name }}``, ``{{ name.attr }}``) instead of raising or
disappearing, so a customised stub that references an unknown variable
produces visible, greppable output.  Autoescaping is off: stubs produce
Python source, not markup.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from jinja2 import Environment, TemplateError, Undefined
from jinja2.utils import missing

from domain_forge.config import ForgeConfig
from domain_forge.errors import TemplateNotFoundError, TemplateRenderError
from domain_forge.utils import plural, snake, studly

from .stubs import BUILTIN_STUBS


STUB_SUFFIX = ".stub"


# ---------------------------------------------------------------------------
# Content providers
# ---------------------------------------------------------------------------


class ContentProvider(Protocol):
    """Returns template source for an identifier, or ``None`` on a miss."""

    def load(self, template_id: str) -> str | None: ...


class DirectoryProvider:
    """Looks up ``<directory>/<template_id>.stub``."""

    def __init__(self, directory: str | Path | None) -> None:
        self.directory = Path(directory) if directory is not None else None

    def load(self, template_id: str) -> str | None:
        if self.directory is None:
            return None
        path = self.directory / f"{template_id}{STUB_SUFFIX}"
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def __repr__(self) -> str:
        return f"DirectoryProvider({self.directory!s})"


class BuiltinProvider:
    """Serves the stubs compiled into the package."""

    def __init__(self, stubs: Mapping[str, str] | None = None) -> None:
        self.stubs = dict(BUILTIN_STUBS if stubs is None else stubs)

    def load(self, template_id: str) -> str | None:
        return self.stubs.get(template_id)

    def __repr__(self) -> str:
        return f"BuiltinProvider({len(self.stubs)} stubs)"


# ---------------------------------------------------------------------------
# Unresolved placeholders
# ---------------------------------------------------------------------------


class PlaceholderUndefined(Undefined):
    """Renders an unresolved lookup back as ``{{ expression }}``.

    Attribute and item access on an undefined value chain into another
    placeholder, so ``{{ transport.kind }}`` survives a missing
    ``transport``.  A missing attribute of a defined value is written with
    the value's type name, e.g. ``{{ ModuleNames.unknown }}``.
    """

    __slots__ = ()

    def _expression(self) -> str:
        name = self._undefined_name
        if self._undefined_obj is missing:
            return str(name)
        owner = type(self._undefined_obj).__name__
        if isinstance(name, str):
            return f"{owner}.{name}"
        return f"{owner}[{name!r}]"

    def __str__(self) -> str:
        return "{{ " + self._expression() + " }}"

    def __getattr__(self, name: str) -> Any:
        if name[:2] == "__":
            raise AttributeError(name)
        return PlaceholderUndefined(name=f"{self._expression()}.{name}")

    def __getitem__(self, key: Any) -> PlaceholderUndefined:
        return PlaceholderUndefined(name=f"{self._expression()}[{key!r}]")

    def __call__(self, *args: Any, **kwargs: Any) -> PlaceholderUndefined:
        return PlaceholderUndefined(name=f"{self._expression()}()")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 stubs for module scaffolding.

    Templates are addressed by identifier (``"entity"``, ``"value-object"``,
    ...).  Each identifier is resolved independently, so a project may
    override a single stub and inherit the rest.
    """

    def __init__(self, providers: list[ContentProvider] | None = None) -> None:
        self.providers: list[ContentProvider] = (
            providers if providers is not None else [BuiltinProvider()]
        )
        self.env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=PlaceholderUndefined,
        )
        # Register custom filters
        self.env.filters["studly"] = studly
        self.env.filters["snake"] = snake
        self.env.filters["plural"] = plural

    @classmethod
    def for_project(cls, config: ForgeConfig) -> "TemplateRenderer":
        """Build the standard three-tier provider chain for *config*."""
        return cls(
            providers=[
                DirectoryProvider(config.stubs_dir),
                DirectoryProvider(config.package_stubs_dir),
                BuiltinProvider(),
            ]
        )

    # -- Resolution --------------------------------------------------------

    def resolve(self, template_id: str) -> str:
        """Return the source of *template_id* from the first provider that has it.

        Empty sources count as a miss.

        Raises:
            TemplateNotFoundError: If no provider supplies the template.
        """
        for provider in self.providers:
            source = provider.load(template_id)
            if source:
                return source
        raise TemplateNotFoundError(template_id)

    # -- Rendering ---------------------------------------------------------

    def render(self, template_id: str, context: dict[str, Any]) -> str:
        """Resolve and render a single template with the provided context.

        Raises:
            TemplateNotFoundError: If no provider supplies the template.
            TemplateRenderError: If the stub cannot be read, has a syntax
                error or fails while rendering.
        """
        try:
            return self.render_string(self.resolve(template_id), context)
        except (TemplateError, OSError, UnicodeDecodeError) as exc:
            raise TemplateRenderError(template_id, exc) from exc

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    # -- Utility -----------------------------------------------------------

    def list_templates(self) -> list[str]:
        """Return the sorted identifiers of every built-in template."""
        return sorted(BUILTIN_STUBS)


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


def publish_stubs(directory: Path, force: bool = False) -> tuple[list[Path], list[Path]]:
    """Copy every built-in stub into *directory* for customisation.

    Existing stub files are kept unless *force* is set.

    Returns:
        ``(written, skipped)`` stub paths.
    """
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    skipped: list[Path] = []
    for template_id in sorted(BUILTIN_STUBS):
        path = directory / f"{template_id}{STUB_SUFFIX}"
        if path.exists() and not force:
            skipped.append(path)
            continue
        path.write_text(BUILTIN_STUBS[template_id], encoding="utf-8")
        written.append(path)
    return written, skipped
