"""Tests for template resolution and rendering.

Tests cover:
- Provider chain order (project override, package override, built-in)
- Empty overrides fall through, unknown ids raise
- Unknown placeholders render back verbatim, including dotted lookups
- Rendered values are never HTML-escaped
- Broken or unreadable override stubs raise TemplateRenderError
- Custom filters
- Rendered built-in stubs are valid Python
- publish_stubs
"""

from __future__ import annotations

from pathlib import Path

import pytest

from domain_forge.config import ForgeConfig
from domain_forge.errors import TemplateNotFoundError, TemplateRenderError
from domain_forge.parser import parse_properties
from domain_forge.scaffolder.rules import ModuleNames, derive_rules
from domain_forge.scaffolder.stubs import BUILTIN_STUBS
from domain_forge.scaffolder.templates import (
    BuiltinProvider,
    DirectoryProvider,
    TemplateRenderer,
    publish_stubs,
)


pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestResolution:
    def test_builtin_fallback(self):
        renderer = TemplateRenderer()
        assert renderer.resolve("entity") == BUILTIN_STUBS["entity"]

    def test_project_override_wins(self, tmp_path: Path):
        project = tmp_path / "project"
        shared = tmp_path / "shared"
        project.mkdir()
        shared.mkdir()
        (project / "routes.stub").write_text("project", encoding="utf-8")
        (shared / "routes.stub").write_text("shared", encoding="utf-8")
        renderer = TemplateRenderer(
            [DirectoryProvider(project), DirectoryProvider(shared), BuiltinProvider()]
        )
        assert renderer.resolve("routes") == "project"

    def test_package_override_used_when_project_misses(self, tmp_path: Path):
        (tmp_path / "routes.stub").write_text("shared", encoding="utf-8")
        renderer = TemplateRenderer(
            [DirectoryProvider(tmp_path / "missing"), DirectoryProvider(tmp_path), BuiltinProvider()]
        )
        assert renderer.resolve("routes") == "shared"
        assert renderer.resolve("entity") == BUILTIN_STUBS["entity"]

    def test_empty_override_falls_through(self, tmp_path: Path):
        (tmp_path / "routes.stub").write_text("", encoding="utf-8")
        renderer = TemplateRenderer([DirectoryProvider(tmp_path), BuiltinProvider()])
        assert renderer.resolve("routes") == BUILTIN_STUBS["routes"]

    def test_unset_directory_is_a_miss(self):
        assert DirectoryProvider(None).load("entity") is None

    def test_unknown_id_raises(self):
        with pytest.raises(TemplateNotFoundError, match="nope"):
            TemplateRenderer().resolve("nope")

    def test_for_project_chain(self, tmp_path: Path):
        config = ForgeConfig(project_root=tmp_path, package_stubs_dir=tmp_path / "shared")
        renderer = TemplateRenderer.for_project(config)
        assert [type(p) for p in renderer.providers] == [
            DirectoryProvider,
            DirectoryProvider,
            BuiltinProvider,
        ]
        assert renderer.providers[0].directory == config.stubs_dir
        assert renderer.providers[1].directory == tmp_path / "shared"

    def test_list_templates(self):
        assert TemplateRenderer().list_templates() == sorted(BUILTIN_STUBS)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRendering:
    def test_unknown_placeholder_is_kept(self):
        renderer = TemplateRenderer()
        assert renderer.render_string("class {{ missing }}:", {}) == "class {{ missing }}:"

    def test_known_placeholder_is_filled(self):
        renderer = TemplateRenderer()
        assert renderer.render_string("{{ a }}-{{ b }}", {"a": "x"}) == "x-{{ b }}"

    def test_filters(self):
        renderer = TemplateRenderer()
        out = renderer.render_string(
            "{{ 'created_at' | studly }} {{ 'InvoiceTotal' | snake }} {{ 'category' | plural }}",
            {},
        )
        assert out == "CreatedAt invoice_total categories"

    def test_override_stub_is_rendered(self, tmp_path: Path):
        (tmp_path / "routes.stub").write_text("# {{ module }} {{ extra }}\n", encoding="utf-8")
        renderer = TemplateRenderer([DirectoryProvider(tmp_path), BuiltinProvider()])
        assert renderer.render("routes", {"module": "Invoice"}) == "# Invoice {{ extra }}\n"

    def test_values_are_not_escaped(self):
        renderer = TemplateRenderer()
        value = "Literal['a'] < b & \"c\""
        assert renderer.render_string("x: {{ x }}", {"x": value}) == f"x: {value}"

    def test_dotted_placeholder_is_kept(self):
        renderer = TemplateRenderer()
        out = renderer.render_string("x {{ transport.kind }} {{ a.b['c'] }} y", {})
        assert out == "x {{ transport.kind }} {{ a.b['c'] }} y"

    def test_missing_attribute_of_known_value(self):
        renderer = TemplateRenderer()
        out = renderer.render_string("{{ names.unknown }}", {"names": ModuleNames("Invoice", "app")})
        assert out == "{{ ModuleNames.unknown }}"

    def test_undefined_in_condition_and_loop(self):
        renderer = TemplateRenderer()
        out = renderer.render_string("{% for x in items %}{{ x }}{% endfor %}{% if flag %}y{% endif %}.", {})
        assert out == "."

    def test_broken_override_stub(self, tmp_path: Path):
        (tmp_path / "routes.stub").write_text("{% if module %}never closed\n", encoding="utf-8")
        renderer = TemplateRenderer([DirectoryProvider(tmp_path), BuiltinProvider()])
        with pytest.raises(TemplateRenderError, match="routes"):
            renderer.render("routes", {"module": "Invoice"})

    def test_undecodable_override_stub(self, tmp_path: Path):
        (tmp_path / "routes.stub").write_bytes(b"\xff\xfe\x00")
        renderer = TemplateRenderer([DirectoryProvider(tmp_path), BuiltinProvider()])
        with pytest.raises(TemplateRenderError):
            renderer.render("routes", {})

    def test_opaque_type_is_rendered_verbatim(self):
        rules = derive_rules("Invoice", parse_properties("kind:Literal['a']"), "src.contexts")
        rule = rules.properties[0]
        out = TemplateRenderer().render("value-object", {"class_name": rule.class_name, "rule": rule})
        assert "    value: Literal['a']\n" in out
        compile(out, "invoice_kind.py", "exec")


class TestBuiltinStubs:
    @pytest.fixture
    def rules(self):
        props = "id:string,total:?float,password:string,sent_at:int,status:enum[draft|sent|paid]"
        return derive_rules("Invoice", parse_properties(props), "src.contexts")

    def test_value_object_without_nullable(self):
        rules = derive_rules("Invoice", parse_properties("amount:float"), "src.contexts")
        rule = rules.properties[0]
        out = TemplateRenderer().render("value-object", {"class_name": rule.class_name, "rule": rule})
        assert "def from_float(cls, value: float) -> InvoiceAmount:" in out
        assert "from_nullable_float" not in out
        assert "import uuid" not in out
        compile(out, "invoice_amount.py", "exec")

    def test_value_objects_compile(self, rules):
        renderer = TemplateRenderer()
        for rule in rules.value_objects:
            out = renderer.render("value-object", {"class_name": rule.class_name, "rule": rule})
            compile(out, f"{rule.stem}.py", "exec")
            assert "{{" not in out
            for name in rule.factory_names:
                assert f"def {name}(" in out

    def test_secret_value_object(self, rules):
        rule = next(r for r in rules.properties if r.name == "password")
        out = TemplateRenderer().render("value-object", {"class_name": rule.class_name, "rule": rule})
        assert "import hashlib" in out
        assert "def from_hashed(cls, hashed: str) -> InvoicePassword:" in out
        assert "def hash(cls, plain: str) -> InvoicePassword:" in out
        assert "def from_string(" not in out

    def test_storage_identity_fails_loudly(self):
        rules = derive_rules("Invoice", parse_properties("id:int"), "src.contexts")
        rule = rules.properties[0]
        out = TemplateRenderer().render("value-object", {"class_name": rule.class_name, "rule": rule})
        assert 'raise RuntimeError("InvoiceId must be assigned by storage")' in out

    def test_enum(self, rules):
        rule = rules.enums[0]
        out = TemplateRenderer().render("enum", {"class_name": rule.class_name, "rule": rule})
        compile(out, "invoice_status.py", "exec")
        assert '    DRAFT = "draft"\n    SENT = "sent"\n    PAID = "paid"\n' in out
        assert "cls.DRAFT,\n            cls.SENT,\n            cls.PAID," in out
        for name in ("all", "from_string", "from_nullable_string", "to_string"):
            assert f"def {name}(" in out

    def test_entity(self, rules):
        context = {"module": "Invoice", "rules": rules, "names": rules.names}
        out = TemplateRenderer().render("entity", context)
        compile(out, "invoice.py", "exec")
        assert "id=InvoiceId.generate()," in out
        assert "total=InvoiceTotal.from_nullable_float(total)," in out
        assert "password=InvoicePassword.from_hashed(password)," in out
        assert out.count("@property") == len(rules.properties)

    def test_entity_simple(self):
        out = TemplateRenderer().render("entity-simple", {"module": "Invoice"})
        compile(out, "invoice.py", "exec")
        assert "def create(cls) -> Invoice:" in out


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class TestPublishStubs:
    def test_writes_every_stub(self, tmp_path: Path):
        target = tmp_path / "stubs" / "domain_forge"
        written, skipped = publish_stubs(target)
        assert skipped == []
        assert sorted(p.name for p in written) == sorted(f"{k}.stub" for k in BUILTIN_STUBS)
        assert (target / "entity.stub").read_text(encoding="utf-8") == BUILTIN_STUBS["entity"]

    def test_keeps_existing_without_force(self, tmp_path: Path):
        publish_stubs(tmp_path)
        (tmp_path / "routes.stub").write_text("custom", encoding="utf-8")
        written, skipped = publish_stubs(tmp_path)
        assert written == []
        assert len(skipped) == len(BUILTIN_STUBS)
        assert (tmp_path / "routes.stub").read_text(encoding="utf-8") == "custom"

    def test_force_overwrites(self, tmp_path: Path):
        publish_stubs(tmp_path)
        (tmp_path / "routes.stub").write_text("custom", encoding="utf-8")
        written, _ = publish_stubs(tmp_path, force=True)
        assert len(written) == len(BUILTIN_STUBS)
        assert (tmp_path / "routes.stub").read_text(encoding="utf-8") == BUILTIN_STUBS["routes"]
