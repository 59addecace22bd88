"""Per-property generation rules.

Before anything is rendered, each parsed property is turned into a
``PropertyRule`` describing the artifact it produces (value object or enum),
the Python types involved, the factory methods the artifact exposes and which
of them the entity's ``from_primitives`` routes through.  The rules are plain
data so every special case (identity, secret, timestamp, nullable) can be
tested without touching templates.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from domain_forge.parser.models import ParseResult, PropertySpec
from domain_forge.parser.properties import IDENTITY_NAME
from domain_forge.utils import plural, snake, studly


# ---------------------------------------------------------------------------
# Module layout (package-relative directory parts)
# ---------------------------------------------------------------------------

LAYER_ENTITIES = ("domain", "entities")
LAYER_CONTRACTS = ("domain", "contracts")
LAYER_VALUE_OBJECTS = ("domain", "value_objects")
LAYER_ENUMS = ("domain", "enums")
LAYER_INFRASTRUCTURE = ("infrastructure",)
LAYER_ROUTES = ("infrastructure", "http", "routes")
LAYER_MAPPERS = ("infrastructure", "persistence", "mappers")
LAYER_REPOSITORIES = ("infrastructure", "persistence", "repositories")


# ---------------------------------------------------------------------------
# Type mapping
# ---------------------------------------------------------------------------

_PYTHON_TYPE_MAP: dict[str, str] = {
    "int": "int",
    "float": "float",
    "bool": "bool",
    "string": "str",
    "secret": "str",
    "timestamp": "str",
}

_FACTORY_SUFFIX: dict[str, str] = {
    "int": "int",
    "float": "float",
    "bool": "bool",
}


# ---------------------------------------------------------------------------
# Rule models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FactoryMethod:
    """A classmethod generated on a value object.

    ``kind`` selects the body: ``wrap`` returns ``cls(param)``, ``hash``
    derives a salted hash, ``uuid`` returns a random unique string and
    ``storage`` refuses to generate anything.
    """

    name: str
    kind: str = "wrap"
    param: str = "value"
    param_type: str = ""


@dataclass(frozen=True)
class EnumCase:
    name: str
    value: str


@dataclass(frozen=True)
class ModuleNames:
    """Names and import paths shared by every artifact of one module."""

    name: str
    import_root: str

    @property
    def package(self) -> str:
        return snake(self.name)

    @property
    def variable(self) -> str:
        return snake(self.name)

    @property
    def route_prefix(self) -> str:
        return "/" + plural(snake(self.name)).replace("_", "-")

    def import_path(self, layer: tuple[str, ...], stem: str) -> str:
        """Dotted import path of module *stem* inside *layer*."""
        parts = [self.import_root, self.package, *layer, stem]
        return ".".join(part for part in parts if part)


@dataclass(frozen=True)
class PropertyRule:
    """Everything the templates need to know about one property."""

    name: str
    class_name: str
    stem: str
    import_path: str
    is_enum: bool
    value_type: str
    nullable: bool = False
    is_identity: bool = False
    identity_strategy: str | None = None
    is_secret: bool = False
    is_timestamp: bool = False
    factories: tuple[FactoryMethod, ...] = ()
    primary_factory: str = "from_string"
    cases: tuple[EnumCase, ...] = ()

    @property
    def factory_names(self) -> list[str]:
        return [f.name for f in self.factories]


@dataclass
class EntityRules:
    """Rules for one module, in declared property order."""

    names: ModuleNames
    properties: list[PropertyRule] = field(default_factory=list)

    @property
    def identity(self) -> PropertyRule | None:
        for rule in self.properties:
            if rule.is_identity:
                return rule
        return None

    @property
    def create_properties(self) -> list[PropertyRule]:
        """Parameters of ``create``: everything except the identity."""
        return [r for r in self.properties if not r.is_identity]

    @property
    def persisted_properties(self) -> list[PropertyRule]:
        """Fields written by the mapper; storage owns the identity."""
        return [r for r in self.properties if not r.is_identity]

    @property
    def value_objects(self) -> list[PropertyRule]:
        return [r for r in self.properties if not r.is_enum]

    @property
    def enums(self) -> list[PropertyRule]:
        return [r for r in self.properties if r.is_enum]

    @property
    def imports(self) -> list[PropertyRule]:
        return sorted(self.properties, key=lambda r: r.import_path)


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------

def derive_rules(module_name: str, parsed: ParseResult, import_root: str) -> EntityRules:
    """Compute the ``EntityRules`` for *module_name* from a parse result.

    The enum side-table is read from *parsed* rather than from shared state.
    """
    names = ModuleNames(name=module_name, import_root=import_root)
    rules = EntityRules(names=names)
    for prop in parsed.properties:
        if prop.is_enum:
            values = parsed.enums[prop.name].values
            rules.properties.append(enum_rule(names, prop, values))
        else:
            rules.properties.append(value_object_rule(names, prop))
    return rules


def enum_rule(names: ModuleNames, prop: PropertySpec, values: list[str]) -> PropertyRule:
    class_name = names.name + studly(prop.name)
    stem = snake(class_name)
    return PropertyRule(
        name=prop.name,
        class_name=class_name,
        stem=stem,
        import_path=names.import_path(LAYER_ENUMS, stem),
        is_enum=True,
        value_type="str",
        factories=(
            FactoryMethod("from_string", param_type="str"),
            FactoryMethod("from_nullable_string", param_type="str | None"),
        ),
        primary_factory="from_string",
        cases=tuple(EnumCase(name=v.upper(), value=v) for v in values),
    )


def value_object_rule(names: ModuleNames, prop: PropertySpec) -> PropertyRule:
    class_name = names.name + studly(prop.name)
    stem = snake(class_name)

    is_identity = prop.name == IDENTITY_NAME
    is_secret = "password" in prop.name or prop.base_type == "secret"
    is_timestamp = prop.name.endswith("_at") or prop.base_type == "timestamp"

    if is_secret or is_timestamp:
        base_type = "str"
        suffix = "string"
    else:
        base_type = _PYTHON_TYPE_MAP.get(prop.base_type, prop.base_type)
        suffix = _FACTORY_SUFFIX.get(prop.base_type, "string")
    value_type = f"{base_type} | None" if prop.nullable else base_type

    factories: list[FactoryMethod] = []
    if is_secret:
        factories.append(FactoryMethod("from_hashed", param="hashed", param_type=value_type))
        factories.append(FactoryMethod("hash", kind="hash", param="plain", param_type="str"))
        primary = "from_hashed"
    else:
        factories.append(FactoryMethod(f"from_{suffix}", param_type=base_type))
        primary = f"from_{suffix}"
    if prop.nullable:
        factories.append(FactoryMethod(f"from_nullable_{suffix}", param_type=value_type))
        if not is_secret:
            primary = f"from_nullable_{suffix}"

    strategy: str | None = None
    if is_identity:
        strategy = "storage" if prop.base_type == "int" else "uuid"
        factories.append(FactoryMethod("generate", kind=strategy, param=""))

    return PropertyRule(
        name=prop.name,
        class_name=class_name,
        stem=stem,
        import_path=names.import_path(LAYER_VALUE_OBJECTS, stem),
        is_enum=False,
        value_type=value_type,
        nullable=prop.nullable,
        is_identity=is_identity,
        identity_strategy=strategy,
        is_secret=is_secret,
        is_timestamp=is_timestamp and not is_secret,
        factories=tuple(factories),
        primary_factory=primary,
    )
