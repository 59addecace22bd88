"""Property specification parser.

Turns a raw ``--props`` string such as
``"id:string,total:?float,status:enum[draft|sent|paid]"`` into an ordered list
of validated ``PropertySpec`` objects plus the enum side-table.  Uses pure
regex matching.  Malformed tokens never raise: each one is skipped and a
diagnostic is appended to ``ParseResult.warnings``.
"""

from __future__ import annotations

import keyword
import re

from domain_forge.utils import studly

from .models import (
    NULLABLE_MARKER,
    SCALAR_TYPES,
    TAG_TYPES,
    EnumSpec,
    ParseResult,
    PropertyKind,
    PropertySpec,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_IDENTIFIER_PATTERN = re.compile(r"^[a-z][A-Za-z0-9_]*$")
_ENUM_PATTERN = re.compile(r"^enum\[(.*)\]$")

# Members generated on every entity; a property with one of these names
# would shadow them.
_RESERVED_NAMES = frozenset({"create", "from_primitives", "to_primitives"})

# Parameter, decorator and field names the generated classes rely on.
_GENERATED_CODE_NAMES = frozenset(
    {"self", "cls", "property", "classmethod", "staticmethod", "value"}
)

IDENTITY_NAME = "id"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_properties(raw: str | None) -> ParseResult:
    """Parse a comma-separated list of ``name:type`` tokens.

    Args:
        raw: The property string, or ``None``/empty for no properties.

    Returns:
        A ``ParseResult`` with accepted properties in first-seen order, the
        enum side-table and any warnings.
    """
    result = ParseResult()
    if not raw or not raw.strip():
        return result

    class_names: dict[str, str] = {}

    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue

        if ":" not in token:
            result.warnings.append(
                f"Property '{token}' doesn't have correct format (should be name:type)."
            )
            continue

        name, type_expr = (part.strip() for part in token.split(":", 1))

        reason = _name_problem(name, result, class_names)
        if reason:
            result.warnings.append(f"Property name '{name}' {reason}. Skipping.")
            continue

        enum_match = _ENUM_PATTERN.match(type_expr)
        if enum_match:
            values, problem = _parse_enum_values(enum_match.group(1), name, result)
            if problem:
                result.warnings.append(problem)
                continue
            result.enums[name] = EnumSpec(name=name, values=values)
            if name == IDENTITY_NAME:
                result.warnings.append(
                    f"Property '{name}' is an enum; it is not used as the entity identity."
                )
            spec = PropertySpec(
                name=name,
                type_expr=type_expr,
                kind=PropertyKind.ENUM,
                base_type="enum",
            )
        else:
            spec = _scalar_spec(name, type_expr)
            if not spec.base_type:
                result.warnings.append(f"Property '{name}' has no type. Skipping.")
                continue

        result.properties.append(spec)
        class_names[studly(name)] = name

    return result


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_identifier(value: str) -> bool:
    """Return ``True`` if *value* is a valid property name or enum value."""
    return bool(_IDENTIFIER_PATTERN.match(value))


def _name_problem(
    name: str, result: ParseResult, class_names: dict[str, str]
) -> str | None:
    """Return why *name* cannot be accepted, or ``None`` if it can."""
    if not is_identifier(name):
        return "is invalid"
    if keyword.iskeyword(name):
        return "is a reserved Python keyword"
    if name in _RESERVED_NAMES:
        return "clashes with a generated entity member"
    if name in _GENERATED_CODE_NAMES:
        return "is reserved by the generated code"
    if result.get(name) is not None:
        return "is declared more than once"
    existing = class_names.get(studly(name))
    if existing is not None:
        return f"generates the same class name as '{existing}'"
    return None


def _parse_enum_values(
    body: str, prop_name: str, result: ParseResult
) -> tuple[list[str], str | None]:
    """Validate bar-separated enum values.

    Validation is atomic per property: the first invalid value rejects the
    whole property.  Exact duplicates are dropped (first kept) with a
    warning.
    """
    values: list[str] = []
    case_names: set[str] = set()
    for raw_value in body.split("|"):
        value = raw_value.strip()
        if not is_identifier(value):
            return [], f"Enum value '{value}' is invalid. Skipping property '{prop_name}'."
        if value in values:
            result.warnings.append(
                f"Enum value '{value}' repeated in property '{prop_name}'. Ignoring duplicate."
            )
            continue
        case_name = value.upper()
        if case_name in case_names:
            return [], (
                f"Enum values of '{prop_name}' collide on case name '{case_name}'. "
                f"Skipping property '{prop_name}'."
            )
        case_names.add(case_name)
        values.append(value)
    return values, None


def _scalar_spec(name: str, type_expr: str) -> PropertySpec:
    nullable = type_expr.startswith(NULLABLE_MARKER)
    base = type_expr[len(NULLABLE_MARKER):].strip() if nullable else type_expr
    known = base in SCALAR_TYPES or base in TAG_TYPES
    return PropertySpec(
        name=name,
        type_expr=type_expr,
        kind=PropertyKind.SCALAR if known else PropertyKind.OPAQUE,
        base_type=base,
        nullable=nullable,
    )
