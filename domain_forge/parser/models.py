"""Pydantic v2 models for the property specification parser.

Defines the parsed representation of a ``--props`` string: ordered property
declarations, the enum side-table and the diagnostics collected on the way.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PropertyKind(str, Enum):
    """How a property's declared type was classified."""
    SCALAR = "scalar"
    ENUM = "enum"
    OPAQUE = "opaque"


SCALAR_TYPES: tuple[str, ...] = ("int", "float", "bool", "string")
"""Recognised scalar base tokens."""

TAG_TYPES: tuple[str, ...] = ("secret", "timestamp")
"""Explicit semantic type tags; both carry a string primitive."""

NULLABLE_MARKER = "?"


# ---------------------------------------------------------------------------
# Property Models
# ---------------------------------------------------------------------------

class EnumSpec(BaseModel):
    """An enum-typed property's ordered, de-duplicated values."""
    name: str = Field(..., description="Owning property name")
    values: list[str] = Field(default_factory=list, description="Values in declared order")


class PropertySpec(BaseModel):
    """One accepted ``name:type`` declaration."""
    name: str = Field(..., description="Property name, e.g. 'total'")
    type_expr: str = Field(..., description="Type expression as written, e.g. '?float'")
    kind: PropertyKind = Field(..., description="Scalar, enum or opaque pass-through")
    base_type: str = Field(..., description="Type without nullability marker")
    nullable: bool = Field(default=False, description="Whether the type was '?'-prefixed")

    @property
    def is_enum(self) -> bool:
        return self.kind is PropertyKind.ENUM


# ---------------------------------------------------------------------------
# Parse Result
# ---------------------------------------------------------------------------

class ParseResult(BaseModel):
    """Complete output of ``parse_properties``."""
    properties: list[PropertySpec] = Field(default_factory=list)
    enums: dict[str, EnumSpec] = Field(
        default_factory=dict, description="Enum side-table keyed by property name"
    )
    warnings: list[str] = Field(default_factory=list, description="Skipped-token diagnostics")

    def as_mapping(self) -> dict[str, str]:
        """Return the ordered ``name -> type`` mapping (enums map to ``'enum'``)."""
        return {
            p.name: ("enum" if p.is_enum else p.type_expr) for p in self.properties
        }

    def get(self, name: str) -> PropertySpec | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.properties]
