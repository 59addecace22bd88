"""Domain Forge property specification parser.

Parses the ``name:type`` property DSL used by ``domain-forge make``.

Usage::

    from domain_forge.parser import parse_properties

    result = parse_properties("id:string,total:?float,status:enum[draft|sent|paid]")
    print(result.as_mapping())
    print(result.enums["status"].values)
    print(result.warnings)
"""

from domain_forge.parser.models import (
    EnumSpec,
    ParseResult,
    PropertyKind,
    PropertySpec,
)
from domain_forge.parser.properties import is_identifier, parse_properties

__all__ = [
    "parse_properties",
    "is_identifier",
    "EnumSpec",
    "ParseResult",
    "PropertyKind",
    "PropertySpec",
]
