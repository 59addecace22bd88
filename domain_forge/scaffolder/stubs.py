"""Built-in stubs, the last tier of template resolution.

Each stub is a Jinja2 template rendered with ``trim_blocks`` and
``lstrip_blocks`` enabled, so block tags sit on their own lines at column 0.
``domain-forge publish-stubs`` copies these verbatim into the project's stub
directory for customisation.
"""

from __future__ import annotations


VALUE_OBJECT = '''"""{{ class_name }} value object."""

from __future__ import annotations

{% if rule.is_secret %}
import hashlib
import secrets
{% endif %}
{% if rule.identity_strategy == "uuid" %}
import uuid
{% endif %}
from dataclasses import dataclass


@dataclass(frozen=True)
class {{ class_name }}:
    value: {{ rule.value_type }}

    def __post_init__(self) -> None:
        self._validate(self.value)

    @staticmethod
    def _validate(value: {{ rule.value_type }}) -> None:
        """Add validation rules for {{ class_name }} here."""

    @classmethod
    def create(cls, value: {{ rule.value_type }}) -> {{ class_name }}:
        return cls(value)
{% for factory in rule.factories %}

    @classmethod
{% if factory.param %}
    def {{ factory.name }}(cls, {{ factory.param }}: {{ factory.param_type }}) -> {{ class_name }}:
{% else %}
    def {{ factory.name }}(cls) -> {{ class_name }}:
{% endif %}
{% if factory.kind == "hash" %}
        salt = secrets.token_bytes(16)
        digest = hashlib.pbkdf2_hmac("sha256", {{ factory.param }}.encode("utf-8"), salt, 600_000)
        return cls(f"pbkdf2_sha256${salt.hex()}${digest.hex()}")
{% elif factory.kind == "uuid" %}
        return cls(str(uuid.uuid4()))
{% elif factory.kind == "storage" %}
        raise RuntimeError("{{ class_name }} must be assigned by storage")
{% else %}
        return cls({{ factory.param }})
{% endif %}
{% endfor %}
'''

ENUM = '''"""{{ class_name }} enumeration."""

from __future__ import annotations

from enum import Enum


class {{ class_name }}(str, Enum):
{% for case in rule.cases %}
    {{ case.name }} = "{{ case.value }}"
{% endfor %}

    @classmethod
    def all(cls) -> list[{{ class_name }}]:
        """Return every case in declaration order."""
        return [
{% for case in rule.cases %}
            cls.{{ case.name }},
{% endfor %}
        ]

    @classmethod
    def from_string(cls, value: str) -> {{ class_name }}:
        return cls(value)

    @classmethod
    def from_nullable_string(cls, value: str | None) -> {{ class_name }} | None:
        return cls(value) if value is not None else None

    def to_string(self) -> str:
        return self.value
'''

ENTITY = '''"""{{ module }} entity."""

from __future__ import annotations

from typing import Any

{% for rule in rules.imports %}
from {{ rule.import_path }} import {{ rule.class_name }}
{% endfor %}


class {{ module }}:
    def __init__(
        self,
{% for rule in rules.properties %}
        {{ rule.name }}: {{ rule.class_name }},
{% endfor %}
    ) -> None:
{% for rule in rules.properties %}
        self._{{ rule.name }} = {{ rule.name }}
{% endfor %}
{% for rule in rules.properties %}

    @property
    def {{ rule.name }}(self) -> {{ rule.class_name }}:
        return self._{{ rule.name }}
{% endfor %}

    @classmethod
    def create(
        cls,
{% for rule in rules.create_properties %}
        {{ rule.name }}: {{ rule.class_name }},
{% endfor %}
    ) -> {{ module }}:
        return cls(
{% if rules.identity %}
            {{ rules.identity.name }}={{ rules.identity.class_name }}.generate(),
{% endif %}
{% for rule in rules.create_properties %}
            {{ rule.name }}={{ rule.name }},
{% endfor %}
        )

    @classmethod
    def from_primitives(
        cls,
{% for rule in rules.properties %}
        {{ rule.name }}: {{ rule.value_type }},
{% endfor %}
    ) -> {{ module }}:
        return cls(
{% for rule in rules.properties %}
            {{ rule.name }}={{ rule.class_name }}.{{ rule.primary_factory }}({{ rule.name }}),
{% endfor %}
        )

    def to_primitives(self) -> dict[str, Any]:
        return {
{% for rule in rules.properties %}
            "{{ rule.name }}": self._{{ rule.name }}.value,
{% endfor %}
        }
'''

ENTITY_SIMPLE = '''"""{{ module }} entity."""

from __future__ import annotations


class {{ module }}:
    @classmethod
    def create(cls) -> {{ module }}:
        return cls()
'''

REPOSITORY_CONTRACT = '''"""Persistence port for {{ module }} aggregates."""

from __future__ import annotations

from abc import ABC, abstractmethod

from {{ entity_import }} import {{ module }}


class {{ module }}RepositoryContract(ABC):
    @abstractmethod
    def save(self, {{ names.variable }}: {{ module }}) -> None:
        """Persist a {{ module }}."""

    @abstractmethod
    def all(self) -> list[{{ module }}]:
        """Return every stored {{ module }}."""
'''

REPOSITORY = '''"""In-memory {{ module }} repository."""

from __future__ import annotations

from {{ contract_import }} import {{ module }}RepositoryContract
from {{ entity_import }} import {{ module }}


class {{ module }}Repository({{ module }}RepositoryContract):
    def __init__(self) -> None:
        self._items: list[{{ module }}] = []

    def save(self, {{ names.variable }}: {{ module }}) -> None:
        self._items.append({{ names.variable }})

    def all(self) -> list[{{ module }}]:
        return list(self._items)
'''

MAPPER = '''"""Maps {{ module }} entities to and from storage records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from {{ entity_import }} import {{ module }}


class {{ module }}Mapper:
    @staticmethod
    def to_domain(record: Mapping[str, Any]) -> {{ module }}:
        return {{ module }}.from_primitives(
{% for rule in rules.properties %}
{% if rule.nullable %}
            {{ rule.name }}=record.get("{{ rule.name }}"),
{% else %}
            {{ rule.name }}=record["{{ rule.name }}"],
{% endif %}
{% endfor %}
        )

    @staticmethod
    def to_persistence({{ names.variable }}: {{ module }}) -> dict[str, Any]:
        return {
{% for rule in rules.persisted_properties %}
            "{{ rule.name }}": {{ names.variable }}.{{ rule.name }}.value,
{% endfor %}
        }
'''

ROUTES = '''"""HTTP routes for the {{ module }} module."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(prefix="{{ names.route_prefix }}", tags=["{{ module }}"])

# Define your routes here.
'''

SERVICE_PROVIDER = '''"""Wires the {{ module }} module into the application."""

from __future__ import annotations

from typing import Any

from {{ contract_import }} import {{ module }}RepositoryContract
from {{ routes_import }} import router
from {{ repository_import }} import {{ module }}Repository


class {{ module }}ServiceProvider:
    def register(self, container: Any) -> None:
        container.bind({{ module }}RepositoryContract, {{ module }}Repository)

    def boot(self, app: Any) -> None:
        app.include_router(router)
'''

MODEL = '''"""Storage model for {{ module }} records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class {{ module }}Model(BaseModel):
    model_config = ConfigDict(extra="allow", from_attributes=True)
'''


BUILTIN_STUBS: dict[str, str] = {
    "value-object": VALUE_OBJECT,
    "enum": ENUM,
    "entity": ENTITY,
    "entity-simple": ENTITY_SIMPLE,
    "repository-contract": REPOSITORY_CONTRACT,
    "repository": REPOSITORY,
    "mapper": MAPPER,
    "routes": ROUTES,
    "service-provider": SERVICE_PROVIDER,
    "model": MODEL,
}
