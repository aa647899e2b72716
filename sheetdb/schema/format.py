"""
YAML/JSON schema documents.

Entity definitions can be kept in a document instead of Python code.
Custom validators cannot be expressed in a document; attach them in code.

Example document:
    entities:
      - name: Users
        columns:
          - {name: id, type: string}
          - {name: email, type: string, required: true, unique: true}
          - {name: passwordHash, type: string, is_hashed: true}
        children:
          - entity: Orders
            local_key: id
            foreign_key: userId
            as: orders
            deletion: cascade

      - name: Orders
        columns:
          - {name: id, type: string}
          - name: userId
            type: string
            references: {entity: Users, foreign_key: id, as: user}
          - {name: total, type: number, required: true, min: 0}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..errors import SchemaError
from .types import EntityDefinition


def parse_schema(data: dict[str, Any]) -> list[EntityDefinition]:
    """Parse entity definitions from a decoded document.

    Raises:
        SchemaError: If the document is malformed
    """
    if not isinstance(data, dict):
        raise SchemaError("Schema document must be a mapping with an 'entities' list")
    entities = data.get("entities", [])
    if not isinstance(entities, list):
        raise SchemaError("'entities' must be a list")

    definitions = []
    for index, entity in enumerate(entities):
        if not isinstance(entity, dict) or "name" not in entity:
            raise SchemaError(f"Entity #{index} must be a mapping with a 'name'")
        try:
            definitions.append(EntityDefinition.from_dict(entity))
        except (KeyError, TypeError) as exc:
            raise SchemaError(
                f"Entity '{entity['name']}' is malformed: {exc}", entity=entity["name"]
            ) from exc
    return definitions


def parse_yaml(yaml_str: str) -> list[EntityDefinition]:
    """Parse entity definitions from a YAML string."""
    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as exc:
        raise SchemaError(f"Invalid YAML schema: {exc}") from exc
    return parse_schema(data or {})


def parse_json(json_str: str) -> list[EntityDefinition]:
    """Parse entity definitions from a JSON string."""
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Invalid JSON schema: {exc}") from exc
    return parse_schema(data or {})


def load_schema(path: str | Path) -> list[EntityDefinition]:
    """Load entity definitions from a .json, .yaml or .yml file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return parse_json(text)
    return parse_yaml(text)


def dump_schema(definitions: list[EntityDefinition]) -> str:
    """Serialize definitions back to a YAML document."""
    return yaml.safe_dump(
        {"entities": [d.to_dict() for d in definitions]},
        default_flow_style=False,
        sort_keys=False,
    )
