"""
Schema module for SheetDB.

This module provides the declarative entity model:
- Column and entity definitions (ColumnDef, EntityDefinition)
- Relation descriptors (Reference, ChildRelation, DeletionPolicy)
- Custom validator capability (Validator, validator)
- YAML/JSON schema documents

Invariants:
    - Definitions are immutable after construction
    - Column order is the table header order
"""

from .format import dump_schema, load_schema, parse_json, parse_schema, parse_yaml
from .types import (
    ID_COLUMN,
    ChildRelation,
    ColumnDef,
    ColumnType,
    DeletionPolicy,
    EntityDefinition,
    FunctionValidator,
    Reference,
    Validator,
    column,
    validator,
)

__all__ = [
    # Types
    "ID_COLUMN",
    "ColumnDef",
    "ColumnType",
    "EntityDefinition",
    "column",
    # Relations
    "Reference",
    "ChildRelation",
    "DeletionPolicy",
    # Validators
    "Validator",
    "FunctionValidator",
    "validator",
    # Documents
    "parse_schema",
    "parse_yaml",
    "parse_json",
    "load_schema",
    "dump_schema",
]
