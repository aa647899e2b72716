"""
Error types for SheetDB.

This module defines all exception types raised by the mapping engine:
- SheetDbError: Base exception
- ArgumentError: Invalid or missing caller input
- SchemaError: Inconsistent entity definitions
- ValidationError: Record failed a column rule
- UniqueConstraintError: Value collides with an existing unique value
- NotFoundError: Operation needed a record that does not exist
- IntegrityError: A restrict relation blocks a deletion
- StoreError: Tabular store addressing failure
- AuthenticationError: Bearer token rejected

Invariants:
    - All errors inherit from SheetDbError
    - Every error carries a stable code for programmatic handling
    - find_by_id and remove never raise NotFoundError
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple


class SheetDbError(Exception):
    """Base exception for all SheetDB errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SHEETDB_ERROR"
        self.details = details or {}


class ArgumentError(SheetDbError):
    """Caller supplied invalid or missing input.

    Raised when:
    - Inserting None
    - Update payload id differs from the target id
    - Relation depth is negative, not an int, or above the limit
    """

    def __init__(self, message: str, argument: Optional[str] = None) -> None:
        super().__init__(message, code="ARGUMENT_ERROR", details={"argument": argument})
        self.argument = argument


class SchemaError(SheetDbError):
    """Entity definition is internally inconsistent.

    Raised when:
    - No id column is declared but an id lookup is needed
    - A child relation has an unknown deletion policy
    - A relation names an entity or column that does not exist
    """

    def __init__(self, message: str, entity: Optional[str] = None) -> None:
        super().__init__(message, code="SCHEMA_ERROR", details={"entity": entity})
        self.entity = entity


class ValidationError(SheetDbError):
    """Record failed a required, type, format or range rule."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Any = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field_name, "value": value},
        )
        self.field_name = field_name
        self.value = value


class UniqueConstraintError(SheetDbError):
    """Value already exists in a unique column.

    Attributes:
        column: Column carrying the unique constraint
        value: The colliding value
    """

    def __init__(self, column: str, value: Any) -> None:
        super().__init__(
            f'Column "{column}" must be unique. Value "{value}" already exists.',
            code="UNIQUE_ERROR",
            details={"column": column, "value": value},
        )
        self.column = column
        self.value = value


class NotFoundError(SheetDbError):
    """Record required by the operation does not exist."""

    def __init__(self, entity: str, record_id: Any) -> None:
        super().__init__(
            f"No row found in {entity} with id {record_id}",
            code="NOT_FOUND",
            details={"entity": entity, "id": record_id},
        )
        self.entity = entity
        self.record_id = record_id


class IntegrityError(SheetDbError):
    """Deletion blocked by a restrict child relation, or interrupted midway.

    Attributes:
        entity: Entity whose record could not be removed
        record_id: Id of that record
        child_entity: Entity holding the blocking children
        removed: (entity, id) pairs already deleted before the failure
    """

    def __init__(
        self,
        message: str,
        entity: str,
        record_id: Any,
        child_entity: Optional[str] = None,
        removed: Optional[List[Tuple[str, Any]]] = None,
    ) -> None:
        removed = list(removed or [])
        super().__init__(
            message,
            code="INTEGRITY_ERROR",
            details={
                "entity": entity,
                "id": record_id,
                "child_entity": child_entity,
                "removed": removed,
            },
        )
        self.entity = entity
        self.record_id = record_id
        self.child_entity = child_entity
        self.removed = removed


class StoreError(SheetDbError):
    """Tabular store rejected an operation (bad addressing, missing table)."""

    def __init__(self, message: str, table: Optional[str] = None) -> None:
        super().__init__(message, code="STORE_ERROR", details={"table": table})
        self.table = table


class AuthenticationError(SheetDbError):
    """Bearer token could not be verified.

    Raised when:
    - Token is missing or malformed
    - Signature does not match
    - Token has expired
    - No user holds the token
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="AUTHENTICATION_ERROR")
