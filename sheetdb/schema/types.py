"""
Core type definitions for the SheetDB schema system.

This module defines the declarative metadata for tabular entities:
- ColumnDef: A typed, constrained column of an entity
- Reference: Many-to-one relation declared on a child column
- ChildRelation: One-to-many relation declared on the parent entity
- EntityDefinition: An entity (one table) with its columns and relations
- Validator: Capability interface for custom column checks

Invariants:
    - Definitions are immutable after construction
    - headers always equals column names in declaration order
    - Validation mutates the candidate record in place (defaults, coercions)
    - Validation is fail-fast: the first failing rule raises

How to change safely:
    - Add new column options with defaults that keep old schemas valid
    - Never reorder columns of an existing entity; the table header row
      is repaired to match and existing rows would misalign

Example:
    >>> from sheetdb.schema.types import EntityDefinition, column
    >>> Users = EntityDefinition(
    ...     name="Users",
    ...     columns=(
    ...         column("id", "string"),
    ...         column("email", "string", required=True, unique=True),
    ...     ),
    ... )
    >>> Users.headers
    ['id', 'email']
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from ..credentials import is_hashed
from ..errors import SchemaError, UniqueConstraintError, ValidationError

ID_COLUMN = "id"


class ColumnType(Enum):
    """Supported column types.

    Only required columns are coerced to their type during validation.
    """

    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    OPAQUE = "opaque"  # Stored as given, never coerced

    @classmethod
    def from_str(cls, value: str) -> ColumnType:
        """Convert string representation to ColumnType.

        Raises:
            SchemaError: If value is not a valid column type
        """
        for kind in cls:
            if kind.value == value:
                return kind
        valid = [k.value for k in cls]
        raise SchemaError(f"Invalid column type '{value}'. Valid types: {valid}")


class DeletionPolicy(Enum):
    """What happens to children when their parent is removed."""

    RESTRICT = "restrict"
    CASCADE = "cascade"

    @classmethod
    def from_str(cls, value: str | DeletionPolicy) -> DeletionPolicy:
        if isinstance(value, DeletionPolicy):
            return value
        for policy in cls:
            if policy.value == value:
                return policy
        raise SchemaError(f"Invalid deletion strategy '{value}'")


@runtime_checkable
class Validator(Protocol):
    """Custom column check.

    check() receives the candidate value, every existing record of the
    entity and the candidate record itself. It signals failure by raising.
    """

    def check(self, value: Any, records: list[dict[str, Any]], record: dict[str, Any]) -> None:
        ...


@dataclass(frozen=True)
class FunctionValidator:
    """Adapts a plain function to the Validator interface."""

    func: Callable[[Any, list[dict[str, Any]], dict[str, Any]], Any]

    def check(self, value: Any, records: list[dict[str, Any]], record: dict[str, Any]) -> None:
        self.func(value, records, record)


def validator(func: Callable[[Any, list[dict[str, Any]], dict[str, Any]], Any]) -> FunctionValidator:
    """Wrap func(value, records, record) as a Validator.

    Example:
        >>> @validator
        ... def not_admin(value, records, record):
        ...     if value == "admin":
        ...         raise ValidationError("reserved name")
    """
    return FunctionValidator(func)


@dataclass(frozen=True)
class Reference:
    """Many-to-one relation: the column holds the key of a parent record.

    Attributes:
        entity: Target (parent) entity name
        local_key: Column on this entity holding the parent key
        foreign_key: Key column on the parent entity
        attach_as: Attribute the resolved parent is attached under
    """

    entity: str
    local_key: str
    attach_as: str
    foreign_key: str = ID_COLUMN

    def __post_init__(self) -> None:
        if not self.entity or not self.local_key or not self.foreign_key:
            raise SchemaError("Reference requires entity, local_key and foreign_key")
        if not self.attach_as:
            raise SchemaError(f"Reference to '{self.entity}' requires an attachment name")

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "local_key": self.local_key,
            "foreign_key": self.foreign_key,
            "as": self.attach_as,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], local_key: str | None = None) -> Reference:
        return cls(
            entity=data["entity"],
            local_key=data.get("local_key", local_key),
            foreign_key=data.get("foreign_key", ID_COLUMN),
            attach_as=data.get("as", data.get("attach_as", "")),
        )


@dataclass(frozen=True)
class ChildRelation:
    """One-to-many relation declared on the parent entity.

    Attributes:
        entity: Child entity name
        foreign_key: Column on the child holding the parent key
        attach_as: Attribute the list of children is attached under
        local_key: Key column on the parent
        deletion: Policy applied when the parent is removed

    The deletion policy is resolved lazily through `policy` so that a
    misspelled policy surfaces as SchemaError when a removal needs it.
    """

    entity: str
    foreign_key: str
    attach_as: str
    local_key: str = ID_COLUMN
    deletion: DeletionPolicy | str = DeletionPolicy.RESTRICT

    def __post_init__(self) -> None:
        if not self.entity or not self.foreign_key or not self.local_key:
            raise SchemaError("Child relation requires entity, foreign_key and local_key")
        if not self.attach_as:
            raise SchemaError(f"Child relation to '{self.entity}' requires an attachment name")

    @property
    def policy(self) -> DeletionPolicy:
        """Resolved deletion policy.

        Raises:
            SchemaError: If the declared policy is not recognized
        """
        return DeletionPolicy.from_str(self.deletion)

    def to_dict(self) -> dict[str, Any]:
        deletion = self.deletion.value if isinstance(self.deletion, DeletionPolicy) else self.deletion
        return {
            "entity": self.entity,
            "local_key": self.local_key,
            "foreign_key": self.foreign_key,
            "as": self.attach_as,
            "deletion": deletion,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChildRelation:
        return cls(
            entity=data["entity"],
            foreign_key=data["foreign_key"],
            attach_as=data.get("as", data.get("attach_as", "")),
            local_key=data.get("local_key", ID_COLUMN),
            deletion=data.get("deletion", DeletionPolicy.RESTRICT.value),
        )


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            number = float(text)
    else:
        raise ValueError(f"cannot convert {type(value).__name__}")
    if isinstance(number, float):
        if math.isnan(number):
            raise ValueError("NaN")
        if number.is_integer():
            number = int(number)
    return number


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise ValueError(f"cannot convert {type(value).__name__}")


@dataclass(frozen=True)
class ColumnDef:
    """Definition of a single column of an entity.

    Attributes:
        name: Column name (also the header text in the table)
        type: Column type, used for coercion of required values
        required: Whether an empty value is rejected
        default: Substituted when the value is falsy (None, "", 0, False)
        min: Lower numeric bound (inclusive)
        max: Upper numeric bound (inclusive)
        regex: Pattern the text form of the value must contain a match for
        error_msg: Message used when regex does not match
        unique: Value must not repeat across the entity's other records
        is_hashed: Value is stored as a digest; digest-shaped values skip checks
        validate: Custom Validator run after all built-in rules
        references: Many-to-one relation carried by this column
        description: Human-readable description

    Example:
        >>> total = ColumnDef(name="total", type=ColumnType.NUMBER, required=True, min=0)
    """

    name: str
    type: ColumnType = ColumnType.OPAQUE
    required: bool = False
    default: Any = None
    min: float | None = None
    max: float | None = None
    regex: str | None = None
    error_msg: str = ""
    unique: bool = False
    is_hashed: bool = False
    validate: Validator | None = None
    references: Reference | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise SchemaError("Column name cannot be empty")
        if self.regex is not None:
            try:
                re.compile(self.regex)
            except re.error as exc:
                raise SchemaError(f"Column '{self.name}' has invalid regex: {exc}") from exc
        if self.validate is not None and not isinstance(self.validate, Validator):
            if not callable(self.validate):
                raise SchemaError(f"Column '{self.name}' validate must be callable or a Validator")
            object.__setattr__(self, "validate", FunctionValidator(self.validate))

    def check(self, record: dict[str, Any], records: list[dict[str, Any]]) -> None:
        """Validate and normalize this column's value inside record.

        Raises:
            ValidationError: On required, type, format or range failure
            UniqueConstraintError: If the value already exists in records
        """
        name = self.name
        value = record.get(name)

        if self.is_hashed and is_hashed(value):
            return

        if not value and self.default is not None:
            value = self.default
            record[name] = value

        if self.required:
            if _is_empty(value):
                raise ValidationError(
                    f'Column "{name}" is required but not provided.', field_name=name
                )
            value = self._coerce(value)
            record[name] = value
        elif _is_empty(value):
            self._run_validator(value, record, records)
            return

        if self.regex is not None and re.search(self.regex, str(value)) is None:
            message = f"{self.error_msg} {value}" if self.error_msg else f'Invalid format for "{name}".'
            raise ValidationError(message, field_name=name, value=value)

        try:
            below = self.min is not None and value < self.min
            above = self.max is not None and value > self.max
        except TypeError:
            raise ValidationError(
                f'Column "{name}" cannot be compared with its bounds. Value: {value}.',
                field_name=name,
                value=value,
            ) from None
        if below:
            raise ValidationError(
                f'Column "{name}" cannot be less than {self.min}.', field_name=name, value=value
            )
        if above:
            raise ValidationError(
                f'Column "{name}" cannot be greater than {self.max}.', field_name=name, value=value
            )

        if self.unique and any(other.get(name) == value for other in records):
            raise UniqueConstraintError(name, value)

        self._run_validator(value, record, records)

    def _coerce(self, value: Any) -> Any:
        if self.type == ColumnType.NUMBER:
            try:
                return _to_number(value)
            except (TypeError, ValueError):
                raise ValidationError(
                    f'Column "{self.name}" must be a number. Value: {value}. '
                    f"Type: {type(value).__name__}",
                    field_name=self.name,
                    value=value,
                ) from None
        if self.type == ColumnType.STRING:
            return str(value)
        if self.type == ColumnType.DATE:
            try:
                return _to_datetime(value)
            except (TypeError, ValueError):
                raise ValidationError(
                    f'Column "{self.name}" must be a date. Value: {value}. '
                    f"Type: {type(value).__name__}",
                    field_name=self.name,
                    value=value,
                ) from None
        return value

    def _run_validator(
        self, value: Any, record: dict[str, Any], records: list[dict[str, Any]]
    ) -> None:
        if self.validate is not None:
            self.validate.check(value, records, record)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation (custom validators are omitted)."""
        result: dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.required:
            result["required"] = True
        if self.default is not None:
            result["default"] = self.default
        if self.min is not None:
            result["min"] = self.min
        if self.max is not None:
            result["max"] = self.max
        if self.regex is not None:
            result["regex"] = self.regex
        if self.error_msg:
            result["error_msg"] = self.error_msg
        if self.unique:
            result["unique"] = True
        if self.is_hashed:
            result["is_hashed"] = True
        if self.references is not None:
            result["references"] = self.references.to_dict()
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnDef:
        """Create from dictionary representation."""
        references = data.get("references")
        return cls(
            name=data["name"],
            type=ColumnType.from_str(data.get("type", ColumnType.OPAQUE.value)),
            required=data.get("required", False),
            default=data.get("default"),
            min=data.get("min"),
            max=data.get("max"),
            regex=data.get("regex"),
            error_msg=data.get("error_msg", ""),
            unique=data.get("unique", False),
            is_hashed=data.get("is_hashed", False),
            references=Reference.from_dict(references, local_key=data["name"])
            if references
            else None,
            description=data.get("description", ""),
        )


def column(
    name: str,
    type: str | ColumnType = ColumnType.OPAQUE,
    *,
    required: bool = False,
    default: Any = None,
    min: float | None = None,
    max: float | None = None,
    regex: str | None = None,
    error_msg: str = "",
    unique: bool = False,
    is_hashed: bool = False,
    validate: Validator | Callable[..., Any] | None = None,
    references: Reference | None = None,
    description: str = "",
) -> ColumnDef:
    """Convenience function to create a ColumnDef.

    Example:
        >>> email = column("email", "string", required=True, unique=True)
        >>> user_id = column(
        ...     "userId", "string",
        ...     references=Reference("Users", local_key="userId", attach_as="user"),
        ... )
    """
    if isinstance(type, str):
        type = ColumnType.from_str(type)
    return ColumnDef(
        name=name,
        type=type,
        required=required,
        default=default,
        min=min,
        max=max,
        regex=regex,
        error_msg=error_msg,
        unique=unique,
        is_hashed=is_hashed,
        validate=validate,
        references=references,
        description=description,
    )


@dataclass(frozen=True)
class EntityDefinition:
    """Definition of an entity backed by one table.

    Attributes:
        name: Entity and table name, unique within a Registry
        columns: Column definitions in header order
        children: One-to-many relations to other entities
        description: Human-readable description

    Invariants:
        - Column names are unique and non-empty
        - headers lists column names in declaration order

    Example:
        >>> Orders = EntityDefinition(
        ...     name="Orders",
        ...     columns=(
        ...         column("id", "string"),
        ...         column("total", "number", required=True, min=0),
        ...     ),
        ... )
    """

    name: str
    columns: tuple[ColumnDef, ...] = dataclass_field(default_factory=tuple)
    children: tuple[ChildRelation, ...] = dataclass_field(default_factory=tuple)
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise SchemaError("Entity name cannot be empty")
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "children", tuple(self.children))

        names = [c.name for c in self.columns]
        if len(names) != len(set(names)):
            raise SchemaError(f"Duplicate column name in entity '{self.name}'", entity=self.name)

    @property
    def headers(self) -> list[str]:
        """Column names in declaration order."""
        return [c.name for c in self.columns]

    @property
    def default_values(self) -> list[Any]:
        """Default values aligned to headers."""
        return [c.default for c in self.columns]

    @property
    def references(self) -> list[ColumnDef]:
        """Columns carrying a many-to-one relation."""
        return [c for c in self.columns if c.references is not None]

    def get_column(self, name: str) -> ColumnDef | None:
        for c in self.columns:
            if c.name == name:
                return c
        return None

    def validate(self, candidate: dict[str, Any], existing: list[dict[str, Any]]) -> None:
        """Validate candidate against every column in declaration order.

        Args:
            candidate: Record to check; defaults and coercions are written into it
            existing: Records the unique rule compares against (callers
                exclude the candidate's own prior version on update)

        Raises:
            ValidationError: First failing required/type/format/range rule
            UniqueConstraintError: First colliding unique value
        """
        for col in self.columns:
            col.check(candidate, existing)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
        }
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntityDefinition:
        """Create from dictionary representation."""
        return cls(
            name=data["name"],
            columns=tuple(ColumnDef.from_dict(c) for c in data.get("columns", [])),
            children=tuple(ChildRelation.from_dict(c) for c in data.get("children", [])),
            description=data.get("description", ""),
        )
