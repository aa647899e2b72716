"""
SheetDB - typed, relational entities over a tabular row store.

Each entity lives in one table (first row = headers, one row per record).
SheetDB validates records against their entity definition, looks them up
by id, caches whole collections, follows declared relations to a bounded
depth, and enforces restrict/cascade rules on removal.

Example:
    >>> from sheetdb import (
    ...     ChildRelation, EntityDefinition, InMemoryTableStore, Reference,
    ...     Registry, column,
    ... )
    >>> Users = EntityDefinition(
    ...     name="Users",
    ...     columns=(
    ...         column("id", "string"),
    ...         column("email", "string", required=True, unique=True),
    ...     ),
    ...     children=(
    ...         ChildRelation("Orders", foreign_key="userId", attach_as="orders",
    ...                       deletion="cascade"),
    ...     ),
    ... )
    >>> Orders = EntityDefinition(
    ...     name="Orders",
    ...     columns=(
    ...         column("id", "string"),
    ...         column("userId", "string",
    ...                references=Reference("Users", local_key="userId", attach_as="user")),
    ...         column("total", "number", required=True, min=0),
    ...     ),
    ... )
    >>> db = Registry(InMemoryTableStore(), [Users, Orders])
    >>> user = db.Users.insert({"email": "a@x.com"})
    >>> db.Orders.insert({"userId": user["id"], "total": "10"})["total"]
    10

Version: 1.0.0
"""

__version__ = "1.0.0"

from .cache import CollectionCache
from .collection import RemovalResult, TabularCollection
from .config import Settings, setup_logging
from .errors import (
    ArgumentError,
    AuthenticationError,
    IntegrityError,
    NotFoundError,
    SchemaError,
    SheetDbError,
    StoreError,
    UniqueConstraintError,
    ValidationError,
)
from .registry import Registry, open_registry
from .schema import (
    ChildRelation,
    ColumnDef,
    ColumnType,
    DeletionPolicy,
    EntityDefinition,
    Reference,
    Validator,
    column,
    load_schema,
    validator,
)
from .store import InMemoryTableStore, JsonFileTableStore, Table, TableStore

__all__ = [
    # Version
    "__version__",
    # Schema
    "ColumnDef",
    "ColumnType",
    "EntityDefinition",
    "Reference",
    "ChildRelation",
    "DeletionPolicy",
    "Validator",
    "column",
    "validator",
    "load_schema",
    # Engine
    "Registry",
    "open_registry",
    "TabularCollection",
    "RemovalResult",
    "CollectionCache",
    # Stores
    "Table",
    "TableStore",
    "InMemoryTableStore",
    "JsonFileTableStore",
    # Config
    "Settings",
    "setup_logging",
    # Errors
    "SheetDbError",
    "ArgumentError",
    "SchemaError",
    "ValidationError",
    "UniqueConstraintError",
    "NotFoundError",
    "IntegrityError",
    "StoreError",
    "AuthenticationError",
]
