"""
Tabular collections: one per entity.

A TabularCollection maps the rows of one table to record dicts and back.
It provides:
- Identifier lookup through a lazily built id -> row index
- Whole-collection reads through the Registry's CollectionCache
- Validated insert and update
- Relation population (children and references) bounded by depth
- Integrity-checked removal (restrict / cascade)

Invariants:
    - The store is authoritative; records are views rebuilt from rows
    - Every write invalidates the entity in the cache, also when validation fails
    - The row index maps each id to its current row; it is patched on
      append and delete and rebuilt by build_index()
    - find_by_id and remove treat an unknown id as a normal empty result
    - A cascade is planned before any row is deleted, so a restrict
      relation deeper in the graph aborts with nothing removed

How to change safely:
    - Keep children-then-references order in all() and
      references-then-children in find_by_id()
    - Never cache a partially read table
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from .credentials import hash_value
from .errors import (
    ArgumentError,
    IntegrityError,
    NotFoundError,
    SchemaError,
    StoreError,
)
from .schema.types import ID_COLUMN, DeletionPolicy, EntityDefinition
from .store.base import Row, Table

if TYPE_CHECKING:
    from .cache import CollectionCache
    from .registry import Registry

logger = logging.getLogger(__name__)

Record = dict[str, Any]


@dataclass
class RemovalResult:
    """Rows deleted by a remove() call, in deletion order.

    Attributes:
        removed: (entity, id) pairs; children precede their parents
    """

    removed: list[tuple[str, Any]] = field(default_factory=list)

    def ids(self, entity: str) -> list[Any]:
        """Ids removed from the given entity."""
        return [record_id for name, record_id in self.removed if name == entity]

    def __len__(self) -> int:
        return len(self.removed)

    def __bool__(self) -> bool:
        return bool(self.removed)


class TabularCollection:
    """Typed, validated view over one table.

    Collections are created by a Registry; reach siblings through it.

    Attributes:
        registry: Owning Registry
        definition: Entity definition for this table
        table: Backing store table
        name: Entity name
        headers: Column names in table order

    Example:
        >>> user = db.Users.insert({"email": "a@x.com"})
        >>> db.Users.find_by_id(user["id"])["email"]
        'a@x.com'
        >>> db.Users.all(depth=1)[0]["orders"]
        []
    """

    def __init__(self, registry: Registry, definition: EntityDefinition, table: Table) -> None:
        self.registry = registry
        self.definition = definition
        self.table = table
        self.name = definition.name
        self.headers = definition.headers
        self._index: Optional[dict[Any, int]] = None

    def __repr__(self) -> str:
        return f"TabularCollection(name={self.name!r}, headers={self.headers!r})"

    @property
    def cache(self) -> CollectionCache:
        return self.registry.cache

    @property
    def index(self) -> dict[Any, int]:
        """Copy of the id -> row number index (built on first access)."""
        return dict(self._ensure_index())

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def row_to_record(self, row: Row) -> Record:
        if len(row) != len(self.headers):
            raise StoreError(
                f"Row has {len(row)} cells but {self.name} has {len(self.headers)} columns",
                table=self.name,
            )
        return dict(zip(self.headers, row))

    def record_to_row(self, record: Record) -> Row:
        return [record.get(header) for header in self.headers]

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def build_index(self) -> dict[Any, int]:
        """Read the id column and rebuild the id -> row number index.

        Returns:
            The new index

        Raises:
            SchemaError: If the entity declares no id column
        """
        if ID_COLUMN not in self.headers:
            raise SchemaError(f"No '{ID_COLUMN}' column found in headers for {self.name}", entity=self.name)

        id_col = self.headers.index(ID_COLUMN) + 1
        last_row = self.table.last_row()

        index: dict[Any, int] = {}
        if last_row > 1:
            values = self.table.read_range(2, id_col, last_row - 1, 1)
            for offset, (record_id,) in enumerate(values):
                if record_id is not None:
                    index[record_id] = offset + 2

        self._index = index
        logger.debug(f"Built id index for {self.name} with {len(index)} entries")
        return index

    def reset_index(self) -> None:
        """Forget the index; the next id access rebuilds it."""
        self._index = None

    def _ensure_index(self) -> dict[Any, int]:
        if self._index is None:
            return self.build_index()
        return self._index

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, record_id: Any, depth: int = 0) -> Optional[Record]:
        """Read one record by id.

        Args:
            record_id: Record identifier
            depth: Relation depth; 0 attaches no relations

        Returns:
            The record, or None if no row holds record_id
        """
        depth = self._check_depth(depth)
        row_number = self._ensure_index().get(record_id)
        if row_number is None:
            return None

        row = self.table.read_range(row_number, 1, 1, len(self.headers))[0]
        record = self.row_to_record(row)

        if depth > 0:
            self.populate_references([record], depth)
            self.populate_children([record], depth)

        return record

    def all(self, depth: int = 0) -> list[Record]:
        """Every record of the entity.

        The snapshot for (entity, depth) is served from the cache when
        present; otherwise the table is read in full and cached.

        Args:
            depth: Relation depth; 0 attaches no relations
        """
        depth = self._check_depth(depth)
        records = self.cache.get(self.name, depth)
        if records is None:
            last_row = self.table.last_row()
            rows = (
                self.table.read_range(2, 1, last_row - 1, len(self.headers))
                if last_row > 1
                else []
            )
            records = [self.row_to_record(row) for row in rows]

            if depth > 0:
                self.populate_children(records, depth)
                self.populate_references(records, depth)

            self.cache.put(self.name, depth, records)
            logger.debug(f"Loaded {len(records)} {self.name} record(s) at depth {depth}")

        return list(records)

    def where(self, predicate: Callable[[Record], bool]) -> list[Record]:
        """Records (depth 0) for which predicate returns true."""
        return [record for record in self.all() if predicate(record)]

    def count(self) -> int:
        """Number of data rows."""
        return max(self.table.last_row() - 1, 0)

    def exists(self, record_id: Any) -> bool:
        return record_id in self._ensure_index()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, obj: Optional[Record], hash_fields: Optional[Iterable[str]] = None) -> Record:
        """Validate and append a new record.

        A fresh id is always assigned, replacing any id in obj. Fields named
        in hash_fields are replaced by their digest after validation.

        Returns:
            obj, completed with id, defaults, coercions and digests

        Raises:
            ArgumentError: If obj is None
            ValidationError: If a column rule fails
            UniqueConstraintError: If a unique value already exists
        """
        if obj is None:
            raise ArgumentError("The object to insert cannot be None", argument="obj")

        existing = self.all()
        obj[ID_COLUMN] = self.registry.id_factory()
        try:
            self.definition.validate(obj, existing)
            self._hash_fields(obj, hash_fields)

            row_number = self.table.append_row(self.record_to_row(obj))
            if self._index is not None:
                self._index[obj[ID_COLUMN]] = row_number
        finally:
            # obj may be a cached record; drop snapshots it could have altered
            self._invalidate()

        logger.debug(f"Inserted {self.name} {obj[ID_COLUMN]} at row {row_number}")
        return obj

    def update(
        self,
        record_id: Any,
        obj: Optional[Record],
        hash_fields: Optional[Iterable[str]] = None,
    ) -> Record:
        """Validate obj and overwrite the row holding record_id.

        Returns:
            obj, completed with defaults, coercions and digests

        Raises:
            NotFoundError: If no row holds record_id
            ArgumentError: If obj is None or obj's id differs from record_id
            ValidationError: If a column rule fails
            UniqueConstraintError: If a unique value exists on another record
        """
        row_number = self._ensure_index().get(record_id)
        if row_number is None:
            raise NotFoundError(self.name, record_id)
        if obj is None:
            raise ArgumentError("The object to update cannot be None", argument="obj")
        if obj.get(ID_COLUMN) != record_id:
            raise ArgumentError(f"ID mismatch: {record_id} != {obj.get(ID_COLUMN)}", argument="id")

        others = [record for record in self.all() if record.get(ID_COLUMN) != record_id]
        try:
            self.definition.validate(obj, others)
            self._hash_fields(obj, hash_fields)
            self.table.write_range(row_number, 1, [self.record_to_row(obj)])
        finally:
            # obj may be a cached record; drop snapshots it could have altered
            self._invalidate()

        logger.debug(f"Updated {self.name} {record_id} at row {row_number}")
        return obj

    def remove(self, record_id: Any) -> RemovalResult:
        """Remove a record, honoring the deletion policy of each child relation.

        The full cascade is planned first. A restrict relation with matching
        children anywhere in the plan raises before any row is deleted.

        Returns:
            RemovalResult listing every (entity, id) removed; empty when
            record_id is unknown

        Raises:
            IntegrityError: If a restrict relation blocks the removal, or a
                store failure interrupts it (removed lists what was deleted)
            SchemaError: If a child relation has an unknown deletion policy
        """
        if record_id not in self._ensure_index():
            return RemovalResult()

        plan = self._plan_removal(record_id, set())

        result = RemovalResult()
        for collection, target_id in plan:
            try:
                collection._delete_record(target_id)
            except StoreError as exc:
                raise IntegrityError(
                    f"Removal of {self.name} {record_id} interrupted after "
                    f"{len(result.removed)} row(s): {exc.message}",
                    entity=self.name,
                    record_id=record_id,
                    child_entity=collection.name,
                    removed=result.removed,
                ) from exc
            result.removed.append((collection.name, target_id))

        logger.info(f"Removed {self.name} {record_id} ({len(result)} row(s) in total)")
        return result

    def remove_all(self) -> None:
        """Delete every data row. No integrity checks are made."""
        last_row = self.table.last_row()
        if last_row > 1:
            self.table.delete_rows(2, last_row - 1)
            logger.info(f"Removed all {last_row - 1} row(s) from {self.name}")
        self._index = {}
        self._invalidate()

    def _plan_removal(
        self, record_id: Any, visited: set[tuple[str, Any]]
    ) -> list[tuple[TabularCollection, Any]]:
        """Deletion order (children first) for record_id and its cascade.

        visited holds every (entity, id) already planned for deletion;
        those rows no longer count as blocking children of a restrict
        relation checked later in the walk.
        """
        key = (self.name, record_id)
        if key in visited:
            return []
        visited.add(key)

        plan: list[tuple[TabularCollection, Any]] = []
        relations = self.definition.children
        record = self.find_by_id(record_id) if relations else None

        for relation in relations:
            policy = relation.policy
            child_set = self.registry.collection(relation.entity)
            local_value = record.get(relation.local_key) if record is not None else record_id
            children = [
                child for child in child_set.all() if child.get(relation.foreign_key) == local_value
            ]

            if policy == DeletionPolicy.RESTRICT:
                children = [
                    child
                    for child in children
                    if (child_set.name, child.get(ID_COLUMN)) not in visited
                ]
                if children:
                    raise IntegrityError(
                        f"Cannot delete {self.name} {record_id} because it has "
                        f"{len(children)} child record(s) in {child_set.name}",
                        entity=self.name,
                        record_id=record_id,
                        child_entity=child_set.name,
                    )
            else:
                for child in children:
                    plan.extend(child_set._plan_removal(child.get(ID_COLUMN), visited))

        plan.append((self, record_id))
        return plan

    def _delete_record(self, record_id: Any) -> None:
        index = self._ensure_index()
        row_number = index.get(record_id)
        if row_number is None:
            return

        self.table.delete_row(row_number)
        del index[record_id]
        for other_id, other_row in index.items():
            if other_row > row_number:
                index[other_id] = other_row - 1
        self._invalidate()

    def _hash_fields(self, obj: Record, hash_fields: Optional[Iterable[str]]) -> None:
        for name in hash_fields or ():
            value = obj.get(name)
            if value is None or value == "":
                continue
            obj[name] = hash_value(value)

    def _invalidate(self) -> None:
        self.cache.invalidate(self.name)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def populate_children(self, records: list[Record], depth: int) -> None:
        """Attach a list of matching children for every child relation.

        Children are loaded at depth - 1. Parents without children get [].
        """
        for relation in self.definition.children:
            child_set = self.registry.collection(relation.entity)

            groups: dict[Any, list[Record]] = {}
            for child in child_set.all(depth - 1):
                groups.setdefault(child.get(relation.foreign_key), []).append(child)

            for parent in records:
                parent[relation.attach_as] = list(groups.get(parent.get(relation.local_key), []))

    def populate_references(self, records: list[Record], depth: int) -> None:
        """Attach the referenced parent (or None) for every reference column.

        Parents are loaded at depth - 1.
        """
        for col in self.definition.references:
            ref = col.references
            parent_set = self.registry.collection(ref.entity)
            lookup = {parent.get(ref.foreign_key): parent for parent in parent_set.all(depth - 1)}

            for record in records:
                record[ref.attach_as] = lookup.get(record.get(ref.local_key))

    def _check_depth(self, depth: Any) -> int:
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
            raise ArgumentError(f"depth must be a non-negative integer, got {depth!r}", argument="depth")
        if depth > self.registry.max_depth:
            raise ArgumentError(
                f"depth {depth} exceeds the maximum relation depth {self.registry.max_depth}",
                argument="depth",
            )
        return depth
