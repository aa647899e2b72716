"""
Registry for SheetDB.

The Registry binds a tabular store to a set of entity definitions. It:
- Checks the definitions for consistency (names, relation targets)
- Creates each entity's table with a header row when missing
- Repairs a table's header row when it no longer matches the definition
- Owns one TabularCollection per entity and the shared CollectionCache

Invariants:
    - Entity names are unique within a Registry
    - Every relation names a registered entity and existing columns
    - After construction each table's header row equals its definition's headers

Example:
    >>> from sheetdb import Registry, InMemoryTableStore
    >>> db = Registry(InMemoryTableStore(), [Users, Orders])
    >>> db.Users.insert({"email": "a@x.com"})
    >>> db["Orders"].all(depth=1)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, Optional

from .cache import CollectionCache
from .collection import TabularCollection
from .config import DEFAULT_MAX_DEPTH, Settings
from .credentials import new_id
from .errors import SchemaError
from .schema.types import EntityDefinition
from .store.base import Table, TableStore
from .store.jsonfile import JsonFileTableStore
from .store.memory import InMemoryTableStore

logger = logging.getLogger(__name__)


class Registry:
    """Entry point binding a store to entity definitions.

    Collections are reachable as attributes (db.Users), items (db["Users"])
    or through collection().

    Attributes:
        store: Backing tabular store
        cache: Snapshot cache shared by all collections
        max_depth: Largest relation depth accepted on reads
        id_factory: Produces identifiers for inserted records
    """

    def __init__(
        self,
        store: TableStore,
        definitions: Iterable[EntityDefinition],
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        id_factory: Callable[[], Any] = new_id,
    ) -> None:
        """Register definitions and synchronize their tables.

        Raises:
            SchemaError: On duplicate entity names or dangling relations
        """
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise SchemaError(f"max_depth must be a non-negative integer, got {max_depth!r}")

        self.store = store
        self.cache = CollectionCache()
        self.max_depth = max_depth
        self.id_factory = id_factory
        self._definitions: dict[str, EntityDefinition] = {}
        self._collections: dict[str, TabularCollection] = {}

        for definition in definitions:
            if definition.name in self._definitions:
                raise SchemaError(
                    f"Entity '{definition.name}' is defined more than once", entity=definition.name
                )
            self._definitions[definition.name] = definition

        errors = self.validate_all()
        if errors:
            raise SchemaError("Invalid entity definitions: " + "; ".join(errors))

        for definition in self._definitions.values():
            table = self._ensure_table(definition)
            self._collections[definition.name] = TabularCollection(self, definition, table)

        logger.info(f"Registry ready with {len(self._collections)} entities")

    def _ensure_table(self, definition: EntityDefinition) -> Table:
        headers = definition.headers
        table = self.store.get_table(definition.name)
        if table is None:
            table = self.store.create_table(definition.name, headers)
            logger.info(f"Created table {definition.name}")
            return table

        current = table.read_headers()
        if current != headers:
            logger.warning(
                f"Header row of {definition.name} was {current}, repairing to {headers}"
            )
            table.write_headers(headers)
        return table

    def validate_all(self) -> list[str]:
        """Check that every relation points at known entities and columns.

        Returns:
            List of problems (empty if valid)
        """
        errors = []
        for definition in self._definitions.values():
            for relation in definition.children:
                target = self._definitions.get(relation.entity)
                if target is None:
                    errors.append(
                        f"Child relation '{relation.attach_as}' of '{definition.name}' "
                        f"references unknown entity '{relation.entity}'"
                    )
                    continue
                if definition.get_column(relation.local_key) is None:
                    errors.append(
                        f"Child relation '{relation.attach_as}' of '{definition.name}' "
                        f"uses unknown local column '{relation.local_key}'"
                    )
                if target.get_column(relation.foreign_key) is None:
                    errors.append(
                        f"Child relation '{relation.attach_as}' of '{definition.name}' "
                        f"uses unknown column '{relation.foreign_key}' on '{target.name}'"
                    )

            for col in definition.references:
                ref = col.references
                target = self._definitions.get(ref.entity)
                if target is None:
                    errors.append(
                        f"Column '{col.name}' of '{definition.name}' "
                        f"references unknown entity '{ref.entity}'"
                    )
                    continue
                if definition.get_column(ref.local_key) is None:
                    errors.append(
                        f"Reference '{ref.attach_as}' of '{definition.name}' "
                        f"uses unknown local column '{ref.local_key}'"
                    )
                if target.get_column(ref.foreign_key) is None:
                    errors.append(
                        f"Reference '{ref.attach_as}' of '{definition.name}' "
                        f"uses unknown column '{ref.foreign_key}' on '{target.name}'"
                    )
        return errors

    def collection(self, name: str) -> TabularCollection:
        """Get the collection for an entity.

        Raises:
            SchemaError: If no entity has that name
        """
        try:
            return self._collections[name]
        except KeyError:
            raise SchemaError(f"Unknown entity '{name}'", entity=name) from None

    def definition(self, name: str) -> EntityDefinition:
        return self.collection(name).definition

    def names(self) -> list[str]:
        return list(self._collections)

    def invalidate_all(self) -> None:
        """Drop every cached snapshot and id index (after external edits to the store)."""
        self.cache.clear()
        for collection in self._collections.values():
            collection.reset_index()

    def __getattr__(self, name: str) -> TabularCollection:
        collections = self.__dict__.get("_collections")
        if collections is None or name.startswith("_") or name not in collections:
            raise AttributeError(f"{type(self).__name__!s} has no entity or attribute '{name}'")
        return collections[name]

    def __getitem__(self, name: str) -> TabularCollection:
        return self.collection(name)

    def __contains__(self, name: object) -> bool:
        return name in self._collections

    def __iter__(self) -> Iterator[TabularCollection]:
        return iter(self._collections.values())

    def __len__(self) -> int:
        return len(self._collections)


def open_registry(
    definitions: Iterable[EntityDefinition],
    settings: Optional[Settings] = None,
) -> Registry:
    """Build a Registry with the store selected by settings.

    Args:
        definitions: Entity definitions
        settings: Configuration (loaded from the environment when omitted)

    Returns:
        Registry over a JsonFileTableStore when store_path is set,
        otherwise over an InMemoryTableStore
    """
    settings = settings or Settings()
    if settings.store_path:
        store: TableStore = JsonFileTableStore(settings.store_path)
        logger.info(f"Using workbook file {settings.store_path}")
    else:
        store = InMemoryTableStore()
        logger.info("Using in-memory store")
    return Registry(store, definitions, max_depth=settings.max_depth)
