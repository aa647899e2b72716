"""
Collection cache shared by the collections of one Registry.

Snapshots are keyed by (entity, depth). A snapshot is always a complete
record list for its entity at that relation depth; partial snapshots are
never stored.

Invalidation rules:
    - A write to an entity drops every snapshot of that entity
    - It also drops every relation-populated snapshot (depth > 0) of any
      entity, because those embed records of other entities
    - Depth-0 snapshots of other entities are kept
"""

from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class CollectionCache:
    """Per-Registry snapshot cache.

    Example:
        >>> cache = CollectionCache()
        >>> cache.put("Users", 0, [{"id": "u1"}])
        >>> cache.get("Users", 0)
        [{'id': 'u1'}]
        >>> cache.invalidate("Users")
        >>> cache.get("Users", 0) is None
        True
    """

    def __init__(self) -> None:
        self._snapshots: dict[tuple[str, int], list[Record]] = {}

    def get(self, entity: str, depth: int) -> Optional[list[Record]]:
        return self._snapshots.get((entity, depth))

    def put(self, entity: str, depth: int, records: list[Record]) -> None:
        self._snapshots[(entity, depth)] = records

    def contains(self, entity: str, depth: int = 0) -> bool:
        return (entity, depth) in self._snapshots

    def invalidate(self, entity: str) -> None:
        """Drop snapshots made stale by a write to entity."""
        stale = [key for key in self._snapshots if key[0] == entity or key[1] > 0]
        for key in stale:
            del self._snapshots[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached snapshot(s) after write to {entity}")

    def clear(self) -> None:
        self._snapshots.clear()

    def __len__(self) -> int:
        return len(self._snapshots)
