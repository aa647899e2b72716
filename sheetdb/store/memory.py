"""
In-memory tabular store.

Useful for:
- Unit tests
- Local development without a backing file

Invariants:
    - All data is lost on process exit
    - Provides the same addressing rules as persistent backends
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from ..errors import StoreError
from .base import Row, Table, TableStore

logger = logging.getLogger(__name__)


class InMemoryTable(Table):
    """Grid of Python lists.

    Args:
        name: Table name
        rows: Initial rows (header row first)
        on_change: Called after every mutation
    """

    def __init__(
        self,
        name: str,
        rows: Optional[list[Row]] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(name)
        self._rows: list[Row] = [list(r) for r in rows or []]
        self._on_change = on_change

    @property
    def rows(self) -> list[Row]:
        """Copy of the raw grid."""
        return [list(r) for r in self._rows]

    def last_row(self) -> int:
        return len(self._rows)

    def last_column(self) -> int:
        width = 0
        for row in self._rows:
            for index in range(len(row), 0, -1):
                if row[index - 1] is not None:
                    width = max(width, index)
                    break
        return width

    def read_range(self, row: int, col: int, num_rows: int, num_cols: int) -> list[Row]:
        self._check_address(row, col, self.name)
        result = []
        for r in range(row - 1, row - 1 + num_rows):
            source = self._rows[r] if r < len(self._rows) else []
            cells = source[col - 1 : col - 1 + num_cols]
            cells += [None] * (num_cols - len(cells))
            result.append(cells)
        return result

    def write_range(self, row: int, col: int, values: Sequence[Sequence[Any]]) -> None:
        self._check_address(row, col, self.name)
        for offset, cells in enumerate(values):
            r = row - 1 + offset
            while len(self._rows) <= r:
                self._rows.append([])
            target = self._rows[r]
            end = col - 1 + len(cells)
            if len(target) < end:
                target.extend([None] * (end - len(target)))
            target[col - 1 : end] = list(cells)
        self._changed()

    def append_row(self, values: Sequence[Any]) -> int:
        self._rows.append(list(values))
        self._changed()
        return len(self._rows)

    def delete_rows(self, start: int, count: int) -> None:
        if start < 1 or count < 1 or start + count - 1 > len(self._rows):
            raise StoreError(
                f"Cannot delete rows {start}..{start + count - 1} of {self.name} "
                f"({len(self._rows)} rows)",
                table=self.name,
            )
        del self._rows[start - 1 : start - 1 + count]
        self._changed()

    def clear_range(self, row: int, col: int, num_rows: int, num_cols: int) -> None:
        self._check_address(row, col, self.name)
        for r in range(row - 1, min(row - 1 + num_rows, len(self._rows))):
            target = self._rows[r]
            for c in range(col - 1, min(col - 1 + num_cols, len(target))):
                target[c] = None
            while target and target[-1] is None:
                target.pop()
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


class InMemoryTableStore(TableStore):
    """Store keeping every table in process memory.

    Example:
        >>> store = InMemoryTableStore()
        >>> table = store.create_table("Users", ["id", "email"])
        >>> table.append_row(["u1", "a@x.com"])
        2
    """

    def __init__(self) -> None:
        self._tables: dict[str, InMemoryTable] = {}

    def get_table(self, name: str) -> Optional[InMemoryTable]:
        return self._tables.get(name)

    def create_table(self, name: str, headers: Sequence[str]) -> InMemoryTable:
        if name in self._tables:
            raise StoreError(f"Table {name} already exists", table=name)
        table = self._new_table(name, [list(headers)])
        self._tables[name] = table
        logger.debug(f"Created table {name} with headers {list(headers)}")
        self._changed()
        return table

    def table_names(self) -> list[str]:
        return list(self._tables)

    def _new_table(self, name: str, rows: list[Row]) -> InMemoryTable:
        return InMemoryTable(name, rows)

    def _changed(self) -> None:
        pass
