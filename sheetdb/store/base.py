"""
Base interface for the tabular store.

A store holds named tables. Each table is a grid of cells addressed by
1-based (row, column) pairs. Row 1 holds the column headers and row 2 is
the first data row. Column order within every row follows the entity's
headers.

Invariants:
    - Rows are positionally addressed; deleting a row shifts later rows up
    - Reads beyond the populated area return None cells
    - Addressing below 1 raises StoreError

How to change safely:
    - Implement every abstract method in new backends
    - Keep read_all, delete_row and header helpers built on the primitives
      so all backends repair headers the same way
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from ..errors import StoreError

Row = list[Any]


class Table(ABC):
    """One named grid inside a store."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def last_row(self) -> int:
        """Number of the last populated row (0 when the table is empty)."""

    @abstractmethod
    def last_column(self) -> int:
        """Number of the last populated column (0 when the table is empty)."""

    @abstractmethod
    def read_range(self, row: int, col: int, num_rows: int, num_cols: int) -> list[Row]:
        """Read a rectangle of cells, padded with None."""

    @abstractmethod
    def write_range(self, row: int, col: int, values: Sequence[Sequence[Any]]) -> None:
        """Write a rectangle of cells starting at (row, col)."""

    @abstractmethod
    def append_row(self, values: Sequence[Any]) -> int:
        """Append a row after the last populated row and return its number."""

    @abstractmethod
    def delete_rows(self, start: int, count: int) -> None:
        """Delete count rows beginning at start; later rows shift up."""

    @abstractmethod
    def clear_range(self, row: int, col: int, num_rows: int, num_cols: int) -> None:
        """Blank a rectangle of cells without shifting anything."""

    def delete_row(self, row: int) -> None:
        self.delete_rows(row, 1)

    def read_all(self) -> list[Row]:
        """Every populated row, header row included."""
        last_row = self.last_row()
        if last_row == 0:
            return []
        return self.read_range(1, 1, last_row, self.last_column())

    def read_headers(self) -> list[Any]:
        last_col = self.last_column()
        if self.last_row() == 0 or last_col == 0:
            return []
        headers = self.read_range(1, 1, 1, last_col)[0]
        while headers and headers[-1] is None:
            headers.pop()
        return headers

    def write_headers(self, headers: Sequence[str]) -> None:
        """Replace the header row, blanking stale cells beyond the new width."""
        last_col = self.last_column()
        if self.last_row() > 0 and last_col > 0:
            self.clear_range(1, 1, 1, last_col)
        self.write_range(1, 1, [list(headers)])

    @staticmethod
    def _check_address(row: int, col: int, table: str) -> None:
        if row < 1 or col < 1:
            raise StoreError(f"Invalid cell address ({row}, {col}) in table {table}", table=table)


class TableStore(ABC):
    """A named collection of tables (a workbook)."""

    @abstractmethod
    def get_table(self, name: str) -> Table | None:
        """Return the table called name, or None."""

    @abstractmethod
    def create_table(self, name: str, headers: Sequence[str]) -> Table:
        """Create a table seeded with a header row.

        Raises:
            StoreError: If the table already exists
        """

    @abstractmethod
    def table_names(self) -> list[str]:
        """Names of all tables in the store."""

    def require_table(self, name: str) -> Table:
        table = self.get_table(name)
        if table is None:
            raise StoreError(f"Table {name} does not exist", table=name)
        return table
