"""
Unit tests for the in-memory tabular store.

Tests cover:
- 1-based addressing and None padding
- Appending, deleting and shifting rows
- Header read/write helpers
- Table creation in the store
"""

import pytest

from sheetdb.errors import StoreError
from sheetdb.store.memory import InMemoryTable, InMemoryTableStore


@pytest.fixture
def table():
    return InMemoryTable("Users", [["id", "email"], ["u1", "a@x.com"], ["u2", "b@x.com"]])


class TestInMemoryTable:
    """Tests for InMemoryTable primitives."""

    def test_dimensions(self, table):
        assert table.last_row() == 3
        assert table.last_column() == 2

    def test_empty_table_dimensions(self):
        empty = InMemoryTable("Empty")
        assert empty.last_row() == 0
        assert empty.last_column() == 0
        assert empty.read_all() == []

    def test_read_range_pads_with_none(self, table):
        assert table.read_range(2, 1, 3, 3) == [
            ["u1", "a@x.com", None],
            ["u2", "b@x.com", None],
            [None, None, None],
        ]

    def test_read_range_rejects_zero_address(self, table):
        with pytest.raises(StoreError, match="Invalid cell address"):
            table.read_range(0, 1, 1, 1)

    def test_write_range_grows_grid(self, table):
        table.write_range(5, 2, [["x", "y"]])
        assert table.last_row() == 5
        assert table.last_column() == 3
        assert table.read_range(5, 1, 1, 3) == [[None, "x", "y"]]

    def test_append_row_returns_row_number(self, table):
        assert table.append_row(["u3", "c@x.com"]) == 4
        assert table.read_range(4, 1, 1, 2) == [["u3", "c@x.com"]]

    def test_delete_row_shifts_later_rows(self, table):
        table.delete_row(2)
        assert table.read_all() == [["id", "email"], ["u2", "b@x.com"]]

    def test_delete_rows_out_of_range_raises(self, table):
        with pytest.raises(StoreError, match="Cannot delete rows"):
            table.delete_rows(3, 2)

    def test_clear_range_does_not_shift(self, table):
        table.clear_range(2, 1, 1, 2)
        assert table.last_row() == 3
        assert table.read_range(2, 1, 1, 2) == [[None, None]]

    def test_rows_is_a_copy(self, table):
        table.rows[0][0] = "changed"
        assert table.read_headers() == ["id", "email"]

    def test_on_change_called_after_mutation(self):
        calls = []
        table = InMemoryTable("T", [["id"]], on_change=lambda: calls.append(1))
        table.append_row(["a"])
        table.write_range(2, 1, [["b"]])
        table.delete_row(2)
        assert len(calls) == 3


class TestHeaders:
    """Tests for header helpers on Table."""

    def test_read_headers(self, table):
        assert table.read_headers() == ["id", "email"]

    def test_read_headers_trims_trailing_blanks(self):
        table = InMemoryTable("T", [["id", "name", None], ["1", "a", "extra"]])
        assert table.read_headers() == ["id", "name"]

    def test_write_headers_blanks_stale_cells(self):
        table = InMemoryTable("T", [["id", "old", "older"]])
        table.write_headers(["id", "name"])
        assert table.read_headers() == ["id", "name"]
        assert table.last_column() == 2

    def test_write_headers_on_empty_table(self):
        table = InMemoryTable("T")
        table.write_headers(["id"])
        assert table.read_all() == [["id"]]


class TestInMemoryTableStore:
    """Tests for InMemoryTableStore."""

    def test_create_table_seeds_headers(self):
        store = InMemoryTableStore()
        table = store.create_table("Users", ["id", "email"])
        assert table.read_all() == [["id", "email"]]
        assert store.get_table("Users") is table
        assert store.table_names() == ["Users"]

    def test_create_existing_table_raises(self):
        store = InMemoryTableStore()
        store.create_table("Users", ["id"])
        with pytest.raises(StoreError, match="already exists"):
            store.create_table("Users", ["id"])

    def test_get_missing_table_returns_none(self):
        assert InMemoryTableStore().get_table("Nope") is None

    def test_require_missing_table_raises(self):
        with pytest.raises(StoreError, match="does not exist"):
            InMemoryTableStore().require_table("Nope")
