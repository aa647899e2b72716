"""
Unit tests for the JSON-file tabular store.
"""

import json
from datetime import date, datetime

import pytest

from sheetdb.errors import StoreError
from sheetdb.store.jsonfile import FORMAT_VERSION, JsonFileTableStore


class TestJsonFileTableStore:
    """Tests for persistence of the workbook document."""

    def test_file_created_on_first_write(self, tmp_path):
        path = tmp_path / "book.json"
        store = JsonFileTableStore(path)
        assert not path.exists()

        store.create_table("Users", ["id", "email"])

        document = json.loads(path.read_text())
        assert document == {"version": FORMAT_VERSION, "tables": {"Users": [["id", "email"]]}}

    def test_rows_survive_reopen(self, tmp_path):
        path = tmp_path / "book.json"
        store = JsonFileTableStore(path)
        table = store.create_table("Users", ["id", "email"])
        table.append_row(["u1", "a@x.com"])
        table.append_row(["u2", "b@x.com"])
        table.delete_row(2)

        reopened = JsonFileTableStore(path)
        assert reopened.table_names() == ["Users"]
        assert reopened.require_table("Users").read_all() == [["id", "email"], ["u2", "b@x.com"]]

    def test_dates_round_trip(self, tmp_path):
        path = tmp_path / "book.json"
        store = JsonFileTableStore(path)
        table = store.create_table("Events", ["id", "at", "day"])
        table.append_row(["e1", datetime(2024, 5, 6, 7, 8, 9), date(2024, 5, 6)])

        row = JsonFileTableStore(path).require_table("Events").read_range(2, 1, 1, 3)[0]
        assert row == ["e1", datetime(2024, 5, 6, 7, 8, 9), date(2024, 5, 6)]
        assert type(row[2]) is date

    def test_no_temporary_file_left_behind(self, tmp_path):
        path = tmp_path / "book.json"
        JsonFileTableStore(path).create_table("Users", ["id"])
        assert [p.name for p in tmp_path.iterdir()] == ["book.json"]

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "book.json"
        path.write_text("{not json")
        with pytest.raises(StoreError, match="not valid JSON"):
            JsonFileTableStore(path)

    def test_unsupported_version_raises(self, tmp_path):
        path = tmp_path / "book.json"
        path.write_text(json.dumps({"version": 99, "tables": {}}))
        with pytest.raises(StoreError, match="Unsupported workbook version"):
            JsonFileTableStore(path)
