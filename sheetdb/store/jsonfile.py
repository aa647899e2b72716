"""
JSON-file tabular store.

The whole workbook is one JSON document:

    {"version": 1, "tables": {"Users": [["id", "email"], ["u1", "a@x.com"]]}}

The document is rewritten after every mutation, through a temporary file
that replaces the original, so a crash never leaves a truncated file.

Invariants:
    - Single writer; concurrent processes are not coordinated
    - date and datetime cells are tagged and come back typed
"""

from __future__ import annotations

import json
import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any

from ..errors import StoreError
from .base import Row
from .memory import InMemoryTable, InMemoryTableStore

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
_DATETIME_TAG = "$datetime"
_DATE_TAG = "$date"


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, date):
        return {_DATE_TAG: value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _DATETIME_TAG in obj:
        return datetime.fromisoformat(obj[_DATETIME_TAG])
    if len(obj) == 1 and _DATE_TAG in obj:
        return date.fromisoformat(obj[_DATE_TAG])
    return obj


class JsonFileTableStore(InMemoryTableStore):
    """Store persisted as a single JSON document on disk.

    Args:
        path: Location of the workbook file (created on first write)

    Example:
        >>> store = JsonFileTableStore("/tmp/app.sheetdb.json")
        >>> store.create_table("Users", ["id", "email"])
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._loading = False
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            with open(self.path, encoding="utf-8") as f:
                document = json.load(f, object_hook=_decode)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Workbook {self.path} is not valid JSON: {exc}") from exc

        version = document.get("version")
        if version != FORMAT_VERSION:
            raise StoreError(f"Unsupported workbook version {version} in {self.path}")

        self._loading = True
        try:
            for name, rows in document.get("tables", {}).items():
                self._tables[name] = self._new_table(name, rows)
        finally:
            self._loading = False
        logger.debug(f"Loaded workbook {self.path} with {len(self._tables)} tables")

    def _new_table(self, name: str, rows: list[Row]) -> InMemoryTable:
        return InMemoryTable(name, rows, on_change=self._changed)

    def _changed(self) -> None:
        if self._loading:
            return
        document = {
            "version": FORMAT_VERSION,
            "tables": {name: table.rows for name, table in self._tables.items()},
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, default=_encode)
        os.replace(tmp_path, self.path)
