"""
Tabular store backends.

- Table / TableStore: the grid interface the mapping engine consumes
- InMemoryTableStore: process-local grid for tests and development
- JsonFileTableStore: workbook persisted as one JSON document
"""

from .base import Row, Table, TableStore
from .jsonfile import JsonFileTableStore
from .memory import InMemoryTable, InMemoryTableStore

__all__ = [
    "Row",
    "Table",
    "TableStore",
    "InMemoryTable",
    "InMemoryTableStore",
    "JsonFileTableStore",
]
