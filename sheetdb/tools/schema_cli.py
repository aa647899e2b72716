"""
Schema CLI tool for SheetDB.

This tool works with schema documents and workbook files:
- validate: Check a schema document for consistency
- init: Create missing tables and repair header rows in a workbook
- dump: Print the records of one entity as JSON

Usage:
    sheetdb-schema validate --file schema.yaml
    sheetdb-schema init --file schema.yaml --store data.json
    sheetdb-schema dump --file schema.yaml --store data.json --entity Users --depth 1

Invariants:
    - Exit code 0 on success, 1 on any SheetDB error
    - dump output is valid JSON (dates rendered as ISO text)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from typing import Any, Optional, Sequence

from ..config import Settings, setup_logging
from ..errors import SheetDbError
from ..registry import Registry
from ..schema.format import load_schema
from ..schema.types import EntityDefinition
from ..store.jsonfile import JsonFileTableStore
from ..store.memory import InMemoryTableStore

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class SchemaCLI:
    """Commands behind the sheetdb-schema entry point.

    Example:
        >>> cli = SchemaCLI()
        >>> cli.validate("schema.yaml")
        []
    """

    def validate(self, schema_path: str) -> list[str]:
        """Load a schema document and bind it to a scratch in-memory store.

        Returns:
            List of problems (empty if valid)
        """
        try:
            definitions = load_schema(schema_path)
            Registry(InMemoryTableStore(), definitions)
        except SheetDbError as exc:
            return [exc.message]
        return []

    def init(self, schema_path: str, store_path: str) -> list[str]:
        """Create or repair every table of the schema in the workbook.

        Returns:
            Names of the entities now present in the workbook
        """
        registry = self._open(load_schema(schema_path), store_path)
        return registry.names()

    def dump(
        self,
        schema_path: str,
        store_path: str,
        entity: str,
        depth: int = 0,
    ) -> str:
        """Return the records of entity as a JSON document."""
        registry = self._open(load_schema(schema_path), store_path)
        records = registry.collection(entity).all(depth)
        return json.dumps(records, indent=2, default=_json_default)

    def _open(self, definitions: list[EntityDefinition], store_path: str) -> Registry:
        settings = Settings()
        return Registry(JsonFileTableStore(store_path), definitions, max_depth=settings.max_depth)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SheetDB schema management tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Validate a schema document")
    validate_parser.add_argument("--file", "-f", required=True, help="Schema YAML/JSON file")

    init_parser = subparsers.add_parser("init", help="Create or repair tables in a workbook")
    init_parser.add_argument("--file", "-f", required=True, help="Schema YAML/JSON file")
    init_parser.add_argument("--store", "-s", required=True, help="Workbook JSON file")

    dump_parser = subparsers.add_parser("dump", help="Print an entity's records as JSON")
    dump_parser.add_argument("--file", "-f", required=True, help="Schema YAML/JSON file")
    dump_parser.add_argument("--store", "-s", required=True, help="Workbook JSON file")
    dump_parser.add_argument("--entity", "-e", required=True, help="Entity name")
    dump_parser.add_argument("--depth", "-d", type=int, default=0, help="Relation depth")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for the schema tool."""
    args = build_parser().parse_args(argv)
    setup_logging(Settings())
    cli = SchemaCLI()

    try:
        if args.command == "validate":
            errors = cli.validate(args.file)
            if errors:
                print(f"Schema validation failed with {len(errors)} error(s):")
                for error in errors:
                    print(f"  - {error}")
                return 1
            print("Schema is valid")

        elif args.command == "init":
            names = cli.init(args.file, args.store)
            print(f"Workbook {args.store} ready with {len(names)} table(s): {', '.join(names)}")

        elif args.command == "dump":
            print(cli.dump(args.file, args.store, args.entity, args.depth))

    except SheetDbError as exc:
        logger.error(f"{args.command} failed: {exc.message}")
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
