"""Command-line tool for inspecting, exporting and importing record graphs.

Usage:
    record-graph DATA_DIR init schema.rg          # create a data directory
    record-graph DATA_DIR types                   # print the type catalog
    record-graph DATA_DIR list [TYPE]             # list stored records
    record-graph DATA_DIR export TYPE ID          # print a query representation
    record-graph DATA_DIR import payload.json     # save a {"data": ...} payload
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from record_graph.schema import Schema


def _print_json(value: Any, compact: bool) -> None:
    if compact:
        print(json.dumps(value, separators=(",", ":")))
    else:
        print(json.dumps(value, indent=2))


def cmd_init(args: argparse.Namespace) -> int:
    with open(args.schema_file) as f:
        source = f.read()
    with Schema.parse(source, args.data_dir, args.root):
        pass
    print(f"Initialized {args.data_dir}", file=sys.stderr)
    return 0


def cmd_types(schema: Schema, args: argparse.Namespace) -> int:
    _print_json(schema.build_catalog(), args.compact)
    return 0


def cmd_list(schema: Schema, args: argparse.Namespace) -> int:
    type_names = [args.type] if args.type else schema.registry.base_types()
    for type_name in type_names:
        if type_name not in schema.registry:
            print(f"Error: Unknown type: {type_name}", file=sys.stderr)
            return 1
        for record in schema.storage.list_records(type_name):
            print(f"{record.type_name} #{record.ID}")
    return 0


def cmd_export(schema: Schema, args: argparse.Namespace) -> int:
    if args.type not in schema.registry:
        print(f"Error: Unknown type: {args.type}", file=sys.stderr)
        return 1
    record = schema.get_record(args.type, args.id)
    if record is None:
        print(f"Error: No {args.type} with ID {args.id}", file=sys.stderr)
        return 1
    if args.data_only:
        _print_json({"data": schema.build_object_structure(record)}, args.compact)
    else:
        _print_json(schema.build_query_repr(record), args.compact)
    return 0


def cmd_import(schema: Schema, args: argparse.Namespace) -> int:
    if args.file == "-":
        payload = sys.stdin.read()
    else:
        path = Path(args.file)
        if not path.exists():
            print(f"Error: {args.file} not found", file=sys.stderr)
            return 1
        payload = path.read_text()

    try:
        record = schema.save(payload)
    except ValueError as e:
        print(f"Error: Invalid payload: {e}", file=sys.stderr)
        return 1

    if record is None:
        print("Nothing saved: empty structure or unknown type", file=sys.stderr)
        return 1
    print(f"{record.type_name} #{record.ID}")
    return 0


COMMANDS = {
    "types": cmd_types,
    "list": cmd_list,
    "export": cmd_export,
    "import": cmd_import,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export and import record graphs as nested JSON structures"
    )
    parser.add_argument(
        "data_dir",
        type=Path,
        help="Path to the data directory containing table files",
    )
    parser.add_argument(
        "--root",
        action="append",
        default=None,
        help="Root record type to describe and accept (repeatable; default: all base types)",
    )
    parser.add_argument(
        "-c", "--compact",
        action="store_true",
        help="Print JSON without indentation",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create a data directory from a schema file")
    init.add_argument("schema_file", type=Path, help="Record type declarations")

    subparsers.add_parser("types", help="Print the type catalog")

    list_cmd = subparsers.add_parser("list", help="List stored records")
    list_cmd.add_argument("type", nargs="?", help="Only list records of this type")

    export = subparsers.add_parser("export", help="Print a record's query representation")
    export.add_argument("type", help="Record type")
    export.add_argument("id", type=int, help="Record ID")
    export.add_argument(
        "-d", "--data-only",
        action="store_true",
        help="Omit the type catalog",
    )

    import_cmd = subparsers.add_parser("import", help="Save a {\"data\": ...} payload")
    import_cmd.add_argument("file", help="JSON file to import ('-' for stdin)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "init":
        try:
            return cmd_init(args)
        except (OSError, SyntaxError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if not args.data_dir.exists():
        print(f"Error: Data directory not found: {args.data_dir}", file=sys.stderr)
        return 1

    try:
        schema = Schema.open(args.data_dir, args.root)
    except Exception as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        return 1

    with schema:
        return COMMANDS[args.command](schema, args)


if __name__ == "__main__":
    sys.exit(main())
