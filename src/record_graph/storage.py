"""Storage manager for record tables."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from record_graph.record import Record
from record_graph.types import (
    ColumnDefinition,
    RecordTypeDefinition,
    RelationDefinition,
    RelationKind,
    TypeRegistry,
)

logger = logging.getLogger(__name__)

# Declared column spec -> described database column type
COLUMN_TYPES: dict[str, str] = {
    "boolean": "tinyint(1) unsigned",
    "int": "int(11)",
    "bigint": "bigint(20)",
    "float": "float",
    "double": "double",
    "text": "mediumtext",
    "htmltext": "mediumtext",
    "date": "date",
    "datetime": "datetime",
    "time": "time",
}

DEFAULT_VARCHAR_LENGTH = 50


def describe_column(column: ColumnDefinition) -> str:
    """Return the database column type for a declared column.

    Column specs are matched case-insensitively. Specs without a known mapping
    are described as written, lower-cased.
    """
    spec = column.spec.lower()
    if spec == "enum":
        return "enum(" + ",".join(f"'{arg}'" for arg in column.args) + ")"
    if spec == "varchar":
        length = column.args[0] if column.args else DEFAULT_VARCHAR_LENGTH
        return f"varchar({length})"
    if spec == "decimal":
        precision = column.args[0] if column.args else 9
        scale = column.args[1] if len(column.args) > 1 else 2
        return f"decimal({precision},{scale})"
    if spec in COLUMN_TYPES:
        return COLUMN_TYPES[spec]
    return column.declared_type.lower()


class Table:
    """JSON-backed storage for one root kind and all of its subclasses.

    Rows are keyed by positive integer IDs; 0 never identifies a row.
    """

    def __init__(self, name: str, file_path: Path) -> None:
        self.name = name
        self.file_path = file_path
        self._rows: dict[int, dict[str, Any]] = {}
        self._next_id = 1

        self._open_or_create()

    def _open_or_create(self) -> None:
        """Open existing file or create new one."""
        if self.file_path.exists():
            with open(self.file_path) as f:
                data = json.load(f)
            self._rows = {int(k): v for k, v in data.get("rows", {}).items()}
            self._next_id = data.get("next_id", max(self._rows, default=0) + 1)
        else:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.flush()

    @property
    def count(self) -> int:
        """Return the number of rows in the table."""
        return len(self._rows)

    def ids(self) -> list[int]:
        """Return all row IDs in insertion order."""
        return list(self._rows)

    def insert(self, row: dict[str, Any]) -> int:
        """Insert a row and return its new ID."""
        record_id = self._next_id
        self._next_id += 1
        self._rows[record_id] = copy.deepcopy(row)
        self.flush()
        return record_id

    def get(self, record_id: int) -> dict[str, Any] | None:
        """Get a copy of a row, or None if there is no such row."""
        row = self._rows.get(record_id)
        return copy.deepcopy(row) if row is not None else None

    def update(self, record_id: int, row: dict[str, Any]) -> None:
        """Replace the row stored under an existing ID."""
        if record_id not in self._rows:
            raise KeyError(f"No row {record_id} in table '{self.name}'")
        self._rows[record_id] = copy.deepcopy(row)
        self.flush()

    def delete(self, record_id: int) -> None:
        """Delete a row. IDs are never reused."""
        if self._rows.pop(record_id, None) is not None:
            self.flush()

    def flush(self) -> None:
        """Write the table to disk."""
        data = {
            "next_id": self._next_id,
            "rows": {str(k): v for k, v in self._rows.items()},
        }
        with open(self.file_path, "w") as f:
            json.dump(data, f, indent=2)

    def close(self) -> None:
        self.flush()

    def __enter__(self) -> Table:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class StorageManager:
    """Record store: one table per root kind, plus type metadata."""

    METADATA_FILE = "_metadata.json"

    def __init__(self, data_dir: Path, registry: TypeRegistry) -> None:
        """Initialize the storage manager.

        Args:
            data_dir: Directory to store table files.
            registry: Type registry containing all record types.
        """
        self.data_dir = data_dir
        self.registry = registry
        self._tables: dict[str, Table] = {}

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._save_metadata()

    def _save_metadata(self) -> None:
        """Save type metadata to disk."""
        metadata = {
            "types": {
                name: self._serialize_type_def(self.registry.get_or_raise(name))
                for name in self.registry.list_types()
            },
        }
        metadata_path = self.data_dir / self.METADATA_FILE
        with open(metadata_path, "w") as f:
            json.dump(metadata, f, indent=2)

    def save_metadata(self) -> None:
        """Public method to save type metadata to disk."""
        self._save_metadata()

    def _serialize_type_def(self, type_def: RecordTypeDefinition) -> dict[str, Any]:
        """Serialize a single record type definition."""
        result: dict[str, Any] = {
            "parent": type_def.parent,
            "columns": [
                {"name": c.name, "type": c.spec, "args": c.args} for c in type_def.columns
            ],
            "relations": [
                {"name": r.name, "kind": r.kind.value, "target": r.target}
                for r in type_def.relations
            ],
        }
        if type_def.defaults:
            result["defaults"] = type_def.defaults
        if type_def.traverse_has_one is not None:
            result["traverse_has_one"] = type_def.traverse_has_one
        return result

    def describe_columns(self, type_name: str) -> dict[str, str]:
        """Map a type's own columns to their database column types."""
        type_def = self.registry.get_or_raise(type_name)
        return {column.name: describe_column(column) for column in type_def.columns}

    def get_table(self, type_name: str) -> Table:
        """Get or create the table holding records of the given type.

        Args:
            type_name: Name of any record type; its root kind owns the table.

        Returns:
            Table for the type's root kind.
        """
        root = self.registry.root_kind_of(type_name)
        if root is None:
            raise KeyError(f"Type '{type_name}' not found")
        if root in self._tables:
            return self._tables[root]

        table = Table(root, self.data_dir / f"{root}.json")
        self._tables[root] = table
        return table

    def create(self, type_name: str) -> Record:
        """Instantiate an unsaved record with class defaults applied."""
        values: dict[str, Any] = {}
        for level in reversed(self.registry.ancestry_of(type_name)):
            type_def = self.registry.get_or_raise(level)
            for column in type_def.columns:
                values[column.name] = None
            for relation in type_def.relations:
                if relation.kind is RelationKind.TO_ONE:
                    values[f"{relation.name}ID"] = 0
                else:
                    values[relation.name] = []
        values.update(self.registry.get_property(type_name, "defaults", inherited=True))

        cls = self.registry.record_class_for(type_name)
        return cls(self, type_name, values)

    def write(self, record: Record) -> int:
        """Create or update a record, returning its ID."""
        row = record.values()
        row["ClassName"] = record.type_name
        table = self.get_table(record.type_name)
        if record.exists():
            table.update(record.ID, row)
        else:
            record.ID = table.insert(row)
        logger.debug("Wrote %s #%d", record.type_name, record.ID)
        return record.ID

    def get_by_id(self, type_name: str, record_id: int) -> Record | None:
        """Load a record by ID as its stored (most specific) type.

        Returns None when the ID is 0, unknown, or stores a type that is not
        ``type_name`` or one of its subclasses.
        """
        if not record_id:
            return None
        row = self.get_table(type_name).get(record_id)
        if row is None:
            return None
        class_name = row.pop("ClassName", type_name)
        if not self.registry.is_subclass(class_name, type_name):
            return None
        cls = self.registry.record_class_for(class_name)
        return cls(self, class_name, row, record_id)

    def list_records(self, type_name: str) -> list[Record]:
        """Return every stored record of a type, subclasses included."""
        records = []
        for record_id in self.get_table(type_name).ids():
            record = self.get_by_id(type_name, record_id)
            if record is not None:
                records.append(record)
        return records

    def delete(self, record: Record) -> None:
        """Delete a stored record and clear its identity."""
        if not record.exists():
            return
        self.get_table(record.type_name).delete(record.ID)
        logger.debug("Deleted %s #%d", record.type_name, record.ID)
        record.ID = 0

    def close(self) -> None:
        """Close all tables."""
        for table in self._tables.values():
            table.close()
        self._tables.clear()

    def __enter__(self) -> StorageManager:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def load_registry_from_metadata(data_dir: Path) -> TypeRegistry:
    """Load a type registry from a data directory's metadata file.

    Types are registered first and populated second, so parents and relation
    targets resolve regardless of their order in the file.
    """
    metadata_path = data_dir / StorageManager.METADATA_FILE
    if not metadata_path.exists():
        raise FileNotFoundError(f"Metadata file not found: {metadata_path}")

    with open(metadata_path) as f:
        metadata = json.load(f)

    registry = TypeRegistry()
    types_data = metadata.get("types", {})

    for name in types_data:
        registry.register(RecordTypeDefinition(name=name))

    for name, spec in types_data.items():
        type_def = registry.get_or_raise(name)
        parent = spec.get("parent")
        if parent is not None and parent not in registry:
            raise ValueError(f"Type '{name}' extends unknown type '{parent}'")
        type_def.parent = parent
        type_def.traverse_has_one = spec.get("traverse_has_one")
        type_def.defaults = dict(spec.get("defaults", {}))
        type_def.columns = [
            ColumnDefinition(name=c["name"], spec=c["type"], args=list(c.get("args", [])))
            for c in spec.get("columns", [])
        ]
        for r in spec.get("relations", []):
            if r["target"] not in registry:
                raise ValueError(
                    f"Relation '{name}.{r['name']}' targets unknown type '{r['target']}'"
                )
            type_def.relations.append(
                RelationDefinition(
                    name=r["name"], kind=RelationKind(r["kind"]), target=r["target"]
                )
            )

    return registry
