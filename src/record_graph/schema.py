"""Schema class tying record types, storage and (de)serialization together."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from record_graph.catalog import SchemaCatalog
from record_graph.deserializer import GraphDeserializer
from record_graph.parsing import TypeParser
from record_graph.record import Record
from record_graph.serializer import GraphSerializer
from record_graph.storage import StorageManager, load_registry_from_metadata
from record_graph.types import RecordTypeDefinition, TypeRegistry


class Schema:
    """Parsed record types with storage management."""

    def __init__(
        self,
        registry: TypeRegistry,
        data_dir: Path,
        root_kinds: Iterable[str] | None = None,
    ) -> None:
        """Initialize a schema.

        Args:
            registry: Type registry with all record types.
            data_dir: Directory for storing table files.
            root_kinds: Root kinds described by the type catalog and accepted
                on save. Defaults to every type without a parent.
        """
        self.registry = registry
        self.storage = StorageManager(data_dir, registry)
        self.root_kinds = list(root_kinds) if root_kinds is not None else None

    @classmethod
    def parse(
        cls,
        type_definitions: str,
        data_dir: Path | str,
        root_kinds: Iterable[str] | None = None,
    ) -> Schema:
        """Parse record type declarations and create a schema.

        Args:
            type_definitions: DSL string declaring record types.
            data_dir: Directory for storing table files.
            root_kinds: Optional root kinds (see ``__init__``).

        Returns:
            A new Schema instance.
        """
        parser = TypeParser()
        registry = parser.parse(type_definitions)

        if isinstance(data_dir, str):
            data_dir = Path(data_dir)

        return cls(registry, data_dir, root_kinds)

    @classmethod
    def open(cls, data_dir: Path | str, root_kinds: Iterable[str] | None = None) -> Schema:
        """Reopen an existing data directory from its stored metadata."""
        if isinstance(data_dir, str):
            data_dir = Path(data_dir)
        return cls(load_registry_from_metadata(data_dir), data_dir, root_kinds)

    def get_type(self, name: str) -> RecordTypeDefinition:
        """Get a record type by name.

        Raises:
            KeyError: If the type is not found.
        """
        return self.registry.get_or_raise(name)

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return self.registry.list_types()

    def bind(self, type_name: str, record_class: type[Record]) -> None:
        """Attach a record class to a type."""
        self.registry.bind_record_class(type_name, record_class)

    def create_record(self, type_name: str, values: dict[str, Any] | None = None) -> Record:
        """Create and write a record with the given column values."""
        record = self.storage.create(type_name)
        for name, value in (values or {}).items():
            record.set_field(name, value)
        record.write()
        return record

    def get_record(self, type_name: str, record_id: int) -> Record | None:
        """Load a record by type and ID."""
        return self.storage.get_by_id(type_name, record_id)

    def build_catalog(self) -> dict[str, Any]:
        """Build the type catalog for this schema's root kinds."""
        return SchemaCatalog(self.storage).build_catalog(self.root_kinds)

    def build_object_structure(self, record: Record) -> dict[str, Any]:
        """Represent a record and its relation subtree."""
        return GraphSerializer(self.storage).build_object_structure(record)

    def build_query_repr(self, record: Record) -> dict[str, Any]:
        """Represent a record together with the type catalog."""
        return GraphSerializer(self.storage).build_query_repr(record, self.root_kinds)

    def save(self, payload: str | bytes | dict[str, Any]) -> Record | None:
        """Save a ``{"data": ...}`` payload, returning the new root record."""
        return GraphDeserializer(self.storage, self.root_kinds).save(payload)

    def close(self) -> None:
        """Close all storage resources."""
        self.storage.close()

    def __enter__(self) -> Schema:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
