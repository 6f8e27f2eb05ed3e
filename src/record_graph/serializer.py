"""Serialize live record graphs into nested, tagged structures."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from record_graph.ancestry import map_ancestry
from record_graph.catalog import SchemaCatalog
from record_graph.hooks import RelationStructureBuilder
from record_graph.types import RelationKind

if TYPE_CHECKING:
    from record_graph.record import Record
    from record_graph.storage import StorageManager

logger = logging.getLogger(__name__)


class GraphSerializer:
    """Builds ObjectRecord structures and query representations."""

    def __init__(self, storage: StorageManager) -> None:
        self.storage = storage
        self.catalog = SchemaCatalog(storage)

    def build_object_structure(self, record: Record) -> dict[str, Any]:
        """Recursively represent a record and its relation subtree.

        Args:
            record: The live record to represent.

        Returns:
            ``{"type": ..., "fields": {...}}`` where to-one fields hold a
            nested structure or None and to-many fields hold a list.
        """

        def build_structure(level: str, base: str | None) -> dict[str, Any]:
            structure: dict[str, Any] = {"type": level, "fields": {}}
            fields = structure["fields"]

            for name in self.catalog.get_database_property(level, "db"):
                fields[name] = record.get_field(name)

            for prop in ("has_one", "has_many"):
                for name in self.catalog.get_database_property(level, prop):
                    fields[name] = self.build_child_structure(record, name)

            return structure

        return map_ancestry(self.storage.registry, record.type_name, build_structure)

    def build_child_structure(self, record: Record, name: str) -> Any:
        """Represent one relation field of a record."""
        if isinstance(record, RelationStructureBuilder):
            structure = record.build_relation_structure(name)
            if structure is not NotImplemented:
                return structure

        relation = self.storage.registry.find_relation(record.type_name, name)
        if relation is None:
            raise KeyError(f"Type '{record.type_name}' has no relation '{name}'")

        if relation.kind is RelationKind.TO_MANY:
            return [self.build_object_structure(child) for child in record.get_components(name)]

        if not record.get_foreign_key(name):
            return None
        child = record.get_component(name)
        if child is None:
            logger.debug(
                "%s #%d: %s points at a missing record", record.type_name, record.ID, name
            )
            return None
        return self.build_object_structure(child)

    def build_query_repr(
        self, record: Record, root_kinds: Iterable[str] | None = None
    ) -> dict[str, Any]:
        """Represent a record together with the full type catalog."""
        return {
            "data": self.build_object_structure(record),
            "types": self.catalog.build_catalog(root_kinds),
        }
