"""Rehydrate and persist record graphs from nested structures."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import TYPE_CHECKING, Any, Iterable

from record_graph.ancestry import map_ancestry
from record_graph.catalog import SchemaCatalog
from record_graph.hooks import RelationStructureResolver

if TYPE_CHECKING:
    from record_graph.record import Record
    from record_graph.storage import StorageManager

logger = logging.getLogger(__name__)

INTEGER_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$")
NUMERIC_PATTERN = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def coerce_scalar(value: Any) -> Any:
    """Coerce a submitted scalar to the value that gets stored.

    ``"true"``/``"false"`` (any case) become 1/0, numbers and numeric strings
    become integers (truncated) when finite, and anything else is returned
    unchanged.
    """
    lowered = "" if value is None else str(value).lower()
    if lowered == "true":
        return 1
    if lowered == "false":
        return 0
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else value
    if isinstance(value, str) and NUMERIC_PATTERN.match(value):
        if INTEGER_PATTERN.match(value):
            return int(value)
        number = float(value)
        return int(number) if math.isfinite(number) else value
    return value


class GraphDeserializer:
    """Instantiates and writes records to match a submitted structure."""

    def __init__(
        self, storage: StorageManager, root_kinds: Iterable[str] | None = None
    ) -> None:
        """Initialize the deserializer.

        Args:
            storage: Record store to write into.
            root_kinds: Root kinds whose subclasses may be instantiated.
                Defaults to every type without a parent.
        """
        self.storage = storage
        self.root_kinds = list(root_kinds) if root_kinds is not None else None

    def save(self, payload: str | bytes | dict[str, Any]) -> Record | None:
        """Save a ``{"data": ObjectRecord}`` payload.

        Raises:
            ValueError: If the payload is not valid JSON or has no ``data``.
        """
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        if not isinstance(payload, dict) or "data" not in payload:
            raise ValueError("Payload must be an object with a 'data' member")
        return self.save_object(payload["data"])

    def save_object(self, structure: Any) -> Record | None:
        """Recursively create and write records matching ``structure``.

        Returns None for an empty structure and for types that are not in the
        type catalog; no record is written in either case.
        """
        if not structure:
            return None
        if not isinstance(structure, dict):
            raise ValueError(f"Expected an object structure, got {type(structure).__name__}")

        type_name = structure.get("type")
        fields = structure.get("fields") or {}
        if not isinstance(fields, dict):
            raise ValueError(f"Fields of '{type_name}' must be an object")

        catalog = SchemaCatalog(self.storage).build_catalog(self.root_kinds)
        if (
            not isinstance(type_name, str)
            or type_name not in catalog
            or type_name not in self.storage.registry
        ):
            logger.debug("Rejected structure of unknown type %r", type_name)
            return None

        record = self.storage.create(type_name)
        record.write()

        self.populate(record, fields)
        record.write()
        logger.debug("Saved %s #%d", type_name, record.ID)
        return record

    def populate(self, record: Record, fields: dict[str, Any]) -> None:
        """Assign submitted fields and relations to a record without writing it.

        Every to-many relation is replaced by the submitted members. Records
        whose root kind is not accepted are left unchanged.
        """
        catalog = SchemaCatalog(self.storage)

        def set_properties(level: str, base: str | None) -> None:
            for name in catalog.get_database_property(level, "db"):
                record.set_field(name, coerce_scalar(fields.get(name)))

            for name in catalog.get_database_property(level, "has_one"):
                child_structure = fields.get(name)
                if not child_structure:
                    continue
                child = self.save_child_object(record, name, child_structure)
                if child is not None:
                    if not child.exists():
                        child.write()
                    record.set_foreign_key(name, child.ID)

            for name in catalog.get_database_property(level, "has_many"):
                components = record.get_components(name)
                components.remove_all()

                child_structures = fields.get(name) or []
                if not isinstance(child_structures, list):
                    raise ValueError(f"Field '{name}' of '{level}' must be a list")
                for child_structure in child_structures:
                    if not child_structure:
                        continue
                    child = self.save_child_object(record, name, child_structure)
                    if child is not None:
                        components.add(child)

        map_ancestry(self.storage.registry, record.type_name, set_properties, self.root_kinds)

    def save_child_object(self, record: Record, name: str, structure: Any) -> Record | None:
        """Resolve one submitted relation member into a live record.

        Members whose type is neither the relation's target nor one of its
        subclasses are skipped. Without a resolver hook such a member is
        rejected before anything is written.
        """
        target = self.storage.registry.find_relation(record.type_name, name).target

        if isinstance(record, RelationStructureResolver):
            child = record.resolve_relation_structure(name, structure)
            if child is not NotImplemented:
                if child is not None and not self._fits(record, name, child.type_name, target):
                    return None
                return child

        type_name = structure.get("type") if isinstance(structure, dict) else None
        if isinstance(type_name, str) and not self._fits(record, name, type_name, target):
            return None
        return self.save_object(structure)

    def _fits(self, record: Record, name: str, type_name: str, target: str) -> bool:
        if self.storage.registry.is_subclass(type_name, target):
            return True
        logger.debug(
            "Rejected %s for %s.%s: not a %s", type_name, record.type_name, name, target
        )
        return False
