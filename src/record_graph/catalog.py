"""Type catalog: merged, editable field schemas for every record type."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Iterable

from record_graph.ancestry import map_ancestry
from record_graph.hooks import CatalogAugmenter, FieldDescriber
from record_graph.types import InputDescriptor, InputKind, TypeRegistry

if TYPE_CHECKING:
    from record_graph.storage import StorageManager

logger = logging.getLogger(__name__)

# Checked in this order; the first match wins
BOOL_PATTERN = re.compile(r"^(bool(ean)?|tinyint)\b", re.IGNORECASE)
INT_PATTERN = re.compile(r"^(small|medium|big)?int(eger)?\b", re.IGNORECASE)
ENUM_PATTERN = re.compile(r"^enum\(((?:'[A-Za-z0-9_]+',?)+)\)", re.IGNORECASE)

# Relation properties and the flag that gates traversing them
RELATION_PROPERTIES = ("has_one", "has_many")


class SchemaCatalog:
    """Builds the type catalog from live class metadata.

    Nothing is cached: every call reads the registry and the store as they
    are at that moment.
    """

    def __init__(self, storage: StorageManager) -> None:
        self.storage = storage

    @property
    def registry(self) -> TypeRegistry:
        return self.storage.registry

    def build_catalog(self, root_kinds: Iterable[str] | None = None) -> dict[str, Any]:
        """Describe every subclass of every root kind.

        Args:
            root_kinds: Root record types to enumerate. Defaults to every type
                without a parent.

        Returns:
            Mapping of type name -> ``{"base": ..., "fields": {...}}``.
        """
        roots = list(root_kinds) if root_kinds is not None else self.registry.base_types()

        catalog: dict[str, Any] = {}
        for root in roots:
            for type_name in self.registry.subclasses_of(root):
                catalog[type_name] = map_ancestry(
                    self.registry, type_name, self.build_type_schema
                )

                record_cls = self.registry.record_class_for(type_name)
                if issubclass(record_cls, CatalogAugmenter):
                    record_cls.augment_types(catalog)

        logger.debug("Built type catalog with %d types", len(catalog))
        return catalog

    def build_type_schema(self, type_name: str, base: str | None) -> dict[str, Any]:
        """Describe the fields one ancestry level declares itself."""
        fields = {
            name: self.derive_input_descriptor(type_name, name, db_type).as_dict()
            for name, db_type in self.get_class_fields(type_name).items()
        }
        return {"base": base, "fields": fields}

    def get_class_fields(self, type_name: str) -> dict[str, str]:
        """Return a level's own fields mapped to their declared types.

        Columns map to their described database type; relations map to the
        name of the related record type.
        """
        fields = self.get_database_property(type_name, "db")
        if fields:
            described = self.storage.describe_columns(type_name)
            for name in fields:
                if name in described:
                    fields[name] = described[name]

        for prop in RELATION_PROPERTIES:
            fields.update(self.get_database_property(type_name, prop))
        return fields

    def get_database_property(self, type_name: str, prop: str) -> dict[str, Any]:
        """Return a level's own ``db``, ``has_one`` or ``has_many`` declarations.

        Relation maps are empty when the type does not traverse that kind of
        relation.
        """
        if prop == "has_one" and not self.registry.traverses_has_one(type_name):
            return {}
        if prop == "has_many" and not self.registry.traverses_has_many(type_name):
            return {}
        return self.registry.get_property(type_name, prop)

    def derive_input_descriptor(
        self, type_name: str, name: str, db_type: str
    ) -> InputDescriptor:
        """Work out how a field should be edited.

        A bound record class implementing ``describe_field`` is asked first.
        Otherwise the declared type decides: boolean, integer, enumeration,
        related record type, then free text.
        """
        record_cls = self.registry.record_class_for(type_name)
        if issubclass(record_cls, FieldDescriber):
            described = record_cls.describe_field(name, db_type)
            if described is not NotImplemented:
                return described

        defaults = self.registry.get_property(type_name, "defaults", inherited=True)
        default = defaults.get(name, "")

        if BOOL_PATTERN.search(db_type):
            return InputDescriptor(kind=InputKind.BOOL, default=default)

        if INT_PATTERN.search(db_type):
            return InputDescriptor(kind=InputKind.INT, default=default)

        match = ENUM_PATTERN.search(db_type)
        if match:
            options = [option.strip("'") for option in match.group(1).split(",") if option]
            return InputDescriptor.with_options(InputKind.SELECT, options, default=options[0])

        if db_type in self.registry:
            has_one = self.get_database_property(type_name, "has_one")
            kind = InputKind.TO_ONE if name in has_one else InputKind.TO_MANY
            return InputDescriptor.with_options(
                kind, self.registry.subclasses_of(db_type), default=default
            )

        return InputDescriptor(kind=InputKind.TEXT, default=default)
