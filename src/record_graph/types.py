"""Type definitions for the record_graph library."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from record_graph.record import Record


class RelationKind(Enum):
    """How a relation field links two record types."""

    TO_ONE = "has_one"
    TO_MANY = "has_many"


class InputKind(Enum):
    """Editable input kinds exposed in the type catalog."""

    BOOL = "bool"
    INT = "int"
    SELECT = "select"
    TO_ONE = "to-one"
    TO_MANY = "to-many"
    TEXT = "text"


# Class configuration properties that can be read per level
CONFIG_PROPERTIES = ("db", "has_one", "has_many", "defaults")


@dataclass
class InputDescriptor:
    """Describes how a single field should be edited.

    ``options`` is an ordered value -> label mapping, or None when the field
    has no finite option set.
    """

    kind: InputKind
    default: Any = ""
    options: dict[str, str] | None = None

    @classmethod
    def with_options(
        cls, kind: InputKind, values: list[str], default: Any = ""
    ) -> InputDescriptor:
        """Build a descriptor whose labels equal their values."""
        options = {value: value for value in values} if values else None
        return cls(kind=kind, default=default, options=options)

    def as_dict(self) -> dict[str, Any]:
        """Return the JSON-compatible catalog entry."""
        return {
            "type": self.kind.value,
            "default": self.default,
            "options": dict(self.options) if self.options is not None else None,
        }


@dataclass
class ColumnDefinition:
    """A scalar database column declared on a record type."""

    name: str
    spec: str
    args: list[Any] = field(default_factory=list)

    @property
    def declared_type(self) -> str:
        """Return the column spec as written, e.g. ``Enum('Asc','Desc')``."""
        if not self.args:
            return self.spec
        rendered = ",".join(
            f"'{arg}'" if isinstance(arg, str) else str(arg) for arg in self.args
        )
        return f"{self.spec}({rendered})"


@dataclass
class RelationDefinition:
    """A to-one or to-many relation declared on a record type."""

    name: str
    kind: RelationKind
    target: str


@dataclass
class RecordTypeDefinition:
    """A record type and its own (un-inherited) class configuration."""

    name: str
    parent: str | None = None
    columns: list[ColumnDefinition] = field(default_factory=list)
    relations: list[RelationDefinition] = field(default_factory=list)
    defaults: dict[str, Any] = field(default_factory=dict)
    traverse_has_one: bool | None = None

    def get_column(self, name: str) -> ColumnDefinition | None:
        """Get an own column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def relations_of_kind(self, kind: RelationKind) -> list[RelationDefinition]:
        """Return own relations of one kind, in declaration order."""
        return [r for r in self.relations if r.kind is kind]

    def own_property(self, prop: str) -> dict[str, Any]:
        """Return one level of class configuration as a name -> value mapping.

        ``db`` maps column names to their declared specs, ``has_one`` and
        ``has_many`` map relation names to target type names.
        """
        if prop == "db":
            return {c.name: c.declared_type for c in self.columns}
        if prop == "has_one":
            return {r.name: r.target for r in self.relations_of_kind(RelationKind.TO_ONE)}
        if prop == "has_many":
            return {r.name: r.target for r in self.relations_of_kind(RelationKind.TO_MANY)}
        if prop == "defaults":
            return dict(self.defaults)
        raise KeyError(f"Unknown class property '{prop}'")


class TypeRegistry:
    """Registry of all record types and their inheritance lattice."""

    def __init__(self) -> None:
        self._types: dict[str, RecordTypeDefinition] = {}
        self._record_classes: dict[str, type[Record]] = {}

    def register(self, type_def: RecordTypeDefinition) -> None:
        """Register a type definition."""
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        self._types[type_def.name] = type_def

    def get(self, name: str) -> RecordTypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> RecordTypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def base_types(self) -> list[str]:
        """List every type without a parent, in declaration order."""
        return [name for name, td in self._types.items() if td.parent is None]

    def children_of(self, name: str) -> list[str]:
        """List the direct subclasses of a type."""
        return [n for n, td in self._types.items() if td.parent == name]

    def subclasses_of(self, name: str) -> list[str]:
        """Return the type and all of its descendants, depth-first."""
        self.get_or_raise(name)
        result = [name]
        for child in self.children_of(name):
            result.extend(self.subclasses_of(child))
        return result

    def parent_of(self, name: str) -> str | None:
        """Return the immediate supertype, or None for a base type."""
        return self.get_or_raise(name).parent

    def ancestry_of(self, name: str) -> list[str]:
        """Return the ancestry of a type from leaf to root, itself included."""
        chain: list[str] = []
        current: str | None = name
        while current is not None:
            if current in chain:
                raise ValueError(f"Inheritance cycle through '{current}'")
            chain.append(current)
            current = self.get_or_raise(current).parent
        return chain

    def root_kind_of(self, name: str) -> str | None:
        """Return the top-most ancestor of a type, or None if it is unknown."""
        if name not in self._types:
            return None
        return self.ancestry_of(name)[-1]

    def is_subclass(self, name: str, ancestor: str) -> bool:
        """Check whether ``name`` is ``ancestor`` or inherits from it."""
        return name in self._types and ancestor in self.ancestry_of(name)

    def get_property(
        self, name: str, prop: str, inherited: bool = False
    ) -> dict[str, Any]:
        """Read a class configuration property.

        Args:
            name: Record type name.
            prop: One of ``db``, ``has_one``, ``has_many``, ``defaults``.
            inherited: When False only the level's own declarations are
                returned; otherwise every level is merged root to leaf.

        Returns:
            A fresh mapping; callers may mutate it.
        """
        if not inherited:
            return self.get_or_raise(name).own_property(prop)
        merged: dict[str, Any] = {}
        for level in reversed(self.ancestry_of(name)):
            merged.update(self._types[level].own_property(prop))
        return merged

    def traverses_has_one(self, name: str) -> bool:
        """Return True if structures of this type follow its to-one relations."""
        if not self.get_property(name, "has_one", inherited=True):
            return False
        for level in self.ancestry_of(name):
            flag = self._types[level].traverse_has_one
            if flag is not None:
                return flag
        return False

    def traverses_has_many(self, name: str) -> bool:
        """Return True if structures of this type follow its to-many relations."""
        return bool(self.get_property(name, "has_many", inherited=True))

    def find_relation(self, name: str, relation: str) -> RelationDefinition | None:
        """Find a relation by name anywhere along a type's ancestry."""
        for level in self.ancestry_of(name):
            for rel in self._types[level].relations:
                if rel.name == relation:
                    return rel
        return None

    def find_column(self, name: str, column: str) -> ColumnDefinition | None:
        """Find a column by name anywhere along a type's ancestry."""
        for level in self.ancestry_of(name):
            found = self._types[level].get_column(column)
            if found is not None:
                return found
        return None

    def bind_record_class(self, type_name: str, cls: type[Record]) -> None:
        """Attach a Python record class (behaviour and hooks) to a type."""
        self.get_or_raise(type_name)
        self._record_classes[type_name] = cls

    def record_class_for(self, type_name: str) -> type[Record]:
        """Return the most specific bound record class along the ancestry."""
        for level in self.ancestry_of(type_name):
            cls = self._record_classes.get(level)
            if cls is not None:
                return cls
        from record_graph.record import Record

        return Record

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)
