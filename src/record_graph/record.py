"""Live records backed by the record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from record_graph.types import RelationDefinition, RelationKind

if TYPE_CHECKING:
    from record_graph.storage import StorageManager
    from record_graph.types import TypeRegistry


class Record:
    """A live, persistable instance of a record type.

    Subclasses bound to a type with ``TypeRegistry.bind_record_class`` add
    behaviour and may implement the capability hooks in ``record_graph.hooks``.
    """

    def __init__(
        self,
        storage: StorageManager,
        type_name: str,
        values: dict[str, Any] | None = None,
        record_id: int = 0,
    ) -> None:
        self.storage = storage
        self.type_name = type_name
        self.ID = record_id
        self._values: dict[str, Any] = dict(values or {})

    @property
    def registry(self) -> TypeRegistry:
        return self.storage.registry

    def exists(self) -> bool:
        """Return True once the record has been written."""
        return self.ID > 0

    def get_field(self, name: str) -> Any:
        """Read a scalar column value."""
        self._require_column(name)
        return self._values.get(name)

    def set_field(self, name: str, value: Any) -> None:
        """Assign a scalar column value (persisted on the next write)."""
        self._require_column(name)
        self._values[name] = value

    def get_foreign_key(self, name: str) -> int:
        """Read the foreign key backing a to-one relation (0 when unset)."""
        self._require_relation(name, RelationKind.TO_ONE)
        return self._values.get(f"{name}ID") or 0

    def set_foreign_key(self, name: str, record_id: int | None) -> None:
        """Point a to-one relation at a record ID."""
        self._require_relation(name, RelationKind.TO_ONE)
        self._values[f"{name}ID"] = record_id or 0

    def get_component(self, name: str) -> Record | None:
        """Fetch the record a to-one relation points at."""
        relation = self._require_relation(name, RelationKind.TO_ONE)
        record_id = self.get_foreign_key(name)
        if not record_id:
            return None
        return self.storage.get_by_id(relation.target, record_id)

    def get_components(self, name: str) -> RelationList:
        """Return the owned collection behind a to-many relation."""
        relation = self._require_relation(name, RelationKind.TO_MANY)
        return RelationList(self, relation)

    def values(self) -> dict[str, Any]:
        """Return a copy of the raw stored values."""
        return dict(self._values)

    def write(self) -> int:
        """Create or update this record, returning its ID."""
        return self.storage.write(self)

    def delete(self) -> None:
        """Remove this record from the store."""
        self.storage.delete(self)

    def _require_column(self, name: str) -> None:
        if self.registry.find_column(self.type_name, name) is None:
            raise KeyError(f"Type '{self.type_name}' has no field '{name}'")

    def _require_relation(self, name: str, kind: RelationKind) -> RelationDefinition:
        relation = self.registry.find_relation(self.type_name, name)
        if relation is None or relation.kind is not kind:
            raise KeyError(
                f"Type '{self.type_name}' has no {kind.value} relation '{name}'"
            )
        return relation

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.type_name!r}, {self.ID})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        if not self.exists() or not other.exists():
            return self is other
        root = self.registry.root_kind_of(self.type_name)
        return root == other.registry.root_kind_of(other.type_name) and self.ID == other.ID

    def __hash__(self) -> int:
        if not self.exists():
            raise TypeError(f"Unsaved {self.type_name} record is not hashable")
        return hash((self.registry.root_kind_of(self.type_name), self.ID))


class RelationList:
    """Ordered members of a to-many relation.

    Membership lives on the owning record and is persisted when the owner is
    written.
    """

    def __init__(self, owner: Record, relation: RelationDefinition) -> None:
        self.owner = owner
        self.relation = relation

    def ids(self) -> list[int]:
        """Return member IDs in order."""
        return list(self.owner._values.get(self.relation.name) or [])

    def add(self, record: Record) -> None:
        """Append a member, writing it first if it has no identity yet."""
        if not self.owner.registry.is_subclass(record.type_name, self.relation.target):
            raise TypeError(
                f"Cannot add {record.type_name} to "
                f"{self.owner.type_name}.{self.relation.name}"
            )
        if not record.exists():
            record.write()
        members = self.ids()
        if record.ID not in members:
            members.append(record.ID)
        self.owner._values[self.relation.name] = members

    def remove(self, record: Record) -> None:
        """Drop a member if present."""
        self.owner._values[self.relation.name] = [
            member for member in self.ids() if member != record.ID
        ]

    def remove_all(self) -> None:
        """Drop every member."""
        self.owner._values[self.relation.name] = []

    def __iter__(self) -> Iterator[Record]:
        for record_id in self.ids():
            record = self.owner.storage.get_by_id(self.relation.target, record_id)
            if record is not None:
                yield record

    def __len__(self) -> int:
        return len(self.ids())

    def __repr__(self) -> str:
        return f"RelationList({self.owner!r}.{self.relation.name}, {self.ids()})"
