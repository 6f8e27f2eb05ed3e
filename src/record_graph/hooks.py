"""Optional capabilities a bound record class may implement.

Each extension point checks whether the record class (or instance) provides
the capability and prefers it over the default behaviour. Per-name hooks
return ``NotImplemented`` for names they do not handle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from record_graph.record import Record
    from record_graph.types import InputDescriptor


@runtime_checkable
class FieldDescriber(Protocol):
    """Overrides the input descriptor of individual fields (a classmethod)."""

    def describe_field(self, name: str, db_type: str) -> InputDescriptor: ...


@runtime_checkable
class RelationStructureBuilder(Protocol):
    """Builds the nested structure of a relation field itself."""

    def build_relation_structure(self, name: str) -> Any: ...


@runtime_checkable
class RelationStructureResolver(Protocol):
    """Turns a submitted relation structure into a live record itself."""

    def resolve_relation_structure(self, name: str, structure: Any) -> Record | None: ...


@runtime_checkable
class CatalogAugmenter(Protocol):
    """Adds synthetic entries to the type catalog (a classmethod)."""

    def augment_types(self, catalog: dict[str, Any]) -> None: ...


@runtime_checkable
class ReadOnlySummary(Protocol):
    """Provides the plain-text summary shown in read-only contexts."""

    def read_only_summary(self) -> str: ...
