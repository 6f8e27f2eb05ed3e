"""Record Graph - schema-driven (de)serialization of typed record graphs."""

from record_graph.ancestry import map_ancestry, merge_recursive_distinct
from record_graph.catalog import SchemaCatalog
from record_graph.deserializer import GraphDeserializer, coerce_scalar
from record_graph.field import QueryBuilderField
from record_graph.parsing import TypeParser
from record_graph.record import Record, RelationList
from record_graph.schema import Schema
from record_graph.serializer import GraphSerializer
from record_graph.storage import StorageManager, Table
from record_graph.types import (
    ColumnDefinition,
    InputDescriptor,
    InputKind,
    RecordTypeDefinition,
    RelationDefinition,
    RelationKind,
    TypeRegistry,
)

__all__ = [
    # Main API
    "Schema",
    "TypeParser",
    "Record",
    "RelationList",
    # (De)serialization
    "SchemaCatalog",
    "GraphSerializer",
    "GraphDeserializer",
    "QueryBuilderField",
    "coerce_scalar",
    "map_ancestry",
    "merge_recursive_distinct",
    # Storage
    "Table",
    "StorageManager",
    # Type definitions
    "ColumnDefinition",
    "InputDescriptor",
    "InputKind",
    "RecordTypeDefinition",
    "RelationDefinition",
    "RelationKind",
    "TypeRegistry",
]

__version__ = "0.1.0"
