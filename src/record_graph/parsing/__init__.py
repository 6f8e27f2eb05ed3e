"""Parsing module for the record type DSL."""

from record_graph.parsing.type_parser import (
    ColumnSpec,
    RecordSpec,
    RelationSpec,
    TypeParser,
)

__all__ = [
    "ColumnSpec",
    "RecordSpec",
    "RelationSpec",
    "TypeParser",
]
