"""Shared fixtures: a small query/view record schema."""

from __future__ import annotations

import pytest

from record_graph import Schema

VIEWS_SCHEMA = """
# Results retrievers
record ViewResultsRetriever traverse {
    Title: Varchar(100) = "Untitled",
    has_one Sorter: ViewResultsSorter
}

record QueryResultsRetriever extends ViewResultsRetriever {
    MaxResults: Int = 10,
    has_one RootPredicate: QueryPredicate,
    has_many Sorts: QuerySort
}

record HandPickedResultsRetriever extends ViewResultsRetriever {
    Shuffle: Boolean = false
}

record ViewResultsSorter {
    Mode: Enum('Natural', 'Random')
}

record QuerySort {
    FieldName: Varchar(50),
    IsAscending: Boolean = true
}

# Predicates
record QueryPredicate {
    IsRawSQL: Boolean = false
}

record CompoundPredicate extends QueryPredicate {
    IsConjunctive: Boolean = true,
    has_many Predicates: QueryPredicate
}

record FieldPredicate extends QueryPredicate traverse {
    FieldName: Varchar(100),
    has_one Condition: PredicateCondition,
    has_many Values: FieldPredicateValue
}

record PredicateCondition {
    Operator: Enum('Equal', 'NotEqual', 'LessThan', 'GreaterThan')
}

record FieldPredicateValue {
    Value: Text
}
"""


@pytest.fixture
def schema(tmp_path):
    """A schema over VIEWS_SCHEMA stored in a temporary directory."""
    with Schema.parse(VIEWS_SCHEMA, tmp_path / "data") as s:
        yield s


@pytest.fixture
def query(schema):
    """A stored QueryResultsRetriever with a predicate tree and one sort."""
    condition = schema.create_record("PredicateCondition", {"Operator": "Equal"})
    value = schema.create_record("FieldPredicateValue", {"Value": "Hello"})

    predicate = schema.create_record("FieldPredicate", {"FieldName": "Title"})
    predicate.set_foreign_key("Condition", condition.ID)
    predicate.get_components("Values").add(value)
    predicate.write()

    sort = schema.create_record("QuerySort", {"FieldName": "Created", "IsAscending": False})

    retriever = schema.create_record("QueryResultsRetriever", {"Title": "Featured"})
    retriever.set_foreign_key("RootPredicate", predicate.ID)
    retriever.get_components("Sorts").add(sort)
    retriever.write()
    return retriever
