"""Example usage of the record_graph library."""

import json
from pathlib import Path

from record_graph import QueryBuilderField, Schema

# Declare record types using the DSL
types = """
record QueryPredicate {
    IsRawSQL: Boolean = false
}

record FieldPredicate extends QueryPredicate traverse {
    FieldName: Varchar(100),
    has_one Condition: PredicateCondition
}

record PredicateCondition {
    Operator: Enum('Equal', 'NotEqual')
}

record QueryResultsRetriever traverse {
    Title: Varchar(100) = "Untitled",
    MaxResults: Int = 10,
    has_one RootPredicate: QueryPredicate
}
"""

# Create a data directory for storage
data_dir = Path("./example_data")

with Schema.parse(types, data_dir) as schema:
    condition = schema.create_record("PredicateCondition", {"Operator": "Equal"})
    predicate = schema.create_record("FieldPredicate", {"FieldName": "Title"})
    predicate.set_foreign_key("Condition", condition.ID)
    predicate.write()

    retriever = schema.create_record("QueryResultsRetriever", {"Title": "Featured"})
    retriever.set_foreign_key("RootPredicate", predicate.ID)
    retriever.write()

    # The nested structure of the retriever and everything it links to
    print(json.dumps(schema.build_object_structure(retriever), indent=2))

    # The form field carries the structure together with the type catalog
    field = QueryBuilderField("Query", retriever, schema)
    print(field.perform_readonly_transformation().summary())

    # Submitting the same representation creates a fresh copy of the graph
    copy = field.save(field.value)
    print(f"Saved {copy.type_name} #{copy.ID}")
