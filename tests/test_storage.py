"""Tests for the record store and live records."""

import json

import pytest

from record_graph import Schema
from record_graph.parsing import TypeParser
from record_graph.storage import StorageManager, Table, describe_column, load_registry_from_metadata
from record_graph.types import ColumnDefinition

from conftest import VIEWS_SCHEMA


class TestTable:
    """Tests for the Table class."""

    def test_insert_and_get(self, tmp_path):
        """Test that IDs start at 1 and rows round-trip."""
        with Table("Thing", tmp_path / "Thing.json") as table:
            first = table.insert({"ClassName": "Thing", "Name": "a"})
            second = table.insert({"ClassName": "Thing", "Name": "b"})

            assert (first, second) == (1, 2)
            assert table.get(2) == {"ClassName": "Thing", "Name": "b"}
            assert table.count == 2

    def test_get_missing(self, tmp_path):
        with Table("Thing", tmp_path / "Thing.json") as table:
            assert table.get(0) is None
            assert table.get(5) is None

    def test_get_returns_copy(self, tmp_path):
        """Test that mutating a fetched row does not touch the table."""
        with Table("Thing", tmp_path / "Thing.json") as table:
            table.insert({"Items": [1]})
            table.get(1)["Items"].append(2)

            assert table.get(1) == {"Items": [1]}

    def test_update(self, tmp_path):
        with Table("Thing", tmp_path / "Thing.json") as table:
            table.insert({"Name": "a"})
            table.update(1, {"Name": "z"})

            assert table.get(1) == {"Name": "z"}

            with pytest.raises(KeyError):
                table.update(9, {})

    def test_delete_does_not_reuse_ids(self, tmp_path):
        with Table("Thing", tmp_path / "Thing.json") as table:
            table.insert({"Name": "a"})
            table.delete(1)

            assert table.get(1) is None
            assert table.insert({"Name": "b"}) == 2

    def test_persistence(self, tmp_path):
        """Test that data persists across table instances."""
        path = tmp_path / "Thing.json"
        with Table("Thing", path) as table:
            table.insert({"Name": "a"})
            table.insert({"Name": "b"})

        with Table("Thing", path) as table:
            assert table.ids() == [1, 2]
            assert table.get(1) == {"Name": "a"}
            assert table.insert({"Name": "c"}) == 3


class TestDescribeColumn:
    """Tests for database column descriptions."""

    @pytest.mark.parametrize(
        "spec, args, expected",
        [
            ("Boolean", [], "tinyint(1) unsigned"),
            ("Int", [], "int(11)"),
            ("Varchar", [255], "varchar(255)"),
            ("Varchar", [], "varchar(50)"),
            ("Text", [], "mediumtext"),
            ("Enum", ["Asc", "Desc"], "enum('Asc','Desc')"),
            ("Decimal", [], "decimal(9,2)"),
            ("Decimal", [5, 1], "decimal(5,1)"),
            ("Geometry", [], "geometry"),
        ],
    )
    def test_describe(self, spec, args, expected):
        assert describe_column(ColumnDefinition(name="X", spec=spec, args=args)) == expected


class TestStorageManager:
    """Tests for the record store."""

    def test_describe_columns_is_uninherited(self, schema):
        assert schema.storage.describe_columns("HandPickedResultsRetriever") == {
            "Shuffle": "tinyint(1) unsigned"
        }
        assert schema.storage.describe_columns("ViewResultsSorter") == {
            "Mode": "enum('Natural','Random')"
        }

    def test_create_applies_defaults(self, schema):
        record = schema.storage.create("QueryResultsRetriever")

        assert not record.exists()
        assert record.get_field("Title") == "Untitled"
        assert record.get_field("MaxResults") == 10
        assert record.get_foreign_key("RootPredicate") == 0
        assert len(record.get_components("Sorts")) == 0

    def test_one_table_per_root_kind(self, schema):
        schema.create_record("QueryResultsRetriever")
        schema.create_record("HandPickedResultsRetriever")

        assert schema.storage.get_table("HandPickedResultsRetriever") is schema.storage.get_table(
            "ViewResultsRetriever"
        )
        assert (schema.storage.data_dir / "ViewResultsRetriever.json").exists()
        assert schema.storage.get_table("ViewResultsRetriever").count == 2

    def test_get_by_id_is_polymorphic(self, schema):
        created = schema.create_record("CompoundPredicate", {"IsConjunctive": False})

        loaded = schema.get_record("QueryPredicate", created.ID)

        assert loaded.type_name == "CompoundPredicate"
        assert loaded.get_field("IsConjunctive") is False
        assert loaded == created

    def test_get_by_id_rejects_other_branch(self, schema):
        created = schema.create_record("CompoundPredicate")

        assert schema.get_record("FieldPredicate", created.ID) is None
        assert schema.get_record("QueryPredicate", 0) is None
        assert schema.get_record("QueryPredicate", 99) is None

    def test_update_keeps_id(self, schema):
        record = schema.create_record("QuerySort", {"FieldName": "Title"})
        record_id = record.ID

        record.set_field("FieldName", "Created")
        assert record.write() == record_id
        assert schema.get_record("QuerySort", record_id).get_field("FieldName") == "Created"

    def test_list_records(self, schema):
        schema.create_record("QueryPredicate")
        schema.create_record("FieldPredicate")
        schema.create_record("CompoundPredicate")

        assert [r.type_name for r in schema.storage.list_records("QueryPredicate")] == [
            "QueryPredicate",
            "FieldPredicate",
            "CompoundPredicate",
        ]
        assert len(schema.storage.list_records("FieldPredicate")) == 1

    def test_delete(self, schema):
        record = schema.create_record("QuerySort")
        record_id = record.ID

        record.delete()

        assert not record.exists()
        assert schema.get_record("QuerySort", record_id) is None

    def test_metadata_round_trip(self, tmp_path):
        data_dir = tmp_path / "data"
        with Schema.parse(VIEWS_SCHEMA, data_dir):
            pass

        metadata = json.loads((data_dir / StorageManager.METADATA_FILE).read_text())
        assert metadata["types"]["FieldPredicate"]["parent"] == "QueryPredicate"
        assert metadata["types"]["FieldPredicate"]["traverse_has_one"] is True

        registry = load_registry_from_metadata(data_dir)
        assert registry.list_types() == TypeParser().parse(VIEWS_SCHEMA).list_types()
        assert registry.get("ViewResultsSorter").get_column("Mode").args == ["Natural", "Random"]
        assert registry.get_property("ViewResultsRetriever", "defaults") == {"Title": "Untitled"}
        assert registry.traverses_has_one("QueryResultsRetriever")

    def test_missing_metadata(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_registry_from_metadata(tmp_path)


class TestRecord:
    """Tests for live record access."""

    def test_unknown_field(self, schema):
        record = schema.storage.create("QuerySort")

        with pytest.raises(KeyError):
            record.get_field("Nope")
        with pytest.raises(KeyError):
            record.set_field("Nope", 1)

    def test_relation_kind_is_checked(self, schema):
        record = schema.storage.create("QueryResultsRetriever")

        with pytest.raises(KeyError):
            record.get_components("RootPredicate")
        with pytest.raises(KeyError):
            record.get_foreign_key("Sorts")

    def test_get_component(self, schema):
        condition = schema.create_record("PredicateCondition", {"Operator": "LessThan"})
        predicate = schema.storage.create("FieldPredicate")

        assert predicate.get_component("Condition") is None

        predicate.set_foreign_key("Condition", condition.ID)

        assert predicate.get_component("Condition") == condition

    def test_components_add_writes_unsaved_members(self, schema):
        predicate = schema.create_record("CompoundPredicate")
        child = schema.storage.create("FieldPredicate")

        predicate.get_components("Predicates").add(child)

        assert child.exists()
        assert predicate.get_components("Predicates").ids() == [child.ID]

    def test_components_persist_with_owner(self, schema):
        predicate = schema.create_record("CompoundPredicate")
        first = schema.create_record("QueryPredicate")
        second = schema.create_record("FieldPredicate")
        components = predicate.get_components("Predicates")
        components.add(first)
        components.add(second)
        components.add(first)
        predicate.write()

        loaded = schema.get_record("CompoundPredicate", predicate.ID)

        assert [r.type_name for r in loaded.get_components("Predicates")] == [
            "QueryPredicate",
            "FieldPredicate",
        ]

    def test_components_remove(self, schema):
        predicate = schema.create_record("CompoundPredicate")
        first = schema.create_record("QueryPredicate")
        second = schema.create_record("QueryPredicate")
        components = predicate.get_components("Predicates")
        components.add(first)
        components.add(second)

        components.remove(first)
        assert components.ids() == [second.ID]

        components.remove_all()
        assert components.ids() == []

    def test_components_reject_wrong_type(self, schema):
        predicate = schema.create_record("CompoundPredicate")
        sort = schema.create_record("QuerySort")

        with pytest.raises(TypeError):
            predicate.get_components("Predicates").add(sort)

    def test_saved_records_hash_by_identity(self, schema):
        sort = schema.create_record("QuerySort")
        loaded = schema.get_record("QuerySort", sort.ID)

        assert sort == loaded
        assert len({sort, loaded}) == 1

    def test_unsaved_record_is_not_hashable(self, schema):
        """An unsaved record's identity changes when it is written."""
        sort = schema.storage.create("QuerySort")

        with pytest.raises(TypeError):
            hash(sort)

        sort.write()
        assert sort in {schema.get_record("QuerySort", sort.ID)}
