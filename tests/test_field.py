"""Tests for the query builder form field."""

import html
import json

from record_graph import QueryBuilderField
from record_graph.field import create_tag, outline_structure
from record_graph.record import Record


class TestCreateTag:
    """Tests for HTML tag construction."""

    def test_self_closing(self):
        assert create_tag("input", {"type": "hidden", "name": "q"}) == (
            '<input type="hidden" name="q" />'
        )

    def test_none_attributes_are_omitted(self):
        assert create_tag("input", {"name": "q", "tabindex": None}) == '<input name="q" />'

    def test_attribute_values_are_escaped(self):
        tag = create_tag("input", {"value": '{"a": "<b>"}'})

        assert tag == '<input value="{&quot;a&quot;: &quot;&lt;b&gt;&quot;}" />'

    def test_content(self):
        assert create_tag("span", {"class": "readonly"}, "x<br />y") == (
            '<span class="readonly">x<br />y</span>'
        )


class TestOutlineStructure:
    """Tests for the plain-text outline of an ObjectRecord."""

    def test_empty(self):
        assert outline_structure(None) == ["(none)"]

    def test_nested(self):
        structure = {
            "type": "FieldPredicate",
            "fields": {
                "FieldName": "Title",
                "Condition": {"type": "PredicateCondition", "fields": {"Operator": "Equal"}},
                "Values": [],
                "Note": None,
            },
        }

        assert outline_structure(structure) == [
            "FieldPredicate",
            "    FieldName: Title",
            "    Condition:",
            "        PredicateCondition",
            "            Operator: Equal",
            "    Values: (none)",
            "    Note: ",
        ]

    def test_list_members(self):
        structure = {
            "type": "CompoundPredicate",
            "fields": {
                "Predicates": [
                    {"type": "QueryPredicate", "fields": {}},
                    {"type": "QueryPredicate", "fields": {}},
                ],
            },
        }

        assert outline_structure(structure) == [
            "CompoundPredicate",
            "    Predicates:",
            "        QueryPredicate",
            "        QueryPredicate",
        ]


class TestQueryBuilderField:
    """Tests for QueryBuilderField rendering and saving."""

    def test_value_is_query_repr(self, schema, query):
        field = QueryBuilderField("Query", query, schema)

        assert json.loads(field.value) == json.loads(json.dumps(schema.build_query_repr(query)))

    def test_render(self, schema, query):
        field = QueryBuilderField("Query", query, schema)

        markup = field.render()

        assert markup.startswith(
            "<div class='viewsQueryBuilder'></div><div class='viewsImportExport'></div><input"
        )
        assert 'type="hidden"' in markup
        assert 'class="viewsQueryBuilderRepr"' in markup
        assert 'name="Query"' in markup
        assert f'value="{html.escape(field.value, quote=True)}"' in markup
        assert "tabindex" not in markup

    def test_render_without_export(self, schema, query):
        field = QueryBuilderField("Query", query, schema, allow_export=False)

        markup = field.render()

        assert markup.startswith("<div class='viewsQueryBuilder'></div><input")
        assert "viewsImportExport" not in markup

    def test_tabindex(self, schema, query):
        field = QueryBuilderField("Query", query, schema)
        field.tabindex = 3

        assert 'tabindex="3"' in field.input_tag()

    def test_readonly_transformation(self, schema, query):
        field = QueryBuilderField("Query[Repr]", query, schema)

        readonly = field.perform_readonly_transformation()

        assert readonly is not field
        assert readonly.readonly
        assert not field.readonly
        assert readonly.value == field.value

    def test_readonly_render(self, schema):
        sort = schema.create_record("QuerySort", {"FieldName": "Created", "IsAscending": 0})
        field = QueryBuilderField("Sort[Repr]", sort, schema).perform_readonly_transformation()
        field.extra_class = "wide"

        span, hidden = field.render().split("\n")

        assert span == (
            '<span id="Sort_Repr_" class="readonly wide">'
            "QuerySort<br />    FieldName: Created<br />    IsAscending: 0</span>"
        )
        assert hidden == field.input_tag()
        assert "viewsQueryBuilder'" not in field.render()

    def test_summary_hook(self, schema):
        class Sort(Record):
            def read_only_summary(self):
                return f"Sort by <{self.get_field('FieldName')}>"

        schema.bind("QuerySort", Sort)
        sort = schema.create_record("QuerySort", {"FieldName": "Title"})
        field = QueryBuilderField("Sort", sort, schema)

        assert field.summary() == "Sort by <Title>"
        assert "Sort by &lt;Title&gt;" in field.read_only_summary()

    def test_save(self, schema, query):
        field = QueryBuilderField("Query", query, schema)

        saved = field.save(field.value)

        assert saved.type_name == "QueryResultsRetriever"
        assert saved.ID != query.ID
        assert schema.build_object_structure(saved) == schema.build_object_structure(query)
