"""Form field exposing a record graph to the query builder UI."""

from __future__ import annotations

import copy
import html
import json
import re
from typing import TYPE_CHECKING, Any

from record_graph.hooks import ReadOnlySummary

if TYPE_CHECKING:
    from record_graph.record import Record
    from record_graph.schema import Schema

INDENT = "    "


def outline_structure(structure: dict[str, Any] | None, depth: int = 0) -> list[str]:
    """Render an ObjectRecord as indented plain-text lines."""
    prefix = INDENT * depth
    if not structure:
        return [f"{prefix}(none)"]

    lines = [f"{prefix}{structure.get('type')}"]
    for name, value in (structure.get("fields") or {}).items():
        if isinstance(value, dict):
            lines.append(f"{prefix}{INDENT}{name}:")
            lines.extend(outline_structure(value, depth + 2))
        elif isinstance(value, list):
            if not value:
                lines.append(f"{prefix}{INDENT}{name}: (none)")
                continue
            lines.append(f"{prefix}{INDENT}{name}:")
            for child in value:
                lines.extend(outline_structure(child, depth + 2))
        else:
            shown = "" if value is None else value
            lines.append(f"{prefix}{INDENT}{name}: {shown}")
    return lines


class QueryBuilderField:
    """Editable (or read-only) field holding a query representation.

    The value is the JSON-encoded ``{"data", "types"}`` representation of the
    record, carried in a hidden input for the client-side builder.
    """

    def __init__(
        self, name: str, record: Record, schema: Schema, allow_export: bool = True
    ) -> None:
        self.name = name
        self.record = record
        self.schema = schema
        self.allow_export = allow_export
        self.readonly = False
        self.tabindex: int | None = None
        self.extra_class = ""

        self.value = json.dumps(schema.build_query_repr(record))

    @property
    def id(self) -> str:
        """HTML id derived from the field name."""
        return re.sub(r"[^A-Za-z0-9_-]", "_", self.name)

    def summary(self) -> str:
        """Plain-text, multi-line summary of the represented record."""
        if isinstance(self.record, ReadOnlySummary):
            return self.record.read_only_summary()
        structure = self.schema.build_object_structure(self.record)
        return "\n".join(outline_structure(structure))

    def input_tag(self) -> str:
        """Hidden input carrying the JSON representation."""
        attributes = {
            "type": "hidden",
            "class": "viewsQueryBuilderRepr",
            "name": self.name,
            "value": self.value,
            "tabindex": self.tabindex,
        }
        return create_tag("input", attributes)

    def read_only_summary(self) -> str:
        """Summary span followed by the hidden input."""
        css_class = "readonly" + (f" {self.extra_class}" if self.extra_class else "")
        attributes = {"id": self.id, "class": css_class}
        span = create_tag("span", attributes, html.escape(self.summary()).replace("\n", "<br />"))
        return span + "\n" + self.input_tag()

    def perform_readonly_transformation(self) -> QueryBuilderField:
        """Return a read-only copy of this field."""
        read = copy.copy(self)
        read.readonly = True
        return read

    def render(self) -> str:
        """Render the field markup."""
        if self.readonly:
            return self.read_only_summary()

        markup = "<div class='viewsQueryBuilder'></div>"
        if self.allow_export:
            markup += "<div class='viewsImportExport'></div>"
        markup += self.input_tag()
        return markup

    def save(self, submitted: str | bytes | dict[str, Any]) -> Record | None:
        """Persist a submitted representation, returning the new root record."""
        return self.schema.save(submitted)


def create_tag(tag: str, attributes: dict[str, Any], content: str | None = None) -> str:
    """Build an HTML tag; attributes set to None are omitted.

    ``content`` is inserted as given and must already be escaped.
    """
    rendered = "".join(
        f' {key}="{html.escape(str(value), quote=True)}"'
        for key, value in attributes.items()
        if value is not None
    )
    if content is None:
        return f"<{tag}{rendered} />"
    return f"<{tag}{rendered}>{content}</{tag}>"
