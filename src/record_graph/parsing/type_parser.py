"""Parser for the record type DSL."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from record_graph.parsing.type_lexer import TypeLexer
from record_graph.types import (
    ColumnDefinition,
    RecordTypeDefinition,
    RelationDefinition,
    RelationKind,
    TypeRegistry,
)


@dataclass
class ColumnSpec:
    """Specification for a scalar column before resolution."""

    name: str
    type_name: str
    args: list[Any] = field(default_factory=list)
    has_default: bool = False
    default_value: Any = None


@dataclass
class RelationSpec:
    """Specification for a relation before resolution."""

    name: str
    kind: RelationKind
    target: str


@dataclass
class RecordSpec:
    """Specification for a record type before resolution."""

    name: str
    parent: str | None
    traverse: bool
    members: list[ColumnSpec | RelationSpec]
    lineno: int = 0


class TypeParser:
    """Parser for the record type DSL."""

    tokens = TypeLexer.tokens

    def __init__(self) -> None:
        self.lexer = TypeLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.registry: TypeRegistry = TypeRegistry()
        self._specs: list[RecordSpec] = []

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema : empty"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : record_def"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list record_def"""
        p[0] = p[1] + [p[2]]

    def p_record_def(self, p: yacc.YaccProduction) -> None:
        """record_def : RECORD IDENTIFIER parent_opt traverse_opt LBRACE member_list RBRACE
                      | RECORD IDENTIFIER parent_opt traverse_opt LBRACE member_list COMMA RBRACE"""
        p[0] = RecordSpec(
            name=p[2], parent=p[3], traverse=p[4], members=p[6], lineno=p.lineno(1)
        )

    def p_record_def_empty(self, p: yacc.YaccProduction) -> None:
        """record_def : RECORD IDENTIFIER parent_opt traverse_opt LBRACE RBRACE"""
        p[0] = RecordSpec(
            name=p[2], parent=p[3], traverse=p[4], members=[], lineno=p.lineno(1)
        )

    def p_parent_opt(self, p: yacc.YaccProduction) -> None:
        """parent_opt : EXTENDS IDENTIFIER"""
        p[0] = p[2]

    def p_parent_opt_empty(self, p: yacc.YaccProduction) -> None:
        """parent_opt : empty"""
        p[0] = None

    def p_traverse_opt(self, p: yacc.YaccProduction) -> None:
        """traverse_opt : TRAVERSE"""
        p[0] = True

    def p_traverse_opt_empty(self, p: yacc.YaccProduction) -> None:
        """traverse_opt : empty"""
        p[0] = False

    def p_member_list_single(self, p: yacc.YaccProduction) -> None:
        """member_list : member"""
        p[0] = [p[1]]

    def p_member_list_multiple(self, p: yacc.YaccProduction) -> None:
        """member_list : member_list COMMA member"""
        p[0] = p[1] + [p[3]]

    def p_member_column(self, p: yacc.YaccProduction) -> None:
        """member : IDENTIFIER COLON column_type"""
        type_name, args = p[3]
        p[0] = ColumnSpec(name=p[1], type_name=type_name, args=args)

    def p_member_column_default(self, p: yacc.YaccProduction) -> None:
        """member : IDENTIFIER COLON column_type EQUALS literal"""
        type_name, args = p[3]
        p[0] = ColumnSpec(
            name=p[1], type_name=type_name, args=args,
            has_default=True, default_value=p[5],
        )

    def p_member_has_one(self, p: yacc.YaccProduction) -> None:
        """member : HAS_ONE IDENTIFIER COLON IDENTIFIER"""
        p[0] = RelationSpec(name=p[2], kind=RelationKind.TO_ONE, target=p[4])

    def p_member_has_many(self, p: yacc.YaccProduction) -> None:
        """member : HAS_MANY IDENTIFIER COLON IDENTIFIER"""
        p[0] = RelationSpec(name=p[2], kind=RelationKind.TO_MANY, target=p[4])

    def p_column_type_simple(self, p: yacc.YaccProduction) -> None:
        """column_type : IDENTIFIER"""
        p[0] = (p[1], [])

    def p_column_type_args(self, p: yacc.YaccProduction) -> None:
        """column_type : IDENTIFIER LPAREN arg_list RPAREN"""
        p[0] = (p[1], p[3])

    def p_arg_list_single(self, p: yacc.YaccProduction) -> None:
        """arg_list : arg"""
        p[0] = [p[1]]

    def p_arg_list_multiple(self, p: yacc.YaccProduction) -> None:
        """arg_list : arg_list COMMA arg"""
        p[0] = p[1] + [p[3]]

    def p_arg(self, p: yacc.YaccProduction) -> None:
        """arg : INTEGER
               | STRING"""
        p[0] = p[1]

    def p_literal_value(self, p: yacc.YaccProduction) -> None:
        """literal : INTEGER
                   | STRING"""
        p[0] = p[1]

    def p_literal_true(self, p: yacc.YaccProduction) -> None:
        """literal : TRUE"""
        p[0] = True

    def p_literal_false(self, p: yacc.YaccProduction) -> None:
        """literal : FALSE"""
        p[0] = False

    def p_literal_null(self, p: yacc.YaccProduction) -> None:
        """literal : NULL"""
        p[0] = None

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> TypeRegistry:
        """Parse record type declarations and return a populated TypeRegistry."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.registry = TypeRegistry()
        self.lexer.lexer.lineno = 1
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        self._specs = specs or []

        self._resolve_specs()
        return self.registry

    def _resolve_specs(self) -> None:
        """Resolve all specs into type definitions.

        Phase 1: Register an empty definition for every record so parents and
        relation targets may be declared in any order.
        Phase 2: Populate members and check every reference.
        """
        for spec in self._specs:
            self.registry.register(RecordTypeDefinition(name=spec.name))

        for spec in self._specs:
            type_def = self.registry.get_or_raise(spec.name)
            if spec.parent is not None and spec.parent not in self.registry:
                raise ValueError(
                    f"Type '{spec.name}' extends unknown type '{spec.parent}'"
                )
            type_def.parent = spec.parent
            type_def.traverse_has_one = True if spec.traverse else None
            self._populate_members(type_def, spec)

        # Reject inheritance cycles
        for name in self.registry.list_types():
            self.registry.ancestry_of(name)

    def _populate_members(self, type_def: RecordTypeDefinition, spec: RecordSpec) -> None:
        """Fill a registered definition from its spec."""
        seen: set[str] = set()
        for member in spec.members:
            if member.name in seen:
                raise ValueError(
                    f"Type '{spec.name}' declares '{member.name}' more than once"
                )
            seen.add(member.name)

            if isinstance(member, RelationSpec):
                if member.target not in self.registry:
                    raise ValueError(
                        f"Relation '{spec.name}.{member.name}' targets unknown "
                        f"type '{member.target}'"
                    )
                type_def.relations.append(
                    RelationDefinition(
                        name=member.name, kind=member.kind, target=member.target
                    )
                )
            else:
                type_def.columns.append(
                    ColumnDefinition(
                        name=member.name, spec=member.type_name, args=list(member.args)
                    )
                )
                if member.has_default:
                    type_def.defaults[member.name] = member.default_value
