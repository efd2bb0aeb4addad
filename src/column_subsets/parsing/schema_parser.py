"""Parser for the base type schema DSL.

Example::

    interface IColumnSubset
    Base2 : IColumnSubset { Id }
    Base1 from Base2 { DateCreated }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from column_subsets.parsing.schema_lexer import SchemaLexer
from column_subsets.registry import BaseTypeRegistry

# The only field kind a schema may name
FIELD_KIND = "string"


@dataclass
class FieldSpec:
    """A field before resolution."""

    name: str
    kind: str | None = None  # None means the default kind
    lineno: int = 0


@dataclass
class TypeSpec:
    """A composite type before resolution."""

    name: str
    fields: list[FieldSpec] = field(default_factory=list)
    parent: str | None = None
    interfaces: list[str] = field(default_factory=list)
    lineno: int = 0


@dataclass
class InterfaceSpec:
    """A marker interface before resolution."""

    name: str
    lineno: int = 0


class SchemaParser:
    """Parser for base type schemas."""

    tokens = SchemaLexer.tokens

    def __init__(self) -> None:
        self.lexer = SchemaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self._specs: list[InterfaceSpec | TypeSpec] = []

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1]
        p[0].append(p[2])

    def p_statement_interface(self, p: yacc.YaccProduction) -> None:
        """statement : INTERFACE IDENTIFIER
                     | INTERFACE IDENTIFIER LBRACE RBRACE"""
        p[0] = InterfaceSpec(name=p[2], lineno=p.lineno(1))

    def p_statement_type(self, p: yacc.YaccProduction) -> None:
        """statement : IDENTIFIER body"""
        p[0] = TypeSpec(name=p[1], fields=p[2], lineno=p.lineno(1))

    def p_statement_type_parent(self, p: yacc.YaccProduction) -> None:
        """statement : IDENTIFIER FROM IDENTIFIER body"""
        p[0] = TypeSpec(name=p[1], fields=p[4], parent=p[3], lineno=p.lineno(1))

    def p_statement_type_interfaces(self, p: yacc.YaccProduction) -> None:
        """statement : IDENTIFIER COLON name_list body"""
        p[0] = TypeSpec(name=p[1], fields=p[4], interfaces=p[3], lineno=p.lineno(1))

    def p_statement_type_parent_interfaces(self, p: yacc.YaccProduction) -> None:
        """statement : IDENTIFIER FROM IDENTIFIER COLON name_list body"""
        p[0] = TypeSpec(
            name=p[1], fields=p[6], parent=p[3], interfaces=p[5], lineno=p.lineno(1)
        )

    def p_body(self, p: yacc.YaccProduction) -> None:
        """body : LBRACE field_list RBRACE
                | LBRACE field_list COMMA RBRACE"""
        p[0] = p[2]

    def p_body_empty(self, p: yacc.YaccProduction) -> None:
        """body : LBRACE RBRACE"""
        p[0] = []

    def p_name_list_single(self, p: yacc.YaccProduction) -> None:
        """name_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_name_list_multiple(self, p: yacc.YaccProduction) -> None:
        """name_list : name_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list COMMA field"""
        p[0] = p[1] + [p[3]]

    def p_field_implicit_kind(self, p: yacc.YaccProduction) -> None:
        """field : field_name"""
        p[0] = FieldSpec(name=p[1], lineno=p.lineno(1))

    def p_field_with_kind(self, p: yacc.YaccProduction) -> None:
        """field : field_name COLON IDENTIFIER"""
        p[0] = FieldSpec(name=p[1], kind=p[3], lineno=p.lineno(2))

    def p_field_name(self, p: yacc.YaccProduction) -> None:
        """field_name : IDENTIFIER
                      | STRING"""
        p[0] = p[1]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse_specs(self, data: str) -> list[InterfaceSpec | TypeSpec]:
        """Parse schema text into unresolved specs."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)
        self.lexer.lexer.lineno = 1
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        return specs if specs is not None else []

    def parse(self, data: str) -> BaseTypeRegistry:
        """Parse a schema and return a populated, validated registry."""
        self._specs = self.parse_specs(data)
        return self._resolve_specs()

    def _resolve_specs(self) -> BaseTypeRegistry:
        """Register every spec, then check references once all names are known.

        Declarations may appear in any order.
        """
        registry = BaseTypeRegistry()
        for spec in self._specs:
            if isinstance(spec, InterfaceSpec):
                registry.add_interface(spec.name)
                continue
            names: list[str] = []
            for fspec in spec.fields:
                if fspec.kind is not None and fspec.kind != FIELD_KIND:
                    raise ValueError(
                        f"Field '{fspec.name}' of type '{spec.name}' has unsupported kind "
                        f"'{fspec.kind}' (line {fspec.lineno}); only '{FIELD_KIND}' is allowed"
                    )
                if fspec.name in names:
                    raise ValueError(
                        f"Field '{fspec.name}' is declared twice in type '{spec.name}'"
                    )
                names.append(fspec.name)
            registry.add_composite(
                spec.name, fields=names, parent=spec.parent, interfaces=spec.interfaces
            )
        registry.validate()
        return registry
