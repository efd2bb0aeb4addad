"""Parsing module for base type schemas and column-set files."""

from column_subsets.parsing.column_sets import (
    load_column_sets,
    parse_column_sets_json,
    parse_column_sets_text,
)
from column_subsets.parsing.schema_parser import SchemaParser

__all__ = [
    "SchemaParser",
    "load_column_sets",
    "parse_column_sets_json",
    "parse_column_sets_text",
]
