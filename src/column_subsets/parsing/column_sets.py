"""Readers for column-set input files.

Two formats are accepted:

- JSON (``.json``): a list of lists of field names.
- Text (anything else): one column set per line, fields separated by
  commas. Blank lines and lines starting with ``#`` are skipped.
"""

from __future__ import annotations

import json
from pathlib import Path

from column_subsets.errors import InvalidInputError


def parse_column_sets_json(data: str) -> list[list[str]]:
    """Parse a JSON array of arrays of strings."""
    try:
        value = json.loads(data)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON: {e}") from e
    if not isinstance(value, list):
        raise InvalidInputError("Expected a JSON array of column sets")
    column_sets: list[list[str]] = []
    for index, item in enumerate(value):
        if not isinstance(item, list) or not all(isinstance(c, str) for c in item):
            raise InvalidInputError(f"Column set {index} must be an array of strings")
        column_sets.append(item)
    return column_sets


def parse_column_sets_text(data: str) -> list[list[str]]:
    """Parse comma separated column sets, one per line."""
    column_sets: list[list[str]] = []
    for line in data.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        column_sets.append([c.strip() for c in stripped.split(",") if c.strip()])
    return column_sets


def load_column_sets(path: Path | str) -> list[list[str]]:
    """Read column sets from a file, choosing the format by extension."""
    path = Path(path)
    data = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return parse_column_sets_json(data)
    return parse_column_sets_text(data)
