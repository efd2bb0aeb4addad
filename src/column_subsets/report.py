"""Plain-text reports of resolved hierarchies."""

from __future__ import annotations

from typing import Iterable, Sequence

from column_subsets.registry import BaseTypeRegistry
from column_subsets.types import TypeDescriptor


def _fields(fields: Iterable[str]) -> str:
    return f"({', '.join(fields)})"


def format_subsets(subsets: Iterable[Sequence[str]]) -> str:
    """One parenthesized subset per line."""
    return "\n".join(_fields(s) for s in subsets)


def format_chain(
    descriptor: TypeDescriptor,
    by_name: dict[str, TypeDescriptor],
    registry: BaseTypeRegistry | None = None,
) -> str:
    """Render a type's own fields followed by each ancestor's own fields.

    Ancestors outside ``by_name`` are looked up in ``registry``; registry
    types are shown with their full field list and end the chain.
    """
    parts = [f"{descriptor.name} {_fields(descriptor.own_fields)}"]
    parent = descriptor.parent
    while isinstance(parent, str):
        current = by_name.get(parent)
        if current is not None:
            parts.append(f"{current.name} {_fields(current.own_fields)}")
            parent = current.parent
            continue
        if registry is not None and parent in registry:
            parts.append(f"{parent} {_fields(registry.full_fields(parent))}")
        else:
            parts.append(parent)
        parent = None
    if parent is not None:
        parts.append(str(parent))
    return " -> ".join(parts)


def format_hierarchy(
    descriptors: Sequence[TypeDescriptor], registry: BaseTypeRegistry | None = None
) -> str:
    """One line per type, in emission order."""
    by_name = {d.name: d for d in descriptors}
    return "\n".join(format_chain(d, by_name, registry) for d in descriptors)


def format_registry(registry: BaseTypeRegistry) -> str:
    """One line per existing composite: full fields, then its interfaces."""
    lines: list[str] = []
    for base in registry.enumerate_candidates():
        line = f"{base.name} {_fields(base.fields)}"
        interfaces = registry.all_interfaces(base.name)
        if interfaces:
            line += f" : {', '.join(interfaces)}"
        lines.append(line)
    return "\n".join(lines)


def format_resolution_report(
    column_sets: Sequence[Sequence[str]],
    descriptors: Sequence[TypeDescriptor],
    column_set_types: Sequence[str | None],
    registry: BaseTypeRegistry | None = None,
    recurring: Iterable[Sequence[str]] | None = None,
) -> str:
    """Full report of inputs, recurring subsets, registry types and the hierarchy."""
    lines = ["Input column sets:", "-" * 43]
    for index, columns in enumerate(column_sets):
        type_name = column_set_types[index] if index < len(column_set_types) else None
        lines.append(f"{', '.join(columns)} => {type_name or '-'}")
    if recurring is not None:
        lines.extend(["", "Distinct subsets of recurring column names:", "-" * 43])
        text = format_subsets(recurring)
        if text:
            lines.append(text)
    if registry is not None:
        lines.extend(["", "Existing base types:", "-" * 43])
        text = format_registry(registry)
        if text:
            lines.append(text)
    lines.extend(["", "Type hierarchy:", "-" * 43])
    text = format_hierarchy(descriptors, registry)
    if text:
        lines.append(text)
    return "\n".join(lines) + "\n"
