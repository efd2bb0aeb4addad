"""Backends that materialize type descriptors.

The resolver only produces TypeDescriptor values; an emitter turns them into
something usable. SchemaEmitter writes schema DSL text that SchemaParser can
read back, and DataclassEmitter builds Python dataclasses at runtime.
"""

from __future__ import annotations

import dataclasses
import keyword
import logging
import re
from typing import Any, Protocol, Sequence

from column_subsets.parsing.schema_lexer import SchemaLexer
from column_subsets.registry import BaseTypeRegistry
from column_subsets.types import CapabilityMarker, TypeDescriptor

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class Emitter(Protocol):
    """Anything that consumes an ordered descriptor sequence."""

    def emit(self, descriptors: Sequence[TypeDescriptor]) -> Any: ...


def _escape_string(s: str) -> str:
    """Escape a field name for a double-quoted schema literal."""
    return s.replace("\\", "\\\\").replace('"', '\\"')


def format_field_name(name: str) -> str:
    """Render a field name, quoting it when it is not a plain identifier."""
    if _IDENTIFIER_RE.match(name) and name not in SchemaLexer.reserved:
        return name
    return f'"{_escape_string(name)}"'


def _markers_in(descriptors: Sequence[TypeDescriptor]) -> list[CapabilityMarker]:
    markers: list[CapabilityMarker] = []
    for d in descriptors:
        marker = d.marker
        if marker is not None and marker not in markers:
            markers.append(marker)
    return markers


class SchemaEmitter:
    """Renders descriptors as schema DSL text."""

    def __init__(self, include_interfaces: bool = True, header: str | None = None) -> None:
        self.include_interfaces = include_interfaces
        self.header = header

    def format_descriptor(self, descriptor: TypeDescriptor) -> str:
        line = descriptor.name
        if isinstance(descriptor.parent, str):
            line += f" from {descriptor.parent}"
        elif descriptor.marker is not None:
            line += f" : {descriptor.marker.name}"
        if descriptor.own_fields:
            body = ", ".join(format_field_name(f) for f in descriptor.own_fields)
            return f"{line} {{ {body} }}"
        return f"{line} {{ }}"

    def emit(self, descriptors: Sequence[TypeDescriptor]) -> str:
        lines: list[str] = []
        if self.header:
            lines.extend(f"# {h}" for h in self.header.splitlines())
        if self.include_interfaces:
            lines.extend(f"interface {m.name}" for m in _markers_in(descriptors))
        if lines:
            lines.append("")
        lines.extend(self.format_descriptor(d) for d in descriptors)
        return "\n".join(lines) + "\n"


class DataclassEmitter:
    """Builds a Python class per descriptor, mirroring the hierarchy.

    Every field becomes a ``str`` attribute defaulting to ``""``. Capability
    markers become empty base classes. Parents that are not among the
    descriptors are looked up in ``bases`` first, then built from
    ``registry`` when one is given.
    """

    def __init__(
        self,
        bases: dict[str, type] | None = None,
        registry: BaseTypeRegistry | None = None,
        module: str = "column_subsets.generated",
    ) -> None:
        self.module = module
        self.registry = registry
        self.classes: dict[str, type] = dict(bases or {})

    def marker_class(self, marker: CapabilityMarker) -> type:
        """Get or create the empty class standing in for a marker."""
        cls = self.classes.get(marker.name)
        if cls is None:
            cls = type(marker.name, (), {"__module__": self.module})
            self.classes[marker.name] = cls
        return cls

    def _check_field_name(self, type_name: str, field_name: str) -> None:
        if not field_name.isidentifier() or keyword.iskeyword(field_name):
            raise ValueError(
                f"Field '{field_name}' of type '{type_name}' is not a valid Python identifier"
            )

    def _build(self, name: str, own_fields: Sequence[str], bases: tuple[type, ...]) -> type:
        for f in own_fields:
            self._check_field_name(name, f)
        cls = dataclasses.make_dataclass(
            name,
            [(f, str, dataclasses.field(default="")) for f in own_fields],
            bases=bases,
        )
        cls.__module__ = self.module
        self.classes[name] = cls
        return cls

    def _resolve_parent(self, name: str) -> type:
        cls = self.classes.get(name)
        if cls is not None:
            return cls
        if self.registry is None or name not in self.registry:
            raise KeyError(f"Parent type '{name}' has not been emitted")
        composite = self.registry.get_composite(name)
        bases: list[type] = []
        if composite.parent is not None:
            bases.append(self._resolve_parent(composite.parent))
        inherited_ifaces = set()
        if composite.parent is not None:
            inherited_ifaces = set(self.registry.all_interfaces(composite.parent))
        for iface in composite.interfaces:
            if iface not in inherited_ifaces:
                bases.append(self.marker_class(CapabilityMarker(iface)))
        logger.debug("Building registry base type %s", name)
        return self._build(name, composite.fields, tuple(bases))

    def emit(self, descriptors: Sequence[TypeDescriptor]) -> dict[str, type]:
        """Build the classes and return them by name, in descriptor order."""
        built: dict[str, type] = {}
        for d in descriptors:
            if d.name in self.classes:
                raise ValueError(f"Type '{d.name}' is already defined")
            bases: tuple[type, ...] = ()
            if isinstance(d.parent, str):
                bases = (self._resolve_parent(d.parent),)
            elif d.marker is not None:
                bases = (self.marker_class(d.marker),)
            built[d.name] = self._build(d.name, d.own_fields, bases)
        return built
