"""In-memory registry of existing base types for anchored resolution."""

from __future__ import annotations

from dataclasses import dataclass, field

from column_subsets.types import BaseTypeDescriptor, CapabilityMarker, distinct_columns


@dataclass
class TypeDefinition:
    """Base class for registered definitions."""

    name: str

    @property
    def is_interface(self) -> bool:
        return False


@dataclass
class InterfaceDefinition(TypeDefinition):
    """A capability marker. Declares no fields and cannot be instantiated."""

    @property
    def is_interface(self) -> bool:
        return True


@dataclass
class CompositeDefinition(TypeDefinition):
    """A concrete record type with its own fields and an optional parent."""

    fields: list[str] = field(default_factory=list)
    parent: str | None = None
    interfaces: list[str] = field(default_factory=list)


class BaseTypeRegistry:
    """Registry of composite types and marker interfaces.

    Composites inherit fields and interfaces from their single parent.
    """

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition."""
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        self._types[type_def.name] = type_def

    def add_interface(self, name: str) -> InterfaceDefinition:
        iface = InterfaceDefinition(name=name)
        self.register(iface)
        return iface

    def add_composite(
        self,
        name: str,
        fields: list[str] | tuple[str, ...] = (),
        parent: str | None = None,
        interfaces: list[str] | tuple[str, ...] = (),
    ) -> CompositeDefinition:
        composite = CompositeDefinition(
            name=name, fields=list(fields), parent=parent, interfaces=list(interfaces)
        )
        self.register(composite)
        return composite

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def get_composite(self, name: str) -> CompositeDefinition:
        type_def = self.get_or_raise(name)
        if not isinstance(type_def, CompositeDefinition):
            raise TypeError(f"Type '{name}' exists but is not a composite type")
        return type_def

    def validate(self) -> None:
        """Check parents, interfaces and inheritance cycles.

        Raises:
            ValueError: On an unknown parent or interface, an interface used
                as a parent, a composite used as an interface, or a cycle.
        """
        for name, td in self._types.items():
            if not isinstance(td, CompositeDefinition):
                continue
            if td.parent is not None:
                parent = self._types.get(td.parent)
                if parent is None:
                    raise ValueError(f"Type '{name}' extends unknown type '{td.parent}'")
                if parent.is_interface:
                    raise ValueError(
                        f"Type '{name}' cannot extend interface '{td.parent}'"
                    )
            for iface_name in td.interfaces:
                iface = self._types.get(iface_name)
                if iface is None:
                    raise ValueError(f"Type '{name}' implements unknown interface '{iface_name}'")
                if not iface.is_interface:
                    raise ValueError(f"Type '{name}' lists '{iface_name}' which is not an interface")
            self.ancestors(name)

    def ancestors(self, name: str) -> list[CompositeDefinition]:
        """Return the parent chain of a composite, nearest first."""
        chain: list[CompositeDefinition] = []
        visited = {name}
        current = self.get_composite(name)
        while current.parent is not None:
            if current.parent in visited:
                raise ValueError(f"Inheritance cycle through type '{current.parent}'")
            visited.add(current.parent)
            current = self.get_composite(current.parent)
            chain.append(current)
        return chain

    def full_fields(self, name: str) -> tuple[str, ...]:
        """All fields of a composite, inherited ones first."""
        composite = self.get_composite(name)
        collected: list[str] = []
        for ancestor in reversed(self.ancestors(name)):
            collected.extend(ancestor.fields)
        collected.extend(composite.fields)
        return distinct_columns(collected)

    def all_interfaces(self, name: str) -> list[str]:
        """Interfaces a composite implements, directly or through its ancestors."""
        composite = self.get_composite(name)
        result: list[str] = []
        for td in [composite, *self.ancestors(name)]:
            for iface in td.interfaces:
                if iface not in result:
                    result.append(iface)
        return result

    def find_implementing_types(self, interface_name: str) -> list[str]:
        """Names of all composites implementing the interface, in registration order."""
        return [
            name
            for name, td in self._types.items()
            if isinstance(td, CompositeDefinition) and interface_name in self.all_interfaces(name)
        ]

    def describe(self, name: str) -> BaseTypeDescriptor:
        """Flatten a composite into a BaseTypeDescriptor."""
        return BaseTypeDescriptor(
            name=name,
            fields=self.full_fields(name),
            markers=frozenset(self.all_interfaces(name)),
        )

    def enumerate_candidates(
        self, marker: CapabilityMarker | str | None = None
    ) -> list[BaseTypeDescriptor]:
        """Describe every composite, keeping those that satisfy ``marker``."""
        candidates = [
            self.describe(name)
            for name, td in self._types.items()
            if isinstance(td, CompositeDefinition)
        ]
        return [c for c in candidates if c.satisfies(marker)]

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)
