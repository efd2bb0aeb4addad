"""Data model for column subset hierarchies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Protocol, Sequence

from column_subsets.errors import DomainViolationError

# An ordered sequence of case-sensitive field names
ColumnSet = Sequence[str]


class ResolutionMode(Enum):
    """How a batch of column sets is turned into a type hierarchy."""

    UNANCHORED = "unanchored"
    ANCHORED = "anchored"


class TieBreak(Enum):
    """Scan order used when several parents are equally specific."""

    DISCOVERY = "discovery"
    REVERSE_SCAN = "reverse-scan"


def distinct_columns(columns: Iterable[str]) -> tuple[str, ...]:
    """Drop repeated field names, keeping the first occurrence's position."""
    return tuple(dict.fromkeys(columns))


class IdAllocator:
    """Hands out increasing integer ids for one resolution run."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def next(self) -> int:
        """Return the next id and advance."""
        value = self._next
        self._next += 1
        return value

    @property
    def peek(self) -> int:
        """The id the next call to next() will return."""
        return self._next


@dataclass
class SubsetInfo:
    """One node of a resolved hierarchy.

    ``columns`` is the node's full field tuple. ``own_columns`` defaults to
    the full tuple and loses the parent's fields when a parent is assigned.
    """

    id: int
    columns: tuple[str, ...]
    own_columns: tuple[str, ...] | None = None
    parent_id: int | None = None

    def __post_init__(self) -> None:
        self.columns = distinct_columns(self.columns)
        if self.own_columns is None:
            self.own_columns = self.columns
        else:
            self.own_columns = distinct_columns(self.own_columns)

    @property
    def column_set(self) -> frozenset[str]:
        """The full field set as an unordered collection."""
        return frozenset(self.columns)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def set_parent(self, parent: SubsetInfo) -> None:
        """Attach a parent and drop the fields it supplies.

        Raises:
            DomainViolationError: If a parent is already set, or the parent
                is this node itself.
        """
        if self.parent_id is not None:
            raise DomainViolationError(
                f"Subset {self.id} already has parent subset {self.parent_id}"
            )
        if parent.id == self.id:
            raise DomainViolationError(f"Subset {self.id} cannot be its own parent")
        inherited = parent.column_set
        self.parent_id = parent.id
        self.own_columns = tuple(c for c in self.own_columns if c not in inherited)

    def __str__(self) -> str:
        return f"({', '.join(self.own_columns)})"


class SubsetForest:
    """Arena of SubsetInfo nodes; parents are referenced by id."""

    def __init__(self, allocator: IdAllocator | None = None) -> None:
        self._allocator = allocator or IdAllocator()
        self._nodes: dict[int, SubsetInfo] = {}
        self._by_set: dict[frozenset[str], int] = {}

    def add(self, columns: Iterable[str]) -> SubsetInfo:
        """Create a node for the given fields.

        Raises:
            ValueError: If a node with the same field set already exists.
        """
        ordered = distinct_columns(columns)
        key = frozenset(ordered)
        if key in self._by_set:
            raise ValueError(
                f"Subset ({', '.join(ordered)}) is already node {self._by_set[key]}"
            )
        node = SubsetInfo(id=self._allocator.next(), columns=ordered)
        self._nodes[node.id] = node
        self._by_set[key] = node.id
        return node

    def get(self, node_id: int) -> SubsetInfo | None:
        return self._nodes.get(node_id)

    def get_or_raise(self, node_id: int) -> SubsetInfo:
        """Get a node by id, raising if not found."""
        node = self._nodes.get(node_id)
        if node is None:
            raise KeyError(f"Subset {node_id} not found")
        return node

    def find(self, columns: Iterable[str]) -> SubsetInfo | None:
        """Find the node whose full field set equals ``columns``."""
        node_id = self._by_set.get(frozenset(columns))
        return None if node_id is None else self._nodes[node_id]

    def set_parent(self, child_id: int, parent_id: int) -> None:
        """Link ``child_id`` below ``parent_id``."""
        child = self.get_or_raise(child_id)
        parent = self.get_or_raise(parent_id)
        child.set_parent(parent)

    def parent(self, node_id: int) -> SubsetInfo | None:
        node = self.get_or_raise(node_id)
        return None if node.parent_id is None else self._nodes[node.parent_id]

    def ancestors(self, node_id: int) -> list[SubsetInfo]:
        """Return the parent chain of a node, nearest first."""
        chain: list[SubsetInfo] = []
        current = self.parent(node_id)
        while current is not None:
            if len(chain) > len(self._nodes):
                raise DomainViolationError(f"Parent cycle through subset {node_id}")
            chain.append(current)
            current = self.parent(current.id)
        return chain

    def inherited_columns(self, node_id: int) -> tuple[str, ...]:
        """Return the fields a node receives from its ancestors, root first."""
        inherited: list[str] = []
        for ancestor in reversed(self.ancestors(node_id)):
            inherited.extend(ancestor.own_columns)
        return tuple(inherited)

    def roots(self) -> list[SubsetInfo]:
        return [n for n in self._nodes.values() if n.is_root]

    def children(self, node_id: int) -> list[SubsetInfo]:
        return [n for n in self._nodes.values() if n.parent_id == node_id]

    def __iter__(self) -> Iterator[SubsetInfo]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes


@dataclass(frozen=True)
class CapabilityMarker:
    """Nominal tag carried by root types, like a marker interface."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BaseTypeDescriptor:
    """A pre-existing candidate base type offered by a registry.

    ``fields`` holds every field the type declares, own and inherited,
    root-most first. ``markers`` holds every capability marker the type
    satisfies, directly or through its ancestors.
    """

    name: str
    fields: tuple[str, ...] = ()
    markers: frozenset[str] = frozenset()

    def full_fields(self) -> set[str]:
        return set(self.fields)

    def satisfies(self, marker: CapabilityMarker | str | None) -> bool:
        """Check the marker; a missing marker is satisfied by every type."""
        if marker is None:
            return True
        return str(marker) in self.markers


@dataclass
class TypeDescriptor:
    """A type for a code emitter to materialize.

    ``parent`` is the name of the parent type, the capability marker for a
    root that carries one, or None for a bare root.
    """

    name: str
    parent: str | CapabilityMarker | None = None
    own_fields: list[str] = field(default_factory=list)
    columns: tuple[str, ...] = ()

    @property
    def is_root(self) -> bool:
        """True unless the parent is another concrete type."""
        return not isinstance(self.parent, str)

    @property
    def parent_name(self) -> str | None:
        return None if self.parent is None else str(self.parent)

    @property
    def marker(self) -> CapabilityMarker | None:
        return self.parent if isinstance(self.parent, CapabilityMarker) else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "parent": self.parent_name,
            "parent_is_marker": self.marker is not None,
            "own_fields": list(self.own_fields),
            "columns": list(self.columns),
        }


@dataclass
class Resolution:
    """Result of resolving one batch of column sets.

    ``column_set_types`` maps each input column set, by position, to the
    name of the descriptor that represents it (None when the column set has
    no type, e.g. because it was empty).
    """

    mode: ResolutionMode
    descriptors: list[TypeDescriptor] = field(default_factory=list)
    column_set_types: list[str | None] = field(default_factory=list)

    def get(self, name: str) -> TypeDescriptor | None:
        for d in self.descriptors:
            if d.name == name:
                return d
        return None

    def get_or_raise(self, name: str) -> TypeDescriptor:
        descriptor = self.get(name)
        if descriptor is None:
            raise KeyError(f"Type '{name}' not found")
        return descriptor

    def for_column_set(self, index: int) -> TypeDescriptor | None:
        """Return the descriptor representing input column set ``index``."""
        name = self.column_set_types[index]
        return None if name is None else self.get(name)

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)


@dataclass
class AnchoredMatch:
    """One column set paired with the base it was anchored to."""

    id: int
    columns: tuple[str, ...]
    base: BaseTypeDescriptor | CapabilityMarker | None = None
    index: int = 0

    @property
    def own_columns(self) -> tuple[str, ...]:
        """Fields the base type does not already declare."""
        if not isinstance(self.base, BaseTypeDescriptor):
            return self.columns
        inherited = self.base.full_fields()
        return tuple(c for c in self.columns if c not in inherited)


class CandidateSource(Protocol):
    """Anything that can list candidate base types for anchored resolution."""

    def enumerate_candidates(
        self, marker: CapabilityMarker | str | None = None
    ) -> list[BaseTypeDescriptor]: ...

    def __contains__(self, name: str) -> bool: ...
