"""Turn resolved hierarchies into ordered type descriptors."""

from __future__ import annotations

import logging
from typing import Iterable

from column_subsets.config import ResolverConfig
from column_subsets.errors import DomainViolationError
from column_subsets.types import (
    AnchoredMatch,
    BaseTypeDescriptor,
    CapabilityMarker,
    SubsetForest,
    TypeDescriptor,
)

logger = logging.getLogger(__name__)


class TypeSynthesizer:
    """Produces descriptors with every parent listed before its children."""

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self.config = config or ResolverConfig()

    def type_name(self, node_id: int) -> str:
        return f"{self.config.type_prefix}{node_id}"

    def synthesize_forest(self, forest: SubsetForest) -> list[TypeDescriptor]:
        """Build descriptors for an unanchored forest, in forest order.

        Roots carry the configured capability marker. Own fields were already
        pruned when the parents were assigned.

        Raises:
            DomainViolationError: If a node comes before its parent.
        """
        marker = self.config.capability_marker
        emitted: set[int] = set()
        descriptors: list[TypeDescriptor] = []
        for node in forest:
            parent: str | CapabilityMarker | None
            if node.parent_id is None:
                parent = marker
            else:
                if node.parent_id not in emitted:
                    raise DomainViolationError(
                        f"Subset {node.id} precedes its parent subset {node.parent_id}"
                    )
                parent = self.type_name(node.parent_id)
            descriptors.append(
                TypeDescriptor(
                    name=self.type_name(node.id),
                    parent=parent,
                    own_fields=list(node.own_columns),
                    columns=node.columns,
                )
            )
            emitted.add(node.id)
        logger.debug("Synthesized %d types from forest", len(descriptors))
        return descriptors

    def synthesize_matches(self, matches: Iterable[AnchoredMatch]) -> list[TypeDescriptor]:
        """Build one descriptor per anchored column set.

        Parents are registry types or the marker, none of which are emitted
        here, so any order is already dependency order.
        """
        descriptors: list[TypeDescriptor] = []
        for match in matches:
            parent: str | CapabilityMarker | None
            if isinstance(match.base, BaseTypeDescriptor):
                parent = match.base.name
            else:
                parent = match.base
            descriptors.append(
                TypeDescriptor(
                    name=self.type_name(match.id),
                    parent=parent,
                    own_fields=list(match.own_columns),
                    columns=match.columns,
                )
            )
        logger.debug("Synthesized %d anchored types", len(descriptors))
        return descriptors


def check_descriptors(descriptors: Iterable[TypeDescriptor]) -> None:
    """Verify ordering and field ownership along every emitted chain.

    Parents that are not in ``descriptors`` (registry types, markers) are
    treated as external and skipped.

    Raises:
        DomainViolationError: If a parent follows its child, a type is listed
            twice, or a field is declared by both a type and an ancestor.
    """
    seen: dict[str, TypeDescriptor] = {}
    pending = list(descriptors)
    names = {d.name for d in pending}
    for descriptor in pending:
        if descriptor.name in seen:
            raise DomainViolationError(f"Type '{descriptor.name}' is listed twice")
        parent = descriptor.parent
        if isinstance(parent, str) and parent in names:
            if parent not in seen:
                raise DomainViolationError(
                    f"Type '{descriptor.name}' precedes its parent '{parent}'"
                )
            own = set(descriptor.own_fields)
            ancestor: TypeDescriptor | None = seen[parent]
            while ancestor is not None:
                overlap = own & set(ancestor.own_fields)
                if overlap:
                    raise DomainViolationError(
                        f"Type '{descriptor.name}' redeclares {sorted(overlap)} "
                        f"from '{ancestor.name}'"
                    )
                next_parent = ancestor.parent
                ancestor = seen.get(next_parent) if isinstance(next_parent, str) else None
        seen[descriptor.name] = descriptor
