"""Hierarchy resolution in unanchored and anchored mode."""

from __future__ import annotations

import logging
from typing import Sequence

from column_subsets.config import ResolverConfig
from column_subsets.errors import DomainViolationError, UnresolvedAnchorError
from column_subsets.matcher import BaseTypeMatcher
from column_subsets.subsets import find_recurring_subsets, validate_column_sets
from column_subsets.synthesizer import TypeSynthesizer, check_descriptors
from column_subsets.types import (
    AnchoredMatch,
    CandidateSource,
    ColumnSet,
    IdAllocator,
    Resolution,
    ResolutionMode,
    SubsetForest,
    SubsetInfo,
    TieBreak,
)

logger = logging.getLogger(__name__)


class HierarchyResolver:
    """Builds single-parent type hierarchies from column sets.

    Each call works on its own forest and id allocator, so one resolver can
    be shared between callers.
    """

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self.config = config or ResolverConfig()
        self.synthesizer = TypeSynthesizer(self.config)

    # ---- Unanchored mode ----

    def build_forest(
        self,
        column_sets: Sequence[ColumnSet] | None,
        allocator: IdAllocator | None = None,
    ) -> tuple[SubsetForest, list[int | None]]:
        """Discover recurring subsets and chain them into a forest.

        Returns the forest, in ascending field-count order, and the id of the
        node representing each input column set (None when the column set is
        not in the forest).
        """
        normalized = validate_column_sets(column_sets)
        recurring = find_recurring_subsets(
            normalized,
            min_size=self.config.min_subset_size,
            warn_column_count=self.config.warn_column_count,
        )

        entries = list(recurring)
        seen = {frozenset(s) for s in recurring}
        if self.config.include_column_sets:
            for index, columns in enumerate(normalized):
                if not columns:
                    logger.warning("Skipping empty column set %d", index)
                    continue
                key = frozenset(columns)
                if key not in seen:
                    seen.add(key)
                    entries.append(columns)
        # Stable: same-size entries keep discovery order
        entries.sort(key=len)

        forest = SubsetForest(allocator or IdAllocator(self.config.first_id))
        for columns in entries:
            forest.add(columns)
        self._assign_parents(forest)

        column_set_nodes: list[int | None] = []
        for columns in normalized:
            node = forest.find(columns) if columns else None
            column_set_nodes.append(None if node is None else node.id)
        return forest, column_set_nodes

    def _parent_candidates(self, smaller: list[SubsetInfo]) -> list[SubsetInfo]:
        """Order the nodes preceding the current one for the parent scan."""
        if self.config.tie_break is TieBreak.REVERSE_SCAN:
            return list(reversed(smaller))
        # Largest first; equal sizes keep ascending (discovery) order
        return sorted(smaller, key=lambda n: len(n.columns), reverse=True)

    def _assign_parents(self, forest: SubsetForest) -> None:
        """Give every node the first candidate its fields contain, largest node first."""
        nodes = list(forest)
        for position in range(len(nodes) - 1, 0, -1):
            node = nodes[position]
            fields = node.column_set
            for candidate in self._parent_candidates(nodes[:position]):
                if candidate.column_set < fields:
                    forest.set_parent(node.id, candidate.id)
                    logger.debug("Subset %d %s -> parent %d", node.id, node, candidate.id)
                    break

    def resolve_unanchored(self, column_sets: Sequence[ColumnSet] | None) -> Resolution:
        """Resolve column sets into a fresh multi-level hierarchy."""
        forest, column_set_nodes = self.build_forest(column_sets)
        descriptors = self.synthesizer.synthesize_forest(forest)
        check_descriptors(descriptors)
        return Resolution(
            mode=ResolutionMode.UNANCHORED,
            descriptors=descriptors,
            column_set_types=[
                None if node_id is None else self.synthesizer.type_name(node_id)
                for node_id in column_set_nodes
            ],
        )

    # ---- Anchored mode ----

    def match_column_sets(
        self,
        column_sets: Sequence[ColumnSet] | None,
        registry: CandidateSource,
        allocator: IdAllocator | None = None,
    ) -> list[AnchoredMatch]:
        """Pair every non-empty column set with its closest registry type.

        Empty column sets are skipped and consume no id.

        Raises:
            UnresolvedAnchorError: If ``strict_anchor`` is set, no candidate
                matches, and no marker is configured.
            DomainViolationError: If a generated name is already taken by a
                registry type or the marker.
        """
        normalized = validate_column_sets(column_sets)
        marker = self.config.capability_marker
        matcher = BaseTypeMatcher(
            registry.enumerate_candidates(marker), marker, self.config.min_base_fields
        )
        logger.debug("Anchoring against %d candidate base types", len(matcher.candidates))

        allocator = allocator or IdAllocator(self.config.anchored_first_id)
        matches: list[AnchoredMatch] = []
        for index, columns in enumerate(normalized):
            if not columns:
                logger.warning("Skipping empty column set %d", index)
                continue
            base = matcher.match(columns)
            if base is None and self.config.strict_anchor:
                raise UnresolvedAnchorError(
                    f"No base type matches column set {index} ({', '.join(columns)}) "
                    "and no capability marker is configured"
                )
            node_id = allocator.next()
            name = self.synthesizer.type_name(node_id)
            if name in registry or (marker is not None and name == marker.name):
                raise DomainViolationError(
                    f"Generated type name '{name}' is already an existing type; "
                    "choose another type_prefix or anchored_first_id"
                )
            matches.append(AnchoredMatch(id=node_id, columns=columns, base=base, index=index))
        return matches

    def resolve_anchored(
        self, column_sets: Sequence[ColumnSet] | None, registry: CandidateSource
    ) -> Resolution:
        """Resolve each column set against existing base types."""
        matches = self.match_column_sets(column_sets, registry)
        descriptors = self.synthesizer.synthesize_matches(matches)
        check_descriptors(descriptors)
        column_set_types: list[str | None] = [None] * len(column_sets or ())
        for match, descriptor in zip(matches, descriptors):
            column_set_types[match.index] = descriptor.name
        return Resolution(
            mode=ResolutionMode.ANCHORED,
            descriptors=descriptors,
            column_set_types=column_set_types,
        )


def resolve(
    column_sets: Sequence[ColumnSet] | None,
    registry: CandidateSource | None = None,
    config: ResolverConfig | None = None,
) -> Resolution:
    """Resolve column sets, anchored when a registry is given."""
    resolver = HierarchyResolver(config)
    if registry is None:
        return resolver.resolve_unanchored(column_sets)
    return resolver.resolve_anchored(column_sets, registry)
