"""Closest-base lookup for anchored resolution."""

from __future__ import annotations

import logging
from typing import Iterable

from column_subsets.types import BaseTypeDescriptor, CapabilityMarker, ColumnSet

logger = logging.getLogger(__name__)


class BaseTypeMatcher:
    """Finds the most specific registry type a column set can derive from.

    Candidates are ranked by full field count, largest first; candidates with
    the same count keep the order they were given in. The first candidate
    whose fields all appear in the column set wins, so the match shares as
    many fields as possible with the column set.

    Candidates with fewer than ``min_fields`` fields are ignored.
    """

    def __init__(
        self,
        candidates: Iterable[BaseTypeDescriptor],
        marker: CapabilityMarker | None = None,
        min_fields: int = 0,
    ) -> None:
        self.marker = marker
        self.candidates: list[BaseTypeDescriptor] = sorted(
            (c for c in candidates if len(c.full_fields()) >= min_fields),
            key=lambda c: len(c.full_fields()),
            reverse=True,
        )

    def match(self, columns: ColumnSet) -> BaseTypeDescriptor | CapabilityMarker | None:
        """Return the closest base type, else the marker, else None."""
        available = set(columns)
        for candidate in self.candidates:
            if candidate.full_fields() <= available:
                logger.debug("Matched (%s) to %s", ", ".join(columns), candidate.name)
                return candidate
        logger.debug(
            "No base type for (%s); falling back to %s",
            ", ".join(columns), self.marker if self.marker is not None else "no parent",
        )
        return self.marker
