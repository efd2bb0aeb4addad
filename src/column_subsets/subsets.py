"""Discovery of field subsets that recur across column sets.

Enumeration is exponential: a column set with ``k`` distinct fields has
``2**k`` combinations, so this is only practical for narrow column sets.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

from column_subsets.errors import InvalidInputError
from column_subsets.types import ColumnSet, distinct_columns

logger = logging.getLogger(__name__)

DEFAULT_MIN_SUBSET_SIZE = 2


def validate_column_sets(column_sets: Sequence[ColumnSet] | None) -> list[tuple[str, ...]]:
    """Check the input collection and normalize each column set.

    Returns one tuple of distinct field names per column set, in input order.

    Raises:
        InvalidInputError: If the collection is None, or a column set is not
            a sequence of strings.
    """
    if column_sets is None:
        raise InvalidInputError("Column sets must not be None")
    if isinstance(column_sets, (str, bytes)):
        raise InvalidInputError("Column sets must be a sequence of sequences, not a string")
    normalized: list[tuple[str, ...]] = []
    for index, columns in enumerate(column_sets):
        if columns is None or isinstance(columns, (str, bytes)):
            raise InvalidInputError(f"Column set {index} must be a sequence of field names")
        for name in columns:
            if not isinstance(name, str):
                raise InvalidInputError(
                    f"Column set {index} contains a non-string field name: {name!r}"
                )
        normalized.append(distinct_columns(columns))
    return normalized


def enumerate_combinations(
    columns: ColumnSet, min_size: int = DEFAULT_MIN_SUBSET_SIZE
) -> Iterator[tuple[str, ...]]:
    """Yield every combination of the distinct fields with at least ``min_size`` members.

    Combination ``i`` holds field ``j`` when bit ``j`` of ``i`` is set, so the
    output order is fixed for a given field order. Each combination keeps the
    fields in column-set order.
    """
    fields = distinct_columns(columns)
    for mask in range(1 << len(fields)):
        combo = tuple(f for bit, f in enumerate(fields) if mask & (1 << bit))
        if len(combo) >= min_size:
            yield combo


def find_recurring_subsets(
    column_sets: Sequence[ColumnSet] | None,
    min_size: int = DEFAULT_MIN_SUBSET_SIZE,
    warn_column_count: int | None = None,
) -> list[tuple[str, ...]]:
    """Find the distinct subsets shared by at least two column sets.

    Each column set contributes each of its subsets once. Subsets are compared
    as unordered collections. The result is ordered by size, and subsets of
    the same size keep the order in which they were first seen.
    """
    normalized = validate_column_sets(column_sets)

    # frozenset -> (first seen ordering, number of column sets containing it)
    first_seen: dict[frozenset[str], tuple[str, ...]] = {}
    occurrences: dict[frozenset[str], int] = {}
    total = 0
    for index, columns in enumerate(normalized):
        if warn_column_count is not None and len(columns) > warn_column_count:
            logger.warning(
                "Column set %d has %d fields; enumerating %d combinations",
                index, len(columns), 1 << len(columns),
            )
        for combo in enumerate_combinations(columns, min_size):
            key = frozenset(combo)
            first_seen.setdefault(key, combo)
            occurrences[key] = occurrences.get(key, 0) + 1
            total += 1

    recurring = [combo for key, combo in first_seen.items() if occurrences[key] > 1]
    recurring.sort(key=len)
    logger.debug(
        "Enumerated %d combinations over %d column sets; %d distinct, %d recurring",
        total, len(normalized), len(first_seen), len(recurring),
    )
    return recurring
