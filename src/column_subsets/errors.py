"""Error types raised by column subset resolution."""

from __future__ import annotations


class ColumnSubsetsError(Exception):
    """Base class for all resolution errors."""


class InvalidInputError(ColumnSubsetsError, ValueError):
    """The column-set collection is missing or malformed."""


class DomainViolationError(ColumnSubsetsError, RuntimeError):
    """A hierarchy invariant was broken.

    Raised when a node receives a second parent or when a parent would be
    emitted after one of its children. The resolver never does either, so
    seeing this error means there is a bug in the resolution code.
    """


class UnresolvedAnchorError(ColumnSubsetsError, LookupError):
    """No base type matched a column set and no marker was available."""
