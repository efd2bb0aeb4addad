"""Column Subsets - derive minimal-redundancy type hierarchies from column sets."""

from column_subsets.config import ResolverConfig
from column_subsets.emitters import DataclassEmitter, SchemaEmitter
from column_subsets.errors import (
    ColumnSubsetsError,
    DomainViolationError,
    InvalidInputError,
    UnresolvedAnchorError,
)
from column_subsets.matcher import BaseTypeMatcher
from column_subsets.parsing import SchemaParser, load_column_sets
from column_subsets.registry import BaseTypeRegistry
from column_subsets.resolver import HierarchyResolver, resolve
from column_subsets.subsets import enumerate_combinations, find_recurring_subsets
from column_subsets.synthesizer import TypeSynthesizer
from column_subsets.types import (
    BaseTypeDescriptor,
    CapabilityMarker,
    IdAllocator,
    Resolution,
    ResolutionMode,
    SubsetForest,
    SubsetInfo,
    TieBreak,
    TypeDescriptor,
)

__all__ = [
    # Main API
    "resolve",
    "HierarchyResolver",
    "ResolverConfig",
    "Resolution",
    "ResolutionMode",
    "TieBreak",
    # Components
    "enumerate_combinations",
    "find_recurring_subsets",
    "BaseTypeMatcher",
    "TypeSynthesizer",
    # Model
    "SubsetInfo",
    "SubsetForest",
    "IdAllocator",
    "CapabilityMarker",
    "BaseTypeDescriptor",
    "TypeDescriptor",
    # Registry and emitters
    "BaseTypeRegistry",
    "SchemaParser",
    "load_column_sets",
    "SchemaEmitter",
    "DataclassEmitter",
    # Errors
    "ColumnSubsetsError",
    "InvalidInputError",
    "DomainViolationError",
    "UnresolvedAnchorError",
]

__version__ = "0.1.0"
