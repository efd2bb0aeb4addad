"""Tests for hierarchy resolution."""

import pytest

from column_subsets.config import ResolverConfig
from column_subsets.errors import DomainViolationError, InvalidInputError, UnresolvedAnchorError
from column_subsets.registry import BaseTypeRegistry
from column_subsets.resolver import HierarchyResolver, resolve
from column_subsets.synthesizer import check_descriptors
from column_subsets.types import CapabilityMarker, ResolutionMode, TieBreak, TypeDescriptor

SCENARIO = [
    ["Id", "DateCreated", "DateDeleted"],
    ["Id", "DateCreated", "Name"],
    ["Id", "Name"],
]

SAMPLE = [
    ["Id", "DateCreated", "DateDeleted"],
    ["Id", "DateCreated", "Name"],
    ["Id", "DateCreated", "DateDeleted", "Name", "Gender"],
    ["Id", "DateCreated", "DateDeleted", "Name", "State"],
    ["Id", "Position", "Gender"],
    ["Id", "OrderID", "OrderDate"],
    ["Id", "Name"],
]


@pytest.fixture
def registry():
    """Registry with Base1{Id, DateCreated} extending Base2{Id}."""
    reg = BaseTypeRegistry()
    reg.add_interface("IColumnSubset")
    reg.add_composite("Base2", ["Id"], interfaces=["IColumnSubset"])
    reg.add_composite("Base1", ["DateCreated"], parent="Base2")
    return reg


def _by_columns(resolution):
    return {frozenset(d.columns): d for d in resolution.descriptors}


class TestUnanchoredResolution:
    """Tests for recurrence-based hierarchy building."""

    def test_scenario(self):
        """Test the three column set scenario."""
        resolution = HierarchyResolver().resolve_unanchored(SCENARIO)
        types = _by_columns(resolution)

        id_created = types[frozenset({"Id", "DateCreated"})]
        id_name = types[frozenset({"Id", "Name"})]
        assert id_created.is_root
        assert id_name.is_root
        assert id_created.own_fields == ["Id", "DateCreated"]
        assert id_created.marker == CapabilityMarker("IColumnSubset")

        deleted = types[frozenset({"Id", "DateCreated", "DateDeleted"})]
        assert deleted.own_fields == ["DateDeleted"]
        assert deleted.parent == id_created.name

        named = types[frozenset({"Id", "DateCreated", "Name"})]
        assert named.own_fields == ["Name"]
        assert named.parent == id_created.name

        assert resolution.mode is ResolutionMode.UNANCHORED
        assert len(resolution) == 4

    def test_names_and_ids(self):
        """Test that ids follow ascending order starting at first_id."""
        resolution = HierarchyResolver().resolve_unanchored(SCENARIO)
        assert [d.name for d in resolution] == [
            "ColumnSubset1",
            "ColumnSubset2",
            "ColumnSubset3",
            "ColumnSubset4",
        ]
        assert resolution.column_set_types == ["ColumnSubset3", "ColumnSubset4", "ColumnSubset2"]

    def test_reverse_scan_tie_break(self):
        """Test that reverse-scan picks the later of two equal-size parents."""
        config = ResolverConfig(tie_break=TieBreak.REVERSE_SCAN)
        resolution = HierarchyResolver(config).resolve_unanchored(SCENARIO)
        types = _by_columns(resolution)

        named = types[frozenset({"Id", "DateCreated", "Name"})]
        assert named.parent == types[frozenset({"Id", "Name"})].name
        assert named.own_fields == ["DateCreated"]

    def test_recurring_only(self):
        """Test emitting only recurring subsets."""
        config = ResolverConfig(include_column_sets=False)
        resolution = HierarchyResolver(config).resolve_unanchored(SCENARIO)
        assert [frozenset(d.columns) for d in resolution] == [
            frozenset({"Id", "DateCreated"}),
            frozenset({"Id", "Name"}),
        ]
        assert resolution.column_set_types == [None, None, "ColumnSubset2"]

    def test_documented_example(self):
        """Test the four-level example with recurring subsets only."""
        config = ResolverConfig(include_column_sets=False)
        resolution = HierarchyResolver(config).resolve_unanchored([
            ["Id", "DateCreated", "DateDeleted"],
            ["Id", "DateCreated", "DateDeleted", "Name"],
            ["Id", "CustomerId", "DateCreated", "Name"],
        ])
        types = _by_columns(resolution)
        id_created = types[frozenset({"Id", "DateCreated"})]
        deleted = types[frozenset({"Id", "DateCreated", "DateDeleted"})]
        named = types[frozenset({"Id", "DateCreated", "Name"})]
        assert deleted.parent == id_created.name
        assert deleted.own_fields == ["DateDeleted"]
        assert named.parent == id_created.name
        assert named.own_fields == ["Name"]

    def test_multi_level_chain(self):
        """Test that chains deeper than one level form."""
        resolution = resolve([
            ["A", "B"],
            ["A", "B", "C"],
            ["A", "B", "C", "D"],
            ["A", "B", "C", "D", "E"],
        ])
        types = _by_columns(resolution)
        widest = types[frozenset("ABCDE")]
        assert widest.own_fields == ["E"]
        assert widest.parent == types[frozenset("ABCD")].name
        assert types[frozenset("ABCD")].parent == types[frozenset("ABC")].name
        assert types[frozenset("ABC")].parent == types[frozenset("AB")].name
        assert types[frozenset("AB")].is_root

    def test_chain_invariants_on_sample(self):
        """Test ownership invariants over a larger input."""
        resolution = resolve(SAMPLE)
        check_descriptors(resolution.descriptors)

        by_name = {d.name: d for d in resolution}
        for d in resolution:
            collected = list(d.own_fields)
            parent = d.parent
            while isinstance(parent, str):
                ancestor = by_name[parent]
                collected.extend(ancestor.own_fields)
                parent = ancestor.parent
            assert len(collected) == len(set(collected))
            assert set(collected) == set(d.columns)

    def test_every_column_set_has_a_type(self):
        """Test that each non-empty input column set maps to a type."""
        resolution = resolve(SAMPLE)
        for index, columns in enumerate(SAMPLE):
            descriptor = resolution.for_column_set(index)
            assert descriptor is not None
            assert set(descriptor.columns) == set(columns)

    def test_parents_precede_children(self):
        """Test emission order."""
        resolution = resolve(SAMPLE)
        seen = set()
        for d in resolution:
            if isinstance(d.parent, str):
                assert d.parent in seen
            seen.add(d.name)

    def test_deterministic(self):
        """Test that two runs give the same forest."""
        first = resolve(SAMPLE)
        second = resolve(SAMPLE)
        assert [d.to_dict() for d in first] == [d.to_dict() for d in second]

    def test_no_marker(self):
        """Test that roots are bare without a marker."""
        resolution = resolve(SCENARIO, config=ResolverConfig(marker=""))
        roots = [d for d in resolution if d.is_root]
        assert roots
        assert all(d.parent is None for d in roots)

    def test_empty_column_set_skipped(self):
        """Test that empty column sets get no type."""
        resolution = resolve([[], ["A", "B"]])
        assert resolution.column_set_types == [None, "ColumnSubset1"]

    def test_empty_input(self):
        """Test that no column sets give no types."""
        resolution = resolve([])
        assert resolution.descriptors == []
        assert resolution.column_set_types == []

    def test_none_input(self):
        """Test that a missing collection fails before resolution."""
        with pytest.raises(InvalidInputError):
            resolve(None)

    def test_forest_parent_is_single_assignment(self):
        """Test that the built forest rejects a second parent."""
        forest, _ = HierarchyResolver().build_forest(SCENARIO)
        child = forest.find(["Id", "DateCreated", "DateDeleted"])
        other_root = forest.find(["Id", "Name"])
        original_parent = child.parent_id

        with pytest.raises(DomainViolationError):
            forest.set_parent(child.id, other_root.id)
        assert child.parent_id == original_parent
        assert child.own_columns == ("DateDeleted",)

    def test_custom_prefix_and_first_id(self):
        """Test naming settings."""
        config = ResolverConfig(type_prefix="Row", first_id=100)
        resolution = resolve([["A", "B"], ["A", "B", "C"]], config=config)
        assert [d.name for d in resolution] == ["Row100", "Row101"]
        assert resolution.descriptors[1].parent == "Row100"


class TestAnchoredResolution:
    """Tests for resolution against an existing registry."""

    def test_matches_most_specific_base(self, registry):
        """Test that Base1 wins over the less specific Base2."""
        resolution = HierarchyResolver().resolve_anchored(
            [["Id", "DateCreated", "Name"]], registry
        )
        (descriptor,) = resolution.descriptors
        assert descriptor.parent == "Base1"
        assert descriptor.own_fields == ["Name"]
        assert descriptor.name == "ColumnSubset10"
        assert resolution.mode is ResolutionMode.ANCHORED

    def test_falls_back_to_marker(self, registry):
        """Test the marker fallback when no base of two or more fields matches."""
        resolution = resolve([["Id", "Position", "Gender"]], registry=registry)
        (descriptor,) = resolution.descriptors
        assert descriptor.parent == CapabilityMarker("IColumnSubset")
        assert descriptor.own_fields == ["Id", "Position", "Gender"]
        assert descriptor.is_root

    def test_single_field_base_with_lower_minimum(self, registry):
        """Test that min_base_fields=1 lets a one-field base anchor."""
        config = ResolverConfig(min_base_fields=1)
        resolution = resolve([["Id", "Position", "Gender"]], registry=registry, config=config)
        (descriptor,) = resolution.descriptors
        assert descriptor.parent == "Base2"
        assert descriptor.own_fields == ["Position", "Gender"]

    def test_marker_filters_candidates(self):
        """Test that only marker-satisfying types are candidates."""
        reg = BaseTypeRegistry()
        reg.add_interface("IColumnSubset")
        reg.add_composite("Unmarked", ["Id", "Name", "Extra"])
        reg.add_composite("Marked", ["Id", "Name"], interfaces=["IColumnSubset"])

        columns = [["Id", "Name", "Extra", "More"]]
        resolution = resolve(columns, registry=reg)
        assert resolution.descriptors[0].parent == "Marked"
        assert resolution.descriptors[0].own_fields == ["Extra", "More"]

        unfiltered = resolve(columns, registry=reg, config=ResolverConfig(marker=""))
        assert unfiltered.descriptors[0].parent == "Unmarked"
        assert unfiltered.descriptors[0].own_fields == ["More"]

    def test_each_column_set_independent(self, registry):
        """Test one type per column set, all one level below the registry."""
        resolution = resolve(SAMPLE, registry=registry)
        assert len(resolution) == len(SAMPLE)
        assert [d.name for d in resolution] == [f"ColumnSubset{i}" for i in range(10, 17)]
        generated = {d.name for d in resolution}
        for d in resolution:
            assert d.parent not in generated
        assert resolution.column_set_types == [d.name for d in resolution]

    def test_unresolved_without_marker_is_bare_root(self):
        """Test the default policy when nothing matches and there is no marker."""
        reg = BaseTypeRegistry()
        reg.add_composite("Base", ["Code"])
        resolution = resolve([["Id"]], registry=reg, config=ResolverConfig(marker=""))
        assert resolution.descriptors[0].parent is None
        assert resolution.descriptors[0].own_fields == ["Id"]

    def test_strict_anchor_raises(self):
        """Test the strict policy."""
        reg = BaseTypeRegistry()
        reg.add_composite("Base", ["Code"])
        config = ResolverConfig(marker="", strict_anchor=True)
        with pytest.raises(UnresolvedAnchorError):
            resolve([["Id"]], registry=reg, config=config)

    def test_strict_anchor_with_marker_falls_back(self, registry):
        """Test that a marker still satisfies the strict policy."""
        config = ResolverConfig(strict_anchor=True)
        resolution = resolve([["Position"]], registry=registry, config=config)
        assert resolution.descriptors[0].marker == CapabilityMarker("IColumnSubset")

    def test_none_input(self, registry):
        """Test that a missing collection fails in anchored mode too."""
        with pytest.raises(InvalidInputError):
            resolve(None, registry=registry)

    def test_empty_column_set_skipped(self, registry):
        """Test that empty column sets get no type and consume no id."""
        resolution = resolve([[], ["Id", "DateCreated", "Name"]], registry=registry)
        assert resolution.column_set_types == [None, "ColumnSubset10"]
        (descriptor,) = resolution.descriptors
        assert descriptor.parent == "Base1"
        assert resolution.for_column_set(0) is None

    def test_generated_name_taken_by_registry(self):
        """Test that a generated name may not shadow an existing type."""
        reg = BaseTypeRegistry()
        reg.add_interface("IColumnSubset")
        reg.add_composite("ColumnSubset10", ["Id", "Name"], interfaces=["IColumnSubset"])
        with pytest.raises(DomainViolationError, match="ColumnSubset10"):
            resolve([["Id", "Name", "X"]], registry=reg)

    def test_generated_name_clear_of_registry(self):
        """Test that moving the first id avoids the clash."""
        reg = BaseTypeRegistry()
        reg.add_interface("IColumnSubset")
        reg.add_composite("ColumnSubset10", ["Id", "Name"], interfaces=["IColumnSubset"])
        config = ResolverConfig(anchored_first_id=20)
        (descriptor,) = resolve([["Id", "Name", "X"]], registry=reg, config=config).descriptors
        assert descriptor.name == "ColumnSubset20"
        assert descriptor.parent == "ColumnSubset10"
        assert descriptor.own_fields == ["X"]


class TestDescriptorChecks:
    """Tests that resolution verifies the descriptors it returns."""

    def test_unanchored_rejects_redeclared_field(self, monkeypatch):
        """Test that a field declared along a chain twice fails resolution."""
        resolver = HierarchyResolver()
        bad = [
            TypeDescriptor(name="T1", own_fields=["Id"]),
            TypeDescriptor(name="T2", parent="T1", own_fields=["Id", "Name"]),
        ]
        monkeypatch.setattr(resolver.synthesizer, "synthesize_forest", lambda forest: bad)
        with pytest.raises(DomainViolationError, match="redeclares"):
            resolver.resolve_unanchored(SCENARIO)

    def test_anchored_rejects_duplicate_names(self, registry, monkeypatch):
        """Test that two types with one name fail resolution."""
        resolver = HierarchyResolver()
        bad = [TypeDescriptor(name="T1"), TypeDescriptor(name="T1")]
        monkeypatch.setattr(resolver.synthesizer, "synthesize_matches", lambda matches: bad)
        with pytest.raises(DomainViolationError, match="listed twice"):
            resolver.resolve_anchored([["Id", "Name"]], registry)
