"""Tests for code_coupling_engine.clusterer — dendrogram construction."""

import pytest

from code_coupling_engine.clusterer import build_dendrogram, cluster_coupling
from code_coupling_engine.coupling import CouplingMatrix

from conftest import make_graph


def dendrogram_for(names, calls=None):
    graph, units = make_graph(names, calls)
    matrix = CouplingMatrix.from_call_graph(graph)
    return build_dendrogram(matrix), matrix, units


# ---------------------------------------------------------------------------
# Insufficient units
# ---------------------------------------------------------------------------

class TestInsufficientUnits:
    def test_no_units(self):
        dendrogram, _, _ = dendrogram_for("")
        assert dendrogram.root is None
        assert dendrogram.insufficient_units
        assert dendrogram.merges == []
        assert list(dendrogram.walk()) == []

    def test_single_unit(self):
        dendrogram, _, _ = dendrogram_for("A")
        assert dendrogram.root is None
        assert dendrogram.insufficient_units
        assert len(dendrogram.leaves) == 1


# ---------------------------------------------------------------------------
# Merge order
# ---------------------------------------------------------------------------

class TestMergeOrder:
    def test_reference_scenario(self):
        dendrogram, _, _ = dendrogram_for("ABC", {("A", "B"): 5, ("B", "A"): 3, ("B", "C"): 2})
        first, root = dendrogram.merges
        assert first.names == ["A", "B"]
        assert first.merge_coupling == pytest.approx(0.8)
        assert root is dendrogram.root
        assert root.names == ["A", "B", "C"]
        assert root.merge_coupling == pytest.approx(0.2)
        assert root.left is first
        assert root.right.names == ["C"]

    def test_cluster_coupling_is_additive(self):
        """{A,B}-C scores 3+3=6 and beats C-D=5, even though its average is 3."""
        dendrogram, _, _ = dendrogram_for("ABCD", {
            ("A", "B"): 10, ("C", "A"): 3, ("C", "B"): 3, ("C", "D"): 5,
        })
        names = [m.names for m in dendrogram.merges]
        assert names == [["A", "B"], ["A", "B", "C"], ["A", "B", "C", "D"]]
        assert dendrogram.merges[1].merge_coupling == pytest.approx(6 / 21)

    def test_ties_resolved_by_first_pair(self):
        dendrogram, _, _ = dendrogram_for("ABCD", {("A", "B"): 1, ("C", "D"): 1})
        first, second, root = dendrogram.merges
        assert first.names == ["A", "B"]
        assert second.names == ["C", "D"]
        assert root.left is first
        assert root.right is second
        assert root.merge_coupling == 0.0

    def test_zero_coupling_still_merges_everything(self):
        dendrogram, _, _ = dendrogram_for("ABCD")
        assert [m.names for m in dendrogram.merges] == [
            ["A", "B"], ["A", "B", "C"], ["A", "B", "C", "D"],
        ]
        assert all(m.merge_coupling == 0.0 for m in dendrogram.merges)

    def test_order_follows_smallest_member(self):
        """After merging C and D, the {C,D} cluster sorts before E."""
        dendrogram, _, _ = dendrogram_for("ABCDE", {("C", "D"): 4, ("D", "E"): 1, ("A", "B"): 1})
        names = [m.names for m in dendrogram.merges]
        assert names[0] == ["C", "D"]
        # {A,B}=1 comes before {C,D}-E=1 in enumeration order
        assert names[1] == ["A", "B"]
        assert names[2] == ["C", "D", "E"]

    def test_reproducible(self):
        calls = {("A", "B"): 2, ("B", "C"): 2, ("C", "D"): 2, ("D", "A"): 2}
        first, _, _ = dendrogram_for("ABCD", calls)
        second, _, _ = dendrogram_for("ABCD", calls)
        assert [m.names for m in first.merges] == [m.names for m in second.merges]


# ---------------------------------------------------------------------------
# Tree shape
# ---------------------------------------------------------------------------

class TestTreeShape:
    @pytest.mark.parametrize("names", ["AB", "ABC", "ABCDEFG"])
    def test_leaf_and_internal_counts(self, names):
        calls = {(a, b): i + 1 for i, (a, b) in enumerate(zip(names, names[1:]))}
        dendrogram, _, _ = dendrogram_for(names, calls)
        nodes = list(dendrogram.walk())
        leaves = [n for n in nodes if n.is_leaf]
        internal = [n for n in nodes if not n.is_leaf]
        assert len(leaves) == len(names)
        assert len(internal) == len(names) - 1
        assert dendrogram.root.size == len(names)

    def test_children_partition_parent(self):
        dendrogram, _, _ = dendrogram_for("ABCDE", {("A", "C"): 3, ("B", "E"): 2, ("D", "A"): 1})
        for node in dendrogram.merges:
            left, right = set(node.left.units), set(node.right.units)
            assert not left & right
            assert left | right == set(node.units)

    def test_leaves_have_zero_merge_coupling(self):
        dendrogram, _, _ = dendrogram_for("ABC", {("A", "B"): 1})
        assert all(leaf.merge_coupling == 0.0 for leaf in dendrogram.leaves)

    def test_progress_callback(self):
        graph, _ = make_graph("ABCD")
        seen = []
        build_dendrogram(CouplingMatrix.from_call_graph(graph), on_progress=lambda c, t, m: seen.append((c, t)))
        assert seen == [(1, 3), (2, 3), (3, 3)]


class TestClusterCoupling:
    def test_sum_over_cross_pairs(self):
        dendrogram, matrix, _ = dendrogram_for("ABC", {("A", "B"): 5, ("B", "A"): 3, ("B", "C"): 2})
        ab, c = dendrogram.root.left, dendrogram.root.right
        assert cluster_coupling(matrix, ab, c) == pytest.approx(0.2)
        a, b = ab.left, ab.right
        assert cluster_coupling(matrix, a, b) == pytest.approx(0.8)
