"""
Unit tests for analytics/density.py.
"""
import pytest

from analytics.density import density, density_and_counts, graph_stats
from analytics.snapshot import build_snapshot

from conftest import edge, undirected, vertex, vertices


class TestDensity:
    @pytest.mark.parametrize("n", [0, 1])
    def test_fewer_than_two_vertices_is_zero(self, n):
        assert density(n, 0) == 0
        assert density(n, 5) == 0

    def test_complete_undirected_graph_is_one(self):
        n = 5
        assert density(n, n * (n - 1) // 2) == pytest.approx(1.0)

    def test_no_edges_is_zero(self):
        assert density(4, 0) == 0

    def test_directed_edges_use_same_formula(self):
        # 3 directed arcs on 3 vertices: 2*3 / (3*2)
        assert density(3, 3) == pytest.approx(1.0)


class TestGraphStats:
    def test_counts_and_density(self):
        snap = build_snapshot(
            vertices("a", "b", "c", "d"),
            [undirected("a", "b"), undirected("b", "c"), edge("c", "d")],
        )
        assert graph_stats(snap) == {
            "vertexCount": 4,
            "edgeCount": 3,
            "density": pytest.approx(0.5),
        }

    def test_empty_graph(self):
        assert graph_stats(build_snapshot([], [])) == {
            "vertexCount": 0, "edgeCount": 0, "density": 0,
        }

    def test_from_raw_collections(self):
        stats = density_and_counts(vertices("a", "b"), [undirected("a", "b")])
        assert stats == {"vertexCount": 2, "edgeCount": 1, "density": pytest.approx(1.0)}

    def test_nested_properties_do_not_reject_graph(self):
        props = {"tags": ["x", "y"], "meta": {"k": 1}}
        vs = [vertex("a", properties=props), vertex("b")]
        es = [{**undirected("a", "b"), "properties": props}]
        assert density_and_counts(vs, es)["edgeCount"] == 1
