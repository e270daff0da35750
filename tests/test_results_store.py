"""
Tests for analytics/results.py flattening and the SQLite result sink /
graph read queries. Each test uses a fresh in-memory DB.
"""
import pytest

from analytics.centrality import CentralityAlgorithm
from analytics.communities import detect_communities
from analytics.results import (
    AnalysisResult,
    CommunityAssignment,
    centrality_results,
    community_assignments,
)
from queries.analysis import SQLiteResultSink, fetch_communities, fetch_metrics
from queries.graph import fetch_graph_data, fetch_graph_with_analysis

from conftest import edge, seed_graph, undirected, vertex, vertices


class TestFlattening:
    def test_centrality_rows(self):
        rows = centrality_results({"a": 0.25, "b": 0.75}, CentralityAlgorithm.PAGERANK, computed_at=123)
        assert rows == [
            AnalysisResult("a", "centrality", "pagerank", 0.25, 123),
            AnalysisResult("b", "centrality", "pagerank", 0.75, 123),
        ]

    def test_shared_timestamp(self):
        rows = centrality_results({"a": 1.0, "b": 2.0, "c": 3.0}, "closeness")
        assert len({r.computed_at for r in rows}) == 1

    def test_community_rows(self):
        result = detect_communities(vertices("a", "b"), [edge("a", "b")])
        rows = community_assignments(result, "louvain", created_at=7)
        assert rows == [
            CommunityAssignment(0, "a", "louvain", 0.0, 7),
            CommunityAssignment(1, "b", "louvain", 0.0, 7),
        ]


class TestFetchGraph:
    def test_vertices_in_creation_order(self, conn):
        seed_graph(conn, vertices("c", "a", "b"), [])
        vs, es = fetch_graph_data(conn)
        assert [v["id"] for v in vs] == ["c", "a", "b"]
        assert es == []

    def test_properties_decoded(self, conn):
        seed_graph(conn, [vertex("a", properties='{"k": 1}'), vertex("b")], [])
        vs, _ = fetch_graph_data(conn)
        assert vs[0]["properties"] == {"k": 1}
        assert vs[1]["properties"] == {}

    def test_edge_fields(self, conn):
        seed_graph(conn, vertices("a", "b"), [undirected("a", "b", weight=2.0)])
        _, es = fetch_graph_data(conn)
        assert es == [{
            "id": "a--b",
            "source_vertex_id": "a",
            "target_vertex_id": "b",
            "relationship_type": "relates_to",
            "weight": 2.0,
            "direction": "undirected",
            "properties": {},
        }]

    def test_dangling_edges_skipped(self, conn):
        conn.execute("PRAGMA foreign_keys = OFF")
        seed_graph(conn, vertices("a", "b"), [edge("a", "b"), edge("a", "ghost")])
        _, es = fetch_graph_data(conn)
        assert [e["id"] for e in es] == ["a->b"]

    def test_metrics_attached(self, conn):
        seed_graph(conn, vertices("a", "b"), [edge("a", "b")])
        SQLiteResultSink(conn).store_centrality(
            centrality_results({"a": 0.1, "b": 0.9}, "pagerank", computed_at=1)
        )
        vs, _ = fetch_graph_with_analysis(conn)
        by_id = {v["id"]: v for v in vs}
        assert by_id["a"]["metrics"] == {"centrality": {"pagerank": pytest.approx(0.1)}}
        assert by_id["b"]["metrics"] == {"centrality": {"pagerank": pytest.approx(0.9)}}

    def test_no_metrics_is_empty(self, conn):
        seed_graph(conn, vertices("a"), [])
        vs, _ = fetch_graph_with_analysis(conn)
        assert vs[0]["metrics"] == {}


class TestSQLiteResultSink:
    def test_store_centrality_returns_count(self, conn):
        seed_graph(conn, vertices("a", "b"), [])
        sink = SQLiteResultSink(conn)
        assert sink.store_centrality(centrality_results({"a": 1.0, "b": 2.0}, "closeness")) == 2
        rows = fetch_metrics(conn)
        assert [r["vertex_id"] for r in rows] == ["b", "a"]
        assert all(r["metric_name"] == "closeness" for r in rows)

    def test_new_centrality_run_replaces_previous(self, conn):
        seed_graph(conn, vertices("a", "b"), [])
        sink = SQLiteResultSink(conn)
        sink.store_centrality(centrality_results({"a": 1.0, "b": 2.0}, "pagerank"))
        sink.store_centrality(centrality_results({"a": 3.0, "b": 4.0}, "betweenness"))
        rows = fetch_metrics(conn)
        assert {r["metric_name"] for r in rows} == {"betweenness"}
        assert len(rows) == 2

    def test_community_run_replaces_same_algorithm_only(self, conn):
        seed_graph(conn, vertices("a", "b"), [])
        sink = SQLiteResultSink(conn)
        sink.store_communities("louvain", [CommunityAssignment(0, "a", "louvain", 0.0, 1)])
        sink.store_communities("other", [CommunityAssignment(5, "b", "other", 0.2, 1)])
        sink.store_communities("louvain", [
            CommunityAssignment(0, "a", "louvain", 0.3, 2),
            CommunityAssignment(0, "b", "louvain", 0.3, 2),
        ])
        louvain = fetch_communities(conn, "louvain")
        assert [(r["community_id"], r["vertex_id"]) for r in louvain] == [(0, "a"), (0, "b")]
        assert all(r["modularity"] == pytest.approx(0.3) for r in louvain)
        assert len(fetch_communities(conn, "other")) == 1

    def test_results_removed_with_vertex(self, conn):
        seed_graph(conn, vertices("a", "b"), [])
        SQLiteResultSink(conn).store_centrality(centrality_results({"a": 1.0, "b": 1.0}, "pagerank"))
        conn.execute("DELETE FROM graph_vertices WHERE id = 'a'")
        assert [r["vertex_id"] for r in fetch_metrics(conn)] == ["b"]
