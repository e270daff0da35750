"""
Structural graph statistics — pure functions only.
"""
from __future__ import annotations

from typing import Any, Iterable

from .snapshot import GraphSnapshot, build_snapshot


def density(vertex_count: int, edge_count: int) -> float:
    """
    2E / (V(V-1)), 0 for fewer than two vertices.

    Uses the undirected maximum edge count even when some edges are directed.
    """
    if vertex_count < 2:
        return 0.0
    return (2 * edge_count) / (vertex_count * (vertex_count - 1))


def graph_stats(snapshot: GraphSnapshot) -> dict:
    return {
        "vertexCount": snapshot.vertex_count,
        "edgeCount":   snapshot.edge_count,
        "density":     density(snapshot.vertex_count, snapshot.edge_count),
    }


def density_and_counts(vertices: Iterable[Any], edges: Iterable[Any]) -> dict:
    """Stats for raw vertex/edge collections; see build_snapshot for accepted shapes."""
    return graph_stats(build_snapshot(vertices, edges))
