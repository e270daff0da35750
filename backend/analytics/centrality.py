"""
Centrality analysis — pure functions only.

All three algorithms read a GraphSnapshot and return {vertex_id: score}.
Shortest paths are unweighted (hop counts); only PageRank can look at
edge weights, and only when asked to.
"""
from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Any, Iterable

from .errors import AlgorithmNotImplementedError
from .snapshot import GraphSnapshot, build_snapshot

logger = logging.getLogger(__name__)

DEFAULT_DAMPING       = 0.85
DEFAULT_ITERATIONS    = 100
CONVERGENCE_TOLERANCE = 1e-4

# Connection-strength clamp for resistance-style weights
_MIN_STRENGTH = 0.01
_MAX_STRENGTH = 10.0


class CentralityAlgorithm(str, Enum):
    PAGERANK    = "pagerank"
    BETWEENNESS = "betweenness"
    CLOSENESS   = "closeness"

    @classmethod
    def parse(cls, name: Any) -> "CentralityAlgorithm":
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise AlgorithmNotImplementedError(
                f"Centrality algorithm {name} not implemented"
            ) from None


def connection_strength(weight: float) -> float:
    """
    Convert a resistance weight into a connection strength.

    weight = 1 is a normal link, < 1 a closer one, > 1 a weaker one. A zero
    or missing weight is read as a normal link.
    """
    weight = weight or 1.0
    if weight < 0:
        return 0.0
    return max(_MIN_STRENGTH, min(_MAX_STRENGTH, 1.0 / weight))


def pagerank(
    snapshot: GraphSnapshot,
    damping: float = DEFAULT_DAMPING,
    iterations: int = DEFAULT_ITERATIONS,
    tolerance: float = CONVERGENCE_TOLERANCE,
    weighted: bool = False,
) -> dict[str, float]:
    """
    Power-iteration PageRank.

    Rank held by vertices without outgoing arcs is dropped rather than
    redistributed, so scores only sum to 1 when there are no dangling
    vertices. Stops once no score moves by more than ``tolerance``.

    weighted — split a vertex's rank by connection strength of its out-arcs
               instead of evenly.
    """
    ids = snapshot.vertex_ids
    n = len(ids)
    if n == 0:
        return {}

    if weighted:
        out_total = {
            v: sum(connection_strength(a.weight) for a in snapshot.out_arcs[v]) for v in ids
        }
        def share(arc) -> float:
            total = out_total[arc.source]
            return connection_strength(arc.weight) / total if total > 0 else 0.0
    else:
        def share(arc) -> float:
            return 1.0 / snapshot.out_degree(arc.source)

    scores = {v: 1.0 / n for v in ids}
    base = (1.0 - damping) / n

    for i in range(iterations):
        updated = {
            v: base + damping * sum(scores[a.source] * share(a) for a in snapshot.in_arcs[v])
            for v in ids
        }
        delta = max(abs(updated[v] - scores[v]) for v in ids)
        scores = updated
        if delta < tolerance:
            logger.debug("PageRank converged after %d iterations", i + 1)
            break
    else:
        logger.debug("PageRank hit the %d iteration cap", iterations)

    return scores


def _shortest_path_counts(snapshot: GraphSnapshot, source: str):
    """BFS from source; returns (visit order, predecessors, path counts)."""
    order: list[str] = []
    preds: dict[str, list[str]] = {source: []}
    sigma: dict[str, int] = {source: 1}
    dist: dict[str, int] = {source: 0}
    queue = deque([source])

    while queue:
        v = queue.popleft()
        order.append(v)
        for w in snapshot.out_links[v]:
            if w not in dist:
                dist[w] = dist[v] + 1
                sigma[w] = 0
                preds[w] = []
                queue.append(w)
            if dist[w] == dist[v] + 1:
                sigma[w] += sigma[v]
                preds[w].append(v)

    return order, preds, sigma


def betweenness(snapshot: GraphSnapshot) -> dict[str, float]:
    """
    Brandes' betweenness centrality over hop-count shortest paths.

    Raw scores are scaled by 2 / ((n-1)(n-2)); with fewer than three
    vertices every score is 0.
    """
    ids = snapshot.vertex_ids
    n = len(ids)
    scores = {v: 0.0 for v in ids}
    if n < 3:
        return scores

    for s in ids:
        stack, preds, sigma = _shortest_path_counts(snapshot, s)
        delta = {v: 0.0 for v in stack}
        while stack:
            w = stack.pop()
            for v in preds[w]:
                delta[v] += sigma[v] / sigma[w] * (1.0 + delta[w])
            if w != s:
                scores[w] += delta[w]

    scale = 2.0 / ((n - 1) * (n - 2))
    return {v: score * scale for v, score in scores.items()}


def _hop_distances(snapshot: GraphSnapshot, source: str) -> dict[str, int]:
    dist = {source: 0}
    queue = deque([source])
    while queue:
        v = queue.popleft()
        for w in snapshot.out_links[v]:
            if w not in dist:
                dist[w] = dist[v] + 1
                queue.append(w)
    return dist


def closeness(snapshot: GraphSnapshot) -> dict[str, float]:
    """(n-1) / sum of hop distances to reachable vertices; 0 if none are reachable."""
    n = snapshot.vertex_count
    scores = {}
    for s in snapshot.vertex_ids:
        total = sum(_hop_distances(snapshot, s).values())
        scores[s] = (n - 1) / total if total > 0 else 0.0
    return scores


def compute_centrality(
    snapshot: GraphSnapshot,
    algorithm: CentralityAlgorithm | str,
    **options: Any,
) -> dict[str, float]:
    algorithm = CentralityAlgorithm.parse(algorithm)
    if algorithm is CentralityAlgorithm.PAGERANK:
        return pagerank(snapshot, **options)
    if algorithm is CentralityAlgorithm.BETWEENNESS:
        return betweenness(snapshot)
    return closeness(snapshot)


def run_centrality(
    vertices: Iterable[Any],
    edges: Iterable[Any],
    algorithm: CentralityAlgorithm | str,
    **options: Any,
) -> dict[str, float]:
    """
    Build a snapshot from raw vertices/edges and score every vertex.

    algorithm — "pagerank", "betweenness" or "closeness"
    options   — forwarded to pagerank (damping, iterations, tolerance, weighted)

    Raises AlgorithmNotImplementedError for any other name, before the
    snapshot is built.
    """
    algorithm = CentralityAlgorithm.parse(algorithm)
    return compute_centrality(build_snapshot(vertices, edges), algorithm, **options)
