"""
Community detection and modularity — pure functions only.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from networkx.algorithms.community import louvain_communities

from .centrality import connection_strength
from .errors import AlgorithmNotImplementedError
from .snapshot import GraphSnapshot, build_snapshot

logger = logging.getLogger(__name__)

LOUVAIN_SEED = 42

# Minimum connection strength for two vertices to share a group
STRENGTH_THRESHOLD = 2.0


class CommunityAlgorithm(str, Enum):
    LOUVAIN = "louvain"

    @classmethod
    def parse(cls, name: Any) -> "CommunityAlgorithm":
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise AlgorithmNotImplementedError(
                f"Community algorithm {name} not implemented"
            ) from None


def singleton_partition(snapshot: GraphSnapshot) -> dict[str, int]:
    """Every vertex in its own community, numbered in insertion order."""
    return {vid: i for i, vid in enumerate(snapshot.vertex_ids)}


def modularity(snapshot: GraphSnapshot, assignments: Mapping[str, int]) -> float:
    """
    Q = (1/2m) * sum over same-community pairs i != j of (A_ij - k_i*k_j / 2m).

    A_ij is the heavier of the two arc weights between i and j, k_i the
    weighted degree and 2m the sum of all weighted degrees.
    """
    two_m = sum(snapshot.degrees.values())
    if two_m <= 0:
        return 0.0

    members: dict[int, list[str]] = {}
    for vid in snapshot.vertex_ids:
        members.setdefault(assignments[vid], []).append(vid)

    q = 0.0
    for group in members.values():
        for i in group:
            k_i = snapshot.weighted_degree(i)
            for j in group:
                if i == j:
                    continue
                a_ij = max(snapshot.weight(i, j), snapshot.weight(j, i))
                q += a_ij - k_i * snapshot.weighted_degree(j) / two_m
    return q / two_m


def summarize(assignments: Mapping[str, int]) -> dict[int, list[str]]:
    """Group vertex ids by community id, preserving assignment order."""
    summary: dict[int, list[str]] = {}
    for vid, cid in assignments.items():
        summary.setdefault(cid, []).append(vid)
    return summary


def _pair_strength(snapshot: GraphSnapshot, a: str, b: str) -> float:
    strengths = [
        connection_strength(arc.weight)
        for arc in (snapshot.arcs.get((a, b)), snapshot.arcs.get((b, a)))
        if arc is not None
    ]
    return max(strengths, default=0.0)


def group_by_strength(
    snapshot: GraphSnapshot,
    threshold: float = STRENGTH_THRESHOLD,
) -> dict[str, int]:
    """
    Greedy grouping by direct connection strength.

    Vertices are visited in insertion order; each unassigned vertex opens a
    new community and pulls in every other unassigned vertex it is linked to
    (either direction) with strength >= threshold. Grouping is not
    transitive: a neighbour of a pulled-in vertex only joins if it is also
    strongly linked to the vertex that opened the community.
    """
    assignments: dict[str, int] = {}
    cid = 0
    for vid in snapshot.vertex_ids:
        if vid in assignments:
            continue
        assignments[vid] = cid
        for other in snapshot.vertex_ids:
            if other in assignments:
                continue
            if _pair_strength(snapshot, vid, other) >= threshold:
                assignments[other] = cid
        cid += 1
    return assignments


def optimize_communities(
    snapshot: GraphSnapshot,
    resolution: float = 1.0,
    seed: int = LOUVAIN_SEED,
) -> dict[str, int]:
    """
    Louvain local moving + aggregation on the undirected weighted projection.

    Community ids are renumbered by each community's first vertex in
    insertion order so the result is stable across calls.
    """
    if sum(snapshot.degrees.values()) <= 0:
        return singleton_partition(snapshot)
    community_sets = louvain_communities(
        snapshot.to_networkx(), weight="weight", resolution=resolution, seed=seed
    )
    raw = {vid: i for i, comm in enumerate(community_sets) for vid in comm}

    renumbered: dict[int, int] = {}
    assignments = {}
    for vid in snapshot.vertex_ids:
        cid = renumbered.setdefault(raw[vid], len(renumbered))
        assignments[vid] = cid
    return assignments


def run_communities(
    snapshot: GraphSnapshot,
    algorithm: CommunityAlgorithm | str = CommunityAlgorithm.LOUVAIN,
    optimize: bool = False,
    resolution: float = 1.0,
    strength_threshold: Optional[float] = None,
) -> dict:
    CommunityAlgorithm.parse(algorithm)
    if optimize and strength_threshold is not None:
        raise ValueError("optimize and strength_threshold cannot be combined")
    if strength_threshold is not None:
        assignments = group_by_strength(snapshot, threshold=strength_threshold)
    elif optimize:
        assignments = optimize_communities(snapshot, resolution=resolution)
    else:
        # Baseline partition only; the local-moving phase is opt-in above.
        assignments = singleton_partition(snapshot)

    q = modularity(snapshot, assignments)
    logger.debug(
        "Community detection: %d vertices, %d communities, Q=%.4f",
        snapshot.vertex_count, len(set(assignments.values())), q,
    )
    return {
        "assignments": assignments,
        "modularity":  q,
        "summary":     summarize(assignments),
    }


def detect_communities(
    vertices: Iterable[Any],
    edges: Iterable[Any],
    algorithm: CommunityAlgorithm | str = CommunityAlgorithm.LOUVAIN,
    optimize: bool = False,
    resolution: float = 1.0,
    strength_threshold: Optional[float] = None,
) -> dict:
    """
    Partition the graph and score the partition.

    vertices, edges — raw collections, see build_snapshot
    algorithm       — only "louvain" is recognised
    optimize        — run networkx's Louvain optimisation instead of
                      returning the singleton baseline partition
    strength_threshold — group vertices whose connection strength reaches
                      this value instead (see group_by_strength)

    Returns {assignments: {vertex_id: community_id}, modularity, summary: {community_id: [vertex_id]}}.
    """
    algorithm = CommunityAlgorithm.parse(algorithm)
    return run_communities(
        build_snapshot(vertices, edges), algorithm, optimize=optimize, resolution=resolution,
        strength_threshold=strength_threshold,
    )
