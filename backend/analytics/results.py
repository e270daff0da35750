"""
Flat result records handed to a result sink — pure functions only.
"""
from __future__ import annotations

import time
from typing import Mapping, NamedTuple, Optional

CENTRALITY = "centrality"


class AnalysisResult(NamedTuple):
    vertex_id: str
    analysis_type: str
    metric_name: str
    metric_value: float
    computed_at: int


class CommunityAssignment(NamedTuple):
    community_id: int
    vertex_id: str
    algorithm: str
    modularity: float
    created_at: int


def now_ms() -> int:
    return int(time.time() * 1000)


def _name(algorithm) -> str:
    return getattr(algorithm, "value", algorithm)


def centrality_results(
    scores: Mapping[str, float],
    algorithm: str,
    computed_at: Optional[int] = None,
) -> list[AnalysisResult]:
    """One row per vertex; all rows of a run share the same timestamp."""
    ts = now_ms() if computed_at is None else computed_at
    return [
        AnalysisResult(vid, CENTRALITY, _name(algorithm), float(score), ts)
        for vid, score in scores.items()
    ]


def community_assignments(
    result: dict,
    algorithm: str,
    created_at: Optional[int] = None,
) -> list[CommunityAssignment]:
    """result — output of detect_communities."""
    ts = now_ms() if created_at is None else created_at
    q = float(result["modularity"])
    return [
        CommunityAssignment(cid, vid, _name(algorithm), q, ts)
        for vid, cid in result["assignments"].items()
    ]
