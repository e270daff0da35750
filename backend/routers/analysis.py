import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from db import get_db
from queries.analysis import SQLiteResultSink
from queries.graph import fetch_graph_data, fetch_graph_with_analysis
from analytics.centrality import CentralityAlgorithm, compute_centrality
from analytics.communities import CommunityAlgorithm, run_communities
from analytics.density import graph_stats
from analytics.errors import AlgorithmNotImplementedError, InvalidGraphError
from analytics.results import centrality_results, community_assignments
from analytics.snapshot import build_snapshot

logger = logging.getLogger(__name__)

router = APIRouter()


class CentralityRequest(BaseModel):
    algorithm: str = "pagerank"
    weighted:  bool = False


class CommunityRequest(BaseModel):
    algorithm:  str = "louvain"
    optimize:   bool = False
    resolution: float = 1.0
    strength_threshold: Optional[float] = None


def _parse(enum_cls, name: str):
    try:
        return enum_cls.parse(name)
    except AlgorithmNotImplementedError as exc:
        logger.warning("Rejected analysis request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))


def _snapshot(vertices, edges):
    try:
        return build_snapshot(vertices, edges)
    except InvalidGraphError as exc:
        logger.warning("Graph data rejected: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))


@router.get("/api/graph/stats")
def stats():
    conn = get_db()
    vertices, edges = fetch_graph_data(conn)
    conn.close()
    return graph_stats(_snapshot(vertices, edges))


@router.get("/api/graph/analysis")
def graph_with_analysis():
    conn = get_db()
    vertices, edges = fetch_graph_with_analysis(conn)
    conn.close()
    return {
        "vertices": vertices,
        "edges":    edges,
        "stats":    graph_stats(_snapshot(vertices, edges)),
    }


@router.post("/api/graph/analysis/centrality")
def centrality(req: CentralityRequest):
    algorithm = _parse(CentralityAlgorithm, req.algorithm)
    options = {"weighted": req.weighted} if algorithm is CentralityAlgorithm.PAGERANK else {}

    conn = get_db()
    try:
        vertices, edges = fetch_graph_data(conn)
        scores = compute_centrality(_snapshot(vertices, edges), algorithm, **options)
        SQLiteResultSink(conn).store_centrality(centrality_results(scores, algorithm))
    finally:
        conn.close()
    return {"success": True, "algorithm": algorithm.value, "results": scores}


@router.post("/api/graph/analysis/communities")
def communities(req: CommunityRequest):
    algorithm = _parse(CommunityAlgorithm, req.algorithm)
    if req.optimize and req.strength_threshold is not None:
        raise HTTPException(
            status_code=400, detail="optimize and strength_threshold cannot be combined"
        )

    conn = get_db()
    try:
        vertices, edges = fetch_graph_data(conn)
        result = run_communities(
            _snapshot(vertices, edges), algorithm,
            optimize=req.optimize, resolution=req.resolution,
            strength_threshold=req.strength_threshold,
        )
        SQLiteResultSink(conn).store_communities(
            algorithm.value, community_assignments(result, algorithm)
        )
    finally:
        conn.close()
    return {
        "success":        True,
        "algorithm":      algorithm.value,
        "communities":    result["assignments"],
        "modularity":     result["modularity"],
        "communityCount": len(result["summary"]),
    }
