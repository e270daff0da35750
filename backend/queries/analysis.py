"""
Analysis result storage — DB I/O only.
"""
from __future__ import annotations

import logging
import sqlite3
import uuid
from typing import Iterable, Protocol

from analytics.results import CENTRALITY, AnalysisResult, CommunityAssignment
from db import row_to_dict

logger = logging.getLogger(__name__)


class AnalysisResultSink(Protocol):
    def store_centrality(self, results: Iterable[AnalysisResult]) -> int: ...

    def store_communities(self, algorithm: str, assignments: Iterable[CommunityAssignment]) -> int: ...


class SQLiteResultSink:
    """
    Persists engine output into graph_analysis_results / graph_communities.

    A new centrality run replaces every stored centrality row; a new community
    run replaces the rows of the same algorithm only.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def store_centrality(self, results: Iterable[AnalysisResult]) -> int:
        rows = [(str(uuid.uuid4()), *r) for r in results]
        with self.conn:
            self.conn.execute(
                "DELETE FROM graph_analysis_results WHERE analysis_type = ?", (CENTRALITY,)
            )
            self.conn.executemany(
                "INSERT INTO graph_analysis_results "
                "(id, vertex_id, analysis_type, metric_name, metric_value, computed_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )
        logger.info("Stored %d centrality results", len(rows))
        return len(rows)

    def store_communities(self, algorithm: str, assignments: Iterable[CommunityAssignment]) -> int:
        rows = [(str(uuid.uuid4()), *a) for a in assignments]
        with self.conn:
            self.conn.execute("DELETE FROM graph_communities WHERE algorithm = ?", (algorithm,))
            self.conn.executemany(
                "INSERT INTO graph_communities "
                "(id, community_id, vertex_id, algorithm, modularity, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )
        logger.info("Stored %d community assignments for %s", len(rows), algorithm)
        return len(rows)


def fetch_metrics(conn: sqlite3.Connection, analysis_type: str = CENTRALITY) -> list[dict]:
    rows = conn.execute(
        "SELECT vertex_id, analysis_type, metric_name, metric_value, computed_at "
        "FROM graph_analysis_results WHERE analysis_type = ? ORDER BY metric_value DESC",
        (analysis_type,),
    ).fetchall()
    return [row_to_dict(r) for r in rows]


def fetch_communities(conn: sqlite3.Connection, algorithm: str) -> list[dict]:
    rows = conn.execute(
        "SELECT community_id, vertex_id, algorithm, modularity, created_at "
        "FROM graph_communities WHERE algorithm = ? ORDER BY community_id, vertex_id",
        (algorithm,),
    ).fetchall()
    return [row_to_dict(r) for r in rows]
