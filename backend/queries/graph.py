"""
Graph data queries — DB I/O only.
"""
from __future__ import annotations

import json
import sqlite3
from collections import defaultdict

from db import row_to_dict

_VERTEX_COLS = "v.id, v.label, v.type, v.properties, v.size, v.color, v.x_position, v.y_position"
_EDGE_COLS = (
    "e.id, e.source_vertex_id, e.target_vertex_id, e.relationship_type, "
    "e.weight, e.direction, e.properties"
)


def _decode(row: sqlite3.Row) -> dict:
    d = row_to_dict(row)
    d["properties"] = json.loads(d["properties"]) if d.get("properties") else {}
    return d


def fetch_graph_data(conn: sqlite3.Connection) -> tuple[list[dict], list[dict]]:
    """
    Fetch every vertex and every edge whose endpoints both exist.

    Returns (vertices, edges) as plain dicts with decoded property maps,
    vertices in creation order.
    """
    cur = conn.cursor()
    cur.execute(f"SELECT {_VERTEX_COLS} FROM graph_vertices v ORDER BY v.created_at, v.rowid")
    vertices = [_decode(r) for r in cur.fetchall()]

    cur.execute(
        f"""
        SELECT {_EDGE_COLS}
        FROM graph_edges e
        JOIN graph_vertices sv ON e.source_vertex_id = sv.id
        JOIN graph_vertices tv ON e.target_vertex_id = tv.id
        ORDER BY e.created_at, e.rowid
        """
    )
    edges = [_decode(r) for r in cur.fetchall()]
    return vertices, edges


def fetch_graph_with_analysis(conn: sqlite3.Connection) -> tuple[list[dict], list[dict]]:
    """
    Like fetch_graph_data, with stored metrics attached to each vertex as
    ``metrics: {analysis_type: {metric_name: value}}``.
    """
    vertices, edges = fetch_graph_data(conn)

    metrics: dict[str, dict[str, dict[str, float]]] = defaultdict(dict)
    rows = conn.execute(
        "SELECT vertex_id, analysis_type, metric_name, metric_value FROM graph_analysis_results"
    ).fetchall()
    for r in rows:
        metrics[r["vertex_id"]].setdefault(r["analysis_type"], {})[r["metric_name"]] = r["metric_value"]

    for v in vertices:
        v["metrics"] = metrics.get(v["id"], {})
    return vertices, edges
