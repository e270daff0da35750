"""
Shared fixtures and helpers for the graph analytics tests.

All tests run against synthetic graphs — either plain vertex/edge dicts fed
straight into the engine, or an in-memory SQLite DB with the graph schema.
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

import sqlite3  # noqa: E402

import pytest  # noqa: E402

from db import connect, init_schema  # noqa: E402


# --------------------------------------------------------------------------
# Graph builders
# --------------------------------------------------------------------------

def vertex(vid: str, **extra) -> dict:
    return {"id": vid, "label": vid.upper(), **extra}


def edge(src: str, tgt: str, weight: float = 1.0, direction: str = "directed", eid: str = None) -> dict:
    return {
        "id": eid or f"{src}->{tgt}",
        "source_vertex_id": src,
        "target_vertex_id": tgt,
        "weight": weight,
        "direction": direction,
    }


def undirected(src: str, tgt: str, weight: float = 1.0) -> dict:
    return edge(src, tgt, weight, "undirected", eid=f"{src}--{tgt}")


def vertices(*ids: str) -> list[dict]:
    return [vertex(v) for v in ids]


def two_triangles() -> tuple[list[dict], list[dict]]:
    """Triangles a-b-c and d-e-f joined by the bridge c-d, all undirected."""
    vs = vertices("a", "b", "c", "d", "e", "f")
    es = [
        undirected("a", "b"), undirected("b", "c"), undirected("a", "c"),
        undirected("d", "e"), undirected("e", "f"), undirected("d", "f"),
        undirected("c", "d"),
    ]
    return vs, es


# --------------------------------------------------------------------------
# DB helpers
# --------------------------------------------------------------------------

def seed_graph(conn: sqlite3.Connection, vs: list[dict], es: list[dict]) -> None:
    for i, v in enumerate(vs):
        conn.execute(
            "INSERT INTO graph_vertices (id, label, type, properties, created_at) VALUES (?, ?, ?, ?, ?)",
            (v["id"], v.get("label", ""), v.get("type", "concept"), v.get("properties"), i),
        )
    for i, e in enumerate(es):
        conn.execute(
            "INSERT INTO graph_edges (id, source_vertex_id, target_vertex_id, weight, direction, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (e["id"], e["source_vertex_id"], e["target_vertex_id"], e["weight"], e["direction"], i),
        )
    conn.commit()


@pytest.fixture
def conn():
    c = connect(":memory:")
    init_schema(c)
    yield c
    c.close()
