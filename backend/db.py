"""
Database helpers shared across queries and routers.
No analysis logic lives here — only I/O primitives.
"""
import os
import sqlite3
from pathlib import Path

from fastapi import HTTPException

DATA_DIR = Path(os.environ.get("NOTEGRAPH_DATA_DIR", Path(__file__).parent.parent / "data"))
DB_PATH  = Path(os.environ.get("NOTEGRAPH_DB", DATA_DIR / "notegraph.db"))

SCHEMA = """
CREATE TABLE IF NOT EXISTS graph_vertices (
    id          TEXT PRIMARY KEY,
    label       TEXT NOT NULL DEFAULT '',
    type        TEXT DEFAULT 'concept',
    properties  TEXT,
    x_position  REAL,
    y_position  REAL,
    size        REAL DEFAULT 1.0,
    color       TEXT DEFAULT '#666666',
    created_at  INTEGER,
    updated_at  INTEGER
);

CREATE TABLE IF NOT EXISTS graph_edges (
    id                TEXT PRIMARY KEY,
    source_vertex_id  TEXT NOT NULL REFERENCES graph_vertices(id) ON DELETE CASCADE,
    target_vertex_id  TEXT NOT NULL REFERENCES graph_vertices(id) ON DELETE CASCADE,
    relationship_type TEXT DEFAULT 'relates_to',
    weight            REAL DEFAULT 1.0,
    direction         TEXT DEFAULT 'directed',
    properties        TEXT,
    created_at        INTEGER,
    updated_at        INTEGER
);

CREATE TABLE IF NOT EXISTS graph_analysis_results (
    id            TEXT PRIMARY KEY,
    vertex_id     TEXT NOT NULL REFERENCES graph_vertices(id) ON DELETE CASCADE,
    analysis_type TEXT NOT NULL,
    metric_name   TEXT NOT NULL,
    metric_value  REAL,
    computed_at   INTEGER
);

CREATE TABLE IF NOT EXISTS graph_communities (
    id           TEXT PRIMARY KEY,
    community_id INTEGER NOT NULL,
    vertex_id    TEXT NOT NULL REFERENCES graph_vertices(id) ON DELETE CASCADE,
    algorithm    TEXT NOT NULL,
    modularity   REAL,
    created_at   INTEGER
);

CREATE INDEX IF NOT EXISTS idx_analysis_vertex ON graph_analysis_results(vertex_id);
CREATE INDEX IF NOT EXISTS idx_communities_algorithm ON graph_communities(algorithm);
"""


def row_to_dict(row) -> dict:
    return dict(row)


def init_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA)
    conn.commit()


def connect(path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_db(create: bool = False) -> sqlite3.Connection:
    """Open the configured graph DB; 404 unless it exists or ``create`` is set."""
    if not DB_PATH.exists() and not create:
        raise HTTPException(
            status_code=404,
            detail=f"Graph database '{DB_PATH}' not found. Set NOTEGRAPH_DB or create it first.",
        )
    if create:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = connect(DB_PATH)
    init_schema(conn)
    return conn
