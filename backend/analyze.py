"""
Notegraph offline analysis pass.

Loads the graph DB, runs the requested centrality algorithms and community
detection, and writes a JSON report:

  - graph stats (vertex / edge counts, density)
  - per-vertex scores for each centrality algorithm
  - community assignments, modularity and summary

Usage:
    python3 analyze.py                                   # all centralities + louvain baseline
    python3 analyze.py --db data/vault.db                # custom DB path
    python3 analyze.py --centrality pagerank closeness   # specific algorithms only
    python3 analyze.py --optimize                        # run Louvain optimisation
    python3 analyze.py --strength-threshold 2            # group by connection strength
    python3 analyze.py --store                           # also persist results to the DB

Output: JSON report written to data/graph_report.json (default).
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

BACKEND = Path(__file__).parent
sys.path.insert(0, str(BACKEND))

from db import DATA_DIR, DB_PATH, connect, init_schema  # noqa: E402
from queries.analysis import SQLiteResultSink  # noqa: E402
from queries.graph import fetch_graph_data  # noqa: E402
from analytics.centrality import CentralityAlgorithm, compute_centrality  # noqa: E402
from analytics.communities import CommunityAlgorithm, run_communities  # noqa: E402
from analytics.density import graph_stats  # noqa: E402
from analytics.errors import GraphAnalysisError  # noqa: E402
from analytics.results import centrality_results, community_assignments  # noqa: E402
from analytics.snapshot import build_snapshot  # noqa: E402

logger = logging.getLogger("analyze")


def run_report(
    conn,
    centralities: list[str],
    community_algorithm: str | None = CommunityAlgorithm.LOUVAIN.value,
    optimize: bool = False,
    store: bool = False,
    strength_threshold: float | None = None,
) -> dict:
    """Analyse the graph behind ``conn``; returns the report dict."""
    algorithms = [CentralityAlgorithm.parse(a) for a in centralities]
    community = CommunityAlgorithm.parse(community_algorithm) if community_algorithm else None

    vertices, edges = fetch_graph_data(conn)
    snapshot = build_snapshot(vertices, edges)
    report: dict = {"stats": graph_stats(snapshot), "centrality": {}}
    sink = SQLiteResultSink(conn)

    for algorithm in algorithms:
        t0 = time.time()
        scores = compute_centrality(snapshot, algorithm)
        logger.info("%s: %d vertices in %.2fs", algorithm.value, len(scores), time.time() - t0)
        report["centrality"][algorithm.value] = scores
        if store:
            # Each store replaces the previous centrality rows; the last algorithm wins.
            sink.store_centrality(centrality_results(scores, algorithm))

    if community is not None:
        result = run_communities(
            snapshot, community, optimize=optimize, strength_threshold=strength_threshold,
        )
        report["communities"] = {
            "algorithm":  community.value,
            "optimized":  optimize,
            "strengthThreshold": strength_threshold,
            **result,
        }
        if store:
            sink.store_communities(community.value, community_assignments(result, community))

    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Notegraph graph analysis pass.")
    parser.add_argument("--db", default=str(DB_PATH), help="Graph SQLite DB path")
    parser.add_argument("--out", default=str(DATA_DIR / "graph_report.json"),
                        help="Output JSON path")
    parser.add_argument("--centrality", nargs="*",
                        default=[a.value for a in CentralityAlgorithm],
                        help="Centrality algorithms to run (default: all)")
    parser.add_argument("--communities", default=CommunityAlgorithm.LOUVAIN.value,
                        help="Community algorithm, or 'none' to skip")
    parser.add_argument("--optimize", action="store_true",
                        help="Run Louvain optimisation instead of the singleton baseline")
    parser.add_argument("--strength-threshold", type=float, default=None,
                        help="Group vertices by connection strength (cannot be combined with --optimize)")
    parser.add_argument("--store", action="store_true",
                        help="Persist results into the DB")
    args = parser.parse_args(argv)
    if args.optimize and args.strength_threshold is not None:
        parser.error("--optimize and --strength-threshold cannot be combined")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    db_path = Path(args.db)
    if not db_path.exists():
        print(f"Graph DB not found: {db_path}", file=sys.stderr)
        return 1

    conn = connect(db_path)
    init_schema(conn)
    try:
        report = run_report(
            conn,
            args.centrality,
            None if args.communities == "none" else args.communities,
            optimize=args.optimize,
            store=args.store,
            strength_threshold=args.strength_threshold,
        )
    except GraphAnalysisError as exc:
        print(f"Analysis failed: {exc}", file=sys.stderr)
        return 2
    finally:
        conn.close()

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(report, indent=2))
    print(f"Report written to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
