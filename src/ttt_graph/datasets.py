"""
Dataset export for the labelled state graph.

Writes one row per position and one row per action edge, plus a manifest
recording counts, label distribution and checksums.
"""
from __future__ import annotations

import csv
import hashlib
import importlib.util
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from .game import Position, progress
from .graph import Registry, explore
from .report import summarize

DATASET_VERSION = "1.0.0"

NODE_FIELDS = ["position", "turn", "occupied", "progress", "label", "n_children", "n_parents"]
EDGE_FIELDS = ["position", "row", "col", "child", "child_label"]


@dataclass
class ExportArgs:
    out: Path
    format: str = "csv"  # one of: "csv", "parquet", "both"
    verbose: bool = False
    start: str | None = None  # board string; defaults to the empty board


def node_rows(registry: Registry) -> List[Dict[str, Any]]:
    rows = []
    for position in registry:
        node = registry[position]
        rows.append({
            "position": position.serialize(),
            "turn": position.turn.name.lower(),
            "occupied": position.occupied(),
            "progress": str(progress(position)),
            "label": node.label.name if node.label is not None else None,
            "n_children": len(node.children),
            "n_parents": len(node.parents),
        })
    return rows


def edge_rows(registry: Registry) -> List[Dict[str, Any]]:
    rows = []
    for position in registry:
        node = registry[position]
        for action, child in registry.children(node):
            rows.append({
                "position": position.serialize(),
                "row": action.row,
                "col": action.col,
                "child": child.position.serialize(),
                "child_label": child.label.name if child.label is not None else None,
            })
    return rows


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open('rb') as f:
        for chunk in iter(lambda: f.read(8192), b''):
            h.update(chunk)
    return h.hexdigest()


def _write_csv(path: Path, fieldnames: List[str], rows: List[Dict[str, Any]]) -> None:
    with path.open('w', newline='') as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        w.writerows(rows)


def run_export(args: ExportArgs) -> Path:
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="[%(levelname)s] %(message)s")
    fmt = (args.format or "csv").lower()
    if fmt not in {"csv", "parquet", "both"}:
        raise ValueError(f"Unknown export format: {args.format}")
    have_parquet = (importlib.util.find_spec('pandas') is not None
                    and importlib.util.find_spec('pyarrow') is not None)
    if fmt == "parquet" and not have_parquet:
        # fail before writing anything
        raise RuntimeError(
            "Parquet dependencies not available (install pandas and pyarrow). "
            "Use pip install .[parquet] to enable parquet support."
        )

    start = Position.parse(args.start) if args.start else Position.initial()
    logging.info("Exploring state graph from %s…", start)
    registry = explore(start)
    nodes = node_rows(registry)
    edges = edge_rows(registry)
    args.out.mkdir(parents=True, exist_ok=True)

    files: Dict[str, Any] = {
        "nodes_csv": None,
        "edges_csv": None,
        "nodes_parquet": None,
        "edges_parquet": None,
    }
    if fmt in {"csv", "both"}:
        nodes_csv = args.out / "ttt_graph_nodes.csv"
        edges_csv = args.out / "ttt_graph_edges.csv"
        _write_csv(nodes_csv, NODE_FIELDS, nodes)
        _write_csv(edges_csv, EDGE_FIELDS, edges)
        files["nodes_csv"] = str(nodes_csv)
        files["edges_csv"] = str(edges_csv)
        logging.info("Wrote CSVs: %s (%d rows), %s (%d rows)",
                     nodes_csv, len(nodes), edges_csv, len(edges))

    if fmt in {"parquet", "both"}:
        if have_parquet:
            import pandas as pd  # type: ignore

            nodes_parquet = args.out / "ttt_graph_nodes.parquet"
            edges_parquet = args.out / "ttt_graph_edges.parquet"
            pd.DataFrame(nodes, columns=NODE_FIELDS).to_parquet(nodes_parquet)
            pd.DataFrame(edges, columns=EDGE_FIELDS).to_parquet(edges_parquet)
            files["nodes_parquet"] = str(nodes_parquet)
            files["edges_parquet"] = str(edges_parquet)
            logging.info("Wrote Parquet files to %s", args.out)
        else:
            logging.warning(
                "Parquet dependencies not available; proceeding with CSV only, "
                "manifest will record parquet_written=false."
            )

    manifest = {
        "dataset_version": DATASET_VERSION,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "start": start.serialize(),
        "format": fmt,
        "summary": summarize(registry),
        "row_counts": {"nodes": len(nodes), "edges": len(edges)},
        "files": files,
        "checksums": {k: _sha256_file(Path(p)) for k, p in files.items() if p is not None},
        "parquet_written": files["nodes_parquet"] is not None,
    }
    (args.out / "manifest.json").write_text(json.dumps(manifest, indent=2))
    logging.info("Wrote manifest.json")
    return args.out
