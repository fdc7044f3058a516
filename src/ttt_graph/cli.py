from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .datasets import ExportArgs, run_export
from .errors import InvariantViolation
from .game import Mover, Position, progress
from .graph import Registry, explore
from .paths import data_out
from .propagate import verify
from .report import summarize, write_report
from .solver import solve_value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ttt-graph", description="Tic-tac-toe outcome graph CLI")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument(
        "--info",
        action="store_true",
        help="Print environment and dependency info and exit",
    )

    p_rep = sub.add_parser("report", help="Dump every position with its label and children")
    p_rep.add_argument("--out", type=Path, default=None, help="Write to a file instead of stdout")

    p_cls = sub.add_parser(
        "classify",
        help="Show the label of a board (9 digits, 0=empty,1=self,2=opponent)",
    )
    p_cls.add_argument("--board", help="Board string, e.g., 100020000 (omit with --stdin)")
    p_cls.add_argument(
        "--turn",
        choices=["self", "opponent"],
        default=None,
        help="Side to move (default: inferred from piece counts)",
    )
    p_cls.add_argument(
        "--stdin", action="store_true", help="Read many boards from stdin and stream CSV output"
    )

    p_stats = sub.add_parser("stats", help="Count positions, terminals and labels")
    p_stats.add_argument(
        "--verify", action="store_true", help="Recompute every label and check graph links"
    )

    p_export = sub.add_parser(
        "export",
        help="Export nodes/edges (CSV by default; parquet requires pandas+pyarrow)",
    )
    p_export.add_argument(
        "--out", type=Path, default=None, help="Output directory (default: $TTT_GRAPH_OUT or data_graph)"
    )
    p_export.add_argument(
        "--format",
        choices=["csv", "parquet", "both"],
        default="csv",
        help="Export format: csv (default), parquet, both",
    )
    p_export.add_argument("--start", default=None, help="Board to explore from (default: empty)")

    return p


def _print_info() -> None:
    import importlib.util
    import platform

    print(f"python={sys.version.split()[0]} platform={platform.platform()}")
    for pkg in ["pandas", "pyarrow"]:
        spec = importlib.util.find_spec(pkg)
        if spec is None:
            print(f"{pkg}=<not installed>")
        else:
            mod = __import__(pkg)
            ver = getattr(mod, "__version__", "?")
            print(f"{pkg}={ver}")


def _lookup(registry: Registry, raw: str, turn: Optional[str]) -> Position:
    mover = Mover[turn.upper()] if turn else None
    pos = Position.parse(raw, turn=mover)
    if pos not in registry:
        raise ValueError(f"Board {raw} is not reachable from the empty board")
    return pos


def _classify(ns: argparse.Namespace) -> int:
    registry = explore(Position.initial())
    if ns.stdin:
        import csv

        w = csv.writer(sys.stdout)
        w.writerow(["board", "turn", "progress", "label", "minimax"])
        for line in sys.stdin:
            raw = line.strip()
            if not raw:
                continue
            try:
                pos = _lookup(registry, raw, ns.turn)
            except ValueError as e:
                logging.debug("Skipping %r: %s", raw, e)
                continue
            w.writerow([
                raw,
                pos.turn.name.lower(),
                str(progress(pos)),
                registry[pos].label.name,
                solve_value(pos),
            ])
        return 0
    try:
        pos = _lookup(registry, ns.board or "", ns.turn)
    except ValueError as e:
        logging.error("%s", e)
        return 2
    node = registry[pos]
    logging.info(
        "position=%s progress=%s label=%s minimax=%d",
        pos,
        progress(pos),
        node.label.name,
        solve_value(pos),
    )
    for action, child in registry.children(node):
        logging.info("  %s -> %s label=%s", action, child.position, child.label.name)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    # Early exits
    if getattr(ns, "version", False):
        try:
            from importlib.metadata import version as _ver

            print(_ver("ttt-graph"))
        except Exception:
            print("unknown")
        return 0
    if getattr(ns, "info", False):
        _print_info()
        return 0

    if ns.cmd == "report":
        registry = explore(Position.initial())
        if ns.out is None:
            write_report(registry, sys.stdout)
        else:
            ns.out.parent.mkdir(parents=True, exist_ok=True)
            with ns.out.open("w") as f:
                n = write_report(registry, f)
            logging.info("Wrote %d positions to %s", n, ns.out)
        return 0

    if ns.cmd == "classify":
        if not ns.stdin and not ns.board:
            logging.error("Provide --board or --stdin")
            return 2
        return _classify(ns)

    if ns.cmd == "stats":
        registry = explore(Position.initial())
        if ns.verify:
            try:
                verify(registry)
            except InvariantViolation as e:
                logging.error("Verification failed: %s", e)
                return 1
            logging.info("Verified %d positions", len(registry))
        s = summarize(registry)
        logging.info("positions=%d edges=%d nonterminal=%d", s["positions"], s["edges"], s["nonterminal"])
        logging.info("terminal=%s", s["terminal"])
        logging.info("labels=%s", s["labels"])
        return 0

    if ns.cmd == "export":
        try:
            out = run_export(ExportArgs(
                out=ns.out if ns.out is not None else data_out(),
                format=ns.format,
                verbose=ns.verbose,
                start=ns.start,
            ))
        except InvariantViolation:
            raise
        except (ValueError, RuntimeError) as e:
            logging.error("%s", e)
            return 2
        logging.info("Exported graph to: %s", out)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
