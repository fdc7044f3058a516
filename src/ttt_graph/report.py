"""
Text dump and summary counts for an explored registry.
"""
from __future__ import annotations

from collections import Counter
from typing import Dict, List, TextIO

from .game import Mover, ProgressKind, progress
from .graph import GraphNode, Registry
from .labels import Label


def _label_text(node: GraphNode) -> str:
    return str(node.label) if node.label is not None else "UNLABELLED"


def format_node(registry: Registry, node: GraphNode) -> List[str]:
    lines = [f"{node.position} - {_label_text(node)}"]
    for action, child in registry.children(node):
        lines.append(f"    {action} -> {child.position} - {_label_text(child)}")
    return lines


def write_report(registry: Registry, stream: TextIO) -> int:
    """Write every node in Position order; returns the number of nodes written."""
    count = 0
    for position in registry:
        for line in format_node(registry, registry[position]):
            stream.write(line + "\n")
        count += 1
    return count


def summarize(registry: Registry) -> Dict[str, object]:
    terminal = {"self": 0, "opponent": 0, "draw": 0}
    labels: Counter = Counter()
    for node in registry.nodes:
        prog = progress(node.position)
        if prog.kind is ProgressKind.WIN:
            terminal["self" if prog.winner is Mover.SELF else "opponent"] += 1
        elif prog.kind is ProgressKind.DRAW:
            terminal["draw"] += 1
        labels[_label_text(node)] += 1
    return {
        "positions": len(registry),
        "edges": registry.edge_count(),
        "terminal": terminal,
        "nonterminal": len(registry) - sum(terminal.values()),
        "labels": {label.name: labels.get(label.name, 0) for label in Label},
    }
