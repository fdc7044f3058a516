"""
Incremental backward induction over the state graph.
Teaching notes:
- A node can be labelled once every legal action has a child node and every
  child is labelled.
- Labelling a node may complete its parents, so they are queued and retried;
  each node is labelled at most once, so the worklist always drains.
"""
from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Optional

from .errors import InvariantViolation
from .game import legal_actions, progress
from .labels import Label, classify, terminal_label

if TYPE_CHECKING:
    from .graph import GraphNode, Registry


def recompute_label(registry: "Registry", node: "GraphNode") -> Optional[Label]:
    """Label implied by the node's children, or None if not yet determinable."""
    if len(legal_actions(node.position)) != len(node.children):
        return None
    child_labels = [registry.node(i).label for i in node.children.values()]
    if any(label is None for label in child_labels):
        return None
    prog = progress(node.position)
    if prog.is_terminal:
        return terminal_label(prog)
    return classify(node.position.turn, child_labels)


def try_finalize(registry: "Registry", node: "GraphNode") -> int:
    """Label ``node`` if possible and cascade to its ancestors.

    Returns the number of nodes labelled by this call.
    """
    labelled = 0
    work = deque([node.index])
    while work:
        current = registry.node(work.popleft())
        if current.label is not None:
            continue
        label = recompute_label(registry, current)
        if label is None:
            continue
        current.assign(label)
        labelled += 1
        work.extend(current.parents)
    return labelled


def verify(registry: "Registry") -> None:
    """Check labels and links of a fully explored registry."""
    for node in registry.nodes:
        if node.label is None:
            raise InvariantViolation(f"{node.position} was never labelled")
        for parent in node.parents:
            if not 0 <= parent < len(registry.nodes):
                raise InvariantViolation(f"{node.position} has a dangling parent link {parent}")
            if node.index not in registry.node(parent).children.values():
                raise InvariantViolation(
                    f"{registry.node(parent).position} does not lead to {node.position}"
                )
        expected = recompute_label(registry, node)
        if expected is not node.label:
            raise InvariantViolation(
                f"{node.position} labelled {node.label} but children imply {expected}"
            )
