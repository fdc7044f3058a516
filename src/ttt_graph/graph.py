"""
State graph construction with deduplication.
Teaching notes:
- Every distinct Position gets exactly one GraphNode, however many move
  orders reach it, so the move tree collapses into a DAG with shared nodes.
- Nodes live in an arena (a list) and refer to each other by index. Parent
  links exist only to drive label propagation.
- Exploration is depth-first with an explicit stack; a node is labelled as
  soon as all of its children have been explored.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import InvariantViolation
from .game import Action, Position, apply, legal_actions
from .labels import Label
from .propagate import try_finalize

ActionOrder = Callable[[Sequence[Action]], Iterable[Action]]


@dataclass
class GraphNode:
    index: int
    position: Position
    children: Dict[Action, int] = field(default_factory=dict)
    parents: List[int] = field(default_factory=list)
    label: Optional[Label] = None

    def assign(self, label: Label) -> None:
        if self.label is not None:
            raise InvariantViolation(
                f"{self.position} already labelled {self.label}, refusing {label}"
            )
        self.label = label


class Registry(Mapping):
    """Position -> GraphNode mapping produced by one exploration run.

    Iteration follows Position order, which keeps reports deterministic.
    """

    def __init__(self) -> None:
        self.nodes: List[GraphNode] = []
        self._index: Dict[Position, int] = {}

    def __getitem__(self, position: Position) -> GraphNode:
        return self.nodes[self._index[position]]

    def __iter__(self) -> Iterator[Position]:
        return iter(sorted(self._index, key=Position.sort_key))

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, position: object) -> bool:
        return position in self._index

    def node(self, index: int) -> GraphNode:
        return self.nodes[index]

    def add(self, position: Position) -> GraphNode:
        if position in self._index:
            raise InvariantViolation(f"{position} is already registered")
        node = GraphNode(index=len(self.nodes), position=position)
        self.nodes.append(node)
        self._index[position] = node.index
        return node

    def link(self, parent: GraphNode, action: Action, child: GraphNode) -> None:
        parent.children[action] = child.index
        child.parents.append(parent.index)

    def children(self, node: GraphNode) -> List[Tuple[Action, GraphNode]]:
        return [(a, self.nodes[i]) for a, i in sorted(node.children.items())]

    def parents(self, node: GraphNode) -> List[GraphNode]:
        return [self.nodes[i] for i in node.parents]

    def edge_count(self) -> int:
        return sum(len(n.children) for n in self.nodes)


def explore(
    start: Position,
    registry: Optional[Registry] = None,
    action_order: Optional[ActionOrder] = None,
) -> Registry:
    """Build the graph reachable from ``start`` and label every node.

    Re-exploring a registered position is a no-op. ``action_order`` can
    reorder each node's actions; labels do not depend on it.
    """
    if registry is None:
        registry = Registry()
    if start in registry:
        logging.debug("Position %s already explored", start)
        return registry

    def ordered(position: Position) -> Iterator[Action]:
        actions = legal_actions(position)
        return iter(action_order(actions) if action_order is not None else actions)

    before = len(registry)
    root = registry.add(start)
    stack: List[Tuple[GraphNode, Iterator[Action]]] = [(root, ordered(start))]
    while stack:
        node, pending = stack[-1]
        for action in pending:
            child_position = apply(node.position, action)
            if child_position in registry:
                registry.link(node, action, registry[child_position])
                continue
            child = registry.add(child_position)
            registry.link(node, action, child)
            stack.append((child, ordered(child_position)))
            break
        else:
            stack.pop()
            try_finalize(registry, node)

    logging.info(
        "Explored %d new positions from %s (%d total, %d edges)",
        len(registry) - before,
        start,
        len(registry),
        registry.edge_count(),
    )
    return registry
