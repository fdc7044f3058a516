"""ttt_graph package.

Builds the deduplicated state graph of tic-tac-toe and labels every
reachable position with the outcomes SELF can still reach.
"""

from .errors import InvariantViolation
from .game import Action, Mover, Position, Progress, apply, legal_actions, progress
from .graph import GraphNode, Registry, explore
from .labels import Label, classify
from .propagate import try_finalize, verify

__all__ = [
    "Action",
    "GraphNode",
    "InvariantViolation",
    "Label",
    "Mover",
    "Position",
    "Progress",
    "Registry",
    "apply",
    "classify",
    "explore",
    "legal_actions",
    "progress",
    "try_finalize",
    "verify",
]
