"""
Exact minimax values (memoized), from SELF's perspective.
Used as an independent reference: FORCED_WIN and FORCED_LOSE labels must
coincide with minimax wins and losses.
"""
from functools import lru_cache
from typing import Dict, Optional

from .game import Mover, Position, ProgressKind, apply, legal_actions, progress


@lru_cache(maxsize=None)
def solve_value(position: Position) -> int:
    """+1 if SELF wins with perfect play, -1 if OPPONENT wins, 0 for a draw."""
    prog = progress(position)
    if prog.kind is ProgressKind.WIN:
        return 1 if prog.winner is Mover.SELF else -1
    if prog.kind is ProgressKind.DRAW:
        return 0
    values = [solve_value(apply(position, a)) for a in legal_actions(position)]
    return max(values) if position.turn is Mover.SELF else min(values)


def solve_all_reachable(start: Optional[Position] = None) -> Dict[Position, int]:
    """Minimax value of every position reachable from ``start``."""
    start = Position.initial() if start is None else start
    solved: Dict[Position, int] = {}
    stack = [start]
    while stack:
        pos = stack.pop()
        if pos in solved:
            continue
        solved[pos] = solve_value(pos)
        stack.extend(apply(pos, a) for a in legal_actions(pos))
    return solved
