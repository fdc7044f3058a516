"""
Outcome labels and the rule that merges child labels into a parent label.
Teaching notes:
- Labels always describe outcomes for SELF, whoever is to move.
- Each label names the set of outcomes (W, D, L) that remain reachable.
- The rule table is ordered: the first matching row wins, and several inputs
  match more than one row (e.g. SELF to move with both W and L children).
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, FrozenSet, Iterable, Tuple

from .errors import InvariantViolation
from .game import Mover, Progress, ProgressKind


class Label(Enum):
    FORCED_WIN = "W"
    NEVER_LOSE = "WD"
    UNDETERMINED = "WDL"
    NEVER_DRAW = "WL"
    FORCED_DRAW = "D"
    NEVER_WIN = "DL"
    FORCED_LOSE = "L"

    @property
    def outcomes(self) -> FrozenSet[str]:
        return frozenset(self.value)

    def __str__(self) -> str:
        return self.name


W = Label.FORCED_WIN
WD = Label.NEVER_LOSE
WDL = Label.UNDETERMINED
WL = Label.NEVER_DRAW
D = Label.FORCED_DRAW
DL = Label.NEVER_WIN
L = Label.FORCED_LOSE

Rule = Tuple[Callable[[Mover, FrozenSet[Label]], bool], Label]

RULES: Tuple[Rule, ...] = (
    # forced win
    (lambda m, s: m is Mover.SELF and W in s, W),
    (lambda m, s: m is Mover.OPPONENT and s == {W}, W),
    # forced lose
    (lambda m, s: m is Mover.SELF and s == {L}, L),
    (lambda m, s: m is Mover.OPPONENT and L in s, L),
    # forced draw
    (lambda m, s: s == {D}, D),
    # never win
    (lambda m, s: m is Mover.OPPONENT and (D in s or DL in s), DL),
    (lambda m, s: s <= {D, DL, L}, DL),
    # never lose
    (lambda m, s: s.isdisjoint({WDL, WL, DL, L}), WD),
    # never draw
    (lambda m, s: s.isdisjoint({WD, WDL, D, DL}), WL),
)


def classify(mover: Mover, present: Iterable[Label]) -> Label:
    """Label a non-terminal position from the labels of all its children."""
    labels = frozenset(present)
    if not labels:
        raise InvariantViolation("classify needs at least one child label")
    for matches, label in RULES:
        if matches(mover, labels):
            return label
    return WDL


def terminal_label(prog: Progress) -> Label:
    if prog.kind is ProgressKind.DRAW:
        return D
    if prog.kind is ProgressKind.WIN:
        return W if prog.winner is Mover.SELF else L
    raise InvariantViolation("terminal_label called on an ongoing position")
