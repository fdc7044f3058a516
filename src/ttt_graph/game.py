"""
Game basics: positions, actions, rules and win/draw detection.
Teaching notes:
- A Position is a 3x3 grid of cells (empty, SELF or OPPONENT) plus whose turn it is.
- SELF always moves first from the empty board.
- A winning line ends the game immediately, even with empty cells left.
- Positions compare cell by cell (empty < SELF < OPPONENT), then by turn,
  so they can key an ordered report.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from functools import total_ordering
from typing import List, Optional, Tuple

from .errors import InvariantViolation

SIZE = 3

Cell = Optional["Mover"]
Grid = Tuple[Tuple[Cell, ...], ...]


def _lines() -> List[List[Tuple[int, int]]]:
    rows = [[(r, c) for c in range(SIZE)] for r in range(SIZE)]
    cols = [[(r, c) for r in range(SIZE)] for c in range(SIZE)]
    diag = [(i, i) for i in range(SIZE)]
    anti = [(i, SIZE - 1 - i) for i in range(SIZE)]
    return rows + cols + [diag, anti]


WIN_LINES = _lines()


class Mover(IntEnum):
    SELF = 1
    OPPONENT = 2

    def opposite(self) -> "Mover":
        return Mover.OPPONENT if self is Mover.SELF else Mover.SELF


@dataclass(frozen=True, order=True)
class Action:
    row: int
    col: int

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


class ProgressKind(Enum):
    ONGOING = "ongoing"
    DRAW = "draw"
    WIN = "win"


@dataclass(frozen=True)
class Progress:
    kind: ProgressKind
    winner: Optional[Mover] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind is not ProgressKind.ONGOING

    def __str__(self) -> str:
        if self.kind is ProgressKind.WIN:
            return f"win({self.winner.name.lower()})"
        return self.kind.value


ONGOING = Progress(ProgressKind.ONGOING)
DRAW = Progress(ProgressKind.DRAW)


def _cell_key(cell: Cell) -> int:
    return 0 if cell is None else int(cell)


@total_ordering
@dataclass(frozen=True)
class Position:
    board: Grid
    turn: Mover

    @classmethod
    def initial(cls) -> "Position":
        return cls(tuple(tuple(None for _ in range(SIZE)) for _ in range(SIZE)), Mover.SELF)

    @classmethod
    def parse(cls, text: str, turn: Optional[Mover] = None) -> "Position":
        """Read nine digits (0=empty, 1=SELF, 2=OPPONENT), row-major.

        Without an explicit turn, SELF is to move when both sides have the
        same number of marks, OPPONENT when SELF has one more.
        """
        raw = text.strip()
        if len(raw) != SIZE * SIZE or any(ch not in "012" for ch in raw):
            raise ValueError(f"Board must be {SIZE * SIZE} chars of 0/1/2, got {text!r}")
        cells = [None if ch == "0" else Mover(int(ch)) for ch in raw]
        if turn is None:
            n_self = cells.count(Mover.SELF)
            n_opp = cells.count(Mover.OPPONENT)
            if n_self == n_opp:
                turn = Mover.SELF
            elif n_self == n_opp + 1:
                turn = Mover.OPPONENT
            else:
                raise ValueError(f"Cannot infer turn from piece counts in {raw!r}")
        board = tuple(tuple(cells[r * SIZE:(r + 1) * SIZE]) for r in range(SIZE))
        return cls(board, turn)

    def serialize(self) -> str:
        return "".join(str(_cell_key(cell)) for row in self.board for cell in row)

    def sort_key(self) -> Tuple[Tuple[int, ...], int]:
        return tuple(_cell_key(cell) for row in self.board for cell in row), int(self.turn)

    def __lt__(self, other: "Position") -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.serialize()}/{self.turn.name.lower()}"

    def cell(self, row: int, col: int) -> Cell:
        return self.board[row][col]

    def occupied(self) -> int:
        return sum(1 for row in self.board for cell in row if cell is not None)

    def mirrored(self) -> "Position":
        """Swap every occupant and the turn.

        Not used for deduplication: positions are only merged when they are
        structurally equal.
        """
        board = tuple(
            tuple(None if cell is None else cell.opposite() for cell in row)
            for row in self.board
        )
        return Position(board, self.turn.opposite())


def progress(position: Position) -> Progress:
    for line in WIN_LINES:
        first = position.cell(*line[0])
        if first is not None and all(position.cell(r, c) == first for r, c in line[1:]):
            return Progress(ProgressKind.WIN, first)
    for row in position.board:
        if any(cell is None for cell in row):
            return ONGOING
    return DRAW


def legal_actions(position: Position) -> List[Action]:
    if progress(position).kind is ProgressKind.WIN:
        return []
    return [
        Action(r, c)
        for r in range(SIZE)
        for c in range(SIZE)
        if position.cell(r, c) is None
    ]


def apply(position: Position, action: Action) -> Position:
    if position.cell(action.row, action.col) is not None:
        raise InvariantViolation(f"{action} targets an occupied cell in {position}")
    rows = [list(row) for row in position.board]
    rows[action.row][action.col] = position.turn
    return Position(tuple(tuple(row) for row in rows), position.turn.opposite())
