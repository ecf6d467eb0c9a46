"""Core rules for classic 3x3 tic-tac-toe: win/draw evaluation and turn flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union


class Player(str, Enum):
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Player":
        return Player.O if self is Player.X else Player.X


Cell = Optional[Player]  # None means empty
Board = Tuple[Cell, ...]
Line = Tuple[int, int, int]

BOARD_SIZE = 9

WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


# ---------- Outcome ----------


@dataclass(frozen=True)
class Pending:
    """No result yet."""

    terminal = False


@dataclass(frozen=True)
class Win:
    player: Player
    line: Line
    terminal = True


@dataclass(frozen=True)
class Draw:
    terminal = True


Outcome = Union[Pending, Win, Draw]

PENDING = Pending()
DRAW = Draw()


def empty_board() -> Board:
    return (None,) * BOARD_SIZE


def evaluate(board: Sequence[Cell]) -> Outcome:
    """Return the outcome of ``board``.

    Lines are checked rows first, then columns, then diagonals; the first
    completed line is reported. Move counts and turn order are not
    validated, so impossible positions still get a verdict.
    """
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")

    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return Win(player=Player(v), line=line)
    if all(cell is not None for cell in board):
        return DRAW
    return PENDING


# ---------- Game ----------


class GameStatus(str, Enum):
    X_TO_MOVE = "x_to_move"
    O_TO_MOVE = "o_to_move"
    X_WON = "x_won"
    O_WON = "o_won"
    DRAW = "draw"


@dataclass
class TicTacToeGame:
    # Owned mutable state; the core functions only ever see snapshots
    cells: List[Cell] = field(default_factory=lambda: [None] * BOARD_SIZE)
    current_player: Player = Player.X

    # ---- API used by UI & AI ----

    def snapshot(self) -> Board:
        return tuple(self.cells)

    @property
    def outcome(self) -> Outcome:
        return evaluate(self.cells)

    @property
    def winner(self) -> Optional[Player]:
        outcome = self.outcome
        return outcome.player if isinstance(outcome, Win) else None

    @property
    def drawn(self) -> bool:
        return isinstance(self.outcome, Draw)

    @property
    def status(self) -> GameStatus:
        outcome = self.outcome
        if isinstance(outcome, Win):
            return GameStatus.X_WON if outcome.player is Player.X else GameStatus.O_WON
        if isinstance(outcome, Draw):
            return GameStatus.DRAW
        if self.current_player is Player.X:
            return GameStatus.X_TO_MOVE
        return GameStatus.O_TO_MOVE

    def available_moves(self) -> List[int]:
        if self.outcome.terminal:
            return []
        return [i for i, c in enumerate(self.cells) if c is None]

    def illegal_reason(
        self, index: int, player: Optional[Player] = None
    ) -> Optional[str]:
        """Why ``player`` may not play ``index`` right now, or None if it may."""
        if self.outcome.terminal:
            return "Game already finished"
        if not 0 <= index < BOARD_SIZE:
            return f"Cell index {index} is off the board"
        if self.cells[index] is not None:
            return "Cell already occupied"
        if player is not None and player is not self.current_player:
            return f"It is not {player.value}'s turn"
        return None

    def is_legal_move(self, index: int, player: Optional[Player] = None) -> bool:
        return self.illegal_reason(index, player) is None

    def play_move(self, index: int, player: Optional[Player] = None) -> Outcome:
        """Place the current player's mark at ``index`` and advance the turn."""
        reason = self.illegal_reason(index, player)
        if reason is not None:
            raise ValueError(reason)

        self.cells[index] = self.current_player
        outcome = self.outcome
        # Terminal positions keep the mover as current_player; the board is frozen
        if not outcome.terminal:
            self.current_player = self.current_player.opponent
        return outcome

    def reset(self) -> None:
        self.cells = [None] * BOARD_SIZE
        self.current_player = Player.X
