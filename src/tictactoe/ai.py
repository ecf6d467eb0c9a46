"""Fixed-priority heuristic opponent: win, block, center, corner, side."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import random

from .game import BOARD_SIZE, Cell, Player, TicTacToeGame, Win, evaluate


CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)
SIDES: Tuple[int, ...] = (1, 3, 5, 7)


def _empty_cells(board: Sequence[Cell]) -> List[int]:
    return [i for i, c in enumerate(board) if c is None]


def _completing_cell(
    board: Sequence[Cell], player: Player, empty: List[int]
) -> Optional[int]:
    """First empty cell (ascending) where ``player`` would complete a line."""
    for move in empty:
        trial = list(board)
        trial[move] = player
        outcome = evaluate(trial)
        if isinstance(outcome, Win) and outcome.player is player:
            return move
    return None


def select_move(
    board: Sequence[Cell],
    player: Player = Player.O,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick a cell for ``player`` on ``board``, or None if the board is full.

    This is a one-ply greedy rule, not a search: it never sets up or
    defends against forks. The caller is expected to only ask for a move
    while the game is still pending.
    """
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")
    if rng is None:
        rng = random.Random()

    empty = _empty_cells(board)

    # 1) Win, 2) block
    for mark in (player, player.opponent):
        move = _completing_cell(board, mark, empty)
        if move is not None:
            return move

    # 3) Center
    if CENTER in empty:
        return CENTER

    # 4) Corner, 5) side, chosen at random within each group
    for group in (CORNERS, SIDES):
        open_cells = [i for i in group if i in empty]
        if open_cells:
            return rng.choice(open_cells)

    return empty[0] if empty else None


@dataclass
class HeuristicAI:
    """Computer player bound to one mark and one randomness source.

    - HeuristicAI(player=Player.O, rng=random.Random(seed))
    - choose(game) -> cell_index
    """

    player: Player = Player.O
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, game: TicTacToeGame) -> int:
        if game.current_player is not self.player:
            raise ValueError("It is not this AI player's turn")
        if not game.available_moves():
            raise RuntimeError("No valid moves available")
        return select_move(game.snapshot(), self.player, self.rng)
