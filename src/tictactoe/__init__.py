"""Tic-tac-toe package exposing game logic, the heuristic AI, and the web application."""

from .ai import HeuristicAI, select_move
from .game import Draw, Pending, Player, TicTacToeGame, Win, evaluate
from .ui import app

__all__ = [
    "Draw",
    "HeuristicAI",
    "Pending",
    "Player",
    "TicTacToeGame",
    "Win",
    "app",
    "evaluate",
    "select_move",
]
