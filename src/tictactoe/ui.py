"""FastAPI-powered web UI for playing tic-tac-toe against the computer."""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .ai import HeuristicAI
from .game import Player, TicTacToeGame, Win


logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game and its computer opponent."""

    game: TicTacToeGame
    ai: HeuristicAI
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    # Bumped on every applied move and on reset; a scheduled computer move
    # is only applied if the epoch it was scheduled for is still current.
    epoch: int = 0
    last_active: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic Tac Toe", description="Player (X) vs. Computer (O)")


HUMAN_PLAYER = Player.X
AI_THINK_DELAY: float = float(os.environ.get("TICTACTOE_THINK_DELAY", "0.7"))
SESSION_TTL_SECONDS = 60 * 30  # 30 minutes


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _cleanup_sessions() -> None:
    """Remove games nobody has touched for SESSION_TTL_SECONDS."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("Expired %d idle game(s)", len(expired))


def _create_session() -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    _cleanup_sessions()
    session = GameSession(game=TicTacToeGame(), ai=HeuristicAI(player=Player.O))
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s", session_id)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_active = time.time()
    return session


def _run_ai_turn(game_id: str, epoch: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        if session.epoch != epoch:
            logger.info("Discarding stale computer move for game %s", game_id)
            return
        try:
            game = session.game
            if not game.available_moves():
                return
            if game.current_player is not session.ai.player:
                return
            cell_index = session.ai.choose(game)
            game.play_move(cell_index, session.ai.player)
            session.epoch += 1
            session.move_log.append(
                {"player": session.ai.player.value, "cellIndex": cell_index}
            )
            logger.debug("Game %s: computer played %d", game_id, cell_index)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        outcome = game.outcome
        state: Dict[str, object] = {
            "id": game_id,
            "board": [c.value if c is not None else "" for c in game.cells],
            "currentPlayer": game.current_player.value,
            "status": game.status.value,
            "winner": outcome.player.value if isinstance(outcome, Win) else None,
            "winningLine": list(outcome.line) if isinstance(outcome, Win) else None,
            "drawn": game.drawn,
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
            "availableMoves": [
                i
                for i in range(len(game.cells))
                if game.is_legal_move(i, HUMAN_PLAYER)
            ],
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        game = session.game
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="Computer is thinking")

        try:
            outcome = game.play_move(cell_index, HUMAN_PLAYER)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.epoch += 1
        session.move_log.append(
            {"player": HUMAN_PLAYER.value, "cellIndex": cell_index}
        )
        logger.debug("Game %s: player played %d", game_id, cell_index)

        should_schedule_ai = (
            not outcome.terminal and game.current_player is session.ai.player
        )
        if should_schedule_ai:
            session.ai_pending = True
        epoch = session.epoch

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id, epoch)


def _reset_session(game_id: str, session: GameSession) -> None:
    with session.lock:
        session.game.reset()
        session.move_log.clear()
        session.ai_pending = False
        session.epoch += 1
    logger.info("Reset game %s", game_id)


@app.post("/api/game")
def create_game() -> Dict[str, object]:
    game_id, session = _create_session()
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _reset_session(game_id, session)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe</title>
    <style>
      :root {
        color-scheme: dark;
        font-family: ui-monospace, SFMono-Regular, Menlo, Consolas, monospace;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        align-items: center;
        justify-content: center;
        background: #111827;
        color: white;
      }
      main {
        display: flex;
        flex-direction: column;
        align-items: center;
        padding: 2rem;
        border-radius: 16px;
        border: 1px solid #374151;
        background: rgba(17, 24, 39, 0.5);
        box-shadow: 0 25px 50px rgba(0, 0, 0, 0.5);
      }
      h1 {
        margin: 0 0 0.5rem;
        font-size: 2.6rem;
        background: linear-gradient(to right, #60a5fa, #ec4899);
        -webkit-background-clip: text;
        background-clip: text;
        color: transparent;
      }
      .tagline {
        margin: 0 0 1.5rem;
        color: #9ca3af;
      }
      #status {
        font-size: 1.6rem;
        font-weight: 600;
        margin-bottom: 1rem;
        transition: color 0.5s;
      }
      #status.x { color: #60a5fa; }
      #status.o { color: #f472b6; }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.25rem;
      }
      .cell {
        width: 6rem;
        height: 6rem;
        margin: 0.25rem;
        border: none;
        border-radius: 8px;
        background: #1f2937;
        font: inherit;
        font-size: 3.5rem;
        font-weight: 700;
        cursor: pointer;
        transition: transform 0.3s, background 0.3s;
      }
      .cell:hover { background: #374151; transform: scale(1.05); }
      .cell.x { color: #60a5fa; }
      .cell.o { color: #f472b6; }
      .cell.winning { background: rgba(34, 197, 94, 0.3); }
      #replay {
        margin-top: 1.5rem;
        padding: 0.75rem 2rem;
        border: none;
        border-radius: 8px;
        font: inherit;
        font-weight: 600;
        color: white;
        background: linear-gradient(to right, #a855f7, #4f46e5);
        cursor: pointer;
      }
      .hidden { display: none; }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic Tac Toe</h1>
      <p class=\"tagline\">Player (X) vs. Computer (O)</p>
      <div id=\"status\">Setting up your game…</div>
      <div id=\"board\" class=\"board\"></div>
      <p id=\"message\"></p>
      <button id=\"replay\" class=\"hidden\">Play Again</button>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const replayButton = document.getElementById('replay');
      let gameId = null;
      let gameState = null;
      let pollHandle = null;

      for (let i = 0; i < 9; i++) {
        const cell = document.createElement('button');
        cell.className = 'cell';
        cell.addEventListener('click', () => sendMove(i));
        boardEl.appendChild(cell);
      }

      function statusText(state) {
        if (state.winner) {
          return state.winner === 'X' ? 'You Win!' : 'Computer Wins!';
        }
        if (state.drawn) {
          return "It's a Draw!";
        }
        return state.currentPlayer === 'X' ? 'Your Turn (X)' : 'Computer is thinking...';
      }

      function render() {
        const winning = gameState.winningLine || [];
        boardEl.querySelectorAll('.cell').forEach((cell, index) => {
          const value = gameState.board[index];
          cell.textContent = value;
          cell.className = 'cell';
          if (value) cell.classList.add(value.toLowerCase());
          if (winning.includes(index)) cell.classList.add('winning');
        });
        statusEl.textContent = statusText(gameState);
        statusEl.className = gameState.winner ? gameState.winner.toLowerCase() : '';
        replayButton.classList.toggle('hidden', !(gameState.winner || gameState.drawn));
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        render();
        window.clearTimeout(pollHandle);
        if (gameState.aiPending) {
          pollHandle = window.setTimeout(poll, 250);
        }
      }

      async function request(method, url, body) {
        const response = await fetch(url, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : undefined,
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          throw new Error(payload?.detail || 'Request failed');
        }
        return payload;
      }

      async function poll() {
        try {
          setState(await request('GET', `/api/game/${gameId}`));
        } catch (error) {
          console.error('Polling failed', error);
        }
      }

      async function sendMove(cellIndex) {
        if (!gameState || !gameState.availableMoves.includes(cellIndex)) {
          return;
        }
        messageEl.textContent = '';
        try {
          setState(await request('POST', `/api/game/${gameId}/move`, { cellIndex }));
        } catch (error) {
          messageEl.textContent = error.message;
        }
      }

      replayButton.addEventListener('click', async () => {
        messageEl.textContent = '';
        try {
          setState(await request('POST', `/api/game/${gameId}/reset`));
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        }
      });

      request('POST', '/api/game').then(setState).catch((error) => {
        messageEl.textContent = error.message || 'Network error. Please try again.';
      });
    </script>
  </body>
</html>
"""
