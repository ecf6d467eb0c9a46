"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

import time

from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.game import Player
from tictactoe.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = 0.0


def _new_game() -> dict:
    response = client.post("/api/game")
    assert response.status_code == 200
    return response.json()


def test_create_game_and_first_move():
    payload = _new_game()
    assert payload["currentPlayer"] == "X"
    assert payload["status"] == "x_to_move"
    assert payload["board"] == [""] * 9
    assert payload["moveLog"] == []

    game_id = payload["id"]
    move_response = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 0})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["moveLog"][0] == {"player": "X", "cellIndex": 0}
    assert state["board"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    time.sleep(0.01)
    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["currentPlayer"] == "X"
    assert final_state["aiPending"] is False
    # Center is open and nothing to win or block
    assert final_state["lastMove"] == {"player": "O", "cellIndex": 4}
    assert final_state["board"][4] == "O"


def test_invalid_move_rejected():
    game_id = _new_game()["id"]

    first_move = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 4})
    assert first_move.status_code == 200

    # The cell stays occupied after the computer replies.
    duplicate_move = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 4})
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_out_of_range_cell_rejected():
    game_id = _new_game()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 9})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert client.post("/api/game/missing/reset").status_code == 404


def test_computer_blocks_and_wins():
    game_id = _new_game()["id"]
    client.post(f"/api/game/{game_id}/move", json={"cellIndex": 0})  # O takes 4
    client.post(f"/api/game/{game_id}/move", json={"cellIndex": 1})  # O blocks 2
    state = client.get(f"/api/game/{game_id}").json()
    assert state["board"][2] == "O"

    client.post(f"/api/game/{game_id}/move", json={"cellIndex": 8})  # O wins 2-4-6
    state = client.get(f"/api/game/{game_id}").json()
    assert state["winner"] == "O"
    assert state["winningLine"] == [2, 4, 6]
    assert state["status"] == "o_won"

    after_end = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 3})
    assert after_end.status_code == 400


def test_reset_restores_initial_state():
    game_id = _new_game()["id"]
    client.post(f"/api/game/{game_id}/move", json={"cellIndex": 0})

    response = client.post(f"/api/game/{game_id}/reset")
    assert response.status_code == 200
    state = response.json()
    assert state["board"] == [""] * 9
    assert state["currentPlayer"] == "X"
    assert state["status"] == "x_to_move"
    assert state["winner"] is None
    assert state["moveLog"] == []
    assert state["aiPending"] is False


def test_stale_computer_move_is_discarded():
    game_id, session = ui._create_session()
    ui._apply_player_move(game_id, session, 0)
    scheduled_epoch = session.epoch
    assert session.ai_pending

    ui._reset_session(game_id, session)
    ui._run_ai_turn(game_id, scheduled_epoch)

    assert session.game.cells == [None] * 9
    assert session.game.current_player is Player.X
    assert session.move_log == []


def test_scheduled_computer_move_applies_when_current():
    game_id, session = ui._create_session()
    ui._apply_player_move(game_id, session, 0)

    ui._run_ai_turn(game_id, session.epoch)

    assert session.game.cells[4] is Player.O
    assert session.game.current_player is Player.X
    assert session.ai_pending is False


def test_index_page_served():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic Tac Toe" in response.text


def test_available_moves_follow_turn_and_outcome():
    game_id, session = ui._create_session()
    state = ui._serialize_session(game_id, session)
    assert state["availableMoves"] == list(range(9))

    ui._apply_player_move(game_id, session, 0)
    state = ui._serialize_session(game_id, session)
    # Computer to move: nothing is playable for the human
    assert state["availableMoves"] == []

    ui._run_ai_turn(game_id, session.epoch)
    state = ui._serialize_session(game_id, session)
    assert state["availableMoves"] == [1, 2, 3, 5, 6, 7, 8]


def test_idle_sessions_expire():
    stale_id, stale = ui._create_session()
    stale.last_active -= ui.SESSION_TTL_SECONDS + 1

    fresh_id, _ = ui._create_session()

    assert stale_id not in ui.SESSIONS
    assert fresh_id in ui.SESSIONS
    assert client.get(f"/api/game/{stale_id}").status_code == 404


def test_fetching_game_keeps_it_alive():
    game_id, session = ui._create_session()
    session.last_active -= ui.SESSION_TTL_SECONDS - 5

    assert client.get(f"/api/game/{game_id}").status_code == 200
    ui._create_session()

    assert game_id in ui.SESSIONS


def test_play_again_errors_are_shown():
    page = client.get("/").text
    handler = page[page.index("replayButton.addEventListener") :]
    handler = handler[: handler.index("});")]
    assert "try {" in handler
    assert "catch (error)" in handler
    assert "messageEl.textContent = error.message" in handler
