from __future__ import annotations

import random

from fastapi.testclient import TestClient

from chessgraph.engine.position import STARTPOS_FEN
from chessgraph.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app(rng=random.Random(0)))


def test_healthz_ok() -> None:
    r = _client().get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert "x-request-id" in r.headers


def test_request_id_is_echoed() -> None:
    r = _client().get("/healthz", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"


def test_status_defaults_to_start_position() -> None:
    r = _client().post("/api/status", json={})
    assert r.status_code == 200
    body = r.json()
    assert body["fen"] == STARTPOS_FEN
    assert body["turn"] == "white"
    assert body["isFinished"] is False and body["checkMate"] is False
    assert sum(len(t) for t in body["moves"].values()) == 20


def test_moves_for_board_descriptor() -> None:
    board = {"pieces": {"E1": "K", "E8": "k", "A2": "r"}, "turn": "white"}
    r = _client().post("/api/moves", json={"board": board})
    assert r.status_code == 200
    assert sorted(r.json()["E1"]) == ["D1", "F1"]


def test_move_applies_and_returns_new_state() -> None:
    r = _client().post("/api/move", json={"from": "e2", "to": "e4"})
    assert r.status_code == 200
    body = r.json()
    assert body["pieces"]["E4"] == "P" and "E2" not in body["pieces"]
    assert body["turn"] == "black"
    assert body["enPassant"] == "E3"
    assert body["fen"] == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_move_accepts_exported_state_as_board() -> None:
    client = _client()
    state = client.post("/api/move", json={"from": "e2", "to": "e4"}).json()
    r = client.post("/api/move", json={"board": state, "from": "e7", "to": "e5"})
    assert r.status_code == 200
    assert r.json()["fen"] == "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq e6 0 2"


def test_ai_move_delivers_mate() -> None:
    r = _client().post("/api/ai-move", json={"fen": "7k/8/6K1/8/8/8/8/R7 w - - 0 1", "level": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["move"]["from"] == "A1" and body["move"]["to"] == "A8"
    assert body["move"]["score"] >= 1000
    assert body["board"]["checkMate"] is True
    assert body["board"]["isFinished"] is True


def test_ai_move_without_legal_moves() -> None:
    r = _client().post("/api/ai-move", json={"fen": "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1", "level": 0})
    assert r.status_code == 200
    body = r.json()
    assert body["move"] is None
    assert body["board"]["isFinished"] is True and body["board"]["checkMate"] is False


def test_fen_endpoint() -> None:
    board = {"pieces": {"E1": "K", "H1": "R", "E8": "k"}, "castling": {"whiteLong": False}}
    r = _client().post("/api/fen", json={"board": board})
    assert r.status_code == 200
    assert r.json() == {"fen": "4k3/8/8/8/8/8/8/4K2R w Kkq - 0 1"}
