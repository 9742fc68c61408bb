from __future__ import annotations

from chessgraph.engine.game import Game
from chessgraph.engine.move import parse_move
from chessgraph.engine.position import Position


OPEN_CASTLING = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"


def _king_moves(position: Position) -> set[str]:
    assert position.turn.king is not None and position.turn.king.square is not None
    return set(position.turn.moves.get(position.turn.king.square.name, []))


def test_white_castling_available_when_clear_and_not_in_check() -> None:
    position = Position.from_fen(OPEN_CASTLING)
    assert {"G1", "C1"} <= _king_moves(position)


def test_kingside_castle_moves_rook_and_clears_white_rights() -> None:
    position = Position.from_fen(OPEN_CASTLING)
    position.move("E1", "G1")

    assert position.piece_at("G1").code == "K"  # type: ignore[union-attr]
    assert position.piece_at("F1").code == "R"  # type: ignore[union-attr]
    assert position.piece_at("H1") is None
    assert position.piece_at("E1") is None
    assert not position.castling.white_short and not position.castling.white_long
    assert position.castling.black_short and position.castling.black_long
    assert position.turn.color == "black"
    assert position.to_fen() == "r3k2r/8/8/8/8/8/8/R4RK1 b kq - 1 1"


def test_queenside_castle_moves_rook() -> None:
    position = Position.from_fen(OPEN_CASTLING)
    position.move("E1", "C1")
    assert position.to_fen() == "r3k2r/8/8/8/8/8/8/2KR3R b kq - 1 1"


def test_black_castles_and_fullmove_advances() -> None:
    position = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    position.move("E8", "G8")
    assert position.to_fen() == "r4rk1/8/8/8/8/8/8/R3K2R w KQ - 1 2"


def test_castling_blocked_when_in_check() -> None:
    position = Position.from_fen("4k3/4r3/8/8/8/8/8/R3K2R w KQ - 0 1")
    moves = _king_moves(position)
    assert "G1" not in moves and "C1" not in moves


def test_castling_through_attacked_square_is_illegal() -> None:
    # Black rook on f8 covers f1
    position = Position.from_fen("4kr2/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    moves = _king_moves(position)
    assert "G1" not in moves
    assert "C1" in moves


def test_castling_needs_empty_path_and_rook() -> None:
    position = Position.from_fen("r3k2r/8/8/8/8/8/8/RN2K2R w KQkq - 0 1")
    moves = _king_moves(position)
    assert "C1" not in moves and "G1" in moves

    position = Position.from_config(
        {"pieces": {"E1": "K", "H1": "R", "E8": "k"}}
    )
    moves = _king_moves(position)
    assert "G1" in moves and "C1" not in moves


def test_rights_only_ever_decrease() -> None:
    game = Game.from_fen(OPEN_CASTLING)
    history = [game.position.castling.to_dict()]

    game.apply_move(parse_move("h1h2"))
    assert not game.position.castling.white_short and game.position.castling.white_long
    history.append(game.position.castling.to_dict())

    # Rook leaves a8 and captures on a1: both long rights go
    game.apply_move(parse_move("a8a1"))
    assert not game.position.castling.black_long
    assert not game.position.castling.white_long
    history.append(game.position.castling.to_dict())

    game.apply_move(parse_move("e1e2"))
    history.append(game.position.castling.to_dict())
    game.apply_move(parse_move("h8h7"))
    history.append(game.position.castling.to_dict())

    for before, after in zip(history, history[1:]):
        for key, value in after.items():
            assert not (value and not before[key])
    assert not any(history[-1].values())
