from __future__ import annotations

import pickle
import random
import time

import pytest

from chessgraph.engine.errors import SearchCancelled, UnsupportedSearchLevel
from chessgraph.engine.position import STARTPOS_FEN, Position
from chessgraph.eval import SCORE_MAX
from chessgraph.search.service import (
    AI_LEVELS,
    CancelToken,
    DRAW_SCORE,
    SearchConfig,
    SearchService,
    validate_level,
)


MATE_IN_ONE = "7k/8/6K1/8/8/8/8/R7 w - - 0 1"
HANGING_QUEEN = "4k3/8/8/3q4/8/8/8/3RK3 w - - 0 1"
# White is in check and Qxa8 both escapes and mates
MATE_OUT_OF_CHECK = "r6k/6pp/2Q5/8/8/8/8/K7 w - - 0 1"


@pytest.mark.parametrize("level", [5, -1, 10, "x", None, True, 2.5, 0.1])
def test_unsupported_level_fails_without_mutation(level: object) -> None:
    position = Position.startpos()
    before = position.export_state()
    with pytest.raises(UnsupportedSearchLevel):
        SearchService().calculate_ai_moves(position, level)
    assert position.export_state() == before
    assert position.to_fen() == STARTPOS_FEN


def test_validate_level_accepts_numeric_strings() -> None:
    assert validate_level("0") == 0
    assert validate_level(4) == 4
    assert validate_level(3.0) == 3
    assert AI_LEVELS == (0, 1, 2, 3, 4)


def test_finds_mate_in_one() -> None:
    position = Position.from_fen(MATE_IN_ONE)
    service = SearchService(rng=random.Random(1))
    ranked = service.calculate_ai_moves(position, 1)

    assert len(ranked) == sum(len(t) for t in position.turn.moves.values())
    best = ranked[0]
    assert (best.from_sq, best.to_sq) == ("A1", "A8")
    assert best.score >= SCORE_MAX
    assert all(m.score < SCORE_MAX for m in ranked[1:])


def test_level_zero_takes_hanging_queen() -> None:
    position = Position.from_fen(HANGING_QUEEN)
    best = SearchService(rng=random.Random(0)).calculate_ai_move(position, 0)
    assert best is not None
    assert (best.from_sq, best.to_sq) == ("D1", "D5")


def test_ranking_is_descending_and_jitter_is_zero_or_one() -> None:
    position = Position.from_fen(HANGING_QUEEN)
    service = SearchService(rng=random.Random(5))
    ranked = service.calculate_ai_moves(position, 0)
    scores = [m.score for m in ranked]
    assert scores == sorted(scores, reverse=True)
    for m in ranked:
        raw = service.search(position, m.from_sq, m.to_sq, "white", 0)
        assert m.score - raw in (0, 1)


def test_seeded_rng_makes_search_reproducible() -> None:
    position = Position.startpos()
    first = SearchService(rng=random.Random(7)).calculate_ai_moves(position, 0)
    second = SearchService(rng=random.Random(7)).calculate_ai_moves(position, 0)
    assert first == second


def test_search_leaves_position_untouched() -> None:
    position = Position.from_fen(MATE_IN_ONE)
    before = position.export_state()
    SearchService().calculate_ai_moves(position, 1)
    assert position.export_state() == before


def test_no_legal_moves_yields_empty_ranking() -> None:
    position = Position.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    service = SearchService()
    assert service.calculate_ai_moves(position, 1) == []
    assert service.calculate_ai_move(position, 1) is None


def test_check_extension_detects_mate_at_depth_limit() -> None:
    position = Position.from_fen(MATE_OUT_OF_CHECK)
    assert position.in_check("white")

    extended = SearchService(SearchConfig(extend_when_in_check=True))
    assert extended.search(position, "C6", "A8", "white", 0) == SCORE_MAX

    plain = SearchService(SearchConfig(extend_when_in_check=False))
    assert plain.search(position, "C6", "A8", "white", 0) < SCORE_MAX


def test_cancelled_token_aborts_search() -> None:
    token = CancelToken()
    token.cancel()
    with pytest.raises(SearchCancelled):
        SearchService().calculate_ai_moves(Position.startpos(), 1, token)


def test_expired_deadline_aborts_search() -> None:
    with pytest.raises(SearchCancelled):
        SearchService().calculate_ai_moves(
            Position.startpos(), 1, CancelToken(deadline=time.time() - 1)
        )
    with pytest.raises(SearchCancelled):
        SearchService(SearchConfig(deadline_ms=0)).calculate_ai_moves(Position.startpos(), 1)


def test_cancel_token_pickles_to_its_deadline() -> None:
    token = CancelToken.after_ms(5000)
    copy = pickle.loads(pickle.dumps(token))
    assert copy.deadline == token.deadline
    assert not copy.cancelled


def test_parallel_root_scoring_matches_sequential() -> None:
    position = Position.from_fen(HANGING_QUEEN)
    sequential = SearchService(rng=random.Random(3)).calculate_ai_moves(position, 1)
    parallel = SearchService(
        SearchConfig(workers=2, use_processes=False), rng=random.Random(3)
    ).calculate_ai_moves(position, 1)
    assert parallel == sequential


# Qe7-f7 leaves Black without a move and not in check
STALEMATE_TRAP = "7k/4Q3/6K1/8/8/8/8/8 w - - 0 1"


def test_stalemating_move_scores_as_draw() -> None:
    position = Position.from_fen(STALEMATE_TRAP)
    assert SearchService().search(position, "E7", "F7", "white", 1) == DRAW_SCORE


def test_winning_side_avoids_stalemate() -> None:
    position = Position.from_fen(STALEMATE_TRAP)
    ranked = SearchService(rng=random.Random(2)).calculate_ai_moves(position, 1)
    best = ranked[0]
    assert (best.from_sq, best.to_sq) != ("E7", "F7")
    assert best.score >= SCORE_MAX
    stalemate = next(m for m in ranked if (m.from_sq, m.to_sq) == ("E7", "F7"))
    assert stalemate.score in (DRAW_SCORE, DRAW_SCORE + 1)


def test_process_pool_scoring_matches_sequential() -> None:
    position = Position.from_fen(HANGING_QUEEN)
    sequential = SearchService(rng=random.Random(4)).calculate_ai_moves(position, 1)
    pooled = SearchService(SearchConfig(workers=2), rng=random.Random(4)).calculate_ai_moves(
        position, 1
    )
    assert pooled == sequential


def test_expired_deadline_aborts_process_pool_search() -> None:
    service = SearchService(SearchConfig(workers=2, deadline_ms=0))
    assert service.config.use_processes
    with pytest.raises(SearchCancelled):
        service.calculate_ai_moves(Position.startpos(), 1)
