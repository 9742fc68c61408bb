"""Evaluation heuristic.

Pure and side-effect free: reads a Position, never mutates it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Optional

from chessgraph.engine.piece import PAWN
from chessgraph.engine.square import opposite

if TYPE_CHECKING:
    from chessgraph.engine.position import Position
    from chessgraph.engine.side import Side


SCORE_MIN: Final = -1000
SCORE_MAX: Final = 1000

# Material weight relative to the positional terms
SCORE_MULTIPLIER: Final = 10
PAWN_ADVANCE_BONUS: Final = 1


def calculate_score(position: "Position", color: Optional[str] = None) -> int:
    """Return a static score of ``position`` from ``color``'s point of view.

    Checkmate short-circuits to ``SCORE_MIN`` when ``color`` is the mated side
    to move and ``SCORE_MAX`` otherwise. Any other position scores material
    (value x 10), a bonus per pawn that left its starting rank and, for every
    enemy piece attacked, that piece's value minus one; the opponent's
    symmetric sum is subtracted.
    """
    if color is None:
        color = position.turn.color
    if position.checkmate:
        return SCORE_MIN if position.turn.color == color else SCORE_MAX
    own = position.side(color)
    enemy = position.side(opposite(color))
    return _side_score(position, own) - _side_score(position, enemy)


def _side_score(position: "Position", side: "Side") -> int:
    score = 0
    for piece in side.live_pieces():
        score += piece.value * SCORE_MULTIPLIER
        square = piece.square
        if piece.kind == PAWN and square is not None and square.rank != piece.start_rank:
            score += PAWN_ADVANCE_BONUS
        for sq in piece.candidate_moves(position):
            victim = sq.piece
            if victim is not None and victim.color != side.color:
                score += victim.value - 1
    return score
