from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Set

from .errors import InvalidPosition
from .piece import KING, Piece
from .square import Square

if TYPE_CHECKING:
    from .position import Position


class Side:
    """One colour's pieces plus its cached legal-move index.

    ``moves`` maps origin names to legal destination names. It is only
    meaningful for the side to move right after ``Position.recalculate()``.
    """

    def __init__(self, color: str, position: "Position") -> None:
        self.color = color
        self.position = position
        self.pieces: List[Piece] = []
        self.king: Optional[Piece] = None
        self.moves: Dict[str, List[str]] = {}

    def add(self, kind: str, square: Square) -> Piece:
        """Create a piece of this colour on ``square``, replacing any occupant."""
        if kind == KING and self.king is not None and self.king.in_game:
            raise InvalidPosition(f"{self.color} already has a king on {self.king.square.name}")
        piece = Piece(self.color, kind)
        if square.piece is not None:
            square.piece.square = None
        square.piece = piece
        piece.square = square
        self.pieces.append(piece)
        if kind == KING:
            self.king = piece
        return piece

    def live_pieces(self) -> Iterator[Piece]:
        return (p for p in self.pieces if p.square is not None)

    def attacking_squares(self) -> Set[str]:
        """Names of every square controlled by a live piece of this side."""
        attacked: Set[str] = set()
        for piece in self.live_pieces():
            for sq in piece.candidate_moves(self.position, attacks=True):
                attacked.add(sq.name)
        return attacked

    def pseudo_moves(self) -> Dict[str, List[str]]:
        moves: Dict[str, List[str]] = {}
        for piece in self.live_pieces():
            targets = piece.candidate_moves(self.position)
            if targets and piece.square is not None:
                moves[piece.square.name] = [sq.name for sq in targets]
        return moves

    def __repr__(self) -> str:
        return f"Side({self.color}, pieces={sum(1 for _ in self.live_pieces())})"
