from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import EmptyOriginSquare, IllegalMove
from .move import Move, moves_from_index
from .position import Position


logger = logging.getLogger(__name__)


@dataclass
class Game:
    """Game wrapper around a position with helper operations.

    Responsibility: validate user moves against the legal-move index, apply
    them and remember what was played.
    """

    position: Position
    move_stack: List[Move] = field(default_factory=list)

    @classmethod
    def new(cls) -> "Game":
        return cls(position=Position.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(position=Position.from_fen(fen))

    def to_fen(self) -> str:
        return self.position.to_fen()

    def state(self) -> Dict[str, Any]:
        return self.position.export_state()

    def legal_moves(self) -> List[Move]:
        return moves_from_index(self.position.turn.moves)

    def apply_move(self, move: Move) -> None:
        """Play ``move`` for the side to move.

        Raises:
            EmptyOriginSquare: If the origin square is empty.
            IllegalMove: If the move is not in the legal-move index.
        """
        position = self.position
        if position.squares[move.from_sq].piece is None:
            raise EmptyOriginSquare(move.from_sq)
        if move.to_sq not in position.turn.moves.get(move.from_sq, []):
            raise IllegalMove(f"illegal move {move.to_uci()}")
        position.move(move.from_sq, move.to_sq)
        self.move_stack.append(move)
        logger.debug("played %s, fen=%s", move.to_uci(), position.to_fen())

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return self.position.in_check(self.position.turn.color)

    def checkmate(self) -> bool:
        return self.position.checkmate

    def stalemate(self) -> bool:
        return self.position.finished and not self.position.checkmate

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.move_stack]
