from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from .castling import CASTLES, KING_HOME
from .errors import InvalidPosition
from .square import BLACK, WHITE, Square

if TYPE_CHECKING:
    from .position import Position


KING, QUEEN, ROOK, BISHOP, KNIGHT, PAWN = "K", "Q", "R", "B", "N", "P"
KINDS = (KING, QUEEN, ROOK, BISHOP, KNIGHT, PAWN)

PIECE_VALUES: Dict[str, int] = {
    PAWN: 1,
    KNIGHT: 3,
    BISHOP: 3,
    ROOK: 5,
    QUEEN: 9,
    KING: 10,
}

_ORTHOGONAL: Tuple[Tuple[str, ...], ...] = (("up",), ("down",), ("left",), ("right",))
_DIAGONAL: Tuple[Tuple[str, ...], ...] = (
    ("up", "left"),
    ("up", "right"),
    ("down", "left"),
    ("down", "right"),
)
_KNIGHT_HOPS: Tuple[Tuple[str, ...], ...] = (
    ("up", "up", "left"),
    ("up", "up", "right"),
    ("down", "down", "left"),
    ("down", "down", "right"),
    ("left", "left", "up"),
    ("left", "left", "down"),
    ("right", "right", "up"),
    ("right", "right", "down"),
)


@dataclass(eq=False)
class Piece:
    """A chessman owned by one Side.

    Attributes:
        color (str): ``"white"`` or ``"black"``.
        kind (str): One of ``K Q R B N P``.
        square (Optional[Square]): Current square; ``None`` once captured or
            replaced by a promotion.
        moved (bool): Whether the piece has moved since it was placed.
    """

    color: str
    kind: str
    square: Optional[Square] = None
    moved: bool = False

    @property
    def in_game(self) -> bool:
        return self.square is not None

    @property
    def code(self) -> str:
        return self.kind if self.color == WHITE else self.kind.lower()

    @property
    def value(self) -> int:
        return PIECE_VALUES[self.kind]

    @property
    def forward(self) -> str:
        return "up" if self.color == WHITE else "down"

    @property
    def start_rank(self) -> str:
        if self.kind != PAWN:
            raise ValueError("only pawns have a starting rank")
        return "2" if self.color == WHITE else "7"

    @property
    def last_rank(self) -> str:
        return "8" if self.color == WHITE else "1"

    def candidate_moves(self, position: "Position", attacks: bool = False) -> List[Square]:
        """Return pseudo-legal destinations from the current square.

        Args:
            position (Position): Position the piece stands on; consulted for
                the en-passant target and castling rights.
            attacks (bool): When true, return the squares this piece controls
                instead: pawns report both diagonals and never pushes, kings
                leave out castling destinations.

        Returns:
            List[Square]: Destinations; empty for a captured piece.
        """
        if self.square is None:
            return []
        return _GENERATORS[self.kind](self, position, attacks)

    def __repr__(self) -> str:
        where = self.square.name if self.square is not None else "-"
        return f"Piece({self.code}@{where})"


def _slide(piece: Piece, paths: Tuple[Tuple[str, ...], ...]) -> List[Square]:
    out: List[Square] = []
    if piece.square is None:
        return out
    for hops in paths:
        sq = piece.square.step(*hops)
        while sq is not None:
            if sq.piece is not None:
                if sq.piece.color != piece.color:
                    out.append(sq)
                break
            out.append(sq)
            sq = sq.step(*hops)
    return out


def _jump(piece: Piece, paths: Tuple[Tuple[str, ...], ...]) -> List[Square]:
    out: List[Square] = []
    if piece.square is None:
        return out
    for hops in paths:
        sq = piece.square.step(*hops)
        if sq is None:
            continue
        if sq.piece is None or sq.piece.color != piece.color:
            out.append(sq)
    return out


def _rook_moves(piece: Piece, position: "Position", attacks: bool) -> List[Square]:
    return _slide(piece, _ORTHOGONAL)


def _bishop_moves(piece: Piece, position: "Position", attacks: bool) -> List[Square]:
    return _slide(piece, _DIAGONAL)


def _queen_moves(piece: Piece, position: "Position", attacks: bool) -> List[Square]:
    return _slide(piece, _ORTHOGONAL + _DIAGONAL)


def _knight_moves(piece: Piece, position: "Position", attacks: bool) -> List[Square]:
    return _jump(piece, _KNIGHT_HOPS)


def _king_moves(piece: Piece, position: "Position", attacks: bool) -> List[Square]:
    out = _jump(piece, _ORTHOGONAL + _DIAGONAL)
    if attacks or piece.moved or piece.square is None:
        return out
    if piece.square.name != KING_HOME[piece.color]:
        return out
    # Path and attack vetting is left to the legality filter
    for castle in CASTLES:
        if castle.color == piece.color and position.castling.allows(castle):
            out.append(position.squares[castle.king_to])
    return out


def _pawn_moves(piece: Piece, position: "Position", attacks: bool) -> List[Square]:
    out: List[Square] = []
    if piece.square is None:
        return out
    forward = piece.forward
    if not attacks:
        one = piece.square.step(forward)
        if one is not None and one.piece is None:
            out.append(one)
            if piece.square.rank == piece.start_rank:
                two = one.step(forward)
                if two is not None and two.piece is None:
                    out.append(two)
    ep_rank = "6" if piece.color == WHITE else "3"
    for side in ("left", "right"):
        diag = piece.square.step(forward, side)
        if diag is None:
            continue
        if attacks:
            if diag.piece is None or diag.piece.color != piece.color:
                out.append(diag)
        elif diag.piece is not None:
            if diag.piece.color != piece.color:
                out.append(diag)
        elif diag.name == position.en_passant and diag.rank == ep_rank:
            out.append(diag)
    return out


_GENERATORS: Dict[str, Callable[[Piece, "Position", bool], List[Square]]] = {
    KING: _king_moves,
    QUEEN: _queen_moves,
    ROOK: _rook_moves,
    BISHOP: _bishop_moves,
    KNIGHT: _knight_moves,
    PAWN: _pawn_moves,
}


def parse_code(code: str) -> Tuple[str, str]:
    """Split a one-letter piece code into ``(color, kind)``.

    Raises:
        InvalidPosition: If ``code`` is not one of ``KQRBNPkqrbnp``.
    """
    if not isinstance(code, str) or len(code) != 1 or code.upper() not in KINDS:
        raise InvalidPosition(f"invalid piece code: {code!r}")
    color = WHITE if code.isupper() else BLACK
    return color, code.upper()
