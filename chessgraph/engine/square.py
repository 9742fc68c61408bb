from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

from .errors import InvalidLocation

if TYPE_CHECKING:
    from .piece import Piece


FILES = "ABCDEFGH"
RANKS = "12345678"

WHITE = "white"
BLACK = "black"


class Square:
    """One cell of the board graph.

    Attributes:
        name (str): Upper-case identifier such as ``"E4"``.
        color (str): Background colour, ``"white"`` or ``"black"``.
        piece (Optional[Piece]): Occupant, if any. The owning Side keeps the
            piece alive; the square only points at it.
        up, down, left, right (Optional[Square]): Neighbours, wired once by
            :func:`build_squares` and never reassigned.
    """

    __slots__ = ("name", "file", "rank", "color", "piece", "up", "down", "left", "right")

    def __init__(self, file: str, rank: str) -> None:
        self.file = file
        self.rank = rank
        self.name = file + rank
        # A1 is dark; parity of the coordinates decides the rest
        parity = (FILES.index(file) + RANKS.index(rank)) % 2
        self.color = BLACK if parity == 0 else WHITE
        self.piece: Optional[Piece] = None
        self.up: Optional[Square] = None
        self.down: Optional[Square] = None
        self.left: Optional[Square] = None
        self.right: Optional[Square] = None

    def step(self, *hops: str) -> Optional["Square"]:
        """Follow neighbour links in order, e.g. ``step("up", "left")``.

        Returns ``None`` as soon as a hop leaves the board.
        """
        square: Optional[Square] = self
        for hop in hops:
            square = getattr(square, hop)
            if square is None:
                return None
        return square

    def __repr__(self) -> str:
        occupant = self.piece.code if self.piece is not None else "."
        return f"Square({self.name}, {occupant})"


def build_squares() -> Dict[str, Square]:
    """Create the 64 squares keyed by name and wire their neighbours."""
    squares = {f + r: Square(f, r) for f in FILES for r in RANKS}
    for sq in squares.values():
        fi = FILES.index(sq.file)
        ri = RANKS.index(sq.rank)
        if fi > 0:
            sq.left = squares[FILES[fi - 1] + sq.rank]
        if fi < 7:
            sq.right = squares[FILES[fi + 1] + sq.rank]
        if ri > 0:
            sq.down = squares[sq.file + RANKS[ri - 1]]
        if ri < 7:
            sq.up = squares[sq.file + RANKS[ri + 1]]
    return squares


def normalize_location(location: str) -> str:
    """Validate a square identifier and return its upper-case form.

    Args:
        location (str): Case-insensitive name such as ``"e4"``.

    Returns:
        str: Canonical name, e.g. ``"E4"``.

    Raises:
        InvalidLocation: If ``location`` is not a two-character A-H/1-8 name.
    """
    if not isinstance(location, str) or len(location) != 2:
        raise InvalidLocation(location)
    name = location.upper()
    if name[0] not in FILES or name[1] not in RANKS:
        raise InvalidLocation(location)
    return name


def opposite(color: str) -> str:
    return BLACK if color == WHITE else WHITE
