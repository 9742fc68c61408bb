from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, NamedTuple, Optional, Tuple

from .square import BLACK, WHITE


class Castle(NamedTuple):
    """Static description of one castling move."""

    right: str  # attribute name on CastlingRights
    color: str
    king_from: str
    king_to: str
    rook_from: str
    rook_to: str
    between: Tuple[str, ...]  # must be empty
    transit: str  # square the king crosses, must not be attacked


CASTLES: Tuple[Castle, ...] = (
    Castle("white_short", WHITE, "E1", "G1", "H1", "F1", ("F1", "G1"), "F1"),
    Castle("white_long", WHITE, "E1", "C1", "A1", "D1", ("D1", "C1", "B1"), "D1"),
    Castle("black_short", BLACK, "E8", "G8", "H8", "F8", ("F8", "G8"), "F8"),
    Castle("black_long", BLACK, "E8", "C8", "A8", "D8", ("D8", "C8", "B8"), "D8"),
)

KING_HOME: Dict[str, str] = {WHITE: "E1", BLACK: "E8"}

# Vacating (or losing the piece on) one of these squares drops the rights listed
_REVOKED_BY_SQUARE: Dict[str, Tuple[str, ...]] = {
    "E1": ("white_short", "white_long"),
    "E8": ("black_short", "black_long"),
    "A1": ("white_long",),
    "H1": ("white_short",),
    "A8": ("black_long",),
    "H8": ("black_short",),
}

# Wire names used by the JSON position descriptor
_WIRE_KEYS: Dict[str, str] = {
    "white_short": "whiteShort",
    "white_long": "whiteLong",
    "black_short": "blackShort",
    "black_long": "blackLong",
}


def find_castle(king_from: str, king_to: str) -> Optional[Castle]:
    for castle in CASTLES:
        if castle.king_from == king_from and castle.king_to == king_to:
            return castle
    return None


@dataclass
class CastlingRights:
    """Four independent castling flags. They only ever go from True to False."""

    white_short: bool = True
    white_long: bool = True
    black_short: bool = True
    black_long: bool = True

    def revoke_for_square(self, name: str) -> None:
        for right in _REVOKED_BY_SQUARE.get(name, ()):
            setattr(self, right, False)

    def allows(self, castle: Castle) -> bool:
        return bool(getattr(self, castle.right))

    def to_dict(self) -> Dict[str, bool]:
        return {wire: getattr(self, attr) for attr, wire in _WIRE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, object]]) -> "CastlingRights":
        rights = cls()
        if data:
            for attr, wire in _WIRE_KEYS.items():
                if wire in data:
                    setattr(rights, attr, bool(data[wire]))
        return rights

    def to_fen(self) -> str:
        letters = ""
        if self.white_short:
            letters += "K"
        if self.white_long:
            letters += "Q"
        if self.black_short:
            letters += "k"
        if self.black_long:
            letters += "q"
        return letters or "-"

    @classmethod
    def from_fen(cls, field: str) -> "CastlingRights":
        return cls(
            white_short="K" in field,
            white_long="Q" in field,
            black_short="k" in field,
            black_long="q" in field,
        )
