from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from .errors import InvalidLocation
from .square import normalize_location


@dataclass(frozen=True)
class Move:
    """A move between two squares.

    Attributes:
        from_sq (str): Upper-case origin name, e.g. ``"E2"``.
        to_sq (str): Upper-case destination name, e.g. ``"E4"``.

    Promotion is always to a queen, so there is no promotion field.
    """

    from_sq: str
    to_sq: str

    @classmethod
    def of(cls, from_sq: str, to_sq: str) -> "Move":
        """Build a move from case-insensitive square names.

        Raises:
            InvalidLocation: If either name is not a valid square.
        """
        return cls(normalize_location(from_sq), normalize_location(to_sq))

    def to_uci(self) -> str:
        """Serialize the move into long algebraic form, e.g. ``"e2e4"``."""
        return (self.from_sq + self.to_sq).lower()


def parse_move(text: str) -> Move:
    """Parse a move such as ``"e2e4"`` or ``"E2E4"``.

    Args:
        text (str): Four characters, origin then destination.

    Returns:
        Move: Parsed move.

    Raises:
        InvalidLocation: If the string has an invalid length or squares.
    """
    if not isinstance(text, str) or len(text) != 4:
        raise InvalidLocation(text)
    return Move.of(text[0:2], text[2:4])


def moves_from_index(index: Dict[str, List[str]]) -> List[Move]:
    """Flatten an ``origin -> [destinations]`` index into a list of moves."""
    return [Move(origin, target) for origin, targets in index.items() for target in targets]
