from __future__ import annotations


class ChessError(ValueError):
    """Base class for errors raised by the engine on bad input or state."""


class InvalidLocation(ChessError):
    """Square identifier outside A-H / 1-8."""

    def __init__(self, location: object) -> None:
        super().__init__(f"invalid location: {location!r}")
        self.location = location


class EmptyOriginSquare(ChessError):
    """Move requested from a square with no piece."""

    def __init__(self, location: str) -> None:
        super().__init__(f"there is no piece at {location}")
        self.location = location


class UnsupportedSearchLevel(ChessError):
    def __init__(self, level: object, supported: tuple[int, ...]) -> None:
        levels = ", ".join(str(lv) for lv in supported)
        super().__init__(f"invalid level {level!r}, choose one of: {levels}")
        self.level = level


class IllegalMove(ChessError):
    pass


class InvalidPosition(ChessError):
    pass


class InvalidFen(ChessError):
    pass


class SearchCancelled(ChessError):
    pass
