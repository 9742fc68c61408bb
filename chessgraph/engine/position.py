from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .castling import CastlingRights, find_castle
from .errors import EmptyOriginSquare, InvalidFen, InvalidPosition
from .piece import KING, PAWN, QUEEN, ROOK, Piece, parse_code
from .side import Side
from .square import BLACK, FILES, RANKS, WHITE, Square, build_squares, normalize_location


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class Position:
    """Board state over a graph of squares.

    Notes:
    - Real moves mutate the position in place; simulations always run on
      :meth:`clone`, so there is no make/unmake bookkeeping.
    - ``white.moves`` / ``black.moves`` hold the legal-move index of the side
      to move once :meth:`recalculate` ran.
    """

    def __init__(self) -> None:
        self.squares: Dict[str, Square] = build_squares()
        self.white = Side(WHITE, self)
        self.black = Side(BLACK, self)
        self.turn: Side = self.white
        self.castling = CastlingRights()
        self.en_passant: Optional[str] = None
        self.halfmove_clock = 0
        self.fullmove_number = 1
        self.finished = False
        self.checkmate = False

    # --- Construction / export ---
    @classmethod
    def startpos(cls) -> "Position":
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], recalculate: bool = True) -> "Position":
        """Build a position from a JSON descriptor.

        Args:
            config (Mapping[str, Any]): ``pieces`` maps square names to piece
                codes (upper case is White). Optional keys: ``turn``
                (``"white"``/``"black"``), ``castling``, ``counters``
                (``halfMove``/``fullMove``) and ``enPassant``.
            recalculate (bool): Compute the legal-move index and terminal
                flags for the side to move.

        Returns:
            Position: The loaded position.

        Raises:
            InvalidLocation: If a square name is malformed.
            InvalidPosition: If a piece code, the turn, a counter or the king
                count is invalid.
        """
        position = cls()
        pieces = config.get("pieces") or {}
        for location, code in pieces.items():
            color, kind = parse_code(code)
            position.side(color).add(kind, position.square(location))
        turn = config.get("turn")
        if turn is not None:
            if turn not in (WHITE, BLACK):
                raise InvalidPosition(f"invalid turn: {turn!r}")
            position.turn = position.side(turn)
        position.castling = CastlingRights.from_dict(config.get("castling"))
        counters = config.get("counters") or {}
        try:
            position.halfmove_clock = int(counters.get("halfMove", 0))
            position.fullmove_number = int(counters.get("fullMove", 1))
        except (TypeError, ValueError) as e:
            raise InvalidPosition("invalid move counters") from e
        if position.halfmove_clock < 0 or position.fullmove_number < 1:
            raise InvalidPosition("invalid move counters")
        ep = config.get("enPassant")
        position.en_passant = normalize_location(ep) if ep else None
        position._check_kings()
        if recalculate:
            position.recalculate()
        return position

    @classmethod
    def from_fen(cls, fen: str, recalculate: bool = True) -> "Position":
        """Build a position from a FEN string.

        Raises:
            InvalidFen: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid placement, side to move, castling rights, en
                passant square or counters.
        """
        if not fen or not isinstance(fen, str):
            raise InvalidFen("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise InvalidFen("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise InvalidFen("FEN board must have 8 ranks")
        pieces: Dict[str, str] = {}
        for rank, row in zip(reversed(RANKS), ranks):
            file_idx = 0
            for ch in row:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise InvalidFen("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if ch.upper() not in "KQRBNP":
                        raise InvalidFen(f"invalid piece in FEN: {ch!r}")
                    if file_idx >= 8:
                        raise InvalidFen("too many squares in FEN rank")
                    pieces[FILES[file_idx] + rank] = ch
                    file_idx += 1
            if file_idx != 8:
                raise InvalidFen("rank does not sum to 8 squares in FEN")

        if stm not in ("w", "b"):
            raise InvalidFen("side to move must be 'w' or 'b'")
        if castling != "-" and any(ch not in "KQkq" for ch in castling):
            raise InvalidFen("invalid castling rights")
        if ep != "-":
            if len(ep) != 2 or ep[0] not in "abcdefgh" or ep[1] not in "36":
                raise InvalidFen("invalid en passant square")
        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise InvalidFen("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise InvalidFen("invalid move counters in FEN")

        config = {
            "pieces": pieces,
            "turn": WHITE if stm == "w" else BLACK,
            "castling": CastlingRights.from_fen(castling).to_dict(),
            "counters": {"halfMove": halfmove_clock, "fullMove": fullmove_number},
            "enPassant": ep.upper() if ep != "-" else None,
        }
        try:
            return cls.from_config(config, recalculate=recalculate)
        except InvalidPosition as e:
            raise InvalidFen(str(e)) from e

    def export_state(self) -> Dict[str, Any]:
        """Return the JSON descriptor of this position, legal moves included."""
        pieces: Dict[str, str] = {}
        for side in (self.white, self.black):
            for piece in side.live_pieces():
                if piece.square is not None:
                    pieces[piece.square.name] = piece.code
        return {
            "pieces": pieces,
            "turn": self.turn.color,
            "moves": {origin: list(targets) for origin, targets in self.turn.moves.items()},
            "isFinished": self.finished,
            "checkMate": self.checkmate,
            "castling": self.castling.to_dict(),
            "enPassant": self.en_passant,
            "counters": {"halfMove": self.halfmove_clock, "fullMove": self.fullmove_number},
        }

    def to_fen(self) -> str:
        rows: List[str] = []
        for rank in reversed(RANKS):
            run = 0
            row = ""
            for file in FILES:
                piece = self.squares[file + rank].piece
                if piece is None:
                    run += 1
                    continue
                if run:
                    row += str(run)
                    run = 0
                row += piece.code
            if run:
                row += str(run)
            rows.append(row)
        stm = "w" if self.turn.color == WHITE else "b"
        ep = self.en_passant.lower() if self.en_passant else "-"
        return (
            f"{'/'.join(rows)} {stm} {self.castling.to_fen()} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    def clone(self) -> "Position":
        """Deep copy rebuilt from the exported state, without recalculation."""
        return Position.from_config(self.export_state(), recalculate=False)

    # --- Lookups ---
    def square(self, location: str) -> Square:
        return self.squares[normalize_location(location)]

    def piece_at(self, location: str) -> Optional[Piece]:
        return self.square(location).piece

    def side(self, color: str) -> Side:
        return self.white if color == WHITE else self.black

    def opponent(self, side: Side) -> Side:
        return self.black if side is self.white else self.white

    def in_check(self, color: str) -> bool:
        """Whether the king of ``color`` stands on a square the opponent attacks.

        Raises:
            InvalidPosition: If that side has no king on the board.
        """
        side = self.side(color)
        if side.king is None or side.king.square is None:
            raise InvalidPosition(f"{color} has no king on the board")
        return side.king.square.name in self.opponent(side).attacking_squares()

    def _check_kings(self) -> None:
        for side in (self.white, self.black):
            if side.king is None or side.king.square is None:
                raise InvalidPosition(f"{side.color} has no king")

    # --- Move application ---
    def move(self, from_sq: str, to_sq: str, recalculate: bool = True) -> None:
        """Apply a move in place; legality is not checked here.

        Args:
            from_sq (str): Origin square name (case-insensitive).
            to_sq (str): Destination square name (case-insensitive).
            recalculate (bool): Advance the counters and recompute the legal
                moves and terminal flags of the new side to move.

        Raises:
            InvalidLocation: If either identifier is malformed.
            EmptyOriginSquare: If ``from_sq`` holds no piece.
        """
        origin = self.square(from_sq)
        target = self.square(to_sq)
        mover = origin.piece
        if mover is None:
            raise EmptyOriginSquare(origin.name)

        captured = target.piece
        if (
            captured is None
            and mover.kind == PAWN
            and target.name == self.en_passant
            and target.file != origin.file
        ):
            # En passant: the victim sits beside the origin, on the target file
            victim_square = self.squares[target.file + origin.rank]
            captured = victim_square.piece
            victim_square.piece = None
        if captured is not None:
            captured.square = None

        origin.piece = None
        target.piece = mover
        mover.square = target
        mover.moved = True

        if mover.kind == PAWN and target.rank == mover.last_rank:
            mover.square = None
            target.piece = None
            self.side(mover.color).add(QUEEN, target).moved = True

        if mover.kind == PAWN and abs(RANKS.index(target.rank) - RANKS.index(origin.rank)) == 2:
            skipped = origin.step(mover.forward)
            self.en_passant = skipped.name if skipped is not None else None
        else:
            self.en_passant = None

        self.castling.revoke_for_square(origin.name)
        if captured is not None:
            self.castling.revoke_for_square(target.name)

        castle = find_castle(origin.name, target.name) if mover.kind == KING else None
        rook = self.squares[castle.rook_from].piece if castle is not None else None
        if castle is not None and rook is not None and rook.color == mover.color:
            # The nested rook move hands the turn over
            self.move(castle.rook_from, castle.rook_to, recalculate=False)
        else:
            self.turn = self.opponent(self.turn)

        if recalculate:
            if self.turn is self.white:
                self.fullmove_number += 1
            if captured is not None or mover.kind == PAWN:
                self.halfmove_clock = 0
            else:
                self.halfmove_clock += 1
            self.recalculate()

    # --- Legality / terminal state ---
    def recalculate(self) -> "Position":
        self.turn.moves = self.calculate_moves(self.turn)
        self.finished = not self.turn.moves
        self.checkmate = self.finished and self.in_check(self.turn.color)
        return self

    def calculate_moves(self, side: Side) -> Dict[str, List[str]]:
        """Return the legal moves of ``side`` as ``origin -> [destinations]``.

        Each pseudo-legal move is played on a fresh clone and kept only when
        the mover's king survives and is not attacked afterwards.
        """
        moves: Dict[str, List[str]] = {}
        state = self.export_state()
        for origin, targets in side.pseudo_moves().items():
            for target in targets:
                if not self._castling_allowed(side, origin, target):
                    continue
                trial = Position.from_config(state, recalculate=False)
                trial.move(origin, target, recalculate=False)
                own = trial.side(side.color)
                if own.king is None or own.king.square is None:
                    continue
                if own.king.square.name in trial.opponent(own).attacking_squares():
                    continue
                moves.setdefault(origin, []).append(target)
        return moves

    def _castling_allowed(self, side: Side, origin: str, target: str) -> bool:
        king = side.king
        if king is None or king.square is None or king.square.name != origin:
            return True
        castle = find_castle(origin, target)
        if castle is None or castle.color != side.color:
            return True
        rook = self.squares[castle.rook_from].piece
        if rook is None or rook.color != side.color or rook.kind != ROOK:
            return False
        if any(self.squares[name].piece is not None for name in castle.between):
            return False
        attacked = self.opponent(side).attacking_squares()
        return origin not in attacked and castle.transit not in attacked

    # --- Evaluation ---
    def calculate_score(self, color: Optional[str] = None) -> int:
        from ..eval import calculate_score

        return calculate_score(self, color)

    def __repr__(self) -> str:
        return f"Position({self.to_fen()!r})"

