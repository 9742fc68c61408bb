from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    chess_error_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...engine.errors import ChessError
from ...engine.game import Game
from ...engine.move import Move
from ...engine.position import Position
from ...search.service import AI_LEVELS, SearchConfig, SearchService


logger = logging.getLogger(__name__)


class BoardConfig(BaseModel):
    """JSON position descriptor; extra keys of an exported state are ignored."""

    pieces: Dict[str, str] = Field(default_factory=dict)
    turn: Optional[str] = None
    castling: Optional[Dict[str, bool]] = None
    counters: Optional[Dict[str, int]] = None
    enPassant: Optional[str] = None


class PositionRequest(BaseModel):
    board: Optional[BoardConfig] = Field(default=None, description="Position descriptor")
    fen: Optional[str] = Field(default=None, description="FEN string, used when board is absent")


class MoveRequest(PositionRequest):
    from_sq: str = Field(..., alias="from", description="Origin square, e.g. E2")
    to_sq: str = Field(..., alias="to", description="Destination square, e.g. E4")


class AiMoveRequest(PositionRequest):
    level: int = Field(default=2, description=f"Search depth, one of {list(AI_LEVELS)}")


class BoardState(BaseModel):
    pieces: Dict[str, str]
    turn: str
    moves: Dict[str, List[str]]
    isFinished: bool
    checkMate: bool
    castling: Dict[str, bool]
    enPassant: Optional[str]
    counters: Dict[str, int]
    fen: str


class AiMoveResponse(BaseModel):
    move: Optional[Dict[str, Any]]
    board: BoardState


def create_app(
    config: Optional[SearchConfig] = None, rng: Optional[random.Random] = None
) -> FastAPI:
    app = FastAPI(title="chessgraph API", version="0.1.0")

    # Basic logging setup
    logging.basicConfig(level=logging.INFO)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ChessError, chess_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    search = SearchService(config, rng)

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/status", response_model=BoardState)
    async def status(req: PositionRequest) -> BoardState:
        return _board_state(_load_position(req))

    @app.post("/api/moves")
    async def moves(req: PositionRequest) -> Dict[str, List[str]]:
        return _load_position(req).turn.moves

    @app.post("/api/move", response_model=BoardState)
    async def move(req: MoveRequest) -> BoardState:
        game = Game(position=_load_position(req))
        game.apply_move(Move.of(req.from_sq, req.to_sq))
        return _board_state(game.position)

    # Plain def: FastAPI runs it in the threadpool, the search is CPU-bound
    @app.post("/api/ai-move", response_model=AiMoveResponse)
    def ai_move(req: AiMoveRequest) -> AiMoveResponse:
        game = Game(position=_load_position(req))
        best = search.calculate_ai_move(game.position, req.level)
        if best is not None:
            game.apply_move(Move(best.from_sq, best.to_sq))
            logger.info(
                "ai move %s level=%d score=%d",
                game.move_history_uci()[-1],
                req.level,
                best.score,
            )
        return AiMoveResponse(
            move=best.to_dict() if best is not None else None,
            board=_board_state(game.position),
        )

    @app.post("/api/fen")
    async def fen(req: PositionRequest) -> Dict[str, str]:
        return {"fen": _load_position(req).to_fen()}

    return app


def _load_position(req: PositionRequest) -> Position:
    if req.board is not None:
        return Position.from_config(req.board.model_dump(exclude_none=True))
    if req.fen is not None:
        return Position.from_fen(req.fen)
    return Position.startpos()


def _board_state(position: Position) -> BoardState:
    return BoardState(fen=position.to_fen(), **position.export_state())
