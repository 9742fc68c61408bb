from __future__ import annotations

import logging
from typing import Any, Dict, cast

from fastapi import Request
from fastapi import HTTPException as FastAPIHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ...engine.errors import (
    ChessError,
    EmptyOriginSquare,
    IllegalMove,
    InvalidFen,
    InvalidLocation,
    InvalidPosition,
    SearchCancelled,
    UnsupportedSearchLevel,
)


logger = logging.getLogger(__name__)

# Engine error -> envelope code
_CHESS_ERROR_CODES: Dict[type, str] = {
    InvalidLocation: "invalid_location",
    EmptyOriginSquare: "empty_origin_square",
    UnsupportedSearchLevel: "unsupported_search_level",
    IllegalMove: "illegal_move",
    InvalidPosition: "invalid_position",
    InvalidFen: "invalid_fen",
    SearchCancelled: "search_cancelled",
}


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: list[dict[str, str]] | None = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "type": err_type,
            "request_id": request_id,
        }
    }
    if field_errors:
        payload["error"]["field_errors"] = field_errors
    return payload


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _http_error_response(request: Request, exc: FastAPIHTTPException) -> JSONResponse:
    status_code = exc.status_code
    payload = error_envelope(
        code=_status_to_code(status_code),
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        err_type="client_error" if 400 <= status_code < 500 else "server_error",
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=payload)


def _internal_error_response(request: Request) -> JSONResponse:
    payload = error_envelope(
        code="internal_error",
        message="Internal Server Error",
        err_type="server_error",
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, FastAPIHTTPException):
        return _http_error_response(request, exc)
    return _internal_error_response(request)


async def chess_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render engine errors: bad input is a 400, a cancelled search a 503."""
    err = cast(ChessError, exc)
    code = next(
        (c for cls, c in _CHESS_ERROR_CODES.items() if isinstance(err, cls)), "bad_request"
    )
    if isinstance(err, SearchCancelled):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        err_type = "server_error"
        logger.warning("search cancelled", extra={"request_id": _request_id(request)})
    else:
        status_code = status.HTTP_400_BAD_REQUEST
        err_type = "client_error"
    payload = error_envelope(
        code=code,
        message=str(err),
        err_type=err_type,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=payload)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, FastAPIHTTPException):
        return _http_error_response(request, exc)
    if isinstance(exc, ChessError):
        return await chess_error_handler(request, exc)
    logger.exception("Unhandled exception", extra={"request_id": _request_id(request)})
    return _internal_error_response(request)


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    # Map Pydantic/FastAPI validation errors to our structured envelope with 422
    errors = []
    rve = cast(RequestValidationError, exc)
    for e in rve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []) if p is not None)
        msg = e.get("msg", "invalid value")
        typ = e.get("type", "value_error")
        errors.append({"field": loc, "code": typ, "message": msg})
    payload = error_envelope(
        code="unprocessable_entity",
        message="Validation error",
        err_type="client_error",
        request_id=_request_id(request),
        field_errors=errors or None,
    )
    return JSONResponse(status_code=422, content=payload)


def _status_to_code(status_code: int) -> str:
    if status_code == status.HTTP_404_NOT_FOUND:
        return "not_found"
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "bad_request"
    if status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return "method_not_allowed"
    if status_code == 422:
        return "unprocessable_entity"
    if 500 <= status_code < 600:
        return "internal_error"
    return "error"
