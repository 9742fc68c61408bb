from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import uvicorn

from ..protocol.http.app import create_app
from ..search.service import SearchConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the chessgraph HTTP API")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Processes scoring root moves in parallel (default: 1)",
    )
    parser.add_argument(
        "--deadline-ms",
        type=int,
        default=None,
        help="Abort an ai-move search after this many milliseconds",
    )
    parser.add_argument(
        "--no-check-extension",
        action="store_true",
        help="Do not search one extra ply when the moving side was in check",
    )
    parser.add_argument("--log-level", type=str, default="info", help="Logging level")
    return parser


def config_from_args(args: argparse.Namespace) -> SearchConfig:
    return SearchConfig(
        workers=max(1, args.workers),
        deadline_ms=args.deadline_ms,
        extend_when_in_check=not args.no_check_extension,
    )


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    app = create_app(config_from_args(args))
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
