#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import os
import sys
import time

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo root (which contains `chessgraph/`) to sys.path.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from chessgraph.engine.perft import perft
from chessgraph.engine.position import STARTPOS_FEN, Position


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft on a given FEN and depth")
    parser.add_argument(
        "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=2, help="Perft depth (default: 2)")
    parser.add_argument(
        "--divide", action="store_true", help="Print the node count below each root move"
    )
    args = parser.parse_args()

    position = Position.from_fen(args.fen)
    start = time.perf_counter()
    if args.divide and args.depth > 0:
        nodes = 0
        for origin, targets in position.turn.moves.items():
            for target in targets:
                child = position.clone()
                child.move(origin, target)
                count = perft(child, args.depth - 1)
                nodes += count
                print(f"{origin.lower()}{target.lower()}: {count}")
    else:
        nodes = perft(position, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
