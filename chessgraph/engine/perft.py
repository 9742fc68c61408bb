from __future__ import annotations

from .position import Position


def perft(position: Position, depth: int) -> int:
    """Compute the perft node count for ``position`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    The legal-move index of ``position`` must be current (it is after
    ``from_fen``/``from_config`` and after every recalculating move). Children
    are played on clones, so ``position`` is left untouched.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = position.turn.moves
    if depth == 1:
        return sum(len(targets) for targets in moves.values())

    nodes = 0
    for origin, targets in moves.items():
        for target in targets:
            child = position.clone()
            child.move(origin, target)
            nodes += perft(child, depth - 1)
    return nodes
