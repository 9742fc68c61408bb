from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Final, List, Optional, Tuple

from chessgraph.engine.errors import SearchCancelled, UnsupportedSearchLevel
from chessgraph.engine.position import Position
from chessgraph.eval import SCORE_MAX, SCORE_MIN, calculate_score


logger = logging.getLogger(__name__)

AI_LEVELS: Final = (0, 1, 2, 3, 4)
DRAW_SCORE: Final = 0


@dataclass(frozen=True)
class ScoredMove:
    from_sq: str
    to_sq: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.from_sq, "to": self.to_sq, "score": self.score}


@dataclass
class SearchConfig:
    """Tunables for :class:`SearchService`.

    Attributes:
        workers (int): Root candidates are scored in parallel when > 1.
        use_processes (bool): Use a process pool for the workers; a thread
            pool otherwise.
        deadline_ms (Optional[int]): Abort a search running longer than this.
        extend_when_in_check (bool): Recalculate one more ply whenever the
            side that just moved was in check, even at the depth limit.
    """

    workers: int = 1
    use_processes: bool = True
    deadline_ms: Optional[int] = None
    extend_when_in_check: bool = True


class CancelToken:
    """Cooperative cancellation checked at every search node.

    The deadline is wall-clock (``time.time()``) so it can be handed to
    worker processes as a plain float.
    """

    def __init__(self, deadline: Optional[float] = None) -> None:
        self.deadline = deadline
        self._event = threading.Event()

    @classmethod
    def after_ms(cls, ms: Optional[int]) -> "CancelToken":
        return cls(time.time() + ms / 1000 if ms is not None else None)

    def __reduce__(self) -> Tuple[Any, ...]:
        # Worker processes only receive the deadline
        return (CancelToken, (self.deadline,))

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.time() >= self.deadline

    def check(self) -> None:
        if self.cancelled:
            raise SearchCancelled("search cancelled")


def validate_level(level: object) -> int:
    """Coerce ``level`` to an int from ``AI_LEVELS``.

    Raises:
        UnsupportedSearchLevel: For anything outside the supported set.
    """
    if isinstance(level, bool) or (isinstance(level, float) and not level.is_integer()):
        raise UnsupportedSearchLevel(level, AI_LEVELS)
    try:
        value = int(level)  # type: ignore[call-overload]
    except (TypeError, ValueError) as e:
        raise UnsupportedSearchLevel(level, AI_LEVELS) from e
    if value not in AI_LEVELS:
        raise UnsupportedSearchLevel(level, AI_LEVELS)
    return value


class SearchService:
    """Exhaustive fixed-depth minimax over cloned positions.

    No pruning and no move ordering: every legal reply is explored down to
    ``level`` plies. Each node plays its move on a fresh clone, so branches
    never share mutable state.
    """

    def __init__(
        self, config: Optional[SearchConfig] = None, rng: Optional[random.Random] = None
    ) -> None:
        self.config = config or SearchConfig()
        self.rng = rng or random.Random()

    def calculate_ai_move(
        self, position: Position, level: object, token: Optional[CancelToken] = None
    ) -> Optional[ScoredMove]:
        ranked = self.calculate_ai_moves(position, level, token)
        return ranked[0] if ranked else None

    def calculate_ai_moves(
        self, position: Position, level: object, token: Optional[CancelToken] = None
    ) -> List[ScoredMove]:
        """Score every legal move of the side to move and rank them.

        Args:
            position (Position): Position with a current legal-move index. It
                is never mutated.
            level (object): Search depth, one of ``AI_LEVELS``.
            token (Optional[CancelToken]): Cancellation; defaults to one built
                from ``config.deadline_ms``.

        Returns:
            List[ScoredMove]: Candidates by descending score. Each score has a
            random 0 or 1 added, so equal moves come out in arbitrary order.

        Raises:
            UnsupportedSearchLevel: If ``level`` is not supported.
            SearchCancelled: If the token trips before the search completes.
        """
        depth_limit = validate_level(level)
        if token is None:
            token = CancelToken.after_ms(self.config.deadline_ms)
        root_color = position.turn.color
        candidates = [
            (origin, target)
            for origin, targets in position.turn.moves.items()
            for target in targets
        ]
        start = time.perf_counter()
        if self.config.workers > 1 and len(candidates) > 1:
            scores = self._score_parallel(position, candidates, root_color, depth_limit, token)
        else:
            scores = [
                self.search(position, origin, target, root_color, depth_limit, 0, token)
                for origin, target in candidates
            ]
        ranked = [
            ScoredMove(origin, target, score + self.rng.randint(0, 1))
            for (origin, target), score in zip(candidates, scores)
        ]
        ranked.sort(key=lambda m: m.score, reverse=True)
        logger.debug(
            "search level=%d color=%s candidates=%d time_ms=%d",
            depth_limit,
            root_color,
            len(candidates),
            int((time.perf_counter() - start) * 1000),
        )
        return ranked

    def search(
        self,
        position: Position,
        from_sq: str,
        to_sq: str,
        root_color: str,
        level: int,
        depth: int = 0,
        token: Optional[CancelToken] = None,
    ) -> int:
        """Score the move ``from_sq -> to_sq`` played on ``position``.

        The score is from ``root_color``'s point of view. Leaf scores are
        shifted by ``depth`` so that quicker wins and slower losses rank
        higher.
        """
        if token is not None:
            token.check()
        trial = position.clone()
        trial.move(from_sq, to_sq, recalculate=False)

        mover = position.turn.color
        extend = self.config.extend_when_in_check and position.in_check(mover)
        if depth < level or extend:
            trial.recalculate()

        if depth >= level or trial.checkmate:
            adjustment = -depth if mover == root_color else depth
            return calculate_score(trial, root_color) + adjustment
        if trial.finished:
            return DRAW_SCORE

        maximizing = trial.turn.color == root_color
        best = SCORE_MIN if maximizing else SCORE_MAX
        for origin, targets in trial.turn.moves.items():
            for target in targets:
                score = self.search(trial, origin, target, root_color, level, depth + 1, token)
                best = max(best, score) if maximizing else min(best, score)
        return best

    def _score_parallel(
        self,
        position: Position,
        candidates: List[Tuple[str, str]],
        root_color: str,
        level: int,
        token: CancelToken,
    ) -> List[int]:
        state = position.export_state()
        executor: Executor
        if self.config.use_processes:
            executor = ProcessPoolExecutor(max_workers=self.config.workers)
        else:
            executor = ThreadPoolExecutor(max_workers=self.config.workers)
        with executor:
            futures = [
                executor.submit(
                    _score_root_move,
                    state,
                    origin,
                    target,
                    root_color,
                    level,
                    self.config.extend_when_in_check,
                    token,
                )
                for origin, target in candidates
            ]
            try:
                return [f.result() for f in futures]
            except SearchCancelled:
                for f in futures:
                    f.cancel()
                raise


def _score_root_move(
    state: Dict[str, Any],
    from_sq: str,
    to_sq: str,
    root_color: str,
    level: int,
    extend_when_in_check: bool,
    token: CancelToken,
) -> int:
    # Runs inside a worker: rebuild a private position from the exported state
    position = Position.from_config(state, recalculate=False)
    service = SearchService(SearchConfig(extend_when_in_check=extend_when_in_check))
    return service.search(position, from_sq, to_sq, root_color, level, 0, token)
