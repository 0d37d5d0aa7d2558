import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Tuple

from src.history.models import CommitRecord, FoldedSection

logger = logging.getLogger(__name__)

Compute = Callable[[CommitRecord], Awaitable[List[FoldedSection]]]


class FoldCache:
    """Per-merge folded sections, computed at most once per generation.

    Concurrent requests for the same merge share one in-flight task. A
    result that completes after the generation moved on is handed back to
    its waiters but never stored.
    """

    def __init__(self, compute: Compute, generation: int = 0):
        self._compute = compute
        self.generation = generation
        self._entries: Dict[str, Tuple[int, List[FoldedSection]]] = {}
        self._in_flight: Dict[str, "asyncio.Task[List[FoldedSection]]"] = {}

    def __contains__(self, sha: str) -> bool:
        entry = self._entries.get(sha)
        return entry is not None and entry[0] == self.generation

    def __len__(self) -> int:
        return len(self._entries)

    def invalidate(self, generation: int) -> None:
        """Drops every entry and in-flight marker; later completions are discarded."""
        self.generation = generation
        self._entries.clear()
        self._in_flight.clear()

    async def get_or_compute(self, merge: CommitRecord) -> List[FoldedSection]:
        entry = self._entries.get(merge.sha)
        if entry is not None and entry[0] == self.generation:
            return entry[1]

        task = self._in_flight.get(merge.sha)
        if task is None:
            task = asyncio.ensure_future(self._run(merge, self.generation))
            self._in_flight[merge.sha] = task
        return await asyncio.shield(task)

    async def _run(self, merge: CommitRecord, generation: int) -> List[FoldedSection]:
        try:
            sections = await self._compute(merge)
        finally:
            if self._in_flight.get(merge.sha) is asyncio.current_task():
                del self._in_flight[merge.sha]

        if generation != self.generation:
            logger.debug(
                "Discarding folds for %s from generation %d (now %d)",
                merge.short_sha, generation, self.generation,
            )
        else:
            self._entries[merge.sha] = (generation, sections)
        return sections
