import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from src.fold.cache import FoldCache
from src.fold.resolver import AncestryPathResolver
from src.history.errors import ExecutionError
from src.history.log_reader import MAX_TOP_LEVEL, LogMode, read_log
from src.history.models import CommitRecord, FoldedSection
from src.history.runner import Runner, run_git

logger = logging.getLogger(__name__)

GraphSnapshot = Tuple[CommitRecord, ...]
Listener = Callable[["GraphModel"], None]


class GraphState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


def flatten_sections(sections: List[FoldedSection]) -> List[CommitRecord]:
    """Concatenate sections in parent order, keeping the first occurrence of each sha."""
    seen = set()
    flat = []
    for section in sections:
        for commit in section.commits:
            if commit.sha in seen:
                continue
            seen.add(commit.sha)
            flat.append(commit)
    return flat


def clamp_max_count(max_count: int) -> int:
    """Snapshots never exceed MAX_TOP_LEVEL; a non-positive count means the full bound."""
    if max_count <= 0:
        return MAX_TOP_LEVEL
    return min(max_count, MAX_TOP_LEVEL)


class GraphModel:
    """First-parent view of a repository with on-demand unfolding of merges."""

    def __init__(
        self,
        repo_root: Union[str, Path],
        max_count: int = MAX_TOP_LEVEL,
        date_format: str = "iso",
        runner: Runner = run_git,
    ):
        self.repo_root = repo_root
        self.max_count = clamp_max_count(max_count)
        self.date_format = date_format
        self.runner = runner
        self.resolver = AncestryPathResolver(repo_root, runner=runner, date_format=date_format)
        self.cache = FoldCache(self.resolver.resolve)

        self.generation = 0
        self.state = GraphState.EMPTY
        self.last_error: Optional[Exception] = None
        self._snapshot: GraphSnapshot = ()
        self._index: Dict[str, CommitRecord] = {}
        self._refresh_ticket = 0
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Graph change listener failed")

    def _install(self, snapshot: GraphSnapshot):
        self.generation += 1
        self._snapshot = snapshot
        self._index = {c.sha: c for c in snapshot}
        self.cache.invalidate(self.generation)

    async def refresh(self) -> GraphSnapshot:
        """Reloads first-parent history; a later refresh supersedes an earlier one."""
        self._refresh_ticket += 1
        ticket = self._refresh_ticket
        self.state = GraphState.LOADING
        try:
            commits = await read_log(
                self.repo_root,
                max_count=self.max_count,
                mode=LogMode.TOP_LEVEL,
                date_format=self.date_format,
                runner=self.runner,
            )
        except ExecutionError as e:
            if ticket != self._refresh_ticket:
                logger.info("Ignoring failure of superseded refresh: %s", e)
                return self._snapshot
            logger.error("Failed to read git log in %s: %s", self.repo_root, e)
            self._install(())
            self.state = GraphState.FAILED
            self.last_error = e
            self._notify()
            raise

        if ticket != self._refresh_ticket:
            logger.info("Dropping result of superseded refresh")
            return self._snapshot

        self._install(tuple(commits[: self.max_count]))
        self.state = GraphState.LOADED
        self.last_error = None
        logger.info(
            "Loaded %d first-parent commits (generation %d)",
            len(self._snapshot), self.generation,
        )
        self._notify()
        return self._snapshot

    def top_level(self) -> GraphSnapshot:
        return self._snapshot

    def get(self, sha: str) -> Optional[CommitRecord]:
        return self._index.get(sha)

    async def folded_sections(self, sha: str) -> List[FoldedSection]:
        commit = self._index.get(sha)
        if commit is None or not commit.is_merge:
            return []
        return list(await self.cache.get_or_compute(commit))

    async def expand(self, sha: str) -> List[CommitRecord]:
        return flatten_sections(await self.folded_sections(sha))
