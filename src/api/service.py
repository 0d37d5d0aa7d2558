import functools
import logging
from typing import List, Optional

from src.api.schemas import (
    CommitResponse,
    FoldedSectionResponse,
    HealthResponse,
    NodeResponse,
    RefreshResponse,
)
from src.api.settings import Settings
from src.graph.model import GraphModel
from src.graph.nodes import folded_nodes, mainline_nodes
from src.graph.watcher import ChangeWatcher
from src.history.errors import ExecutionError
from src.history.refs import resolve_git_dir, resolve_head
from src.history.runner import Runner, run_git

logger = logging.getLogger(__name__)


class GraphService:
    """Host-facing operations over a GraphModel plus its reference watcher."""

    def __init__(self, settings: Settings, runner: Optional[Runner] = None):
        self.settings = settings
        if runner is None:
            runner = functools.partial(run_git, timeout=settings.git_timeout)
        self.model = GraphModel(
            settings.repo_root,
            max_count=settings.max_count,
            date_format=settings.date_format,
            runner=runner,
        )
        self.git_dir = resolve_git_dir(settings.repo_root)
        self.watcher: Optional[ChangeWatcher] = None

    async def start(self):
        try:
            await self.model.refresh()
        except ExecutionError as e:
            logger.error(f"Initial load of {self.settings.repo_root} failed: {e}")
        if self.settings.watch_refs and self.git_dir.is_dir():
            self.watcher = ChangeWatcher(
                self.model, self.git_dir, coalesce_seconds=self.settings.coalesce_seconds
            )
            self.watcher.start()

    def stop(self):
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    async def refresh(self) -> RefreshResponse:
        await self.model.refresh()
        return self.summary()

    def summary(self) -> RefreshResponse:
        return RefreshResponse(
            generation=self.model.generation,
            state=self.model.state.value,
            count=len(self.model.top_level()),
        )

    def list_top_level(self) -> List[CommitResponse]:
        return [CommitResponse.from_record(c) for c in self.model.top_level()]

    def get_commit(self, sha: str) -> Optional[CommitResponse]:
        commit = self.model.get(sha)
        if not commit:
            return None
        return CommitResponse.from_record(commit)

    async def expand(self, sha: str) -> List[CommitResponse]:
        return [CommitResponse.from_record(c) for c in await self.model.expand(sha)]

    async def get_folded_sections(self, sha: str) -> List[FoldedSectionResponse]:
        sections = await self.model.folded_sections(sha)
        return [FoldedSectionResponse.from_section(s) for s in sections]

    def list_nodes(self) -> List[NodeResponse]:
        return [NodeResponse.from_node(n) for n in mainline_nodes(self.model.top_level())]

    async def node_children(self, sha: str) -> Optional[List[NodeResponse]]:
        merge = self.model.get(sha)
        if merge is None:
            return None
        if not merge.is_merge:
            return []
        commits = await self.model.expand(sha)
        return [NodeResponse.from_node(n) for n in folded_nodes(merge, commits)]

    def health(self) -> HealthResponse:
        head = None
        if self.git_dir.is_dir():
            try:
                head = resolve_head(self.git_dir)
            except OSError as e:
                logger.warning(f"Could not read HEAD: {e}")
        return HealthResponse(
            status="ok",
            repo=str(self.settings.repo_root),
            head=head,
            state=self.model.state.value,
            generation=self.model.generation,
        )
