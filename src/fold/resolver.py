import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Union

from src.history.errors import ExecutionError
from src.history.log_reader import LogMode, merge_base, read_log
from src.history.models import CommitRecord, FoldedSection
from src.history.runner import Runner, run_git

logger = logging.getLogger(__name__)


class AncestryPathResolver:
    """Works out which commits each non-first parent of a merge brought in.

    For a merge M with parents [F, P1, ..., Pn] every Pi is resolved on its
    own: the merge-base B of F and Pi is found, then ``B..Pi`` is walked
    with ``--ancestry-path``. A parent whose queries fail is left out and
    the remaining sections are still returned.
    """

    def __init__(
        self,
        repo_root: Union[str, Path],
        runner: Runner = run_git,
        date_format: str = "iso",
    ):
        self.repo_root = repo_root
        self.runner = runner
        self.date_format = date_format

    async def common_ancestor(self, a: str, b: str) -> Optional[str]:
        return await merge_base(self.repo_root, a, b, runner=self.runner)

    async def resolve(self, merge: CommitRecord) -> List[FoldedSection]:
        if not merge.is_merge:
            return []
        first, others = merge.parents[0], merge.parents[1:]
        results = await asyncio.gather(
            *(self._resolve_parent(merge, first, parent) for parent in others)
        )
        return [section for section in results if section is not None]

    async def _resolve_parent(
        self, merge: CommitRecord, first: str, parent: str
    ) -> Optional[FoldedSection]:
        try:
            base = await self.common_ancestor(first, parent)
        except ExecutionError as e:
            logger.warning(
                "merge-base %s %s failed for merge %s: %s",
                first[:7], parent[:7], merge.short_sha, e,
            )
            return None
        if not base:
            logger.warning("No common ancestor for %s and %s", first[:7], parent[:7])
            return None

        if base == parent:
            # Already reachable from the first parent
            return FoldedSection(parent_sha=parent, commits=())

        try:
            commits = await read_log(
                self.repo_root,
                mode=LogMode.ANCESTRY_PATH,
                rev_range=f"{base}..{parent}",
                date_format=self.date_format,
                runner=self.runner,
            )
        except ExecutionError as e:
            logger.warning(
                "Ancestry path %s..%s failed for merge %s: %s",
                base[:7], parent[:7], merge.short_sha, e,
            )
            return None
        return FoldedSection(parent_sha=parent, commits=commits)
