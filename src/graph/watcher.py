"""Refreshes a GraphModel when references under the git directory change.

watchdog delivers events on its observer thread; they are handed to the
asyncio loop with ``call_soon_threadsafe`` and bursts are coalesced into a
single refresh.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from src.graph.model import GraphModel
from src.history.errors import ExecutionError
from src.history.refs import is_reference_path, reference_roots

logger = logging.getLogger(__name__)

DEFAULT_COALESCE_SECONDS = 0.25


class RefEventHandler(FileSystemEventHandler):
    """Forwards reference creation, modification and deletion to a callback."""

    def __init__(self, git_dir: Path, on_change):
        super().__init__()
        self.git_dir = git_dir
        self.roots = reference_roots(git_dir)
        self.on_change = on_change

    def _is_relevant(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(
            p and is_reference_path(root, p) for p in paths for root in self.roots
        )

    def on_created(self, event):
        if self._is_relevant(event):
            self.on_change(event)

    def on_modified(self, event):
        if not event.is_directory and self._is_relevant(event):
            self.on_change(event)

    def on_deleted(self, event):
        if self._is_relevant(event):
            self.on_change(event)

    def on_moved(self, event):
        # git updates refs by renaming <ref>.lock over <ref>
        if self._is_relevant(event):
            self.on_change(event)


class ChangeWatcher:
    def __init__(
        self,
        model: GraphModel,
        git_dir: Union[str, Path],
        coalesce_seconds: float = DEFAULT_COALESCE_SECONDS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.model = model
        self.git_dir = Path(git_dir).resolve()
        self.coalesce_seconds = coalesce_seconds
        self.loop = loop
        self.handler = RefEventHandler(self.git_dir, self._on_event)
        self.observer = None
        self.refresh_count = 0
        self._pending: Optional[asyncio.TimerHandle] = None
        self._tasks = set()

    def watch_dirs(self):
        """Reference roots, skipping any that a recursive watch on another already covers."""
        roots = self.handler.roots
        return [
            root
            for root in roots
            if not any(other != root and other in root.parents for other in roots)
        ]

    def start(self):
        if self.observer is not None:
            return
        if self.loop is None:
            self.loop = asyncio.get_running_loop()
        self.observer = Observer()
        for path in self.watch_dirs():
            self.observer.schedule(self.handler, str(path), recursive=True)
            logger.info("Watching references under %s", path)
        self.observer.start()

    def stop(self):
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
            logger.info("Stopped watching %s", self.git_dir)
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        for task in list(self._tasks):
            task.cancel()

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, *exc):
        tasks = list(self._tasks)
        self.stop()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _on_event(self, event: FileSystemEvent):
        # Observer thread
        logger.debug("Reference change: %s %s", event.event_type, event.src_path)
        self.loop.call_soon_threadsafe(self.notify)

    def notify(self):
        """Schedules a refresh on the loop; events inside the window share one."""
        if self.loop is None:
            self.loop = asyncio.get_running_loop()
        if self.coalesce_seconds <= 0:
            self._start_refresh()
            return
        if self._pending is not None:
            return
        self._pending = self.loop.call_later(self.coalesce_seconds, self._start_refresh)

    def _start_refresh(self):
        self._pending = None
        task = self.loop.create_task(self._refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _refresh(self):
        self.refresh_count += 1
        try:
            await self.model.refresh()
        except ExecutionError as e:
            logger.warning("Refresh after reference change failed: %s", e)
