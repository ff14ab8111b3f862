"""
Watcher - Metadata change detection for watch mode.

Uses watchdog for cross-platform file system monitoring with debouncing
to batch rapid saves into a single rebuild.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Dict, List, Optional
from dataclasses import dataclass
from enum import Enum

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import get_config, CatalogConfig


logger = logging.getLogger(__name__)


class ChangeType(Enum):
    """Type of file system change."""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


@dataclass
class FileChange:
    """A pending file change event."""
    path: Path
    change_type: ChangeType
    timestamp: float
    old_path: Optional[Path] = None  # For MOVED events


class _MetadataEventHandler(FileSystemEventHandler):
    """Forwards watchdog events from the observer thread to the watcher's loop."""

    def __init__(self, watcher: "CatalogWatcher"):
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent):
        self._forward(event, ChangeType.ADDED)

    def on_modified(self, event: FileSystemEvent):
        self._forward(event, ChangeType.MODIFIED)

    def on_deleted(self, event: FileSystemEvent):
        self._forward(event, ChangeType.DELETED)

    def on_moved(self, event: FileSystemEvent):
        self._forward(event, ChangeType.MOVED)

    def _forward(self, event: FileSystemEvent, change_type: ChangeType):
        if change_type == ChangeType.MOVED:
            path, old_path = Path(event.dest_path), Path(event.src_path)
        else:
            path, old_path = Path(event.src_path), None

        if not self.watcher.is_relevant(path, event.is_directory, change_type, old_path):
            return

        loop = self.watcher._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self.watcher._queue_change, path, change_type, old_path)


class CatalogWatcher:
    """
    Watches a codelab tree and yields debounced batches of metadata changes.

    Only codelab.json files matter, plus directory deletes and moves
    (a whole codelab disappearing or being renamed changes its URL).
    """

    def __init__(self, config: CatalogConfig | None = None):
        self.config = config or get_config()

        self._observer = None
        self._pending_changes: Dict[str, FileChange] = {}
        self._debounce_task: Optional[asyncio.Task] = None
        self._running = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._change_queue: asyncio.Queue[List[FileChange]] = asyncio.Queue()

    def start(self, root: Path | None = None):
        """
        Start watching a directory tree.

        Must be called from a running event loop.

        Args:
            root: Directory to watch (default: config.source_dir)
        """
        root = Path(root) if root is not None else self.config.source_dir
        self._loop = asyncio.get_running_loop()

        self._observer = Observer()
        if root.is_dir():
            self._observer.schedule(_MetadataEventHandler(self), str(root), recursive=True)
            logger.info(f"Watching: {root}")
        else:
            logger.warning(f"Watch root not found: {root}")

        self._running = True
        self._observer.start()
        logger.info("Metadata watcher started")

    def stop(self):
        """Stop watching."""
        self._running = False

        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=2)
            self._observer = None

        if self._debounce_task:
            self._debounce_task.cancel()
            self._debounce_task = None

        logger.info("Metadata watcher stopped")

    def is_relevant(
        self,
        path: Path,
        is_directory: bool,
        change_type: ChangeType,
        old_path: Optional[Path] = None,
    ) -> bool:
        """Check whether an event can change the catalog."""
        for candidate in (path, old_path):
            if candidate is None:
                continue
            if any(part in self.config.skip_dirs for part in candidate.parts):
                return False

        if is_directory:
            return change_type in {ChangeType.DELETED, ChangeType.MOVED}

        names = {path.name}
        if old_path is not None:
            names.add(old_path.name)
        return self.config.metadata_filename in names

    def _queue_change(
        self,
        path: Path,
        change_type: ChangeType,
        old_path: Optional[Path] = None,
    ):
        """Queue a change for debounced processing."""
        change = FileChange(
            path=path,
            change_type=change_type,
            timestamp=time.monotonic(),
            old_path=old_path,
        )

        # Use path as key - later events override earlier ones
        self._pending_changes[str(path)] = change

        self._schedule_flush()

    def _schedule_flush(self):
        """Schedule a debounced flush of pending changes."""
        if self._debounce_task and not self._debounce_task.done():
            return

        if self._loop:
            self._debounce_task = self._loop.create_task(self._flush_after_delay())

    async def _flush_after_delay(self):
        """Wait for debounce period then flush changes."""
        await asyncio.sleep(self.config.debounce_ms / 1000.0)
        self._flush_changes()

    def _flush_changes(self):
        """Hand all pending changes to the consumer as one batch."""
        if not self._pending_changes:
            return

        changes = list(self._pending_changes.values())
        self._pending_changes.clear()

        logger.debug(f"Flushing {len(changes)} metadata change(s)")
        self._change_queue.put_nowait(changes)

    def get_pending_count(self) -> int:
        """Get number of pending changes."""
        return len(self._pending_changes)

    async def changes(self):
        """
        Async generator that yields batches of changes.

        Usage:
            watcher = CatalogWatcher()
            watcher.start(Path("codelabs"))

            async for batch in watcher.changes():
                for change in batch:
                    print(f"{change.change_type}: {change.path}")
        """
        while self._running:
            try:
                batch = await asyncio.wait_for(
                    self._change_queue.get(),
                    timeout=1.0
                )
                yield batch
            except asyncio.TimeoutError:
                continue
