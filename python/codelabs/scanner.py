"""
Scanner - Recursive codelab discovery and concurrent metadata reads.

Walks the source tree for directories holding a codelab.json file, then
reads and normalizes those files on a thread pool. Every file produces a
ScanOutcome, either an entry or a failure, so the caller decides what a
bad record means. The collected result is always sorted by title, so
traversal and completion order never show in the output.
"""

import asyncio
import json
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import AsyncGenerator, List

from .collation import locale_key
from .config import get_config, CatalogConfig
from .errors import handle_error, MetadataFormatError, ScanOutcome
from .hasher import hash_bytes, combine_hashes
from .models import CatalogEntry, ScanResult
from .normalizer import normalize_metadata


logger = logging.getLogger(__name__)


def sort_by_title(entries: List[CatalogEntry]) -> List[CatalogEntry]:
    """Stable locale-aware ascending sort on title."""
    return sorted(entries, key=lambda e: locale_key(e.title))


class Scanner:
    """
    Codelab metadata scanner.

    Only subdirectories of the root are candidates; the root's own
    metadata file (if any) is ignored.
    """

    def __init__(self, config: CatalogConfig | None = None):
        self.config = config or get_config()

    async def scan(self, root: Path | None = None) -> ScanResult:
        """
        Scan a directory tree and return all codelab entries sorted by title.

        Args:
            root: Directory to scan (default: config.source_dir)

        Returns:
            ScanResult with entries, failures and a content fingerprint
        """
        root = Path(root) if root is not None else self.config.source_dir
        start_time = time.monotonic()

        entries: List[CatalogEntry] = []
        failures: List[ScanOutcome] = []
        hashes = []
        metadata_files = 0

        async for outcome in self.scan_iter(root):
            metadata_files += 1
            if outcome.success:
                entries.append(outcome.entry)
                hashes.append((outcome.entry.url, outcome.content_hash))
            else:
                failures.append(outcome)

        duration = time.monotonic() - start_time
        logger.info(
            f"Scanned {metadata_files} metadata file(s) in {duration:.1f}s: "
            f"{len(entries)} ok, {len(failures)} skipped"
        )

        return ScanResult(
            entries=sort_by_title(entries),
            failures=failures,
            metadata_files=metadata_files,
            fingerprint=combine_hashes(hashes),
            duration_seconds=duration,
        )

    async def scan_iter(
        self,
        root: Path | None = None
    ) -> AsyncGenerator[ScanOutcome, None]:
        """
        Iterate over read outcomes as they complete.

        This is a streaming interface; outcomes arrive in completion order,
        not title order.
        """
        root = Path(root) if root is not None else self.config.source_dir

        if not root.is_dir():
            logger.error(f"Directory not found: {root}")
            return

        metadata_paths = self.find_metadata_files(root)
        if not metadata_paths:
            return

        loop = asyncio.get_running_loop()
        workers = max(1, min(self.config.scanner_concurrency, len(metadata_paths)))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scanner") as executor:
            tasks = [
                loop.run_in_executor(executor, self._read_metadata, path, root)
                for path in metadata_paths
            ]
            for next_done in asyncio.as_completed(tasks):
                yield await next_done

    def find_metadata_files(self, root: Path) -> List[Path]:
        """Depth-first list of metadata files in subdirectories of root."""
        found: List[Path] = []
        self._walk(root, found)
        return found

    def _walk(self, directory: Path, found: List[Path]) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            handle_error(e, directory, "scan_directory")
            return

        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError as e:
                handle_error(e, Path(entry.path), "scan_entry")
                continue

            if entry.name in self.config.skip_dirs:
                logger.warning(f"Skipping {entry.path} (listed in skip_dirs)")
                continue

            subdir = Path(entry.path)
            metadata_path = subdir / self.config.metadata_filename
            if metadata_path.is_file():
                found.append(metadata_path)
            else:
                logger.debug(f"No {self.config.metadata_filename} in {subdir}")

            self._walk(subdir, found)

    def _read_metadata(self, path: Path, root: Path) -> ScanOutcome:
        """
        Read, hash, parse and normalize one metadata file (runs in thread pool).

        Never raises; failures come back as a failed ScanOutcome.
        """
        try:
            data = path.read_bytes()
            metadata = json.loads(data.decode("utf-8-sig"))
            if not isinstance(metadata, dict):
                raise MetadataFormatError(path, type(metadata).__name__)

            directory = path.parent
            relative_dir = directory.relative_to(root).as_posix()
            entry = normalize_metadata(metadata, directory.name, relative_dir)
            logger.debug(f"Read {entry.title!r} from {path}")
            return ScanOutcome.ok(path, entry, hash_bytes(data))

        except Exception as e:
            action = handle_error(e, path, "read_metadata")
            return ScanOutcome.failed(path, e, action)


async def scan_directory(
    root: Path | None = None,
    config: CatalogConfig | None = None,
) -> ScanResult:
    """
    Convenience function to scan a codelab tree.

    Usage:
        result = await scan_directory(Path("codelabs"))
        for entry in result.entries:
            print(entry.title, entry.url)
    """
    scanner = Scanner(config)
    return await scanner.scan(root)
