"""
Builder - Main entry point for building the catalog artifact.

Runs the scanner over the source tree, writes the sorted entries as one
pretty-printed JSON array and reports statistics. An empty tree still
produces a well-formed empty array so downstream consumers always have a
file to load.

Usage:
    codelab-catalog [source-dir] [output-file] [--watch] [-v]
"""

import asyncio
import json
import logging
import os
import stat
import sys
import tempfile
import time
from pathlib import Path
from typing import List, Optional

from .config import get_config, CatalogConfig, set_config
from .models import BuildStats, CatalogEntry, FacetGroup, ScanResult
from .scanner import Scanner
from .watcher import CatalogWatcher


logger = logging.getLogger(__name__)


def _artifact_mode(output_path: Path) -> int:
    """Mode for the artifact: the existing file's, else 0666 minus the umask."""
    try:
        return stat.S_IMODE(output_path.stat().st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_catalog(entries: List[CatalogEntry], output_path: Path) -> Path:
    """
    Write entries as a JSON array, replacing output_path atomically.

    The array goes to a temporary sibling first, so readers never see a
    partially written catalog. The temporary file is private to its owner,
    so it gets the permissions a plain write would have before the swap.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False)
    mode = _artifact_mode(output_path)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{output_path.name}.", suffix=".tmp", dir=str(output_path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return output_path


def count_facet_values(entries: List[CatalogEntry], group: FacetGroup) -> int:
    """Number of distinct non-empty values of a facet across entries."""
    return len({v for e in entries for v in e.facet_values(group) if v})


class Builder:
    """
    Catalog build orchestrator.

    Scanner -> sort by title -> write artifact -> statistics.
    """

    def __init__(self, config: Optional[CatalogConfig] = None):
        self.config = config or get_config()
        if config:
            set_config(config)

        self._scanner = Scanner(self.config)
        self._watcher: Optional[CatalogWatcher] = None
        self._last_fingerprint: Optional[str] = None

    async def build(
        self,
        source_dir: Optional[Path] = None,
        output_file: Optional[Path] = None,
    ) -> BuildStats:
        """
        Scan the source tree and write the catalog artifact.

        Args:
            source_dir: Directory to scan (default: config.source_dir)
            output_file: Artifact path (default: config.output_file)

        Returns:
            Statistics about the build
        """
        source_dir = Path(source_dir) if source_dir else self.config.source_dir
        output_file = Path(output_file) if output_file else self.config.output_file
        start_time = time.monotonic()

        logger.info(f"Scanning for codelabs in {source_dir.resolve()}")
        result = await self._scanner.scan(source_dir)
        stats = self._stats_for(result)

        if not result.entries:
            logger.warning(
                "No codelabs found. Make sure you have exported codelabs to the directory."
            )

        write_catalog(result.entries, output_file)
        stats.written = True
        self._last_fingerprint = result.fingerprint

        stats.duration_seconds = time.monotonic() - start_time
        logger.info(f"Wrote {output_file.resolve()}: {stats}")
        return stats

    async def rebuild_if_changed(
        self,
        source_dir: Optional[Path] = None,
        output_file: Optional[Path] = None,
    ) -> BuildStats:
        """
        Rescan and rewrite the artifact only when the metadata fingerprint moved.

        Used by watch mode, where editors often touch files without
        changing their content.
        """
        source_dir = Path(source_dir) if source_dir else self.config.source_dir
        output_file = Path(output_file) if output_file else self.config.output_file
        start_time = time.monotonic()

        result = await self._scanner.scan(source_dir)
        stats = self._stats_for(result)

        if result.fingerprint == self._last_fingerprint and output_file.exists():
            logger.info("Metadata unchanged, catalog left as is")
        else:
            write_catalog(result.entries, output_file)
            stats.written = True
            self._last_fingerprint = result.fingerprint
            logger.info(f"Rebuilt {output_file.resolve()}: {stats}")

        stats.duration_seconds = time.monotonic() - start_time
        return stats

    def _stats_for(self, result: ScanResult) -> BuildStats:
        stats = BuildStats(
            metadata_files=result.metadata_files,
            entries_indexed=len(result.entries),
            entries_skipped=result.skipped_count,
            categories=count_facet_values(result.entries, FacetGroup.CATEGORIES),
            tags=count_facet_values(result.entries, FacetGroup.TAGS),
        )

        for entry in result.entries:
            logger.debug(f"Indexed {entry.title!r} -> {entry.url}")

        if stats.entries_skipped:
            logger.warning(
                f"Found {stats.metadata_files} metadata file(s), "
                f"{stats.entries_indexed} indexed, {stats.entries_skipped} skipped"
            )
        return stats

    async def start_watching(
        self,
        source_dir: Optional[Path] = None,
        output_file: Optional[Path] = None,
    ):
        """
        Watch the source tree and rebuild on metadata changes.

        This runs indefinitely until stop_watching() is called.
        """
        source_dir = Path(source_dir) if source_dir else self.config.source_dir

        self._watcher = CatalogWatcher(self.config)
        self._watcher.start(source_dir)

        async for batch in self._watcher.changes():
            logger.info(f"{len(batch)} metadata change(s) detected")
            await self.rebuild_if_changed(source_dir, output_file)

    def stop_watching(self):
        """Stop the file watcher."""
        if self._watcher:
            self._watcher.stop()
            self._watcher = None

    def close(self):
        """Clean up resources."""
        self.stop_watching()


async def run_build(
    source_dir: Optional[Path] = None,
    output_file: Optional[Path] = None,
    config: Optional[CatalogConfig] = None,
) -> BuildStats:
    """
    Convenience function to run a single build.

    Usage:
        stats = await run_build(Path("codelabs"), Path("codelabs.json"))
        print(stats)
    """
    builder = Builder(config)
    try:
        return await builder.build(source_dir, output_file)
    finally:
        builder.close()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    import argparse

    config = CatalogConfig.from_env()

    parser = argparse.ArgumentParser(description="Build the codelabs catalog index")
    parser.add_argument("source", nargs="?", default=str(config.source_dir),
                        help="Directory containing codelabs (default: ./codelabs)")
    parser.add_argument("output", nargs="?", default=str(config.output_file),
                        help="Output JSON file (default: codelabs.json)")
    parser.add_argument("--watch", action="store_true", help="Rebuild when metadata changes")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s"
    )

    config.source_dir = Path(args.source)
    config.output_file = Path(args.output)
    config.__post_init__()

    async def _main():
        builder = Builder(config)
        try:
            stats = await builder.build()
            print(f"\n{stats}")
            print(f"Output: {config.output_file}")

            if args.watch:
                print("\nWatching for changes (Ctrl+C to stop)...")
                await builder.start_watching()
        finally:
            builder.close()

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        print("\nStopped.")
    except Exception as e:
        logger.error(f"Build failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
