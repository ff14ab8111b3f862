"""
Catalog Configuration - Centralized settings for building and querying the catalog.

Uses environment variables with sensible defaults. Paths are resolved
to absolute paths for reliability.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Set


METADATA_FILENAME = "codelab.json"
ITEMS_PER_PAGE = 12


@dataclass
class CatalogConfig:
    """
    Configuration for the catalog indexer and query engine.

    Defaults mirror the build command: scan ./codelabs and write
    codelabs.json into the working directory.
    """

    # --- Paths ---
    source_dir: Path = field(default_factory=lambda: Path("codelabs"))
    output_file: Path = field(default_factory=lambda: Path("codelabs.json"))
    metadata_filename: str = METADATA_FILENAME

    # --- Concurrency Limits ---
    scanner_concurrency: int = 16   # Parallel metadata reads

    # --- Query Engine ---
    items_per_page: int = ITEMS_PER_PAGE

    # --- Skip Patterns ---
    # Directory names never descended into. Empty means every subdirectory
    # is a candidate, e.g. {".git", "node_modules"} to prune large trees.
    skip_dirs: Set[str] = field(default_factory=set)

    # --- Watcher ---
    debounce_ms: int = 500      # Batch rapid saves within this window

    def __post_init__(self):
        """Ensure all paths are absolute."""
        self.source_dir = Path(self.source_dir).expanduser().resolve()
        self.output_file = Path(self.output_file).expanduser().resolve()

    @classmethod
    def from_env(cls) -> "CatalogConfig":
        """
        Create config from environment variables.

        Supported env vars:
            CODELABS_SOURCE_DIR: Directory tree to scan
            CODELABS_OUTPUT_FILE: Path of the catalog artifact
            CODELABS_SCANNER_CONCURRENCY: Parallel metadata reads
            CODELABS_DEBOUNCE_MS: Watch mode debounce window
            CODELABS_ITEMS_PER_PAGE: Page size for catalog sessions
            CODELABS_SKIP_DIRS: Comma-separated directory names to skip
        """
        config = cls()

        if source_dir := os.environ.get("CODELABS_SOURCE_DIR"):
            config.source_dir = Path(source_dir)

        if output_file := os.environ.get("CODELABS_OUTPUT_FILE"):
            config.output_file = Path(output_file)

        if scanner := os.environ.get("CODELABS_SCANNER_CONCURRENCY"):
            config.scanner_concurrency = int(scanner)

        if debounce := os.environ.get("CODELABS_DEBOUNCE_MS"):
            config.debounce_ms = int(debounce)

        if per_page := os.environ.get("CODELABS_ITEMS_PER_PAGE"):
            config.items_per_page = int(per_page)

        if skip := os.environ.get("CODELABS_SKIP_DIRS"):
            config.skip_dirs = {name.strip() for name in skip.split(",") if name.strip()}

        config.__post_init__()
        return config


# Singleton default config
_default_config: CatalogConfig | None = None


def get_config() -> CatalogConfig:
    """Get the default configuration (singleton)."""
    global _default_config
    if _default_config is None:
        _default_config = CatalogConfig.from_env()
    return _default_config


def set_config(config: CatalogConfig | None) -> None:
    """Override the default configuration (for testing)."""
    global _default_config
    _default_config = config
