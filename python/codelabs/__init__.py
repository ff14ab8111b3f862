"""
Codelabs Package - Catalog indexer and query engine for tutorial collections.

Modules:
    - config: Centralized configuration
    - scanner: Recursive codelab.json discovery with concurrent reads
    - normalizer: Metadata defaults and scalar-or-list coercion
    - hasher: xxHash fingerprints for change detection
    - builder: Catalog artifact writer and CLI entry point
    - watcher: Rebuild-on-change via watchdog
    - loader: Artifact loading with an error state
    - query: Pure filter/sort/paginate engine
    - session: Stateful query surface for a UI

Build Flow:
    Scan → Normalize → Sort by title → Write codelabs.json

Usage:
    from codelabs import Builder, CatalogSession

    stats = await Builder().build(Path("codelabs"), Path("codelabs.json"))
    session = CatalogSession.from_file(Path("codelabs.json"))
"""

from .builder import Builder
from .session import CatalogSession

__all__ = ["Builder", "CatalogSession"]
