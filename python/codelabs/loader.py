"""
Loader - Read the catalog artifact for the query engine.

The artifact may be missing, corrupt or hand-edited. Loading never
raises: failures come back as an error message with an empty catalog,
and each object in the array is normalized independently of the indexer.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from .errors import CatalogLoadError
from .models import CatalogEntry
from .normalizer import normalize_entry


logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load codelabs. Make sure codelabs.json exists."


@dataclass
class CatalogLoadResult:
    """Entries from the artifact, or an error with an empty catalog."""
    entries: List[CatalogEntry] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_catalog(data: Any) -> List[CatalogEntry]:
    """
    Normalize a decoded artifact into entries.

    Raises:
        CatalogLoadError: If the artifact is not a JSON array
    """
    if not isinstance(data, list):
        raise CatalogLoadError(f"expected a JSON array, got {type(data).__name__}")

    entries = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning(f"Skipping catalog item {index}: not an object")
            continue
        entries.append(normalize_entry(item))
    return entries


def read_catalog(path: Path) -> List[CatalogEntry]:
    """
    Read and normalize the artifact at path.

    Raises:
        CatalogLoadError: If the file is missing, unreadable or malformed
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError as e:
        raise CatalogLoadError(f"catalog not found: {path}") from e
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CatalogLoadError(f"cannot read catalog {path}: {e}") from e
    return parse_catalog(data)


def load_catalog(path: Path) -> CatalogLoadResult:
    """Load the artifact, turning any failure into an error state."""
    try:
        entries = read_catalog(path)
    except CatalogLoadError as e:
        logger.error(f"Error loading codelabs: {e}")
        return CatalogLoadResult(entries=[], error=LOAD_ERROR_MESSAGE)

    logger.info(f"Loaded {len(entries)} codelab(s) from {path}")
    return CatalogLoadResult(entries=entries)
