"""
Data Models - Type definitions for the catalog pipeline.

These dataclasses represent the data flowing from the indexer into the
catalog artifact and on into the query engine.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List


class FacetGroup(str, Enum):
    """Filterable multi-valued fields, in chip display order."""
    CATEGORIES = "categories"
    TAGS = "tags"
    AUTHORS = "authors"


class SortKey(str, Enum):
    """Sort orders offered to the UI."""
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    UPDATED_DESC = "updated-desc"
    UPDATED_ASC = "updated-asc"
    DURATION_ASC = "duration-asc"
    DURATION_DESC = "duration-desc"


@dataclass
class CatalogEntry:
    """
    One tutorial in the catalog.

    Field names are the artifact's JSON keys, in the order they are written.
    """
    id: str
    title: str = "Untitled"
    summary: str = ""
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    duration: int = 0              # Minutes, 0 means unknown
    updated: str = ""              # ISO-8601 date or empty
    authors: List[str] = field(default_factory=list)
    status: str = "draft"
    url: str = ""
    source: str = ""

    def facet_values(self, group: FacetGroup) -> List[str]:
        """Values this entry holds for a facet group."""
        return getattr(self, FacetGroup(group).value)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScanResult:
    """Result of scanning a directory tree."""
    entries: List[CatalogEntry]
    failures: list                 # Failed ScanOutcome items
    metadata_files: int
    fingerprint: str
    duration_seconds: float

    @property
    def skipped_count(self) -> int:
        return len(self.failures)


@dataclass
class BuildStats:
    """Statistics from a build run."""
    metadata_files: int = 0
    entries_indexed: int = 0
    entries_skipped: int = 0
    categories: int = 0
    tags: int = 0
    written: bool = False
    duration_seconds: float = 0.0

    def __str__(self) -> str:
        return (
            f"Indexed {self.entries_indexed} codelab(s) "
            f"({self.entries_skipped} skipped, "
            f"{self.categories} categories, "
            f"{self.tags} tags) "
            f"in {self.duration_seconds:.1f}s"
        )
