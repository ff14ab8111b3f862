"""
Session - Stateful query surface for a catalog UI.

Wraps a loaded catalog and a QueryState behind setters and getters. Any
setter that changes what matches resets the page to 1; sorting and page
navigation keep it. The view is recomputed after every mutation.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import get_config
from .loader import load_catalog
from .models import CatalogEntry, FacetGroup
from .query import Chip, QueryState, ViewResult, facet_options, recompute


logger = logging.getLogger(__name__)


class CatalogSession:
    """
    One interactive browsing session over a catalog.

    Usage:
        session = CatalogSession.from_file(Path("codelabs.json"))
        session.set_search("kubernetes")
        session.select(FacetGroup.TAGS, "beginner")
        for entry in session.view.items:
            print(entry.title)
    """

    def __init__(
        self,
        entries: Sequence[CatalogEntry],
        state: Optional[QueryState] = None,
        error: Optional[str] = None,
    ):
        self.entries: List[CatalogEntry] = list(entries)
        self.state = state or QueryState(items_per_page=get_config().items_per_page)
        self.error = error
        self.facet_options: Dict[FacetGroup, List[str]] = facet_options(self.entries)
        self._view = recompute(self.entries, self.state)

    @classmethod
    def from_file(cls, path: Path) -> "CatalogSession":
        """Load a catalog artifact; on failure the session is empty with `error` set."""
        result = load_catalog(path)
        return cls(result.entries, error=result.error)

    @property
    def view(self) -> ViewResult:
        return self._view

    @property
    def chips(self) -> List[Chip]:
        return self._view.chips

    def refresh(self) -> ViewResult:
        self._view = recompute(self.entries, self.state)
        return self._view

    def _filters_changed(self) -> ViewResult:
        self.state.page = 1
        return self.refresh()

    # --- Search and sort ---

    def set_search(self, text: str) -> ViewResult:
        self.state.search_query = (text or "").lower()
        return self._filters_changed()

    def set_sort(self, sort: str) -> ViewResult:
        self.state.sort = sort
        return self.refresh()

    # --- Facets ---

    def select(self, group: FacetGroup, value: str) -> ViewResult:
        self.state.filters.select(group, value)
        return self._filters_changed()

    def deselect(self, group: FacetGroup, value: str) -> ViewResult:
        self.state.filters.deselect(group, value)
        return self._filters_changed()

    def toggle(self, group: FacetGroup, value: str, checked: bool) -> ViewResult:
        """Checkbox-style selection change."""
        if checked:
            return self.select(group, value)
        return self.deselect(group, value)

    def clear(self, group: FacetGroup) -> ViewResult:
        self.state.filters.clear(group)
        return self._filters_changed()

    def reset_all(self) -> ViewResult:
        """Clear every facet group and the search text."""
        self.state.filters.clear_all()
        self.state.search_query = ""
        return self._filters_changed()

    def remove_chip(self, group: FacetGroup, value: str) -> ViewResult:
        return self.deselect(group, value)

    def is_selected(self, group: FacetGroup, value: str) -> bool:
        return self.state.filters.is_selected(group, value)

    # --- Pages ---

    def go_to_page(self, page: int) -> bool:
        """Move to a page; out-of-range requests are ignored and return False."""
        if not 1 <= page <= self._view.total_pages:
            logger.debug(f"Ignoring page {page} (1..{self._view.total_pages})")
            return False
        self.state.page = page
        self.refresh()
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.state.page + 1)

    def prev_page(self) -> bool:
        return self.go_to_page(self.state.page - 1)
