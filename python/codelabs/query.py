"""
Query Engine - Filtering, sorting and pagination over a loaded catalog.

The engine is a pure function: recompute(entries, state) -> ViewResult.
All user-facing state lives in QueryState, which callers mutate and pass
back in; nothing here keeps hidden state between calls.

Filtering rules:
    - search: lowercased substring of title, summary and every facet value
    - facets: OR within a group, AND across groups

Facet option lists always come from the whole catalog, so they never
shrink as filters narrow the results.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .collation import locale_key, locale_sorted
from .config import ITEMS_PER_PAGE
from .models import CatalogEntry, FacetGroup, SortKey
from .normalizer import parse_iso_datetime


ELLIPSIS = "…"
MAX_PLAIN_PAGES = 5

PageToken = Union[int, str]
Chip = Tuple[FacetGroup, str]


class FacetSelection:
    """
    Selected values per facet group.

    Each group behaves as an insertion-ordered set, which keeps active
    filter chips in the order the user picked them.
    """

    def __init__(self):
        self._selected: Dict[FacetGroup, Dict[str, None]] = {g: {} for g in FacetGroup}

    def select(self, group: FacetGroup, value: str) -> bool:
        """Add a value; returns False if it was already selected."""
        values = self._selected[FacetGroup(group)]
        if value in values:
            return False
        values[value] = None
        return True

    def deselect(self, group: FacetGroup, value: str) -> bool:
        """Remove a value; returns False if it was not selected."""
        return self._selected[FacetGroup(group)].pop(value, False) is None

    def clear(self, group: FacetGroup) -> None:
        self._selected[FacetGroup(group)].clear()

    def clear_all(self) -> None:
        for values in self._selected.values():
            values.clear()

    def selected(self, group: FacetGroup) -> List[str]:
        return list(self._selected[FacetGroup(group)])

    def is_selected(self, group: FacetGroup, value: str) -> bool:
        return value in self._selected[FacetGroup(group)]

    def is_empty(self) -> bool:
        return not any(self._selected.values())

    def chips(self) -> List[Chip]:
        """(group, value) pairs in group order, then insertion order."""
        return [(group, value) for group in FacetGroup for value in self._selected[group]]

    def copy(self) -> "FacetSelection":
        clone = FacetSelection()
        for group, values in self._selected.items():
            clone._selected[group] = dict(values)
        return clone

    def __eq__(self, other) -> bool:
        if not isinstance(other, FacetSelection):
            return NotImplemented
        return self.chips() == other.chips()

    def __repr__(self) -> str:
        parts = ", ".join(f"{g.value}={list(v)}" for g, v in self._selected.items())
        return f"FacetSelection({parts})"


@dataclass
class QueryState:
    """User-chosen search, filter, sort and page parameters."""
    search_query: str = ""
    filters: FacetSelection = field(default_factory=FacetSelection)
    sort: str = SortKey.TITLE_ASC.value
    page: int = 1
    items_per_page: int = ITEMS_PER_PAGE

    def copy(self) -> "QueryState":
        return QueryState(
            search_query=self.search_query,
            filters=self.filters.copy(),
            sort=self.sort,
            page=self.page,
            items_per_page=self.items_per_page,
        )


@dataclass
class ViewResult:
    """Everything a UI needs to draw one state of the catalog."""
    items: List[CatalogEntry]          # Entries on the current page
    results: List[CatalogEntry]        # Full displayed list, sorted
    total_count: int                   # len(results)
    filtered_count: int                # Entries matching the query
    total_pages: int                   # At least 1
    page: int
    page_tokens: List[PageToken]
    chips: List[Chip]
    fallback: bool                     # Nothing matched, showing whole catalog


# --- Filtering ---

def search_text(entry: CatalogEntry) -> str:
    """Lowercased haystack for free-text search."""
    parts = [entry.title, entry.summary, *entry.categories, *entry.tags, *entry.authors]
    return " ".join(parts).lower()


def matches_search(entry: CatalogEntry, query: str) -> bool:
    if not query:
        return True
    return query.lower() in search_text(entry)


def matches_filters(entry: CatalogEntry, filters: FacetSelection) -> bool:
    for group in FacetGroup:
        selected = filters.selected(group)
        if not selected:
            continue
        if not any(filters.is_selected(group, v) for v in entry.facet_values(group)):
            return False
    return True


def matches(entry: CatalogEntry, state: QueryState) -> bool:
    """True if the entry passes the search text and every facet filter."""
    return matches_search(entry, state.search_query) and matches_filters(entry, state.filters)


def filter_entries(entries: Iterable[CatalogEntry], state: QueryState) -> List[CatalogEntry]:
    return [e for e in entries if matches(e, state)]


# --- Sorting ---

def parse_updated(value: Optional[str]) -> float:
    """
    Timestamp of an `updated` string; missing or unparsable gives 0 (epoch).

    Partial dates count from the start of their period ("2024-03" is
    March 1st) and dates without a timezone are read as UTC.
    """
    parsed = parse_iso_datetime(value)
    if parsed is None:
        return 0.0
    try:
        return parsed.timestamp()
    except (OverflowError, OSError):
        return 0.0


_SORTS: Dict[SortKey, Tuple[Callable[[CatalogEntry], object], bool]] = {
    SortKey.TITLE_ASC: (lambda e: locale_key(e.title), False),
    SortKey.TITLE_DESC: (lambda e: locale_key(e.title), True),
    SortKey.UPDATED_DESC: (lambda e: parse_updated(e.updated), True),
    SortKey.UPDATED_ASC: (lambda e: parse_updated(e.updated), False),
    SortKey.DURATION_ASC: (lambda e: e.duration or 0, False),
    SortKey.DURATION_DESC: (lambda e: e.duration or 0, True),
}


def sort_entries(entries: Sequence[CatalogEntry], sort: str) -> List[CatalogEntry]:
    """
    Stable sort by a sort key string.

    Unknown keys leave the order unchanged.
    """
    try:
        key, reverse = _SORTS[SortKey(sort)]
    except ValueError:
        return list(entries)
    return sorted(entries, key=key, reverse=reverse)


# --- Facets ---

def facet_options(entries: Iterable[CatalogEntry]) -> Dict[FacetGroup, List[str]]:
    """Distinct non-empty values per facet group across all entries, locale order."""
    values: Dict[FacetGroup, set] = {g: set() for g in FacetGroup}
    for entry in entries:
        for group in FacetGroup:
            values[group].update(v for v in entry.facet_values(group) if v)
    return {group: locale_sorted(found) for group, found in values.items()}


def active_chips(state: QueryState) -> List[Chip]:
    return state.filters.chips()


# --- Pagination ---

def page_count(total: int, items_per_page: int = ITEMS_PER_PAGE) -> int:
    """Number of pages for display; an empty list still has one page."""
    return max(1, math.ceil(total / items_per_page))


def page_slice(
    entries: Sequence[CatalogEntry],
    page: int,
    items_per_page: int = ITEMS_PER_PAGE,
) -> List[CatalogEntry]:
    """Entries of a 1-based page, clipped to the sequence bounds."""
    if page < 1:
        return []
    start = (page - 1) * items_per_page
    return list(entries[start:start + items_per_page])


def page_tokens(current: int, total: int) -> List[PageToken]:
    """
    Compact page-number list of at most 7 tokens.

    Examples (total=10):
        current=1 -> [1, 2, 3, 4, "…", 10]
        current=5 -> [1, "…", 4, 5, 6, "…", 10]
        current=8 -> [1, "…", 7, 8, 9, 10]
    """
    if total <= MAX_PLAIN_PAGES:
        return list(range(1, total + 1))
    if current <= 3:
        return [1, 2, 3, 4, ELLIPSIS, total]
    if current >= total - 2:
        return [1, ELLIPSIS, total - 3, total - 2, total - 1, total]
    return [1, ELLIPSIS, current - 1, current, current + 1, ELLIPSIS, total]


def recompute(entries: Sequence[CatalogEntry], state: QueryState) -> ViewResult:
    """
    Compute the visible view for a catalog and query state.

    When nothing matches the query the whole catalog is displayed instead
    of an empty page, and `fallback` is set so a UI can say so.
    """
    filtered = filter_entries(entries, state)
    fallback = not filtered and len(entries) > 0

    results = sort_entries(filtered if filtered else entries, state.sort)
    total_pages = page_count(len(results), state.items_per_page)

    return ViewResult(
        items=page_slice(results, state.page, state.items_per_page),
        results=results,
        total_count=len(results),
        filtered_count=len(filtered),
        total_pages=total_pages,
        page=state.page,
        page_tokens=page_tokens(state.page, total_pages),
        chips=active_chips(state),
        fallback=fallback,
    )
