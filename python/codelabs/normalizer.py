"""
Normalizer - Turn loosely typed metadata into canonical CatalogEntry objects.

Used on both sides of the catalog artifact: the indexer normalizes each
codelab.json record, and the loader normalizes the artifact again because
it may have been edited by hand. Normalizing an already normalized entry
is a no-op.
"""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from .models import CatalogEntry


DEFAULT_TITLE = "Untitled"
DEFAULT_STATUS = "draft"
INDEX_PAGE = "index.html"


def normalize_text(value: Any, default: str = "") -> str:
    """Falsy values become the default, anything else a string."""
    if not value:
        return default
    return value if isinstance(value, str) else str(value)


def normalize_list(value: Any) -> List[str]:
    """
    Normalize a scalar-or-list field to a list of non-empty strings.

    A missing value gives [], a scalar gives a one-element list and
    falsy list elements are dropped.
    """
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]
    return [v if isinstance(v, str) else str(v) for v in items if v]


def normalize_duration(value: Any) -> int:
    """Minutes as a non-negative int; missing or non-numeric gives 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(int(value), 0)


_ISO_DATETIME = re.compile(
    r"""
    (?P<year>\d{4})
    (?:-?(?P<month>\d{2})
        (?:-?(?P<day>\d{2}))?
    )?
    (?:[T\s](?P<hour>\d{2})
        (?::?(?P<minute>\d{2})
            (?::?(?P<second>\d{2})(?:[.,](?P<fraction>\d+))?)?
        )?
    )?
    \s*(?P<tz>Z|[+-]\d{2}(?::?\d{2})?)?
    """,
    re.VERBOSE | re.IGNORECASE,
)


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or datetime into an aware datetime.

    Accepts reduced precision ("2024", "2024-03"), basic format
    ("20240315T1030Z") and fractions of any length. Missing parts default
    to the start of the period and a value without an offset is UTC.
    Returns None for anything else.
    """
    if not value or not isinstance(value, str):
        return None
    match = _ISO_DATETIME.fullmatch(value.strip())
    if match is None:
        return None

    parts = match.groupdict()
    fraction = (parts["fraction"] or "")[:6].ljust(6, "0")
    try:
        return datetime(
            int(parts["year"]),
            int(parts["month"] or 1),
            int(parts["day"] or 1),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
            int(fraction),
            tzinfo=_parse_offset(parts["tz"]),
        )
    except ValueError:
        return None


def _parse_offset(text: Optional[str]) -> timezone:
    if not text or text.upper() == "Z":
        return timezone.utc
    digits = text[1:].replace(":", "")
    offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:] or 0))
    return timezone(-offset if text[0] == "-" else offset)


def build_url(relative_dir: str) -> str:
    """URL of a codelab's page from its directory relative to the scan root."""
    relative_dir = relative_dir.replace("\\", "/").strip("/")
    if not relative_dir or relative_dir == ".":
        return INDEX_PAGE
    return f"{relative_dir}/{INDEX_PAGE}"


def normalize_entry(raw: Mapping[str, Any], default_id: str = "", url: str | None = None) -> CatalogEntry:
    """
    Build a CatalogEntry from a raw record, applying every field default.

    Args:
        raw: Parsed metadata or artifact object
        default_id: Used when the record has no id (the directory name)
        url: Computed URL; when None the record's own url is kept
    """
    return CatalogEntry(
        id=normalize_text(raw.get("id"), default_id),
        title=normalize_text(raw.get("title"), DEFAULT_TITLE),
        summary=normalize_text(raw.get("summary")),
        categories=normalize_list(raw.get("categories")),
        tags=normalize_list(raw.get("tags")),
        duration=normalize_duration(raw.get("duration")),
        updated=normalize_text(raw.get("updated")),
        authors=normalize_list(raw.get("authors")),
        status=normalize_text(raw.get("status"), DEFAULT_STATUS),
        url=normalize_text(raw.get("url")) if url is None else url,
        source=normalize_text(raw.get("source")),
    )


def normalize_metadata(metadata: Dict[str, Any], directory_name: str, relative_dir: str) -> CatalogEntry:
    """Normalize one codelab.json record found in a scanned directory."""
    return normalize_entry(metadata, default_id=directory_name, url=build_url(relative_dir))
