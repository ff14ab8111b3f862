"""
Display - Text helpers for rendering catalog cards.

Plain strings only; markup and escaping belong to the UI.
"""

import re
from datetime import date
from typing import Optional

from .models import CatalogEntry
from .normalizer import parse_iso_datetime


# First match wins
ICON_KEYWORDS = [
    ("web", ("web", "html", "css")),
    ("cloud", ("cloud", "kubernetes")),
    ("analytics", ("data", "analytics")),
    ("security", ("security",)),
    ("phone_iphone", ("mobile", "android", "ios")),
    ("psychology", ("ai", "ml", "machine")),
    ("deployed_code", ("docker", "container")),
]
DEFAULT_ICON = "code"


def format_duration(minutes: int) -> str:
    """45 -> "45 min", 60 -> "1h", 90 -> "1h 30m"; 0 (unknown) -> ""."""
    if not minutes:
        return ""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def format_relative_date(updated: str, today: Optional[date] = None) -> str:
    """
    Human-friendly age of an `updated` date.

    Recent dates read as "Today", "Yesterday", "3 days ago", "1 week ago"
    or "2 weeks ago"; anything 30 days or older is shown as "Mar 4, 2024".
    Missing or unparsable dates give "".
    """
    parsed = parse_iso_datetime(updated)
    if parsed is None:
        return ""
    when = parsed.date()

    today = today or date.today()
    days = abs((today - when).days)

    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 14:
        return "1 week ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    return f"{when.strftime('%b')} {when.day}, {when.year}"


def card_icon(entry: CatalogEntry) -> str:
    """Material icon name picked from keywords in categories and tags."""
    haystack = " ".join(str(v).lower() for v in [*entry.categories, *entry.tags])
    for icon, keywords in ICON_KEYWORDS:
        if any(k in haystack for k in keywords):
            return icon
    return DEFAULT_ICON


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated identifier safe for element ids."""
    slug = str(text).lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def results_label(total: int) -> str:
    if total == 0:
        return "No codelabs"
    return f"{total} codelab{'s' if total != 1 else ''}"
