"""
Collation - Locale-aware string ordering.

Approximates the default Unicode collation used by browsers: letters
compare case- and accent-insensitively first, then by accent, and
lowercase sorts before uppercase only when everything else is equal.
So "alpha" < "Bravo" < "Charlie", unlike plain code-point order.
Punctuation and symbols sort before digits, and digits before letters,
so "~draft" and "{beta}" come ahead of "alpha".
"""

import unicodedata
from typing import Iterable, List, Tuple


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _primary_weight(char: str) -> Tuple[int, str]:
    # Spaces, punctuation and symbols < digits < letters
    if char.isalpha():
        return (2, char)
    if char.isdigit():
        return (1, char)
    return (0, char)


def locale_key(text: str) -> Tuple[Tuple[Tuple[int, str], ...], str, str]:
    """Sort key comparing primary letters, then accents, then case."""
    text = text or ""
    return (
        tuple(_primary_weight(c) for c in _strip_accents(text).casefold()),
        unicodedata.normalize("NFKD", text).casefold(),
        text.swapcase(),
    )


def locale_sorted(values: Iterable[str], reverse: bool = False) -> List[str]:
    """Sort strings ascending (or descending) by locale_key."""
    return sorted(values, key=locale_key, reverse=reverse)
