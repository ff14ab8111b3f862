"""
Normalizer Tests - Verify metadata defaults and type leniency.
"""

from datetime import datetime, timedelta, timezone

import pytest

from codelabs.models import CatalogEntry
from codelabs.normalizer import (
    build_url,
    normalize_duration,
    normalize_entry,
    normalize_list,
    normalize_metadata,
    parse_iso_datetime,
)


class TestNormalizeList:
    """Scalar-or-list fields always become lists."""

    def test_missing_is_empty(self):
        assert normalize_list(None) == []
        assert normalize_list("") == []

    def test_scalar_is_wrapped(self):
        assert normalize_list("Cloud") == ["Cloud"]

    def test_list_is_kept_in_order(self):
        assert normalize_list(["b", "a"]) == ["b", "a"]

    def test_falsy_elements_are_dropped(self):
        assert normalize_list(["a", "", None, "b"]) == ["a", "b"]

    def test_non_string_elements_become_strings(self):
        assert normalize_list([2024, "x"]) == ["2024", "x"]


class TestNormalizeDuration:

    @pytest.mark.parametrize("value,expected", [
        (None, 0),
        (45, 45),
        (12.7, 12),
        ("30", 30),
        ("soon", 0),
        (-5, 0),
        (True, 0),
        (float("nan"), 0),
        ([10], 0),
    ])
    def test_values(self, value, expected):
        assert normalize_duration(value) == expected


class TestParseIsoDatetime:
    """Tests for lenient ISO 8601 parsing of `updated`."""

    @pytest.mark.parametrize("value,expected", [
        ("2024", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-03", datetime(2024, 3, 1, tzinfo=timezone.utc)),
        ("2024-03-15", datetime(2024, 3, 15, tzinfo=timezone.utc)),
        ("20240315", datetime(2024, 3, 15, tzinfo=timezone.utc)),
        ("2024-03-15T10:30Z", datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)),
        ("2024-03-15 10:30:05", datetime(2024, 3, 15, 10, 30, 5, tzinfo=timezone.utc)),
        ("2024-03-15T10:30:05.5Z", datetime(2024, 3, 15, 10, 30, 5, 500000, tzinfo=timezone.utc)),
        ("20240315T103005Z", datetime(2024, 3, 15, 10, 30, 5, tzinfo=timezone.utc)),
    ])
    def test_accepted_forms(self, value, expected):
        assert parse_iso_datetime(value) == expected

    def test_offsets(self):
        parsed = parse_iso_datetime("2024-03-15T10:00:00-05:00")

        assert parsed.utcoffset() == timedelta(hours=-5)
        assert parsed == datetime(2024, 3, 15, 15, tzinfo=timezone.utc)
        assert parse_iso_datetime("2024-03-15T10:00+0530").utcoffset() == timedelta(hours=5, minutes=30)

    @pytest.mark.parametrize("value", ["", None, 20240315, "someday", "2024-13", "2024-02-30", "24-03-15"])
    def test_rejected_values(self, value):
        assert parse_iso_datetime(value) is None


class TestBuildUrl:

    def test_nested_dir(self):
        assert build_url("web/alpha") == "web/alpha/index.html"

    def test_windows_separators(self):
        assert build_url("web\\alpha") == "web/alpha/index.html"


class TestNormalizeMetadata:
    """Indexer-side normalization of codelab.json records."""

    def test_missing_fields_get_defaults(self):
        entry = normalize_metadata({}, "intro", "intro")

        assert entry == CatalogEntry(
            id="intro",
            title="Untitled",
            summary="",
            categories=[],
            tags=[],
            duration=0,
            updated="",
            authors=[],
            status="draft",
            url="intro/index.html",
            source="",
        )

    def test_metadata_values_win(self):
        entry = normalize_metadata(
            {"id": "custom", "title": "Lab", "status": "published", "source": "docs/lab.md",
             "url": "ignored.html"},
            "folder",
            "a/folder",
        )

        assert entry.id == "custom"
        assert entry.status == "published"
        assert entry.source == "docs/lab.md"
        assert entry.url == "a/folder/index.html"

    def test_field_order_matches_artifact(self):
        entry = normalize_metadata({"title": "Lab"}, "lab", "lab")

        assert list(entry.to_dict()) == [
            "id", "title", "summary", "categories", "tags", "duration",
            "updated", "authors", "status", "url", "source",
        ]


class TestNormalizeEntry:
    """Consumer-side normalization of artifact objects."""

    def test_keeps_url_from_artifact(self):
        entry = normalize_entry({"title": "Lab", "url": "lab/index.html", "tags": "solo"})

        assert entry.url == "lab/index.html"
        assert entry.tags == ["solo"]

    def test_idempotent(self):
        raw = {"title": "Lab", "categories": "Cloud", "authors": ["A", ""], "duration": "15"}

        once = normalize_entry(raw)
        twice = normalize_entry(once.to_dict())

        assert once == twice
