"""
Test Configuration - Shared fixtures for catalog tests.

Uses pytest fixtures to create isolated codelab trees and configs.
"""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from codelabs.config import CatalogConfig, set_config
from codelabs.models import CatalogEntry


def write_codelab(root: Path, relative_dir: str, metadata) -> Path:
    """Create <root>/<relative_dir>/codelab.json; dicts are JSON-encoded."""
    directory = root / relative_dir
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "codelab.json"
    if isinstance(metadata, (bytes, str)):
        content = metadata if isinstance(metadata, str) else metadata.decode("utf-8")
    else:
        content = json.dumps(metadata)
    path.write_text(content, encoding="utf-8")
    return path


def make_entry(title: str, **fields) -> CatalogEntry:
    """Normalized entry with an id and url derived from the title."""
    slug = title.lower().replace(" ", "-")
    fields.setdefault("id", slug)
    fields.setdefault("url", f"{slug}/index.html")
    return CatalogEntry(title=title, **fields)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp(prefix="codelabs_test_")
    # Resolve to handle macOS /var -> /private/var symlink
    resolved = Path(tmp).resolve()
    yield resolved
    shutil.rmtree(str(resolved), ignore_errors=True)


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    source = temp_dir / "codelabs"
    source.mkdir()
    return source


@pytest.fixture
def test_config(temp_dir: Path, source_dir: Path) -> Generator[CatalogConfig, None, None]:
    """Create an isolated test configuration."""
    config = CatalogConfig(
        source_dir=source_dir,
        output_file=temp_dir / "out" / "codelabs.json",
        scanner_concurrency=4,
        debounce_ms=50,
    )
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def codelab_tree(source_dir: Path) -> dict[str, Path]:
    """A small tree: nested codelabs, a broken file and a plain folder."""
    files = {}

    files["charlie"] = write_codelab(source_dir, "charlie", {
        "id": "charlie-lab",
        "title": "Charlie",
        "summary": "Deploy to Kubernetes",
        "categories": ["Cloud"],
        "tags": ["kubernetes", "advanced"],
        "duration": 45,
        "updated": "2024-03-01",
        "authors": ["Dana"],
        "status": "published",
    })

    files["alpha"] = write_codelab(source_dir, "web/alpha", {
        "title": "alpha",
        "categories": "Web",
        "tags": ["html"],
        "duration": 20,
        "updated": "2024-05-10",
        "authors": "Eli",
    })

    files["bravo"] = write_codelab(source_dir, "web/alpha/bravo", {
        "title": "Bravo",
        "summary": "Nested inside another codelab",
    })

    files["broken"] = write_codelab(source_dir, "broken", "{ not json")

    plain = source_dir / "assets" / "img"
    plain.mkdir(parents=True)
    (plain / "logo.png").write_bytes(b"\x89PNG")
    files["plain"] = plain

    return files


@pytest.fixture
def entries() -> list[CatalogEntry]:
    """Catalog used by the query engine tests."""
    return [
        make_entry("Android Basics", categories=["Mobile"], tags=["android", "beginner"],
                   authors=["Ann"], duration=30, updated="2024-01-10"),
        make_entry("Cloud Run", summary="Serverless containers", categories=["Cloud"],
                   tags=["serverless"], authors=["Bob"], duration=60, updated="2024-06-01"),
        make_entry("Kubernetes Deep Dive", categories=["Cloud", "DevOps"],
                   tags=["kubernetes", "advanced"], authors=["Ann", "Cy"], duration=120,
                   updated="2023-11-20"),
        make_entry("web basics", categories=["Web"], tags=["html", "beginner"],
                   authors=[], duration=0, updated=""),
        make_entry("Data Pipelines", summary="Batch and streaming", categories=["Data"],
                   tags=[], authors=["Cy"], duration=90, updated="not a date"),
    ]
