"""
Integration Tests - End-to-end catalog builds.

Tests:
- Full build pipeline (scan → sort → write artifact)
- Empty and missing source trees
- Watch-mode rebuild skipping unchanged metadata
- CLI entry point
- Build → load → query round trip
"""

import json
import os
import stat

import pytest

from codelabs.builder import Builder, main, run_build, write_catalog
from codelabs.models import FacetGroup
from codelabs.session import CatalogSession

from conftest import make_entry, write_codelab


class TestBuildPipeline:
    """End-to-end tests for the build pipeline."""

    @pytest.fixture
    def builder(self, test_config):
        b = Builder(test_config)
        yield b
        b.close()

    @pytest.mark.asyncio
    async def test_build_writes_sorted_array(self, builder, codelab_tree, test_config):
        """Artifact is a JSON array sorted alpha, Bravo, Charlie."""
        stats = await builder.build()

        data = json.loads(test_config.output_file.read_text(encoding="utf-8"))
        assert [d["title"] for d in data] == ["alpha", "Bravo", "Charlie"]
        assert all(d["url"].endswith("/index.html") for d in data)
        assert stats.entries_indexed == 3
        assert stats.entries_skipped == 1
        assert stats.written

    @pytest.mark.asyncio
    async def test_build_normalizes_fields(self, builder, codelab_tree, test_config):
        """Scalar facets become arrays and defaults are filled in."""
        await builder.build()

        data = {d["title"]: d for d in json.loads(test_config.output_file.read_text())}
        alpha = data["alpha"]
        bravo = data["Bravo"]

        assert alpha["categories"] == ["Web"]
        assert alpha["authors"] == ["Eli"]
        assert alpha["id"] == "alpha"
        assert bravo["duration"] == 0
        assert bravo["updated"] == ""
        assert bravo["authors"] == []
        assert bravo["status"] == "draft"

    @pytest.mark.asyncio
    async def test_build_counts_facets(self, builder, codelab_tree):
        stats = await builder.build()

        assert stats.categories == 2   # Cloud, Web
        assert stats.tags == 3         # kubernetes, advanced, html

    @pytest.mark.asyncio
    async def test_empty_tree_writes_empty_array(self, builder, test_config):
        """Zero codelabs is success and still produces a file."""
        stats = await builder.build()

        assert test_config.output_file.read_text() == "[]"
        assert stats.entries_indexed == 0

    @pytest.mark.asyncio
    async def test_missing_source_writes_empty_array(self, builder, temp_dir, test_config):
        """A missing source directory is logged, not fatal."""
        await builder.build(source_dir=temp_dir / "nowhere")

        assert json.loads(test_config.output_file.read_text()) == []

    @pytest.mark.asyncio
    async def test_rebuild_skips_unchanged(self, builder, source_dir, test_config):
        """Watch-mode rebuild leaves the artifact alone if metadata is unchanged."""
        path = write_codelab(source_dir, "lab", {"title": "One"})
        await builder.build()

        unchanged = await builder.rebuild_if_changed()
        assert not unchanged.written

        path.write_text('{"title": "Two"}', encoding="utf-8")
        changed = await builder.rebuild_if_changed()
        assert changed.written
        assert json.loads(test_config.output_file.read_text())[0]["title"] == "Two"

    @pytest.mark.asyncio
    async def test_convenience_function(self, codelab_tree, test_config):
        stats = await run_build(config=test_config)
        assert stats.entries_indexed == 3


class TestWriteCatalog:
    """Tests for the artifact writer."""

    def test_pretty_prints_and_keeps_unicode(self, temp_dir):
        output = temp_dir / "catalog.json"
        write_catalog([make_entry("Café")], output)

        text = output.read_text(encoding="utf-8")
        assert "Café" in text
        assert '\n  {\n    "id": "café"' in text

    def test_replaces_existing_file(self, temp_dir):
        output = temp_dir / "catalog.json"
        output.write_text("stale")

        write_catalog([], output)

        assert output.read_text() == "[]"
        assert list(temp_dir.iterdir()) == [output]

    @pytest.fixture
    def umask_022(self):
        previous = os.umask(0o022)
        yield
        os.umask(previous)

    def test_new_file_follows_umask(self, temp_dir, umask_022):
        """The artifact is world-readable like any file the site serves."""
        output = temp_dir / "catalog.json"

        write_catalog([make_entry("Lab")], output)

        assert stat.S_IMODE(output.stat().st_mode) == 0o644

    def test_existing_file_keeps_its_mode(self, temp_dir, umask_022):
        output = temp_dir / "catalog.json"
        output.write_text("stale")
        output.chmod(0o664)

        write_catalog([], output)

        assert stat.S_IMODE(output.stat().st_mode) == 0o664


class TestCli:
    """Tests for the command-line entry point."""

    def test_positional_arguments(self, codelab_tree, source_dir, temp_dir):
        output = temp_dir / "site" / "codelabs.json"

        code = main([str(source_dir), str(output)])

        assert code == 0
        assert len(json.loads(output.read_text())) == 3

    def test_unwritable_output_exits_non_zero(self, codelab_tree, source_dir, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("a file, not a directory")

        code = main([str(source_dir), str(blocker / "codelabs.json")])

        assert code == 1


class TestBuildThenQuery:
    """The artifact feeds the query engine."""

    @pytest.mark.asyncio
    async def test_round_trip(self, codelab_tree, test_config):
        await run_build(config=test_config)

        session = CatalogSession.from_file(test_config.output_file)
        assert session.error is None
        assert session.view.total_count == 3

        session.select(FacetGroup.CATEGORIES, "Cloud")
        assert [e.title for e in session.view.items] == ["Charlie"]
        assert session.facet_options[FacetGroup.CATEGORIES] == ["Cloud", "Web"]
