"""
Tests for health classification and freshening
"""

import pytest

from codebase_vectorizer.core.models import HealthReason
from codebase_vectorizer.index.health import classify_health, drift_threshold

from conftest import write_file


class TestClassifyHealth:

    @pytest.mark.parametrize("expected,cached,reason,needs_reindex", [
        (100, 0, HealthReason.EMPTY, True),
        (100, 75, HealthReason.MISMATCH, True),
        (100, 90, HealthReason.OK, False),
        (100, 120, HealthReason.OK, False),
        (100, 121, HealthReason.MISMATCH, True),
        (0, 0, HealthReason.OK, False),
        (3, 0, HealthReason.EMPTY, True),
        (10, 4, HealthReason.MISMATCH, True),
        (10, 6, HealthReason.OK, False),
    ])
    def test_thresholds(self, expected, cached, reason, needs_reindex):
        report = classify_health(expected, cached)
        assert report.reason is reason
        assert report.needs_reindex is needs_reindex
        assert (report.expected, report.cached) == (expected, cached)

    def test_drift_threshold_floor(self):
        assert drift_threshold(0) == 5
        assert drift_threshold(10) == 5
        assert drift_threshold(100) == 20


class TestStoreHealth:

    @pytest.mark.asyncio
    async def test_empty_then_ok(self, project, docs_store):
        for i in range(3):
            write_file(project, f"f{i}.md", f"file {i}")

        report = await docs_store.check_health()
        assert report.reason is HealthReason.EMPTY
        assert report.expected == 3

        await docs_store.index_all()
        report = await docs_store.check_health()
        assert report.reason is HealthReason.OK
        assert report.cached == 3

    @pytest.mark.asyncio
    async def test_ignore_reduces_expected(self, project, docs_store):
        write_file(project, "a.md", "a")
        write_file(project, "vendor/b.md", "b")
        report = await docs_store.check_health(ignore=["vendor"])
        assert report.expected == 1


class TestFreshen:

    @pytest.mark.asyncio
    async def test_updates_and_deletes(self, project, docs_store, vector_store):
        write_file(project, "keep.md", "unchanged")
        write_file(project, "edit.md", "before")
        gone = write_file(project, "gone.md", "soon deleted")
        await docs_store.index_all()

        write_file(project, "edit.md", "after")
        gone.unlink()
        write_file(project, "new.md", "not picked up by freshen")

        result = await docs_store.freshen()

        assert (result.checked, result.updated, result.deleted) == (3, 1, 1)
        assert "gone.md" not in docs_store.hash_cache
        assert vector_store.rows_for("gone.md") == []
        assert [r.content for r in vector_store.rows_for("edit.md")] == ["after"]
        assert "new.md" not in docs_store.hash_cache

    @pytest.mark.asyncio
    async def test_deletion_is_persisted(self, project, docs_store):
        gone = write_file(project, "gone.md", "x")
        await docs_store.index_all()
        gone.unlink()

        await docs_store.freshen()

        docs_store.hash_cache.load()
        assert len(docs_store.hash_cache) == 0

    @pytest.mark.asyncio
    async def test_noop_when_nothing_changed(self, project, docs_store, embedder):
        write_file(project, "a.md", "a")
        await docs_store.index_all()
        calls = len(embedder.calls)

        result = await docs_store.freshen()
        assert (result.checked, result.updated, result.deleted) == (1, 0, 0)
        assert len(embedder.calls) == calls
