"""
Unit tests for concurrent source fetching and JSON snapshots.
"""

import json
import threading
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from attention.core.models import SourceType
from attention.priority.sources import JsonSnapshotSource, SourceSnapshot, fetch_all_sources


class TestSourceSnapshot:
    """Tests for building snapshots from mappings."""

    def test_from_mapping(self):
        """String keys become source types."""
        snapshot = SourceSnapshot.from_mapping({"task": [{"id": 1}], "inbox": []})
        assert snapshot.get(SourceType.TASK) == [{"id": 1}]
        assert snapshot.get(SourceType.READING_ITEM) == []

    def test_unknown_keys_ignored(self):
        """Unknown source names are skipped."""
        snapshot = SourceSnapshot.from_mapping({"newsletter": [{"id": 1}]})
        assert snapshot.entities == {}


class TestFetchAllSources:
    """Tests for the concurrent fan-in."""

    def test_merges_all_sources(self):
        """Every fetcher's rows end up in the snapshot."""
        snapshot = fetch_all_sources({
            SourceType.TASK: lambda: [{"id": 1}],
            SourceType.INBOX: lambda: [{"id": 2}, {"id": 3}],
        })
        assert len(snapshot.get(SourceType.TASK)) == 1
        assert len(snapshot.get(SourceType.INBOX)) == 2
        assert snapshot.failed_sources == []

    def test_failed_source_is_empty(self, caplog):
        """A raising fetcher contributes nothing and is reported."""
        def broken():
            raise ConnectionError("inbox down")

        snapshot = fetch_all_sources({
            SourceType.TASK: lambda: [{"id": 1}],
            SourceType.INBOX: broken,
        })
        assert snapshot.get(SourceType.INBOX) == []
        assert snapshot.get(SourceType.TASK) == [{"id": 1}]
        assert snapshot.failed_sources == [SourceType.INBOX]
        assert "inbox down" in caplog.text

    def test_slow_source_times_out(self):
        """A fetcher that misses the deadline is treated as failed."""
        release = threading.Event()

        def slow():
            release.wait(5)
            return [{"id": 1}]

        try:
            snapshot = fetch_all_sources({
                SourceType.TASK: lambda: [{"id": 1}],
                SourceType.CALENDAR_EVENT: slow,
            }, timeout=0.1)
        finally:
            release.set()

        assert snapshot.failed_sources == [SourceType.CALENDAR_EVENT]
        assert snapshot.get(SourceType.CALENDAR_EVENT) == []
        assert snapshot.get(SourceType.TASK) == [{"id": 1}]

    def test_no_sources(self):
        """An empty source map gives an empty snapshot."""
        snapshot = fetch_all_sources({})
        assert snapshot.entities == {}
        assert snapshot.failed_sources == []


class TestJsonSnapshotSource:
    """Tests for the JSON snapshot file source."""

    def test_sources_from_file(self, tmp_path):
        """Each section becomes a fetcher."""
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"task": [{"id": 1, "content": "x"}]}))
        sources = JsonSnapshotSource(path).sources()

        assert set(sources) == set(SourceType)
        assert sources[SourceType.TASK]() == [{"id": 1, "content": "x"}]
        assert sources[SourceType.INBOX]() == []

    def test_restrict_sources(self, tmp_path):
        """only limits the fetchers returned."""
        path = tmp_path / "snapshot.json"
        path.write_text("{}")
        sources = JsonSnapshotSource(path).sources(only=[SourceType.TASK])
        assert list(sources) == [SourceType.TASK]

    def test_rejects_non_object(self, tmp_path):
        """The document must be a JSON object."""
        path = tmp_path / "snapshot.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            JsonSnapshotSource(path)

    def test_bad_section_fails_that_source(self, tmp_path):
        """A section that is not a list fails only its own source."""
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"task": {"id": 1}, "inbox": [{"id": 2}]}))
        snapshot = fetch_all_sources(JsonSnapshotSource(path).sources())
        assert snapshot.failed_sources == [SourceType.TASK]
        assert snapshot.get(SourceType.INBOX) == [{"id": 2}]

    def test_missing_file(self, tmp_path):
        """A missing file raises OSError."""
        with pytest.raises(OSError):
            JsonSnapshotSource(tmp_path / "missing.json")
