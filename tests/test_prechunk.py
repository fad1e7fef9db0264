"""Tests for the scribe.chunking pre-chunk pipeline."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from scribe.chunking import find_recent_changes, prechunk
from scribe.chunking.queue import DocumentationQueue, QueueError
from scribe.config import Settings

RESPONSE = json.dumps({
    "boundaries": [
        {"line": 1, "type": "imports", "description": "Imports"},
        {"line": 30, "type": "class", "description": "Widget"},
        {"line": 260, "type": "end", "description": "End"},
    ],
    "complexity": "high",
})


def _write_lines(settings: Settings, name: str, count: int) -> None:
    path = settings.base_directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(f"x{i}" for i in range(count)))


class TestPrechunk:
    def test_plans_and_queues(self, settings: Settings, make_client) -> None:
        _write_lines(settings, "src/widget.js", 300)
        client = make_client(response=RESPONSE)

        results = prechunk(settings, files=["src/widget.js"], client=client)

        assert len(results) == 1
        result = results[0]
        assert result.queued
        assert result.error is None
        assert result.analysis.complexity == "high"
        assert [(c.start_line, c.end_line, c.priority) for c in result.chunk_plan.chunks] == [
            (1, 29, "normal"),
            (30, 259, "high"),
        ]

        entries = DocumentationQueue(settings.queue_file).load()
        assert [e.file for e in entries] == ["src/widget.js"]
        assert entries[0].chunk_plan["totalLines"] == 260

    def test_skips_short_and_failed_files(self, settings: Settings, make_client) -> None:
        _write_lines(settings, "small.js", 20)
        _write_lines(settings, "big.js", 200)
        client = make_client(response="no structure here")

        results = prechunk(settings, files=["small.js", "big.js", "missing.js"], client=client)

        assert results == []
        # Only big.js reached the service
        assert len(client.calls) == 1
        assert not settings.queue_file.exists()

    def test_queue_failure_recorded_and_batch_continues(
        self, settings: Settings, make_client
    ) -> None:
        _write_lines(settings, "a.js", 150)
        _write_lines(settings, "b.js", 150)
        client = make_client(response=RESPONSE)

        class FlakyQueue(DocumentationQueue):
            def enqueue(self, file, plan, now=None):
                if file == "a.js":
                    raise QueueError("disk full")
                return super().enqueue(file, plan, now)

        queue = FlakyQueue(settings.queue_file)
        results = prechunk(settings, files=["a.js", "b.js"], client=client, queue=queue)

        assert [(r.file, r.queued, r.error) for r in results] == [
            ("a.js", False, "disk full"),
            ("b.js", True, None),
        ]

    def test_undecodable_queue_recorded_as_failure(
        self, settings: Settings, make_client
    ) -> None:
        _write_lines(settings, "app.js", 150)
        settings.queue_file.parent.mkdir(parents=True, exist_ok=True)
        settings.queue_file.write_bytes(b"[\xff\xfe]")

        results = prechunk(settings, files=["app.js"], client=make_client(response=RESPONSE))

        assert len(results) == 1
        assert not results[0].queued
        assert "Cannot read queue" in results[0].error
        assert settings.queue_file.read_bytes() == b"[\xff\xfe]"

    def test_empty_boundaries_queue_empty_plan(self, settings: Settings, make_client) -> None:
        _write_lines(settings, "flat.js", 150)
        client = make_client(response=json.dumps({"boundaries": [], "complexity": "low"}))

        results = prechunk(settings, files=["flat.js"], client=client)

        assert [(r.file, r.queued) for r in results] == [("flat.js", True)]
        assert results[0].chunk_plan.chunks == []
        entries = DocumentationQueue(settings.queue_file).load()
        assert entries[0].chunk_plan["totalLines"] == 0
        assert entries[0].chunk_plan["chunks"] == []

    def test_threshold_from_settings(self, settings: Settings, make_client) -> None:
        from dataclasses import replace

        settings = replace(settings, chunk_size_threshold=10)
        _write_lines(settings, "w.js", 300)
        results = prechunk(settings, files=["w.js"], client=make_client(response=RESPONSE))
        assert [c.priority for c in results[0].chunk_plan.chunks] == ["high", "high"]

    def test_defaults_to_recent_changes(self, settings: Settings, make_client) -> None:
        _write_lines(settings, "recent.js", 150)
        client = make_client(response=RESPONSE)
        with patch("scribe.chunking.changed_files_since", return_value=["recent.js"]) as mock:
            results = prechunk(settings, client=client)

        assert [r.file for r in results] == ["recent.js"]
        mock.assert_called_once()

    def test_nothing_to_do(self, settings: Settings, make_client) -> None:
        client = make_client(response=RESPONSE)
        with patch("scribe.chunking.changed_files_since", return_value=[]):
            assert prechunk(settings, client=client) == []
        assert client.calls == []


class TestFindRecentChanges:
    def test_uses_recent_window(self, settings: Settings) -> None:
        now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
        with patch("scribe.chunking.changed_files_since", return_value=["a.js"]) as mock:
            assert find_recent_changes(settings, now=now) == ["a.js"]
        assert mock.call_args[0][1] == now - timedelta(minutes=30)
