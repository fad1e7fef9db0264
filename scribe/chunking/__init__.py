"""Documentation pre-chunking: analyze → plan → queue.

Main entry point: ``prechunk()`` analyzes each target file with the
inference service, converts the proposed boundaries into a chunk plan and
upserts it into the documentation queue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Sequence

from scribe.activity.collectors import changed_files_since
from scribe.chunking.planner import ChunkPlan, plan_chunks
from scribe.chunking.queue import DocumentationQueue, QueueError
from scribe.chunking.structure import StructureAnalysis, analyze_file
from scribe.config import Settings
from scribe.inference import InferenceClient

log = logging.getLogger(__name__)


@dataclass
class PrechunkResult:
    """Outcome for one file that produced a chunk plan."""

    file: str
    analysis: StructureAnalysis
    chunk_plan: ChunkPlan
    timestamp: str
    queued: bool
    error: str | None = None


def find_recent_changes(settings: Settings, now: datetime | None = None) -> list[str]:
    """Source files changed in the last ``recent_minutes``."""
    if now is None:
        now = datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=settings.recent_minutes)
    return changed_files_since(settings, cutoff)


def prechunk(
    settings: Settings,
    files: Sequence[str] | None = None,
    client: InferenceClient | None = None,
    queue: DocumentationQueue | None = None,
) -> list[PrechunkResult]:
    """Pre-chunk *files* (or recently changed files) for documentation.

    Short files and failed analyses are skipped. A queue write failure is
    recorded on that file's result and the batch continues.
    """
    targets = list(files) if files else find_recent_changes(settings)
    if not targets:
        log.info("No files need pre-chunking")
        return []

    if client is None:
        client = InferenceClient.from_settings(settings)
    if queue is None:
        queue = DocumentationQueue(settings.queue_file)

    results: list[PrechunkResult] = []
    for path in targets:
        log.info("Analyzing %s for chunking", path)
        analysis = analyze_file(path, settings, client)
        if analysis is None or not analysis.needed:
            continue

        plan = plan_chunks(path, analysis.boundaries, settings.chunk_size_threshold)
        result = PrechunkResult(
            file=path,
            analysis=analysis,
            chunk_plan=plan,
            timestamp=datetime.now(timezone.utc).isoformat(),
            queued=False,
        )
        try:
            queue.enqueue(path, plan)
            result.queued = True
        except QueueError as exc:
            result.error = str(exc)
        results.append(result)

    return results


__all__ = [
    "PrechunkResult",
    "find_recent_changes",
    "prechunk",
]
