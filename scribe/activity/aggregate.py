"""Merge collector output into one newest-first event stream."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Sequence

from scribe.activity.collectors import (
    collect_git_history,
    collect_handoffs,
    collect_logs,
    collect_memory_updates,
)
from scribe.activity.events import ActivityEvent
from scribe.config import Settings

log = logging.getLogger(__name__)

Collector = Callable[[Settings, datetime], list[ActivityEvent]]

# (label, collector) in the order they are run
DEFAULT_COLLECTORS: tuple[tuple[str, Collector], ...] = (
    ("handoff", collect_handoffs),
    ("memory", collect_memory_updates),
    ("git", collect_git_history),
    ("logs", collect_logs),
)


def aggregate_events(*batches: Iterable[ActivityEvent]) -> list[ActivityEvent]:
    """Concatenate *batches* and sort newest first.

    No deduplication. Events with identical timestamps have no guaranteed
    relative order.
    """
    merged: list[ActivityEvent] = []
    for batch in batches:
        merged.extend(batch)
    merged.sort(key=lambda e: e.timestamp, reverse=True)
    return merged


def gather_activity(
    settings: Settings,
    cutoff: datetime,
    collectors: Sequence[tuple[str, Collector]] | None = None,
) -> list[ActivityEvent]:
    """Run every collector and aggregate the results.

    A collector that raises is logged and contributes nothing, so one
    broken store never hides activity from the others. An empty return
    value means there was no activity in the window.
    """
    if collectors is None:
        collectors = DEFAULT_COLLECTORS

    log.info("Gathering activity since %s", cutoff.isoformat())
    batches: list[list[ActivityEvent]] = []
    for label, collector in collectors:
        try:
            events = collector(settings, cutoff)
        except Exception:
            log.exception("Collector '%s' failed; continuing without it", label)
            continue
        log.info("  %s: %d event(s)", label, len(events))
        batches.append(events)

    events = aggregate_events(*batches)
    log.info("Total activity events: %d", len(events))
    return events
