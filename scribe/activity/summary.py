"""Activity summaries: model-written when possible, grouped counts otherwise."""

from __future__ import annotations

import logging
from typing import Sequence

from scribe.activity.aggregate import gather_activity
from scribe.activity.events import COMMIT, HANDOFF, LOG_ENTRY, MEMORY_UPDATE, ActivityEvent
from scribe.config import Settings
from scribe.inference import InferenceClient, InferenceError
from scribe.prompt import render_summary_prompt
from scribe.timeframe import describe_timeframe, resolve_cutoff

log = logging.getLogger(__name__)

# Max raw commit lines listed in the fallback summary
FALLBACK_COMMIT_PREVIEW = 3


def no_activity_message(label: str) -> str:
    return f"No significant activity found in the last {label}"


def summary_header(timeframe: str) -> str:
    return f"**Activity Summary - Last {timeframe}**"


def fallback_summary(events: Sequence[ActivityEvent], timeframe: str) -> str:
    """Deterministic grouped summary. Never raises.

    One count line per non-empty kind; commits also list up to
    ``FALLBACK_COMMIT_PREVIEW`` of the most recent entries.
    """
    if not events:
        return no_activity_message(timeframe)

    by_kind: dict[str, list[ActivityEvent]] = {}
    for event in events:
        by_kind.setdefault(event.kind, []).append(event)

    parts = [summary_header(timeframe)]

    handoffs = by_kind.get(HANDOFF)
    if handoffs:
        parts.append(f"**Handoffs**: {len(handoffs)} agent handoff(s)")

    commits = by_kind.get(COMMIT)
    if commits:
        parts.append(f"**Git Activity**: {len(commits)} commit(s)")
        recent = sorted(commits, key=lambda e: e.timestamp, reverse=True)
        parts.append("\n".join(
            f"  - {c.content}" for c in recent[:FALLBACK_COMMIT_PREVIEW]
        ))

    updates = by_kind.get(MEMORY_UPDATE)
    if updates:
        parts.append(f"**Memory Updates**: {len(updates)} file(s) updated")

    logs = by_kind.get(LOG_ENTRY)
    if logs:
        parts.append(f"**Log Activity**: {len(logs)} log entry(ies)")

    return "\n\n".join(parts)


def summarize(
    events: Sequence[ActivityEvent],
    timeframe: str,
    client: InferenceClient,
) -> str:
    """Summarize *events* through the inference service.

    Falls back to :func:`fallback_summary` when the call fails.
    """
    if not events:
        return no_activity_message(timeframe)

    prompt = render_summary_prompt(events, timeframe)
    try:
        text = client.generate(prompt)
    except InferenceError as exc:
        log.warning("AI summarization failed, using fallback: %s", exc)
        return fallback_summary(events, timeframe)

    return f"{summary_header(timeframe)}\n\n{text.strip()}"


def generate_summary(
    settings: Settings,
    timeframe: str = "1h",
    client: InferenceClient | None = None,
) -> str:
    """Resolve *timeframe*, gather activity and summarize it.

    Returns a user-facing message in every case; unexpected errors are
    logged and reported as ``Unable to generate summary: ...``.
    """
    label = describe_timeframe(timeframe, settings.timeframe_table)
    log.info("Generating summary for last %s", label)

    try:
        cutoff = resolve_cutoff(
            timeframe,
            settings.timeframe_table,
            strict=settings.strict_timeframes,
        )
        events = gather_activity(settings, cutoff)
        if not events:
            return no_activity_message(label)

        if client is None:
            client = InferenceClient.from_settings(settings)
        return summarize(events, timeframe, client)
    except Exception as exc:
        log.exception("Error generating summary")
        return f"Unable to generate summary: {exc}"
