"""Source collectors: handoffs, memory stores, git history, process logs.

Every collector takes resolved :class:`~scribe.config.Settings` plus a
cutoff instant and returns the events newer than the cutoff. A store that
does not exist is not an error; the collector just returns nothing.
"""

from __future__ import annotations

import json
import logging
import subprocess
from datetime import datetime, timezone
from pathlib import Path

from scribe.activity.events import (
    COMMIT,
    HANDOFF,
    LOG_ENTRY,
    MEMORY_UPDATE,
    ActivityEvent,
    mtime_utc,
)
from scribe.config import Settings

log = logging.getLogger(__name__)

GIT_SOURCE = "git"
GIT_TIMEOUT = 30


def _modified_after(path: Path, cutoff: datetime) -> datetime | None:
    """Return the file's mtime if it is newer than *cutoff*, else None."""
    try:
        mtime = mtime_utc(path.stat().st_mtime)
    except OSError:
        return None
    return mtime if mtime > cutoff else None


def _read_preview(path: Path, limit: int) -> str:
    return path.read_text(errors="ignore")[:limit]


def _describe_aggregate(path: Path) -> str:
    """Fixed description for an aggregate-state file."""
    if path.suffix == ".json":
        try:
            data = json.loads(path.read_text())
        except (OSError, ValueError) as exc:
            log.warning("Could not read %s: %s", path.name, exc)
            return f"{path.name} was updated"
        matrix = data.get("searchMatrix") if isinstance(data, dict) else None
        count = len(matrix) if isinstance(matrix, dict) else 0
        return f"Consolidated memory with {count} indexed entries"
    return "Memory system updated"


def collect_handoffs(settings: Settings, cutoff: datetime) -> list[ActivityEvent]:
    """Aggregate-state files in the base directory plus ``catch-up-*.md`` records."""
    events: list[ActivityEvent] = []

    for name in settings.aggregate_files:
        path = settings.base_directory / name
        mtime = _modified_after(path, cutoff)
        if mtime is None:
            continue
        events.append(ActivityEvent(
            kind=HANDOFF,
            timestamp=mtime,
            source=name,
            content=_describe_aggregate(path),
        ))

    handoff_dir = settings.handoff_dir
    if handoff_dir is None or not handoff_dir.is_dir():
        log.debug("Handoff directory not found: %s", handoff_dir)
        return events

    for path in sorted(handoff_dir.glob(settings.handoff_pattern)):
        if not path.is_file():
            continue
        mtime = _modified_after(path, cutoff)
        if mtime is None:
            continue
        try:
            content = _read_preview(path, settings.handoff_preview_chars)
        except OSError as exc:
            log.warning("Skipping handoff %s: %s", path.name, exc)
            continue
        events.append(ActivityEvent(
            kind=HANDOFF,
            timestamp=mtime,
            source=path.name,
            content=content,
        ))

    return events


def collect_memory_updates(settings: Settings, cutoff: datetime) -> list[ActivityEvent]:
    """One event per allow-listed memory file modified after *cutoff*.

    Only names in ``enhanced_memory_files`` (base directory) and
    ``memory_files`` (memory directory) are ever checked.
    """
    candidates: list[tuple[Path, str]] = [
        (settings.base_directory / name, f"Enhanced memory system: {name} was updated")
        for name in settings.enhanced_memory_files
    ]
    if settings.memory_dir is not None:
        candidates.extend(
            (settings.memory_dir / name, f"{name} was updated")
            for name in settings.memory_files
        )

    events: list[ActivityEvent] = []
    for path, description in candidates:
        mtime = _modified_after(path, cutoff)
        if mtime is None:
            continue
        events.append(ActivityEvent(
            kind=MEMORY_UPDATE,
            timestamp=mtime,
            source=path.name,
            content=description,
        ))
    return events


def _run_git(args: list[str], cwd: Path) -> str | None:
    """Run a read-only git command, returning stdout or None on any failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            cwd=str(cwd),
            timeout=GIT_TIMEOUT,
        )
    except FileNotFoundError:
        log.debug("git not available")
        return None
    except subprocess.TimeoutExpired:
        log.warning("git %s timed out (%d s)", args[0], GIT_TIMEOUT)
        return None
    except OSError as exc:
        log.debug("git failed to start: %s", exc)
        return None

    if result.returncode != 0:
        log.debug("git %s failed (rc=%d): %s", args[0], result.returncode, result.stderr[:200])
        return None
    return result.stdout


def _parse_commit_date(raw: str) -> datetime | None:
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def collect_git_history(settings: Settings, cutoff: datetime) -> list[ActivityEvent]:
    """Non-merge commits on or after the calendar date of *cutoff*.

    ``git log --since`` is given only the date, so commits from earlier in
    the cutoff day are included too.
    """
    since = cutoff.date().isoformat()
    stdout = _run_git(
        ["log", f"--since={since}", "--no-merges", "--format=%cI%x09%h %s"],
        settings.base_directory,
    )
    if not stdout or not stdout.strip():
        return []

    now = datetime.now(timezone.utc)
    events: list[ActivityEvent] = []
    for line in stdout.strip().split("\n"):
        if not line.strip():
            continue
        date_part, sep, oneline = line.partition("\t")
        timestamp = _parse_commit_date(date_part) if sep else None
        if timestamp is None:
            # Unexpected line shape: keep the raw text, stamp with now
            log.debug("Unparsable commit date in %r", line)
            timestamp = now
            oneline = oneline if sep else line
        events.append(ActivityEvent(
            kind=COMMIT,
            timestamp=timestamp,
            source=GIT_SOURCE,
            content=oneline.strip(),
        ))
    return events


def collect_logs(settings: Settings, cutoff: datetime) -> list[ActivityEvent]:
    """Every file in the logs directory modified after *cutoff*."""
    logs_dir = settings.logs_dir
    if logs_dir is None or not logs_dir.is_dir():
        log.debug("Logs directory not found: %s", logs_dir)
        return []

    events: list[ActivityEvent] = []
    for path in sorted(logs_dir.iterdir()):
        if not path.is_file():
            continue
        mtime = _modified_after(path, cutoff)
        if mtime is None:
            continue
        try:
            content = _read_preview(path, settings.log_preview_chars)
        except OSError as exc:
            log.warning("Skipping log %s: %s", path.name, exc)
            continue
        events.append(ActivityEvent(
            kind=LOG_ENTRY,
            timestamp=mtime,
            source=path.name,
            content=content,
        ))
    return events


def changed_files_since(settings: Settings, cutoff: datetime) -> list[str]:
    """Repo-relative files touched by non-merge commits since *cutoff*'s date.

    Filtered to ``source_extensions`` (all files when empty) and to files
    that still exist. Order follows git output, duplicates removed.
    """
    since = cutoff.date().isoformat()
    stdout = _run_git(
        ["log", f"--since={since}", "--no-merges", "--name-only", "--format="],
        settings.base_directory,
    )
    if not stdout:
        return []

    seen: set[str] = set()
    files: list[str] = []
    for line in stdout.split("\n"):
        name = line.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        if settings.source_extensions and not name.endswith(settings.source_extensions):
            continue
        if not (settings.base_directory / name).is_file():
            continue
        files.append(name)
    return files
