"""Activity event type shared by collectors, aggregation and summaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

HANDOFF = "handoff"
MEMORY_UPDATE = "memory_update"
COMMIT = "commit"
LOG_ENTRY = "log_entry"

EVENT_KINDS = (HANDOFF, MEMORY_UPDATE, COMMIT, LOG_ENTRY)


@dataclass(frozen=True)
class ActivityEvent:
    """A single time-stamped change record from one backing store."""

    kind: str
    timestamp: datetime
    source: str
    content: str

    def __post_init__(self) -> None:
        if self.kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind '{self.kind}'. Known: {list(EVENT_KINDS)}")

    def render(self) -> str:
        """One-line form used in summary prompts."""
        return f"[{self.kind}] {self.timestamp.isoformat()}: {self.content}"


def mtime_utc(timestamp: float) -> datetime:
    """Convert an ``os.stat`` mtime to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
