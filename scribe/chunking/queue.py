"""Persisted documentation queue of pre-chunked files.

The queue is a single pretty-printed JSON array. :class:`DocumentationQueue`
owns the file: every read-modify-write happens under an exclusive lock
file and lands via an atomic rename.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from scribe.chunking.planner import ChunkPlan

log = logging.getLogger(__name__)

STATUS_PRE_CHUNKED = "pre_chunked"
SOURCE_LABEL = "scribe_analysis"


class QueueError(Exception):
    """Raised when the queue file cannot be read, locked or written."""


@dataclass
class QueueEntry:
    file: str
    chunk_plan: dict[str, Any]
    queued_at: str
    status: str = STATUS_PRE_CHUNKED
    source: str = SOURCE_LABEL

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "chunkPlan": self.chunk_plan,
            "queuedAt": self.queued_at,
            "status": self.status,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueueEntry:
        return cls(
            file=data["file"],
            chunk_plan=data.get("chunkPlan", {}),
            queued_at=data.get("queuedAt", ""),
            status=data.get("status", STATUS_PRE_CHUNKED),
            source=data.get("source", SOURCE_LABEL),
        )


class DocumentationQueue:
    """Single owner of the queue file at *path*."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def _read_raw(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except (OSError, UnicodeDecodeError) as exc:
            raise QueueError(f"Cannot read queue {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise QueueError(f"Queue {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise QueueError(f"Queue {self.path} must hold a JSON array")
        return data

    def load(self) -> list[QueueEntry]:
        """Return all entries (empty when the file does not exist)."""
        entries = []
        for item in self._read_raw():
            if not isinstance(item, dict) or "file" not in item:
                log.warning("Skipping malformed queue entry: %r", item)
                continue
            entries.append(QueueEntry.from_dict(item))
        return entries

    def _write_raw(self, items: list[dict[str, Any]]) -> None:
        """Write *items* to a temp file and atomically replace the queue."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w") as fh:
                json.dump(items, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold an exclusive lock file for the duration of a write."""
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        flags = os.O_CREAT | os.O_EXCL | os.O_WRONLY
        try:
            fd = os.open(self.lock_path, flags)
        except FileExistsError as exc:
            raise QueueError(
                f"Queue lock present at {self.lock_path}. Another writer may be "
                "running or a stale lock exists; remove it to recover."
            ) from exc

        try:
            with os.fdopen(fd, "w") as fh:
                fh.write(f"{os.getpid()}\n")
            yield
        finally:
            try:
                self.lock_path.unlink()
            except FileNotFoundError:
                pass

    def enqueue(
        self,
        file: str,
        plan: ChunkPlan,
        now: datetime | None = None,
    ) -> QueueEntry:
        """Insert or replace the entry for *file*.

        Raises:
            QueueError: if the queue cannot be locked, read or written.
        """
        if now is None:
            now = datetime.now(timezone.utc)
        entry = QueueEntry(
            file=file,
            chunk_plan=plan.to_dict(),
            queued_at=now.isoformat(),
        )

        try:
            with self._locked():
                items = [
                    item for item in self._read_raw()
                    if not (isinstance(item, dict) and item.get("file") == file)
                ]
                items.append(entry.to_dict())
                self._write_raw(items)
        except QueueError as exc:
            log.error("Failed to queue %s: %s", file, exc)
            raise
        except OSError as exc:
            log.error("Failed to queue %s: %s", file, exc)
            raise QueueError(f"Cannot write queue {self.path}: {exc}") from exc

        log.info("Queued %s with %d chunk(s)", file, len(plan.chunks))
        return entry
