"""Turn an ordered boundary list into a contiguous chunk plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from scribe.chunking.structure import StructureBoundary

# Chunks larger than this many lines are high priority
DEFAULT_SIZE_THRESHOLD = 200

STRATEGY = "intelligent_boundaries"


@dataclass(frozen=True)
class Chunk:
    id: int
    start_line: int
    end_line: int
    type: str
    description: str
    priority: str

    @property
    def size(self) -> int:
        return self.end_line - self.start_line + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "size": self.size,
            "type": self.type,
            "description": self.description,
            "priority": self.priority,
        }


@dataclass
class ChunkPlan:
    file: str
    total_lines: int
    chunks: list[Chunk] = field(default_factory=list)
    strategy: str = STRATEGY

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "totalLines": self.total_lines,
            "chunks": [c.to_dict() for c in self.chunks],
            "strategy": self.strategy,
        }


def plan_chunks(
    file: str,
    boundaries: Sequence[StructureBoundary],
    threshold: int = DEFAULT_SIZE_THRESHOLD,
) -> ChunkPlan:
    """Build a plan where chunk ``i+1`` spans ``[b[i].line, b[i+1].line - 1]``.

    The last boundary only marks the end of the analysed range, and its
    line becomes ``total_lines``. Fewer than two boundaries give an empty
    plan.
    """
    total_lines = boundaries[-1].line if boundaries else 0
    chunks: list[Chunk] = []
    for i in range(len(boundaries) - 1):
        start = boundaries[i].line
        end = boundaries[i + 1].line - 1
        size = end - start + 1
        chunks.append(Chunk(
            id=i + 1,
            start_line=start,
            end_line=end,
            type=boundaries[i].type,
            description=boundaries[i].description,
            priority="high" if size > threshold else "normal",
        ))
    return ChunkPlan(file=file, total_lines=total_lines, chunks=chunks)
