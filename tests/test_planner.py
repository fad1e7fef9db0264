"""Tests for scribe.chunking.planner."""

from __future__ import annotations

from scribe.chunking.planner import STRATEGY, plan_chunks
from scribe.chunking.structure import StructureBoundary


def _bounds(*lines: int) -> list[StructureBoundary]:
    return [StructureBoundary(line, f"t{line}", f"d{line}") for line in lines]


class TestPlanChunks:
    def test_two_chunks_normal_priority(self) -> None:
        plan = plan_chunks("app.js", _bounds(1, 45, 120))

        assert plan.file == "app.js"
        assert plan.total_lines == 120
        assert plan.strategy == STRATEGY
        assert [(c.id, c.start_line, c.end_line, c.size, c.priority) for c in plan.chunks] == [
            (1, 1, 44, 44, "normal"),
            (2, 45, 119, 75, "normal"),
        ]
        assert plan.chunks[0].type == "t1"
        assert plan.chunks[1].description == "d45"

    def test_large_chunk_high_priority(self) -> None:
        plan = plan_chunks("big.js", _bounds(1, 260))
        assert len(plan.chunks) == 1
        chunk = plan.chunks[0]
        assert (chunk.start_line, chunk.end_line, chunk.size) == (1, 259, 259)
        assert chunk.priority == "high"

    def test_threshold_boundary(self) -> None:
        plan = plan_chunks("f.js", _bounds(1, 201, 403))
        assert plan.chunks[0].size == 200
        assert plan.chunks[0].priority == "normal"
        assert plan.chunks[1].size == 202
        assert plan.chunks[1].priority == "high"

    def test_custom_threshold(self) -> None:
        plan = plan_chunks("f.js", _bounds(1, 45, 120), threshold=50)
        assert [c.priority for c in plan.chunks] == ["normal", "high"]

    def test_chunks_contiguous(self) -> None:
        plan = plan_chunks("f.js", _bounds(3, 10, 11, 90, 400))
        for prev, nxt in zip(plan.chunks, plan.chunks[1:]):
            assert nxt.start_line == prev.end_line + 1
        assert plan.chunks[0].start_line == 3
        assert plan.chunks[-1].end_line == 399

    def test_single_boundary(self) -> None:
        plan = plan_chunks("f.js", _bounds(7))
        assert plan.chunks == []
        assert plan.total_lines == 7

    def test_no_boundaries(self) -> None:
        plan = plan_chunks("f.js", [])
        assert plan.chunks == []
        assert plan.total_lines == 0


class TestWireFormat:
    def test_camel_case_keys(self) -> None:
        data = plan_chunks("app.js", _bounds(1, 45, 120)).to_dict()
        assert data["file"] == "app.js"
        assert data["totalLines"] == 120
        assert data["strategy"] == "intelligent_boundaries"
        assert data["chunks"][0] == {
            "id": 1,
            "startLine": 1,
            "endLine": 44,
            "size": 44,
            "type": "t1",
            "description": "d1",
            "priority": "normal",
        }
