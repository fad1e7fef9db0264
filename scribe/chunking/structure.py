"""Ask the inference service for a file's structural boundaries.

The response is validated strictly: anything that does not match the
boundary schema is an invalid result, never a partial read.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from scribe.config import Settings
from scribe.inference import InferenceClient, InferenceError
from scribe.prompt import render_structure_prompt

log = logging.getLogger(__name__)

COMPLEXITY_LEVELS = ("low", "medium", "high")


@dataclass(frozen=True)
class StructureBoundary:
    """A logical division point in a file (1-based line)."""

    line: int
    type: str
    description: str


@dataclass(frozen=True)
class ParsedStructure:
    """Tagged result of validating a structure response.

    ``valid`` is True with ``boundaries`` populated, or False with
    ``reason`` explaining the rejection.
    """

    valid: bool
    boundaries: tuple[StructureBoundary, ...] = ()
    complexity: str | None = None
    recommended_chunk_size: int | None = None
    reason: str | None = None

    @classmethod
    def invalid(cls, reason: str) -> ParsedStructure:
        return cls(valid=False, reason=reason)


@dataclass
class StructureAnalysis:
    """Outcome of analyzing one file.

    ``needed`` is False for files too short to chunk, in which case no
    boundaries were requested.
    """

    path: str
    line_count: int
    needed: bool = True
    boundaries: list[StructureBoundary] = field(default_factory=list)
    complexity: str | None = None
    recommended_chunk_size: int | None = None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _extract_json_object(text: str) -> str | None:
    """Outermost ``{...}`` span in *text* (tolerates prose and code fences)."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def parse_structure_response(text: str) -> ParsedStructure:
    """Validate a model response against the boundary schema."""
    raw = _extract_json_object(text)
    if raw is None:
        return ParsedStructure.invalid("no JSON object in response")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        return ParsedStructure.invalid(f"malformed JSON: {exc}")
    if not isinstance(data, dict):
        return ParsedStructure.invalid("response is not a JSON object")

    items = data.get("boundaries")
    if not isinstance(items, list):
        return ParsedStructure.invalid("'boundaries' must be a list")

    boundaries: list[StructureBoundary] = []
    previous = 0
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            return ParsedStructure.invalid(f"boundary {i} is not an object")
        line = item.get("line")
        if not _is_int(line) or line < 1:
            return ParsedStructure.invalid(f"boundary {i} has invalid line {line!r}")
        if line <= previous:
            return ParsedStructure.invalid(
                f"boundary lines must strictly increase ({previous} then {line})"
            )
        kind = item.get("type")
        description = item.get("description")
        if not isinstance(kind, str) or not isinstance(description, str):
            return ParsedStructure.invalid(f"boundary {i} needs string type and description")
        boundaries.append(StructureBoundary(line=line, type=kind, description=description))
        previous = line

    complexity = data.get("complexity")
    if complexity not in COMPLEXITY_LEVELS:
        return ParsedStructure.invalid(f"complexity must be one of {COMPLEXITY_LEVELS}")

    size = data.get("recommendedChunkSize")
    if size is not None and (not _is_int(size) or size < 1):
        return ParsedStructure.invalid(f"invalid recommendedChunkSize {size!r}")

    return ParsedStructure(
        valid=True,
        boundaries=tuple(boundaries),
        complexity=complexity,
        recommended_chunk_size=size,
    )


def analyze_structure(
    path: str,
    content: str,
    settings: Settings,
    client: InferenceClient,
) -> StructureAnalysis | None:
    """Propose chunk boundaries for *content*.

    Returns a ``needed=False`` analysis for short files without calling
    the service, and None when the call fails or the response is invalid.
    """
    lines = content.split("\n")
    line_count = len(lines)
    if line_count < settings.min_lines:
        log.info("%s has %d lines; no analysis needed", path, line_count)
        return StructureAnalysis(path=path, line_count=line_count, needed=False)

    prompt = render_structure_prompt(
        path=path,
        line_count=line_count,
        head=lines[:settings.head_lines],
        tail=lines[-settings.tail_lines:] if settings.tail_lines > 0 else [],
    )
    try:
        text = client.generate(prompt, options=settings.structure_options or None)
    except InferenceError as exc:
        log.warning("Analysis failed for %s: %s", path, exc)
        return None

    parsed = parse_structure_response(text)
    if not parsed.valid:
        log.warning("Rejected structure response for %s: %s", path, parsed.reason)
        return None

    return StructureAnalysis(
        path=path,
        line_count=line_count,
        boundaries=list(parsed.boundaries),
        complexity=parsed.complexity,
        recommended_chunk_size=parsed.recommended_chunk_size,
    )


def analyze_file(
    path: str,
    settings: Settings,
    client: InferenceClient,
) -> StructureAnalysis | None:
    """Read *path* (relative to the base directory) and analyze it."""
    full_path = Path(settings.base_directory) / path
    try:
        content = full_path.read_text(errors="ignore")
    except OSError as exc:
        log.warning("Cannot read %s: %s", full_path, exc)
        return None
    return analyze_structure(path, content, settings, client)
