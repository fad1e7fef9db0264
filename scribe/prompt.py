"""Jinja2 template rendering for inference prompts."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader

from scribe.activity.events import ActivityEvent

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _get_env() -> Environment:
    """Create a Jinja2 environment loading from scribe/templates/."""
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_summary_prompt(events: Sequence[ActivityEvent], timeframe: str) -> str:
    """Render the activity summary prompt, events in the order given."""
    template = _get_env().get_template("summary_prompt.md")
    return template.render(events=events, timeframe=timeframe)


def render_structure_prompt(
    *,
    path: str,
    line_count: int,
    head: Sequence[str],
    tail: Sequence[str],
) -> str:
    """Render the chunk-boundary analysis prompt for one file."""
    template = _get_env().get_template("structure_prompt.md")
    return template.render(
        path=path,
        extension=Path(path).suffix or "text",
        line_count=line_count,
        head=list(head),
        tail=list(tail),
    )
