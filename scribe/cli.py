"""CLI entry point for scribe."""

from __future__ import annotations

import logging
from pathlib import Path

import click


# Default config template
CONFIG_TEMPLATE = """\
inference:
  endpoint: http://localhost:11434
  model: qwen2.5-coder:7b
  timeout: 120  # seconds per request
  structure_options:
    temperature: 0.1
    num_predict: 500

paths:
  memory_dir: rMemory/rAgentMemories
  handoff_dir: rMemory/rAgentMemories
  logs_dir: rMemory/memory-scribe/logs
  queue_file: rEngine/pre-chunk-queue.json

preview:
  handoff_chars: 2000
  log_chars: 1000

# Lookback durations in minutes. Bare integer tokens are always days.
timeframes:
  last: 30
  1h: 60
  6h: 360
  12h: 720
  24h: 1440
  "7": 10080
  7d: 10080
strict_timeframes: false  # true: reject unknown tokens instead of using 1h

chunking:
  min_lines: 100
  size_threshold: 200
  head_lines: 50
  tail_lines: 20
  recent_minutes: 30
  extensions: [.js, .css, .html]
"""

_project_root_option = click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Project root directory (default: cwd).",
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_settings(root: Path):
    from scribe.config import ConfigError, load_settings

    try:
        return load_settings(root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
def cli() -> None:
    """Scribe: activity summaries and documentation pre-chunking."""


@cli.command()
@_project_root_option
def init(project_root: str) -> None:
    """Create .scribe/config.yaml with default settings."""
    root = Path(project_root)
    scribe_dir = root / ".scribe"
    config_path = scribe_dir / "config.yaml"

    if config_path.exists():
        click.echo(f"Config already exists at {config_path}")
        raise SystemExit(1)

    scribe_dir.mkdir(parents=True, exist_ok=True)
    config_path.write_text(CONFIG_TEMPLATE)

    # Validate the template through the standard load path
    _load_settings(root)
    click.echo(f"Created {config_path}")


@cli.command()
@_project_root_option
@click.argument("timeframe", default="1h")
@click.option("-v", "--verbose", is_flag=True, help="Log collection progress.")
def summary(project_root: str, timeframe: str, verbose: bool) -> None:
    """Summarize activity in the last TIMEFRAME (e.g. last, 1h, 24h, 7d, 3)."""
    from scribe.activity.summary import generate_summary

    _configure_logging(verbose)
    settings = _load_settings(Path(project_root))
    click.echo(generate_summary(settings, timeframe))


@cli.command()
@_project_root_option
@click.argument("files", nargs=-1)
@click.option("-v", "--verbose", is_flag=True, help="Log analysis progress.")
def prechunk(project_root: str, files: tuple[str, ...], verbose: bool) -> None:
    """Analyze FILES (default: recently committed files) and queue chunk plans."""
    from scribe.chunking import prechunk as run_prechunk

    _configure_logging(verbose)
    settings = _load_settings(Path(project_root))
    results = run_prechunk(settings, files=list(files) or None)

    if not results:
        click.echo("No files pre-chunked.")
        return

    failed = 0
    for result in results:
        plan = result.chunk_plan
        high = sum(1 for c in plan.chunks if c.priority == "high")
        if result.queued:
            click.echo(
                f"Queued {result.file}: {len(plan.chunks)} chunk(s), "
                f"{high} high priority ({result.analysis.complexity})"
            )
        else:
            failed += 1
            click.echo(f"Failed to queue {result.file}: {result.error}")

    if failed:
        raise SystemExit(1)


@cli.command("queue")
@_project_root_option
def queue_cmd(project_root: str) -> None:
    """List files in the documentation queue."""
    from scribe.chunking.queue import DocumentationQueue, QueueError

    settings = _load_settings(Path(project_root))
    queue = DocumentationQueue(settings.queue_file)
    try:
        entries = queue.load()
    except QueueError as exc:
        raise click.ClickException(str(exc)) from exc

    if not entries:
        click.echo("Queue is empty.")
        return

    click.echo(f"Queue: {len(entries)} file(s)")
    for entry in entries:
        # Entries written by other tools may carry any JSON shape
        plan = entry.chunk_plan if isinstance(entry.chunk_plan, dict) else {}
        chunks = plan.get("chunks")
        if not isinstance(chunks, list):
            chunks = []
        click.echo(
            f"  {entry.file} [{entry.status}] {len(chunks)} chunk(s), "
            f"queued {entry.queued_at}"
        )
