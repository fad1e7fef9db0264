"""Load and validate .scribe/config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


# Default config values
DEFAULTS: dict[str, Any] = {
    "inference": {
        "endpoint": "http://localhost:11434",
        "model": "qwen2.5-coder:7b",
        "timeout": 120,
        "structure_options": {
            "temperature": 0.1,
            "num_predict": 500,
        },
    },
    "paths": {
        "memory_dir": "rMemory/rAgentMemories",
        "handoff_dir": "rMemory/rAgentMemories",
        "logs_dir": "rMemory/memory-scribe/logs",
        "queue_file": "rEngine/pre-chunk-queue.json",
    },
    "stores": {
        "aggregate_files": [
            "consolidated-matrix.json",
            "perfect-ai-memory-system.js",
        ],
        "handoff_pattern": "catch-up-*.md",
        "enhanced_memory_files": [
            "consolidated-matrix.json",
            "enhanced-memory-summary.js",
            "perfect-ai-memory-system.js",
            "memory-consolidation-fix.js",
        ],
        "memory_files": [
            "memory.json",
            "decisions.json",
            "functions.json",
            "extendedcontext.json",
            "handoff.json",
            "tasks.json",
            "interactions.json",
            "preferences.json",
            "claude_opus_memories.json",
            "claude_sonnet_memories.json",
            "github_copilot_memories.json",
            "gpt4_memories.json",
            "gpt4o_memories.json",
            "gemini_pro_memories.json",
        ],
    },
    "preview": {
        "handoff_chars": 2000,
        "log_chars": 1000,
    },
    # Lookback durations in minutes. Bare integers are always days.
    "timeframes": {
        "last": 30,
        "1h": 60,
        "6h": 360,
        "12h": 720,
        "24h": 1440,
        "7": 10_080,
        "7d": 10_080,
    },
    "strict_timeframes": False,
    "chunking": {
        "min_lines": 100,
        "size_threshold": 200,
        "head_lines": 50,
        "tail_lines": 20,
        "recent_minutes": 30,
        "extensions": [".js", ".css", ".html"],
    },
}

REQUIRED_PATH_KEYS = {"memory_dir", "handoff_dir", "logs_dir", "queue_file"}


class ConfigError(Exception):
    """Raised when config is invalid or missing."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Override wins on conflicts."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate(config: dict) -> None:
    """Validate required fields in config."""
    paths = config.get("paths")
    if not isinstance(paths, dict):
        raise ConfigError("'paths' must be a mapping")
    missing = REQUIRED_PATH_KEYS - set(paths.keys())
    if missing:
        raise ConfigError(f"'paths' missing required keys: {sorted(missing)}")

    inference = config.get("inference")
    if not isinstance(inference, dict):
        raise ConfigError("'inference' must be a mapping")
    for key in ("endpoint", "model"):
        if not isinstance(inference.get(key), str) or not inference[key]:
            raise ConfigError(f"'inference.{key}' must be a non-empty string")

    timeframes = config.get("timeframes")
    if not isinstance(timeframes, dict) or not timeframes:
        raise ConfigError("'timeframes' must be a non-empty mapping")
    for token, minutes in timeframes.items():
        if not isinstance(minutes, (int, float)) or isinstance(minutes, bool) or minutes <= 0:
            raise ConfigError(
                f"Timeframe '{token}' must be a positive number of minutes, got {minutes!r}"
            )
    if "1h" not in {str(t) for t in timeframes}:
        raise ConfigError("'timeframes' must define the '1h' fallback token")

    threshold = config.get("chunking", {}).get("size_threshold")
    if not isinstance(threshold, int) or isinstance(threshold, bool) or threshold < 1:
        raise ConfigError("'chunking.size_threshold' must be a positive integer")


def load_config(project_root: Path | None = None) -> dict:
    """Load config from .scribe/config.yaml under project_root.

    Falls back to cwd if project_root is None. Merges with DEFAULTS
    so callers always get a full config dict.
    """
    root = Path(project_root) if project_root else Path.cwd()
    config_path = root / ".scribe" / "config.yaml"

    if not config_path.exists():
        raise ConfigError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    # An empty file means "all defaults"
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    config = _deep_merge(DEFAULTS, raw)
    _validate(config)
    return config


@dataclass(frozen=True)
class Settings:
    """Resolved configuration handed to every pipeline component."""

    inference_endpoint: str
    model_id: str
    base_directory: Path
    timeframe_table: dict[str, float]
    chunk_size_threshold: int
    inference_timeout: float = 120
    structure_options: dict[str, Any] = field(default_factory=dict)
    strict_timeframes: bool = False
    memory_dir: Path | None = None
    handoff_dir: Path | None = None
    logs_dir: Path | None = None
    queue_file: Path | None = None
    aggregate_files: tuple[str, ...] = ()
    handoff_pattern: str = "catch-up-*.md"
    enhanced_memory_files: tuple[str, ...] = ()
    memory_files: tuple[str, ...] = ()
    handoff_preview_chars: int = 2000
    log_preview_chars: int = 1000
    min_lines: int = 100
    head_lines: int = 50
    tail_lines: int = 20
    recent_minutes: int = 30
    source_extensions: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: dict[str, Any], project_root: Path) -> Settings:
        """Build settings from a merged config dict.

        Relative store paths resolve against *project_root*.
        """
        root = Path(project_root)
        inference = config["inference"]
        paths = config["paths"]
        stores = config.get("stores", {})
        preview = config.get("preview", {})
        chunking = config.get("chunking", {})
        return cls(
            inference_endpoint=inference["endpoint"].rstrip("/"),
            model_id=inference["model"],
            base_directory=root,
            timeframe_table={str(k): v for k, v in config["timeframes"].items()},
            chunk_size_threshold=chunking.get("size_threshold", 200),
            inference_timeout=inference.get("timeout", 120),
            structure_options=dict(inference.get("structure_options", {})),
            strict_timeframes=bool(config.get("strict_timeframes", False)),
            memory_dir=root / paths["memory_dir"],
            handoff_dir=root / paths["handoff_dir"],
            logs_dir=root / paths["logs_dir"],
            queue_file=root / paths["queue_file"],
            aggregate_files=tuple(stores.get("aggregate_files", ())),
            handoff_pattern=stores.get("handoff_pattern", "catch-up-*.md"),
            enhanced_memory_files=tuple(stores.get("enhanced_memory_files", ())),
            memory_files=tuple(stores.get("memory_files", ())),
            handoff_preview_chars=preview.get("handoff_chars", 2000),
            log_preview_chars=preview.get("log_chars", 1000),
            min_lines=chunking.get("min_lines", 100),
            head_lines=chunking.get("head_lines", 50),
            tail_lines=chunking.get("tail_lines", 20),
            recent_minutes=chunking.get("recent_minutes", 30),
            source_extensions=tuple(chunking.get("extensions", ())),
        )


def load_settings(project_root: Path | None = None) -> Settings:
    """Load config for *project_root* and resolve it into :class:`Settings`."""
    root = Path(project_root) if project_root else Path.cwd()
    return Settings.from_config(load_config(root), root)
