"""Shared fixtures for scribe tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from scribe.config import DEFAULTS, Settings, _deep_merge


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with the default store directories created."""
    root = tmp_path / "project"
    (root / "rMemory" / "rAgentMemories").mkdir(parents=True)
    (root / "rMemory" / "memory-scribe" / "logs").mkdir(parents=True)
    return root


@pytest.fixture
def settings(project: Path) -> Settings:
    return Settings.from_config(_deep_merge(DEFAULTS, {}), project)


class FakeClient:
    """Stand-in for InferenceClient that records prompts."""

    def __init__(self, response: str = "", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[str, dict | None]] = []

    def generate(self, prompt: str, options: dict | None = None) -> str:
        self.calls.append((prompt, options))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def make_client():
    """Factory for :class:`FakeClient` instances."""
    return FakeClient
