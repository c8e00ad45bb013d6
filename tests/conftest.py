"""Root pytest fixtures for youwen-enhance tests."""

from __future__ import annotations

import json
import os
from typing import Any

import pytest

from youwen_enhance.config import Settings
from youwen_enhance.telemetry import configure_logging

TEST_API_URL = "https://api.test"


def encode_events(*events: tuple[str | None, Any]) -> bytes:
    """Build an event-stream body.

    Each item is ``(label, data)``; a None label omits the ``event:`` line,
    and non-string data is JSON encoded.
    """
    lines: list[str] = []
    for label, data in events:
        if label is not None:
            lines.append(f"event: {label}")
        text = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
        lines.append(f"data: {text}")
        lines.append("")
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    """Keep the developer's environment, .env file and keyring out of tests."""
    for name in list(os.environ):
        if name.upper().startswith("YOUWEN_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
    monkeypatch.setattr("youwen_enhance.transport.auth._try_keyring", lambda: None)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Restore the default log handler after tests that reconfigure it."""
    yield
    configure_logging()


@pytest.fixture
def sse():
    """Event-stream body builder."""
    return encode_events


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the test API, independent of the environment."""
    return Settings(_env_file=None, api_url=TEST_API_URL)


@pytest.fixture
def scenario_success() -> list[tuple[str | None, Any]]:
    """A complete run: all four stages finish and the result streams in two chunks."""
    return [
        ("agent1_start", {}),
        ("agent1_complete", {"duration_ms": 120}),
        ("agent2_start", {}),
        ("agent2_complete", {"duration_ms": 800}),
        ("agent3_start", {}),
        ("agent3_complete", {"duration_ms": 2500}),
        ("agent4_start", {}),
        ("agent4_chunk", {"chunk": "Hello "}),
        ("agent4_chunk", {"chunk": "world"}),
        ("agent4_complete", {"duration_ms": 3000}),
        (
            "pipeline_complete",
            {"token_usage": {"input_tokens": 10, "output_tokens": 5, "total_tokens": 15}},
        ),
    ]


@pytest.fixture
def scenario_skipped_search() -> list[tuple[str | None, Any]]:
    """A complete run where the server skips the search stage."""
    return [
        ("agent1_start", {}),
        ("agent1_complete", {"duration_ms": 120}),
        ("agent2_start", {}),
        ("agent2_complete", {"result": {"skipped": False}, "duration_ms": 80}),
        ("agent3_start", {}),
        ("agent3_complete", {"result": {"skipped": True}}),
        ("agent4_start", {}),
        ("agent4_chunk", {"chunk": "Hello "}),
        ("agent4_chunk", {"chunk": "world"}),
        ("agent4_complete", {"duration_ms": 200}),
        (
            "pipeline_complete",
            {"token_usage": {"input_tokens": 10, "output_tokens": 5, "total_tokens": 15}},
        ),
    ]
