"""Console rendering helpers for the CLI."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from youwen_enhance.pipeline import StageStatus

if TYPE_CHECKING:
    from youwen_enhance.pipeline import PipelineRun, Stage
    from youwen_enhance.types.events import DecodedEvent, TokenUsage

_STAGE_MARKS = {
    StageStatus.DONE: "✔",
    StageStatus.SKIPPED: "-",
    StageStatus.FAILED: "✘",
    StageStatus.NEEDS_CONFIRMATION: "⚠",
    StageStatus.RUNNING: "…",
    StageStatus.PENDING: "·",
}

_STAGE_SUFFIXES = {
    StageStatus.SKIPPED: "skipped",
    StageStatus.FAILED: "failed",
    StageStatus.NEEDS_CONFIRMATION: "needs confirmation",
    StageStatus.RUNNING: "not finished",
    StageStatus.PENDING: "not run",
}


def format_duration(ms: float) -> str:
    if ms < 1000:
        return f"{ms:g}ms"
    return f"{ms / 1000:.1f}s"


def render_stage(stage: Stage) -> str:
    mark = _STAGE_MARKS[stage.status]
    if stage.status is StageStatus.DONE:
        duration = f" {format_duration(stage.duration_ms)}" if stage.duration_ms else ""
        return f"  {mark} {stage.name}{duration}"
    return f"  {mark} {stage.name} {_STAGE_SUFFIXES[stage.status]}"


def render_stage_summary(run: PipelineRun) -> str:
    return "\n".join(render_stage(stage) for stage in run.stages)


def render_result(result: str) -> str:
    """Wrap the enhanced prompt in tags for downstream LLM parsing."""
    return f"<enhanced>\n{result}\n</enhanced>"


def render_usage(usage: TokenUsage) -> str:
    return (
        "--- Token usage ---\n"
        f"Input: {usage.input_tokens} | Output: {usage.output_tokens} "
        f"| Total: {usage.total_tokens}"
    )


def render_events(events: list[DecodedEvent]) -> str:
    return json.dumps(
        [{"event": e.event, "data": e.data} for e in events],
        indent=2,
        ensure_ascii=False,
    )


def render_error_document(error: Exception) -> str:
    return json.dumps(
        {
            "status": "error",
            "error_type": type(error).__name__,
            "message": getattr(error, "message", str(error)),
        },
        indent=2,
        ensure_ascii=False,
    )
