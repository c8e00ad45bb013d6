"""事件映射：将解码后的帧转换为类型化的流水线事件。

Maps decoded frames onto the closed PipelineEvent union.

Wire vocabulary:
- ``agentN_start`` / ``agentN_complete`` / ``agentN_error`` for N in 1..4
- ``agent2_needs_confirmation``
- ``agent4_reset`` / ``agent4_chunk``
- ``pipeline_complete``, ``error``, ``forbidden``

Everything else becomes UnknownEvent.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from youwen_enhance.telemetry import get_logger
from youwen_enhance.types.events import (
    RAW_FIELD,
    DecodedEvent,
    IntentNeedsConfirmation,
    PipelineCompleted,
    PipelineEvent,
    PipelineFailed,
    StageCompleted,
    StageFailed,
    StageStarted,
    SynthesisChunk,
    SynthesisReset,
    TokenUsage,
    UnknownEvent,
)

logger = get_logger(__name__)

STAGE_COUNT = 4
CONFIRMATION_STAGE = 2
SYNTHESIS_STAGE = 4
DEFAULT_FAILURE_MESSAGE = "Pipeline failed"

_STAGE_LABEL = re.compile(r"^agent(?P<stage>[1-9]\d*)_(?P<action>[a-z_]+)$")


def map_event(decoded: DecodedEvent) -> PipelineEvent:
    """Convert a decoded frame into its typed event.

    Args:
        decoded: Frame with parsed payload

    Returns:
        The matching PipelineEvent variant, UnknownEvent when none matches
    """
    label = decoded.event
    payload = decoded.data

    if label == "pipeline_complete":
        return PipelineCompleted(
            label=label, payload=payload, token_usage=_token_usage(payload)
        )
    if label in ("error", "forbidden"):
        return PipelineFailed(
            label=label,
            payload=payload,
            message=_failure_message(payload),
            forbidden=label == "forbidden",
        )

    match = _STAGE_LABEL.match(label)
    if match is None:
        return UnknownEvent(label=label, payload=payload)

    stage = int(match.group("stage"))
    action = match.group("action")
    if not 1 <= stage <= STAGE_COUNT:
        return UnknownEvent(label=label, payload=payload)

    if action == "start":
        return StageStarted(label=label, payload=payload, stage=stage)
    if action == "complete":
        result = payload.get("result")
        return StageCompleted(
            label=label,
            payload=payload,
            stage=stage,
            skipped=isinstance(result, dict) and bool(result.get("skipped")),
            duration_ms=_number(payload.get("duration_ms")),
            result=result,
        )
    if action == "error":
        error = payload.get("error")
        return StageFailed(
            label=label,
            payload=payload,
            stage=stage,
            error=error if isinstance(error, str) else None,
            duration_ms=_number(payload.get("duration_ms")),
        )
    if action == "needs_confirmation" and stage == CONFIRMATION_STAGE:
        question = payload.get("clarified_question")
        alternatives = payload.get("alternatives")
        return IntentNeedsConfirmation(
            label=label,
            payload=payload,
            clarified_question=question if isinstance(question, str) else "",
            alternatives=(
                [str(item) for item in alternatives]
                if isinstance(alternatives, list)
                else []
            ),
        )
    if action == "reset" and stage == SYNTHESIS_STAGE:
        return SynthesisReset(label=label, payload=payload)
    if action == "chunk" and stage == SYNTHESIS_STAGE:
        chunk = payload.get("chunk")
        return SynthesisChunk(
            label=label,
            payload=payload,
            chunk=chunk if isinstance(chunk, str) else "",
        )

    return UnknownEvent(label=label, payload=payload)


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _token_usage(payload: dict[str, Any]) -> TokenUsage | None:
    usage = payload.get("token_usage")
    if not isinstance(usage, dict):
        return None
    try:
        return TokenUsage.model_validate(usage)
    except PydanticValidationError:
        logger.warning("Ignoring malformed token usage", usage=usage)
        return None


def _failure_message(payload: dict[str, Any]) -> str:
    for key in ("error", RAW_FIELD):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return DEFAULT_FAILURE_MESSAGE
