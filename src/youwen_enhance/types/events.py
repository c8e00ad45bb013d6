"""
Stream events for the enhance pipeline.

Three layers, each produced from the previous one:

- Frame: one ``(event, data)`` unit cut out of the event stream
- DecodedEvent: a frame whose payload was parsed as a JSON object, or wrapped
  as ``{"raw": text}`` when it was not
- PipelineEvent: a closed union of typed events, one variant per known wire
  label plus UnknownEvent for everything else

Handle PipelineEvent with structural pattern matching:

Example:
    >>> match event:
    ...     case StageStarted(stage=n):
    ...         print(f"agent{n} running")
    ...     case SynthesisChunk(chunk=text):
    ...         print(text, end="")
    ...     case UnknownEvent(label=label):
    ...         pass
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_EVENT = "message"
RAW_FIELD = "raw"


@dataclass(frozen=True)
class Frame:
    """One decoded ``(event-label, payload-text)`` unit."""

    event: str
    data: str


class DecodedEvent(BaseModel):
    """A frame with its payload interpreted as a structured record."""

    model_config = ConfigDict(frozen=True)

    event: str = Field(default=DEFAULT_EVENT, description="Event label")
    data: dict[str, Any] = Field(default_factory=dict, description="Payload record")
    is_raw: bool = Field(
        default=False, description="Payload was not a JSON object and is kept verbatim"
    )

    @property
    def raw_text(self) -> str | None:
        """Original payload text for raw fallback records."""
        if not self.is_raw:
            return None
        return self.data.get(RAW_FIELD)


class TokenUsage(BaseModel):
    """Token and cost accounting reported by ``pipeline_complete``."""

    model_config = ConfigDict(extra="allow")

    input_tokens: int | None = Field(default=None, description="Prompt tokens")
    output_tokens: int | None = Field(default=None, description="Completion tokens")
    total_tokens: int | None = Field(default=None, description="Total tokens")


class _PipelineEventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Wire event label")
    payload: dict[str, Any] = Field(default_factory=dict, description="Decoded payload")


class StageStarted(_PipelineEventBase):
    """``agentN_start``."""

    stage: int


class StageCompleted(_PipelineEventBase):
    """``agentN_complete``; ``skipped`` mirrors ``result.skipped``."""

    stage: int
    skipped: bool = False
    duration_ms: float | None = None
    result: Any = None


class StageFailed(_PipelineEventBase):
    """``agentN_error``."""

    stage: int
    error: str | None = None
    duration_ms: float | None = None


class IntentNeedsConfirmation(_PipelineEventBase):
    """``agent2_needs_confirmation``: the intent is ambiguous."""

    stage: int = 2
    clarified_question: str = ""
    alternatives: list[str] = Field(default_factory=list)


class SynthesisReset(_PipelineEventBase):
    """``agent4_reset``: discard the text streamed so far."""

    stage: int = 4


class SynthesisChunk(_PipelineEventBase):
    """``agent4_chunk``: one fragment of the enhanced prompt."""

    stage: int = 4
    chunk: str = ""


class PipelineCompleted(_PipelineEventBase):
    """``pipeline_complete``: final usage summary."""

    token_usage: TokenUsage | None = None


class PipelineFailed(_PipelineEventBase):
    """``error`` or ``forbidden``: pipeline-scope failure."""

    message: str
    forbidden: bool = False


class UnknownEvent(_PipelineEventBase):
    """Any label outside the known vocabulary. Never mutates run state."""


PipelineEvent = Union[
    StageStarted,
    StageCompleted,
    StageFailed,
    IntentNeedsConfirmation,
    SynthesisReset,
    SynthesisChunk,
    PipelineCompleted,
    PipelineFailed,
    UnknownEvent,
]
