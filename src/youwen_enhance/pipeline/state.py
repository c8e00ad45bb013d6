"""流水线状态机：根据事件序列维护四个阶段的状态、累积结果与最终结论。

Pipeline state machine.

A PipelineRun is created per invocation, fed every PipelineEvent in arrival
order, and frozen with ``finish()`` once the stream closes. Stage status only
moves forward:

    pending -> running -> {done, skipped, failed, needs_confirmation}

A terminal event for a stage that never reported its start is accepted
(pending -> terminal). Anything that would move a stage backwards or out of a
terminal state is ignored and logged.

The synthesis text is the one exception to monotonicity: ``agent4_reset``
clears it so the server can restart the final stage without the client
counting the discarded text twice.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

from youwen_enhance.errors import PipelineStateError
from youwen_enhance.pipeline.event_map import STAGE_COUNT
from youwen_enhance.telemetry import get_logger
from youwen_enhance.types.events import (
    IntentNeedsConfirmation,
    PipelineCompleted,
    PipelineFailed,
    StageCompleted,
    StageFailed,
    StageStarted,
    SynthesisChunk,
    SynthesisReset,
    UnknownEvent,
)

if TYPE_CHECKING:
    from youwen_enhance.types.events import PipelineEvent, TokenUsage

logger = get_logger(__name__)

STAGE_NAMES: tuple[str, ...] = (
    "Context processing",
    "Intent analysis",
    "Joint search",
    "Prompt enhancement",
)


class StageStatus(str, Enum):
    """Status of one pipeline stage."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"
    NEEDS_CONFIRMATION = "needs_confirmation"

    @property
    def is_terminal(self) -> bool:
        return self not in (StageStatus.PENDING, StageStatus.RUNNING)


_TERMINAL = frozenset(s for s in StageStatus if s.is_terminal)

_TRANSITIONS: dict[StageStatus, frozenset[StageStatus]] = {
    StageStatus.PENDING: frozenset({StageStatus.RUNNING}) | _TERMINAL,
    StageStatus.RUNNING: _TERMINAL,
}


class RunOutcome(str, Enum):
    """How a finished run should be reported.

    - SUCCESS: non-empty enhanced result and no pipeline error
    - NEEDS_CONFIRMATION: intent analysis asked for a confirmed intent;
      resubmit as a new run rather than treating it as fatal
    - FAILED: pipeline-scope error, or a stage failed and nothing was produced
    - EMPTY: the stream closed without a result
    """

    SUCCESS = "success"
    NEEDS_CONFIRMATION = "needs_confirmation"
    FAILED = "failed"
    EMPTY = "empty"


@dataclass(frozen=True)
class Stage:
    """Snapshot of one stage."""

    number: int
    name: str
    status: StageStatus = StageStatus.PENDING
    duration_ms: float | None = None
    error: str | None = None

    @property
    def key(self) -> str:
        return f"agent{self.number}"


@dataclass(frozen=True)
class ConfirmationRequest:
    """Ambiguous intent reported by stage 2."""

    question: str
    alternatives: tuple[str, ...] = ()

    @property
    def advisory_message(self) -> str:
        return (
            "Intent is ambiguous and needs confirmation:\n"
            f"  Question: {self.question}\n"
            f"  Alternatives: {', '.join(self.alternatives)}"
        )


@dataclass
class PipelineRun:
    """Per-invocation state aggregate of the enhance pipeline.

    Example:
        >>> run = PipelineRun()
        >>> for event in events:
        ...     run.apply(event)
        >>> run.finish()
        >>> if run.outcome is RunOutcome.SUCCESS:
        ...     print(run.result)
    """

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    _stages: list[Stage] = field(
        default_factory=lambda: [
            Stage(number=i + 1, name=name) for i, name in enumerate(STAGE_NAMES)
        ],
        repr=False,
    )
    _chunks: list[str] = field(default_factory=list, repr=False)
    token_usage: TokenUsage | None = None
    error: str | None = None
    confirmation: ConfirmationRequest | None = None
    events_applied: int = 0
    _finished: bool = field(default=False, repr=False)

    @property
    def stages(self) -> tuple[Stage, ...]:
        return tuple(self._stages)

    def stage(self, number: int) -> Stage:
        """Get a stage by its 1-based number."""
        if not 1 <= number <= STAGE_COUNT:
            raise IndexError(f"No stage {number}")
        return self._stages[number - 1]

    @property
    def result(self) -> str:
        """Synthesis text accumulated since the stream start or last reset."""
        return "".join(self._chunks)

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def outcome(self) -> RunOutcome:
        if self.error is not None:
            return RunOutcome.FAILED
        if self.confirmation is not None:
            return RunOutcome.NEEDS_CONFIRMATION
        if self.result:
            return RunOutcome.SUCCESS
        if any(s.status is StageStatus.FAILED for s in self._stages):
            return RunOutcome.FAILED
        return RunOutcome.EMPTY

    @property
    def message(self) -> str | None:
        """Error or advisory text for non-success outcomes."""
        match self.outcome:
            case RunOutcome.FAILED:
                if self.error is not None:
                    return self.error
                failed = [s for s in self._stages if s.status is StageStatus.FAILED]
                return f"{failed[0].name} failed" + (
                    f": {failed[0].error}" if failed[0].error else ""
                )
            case RunOutcome.NEEDS_CONFIRMATION:
                if self.confirmation is not None:
                    return self.confirmation.advisory_message
                return None
            case RunOutcome.EMPTY:
                return "No enhanced result was produced"
            case _:
                return None

    def apply(self, event: PipelineEvent) -> None:
        """Interpret one event.

        Args:
            event: Next event in arrival order

        Raises:
            PipelineStateError: If the run has already finished
        """
        if self._finished:
            raise PipelineStateError(
                "Pipeline run is finished and cannot accept events",
                event=event.label,
            )
        self.events_applied += 1

        match event:
            case StageStarted(stage=n):
                self._advance(n, StageStatus.RUNNING, event.label)
            case StageCompleted(stage=n, skipped=skipped, duration_ms=duration):
                status = StageStatus.SKIPPED if skipped else StageStatus.DONE
                self._advance(n, status, event.label, duration_ms=duration)
            case StageFailed(stage=n, error=error, duration_ms=duration):
                self._advance(
                    n, StageStatus.FAILED, event.label, duration_ms=duration, error=error
                )
            case IntentNeedsConfirmation(
                stage=n, clarified_question=question, alternatives=alternatives
            ):
                if self._advance(n, StageStatus.NEEDS_CONFIRMATION, event.label):
                    self.confirmation = ConfirmationRequest(
                        question=question, alternatives=tuple(alternatives)
                    )
            case SynthesisReset():
                if self._chunks:
                    logger.info("Synthesis restarted, discarding streamed text",
                                discarded=len(self.result))
                self._chunks.clear()
            case SynthesisChunk(chunk=chunk):
                if chunk:
                    self._chunks.append(chunk)
            case PipelineCompleted(token_usage=usage):
                self.token_usage = usage
            case PipelineFailed(message=message):
                self.error = message
            case UnknownEvent(label=label):
                logger.debug("Unhandled event", event_label=label)

    def finish(self) -> PipelineRun:
        """Freeze the run once its stream has ended or errored."""
        self._finished = True
        return self

    def _advance(
        self,
        number: int,
        target: StageStatus,
        label: str,
        *,
        duration_ms: float | None = None,
        error: str | None = None,
    ) -> bool:
        current = self.stage(number)
        if current.status is target and target is StageStatus.RUNNING:
            return False
        if target not in _TRANSITIONS.get(current.status, frozenset()):
            logger.warning(
                "Ignoring out-of-order stage transition",
                event_label=label,
                stage=number,
                status=current.status.value,
                target=target.value,
            )
            return False

        changes: dict[str, object] = {"status": target}
        if target.is_terminal:
            if duration_ms is not None:
                changes["duration_ms"] = duration_ms
            if error is not None:
                changes["error"] = error
        self._stages[number - 1] = replace(current, **changes)
        return True
