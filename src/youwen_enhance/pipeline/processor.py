"""
Frame processor: payload parsing, event mapping and state updates.

The transport calls the processor once per frame. Each frame is decoded,
mapped to its typed event, applied to the run, and only then handed to the
caller's sink, all synchronously and in arrival order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from youwen_enhance.pipeline.event_map import map_event
from youwen_enhance.pipeline.payload import parse_payload
from youwen_enhance.pipeline.state import PipelineRun

if TYPE_CHECKING:
    from collections.abc import Callable

    from youwen_enhance.types.events import DecodedEvent, Frame, PipelineEvent

    EventSink = Callable[[PipelineEvent], None]
    DecodedSink = Callable[[DecodedEvent], None]


class EventProcessor:
    """Drives a PipelineRun from frames.

    Args:
        run: Run to update (a fresh one is created when omitted)
        on_event: Called with every typed event after the run is updated
        on_decoded: Called with every decoded frame before mapping
    """

    def __init__(
        self,
        run: PipelineRun | None = None,
        *,
        on_event: EventSink | None = None,
        on_decoded: DecodedSink | None = None,
    ) -> None:
        self.run = run or PipelineRun()
        self._on_event = on_event
        self._on_decoded = on_decoded

    def __call__(self, frame: Frame) -> None:
        decoded = parse_payload(frame)
        if self._on_decoded is not None:
            self._on_decoded(decoded)

        event = map_event(decoded)
        self.run.apply(event)
        if self._on_event is not None:
            self._on_event(event)
