"""
Pipeline layer - Stream processing.

This module turns the enhance API's event stream into pipeline state:
- Decoder: Splits raw chunks into (event, data) frames
- Payload parser: Parses frame payloads, falling back to raw text
- Event mapper: Converts decoded frames to typed pipeline events
- PipelineRun: Per-invocation state machine over the four stages
- EventProcessor: Wires the above together for the transport
"""

from youwen_enhance.pipeline.base import Decoder
from youwen_enhance.pipeline.decode import KEEP_ALIVE, EventStreamDecoder
from youwen_enhance.pipeline.event_map import STAGE_COUNT, map_event
from youwen_enhance.pipeline.payload import parse_payload
from youwen_enhance.pipeline.processor import EventProcessor
from youwen_enhance.pipeline.state import (
    STAGE_NAMES,
    ConfirmationRequest,
    PipelineRun,
    RunOutcome,
    Stage,
    StageStatus,
)

__all__ = [
    "KEEP_ALIVE",
    "STAGE_COUNT",
    "STAGE_NAMES",
    "ConfirmationRequest",
    "Decoder",
    "EventProcessor",
    "EventStreamDecoder",
    "PipelineRun",
    "RunOutcome",
    "Stage",
    "StageStatus",
    "map_event",
    "parse_payload",
]
