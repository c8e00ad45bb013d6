"""
Frame payload parsing.

Payloads are expected to be JSON objects. Anything else is kept verbatim
under the ``raw`` field so that one odd frame never aborts a stream.
"""

from __future__ import annotations

import json

from youwen_enhance.telemetry import get_logger
from youwen_enhance.types.events import RAW_FIELD, DecodedEvent, Frame

logger = get_logger(__name__)


def parse_payload(frame: Frame) -> DecodedEvent:
    """Interpret a frame's payload.

    Args:
        frame: Frame produced by the decoder

    Returns:
        DecodedEvent with the parsed object, or a raw fallback record
    """
    try:
        value = json.loads(frame.data)
    except (ValueError, RecursionError):
        # Nesting deeper than the interpreter stack counts as malformed
        value = None

    if isinstance(value, dict):
        return DecodedEvent(event=frame.event, data=value)

    logger.debug("Non-object payload kept as raw text", event=frame.event)
    return DecodedEvent(event=frame.event, data={RAW_FIELD: frame.data}, is_raw=True)
