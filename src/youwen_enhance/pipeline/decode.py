"""事件流解码：把分块到达的 SSE 文本切分为 (event, data) 帧。

Line-oriented event-stream decoder.

Parses the enhance API's framing:
```
event: agent4_chunk
data: {"chunk": "Hello "}

data: keep-alive
```

Every ``data:`` line other than a heartbeat is one frame. The label comes
from the closest preceding ``event:`` line and falls back to ``"message"``;
it is consumed by the frame that uses it. Heartbeats leave it in place.
"""

from __future__ import annotations

import codecs

from youwen_enhance.pipeline.base import Decoder
from youwen_enhance.telemetry import get_logger
from youwen_enhance.types.events import DEFAULT_EVENT, Frame

logger = get_logger(__name__)

KEEP_ALIVE = "keep-alive"


class EventStreamDecoder(Decoder):
    """Incremental event-stream decoder.

    Chunks may split lines (or multi-byte characters) anywhere; only the
    trailing unterminated segment is held back between calls, so decoding
    is independent of where the chunk boundaries fall.

    Attributes:
        event_prefix: Prefix of label lines (default: "event:")
        data_prefix: Prefix of payload lines (default: "data:")
        heartbeat: Payload treated as a keep-alive (default: "keep-alive")

    Example:
        >>> decoder = EventStreamDecoder()
        >>> decoder.feed(b"event: agent1_start\\ndata: {}")
        []
        >>> decoder.feed(b"\\n")
        [Frame(event='agent1_start', data='{}')]
    """

    def __init__(
        self,
        *,
        event_prefix: str = "event:",
        data_prefix: str = "data:",
        heartbeat: str = KEEP_ALIVE,
    ) -> None:
        self._event_prefix = event_prefix
        self._data_prefix = data_prefix
        self._heartbeat = heartbeat
        self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._current_event = DEFAULT_EVENT
        self._closed = False

    @property
    def pending(self) -> str:
        """Unterminated text held back for the next chunk."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[Frame]:
        """Append a chunk and return the frames it completes."""
        if isinstance(chunk, bytes):
            chunk = self._text_decoder.decode(chunk)
        if not chunk:
            return []

        self._buffer += chunk
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        frames: list[Frame] = []
        for line in lines:
            frame = self._process_line(line.removesuffix("\r"))
            if frame is not None:
                frames.append(frame)
        return frames

    def close(self) -> list[Frame]:
        """End of stream.

        An unterminated trailing line never completed, so it is dropped
        rather than parsed. The drop is logged because it usually means the
        response was cut short.
        """
        if self._closed:
            return []
        self._closed = True

        self._buffer += self._text_decoder.decode(b"", final=True)
        if self._buffer.strip():
            logger.warning(
                "Dropping unterminated line at end of stream",
                length=len(self._buffer),
                preview=self._buffer[:80],
            )
        self._buffer = ""
        return []

    def _process_line(self, line: str) -> Frame | None:
        if line.startswith(self._event_prefix):
            self._current_event = line[len(self._event_prefix) :].strip() or DEFAULT_EVENT
            return None

        if not line.startswith(self._data_prefix):
            # Blank separators, comments and unknown fields
            return None

        data = line[len(self._data_prefix) :]
        if data.startswith(" "):
            data = data[1:]

        if data.strip() == self._heartbeat:
            # The pending label carries over to the next data line
            logger.debug("Heartbeat received")
            return None

        event = self._current_event
        self._current_event = DEFAULT_EVENT
        return Frame(event=event, data=data)
