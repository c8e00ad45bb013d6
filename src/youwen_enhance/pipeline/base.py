"""
Base abstractions for the pipeline layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from youwen_enhance.types.events import Frame


class Decoder(ABC):
    """Abstract decoder that turns a chunked stream into frames.

    Decoders are incremental: ``feed`` accepts chunks that need not align
    with line boundaries and returns the frames completed by that chunk.
    A decoder instance is stateful and belongs to a single stream.
    """

    @abstractmethod
    def feed(self, chunk: bytes | str) -> list[Frame]:
        """Consume one chunk.

        Args:
            chunk: Raw bytes or already-decoded text

        Returns:
            Frames completed by this chunk, in arrival order
        """
        ...

    @abstractmethod
    def close(self) -> list[Frame]:
        """Signal end of stream and return any final frames."""
        ...

    async def decode(
        self, byte_stream: AsyncIterator[bytes]
    ) -> AsyncIterator[Frame]:
        """Decode a whole async byte stream into frames.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Frames in arrival order
        """
        async for chunk in byte_stream:
            for frame in self.feed(chunk):
                yield frame
        for frame in self.close():
            yield frame
