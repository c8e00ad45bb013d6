"""
Integration test helper utilities.

Shared fixtures and fake streams for driving the transport end to end.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import pytest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

ENHANCE_URL = "https://api.test/api/skill/enhance"


class StallingStream(httpx.AsyncByteStream):
    """Sends its chunks, then hangs until the request is abandoned."""

    def __init__(self, *chunks: bytes) -> None:
        self._chunks = chunks
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        await asyncio.sleep(3600)

    async def aclose(self) -> None:
        self.closed = True


class BrokenStream(httpx.AsyncByteStream):
    """Sends its chunks, then fails as if the connection dropped."""

    def __init__(self, *chunks: bytes) -> None:
        self._chunks = chunks

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        raise httpx.ReadError("connection reset by peer")


@pytest.fixture
def enhance_url() -> str:
    return ENHANCE_URL
