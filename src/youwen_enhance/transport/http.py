"""HTTP 传输层：基于 httpx 的异步客户端，负责请求生命周期与事件流读取。

HTTP transport using httpx for async requests.

Provides:
- Event-stream POST driving a frame decoder as bytes arrive
- A single time budget over the whole operation
- Non-success responses drained into RemoteError before any framing
- Bearer token and custom header injection
"""

from __future__ import annotations

import asyncio
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Any

import httpx

from youwen_enhance.errors import RemoteError, RequestTimeoutError, TransportError
from youwen_enhance.pipeline.decode import EventStreamDecoder
from youwen_enhance.telemetry import get_logger
from youwen_enhance.transport.auth import get_auth_header

if TYPE_CHECKING:
    from collections.abc import Callable

    from youwen_enhance.pipeline.base import Decoder
    from youwen_enhance.types.events import Frame

logger = get_logger(__name__)

_DEFAULT_TIMEOUT = 300.0
# Connect bound for plain requests; streams fall back to their own budget
_DEFAULT_CONNECT_TIMEOUT = 10.0


@lru_cache(maxsize=1)
def user_agent() -> str:
    try:
        return f"youwen-enhance/{version('youwen-enhance')}"
    except PackageNotFoundError:
        return "youwen-enhance/dev"


def _transport_error(exc: httpx.HTTPError, url: str) -> TransportError:
    """Translate an httpx failure, keeping it as the cause."""
    if isinstance(exc, httpx.ConnectError):
        reason = "Connection failed"
    elif isinstance(exc, httpx.TimeoutException):
        reason = "Connection timed out"
    else:
        reason = "HTTP error"
    return TransportError(f"{reason}: {exc}", url=url, cause=exc)


class HttpTransport:
    """HTTP transport for the enhance API.

    Example:
        >>> async with HttpTransport("https://b.aigy.de", token="CODE") as transport:
        ...     await transport.stream_events("/api/skill/enhance", body, on_frame)
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        connect_timeout: float | None = None,
        proxy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            base_url: API base URL
            token: Bearer token
            headers: Custom headers sent with every request
            timeout: Default budget in seconds for one streaming operation
            connect_timeout: Bound on connection setup in seconds. A stream
                never waits longer than its budget; None leaves a stream's
                connect phase to the budget alone
            proxy: Proxy URL
            transport: Custom httpx transport (mainly for tests)
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._custom_headers = dict(headers or {})
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._proxy = proxy
        self._transport = transport

        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Reads are unbounded; stream_events enforces the operation budget
            connect = self._connect_timeout or _DEFAULT_CONNECT_TIMEOUT
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(None, connect=connect),
                transport=self._transport,
                proxy=None if self._transport is not None else self._proxy,
            )
        return self._client

    async def close(self) -> None:
        """Release pooled connections. The transport can be reused afterwards."""
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    def _headers(self, accept: str, extra: dict[str, str] | None = None) -> dict[str, str]:
        return {
            "Accept": accept,
            "User-Agent": user_agent(),
            **self._custom_headers,
            **get_auth_header(self._token),
            **(extra or {}),
        }

    async def stream_events(
        self,
        path: str,
        json: dict[str, Any],
        on_frame: Callable[[Frame], None],
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        decoder: Decoder | None = None,
    ) -> None:
        """POST a JSON body and feed the event-stream response to ``on_frame``.

        Returns once the server closes the stream. Everything meaningful has
        been delivered through ``on_frame`` by then.

        The budget also covers connection setup: a slow connect surfaces as
        RequestTimeoutError unless ``connect_timeout`` is set and shorter.

        Args:
            path: Request path (relative to base URL)
            json: JSON body
            on_frame: Called synchronously for every frame, in arrival order
            timeout: Budget for the whole operation (default: transport timeout)
            headers: Additional headers for this request
            decoder: Frame decoder (a fresh EventStreamDecoder by default)

        Raises:
            RemoteError: On a non-success status, with a bounded body excerpt
            RequestTimeoutError: If the stream does not end within the budget
            TransportError: On network/connection errors
        """
        budget = self._timeout if timeout is None else timeout
        url = f"{self._base_url}{path}"

        try:
            await asyncio.wait_for(
                self._consume_stream(
                    path,
                    json,
                    on_frame,
                    headers=headers,
                    decoder=decoder or EventStreamDecoder(),
                    budget=budget,
                ),
                timeout=budget,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Event stream timed out", url=url, timeout=budget)
            raise RequestTimeoutError(budget, url=url) from e

    async def _consume_stream(
        self,
        path: str,
        json: dict[str, Any],
        on_frame: Callable[[Frame], None],
        *,
        headers: dict[str, str] | None,
        decoder: Decoder,
        budget: float,
    ) -> None:
        url = f"{self._base_url}{path}"
        client = self._get_client()
        connect = budget if self._connect_timeout is None else min(self._connect_timeout, budget)

        try:
            async with client.stream(
                "POST",
                path,
                json=json,
                headers=self._headers("text/event-stream", headers),
                timeout=httpx.Timeout(None, connect=connect),
            ) as response:
                if not response.is_success:
                    body = await response.aread()
                    logger.warning(
                        "Enhance request rejected",
                        url=url,
                        status_code=response.status_code,
                    )
                    raise RemoteError.from_response(response.status_code, body, url=url)

                logger.info("Event stream opened", url=url, status_code=response.status_code)
                frames = 0
                async for chunk in response.aiter_bytes():
                    for frame in decoder.feed(chunk):
                        frames += 1
                        on_frame(frame)

        except httpx.HTTPError as e:
            raise _transport_error(e, url) from e

        for frame in decoder.close():
            frames += 1
            on_frame(frame)
        logger.info("Event stream closed", url=url, frames=frames)

    async def get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Make a GET request and parse the JSON body.

        Args:
            path: Request path
            params: Query parameters
            timeout: Budget for the request in seconds

        Returns:
            Parsed JSON body

        Raises:
            RemoteError: On a non-success status
            TransportError: On network errors or a non-JSON body
        """
        url = f"{self._base_url}{path}"
        try:
            response = await self._get_client().get(
                path,
                params=params,
                headers=self._headers("application/json"),
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as e:
            raise _transport_error(e, url) from e

        if not response.is_success:
            raise RemoteError.from_response(response.status_code, response.content, url=url)

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON response: {e}", url=url, cause=e) from e

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
