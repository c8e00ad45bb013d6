"""
Integration tests for the HTTP transport.

Drives HttpTransport against mocked responses: streaming, error statuses,
timeouts and connection failures.
"""

from __future__ import annotations

import json

import httpx
import pytest
from pytest_httpx import IteratorStream

from tests.integration.conftest import BrokenStream, StallingStream
from youwen_enhance.errors import RemoteError, RequestTimeoutError, TransportError
from youwen_enhance.transport import HttpTransport, resolve_token
from youwen_enhance.types import Frame

BASE_URL = "https://api.test"
PATH = "/api/skill/enhance"


class TestStreamEvents:
    """Tests for a successful event stream."""

    @pytest.mark.asyncio
    async def test_frames_in_order(self, httpx_mock, enhance_url, sse) -> None:
        """Test frames are delivered in arrival order, heartbeats dropped."""
        body = sse(
            ("agent1_start", {}),
            (None, "keep-alive"),
            ("agent4_chunk", {"chunk": "你好"}),
        )
        httpx_mock.add_response(
            url=enhance_url,
            method="POST",
            stream=IteratorStream([body[:7], body[7:30], body[30:]]),
            headers={"Content-Type": "text/event-stream"},
        )

        frames: list[Frame] = []
        async with HttpTransport(BASE_URL) as transport:
            await transport.stream_events(PATH, {"prompt": "hi"}, frames.append)

        assert frames == [
            Frame(event="agent1_start", data="{}"),
            Frame(event="agent4_chunk", data='{"chunk": "你好"}'),
        ]

    @pytest.mark.asyncio
    async def test_request_shape(self, httpx_mock, enhance_url) -> None:
        """Test method, body and headers of the enhance request."""
        httpx_mock.add_response(url=enhance_url, method="POST", content=b"")

        async with HttpTransport(
            BASE_URL, token="CODE-1234", headers={"X-Client": "tests"}
        ) as transport:
            await transport.stream_events(
                PATH, {"prompt": "hi"}, lambda _: None, headers={"X-Trace": "1"}
            )

        request = httpx_mock.get_request()
        assert request.method == "POST"
        assert json.loads(request.content) == {"prompt": "hi"}
        assert request.headers["Authorization"] == "Bearer CODE-1234"
        assert request.headers["Accept"] == "text/event-stream"
        assert request.headers["X-Client"] == "tests"
        assert request.headers["X-Trace"] == "1"
        assert request.headers["User-Agent"].startswith("youwen-enhance/")

    @pytest.mark.asyncio
    async def test_no_token_no_auth_header(self, httpx_mock, enhance_url) -> None:
        """Test requests without credentials."""
        httpx_mock.add_response(url=enhance_url, method="POST", content=b"")
        async with HttpTransport(BASE_URL) as transport:
            await transport.stream_events(PATH, {}, lambda _: None)
        assert "Authorization" not in httpx_mock.get_request().headers

    @pytest.mark.asyncio
    async def test_unterminated_tail_not_delivered(self, httpx_mock, enhance_url) -> None:
        """Test a final line without a newline is dropped at close."""
        httpx_mock.add_response(
            url=enhance_url,
            method="POST",
            content=b'event: agent1_start\ndata: {}\n\nevent: agent1_complete\ndata: {"dur',
        )
        frames: list[Frame] = []
        async with HttpTransport(BASE_URL) as transport:
            await transport.stream_events(PATH, {}, frames.append)
        assert [f.event for f in frames] == ["agent1_start"]


class TestRemoteErrors:
    """Tests for non-success statuses."""

    @pytest.mark.asyncio
    async def test_forbidden_before_any_frame(self, httpx_mock, enhance_url, sse) -> None:
        """Test an error body is never parsed as events."""
        httpx_mock.add_response(
            url=enhance_url,
            method="POST",
            status_code=403,
            content=sse(("agent4_chunk", {"chunk": "should not appear"})),
        )
        frames: list[Frame] = []

        async with HttpTransport(BASE_URL) as transport:
            with pytest.raises(RemoteError) as exc_info:
                await transport.stream_events(PATH, {}, frames.append)

        assert frames == []
        assert exc_info.value.status_code == 403
        assert "agent4_chunk" in exc_info.value.body_excerpt

    @pytest.mark.asyncio
    async def test_body_excerpt_bounded(self, httpx_mock, enhance_url) -> None:
        """Test large error bodies are truncated."""
        httpx_mock.add_response(
            url=enhance_url, method="POST", status_code=500, text="e" * 5000
        )
        async with HttpTransport(BASE_URL) as transport:
            with pytest.raises(RemoteError) as exc_info:
                await transport.stream_events(PATH, {}, lambda _: None)
        assert exc_info.value.body_excerpt == "e" * 500


class TestTransportErrors:
    """Tests for connection failures and timeouts."""

    @pytest.mark.asyncio
    async def test_connect_error(self, httpx_mock, enhance_url) -> None:
        """Test connection failures map to TransportError."""
        httpx_mock.add_exception(httpx.ConnectError("refused"), url=enhance_url)
        async with HttpTransport(BASE_URL) as transport:
            with pytest.raises(TransportError) as exc_info:
                await transport.stream_events(PATH, {}, lambda _: None)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.url == f"{BASE_URL}{PATH}"

    @pytest.mark.asyncio
    async def test_connection_dropped_mid_stream(self, sse) -> None:
        """Test frames before the drop are delivered, then the error is raised."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                200, stream=BrokenStream(sse(("agent1_start", {})))
            )
        )
        frames: list[Frame] = []

        async with HttpTransport(BASE_URL, transport=transport) as http:
            with pytest.raises(TransportError):
                await http.stream_events(PATH, {}, frames.append)

        assert [f.event for f in frames] == ["agent1_start"]

    @pytest.mark.asyncio
    async def test_timeout_aborts_request(self, sse) -> None:
        """Test the budget covers the whole stream and closes the response."""
        stream = StallingStream(sse(("agent1_start", {})))
        transport = httpx.MockTransport(lambda request: httpx.Response(200, stream=stream))
        frames: list[Frame] = []

        async with HttpTransport(BASE_URL, transport=transport, timeout=0.1) as http:
            with pytest.raises(RequestTimeoutError) as exc_info:
                await http.stream_events(PATH, {}, frames.append)

        assert exc_info.value.timeout == 0.1
        assert [f.event for f in frames] == ["agent1_start"]
        assert stream.closed

    @pytest.mark.asyncio
    async def test_per_call_timeout(self) -> None:
        """Test a per-call budget overrides the transport default."""
        stream = StallingStream()
        transport = httpx.MockTransport(lambda request: httpx.Response(200, stream=stream))

        async with HttpTransport(BASE_URL, transport=transport, timeout=60) as http:
            with pytest.raises(RequestTimeoutError) as exc_info:
                await http.stream_events(PATH, {}, lambda _: None, timeout=0.05)
        assert exc_info.value.timeout == 0.05

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("connect_timeout", "budget", "expected"),
        [(None, 600.0, 600.0), (10.0, 600.0, 10.0), (10.0, 2.0, 2.0)],
    )
    async def test_connect_phase_within_budget(
        self, connect_timeout: float | None, budget: float, expected: float
    ) -> None:
        """Test connection setup is bounded by the stream budget, not a fixed default."""
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.extensions["timeout"])
            return httpx.Response(200, content=b"")

        async with HttpTransport(
            BASE_URL, transport=httpx.MockTransport(handler), connect_timeout=connect_timeout
        ) as http:
            await http.stream_events(PATH, {}, lambda _: None, timeout=budget)

        assert seen[0]["connect"] == expected
        assert seen[0]["read"] is None


class TestGetJson:
    """Tests for JSON GET requests."""

    @pytest.mark.asyncio
    async def test_get_json(self, httpx_mock) -> None:
        """Test query parameters and JSON decoding."""
        httpx_mock.add_response(
            url=f"{BASE_URL}/api/skill/version?name=yw-enhance", json={"version": "1.0.0"}
        )
        async with HttpTransport(BASE_URL) as transport:
            data = await transport.get_json("/api/skill/version", params={"name": "yw-enhance"})
        assert data == {"version": "1.0.0"}

    @pytest.mark.asyncio
    async def test_invalid_json(self, httpx_mock) -> None:
        """Test a non-JSON body."""
        httpx_mock.add_response(url=f"{BASE_URL}/status", text="<html>")
        async with HttpTransport(BASE_URL) as transport:
            with pytest.raises(TransportError):
                await transport.get_json("/status")


class TestResolveToken:
    """Tests for credential resolution."""

    def test_explicit_wins(self, settings) -> None:
        """Test precedence of explicit values over settings."""
        settings.token = "FROM-SETTINGS"
        assert resolve_token("EXPLICIT", settings) == "EXPLICIT"
        assert resolve_token(None, settings) == "FROM-SETTINGS"

    def test_keyring_fallback(self, settings, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the keyring is consulted last."""
        monkeypatch.setattr("youwen_enhance.transport.auth._try_keyring", lambda: "FROM-KEYRING")
        assert resolve_token(None, settings) == "FROM-KEYRING"
