"""
Builder for fluent client construction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from youwen_enhance.client.core import EnhanceClient
    from youwen_enhance.config import Settings


class EnhanceClientBuilder:
    """Builder for creating EnhanceClient instances with custom configuration.

    Example:
        >>> client = (
        ...     EnhanceClientBuilder()
        ...     .base_url("http://localhost:8000")
        ...     .token("CODE-XXXX")
        ...     .header("X-Client", "ci")
        ...     .timeout(60)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._settings: Settings | None = None
        self._base_url: str | None = None
        self._token: str | None = None
        self._headers: dict[str, str] = {}
        self._timeout: float | None = None
        self._proxy: str | None = None
        self._transport: httpx.AsyncBaseTransport | None = None

    def settings(self, settings: Settings) -> EnhanceClientBuilder:
        """Use explicit settings instead of reading the environment."""
        self._settings = settings
        return self

    def base_url(self, url: str) -> EnhanceClientBuilder:
        """Override the API base URL."""
        self._base_url = url
        return self

    def token(self, token: str) -> EnhanceClientBuilder:
        """Set the bearer token."""
        self._token = token
        return self

    def header(self, name: str, value: str) -> EnhanceClientBuilder:
        """Add a custom header sent with every request."""
        self._headers[name] = value
        return self

    def timeout(self, seconds: float) -> EnhanceClientBuilder:
        """Set the budget for one enhance stream."""
        self._timeout = seconds
        return self

    def proxy(self, url: str) -> EnhanceClientBuilder:
        """Route requests through a proxy."""
        self._proxy = url
        return self

    def http_transport(self, transport: httpx.AsyncBaseTransport) -> EnhanceClientBuilder:
        """Use a custom httpx transport."""
        self._transport = transport
        return self

    def build(self) -> EnhanceClient:
        """Build the client."""
        from youwen_enhance.client.core import EnhanceClient
        from youwen_enhance.config import get_settings
        from youwen_enhance.errors import ValidationError
        from youwen_enhance.transport import HttpTransport, resolve_token

        settings = self._settings or get_settings()
        timeout = self._timeout if self._timeout is not None else settings.timeout_secs
        if timeout <= 0:
            raise ValidationError("Timeout must be positive", field="timeout", actual=timeout)

        transport = HttpTransport(
            self._base_url or settings.api_url,
            token=resolve_token(self._token, settings),
            headers=self._headers,
            timeout=timeout,
            proxy=self._proxy,
            transport=self._transport,
        )
        return EnhanceClient(transport, settings=settings)
