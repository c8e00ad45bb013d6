"""错误基类：提供分层错误体系和结构化错误上下文。

Base error classes for youwen-enhance.

- YouwenError: Base class for all library errors
- TransportError: Connection-level failures
- RequestTimeoutError: No terminal event within the time budget
- RemoteError: Non-success HTTP status from the enhance API
- PipelineStateError: Mutation of a finished pipeline run
- ValidationError: Invalid caller input

Only transport, timeout and remote errors abort a streaming operation.
Malformed frames and pipeline-reported failures are data, not exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

# Maximum number of characters of an error body kept for diagnostics
BODY_EXCERPT_LIMIT = 500


@dataclass
class ErrorContext:
    """Where an error came from and what to do about it."""

    source: str | None = None
    field_path: str | None = None
    hint: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        rendered = (
            f"[{self.source}]" if self.source else "",
            f"at '{self.field_path}'" if self.field_path else "",
            f"(hint: {self.hint})" if self.hint else "",
        )
        return " ".join(part for part in rendered if part)


class YouwenError(Exception):
    """Base class for all youwen-enhance errors.

    Keyword arguments other than ``context`` are recorded in
    ``context.details`` when they are not None.
    """

    source: ClassVar[str | None] = None

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        **details: Any,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext(source=self.source)
        self.context.details.update({k: v for k, v in details.items() if v is not None})
        super().__init__(self.render())

    def render(self) -> str:
        return " ".join(part for part in (self.message, str(self.context)) if part)

    def with_hint(self, hint: str) -> YouwenError:
        """Attach a hint and refresh the rendered message."""
        self.context.hint = hint
        self.args = (self.render(),)
        return self


class TransportError(YouwenError):
    """The connection could not be made, failed TLS, or dropped mid-stream."""

    source = "transport"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context, url=url)
        self.url = url
        self.__cause__ = cause


class RequestTimeoutError(YouwenError):
    """No terminal event arrived within the operation's time budget.

    The in-flight request has been aborted and its connection closed by the
    time this is raised.
    """

    source = "timeout"

    def __init__(
        self,
        timeout: float,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
    ) -> None:
        super().__init__(f"Request timed out ({timeout:g}s)", context, timeout=timeout, url=url)
        self.timeout = timeout
        self.url = url


class RemoteError(YouwenError):
    """Non-success status returned by the enhance API.

    ``body_excerpt`` holds at most BODY_EXCERPT_LIMIT characters of the
    drained response body.
    """

    source = "remote"

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body_excerpt: str = "",
        url: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, url=url)
        self.status_code = status_code
        self.body_excerpt = body_excerpt
        self.url = url

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body: str | bytes,
        url: str | None = None,
    ) -> RemoteError:
        """Build the error for a rejected request from its full body.

        Undecodable bytes are replaced rather than raised on.
        """
        text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
        excerpt = text[:BODY_EXCERPT_LIMIT]
        return cls(
            f"HTTP {status_code}: {excerpt}",
            status_code=status_code,
            body_excerpt=excerpt,
            url=url,
        )


class PipelineStateError(YouwenError):
    """Raised when a finished pipeline run receives another event."""

    source = "pipeline"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        event: str | None = None,
    ) -> None:
        super().__init__(message, context, event=event)
        self.event = event


class ValidationError(YouwenError):
    """Caller input rejected before any request is sent.

    Covers a missing prompt and history, and non-positive timeouts.
    """

    source = "validation"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        field: str | None = None,
        actual: Any = None,
    ) -> None:
        context = context or ErrorContext(source=self.source, field_path=field)
        super().__init__(message, context, actual=actual)
        self.field = field
        self.actual = actual
