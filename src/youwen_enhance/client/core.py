"""核心客户端实现：发起增强请求并把事件流驱动到流水线状态。

Core EnhanceClient implementation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from youwen_enhance.client.builder import EnhanceClientBuilder
from youwen_enhance.config import ENHANCE_ENDPOINT, Settings, get_settings
from youwen_enhance.errors import ValidationError
from youwen_enhance.pipeline import EventProcessor, PipelineRun
from youwen_enhance.telemetry import (
    LogContext,
    clear_log_context,
    get_logger,
    set_log_context,
)
from youwen_enhance.transport import HttpTransport, resolve_token
from youwen_enhance.types.request import AgentConfig, EnhanceRequest

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from typing import Any

    from youwen_enhance.skills import SkillInfo
    from youwen_enhance.types.events import DecodedEvent, PipelineEvent

logger = get_logger(__name__)


class EnhanceClient:
    """Client for the multi-agent prompt enhancement pipeline.

    Every call to ``enhance`` is an independent run with its own decoder
    and PipelineRun, so concurrent calls never share stream state.

    Example:
        >>> async with EnhanceClient.create(token="CODE-XXXX") as client:
        ...     request = client.build_request("Write a React login form")
        ...     run = await client.enhance(request, on_event=print)
        ...     if run.outcome is RunOutcome.SUCCESS:
        ...         print(run.result)
    """

    def __init__(
        self,
        transport: HttpTransport,
        *,
        settings: Settings | None = None,
        endpoint: str = ENHANCE_ENDPOINT,
    ) -> None:
        """Initialize the client (internal use).

        Use EnhanceClient.create() or EnhanceClientBuilder for public construction.
        """
        self._transport = transport
        self._settings = settings or Settings()
        self._endpoint = endpoint

    @classmethod
    def create(
        cls,
        *,
        settings: Settings | None = None,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> EnhanceClient:
        """Create a client from settings plus explicit overrides.

        Args:
            settings: Loaded settings (read from the environment when omitted)
            token: Bearer token overriding YOUWEN_TOKEN
            base_url: API base URL overriding YOUWEN_API_URL
            timeout: Stream budget in seconds overriding YOUWEN_TIMEOUT_SECS
            headers: Custom headers sent with every request

        Returns:
            Configured EnhanceClient instance
        """
        settings = settings or get_settings()
        transport = HttpTransport(
            base_url or settings.api_url,
            token=resolve_token(token, settings),
            headers=headers,
            timeout=timeout or settings.timeout_secs,
        )
        return cls(transport, settings=settings)

    @classmethod
    def builder(cls) -> EnhanceClientBuilder:
        """Get a builder for advanced configuration."""
        return EnhanceClientBuilder()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    def build_request(
        self,
        prompt: str,
        *,
        history: str = "",
        enable_search: bool | None = None,
        auto_confirm_intent: bool = True,
        confirmed_intent: str | None = None,
        mgrep_api_key: str | None = None,
        skills: Iterable[SkillInfo] | None = None,
    ) -> EnhanceRequest:
        """Assemble a request body from options and settings.

        Args:
            prompt: Prompt to enhance
            history: Conversation history for the summary stage
            enable_search: Run the search stage (default: settings)
            auto_confirm_intent: Let the server resolve ambiguous intents
            confirmed_intent: Intent chosen after a needs-confirmation run
            mgrep_api_key: Semantic retrieval key (default: settings)
            skills: Installed skills to advertise

        Raises:
            ValidationError: If both prompt and history are empty
        """
        if not prompt.strip() and not history.strip():
            raise ValidationError(
                "A prompt or a conversation history is required", field="prompt"
            )

        installed = [skill.to_request() for skill in skills] if skills else None
        return EnhanceRequest(
            prompt=prompt,
            conversation_history=history,
            agent_config=AgentConfig(
                enable_search=(
                    self._settings.enable_search if enable_search is None else enable_search
                ),
                auto_confirm_intent=auto_confirm_intent,
            ),
            confirmed_intent=confirmed_intent or None,
            mgrep_api_key=mgrep_api_key or self._settings.mgrep_api_key,
            installed_skills=installed or None,
        )

    async def enhance(
        self,
        request: EnhanceRequest,
        *,
        on_event: Callable[[PipelineEvent], None] | None = None,
        timeout: float | None = None,
    ) -> PipelineRun:
        """Run the pipeline and return its final state.

        Pipeline-reported failures and needs-confirmation outcomes are
        returned as data on the run; inspect ``run.outcome``.

        Args:
            request: Request body
            on_event: Sink called with every typed event in arrival order
            timeout: Stream budget in seconds (default: transport timeout)

        Returns:
            The finished PipelineRun

        Raises:
            RemoteError: Non-success HTTP status
            RequestTimeoutError: Stream exceeded its budget
            TransportError: Network failure
        """
        run = PipelineRun()
        processor = EventProcessor(run, on_event=on_event)
        set_log_context(LogContext(run_id=run.run_id, endpoint=self._endpoint))
        try:
            await self._transport.stream_events(
                self._endpoint, request.to_payload(), processor, timeout=timeout
            )
        finally:
            run.finish()
            logger.info(
                "Pipeline run finished",
                outcome=run.outcome.value,
                events=run.events_applied,
            )
            clear_log_context()
        return run

    async def collect_events(
        self,
        request: EnhanceRequest,
        *,
        timeout: float | None = None,
    ) -> list[DecodedEvent]:
        """Run the pipeline and return every decoded event verbatim."""
        events: list[DecodedEvent] = []
        processor = EventProcessor(on_decoded=events.append)
        try:
            await self._transport.stream_events(
                self._endpoint, request.to_payload(), processor, timeout=timeout
            )
        finally:
            processor.run.finish()
        return events

    async def close(self) -> None:
        """Close the underlying transport."""
        await self._transport.close()

    async def __aenter__(self) -> EnhanceClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
