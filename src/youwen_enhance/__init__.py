"""优问多 Agent 智能增强客户端：消费增强流水线的事件流并汇总结果。

youwen-enhance: client for the multi-agent prompt enhancement pipeline.

Streams the pipeline's event feed, tracks the status of its four stages
(summary, intent analysis, search, synthesis) and assembles the enhanced
prompt.
"""
from __future__ import annotations

from youwen_enhance.client import EnhanceClient, EnhanceClientBuilder
from youwen_enhance.config import Settings, get_settings
from youwen_enhance.errors import (
    PipelineStateError,
    RemoteError,
    RequestTimeoutError,
    TransportError,
    ValidationError,
    YouwenError,
)
from youwen_enhance.pipeline import (
    EventStreamDecoder,
    PipelineRun,
    RunOutcome,
    Stage,
    StageStatus,
)
from youwen_enhance.types import (
    DecodedEvent,
    EnhanceRequest,
    Frame,
    PipelineEvent,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "EnhanceClient",
    "EnhanceClientBuilder",
    # Config
    "Settings",
    "get_settings",
    # Errors
    "PipelineStateError",
    "RemoteError",
    "RequestTimeoutError",
    "TransportError",
    "ValidationError",
    "YouwenError",
    # Pipeline
    "EventStreamDecoder",
    "PipelineRun",
    "RunOutcome",
    "Stage",
    "StageStatus",
    # Types
    "DecodedEvent",
    "EnhanceRequest",
    "Frame",
    "PipelineEvent",
    # Version
    "__version__",
]
