"""
Type definitions for youwen-enhance.

- Frames, decoded events and the typed pipeline event union
- The enhance request body
"""

from youwen_enhance.types.events import (
    DEFAULT_EVENT,
    RAW_FIELD,
    DecodedEvent,
    Frame,
    IntentNeedsConfirmation,
    PipelineCompleted,
    PipelineEvent,
    PipelineFailed,
    StageCompleted,
    StageFailed,
    StageStarted,
    SynthesisChunk,
    SynthesisReset,
    TokenUsage,
    UnknownEvent,
)
from youwen_enhance.types.request import (
    DEFAULT_SEARCH_ENGINES,
    SKILL_DESCRIPTION_LIMIT,
    AgentConfig,
    EnhanceRequest,
    InstalledSkill,
)

__all__ = [
    "DEFAULT_EVENT",
    "DEFAULT_SEARCH_ENGINES",
    "RAW_FIELD",
    "SKILL_DESCRIPTION_LIMIT",
    "AgentConfig",
    "DecodedEvent",
    "EnhanceRequest",
    "Frame",
    "InstalledSkill",
    "IntentNeedsConfirmation",
    "PipelineCompleted",
    "PipelineEvent",
    "PipelineFailed",
    "StageCompleted",
    "StageFailed",
    "StageStarted",
    "SynthesisChunk",
    "SynthesisReset",
    "TokenUsage",
    "UnknownEvent",
]
