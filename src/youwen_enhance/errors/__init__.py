"""错误体系：区分传输失败、超时、远端错误与流水线状态错误。

Error hierarchy for youwen-enhance.
"""

from youwen_enhance.errors.base import (
    BODY_EXCERPT_LIMIT,
    ErrorContext,
    PipelineStateError,
    RemoteError,
    RequestTimeoutError,
    TransportError,
    ValidationError,
    YouwenError,
)

__all__ = [
    "BODY_EXCERPT_LIMIT",
    "ErrorContext",
    "PipelineStateError",
    "RemoteError",
    "RequestTimeoutError",
    "TransportError",
    "ValidationError",
    "YouwenError",
]
