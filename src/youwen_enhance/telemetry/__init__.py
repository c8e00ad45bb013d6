"""
Telemetry module for youwen-enhance.

Provides structured logging with run-scoped context and secret masking.
"""

from youwen_enhance.telemetry.logger import (
    JsonFormatter,
    LogContext,
    SensitiveDataMasker,
    TextFormatter,
    YouwenLogger,
    clear_log_context,
    configure_logging,
    get_log_context,
    get_logger,
    parse_level,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LogContext",
    "SensitiveDataMasker",
    "TextFormatter",
    "YouwenLogger",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "get_logger",
    "parse_level",
    "set_log_context",
]
