"""
Structured logging for youwen-enhance.

Every module logs through a child of the ``youwen_enhance`` logger, which owns
the single stderr handler; stdout stays reserved for the enhanced result.
Keyword arguments become structured fields, the current run's context is
attached to each record, and credentials are redacted on the way out.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, ClassVar, TextIO

ROOT_LOGGER = "youwen_enhance"
REDACTED = "***REDACTED***"

_run_context: ContextVar[LogContext | None] = ContextVar("youwen_run_context", default=None)
_handler: logging.Handler | None = None


def parse_level(level: str | int) -> int:
    """Resolve a level name such as ``"debug"`` to its numeric value."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record logged during one pipeline run."""

    run_id: str | None = None
    endpoint: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        fields = {"run_id": self.run_id, "endpoint": self.endpoint}
        return {k: v for k, v in fields.items() if v} | self.extra

    def with_extra(self, **kwargs: Any) -> LogContext:
        return replace(self, extra={**self.extra, **kwargs})


def get_log_context() -> LogContext:
    return _run_context.get() or LogContext()


def set_log_context(context: LogContext) -> None:
    _run_context.set(context)


def clear_log_context() -> None:
    _run_context.set(None)


class SensitiveDataMasker:
    """Redacts credentials from messages and structured fields.

    Covers the bearer token (redeem code) in any ``Authorization`` form, the
    semantic retrieval key in serialized request bodies, and the
    corresponding ``YOUWEN_*`` environment assignments.
    """

    PATTERNS: ClassVar[tuple[tuple[str, str], ...]] = (
        (r"(Bearer\s+)[^\s\"']+", rf"\1{REDACTED}"),
        (r"(Authorization[\"']?\s*[:=]\s*[\"']?)(?!Bearer\b)[^\"'\s]+", rf"\1{REDACTED}"),
        (r"(mgrep_api_key[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", rf"\1{REDACTED}"),
        (r"(YOUWEN_(?:TOKEN|MGREP_API_KEY)=)\S+", rf"\1{REDACTED}"),
    )

    # Field names containing any of these are redacted wholesale
    SENSITIVE_NAMES: ClassVar[tuple[str, ...]] = ("key", "token", "secret", "password", "auth")

    def __init__(self, patterns: tuple[tuple[str, str], ...] | None = None) -> None:
        self._rules = [
            (re.compile(pattern, re.IGNORECASE), repl)
            for pattern, repl in (patterns or self.PATTERNS)
        ]

    def mask(self, text: str) -> str:
        for rule, repl in self._rules:
            text = rule.sub(repl, text)
        return text

    def mask_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Redact a mapping of structured fields, recursing into containers."""
        return {
            name: REDACTED if self._is_sensitive(name) else self._mask_value(value)
            for name, value in fields.items()
        }

    def _is_sensitive(self, name: str) -> bool:
        lowered = name.lower()
        return any(marker in lowered for marker in self.SENSITIVE_NAMES)

    def _mask_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.mask(value)
        if isinstance(value, dict):
            return self.mask_fields(value)
        if isinstance(value, (list, tuple)):
            return [self._mask_value(item) for item in value]
        return value


class _StructuredFormatter(logging.Formatter):
    """Shared field collection for the text and JSON formatters."""

    def __init__(self, masker: SensitiveDataMasker | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.masker = masker or SensitiveDataMasker()

    def context_fields(self) -> dict[str, Any]:
        return get_log_context().to_dict()

    def record_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        return self.masker.mask_fields(getattr(record, "fields", {}))


class TextFormatter(_StructuredFormatter):
    """``time level logger: message key=value ...``"""

    def __init__(self, masker: SensitiveDataMasker | None = None) -> None:
        super().__init__(
            masker,
            fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = self.masker.mask(super().format(record))
        fields = self.context_fields() | self.record_fields(record)
        if not fields:
            return line
        return line + " " + " ".join(f"{k}={v}" for k, v in fields.items())


class JsonFormatter(_StructuredFormatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        document: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self.masker.mask(record.getMessage()),
        }
        if context := self.context_fields():
            document["context"] = context
        document.update(self.record_fields(record))
        return json.dumps(document, default=str, ensure_ascii=False)


class YouwenLogger:
    """Thin wrapper turning keyword arguments into structured fields.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Event stream opened", status_code=200)
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _emit(self, level: int, msg: str, fields: dict[str, Any]) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, msg, extra={"fields": fields})

    def debug(self, msg: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._emit(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._emit(logging.WARNING, msg, fields)


def configure_logging(
    level: str | int = "WARNING",
    format: str = "text",
    stream: TextIO | None = None,
    masker: SensitiveDataMasker | None = None,
) -> None:
    """(Re)install the package handler.

    Args:
        level: Level name or number
        format: ``"text"`` or ``"json"``
        stream: Destination (default: stderr)
        masker: Credential masker shared by the formatter
    """
    global _handler
    root = logging.getLogger(ROOT_LOGGER)
    if _handler is not None:
        root.removeHandler(_handler)

    formatter = JsonFormatter(masker) if format == "json" else TextFormatter(masker)
    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(formatter)

    root.addHandler(_handler)
    root.setLevel(parse_level(level))
    root.propagate = False


def get_logger(name: str) -> YouwenLogger:
    """Get a logger under the ``youwen_enhance`` hierarchy."""
    if _handler is None:
        configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return YouwenLogger(logging.getLogger(name))
