"""
SKILL.md front matter and trigger keyword extraction.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

_FRONTMATTER = re.compile(r"^---[ \t]*\r?\n(.*?)\r?\n---", re.DOTALL)

_CN_SEPARATORS = r"[、,，/]"
_EN_SEPARATORS = r"[,，]"

# (pattern, separators, strip quotes)
_TRIGGER_PATTERNS: tuple[tuple[re.Pattern[str], str, bool], ...] = (
    (re.compile(r"触发词[：:]\s*([^\n【]+)"), _CN_SEPARATORS, False),
    (re.compile(r"(?:smart\s*模式)?额外触发[：:]\s*([^\n【]+)"), _CN_SEPARATORS, False),
    (re.compile(r"自动触发[：:]\s*([^\n【]+)"), _CN_SEPARATORS, False),
    (re.compile(r"Triggers?[：:]\s*([^\n.]+)", re.IGNORECASE), _EN_SEPARATORS, True),
    (re.compile(r"Smart\s+triggers?[：:]\s*([^\n.]+)", re.IGNORECASE), _EN_SEPARATORS, True),
    (re.compile(r"关键词[：:]\s*([^\n【]+)"), _CN_SEPARATORS, True),
    (re.compile(r"Keywords?[：:]\s*([^\n.]+)", re.IGNORECASE), _CN_SEPARATORS, True),
    (re.compile(r"触发关键词[：:]\s*([^\n【]+)"), _CN_SEPARATORS, True),
    (re.compile(r"激活词[：:]\s*([^\n【]+)"), _CN_SEPARATORS, True),
    (
        re.compile(r"Activation\s+(?:words?|keywords?)[：:]\s*([^\n.]+)", re.IGNORECASE),
        _CN_SEPARATORS,
        True,
    ),
)


def parse_frontmatter(content: str) -> dict[str, Any] | None:
    """Parse the YAML block between the leading ``---`` fences.

    Returns:
        Mapping with lower-cased keys, or None when there is no front matter
        or it is not a YAML mapping
    """
    match = _FRONTMATTER.match(content)
    if match is None:
        return None
    try:
        parsed = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return None
    if not isinstance(parsed, dict):
        return None
    return {str(key).lower(): value for key, value in parsed.items() if key is not None}


def frontmatter_body(content: str) -> str:
    """Text after the front matter, or the whole text when there is none."""
    match = _FRONTMATTER.match(content)
    if match is None:
        return content.strip()
    return content[match.end() :].strip()


def extract_triggers(description: str | None) -> list[str]:
    """Collect trigger keywords declared in a skill description.

    Recognizes labels such as ``触发词：``, ``Triggers:`` and ``Keywords:``.
    Keywords are returned once each, in order of first appearance.
    """
    if not description:
        return []

    triggers: list[str] = []
    for pattern, separators, strip_quotes in _TRIGGER_PATTERNS:
        for match in pattern.finditer(description):
            for item in re.split(separators, match.group(1)):
                item = item.strip()
                if strip_quotes:
                    item = item.strip("\"'")
                if item:
                    triggers.append(item)

    return list(dict.fromkeys(triggers))
