"""已安装 Skill 扫描：解析 SKILL.md，提取触发词与快速开始命令。

Installed skill discovery.

Skills live in ``<root>/<skill-id>/SKILL.md``. Roots are scanned in order,
duplicated roots (by resolved path) are skipped and the first skill with a
given name wins.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from youwen_enhance.skills.frontmatter import (
    extract_triggers,
    frontmatter_body,
    parse_frontmatter,
)
from youwen_enhance.telemetry import get_logger
from youwen_enhance.types.request import InstalledSkill

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

logger = get_logger(__name__)

SKILL_FILE_NAME = "SKILL.md"
SUMMARY_LIMIT = 500
DEFAULT_CACHE_TTL = 60.0

_QUICK_START = re.compile(r"```(?:bash|sh)\r?\n((?:node|bun)\s+[^\n]+)")


@dataclass(frozen=True)
class SkillInfo:
    """Discovered skill metadata."""

    id: str
    name: str
    description: str
    path: Path
    version: str | None = None
    triggers: tuple[str, ...] = ()
    quick_start: str | None = None
    summary: str = ""
    user_invocable: bool = False
    source_dir: Path | None = None

    def to_request(self) -> InstalledSkill:
        """Descriptor sent to the enhance API."""
        return InstalledSkill(
            name=self.name,
            description=self.description,
            triggers=list(self.triggers),
            quick_start=self.quick_start,
        )


@dataclass
class _CacheEntry:
    key: tuple[str, ...]
    skills: list[SkillInfo]
    created_at: float


@dataclass
class SkillScanCache:
    """Holds the last scan result for ``ttl`` seconds.

    The cache is keyed by the extra directories of the scan; a scan with a
    different key replaces the entry.

    Example:
        >>> cache = SkillScanCache(ttl=60.0)
        >>> skills = scan_all_skills(["~/my-skills"], cache=cache)
        >>> cache.invalidate()
    """

    ttl: float = DEFAULT_CACHE_TTL
    clock: Callable[[], float] = field(default=time.monotonic)
    _entry: _CacheEntry | None = field(default=None, repr=False)

    def get(self, key: tuple[str, ...]) -> list[SkillInfo] | None:
        entry = self._entry
        if entry is None or entry.key != key:
            return None
        if self.clock() - entry.created_at >= self.ttl:
            self._entry = None
            return None
        return list(entry.skills)

    def put(self, key: tuple[str, ...], skills: list[SkillInfo]) -> None:
        self._entry = _CacheEntry(key=key, skills=list(skills), created_at=self.clock())

    def invalidate(self) -> None:
        self._entry = None


def _read_skill(entry: Path) -> SkillInfo | None:
    real_path = entry.resolve()
    skill_file = entry / SKILL_FILE_NAME
    if not skill_file.is_file():
        skill_file = real_path / SKILL_FILE_NAME
        if not skill_file.is_file():
            return None

    try:
        content = skill_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Skipping unreadable skill", path=str(skill_file))
        return None

    meta = parse_frontmatter(content)
    if meta is None:
        return None

    description = _as_text(meta.get("description")) or ""
    quick_start = _QUICK_START.search(content)
    version = _as_text(meta.get("version"))

    return SkillInfo(
        id=entry.name,
        name=_as_text(meta.get("name")) or entry.name,
        version=version,
        description=description,
        triggers=tuple(extract_triggers(description)),
        quick_start=quick_start.group(1).strip() if quick_start else None,
        summary=frontmatter_body(content)[:SUMMARY_LIMIT],
        path=real_path,
        user_invocable=_as_bool(meta.get("user-invocable")),
    )


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def scan_skills_dir(skills_dir: Path | str) -> list[SkillInfo]:
    """Scan one skills root.

    Hidden entries, plain files and directories without a parseable
    SKILL.md are skipped.

    Args:
        skills_dir: Directory containing one sub-directory per skill

    Returns:
        Skills sorted by directory name
    """
    root = Path(skills_dir).expanduser()
    if not root.is_dir():
        return []

    skills: list[SkillInfo] = []
    try:
        entries = sorted(root.iterdir())
    except OSError:
        logger.debug("Cannot list skills directory", path=str(root))
        return []

    for entry in entries:
        if entry.name.startswith("."):
            continue
        if not entry.is_dir():
            continue
        skill = _read_skill(entry)
        if skill is not None:
            skills.append(skill)

    return skills


def default_skill_dirs(home: Path | None = None) -> list[Path]:
    """Existing default skill roots under the user's home directory."""
    home = home or Path.home()
    candidates = [
        home / ".claude" / "skills",
        home / ".config" / "opencode" / "skill",
    ]
    return [path for path in candidates if path.is_dir()]


def scan_all_skills(
    extra_dirs: Iterable[Path | str] = (),
    *,
    default_dirs: Sequence[Path] | None = None,
    cache: SkillScanCache | None = None,
) -> list[SkillInfo]:
    """Scan the default skill roots followed by ``extra_dirs``.

    Args:
        extra_dirs: Additional roots, scanned after the defaults
        default_dirs: Override for the default roots
        cache: Optional cache consulted before and filled after scanning

    Returns:
        Unique skills (by name), first occurrence wins
    """
    extra = [Path(d).expanduser() for d in extra_dirs if d]
    key = tuple(str(d) for d in extra)

    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    roots = list(default_skill_dirs() if default_dirs is None else default_dirs) + extra
    seen_dirs: set[Path] = set()
    seen_names: set[str] = set()
    skills: list[SkillInfo] = []

    for root in roots:
        resolved = root.resolve()
        if resolved in seen_dirs:
            continue
        seen_dirs.add(resolved)

        for skill in scan_skills_dir(resolved):
            if skill.name in seen_names:
                continue
            seen_names.add(skill.name)
            skills.append(replace(skill, source_dir=resolved))

    logger.debug("Scanned skills", roots=len(seen_dirs), skills=len(skills))
    if cache is not None:
        cache.put(key, skills)
    return skills
