"""版本检测：后台查询最新版本，写入缓存文件，有新版本时提示。

Best-effort update check.

The check runs as a detached task next to the enhance stream. It is never
awaited by the main operation, it never raises, and its only outputs are the
cache file and an optional notification callback.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from youwen_enhance.config import VERSION_ENDPOINT
from youwen_enhance.errors import YouwenError
from youwen_enhance.skills.frontmatter import parse_frontmatter
from youwen_enhance.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from youwen_enhance.transport.http import HttpTransport

logger = get_logger(__name__)

SKILL_NAME = "yw-enhance"
VERSION_CHECK_TIMEOUT = 5.0

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class RemoteVersion:
    """Latest version advertised by the API."""

    version: str | None = None
    download_url: str | None = None


@dataclass(frozen=True)
class UpdateNotice:
    """A newer version is available."""

    skill_name: str
    local_version: str
    remote_version: str
    download_url: str | None = None

    def __str__(self) -> str:
        lines = [f"{self.skill_name} has a new version: {self.local_version} -> {self.remote_version}"]
        if self.download_url:
            lines.append(f"  Download: {self.download_url}")
        lines.append("  Update: bash <skill-dir>/install.sh")
        return "\n".join(lines)


def read_local_version(skill_md: Path) -> str | None:
    """Version declared in a SKILL.md front matter."""
    try:
        meta = parse_frontmatter(skill_md.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return None
    if not meta or meta.get("version") is None:
        return None
    return str(meta["version"]).strip() or None


def _semver_parts(version: str) -> list[int]:
    parts = []
    for piece in version.split(".")[:3]:
        match = _LEADING_DIGITS.match(piece)
        parts.append(int(match.group(1)) if match else 0)
    return parts + [0] * (3 - len(parts))


def compare_semver(a: str, b: str) -> int:
    """Compare ``major.minor.patch`` versions.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b
    """
    pa, pb = _semver_parts(a), _semver_parts(b)
    if pa < pb:
        return -1
    if pa > pb:
        return 1
    return 0


async def fetch_remote_version(
    transport: HttpTransport,
    *,
    skill_name: str = SKILL_NAME,
    timeout: float = VERSION_CHECK_TIMEOUT,
) -> RemoteVersion:
    """Ask the API for the latest version.

    Any failure yields an empty RemoteVersion.
    """
    try:
        data = await transport.get_json(
            VERSION_ENDPOINT, params={"name": skill_name}, timeout=timeout
        )
    except YouwenError as e:
        logger.debug("Version check failed", error=str(e))
        return RemoteVersion()

    if not isinstance(data, dict):
        return RemoteVersion()
    version = data.get("version") or data.get("latest_version")
    download_url = data.get("downloadUrl")
    return RemoteVersion(
        version=str(version) if version else None,
        download_url=str(download_url) if download_url else None,
    )


class VersionChecker:
    """Compares the installed skill version with the API's latest.

    Example:
        >>> checker = VersionChecker(transport, skill_md, cache_path, notify=print)
        >>> task = checker.start()  # detached, never awaited by the caller
    """

    def __init__(
        self,
        transport: HttpTransport,
        skill_md: Path,
        cache_path: Path,
        *,
        notify: Callable[[UpdateNotice], None] | None = None,
        skill_name: str = SKILL_NAME,
        timeout: float = VERSION_CHECK_TIMEOUT,
    ) -> None:
        self._transport = transport
        self._skill_md = skill_md
        self._cache_path = cache_path
        self._notify = notify
        self._skill_name = skill_name
        self._timeout = timeout

    async def run(self) -> UpdateNotice | None:
        """Perform one check. Never raises."""
        try:
            return await self._check()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug("Version check aborted", error=str(e))
            return None

    def start(self) -> asyncio.Task[UpdateNotice | None] | None:
        """Launch the check as a detached task on the running loop.

        Returns:
            The task, or None when no local version is known
        """
        if read_local_version(self._skill_md) is None:
            return None
        return asyncio.get_running_loop().create_task(self.run())

    async def _check(self) -> UpdateNotice | None:
        local_version = read_local_version(self._skill_md)
        if local_version is None:
            return None

        remote = await fetch_remote_version(
            self._transport, skill_name=self._skill_name, timeout=self._timeout
        )
        self._write_cache(local_version, remote)

        if remote.version and compare_semver(local_version, remote.version) < 0:
            notice = UpdateNotice(
                skill_name=self._skill_name,
                local_version=local_version,
                remote_version=remote.version,
                download_url=remote.download_url,
            )
            if self._notify is not None:
                self._notify(notice)
            return notice
        return None

    def _write_cache(self, local_version: str, remote: RemoteVersion) -> None:
        cache = {
            "lastCheck": datetime.now(timezone.utc).isoformat(),
            "localVersion": local_version,
            "remoteVersion": remote.version,
            "downloadUrl": remote.download_url,
        }
        try:
            self._cache_path.write_text(json.dumps(cache, indent=2), encoding="utf-8")
        except OSError as e:
            logger.debug("Cannot write version cache", path=str(self._cache_path), error=str(e))
