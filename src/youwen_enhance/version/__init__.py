"""
Update check against the enhance API's version endpoint.
"""

from youwen_enhance.version.checker import (
    SKILL_NAME,
    RemoteVersion,
    UpdateNotice,
    VersionChecker,
    compare_semver,
    fetch_remote_version,
    read_local_version,
)

__all__ = [
    "SKILL_NAME",
    "RemoteVersion",
    "UpdateNotice",
    "VersionChecker",
    "compare_semver",
    "fetch_remote_version",
    "read_local_version",
]
