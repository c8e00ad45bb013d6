"""
Installed skill discovery.

Scans local skill directories so that the enhance pipeline can recommend
skills the user already has.
"""

from youwen_enhance.skills.frontmatter import (
    extract_triggers,
    frontmatter_body,
    parse_frontmatter,
)
from youwen_enhance.skills.scanner import (
    DEFAULT_CACHE_TTL,
    SKILL_FILE_NAME,
    SkillInfo,
    SkillScanCache,
    default_skill_dirs,
    scan_all_skills,
    scan_skills_dir,
)

__all__ = [
    "DEFAULT_CACHE_TTL",
    "SKILL_FILE_NAME",
    "SkillInfo",
    "SkillScanCache",
    "default_skill_dirs",
    "extract_triggers",
    "frontmatter_body",
    "parse_frontmatter",
    "scan_all_skills",
    "scan_skills_dir",
]
