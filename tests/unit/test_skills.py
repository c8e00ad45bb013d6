"""Tests for installed skill discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from youwen_enhance.skills import (
    SkillScanCache,
    default_skill_dirs,
    extract_triggers,
    frontmatter_body,
    parse_frontmatter,
    scan_all_skills,
    scan_skills_dir,
)

DEPLOY_SKILL = """---
name: deploy-helper
version: 1.2.0
description: "Deploys the app. Triggers: deploy, ship it, release"
user-invocable: true
---

# Deploy helper

```bash
node scripts/deploy.js --prod
```
"""


def write_skill(root: Path, skill_id: str, content: str) -> Path:
    skill_dir = root / skill_id
    skill_dir.mkdir(parents=True)
    (skill_dir / "SKILL.md").write_text(content, encoding="utf-8")
    return skill_dir


def simple_skill(name: str) -> str:
    return f"---\nname: {name}\ndescription: {name} skill\n---\nBody\n"


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestFrontmatter:
    """Tests for front matter parsing."""

    def test_parse(self) -> None:
        """Test keys are lower-cased."""
        meta = parse_frontmatter("---\nName: x\nVersion: 2.0.1\n---\nbody")
        assert meta == {"name": "x", "version": "2.0.1"}

    @pytest.mark.parametrize(
        "content",
        ["no front matter", "---\n- a list\n---\n", "---\nname: [unclosed\n---\n"],
    )
    def test_invalid(self, content: str) -> None:
        """Test missing, non-mapping and broken YAML."""
        assert parse_frontmatter(content) is None

    def test_body(self) -> None:
        """Test the body after the closing fence."""
        assert frontmatter_body("---\nname: x\n---\n\n# Title\n") == "# Title"
        assert frontmatter_body("  plain  ") == "plain"


class TestTriggers:
    """Tests for trigger extraction."""

    def test_english_label(self) -> None:
        """Test Triggers: with quoted items."""
        assert extract_triggers("Does things. Triggers: 'deploy', \"ship\". More") == [
            "deploy",
            "ship",
        ]

    def test_chinese_label(self) -> None:
        """Test 触发词： with Chinese separators."""
        assert extract_triggers("部署助手。触发词：部署、发布/上线") == ["部署", "发布", "上线"]

    def test_deduplicated_in_order(self) -> None:
        """Test repeated keywords across labels appear once."""
        text = "Triggers: deploy, ship\nKeywords: ship, release"
        assert extract_triggers(text) == ["deploy", "ship", "release"]

    def test_none(self) -> None:
        """Test descriptions without labels."""
        assert extract_triggers("Just a skill") == []
        assert extract_triggers(None) == []


class TestScanSkillsDir:
    """Tests for scanning one root."""

    def test_scan(self, tmp_path: Path) -> None:
        """Test metadata extraction from SKILL.md."""
        write_skill(tmp_path, "deploy", DEPLOY_SKILL)

        [skill] = scan_skills_dir(tmp_path)
        assert skill.id == "deploy"
        assert skill.name == "deploy-helper"
        assert skill.version == "1.2.0"
        assert skill.triggers == ("deploy", "ship it", "release")
        assert skill.quick_start == "node scripts/deploy.js --prod"
        assert skill.user_invocable
        assert skill.summary.startswith("# Deploy helper")
        assert skill.path == (tmp_path / "deploy").resolve()

    def test_name_defaults_to_directory(self, tmp_path: Path) -> None:
        """Test a skill without a name."""
        write_skill(tmp_path, "unnamed", "---\ndescription: d\n---\n")
        [skill] = scan_skills_dir(tmp_path)
        assert skill.name == "unnamed"
        assert skill.quick_start is None
        assert not skill.user_invocable

    def test_skips_invalid_entries(self, tmp_path: Path) -> None:
        """Test hidden dirs, plain files and missing SKILL.md are skipped."""
        write_skill(tmp_path, ".hidden", simple_skill("hidden"))
        write_skill(tmp_path, "no-frontmatter", "# just markdown\n")
        (tmp_path / "empty").mkdir()
        (tmp_path / "README.md").write_text("readme", encoding="utf-8")
        write_skill(tmp_path, "good", simple_skill("good"))

        assert [s.name for s in scan_skills_dir(tmp_path)] == ["good"]

    def test_missing_root(self, tmp_path: Path) -> None:
        """Test a root that does not exist."""
        assert scan_skills_dir(tmp_path / "missing") == []

    def test_request_descriptor(self, tmp_path: Path) -> None:
        """Test conversion to the request model."""
        write_skill(tmp_path, "deploy", DEPLOY_SKILL)
        [skill] = scan_skills_dir(tmp_path)
        descriptor = skill.to_request().model_dump(by_alias=True)
        assert descriptor["name"] == "deploy-helper"
        assert descriptor["quickStart"] == "node scripts/deploy.js --prod"
        assert descriptor["triggers"] == ["deploy", "ship it", "release"]


class TestScanAllSkills:
    """Tests for scanning several roots."""

    def test_first_name_wins(self, tmp_path: Path) -> None:
        """Test duplicate names across roots."""
        first, second = tmp_path / "first", tmp_path / "second"
        write_skill(first, "a", simple_skill("shared"))
        write_skill(second, "b", simple_skill("shared"))
        write_skill(second, "c", simple_skill("other"))

        skills = scan_all_skills([second], default_dirs=[first])
        assert [(s.name, s.id) for s in skills] == [("shared", "a"), ("other", "c")]
        assert skills[0].source_dir == first.resolve()

    def test_duplicate_roots_scanned_once(self, tmp_path: Path) -> None:
        """Test the same root given twice."""
        write_skill(tmp_path, "a", simple_skill("a"))
        assert len(scan_all_skills([tmp_path, tmp_path], default_dirs=[])) == 1

    def test_default_dirs(self, tmp_path: Path) -> None:
        """Test only existing default roots are returned."""
        (tmp_path / ".claude" / "skills").mkdir(parents=True)
        assert default_skill_dirs(tmp_path) == [tmp_path / ".claude" / "skills"]


class TestSkillScanCache:
    """Tests for the scan cache."""

    def test_cached_within_ttl(self, tmp_path: Path) -> None:
        """Test results are reused until the ttl expires."""
        clock = FakeClock()
        cache = SkillScanCache(ttl=60.0, clock=clock)
        write_skill(tmp_path, "a", simple_skill("a"))
        assert len(scan_all_skills([tmp_path], default_dirs=[], cache=cache)) == 1

        write_skill(tmp_path, "b", simple_skill("b"))
        clock.now += 59.0
        assert len(scan_all_skills([tmp_path], default_dirs=[], cache=cache)) == 1

        clock.now += 1.0
        assert len(scan_all_skills([tmp_path], default_dirs=[], cache=cache)) == 2

    def test_invalidate(self, tmp_path: Path) -> None:
        """Test explicit invalidation forces a rescan."""
        cache = SkillScanCache(clock=FakeClock())
        write_skill(tmp_path, "a", simple_skill("a"))
        scan_all_skills([tmp_path], default_dirs=[], cache=cache)

        write_skill(tmp_path, "b", simple_skill("b"))
        cache.invalidate()
        assert len(scan_all_skills([tmp_path], default_dirs=[], cache=cache)) == 2

    def test_different_roots_miss(self, tmp_path: Path) -> None:
        """Test the cache is keyed by the requested roots."""
        cache = SkillScanCache(clock=FakeClock())
        write_skill(tmp_path / "one", "a", simple_skill("a"))
        write_skill(tmp_path / "two", "b", simple_skill("b"))

        assert [s.name for s in scan_all_skills([tmp_path / "one"], default_dirs=[], cache=cache)] == ["a"]
        assert [s.name for s in scan_all_skills([tmp_path / "two"], default_dirs=[], cache=cache)] == ["b"]

    def test_cached_list_is_a_copy(self) -> None:
        """Test callers cannot mutate the cached entry."""
        cache = SkillScanCache(clock=FakeClock())
        cache.put(("k",), [])
        cache.get(("k",)).append("x")  # type: ignore[union-attr, arg-type]
        assert cache.get(("k",)) == []
