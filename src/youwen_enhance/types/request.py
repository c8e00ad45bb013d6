"""
Request body of the enhance endpoint.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SEARCH_ENGINES = ["grok", "perplexity", "exa", "context7", "deepwiki"]

# Skill descriptions are cut before being sent upstream
SKILL_DESCRIPTION_LIMIT = 300


class AgentConfig(BaseModel):
    """Switches for the four pipeline stages."""

    enable_summary: bool = True
    enable_intent_analysis: bool = True
    enable_search: bool = True
    search_engines: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SEARCH_ENGINES)
    )
    auto_confirm_intent: bool = True


class InstalledSkill(BaseModel):
    """A locally installed skill advertised to the pipeline."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    triggers: list[str] = Field(default_factory=list)
    quick_start: str | None = Field(default=None, alias="quickStart")

    @field_validator("description")
    @classmethod
    def _truncate_description(cls, value: str) -> str:
        return value[:SKILL_DESCRIPTION_LIMIT]


class EnhanceRequest(BaseModel):
    """Body of ``POST /api/skill/enhance``.

    Example:
        >>> request = EnhanceRequest(prompt="Write a login form")
        >>> request.to_payload()["agent_config"]["auto_confirm_intent"]
        True
    """

    prompt: str = ""
    conversation_history: str = ""
    context_files: list[Any] = Field(default_factory=list)
    agent_config: AgentConfig = Field(default_factory=AgentConfig)
    confirmed_intent: str | None = None
    mgrep_api_key: str | None = None
    installed_skills: list[InstalledSkill] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON document sent on the wire.

        Optional top-level fields are omitted when unset; ``quickStart`` is
        always present on each skill, null when unknown.
        """
        payload = self.model_dump(
            exclude={"installed_skills", "confirmed_intent", "mgrep_api_key"}
        )
        if self.confirmed_intent:
            payload["confirmed_intent"] = self.confirmed_intent
        if self.mgrep_api_key:
            payload["mgrep_api_key"] = self.mgrep_api_key
        if self.installed_skills:
            payload["installed_skills"] = [
                skill.model_dump(by_alias=True) for skill in self.installed_skills
            ]
        return payload
