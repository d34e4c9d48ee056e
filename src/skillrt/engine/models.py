"""Result models produced by the matching and validation engines."""

from __future__ import annotations

from pydantic import BaseModel, Field

from skillrt.rules.models import Priority, SkillRule


class SkillMatch(BaseModel):
    skill_name: str
    rule: SkillRule
    score: int
    prompt_match: bool = False
    file_match: bool = False


class ShadowMatch(BaseModel):
    skill_name: str
    rule: SkillRule
    score: int
    reason: str


class PreToolMatch(BaseModel):
    skill_name: str
    rule: SkillRule
    tool_name: str
    matched_pattern: str | None = None


class StopMatch(BaseModel):
    skill_name: str
    rule: SkillRule
    matched_keyword: str | None = None
    requires_prompt_evaluation: bool = False


class ValidationReminder(BaseModel):
    skill_name: str
    rule_name: str
    reminder: str
    priority: Priority
    failed_files: list[str] = Field(default_factory=list)
