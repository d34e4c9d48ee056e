"""Pydantic models for skill rules and their trigger clauses."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _RuleModel(BaseModel):
    # On-disk rule files use camelCase keys; Python callers may use snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Enforcement(StrEnum):
    MANUAL = "manual"
    SUGGEST = "suggest"
    WARN = "warn"
    BLOCK = "block"


class Priority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class ActivationStrategy(StrEnum):
    GUARANTEED = "guaranteed"
    SUGGESTIVE = "suggestive"
    NATIVE_ONLY = "native_only"


class TriggerKind(StrEnum):
    PROMPT = "prompt"
    FILE = "file"
    SHADOW = "shadow"
    PRE_TOOL = "pre_tool"
    STOP = "stop"


class PromptTriggers(_RuleModel):
    keywords: list[str] = Field(default_factory=list)
    intent_patterns: list[str] = Field(default_factory=list)


class ShadowTriggers(_RuleModel):
    """Same shape as PromptTriggers; only consulted for manual-only suggestions."""

    keywords: list[str] = Field(default_factory=list)
    intent_patterns: list[str] = Field(default_factory=list)


class FileTriggers(_RuleModel):
    path_patterns: list[str] = Field(default_factory=list)  # globs, relative to project root
    content_patterns: list[str] = Field(default_factory=list)  # regexes


class PreToolTriggers(_RuleModel):
    tool_name: str
    input_patterns: list[str] = Field(default_factory=list)


class StopTriggers(_RuleModel):
    keywords: list[str] = Field(default_factory=list)
    prompt_evaluation: str | None = None


class ValidationCondition(_RuleModel):
    pattern: str | None = None
    path_pattern: str | None = None


class ValidationRequirement(_RuleModel):
    pattern: str | None = None
    file_exists: str | None = None


class ValidationRule(_RuleModel):
    name: str
    condition: ValidationCondition = Field(default_factory=ValidationCondition)
    requirement: ValidationRequirement = Field(default_factory=ValidationRequirement)
    reminder: str


class ScoringWeights(_RuleModel):
    keyword_match_score: int = Field(default=10, gt=0)
    intent_pattern_score: int = Field(default=20, gt=0)
    file_path_match_score: int = Field(default=15, gt=0)
    file_content_match_score: int = Field(default=15, gt=0)


class Thresholds(_RuleModel):
    recent_activation_minutes: float = Field(default=5, ge=0)


class Settings(_RuleModel):
    max_suggestions: int = Field(default=3, ge=0)
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)
    thresholds: Thresholds = Field(default_factory=Thresholds)


class SkillRule(_RuleModel):
    """One configured skill. Identity is the key it is stored under in SkillConfig.skills."""

    type: str = "domain"
    enforcement: Enforcement = Enforcement.SUGGEST
    priority: Priority = Priority.MEDIUM
    description: str = ""
    prompt_triggers: PromptTriggers | None = None
    file_triggers: FileTriggers | None = None
    shadow_triggers: ShadowTriggers | None = None
    pre_tool_triggers: PreToolTriggers | None = None
    stop_triggers: StopTriggers | None = None
    validation_rules: list[ValidationRule] = Field(default_factory=list)
    # Extended (optional)
    activation_strategy: ActivationStrategy | None = None
    cooldown_minutes: float | None = Field(default=None, ge=0)

    def trigger_kinds(self) -> list[TriggerKind]:
        """Return the trigger clauses this rule declares, in a fixed order."""
        present = {
            TriggerKind.PROMPT: self.prompt_triggers,
            TriggerKind.FILE: self.file_triggers,
            TriggerKind.SHADOW: self.shadow_triggers,
            TriggerKind.PRE_TOOL: self.pre_tool_triggers,
            TriggerKind.STOP: self.stop_triggers,
        }
        return [kind for kind, clause in present.items() if clause is not None]


class SkillConfig(_RuleModel):
    version: str = "1.0"
    description: str = ""
    settings: Settings = Field(default_factory=Settings)
    skills: dict[str, SkillRule] = Field(default_factory=dict)
