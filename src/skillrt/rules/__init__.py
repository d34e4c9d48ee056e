"""Rule store: skill rule models, rule-file loading, and runtime configuration."""

from skillrt.rules.config import RuntimeConfig, load_runtime_config
from skillrt.rules.loader import (
    ConfigError,
    find_rules_file,
    load_project_config,
    load_skill_config,
    load_skill_content,
)
from skillrt.rules.models import (
    ActivationStrategy,
    Enforcement,
    FileTriggers,
    PreToolTriggers,
    Priority,
    PromptTriggers,
    ScoringWeights,
    Settings,
    ShadowTriggers,
    SkillConfig,
    SkillRule,
    StopTriggers,
    TriggerKind,
    ValidationRule,
)

__all__ = [
    "ActivationStrategy",
    "ConfigError",
    "Enforcement",
    "FileTriggers",
    "PreToolTriggers",
    "Priority",
    "PromptTriggers",
    "RuntimeConfig",
    "ScoringWeights",
    "Settings",
    "ShadowTriggers",
    "SkillConfig",
    "SkillRule",
    "StopTriggers",
    "TriggerKind",
    "ValidationRule",
    "find_rules_file",
    "load_project_config",
    "load_runtime_config",
    "load_skill_config",
    "load_skill_content",
]
