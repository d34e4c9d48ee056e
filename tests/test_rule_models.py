"""Tests for rules/models.py: skill rule models and enums."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from skillrt.rules.models import (
    ActivationStrategy,
    Enforcement,
    Priority,
    ScoringWeights,
    SkillConfig,
    SkillRule,
    TriggerKind,
)


class TestEnums:
    def test_enforcement_values(self):
        assert [e.value for e in Enforcement] == ["manual", "suggest", "warn", "block"]

    def test_priority_rank_order(self):
        ranks = [p.rank for p in (Priority.LOW, Priority.MEDIUM, Priority.HIGH, Priority.CRITICAL)]
        assert ranks == sorted(ranks)
        assert Priority.CRITICAL.rank == 4

    def test_is_str_enum(self):
        from enum import StrEnum

        assert issubclass(Priority, StrEnum)
        assert str(Enforcement.BLOCK) == "block"

    def test_activation_strategy_native_only(self):
        assert ActivationStrategy("native_only") is ActivationStrategy.NATIVE_ONLY


class TestSkillRule:
    def test_defaults(self):
        rule = SkillRule()
        assert rule.type == "domain"
        assert rule.enforcement == Enforcement.SUGGEST
        assert rule.priority == Priority.MEDIUM
        assert rule.prompt_triggers is None
        assert rule.validation_rules == []

    def test_camel_case_keys(self):
        rule = SkillRule.model_validate(
            {
                "promptTriggers": {"keywords": ["db"], "intentPatterns": ["migrat"]},
                "fileTriggers": {"pathPatterns": ["src/**"], "contentPatterns": ["prisma"]},
                "cooldownMinutes": 2,
                "activationStrategy": "guaranteed",
            }
        )
        assert rule.prompt_triggers.intent_patterns == ["migrat"]
        assert rule.file_triggers.path_patterns == ["src/**"]
        assert rule.cooldown_minutes == 2
        assert rule.activation_strategy is ActivationStrategy.GUARANTEED

    def test_snake_case_keys_accepted(self):
        rule = SkillRule.model_validate({"promptTriggers": {"intent_patterns": ["x"]}})
        assert rule.prompt_triggers.intent_patterns == ["x"]

    def test_unknown_enforcement_rejected(self):
        with pytest.raises(ValidationError):
            SkillRule.model_validate({"enforcement": "sometimes"})

    def test_pre_tool_requires_tool_name(self):
        with pytest.raises(ValidationError):
            SkillRule.model_validate({"preToolTriggers": {"inputPatterns": ["rm"]}})

    def test_trigger_kinds_in_fixed_order(self):
        rule = SkillRule.model_validate(
            {
                "stopTriggers": {"keywords": ["done"]},
                "promptTriggers": {"keywords": ["x"]},
                "preToolTriggers": {"toolName": "Bash"},
            }
        )
        assert rule.trigger_kinds() == [TriggerKind.PROMPT, TriggerKind.PRE_TOOL, TriggerKind.STOP]

    def test_validation_rule_parsed(self):
        rule = SkillRule.model_validate(
            {
                "validationRules": [
                    {
                        "name": "needs-test",
                        "condition": {"pathPattern": r"\.ts$"},
                        "requirement": {"fileExists": "${filename}.test.ts"},
                        "reminder": "Add a test",
                    }
                ]
            }
        )
        vrule = rule.validation_rules[0]
        assert vrule.condition.path_pattern == r"\.ts$"
        assert vrule.requirement.file_exists == "${filename}.test.ts"


class TestSettings:
    def test_default_weights(self):
        w = ScoringWeights()
        assert (
            w.keyword_match_score,
            w.intent_pattern_score,
            w.file_path_match_score,
            w.file_content_match_score,
        ) == (10, 20, 15, 15)

    def test_weights_must_be_positive(self):
        with pytest.raises(ValidationError):
            ScoringWeights(keyword_match_score=0)

    def test_config_defaults(self):
        config = SkillConfig()
        assert config.settings.max_suggestions == 3
        assert config.settings.thresholds.recent_activation_minutes == 5
        assert config.skills == {}

    def test_settings_from_camel_case(self):
        config = SkillConfig.model_validate(
            {
                "settings": {
                    "maxSuggestions": 5,
                    "scoring": {"keywordMatchScore": 7},
                    "thresholds": {"recentActivationMinutes": 1},
                }
            }
        )
        assert config.settings.max_suggestions == 5
        assert config.settings.scoring.keyword_match_score == 7
        assert config.settings.scoring.intent_pattern_score == 20
        assert config.settings.thresholds.recent_activation_minutes == 1

    def test_skill_order_preserved(self):
        config = SkillConfig.model_validate({"skills": {"b": {}, "a": {}, "c": {}}})
        assert list(config.skills) == ["b", "a", "c"]
