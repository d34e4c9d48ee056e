"""Tests for engine/matcher.py: prompt, file, shadow, pre-tool and stop matching."""

from __future__ import annotations

from pathlib import Path

from skillrt.engine.files import MAX_CONTENT_BYTES
from skillrt.engine.matcher import RuleMatcher, limit_matches, rank_matches
from skillrt.engine.models import SkillMatch
from skillrt.rules.models import Priority, SkillRule


def _match(name: str, priority: str, score: int) -> SkillMatch:
    return SkillMatch(skill_name=name, rule=SkillRule(priority=Priority(priority)), score=score)


def _write(project_dir: Path, rel: str, content: str) -> str:
    path = project_dir / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return rel


class TestPromptScoring:
    def test_keyword_and_intent_scores_add(self, project_dir, make_config):
        config = make_config(
            {"backend": {"promptTriggers": {"keywords": ["API"], "intentPatterns": ["endpoint"]}}}
        )
        matches = RuleMatcher(config, project_dir).match_prompt("Create an API endpoint")
        assert len(matches) == 1
        assert matches[0].score == 30
        assert matches[0].prompt_match is True
        assert matches[0].file_match is False

    def test_keyword_case_insensitive_substring(self, project_dir, make_config):
        config = make_config({"s": {"promptTriggers": {"keywords": ["Database"]}}})
        matches = RuleMatcher(config, project_dir).match_prompt("fix the DATABASES config")
        assert matches[0].score == 10

    def test_each_category_counts_once(self, project_dir, make_config):
        config = make_config(
            {"s": {"promptTriggers": {"keywords": ["a", "b"], "intentPatterns": ["x", "y"]}}}
        )
        matches = RuleMatcher(config, project_dir).match_prompt("a b x y")
        assert matches[0].score == 30

    def test_empty_keyword_ignored(self, project_dir, make_config):
        config = make_config({"s": {"promptTriggers": {"keywords": [""]}}})
        assert RuleMatcher(config, project_dir).match_prompt("anything") == []

    def test_custom_weights(self, project_dir, make_config):
        config = make_config(
            {"s": {"promptTriggers": {"keywords": ["api"]}}},
            settings={"scoring": {"keywordMatchScore": 3}},
        )
        assert RuleMatcher(config, project_dir).match_prompt("api")[0].score == 3

    def test_manual_rules_skipped(self, project_dir, make_config):
        config = make_config(
            {"s": {"enforcement": "manual", "promptTriggers": {"keywords": ["api"]}}}
        )
        assert RuleMatcher(config, project_dir).match_prompt("api") == []

    def test_no_match_excluded(self, project_dir, make_config):
        config = make_config({"s": {"promptTriggers": {"keywords": ["api"]}}})
        assert RuleMatcher(config, project_dir).match_prompt("hello") == []

    def test_invalid_intent_skipped_with_diagnostic(self, project_dir, make_config):
        config = make_config(
            {"s": {"promptTriggers": {"intentPatterns": ["(broken", "deploy"]}}}
        )
        matcher = RuleMatcher(config, project_dir)
        assert matcher.match_prompt("deploy it")[0].score == 20
        assert len(matcher.diagnostics) == 1
        assert matcher.diagnostics[0].skill_name == "s"


class TestFileScoring:
    def test_path_only(self, project_dir, make_config):
        config = make_config({"s": {"fileTriggers": {"pathPatterns": ["src/**/*.py"]}}})
        matches = RuleMatcher(config, project_dir).match_prompt("", ["src/pkg/mod.py"])
        assert matches[0].score == 15
        assert matches[0].file_match is True
        assert matches[0].prompt_match is False

    def test_path_matches_absolute_inside_project(self, project_dir, make_config):
        config = make_config({"s": {"fileTriggers": {"pathPatterns": ["src/*.py"]}}})
        absolute = str(project_dir / "src" / "a.py")
        assert RuleMatcher(config, project_dir).match_prompt("", [absolute])[0].score == 15

    def test_content_only(self, project_dir, make_config):
        rel = _write(project_dir, "lib/db.ts", "import { PrismaClient } from '@prisma/client'")
        config = make_config({"s": {"fileTriggers": {"contentPatterns": ["prismaclient"]}}})
        assert RuleMatcher(config, project_dir).match_prompt("", [rel])[0].score == 15

    def test_strict_and_requires_same_file(self, project_dir, make_config):
        rel = _write(project_dir, "src/api/users.ts", "export const users = []\n")
        config = make_config(
            {
                "s": {
                    "fileTriggers": {
                        "pathPatterns": ["src/api/**/*.ts"],
                        "contentPatterns": ["import.*express"],
                    }
                }
            }
        )
        assert RuleMatcher(config, project_dir).match_prompt("", [rel]) == []

    def test_strict_and_not_satisfied_across_files(self, project_dir, make_config):
        path_only = _write(project_dir, "src/api/users.ts", "nothing here")
        content_only = _write(project_dir, "other/server.ts", "import express from 'express'")
        config = make_config(
            {
                "s": {
                    "fileTriggers": {
                        "pathPatterns": ["src/api/**/*.ts"],
                        "contentPatterns": ["import.*express"],
                    }
                }
            }
        )
        assert RuleMatcher(config, project_dir).match_prompt("", [path_only, content_only]) == []

    def test_strict_and_satisfied(self, project_dir, make_config):
        rel = _write(project_dir, "src/api/users.ts", "import express from 'express'\n")
        config = make_config(
            {
                "s": {
                    "fileTriggers": {
                        "pathPatterns": ["src/api/**/*.ts"],
                        "contentPatterns": ["import.*express"],
                    }
                }
            }
        )
        assert RuleMatcher(config, project_dir).match_prompt("", [rel])[0].score == 30

    def test_missing_file_content_is_no_match(self, project_dir, make_config):
        config = make_config({"s": {"fileTriggers": {"contentPatterns": ["x"]}}})
        assert RuleMatcher(config, project_dir).match_prompt("", ["gone.txt"]) == []

    def test_oversized_file_content_skipped(self, project_dir, make_config):
        rel = _write(project_dir, "src/bundle.js", "express" + "x" * MAX_CONTENT_BYTES)
        content_only = make_config({"s": {"fileTriggers": {"contentPatterns": ["express"]}}})
        assert RuleMatcher(content_only, project_dir).match_prompt("", [rel]) == []

        with_path = make_config(
            {"s": {"fileTriggers": {"pathPatterns": ["src/**"], "contentPatterns": ["express"]}}}
        )
        assert RuleMatcher(with_path, project_dir).match_prompt("", [rel]) == []

    def test_file_at_size_limit_still_read(self, project_dir, make_config):
        rel = _write(project_dir, "src/app.js", "express" + "x" * (MAX_CONTENT_BYTES - 7))
        config = make_config({"s": {"fileTriggers": {"contentPatterns": ["express"]}}})
        assert RuleMatcher(config, project_dir).match_prompt("", [rel])[0].score == 15

    def test_prompt_and_file_scores_combine(self, project_dir, make_config):
        config = make_config(
            {
                "s": {
                    "promptTriggers": {"keywords": ["api"]},
                    "fileTriggers": {"pathPatterns": ["src/**"]},
                }
            }
        )
        match = RuleMatcher(config, project_dir).match_prompt("api", ["src/x.py"])[0]
        assert match.score == 25
        assert match.prompt_match and match.file_match


class TestRanking:
    def test_priority_beats_score(self):
        ranked = rank_matches([_match("low", "low", 100), _match("crit", "critical", 1)])
        assert [m.skill_name for m in ranked] == ["crit", "low"]

    def test_score_breaks_priority_ties(self):
        ranked = rank_matches([_match("a", "high", 10), _match("b", "high", 30)])
        assert [m.skill_name for m in ranked] == ["b", "a"]

    def test_match_prompt_returns_ranked(self, project_dir, make_config):
        config = make_config(
            {
                "big": {
                    "priority": "low",
                    "promptTriggers": {"keywords": ["x"], "intentPatterns": ["x"]},
                },
                "small": {"priority": "high", "promptTriggers": {"keywords": ["x"]}},
            }
        )
        names = [m.skill_name for m in RuleMatcher(config, project_dir).match_prompt("x")]
        assert names == ["small", "big"]


class TestLimitMatches:
    def test_critical_plus_best_high(self):
        matches = [
            _match("crit", "critical", 5),
            _match("h30", "high", 30),
            _match("h20", "high", 20),
            _match("h10", "high", 10),
        ]
        limited = limit_matches(matches, 2)
        assert [m.skill_name for m in limited] == ["crit", "h30"]

    def test_never_drops_critical(self):
        matches = [_match(f"c{i}", "critical", 10) for i in range(4)] + [_match("h", "high", 50)]
        limited = limit_matches(matches, 2)
        assert [m.skill_name for m in limited] == ["c0", "c1", "c2", "c3"]

    def test_zero_limit_keeps_only_critical(self):
        limited = limit_matches([_match("c", "critical", 1), _match("m", "medium", 1)], 0)
        assert [m.skill_name for m in limited] == ["c"]

    def test_staticmethod_alias(self):
        assert RuleMatcher.limit_matches([_match("m", "medium", 1)], 3)[0].skill_name == "m"


class TestShadowTriggers:
    def test_manual_rule_matched_by_shadow_keyword(self, project_dir, make_config):
        config = make_config(
            {
                "refactor": {
                    "enforcement": "manual",
                    "shadowTriggers": {"keywords": ["cleanup"], "intentPatterns": ["tidy.*up"]},
                }
            }
        )
        shadow = RuleMatcher(config, project_dir).match_shadow_triggers("Cleanup and tidy this up")
        assert len(shadow) == 1
        assert shadow[0].score == 30
        assert shadow[0].reason == 'matched keyword "cleanup"'

    def test_reason_names_pattern_when_no_keyword(self, project_dir, make_config):
        config = make_config({"s": {"shadowTriggers": {"intentPatterns": ["tidy.*up"]}}})
        shadow = RuleMatcher(config, project_dir).match_shadow_triggers("tidy it up")
        assert shadow[0].reason == "matched pattern /tidy.*up/"

    def test_sorted_by_score(self, project_dir, make_config):
        config = make_config(
            {
                "one": {"shadowTriggers": {"keywords": ["x"]}},
                "two": {"shadowTriggers": {"keywords": ["x"], "intentPatterns": ["x"]}},
            }
        )
        shadow = RuleMatcher(config, project_dir).match_shadow_triggers("x")
        assert [m.skill_name for m in shadow] == ["two", "one"]


class TestPreToolTriggers:
    def test_tool_name_only(self, project_dir, make_config):
        config = make_config({"s": {"preToolTriggers": {"toolName": "Bash"}}})
        matches = RuleMatcher(config, project_dir).match_pre_tool_triggers("Bash", "ls")
        assert len(matches) == 1
        assert matches[0].matched_pattern is None

    def test_input_pattern(self, project_dir, make_config):
        config = make_config(
            {"s": {"preToolTriggers": {"toolName": "Bash", "inputPatterns": [r"rm\s+-rf"]}}}
        )
        matcher = RuleMatcher(config, project_dir)
        assert matcher.match_pre_tool_triggers("Bash", "rm -rf /")[0].matched_pattern == r"rm\s+-rf"
        assert matcher.match_pre_tool_triggers("Bash", "ls -la") == []

    def test_other_tool_ignored(self, project_dir, make_config):
        config = make_config({"s": {"preToolTriggers": {"toolName": "Bash"}}})
        assert RuleMatcher(config, project_dir).match_pre_tool_triggers("Edit", "x") == []

    def test_all_patterns_invalid_means_no_match(self, project_dir, make_config):
        config = make_config(
            {"s": {"preToolTriggers": {"toolName": "Bash", "inputPatterns": ["(bad"]}}}
        )
        assert RuleMatcher(config, project_dir).match_pre_tool_triggers("Bash", "(bad") == []


class TestStopTriggers:
    def test_prompt_evaluation_always_matches(self, project_dir, make_config):
        config = make_config(
            {"verify": {"stopTriggers": {"promptEvaluation": "Did you run the tests?"}}}
        )
        matches = RuleMatcher(config, project_dir).match_stop_triggers("anything")
        assert len(matches) == 1
        assert matches[0].requires_prompt_evaluation is True
        assert matches[0].matched_keyword is None

    def test_keyword_match(self, project_dir, make_config):
        config = make_config({"s": {"stopTriggers": {"keywords": ["Done"]}}})
        matcher = RuleMatcher(config, project_dir)
        matches = matcher.match_stop_triggers("All DONE here")
        assert matches[0].matched_keyword == "Done"
        assert matches[0].requires_prompt_evaluation is False
        assert matcher.match_stop_triggers("still working") == []

    def test_blank_evaluation_ignored(self, project_dir, make_config):
        config = make_config({"s": {"stopTriggers": {"promptEvaluation": "   "}}})
        assert RuleMatcher(config, project_dir).match_stop_triggers("x") == []
