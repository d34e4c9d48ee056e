"""RuleMatcher: score and rank skill rules against hook events.

Each trigger family has its own entry point:

- ``match_prompt``: prompt keywords/intents plus modified-file triggers,
  skipping manual-only rules; ranked by (priority, score).
- ``match_shadow_triggers``: manual-only suggestions, ranked by score.
- ``match_pre_tool_triggers``: tool name plus optional input patterns.
- ``match_stop_triggers``: completion keywords, or an unconditional match when
  the rule declares a ``promptEvaluation`` instruction.

Scoring weights come from ``settings.scoring``. Each signal category counts at
most once per rule per call.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TypeVar

from skillrt.diagnostics import Diagnostic
from skillrt.engine.files import normalize_file_path, read_project_file
from skillrt.engine.models import (
    PreToolMatch,
    ShadowMatch,
    SkillMatch,
    StopMatch,
    ValidationReminder,
)
from skillrt.engine.patterns import CompiledPattern, CompiledRulePatterns, PatternCompiler
from skillrt.engine.validation import ValidationEngine
from skillrt.rules.models import Enforcement, FileTriggers, Priority, SkillConfig

logger = logging.getLogger(__name__)

_M = TypeVar("_M", SkillMatch, ShadowMatch)


class RuleMatcher:
    def __init__(self, config: SkillConfig, project_dir: Path) -> None:
        self._config = config
        self._project_dir = project_dir
        self._weights = config.settings.scoring
        self._compiler = PatternCompiler()
        self._patterns: dict[str, CompiledRulePatterns] = self._compiler.compile_all(config)
        self._validation = ValidationEngine(config, project_dir, compiler=self._compiler)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Non-fatal events (bad patterns) seen since construction."""
        return self._compiler.diagnostics

    # -- prompt --

    def match_prompt(self, prompt: str, modified_files: Sequence[str] = ()) -> list[SkillMatch]:
        matches: list[SkillMatch] = []
        for name, rule in self._config.skills.items():
            if rule.enforcement is Enforcement.MANUAL:
                continue
            patterns = self._patterns[name]

            prompt_score = 0
            if rule.prompt_triggers is not None:
                prompt_score, _ = self._score_text(
                    prompt, rule.prompt_triggers.keywords, patterns.intent
                )

            file_score = 0
            if rule.file_triggers is not None and modified_files:
                file_score = self._score_files(rule.file_triggers, patterns, modified_files)

            if prompt_score + file_score > 0:
                matches.append(
                    SkillMatch(
                        skill_name=name,
                        rule=rule,
                        score=prompt_score + file_score,
                        prompt_match=prompt_score > 0,
                        file_match=file_score > 0,
                    )
                )
        return rank_matches(matches)

    def _score_text(
        self, text: str, keywords: list[str], intents: list[CompiledPattern]
    ) -> tuple[int, str | None]:
        """Keyword hit and intent hit each score once. Returns (score, reason)."""
        score = 0
        reason: str | None = None
        lowered = text.lower()
        keyword = next((k for k in keywords if k and k.lower() in lowered), None)
        if keyword is not None:
            score += self._weights.keyword_match_score
            reason = f'matched keyword "{keyword}"'
        intent = next((p for p in intents if p.search(text)), None)
        if intent is not None:
            score += self._weights.intent_pattern_score
            if reason is None:
                reason = f"matched pattern /{intent.source}/"
        return score, reason

    # -- files --

    def _score_files(
        self,
        triggers: FileTriggers,
        patterns: CompiledRulePatterns,
        modified_files: Sequence[str],
    ) -> int:
        w = self._weights
        if triggers.path_patterns and triggers.content_patterns:
            # Strict AND: one file must satisfy both a path and a content pattern.
            for file_path in modified_files:
                if not self._path_matches(file_path, patterns.path):
                    continue
                if self._content_matches(file_path, patterns.content):
                    return w.file_path_match_score + w.file_content_match_score
            return 0

        score = 0
        if triggers.path_patterns:
            if any(self._path_matches(f, patterns.path) for f in modified_files):
                score += w.file_path_match_score
        elif triggers.content_patterns:
            if any(self._content_matches(f, patterns.content) for f in modified_files):
                score += w.file_content_match_score
        return score

    def _path_matches(self, file_path: str, globs: list[CompiledPattern]) -> bool:
        relative = normalize_file_path(file_path, self._project_dir)
        return any(g.regex.match(relative) for g in globs)

    def _content_matches(self, file_path: str, patterns: list[CompiledPattern]) -> bool:
        if not patterns:
            return False
        content = read_project_file(file_path, self._project_dir)
        if content is None:
            return False
        return any(p.search(content) for p in patterns)

    # -- shadow / pre-tool / stop --

    def match_shadow_triggers(self, prompt: str) -> list[ShadowMatch]:
        matches: list[ShadowMatch] = []
        for name, rule in self._config.skills.items():
            if rule.shadow_triggers is None:
                continue
            score, reason = self._score_text(
                prompt, rule.shadow_triggers.keywords, self._patterns[name].shadow_intent
            )
            if score > 0 and reason is not None:
                matches.append(ShadowMatch(skill_name=name, rule=rule, score=score, reason=reason))
        return sorted(matches, key=lambda m: m.score, reverse=True)

    def match_pre_tool_triggers(self, tool_name: str, tool_input: str) -> list[PreToolMatch]:
        matches: list[PreToolMatch] = []
        for name, rule in self._config.skills.items():
            triggers = rule.pre_tool_triggers
            if triggers is None or triggers.tool_name != tool_name:
                continue
            if not triggers.input_patterns:
                matches.append(PreToolMatch(skill_name=name, rule=rule, tool_name=tool_name))
                continue
            hit = next((p for p in self._patterns[name].tool_input if p.search(tool_input)), None)
            if hit is not None:
                matches.append(
                    PreToolMatch(
                        skill_name=name, rule=rule, tool_name=tool_name, matched_pattern=hit.source
                    )
                )
        return matches

    def match_stop_triggers(self, response_text: str) -> list[StopMatch]:
        # A rule with a promptEvaluation instruction fires on every stop event,
        # whatever the response says.
        matches: list[StopMatch] = []
        lowered = response_text.lower()
        for name, rule in self._config.skills.items():
            triggers = rule.stop_triggers
            if triggers is None:
                continue
            keyword = next((k for k in triggers.keywords if k and k.lower() in lowered), None)
            needs_eval = bool(triggers.prompt_evaluation and triggers.prompt_evaluation.strip())
            if keyword is None and not needs_eval:
                continue
            matches.append(
                StopMatch(
                    skill_name=name,
                    rule=rule,
                    matched_keyword=keyword,
                    requires_prompt_evaluation=needs_eval,
                )
            )
        return matches

    # -- limiting / validation --

    @staticmethod
    def limit_matches(matches: Sequence[SkillMatch], max_suggestions: int) -> list[SkillMatch]:
        return limit_matches(matches, max_suggestions)

    def apply_validation_rules(
        self, modified_files: Sequence[str], activated_skills: Sequence[str]
    ) -> list[ValidationReminder]:
        reminders = self._validation.apply(modified_files, activated_skills)
        if reminders:
            logger.debug(f"Validation produced {len(reminders)} reminders")
        return reminders


def rank_matches(matches: Sequence[_M]) -> list[_M]:
    """Sort by priority first, then score, both descending. Ties keep rule order."""
    return sorted(matches, key=lambda m: (m.rule.priority.rank, m.score), reverse=True)


def limit_matches(matches: Sequence[SkillMatch], max_suggestions: int) -> list[SkillMatch]:
    """Keep every critical match, then fill the remaining slots from the rest in order."""
    critical = [m for m in matches if m.rule.priority is Priority.CRITICAL]
    others = [m for m in matches if m.rule.priority is not Priority.CRITICAL]
    return critical + others[: max(0, max_suggestions - len(critical))]
