"""Precompile every trigger pattern in a SkillConfig.

A pattern that fails to compile is dropped with a diagnostic naming the rule
and field; the rest of that rule, and every other rule, stays usable.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from skillrt.diagnostics import Diagnostic, DiagnosticCategory
from skillrt.engine.globbing import compile_glob
from skillrt.rules.models import SkillConfig, SkillRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledPattern:
    source: str
    regex: re.Pattern[str]

    def search(self, text: str) -> bool:
        return self.regex.search(text) is not None


@dataclass
class CompiledRulePatterns:
    intent: list[CompiledPattern] = field(default_factory=list)
    shadow_intent: list[CompiledPattern] = field(default_factory=list)
    path: list[CompiledPattern] = field(default_factory=list)
    content: list[CompiledPattern] = field(default_factory=list)
    tool_input: list[CompiledPattern] = field(default_factory=list)


class PatternCompiler:
    """Compiles and caches patterns, recording a diagnostic per distinct failure."""

    def __init__(self, diagnostics: list[Diagnostic] | None = None) -> None:
        self.diagnostics: list[Diagnostic] = diagnostics if diagnostics is not None else []
        self._cache: dict[tuple[str, int, bool], re.Pattern[str] | None] = {}
        self._reported: set[tuple[str, str, str]] = set()

    def compile(
        self,
        source: str,
        *,
        skill_name: str,
        field_name: str,
        flags: int = re.IGNORECASE,
        glob: bool = False,
        category: DiagnosticCategory = DiagnosticCategory.CONFIG,
    ) -> CompiledPattern | None:
        key = (source, flags, glob)
        if key not in self._cache:
            try:
                self._cache[key] = compile_glob(source) if glob else re.compile(source, flags)
            except re.error as e:
                self._cache[key] = None
                self._fail(source, skill_name, field_name, category, str(e))
        elif self._cache[key] is None:
            self._fail(source, skill_name, field_name, category, "invalid pattern")
        regex = self._cache[key]
        return CompiledPattern(source, regex) if regex is not None else None

    def compile_rule(self, name: str, rule: SkillRule) -> CompiledRulePatterns:
        compiled = CompiledRulePatterns()
        if rule.prompt_triggers is not None:
            compiled.intent = self._compile_list(
                rule.prompt_triggers.intent_patterns, name, "promptTriggers.intentPatterns"
            )
        if rule.shadow_triggers is not None:
            compiled.shadow_intent = self._compile_list(
                rule.shadow_triggers.intent_patterns, name, "shadowTriggers.intentPatterns"
            )
        if rule.file_triggers is not None:
            compiled.path = self._compile_list(
                rule.file_triggers.path_patterns, name, "fileTriggers.pathPatterns", glob=True
            )
            compiled.content = self._compile_list(
                rule.file_triggers.content_patterns, name, "fileTriggers.contentPatterns"
            )
        if rule.pre_tool_triggers is not None:
            compiled.tool_input = self._compile_list(
                rule.pre_tool_triggers.input_patterns, name, "preToolTriggers.inputPatterns"
            )
        return compiled

    def compile_all(self, config: SkillConfig) -> dict[str, CompiledRulePatterns]:
        return {name: self.compile_rule(name, rule) for name, rule in config.skills.items()}

    def _compile_list(
        self, sources: list[str], skill_name: str, field_name: str, *, glob: bool = False
    ) -> list[CompiledPattern]:
        compiled: list[CompiledPattern] = []
        for source in sources:
            pattern = self.compile(source, skill_name=skill_name, field_name=field_name, glob=glob)
            if pattern is not None:
                compiled.append(pattern)
        return compiled

    def _fail(
        self,
        source: str,
        skill_name: str,
        field_name: str,
        category: DiagnosticCategory,
        reason: str,
    ) -> None:
        report_key = (source, skill_name, field_name)
        if report_key in self._reported:
            return
        self._reported.add(report_key)
        message = f"Invalid pattern {source!r} in {skill_name}.{field_name}: {reason}"
        logger.warning(message)
        self.diagnostics.append(
            Diagnostic(category=category, message=message, skill_name=skill_name, field=field_name)
        )
