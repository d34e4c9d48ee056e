"""Validation engine: check modified files against activated skills' validation rules.

Only skills that actually fired are consulted. A validation rule applies to a
file when its condition holds and fails when its requirement does not.
Broken patterns fail closed: a bad condition pattern skips the file, a bad
requirement pattern reports the file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from skillrt.diagnostics import Diagnostic, DiagnosticCategory
from skillrt.engine.files import normalize_file_path, read_project_file, resolve_project_path
from skillrt.engine.models import ValidationReminder
from skillrt.engine.patterns import PatternCompiler
from skillrt.rules.models import SkillConfig, ValidationRule

FILENAME_PLACEHOLDER = "${filename}"


class ValidationEngine:
    def __init__(
        self,
        config: SkillConfig,
        project_dir: Path,
        compiler: PatternCompiler | None = None,
    ) -> None:
        self._config = config
        self._project_dir = project_dir
        self._compiler = compiler or PatternCompiler()

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self._compiler.diagnostics

    def apply(
        self, modified_files: Iterable[str], activated_skills: Iterable[str]
    ) -> list[ValidationReminder]:
        files = list(dict.fromkeys(modified_files))
        reminders: list[ValidationReminder] = []
        for skill_name in dict.fromkeys(activated_skills):
            rule = self._config.skills.get(skill_name)
            if rule is None:
                continue
            for vrule in rule.validation_rules:
                failed = [
                    f
                    for f in files
                    if self._condition_holds(skill_name, vrule, f)
                    and not self._requirement_met(skill_name, vrule, f)
                ]
                if failed:
                    reminders.append(
                        ValidationReminder(
                            skill_name=skill_name,
                            rule_name=vrule.name,
                            reminder=vrule.reminder,
                            priority=rule.priority,
                            failed_files=failed,
                        )
                    )
        # Stable: reminders of one skill stay together
        return sorted(reminders, key=lambda r: r.priority.rank, reverse=True)

    def _condition_holds(self, skill_name: str, vrule: ValidationRule, file_path: str) -> bool:
        cond = vrule.condition
        if cond.path_pattern is not None:
            path_re = self._compile(skill_name, vrule, "condition.pathPattern", cond.path_pattern, 0)
            if path_re is None:
                return False
            if path_re.search(normalize_file_path(file_path, self._project_dir)) is None:
                return False
        if cond.pattern is not None:
            content_re = self._compile(skill_name, vrule, "condition.pattern", cond.pattern)
            if content_re is None:
                return False
            content = read_project_file(file_path, self._project_dir)
            if content is None or content_re.search(content) is None:
                return False
        return True

    def _requirement_met(self, skill_name: str, vrule: ValidationRule, file_path: str) -> bool:
        req = vrule.requirement
        if req.pattern is not None:
            content_re = self._compile(skill_name, vrule, "requirement.pattern", req.pattern)
            if content_re is None:
                return False
            content = read_project_file(file_path, self._project_dir)
            if content is None or content_re.search(content) is None:
                return False
        if req.file_exists is not None:
            target = resolve_project_path(file_path, self._project_dir)
            expected = req.file_exists.replace(FILENAME_PLACEHOLDER, Path(file_path).stem)
            if not (target.parent / expected).exists():
                return False
        return True

    def _compile(
        self,
        skill_name: str,
        vrule: ValidationRule,
        where: str,
        source: str,
        flags: int = re.IGNORECASE,
    ) -> re.Pattern[str] | None:
        compiled = self._compiler.compile(
            source,
            skill_name=skill_name,
            field_name=f"validationRules[{vrule.name}].{where}",
            flags=flags,
            category=DiagnosticCategory.VALIDATION,
        )
        return compiled.regex if compiled is not None else None
