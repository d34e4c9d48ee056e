"""Matching and validation engine for skill rules."""

from skillrt.engine.files import normalize_file_path
from skillrt.engine.matcher import RuleMatcher, limit_matches, rank_matches
from skillrt.engine.models import (
    PreToolMatch,
    ShadowMatch,
    SkillMatch,
    StopMatch,
    ValidationReminder,
)
from skillrt.engine.patterns import CompiledRulePatterns, PatternCompiler
from skillrt.engine.validation import ValidationEngine

__all__ = [
    "CompiledRulePatterns",
    "PatternCompiler",
    "PreToolMatch",
    "RuleMatcher",
    "ShadowMatch",
    "SkillMatch",
    "StopMatch",
    "ValidationEngine",
    "ValidationReminder",
    "limit_matches",
    "normalize_file_path",
    "rank_matches",
]
