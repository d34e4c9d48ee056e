"""Locate and parse skill-rules files into a SkillConfig."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from skillrt.rules.models import SkillConfig

SKILLS_DIR = Path(".claude") / "skills"

# Checked in order; the first existing file wins.
RULES_FILENAMES = ("skill-rules.yaml", "skill-rules.yml", "skill-rules.json")


class ConfigError(Exception):
    """Raised when a rules file is missing, unreadable, or malformed."""


def find_rules_file(project_dir: Path) -> Path | None:
    skills_dir = project_dir / SKILLS_DIR
    for name in RULES_FILENAMES:
        candidate = skills_dir / name
        if candidate.is_file():
            return candidate
    return None


def _parse(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def load_skill_config(path: Path) -> SkillConfig:
    """Load a rules file. Raises ConfigError on any problem with the file itself."""
    data = _parse(path)
    if data is None:
        return SkillConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    try:
        return SkillConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"{path}: invalid skill rules: {exc}") from exc


def load_project_config(project_dir: Path) -> SkillConfig:
    """Load the project's rules file, or an empty config when none exists."""
    path = find_rules_file(project_dir)
    if path is None:
        return SkillConfig()
    return load_skill_config(path)


def load_skill_content(project_dir: Path, skill_name: str) -> str | None:
    """Return the SKILL.md body for a skill, or None if it cannot be read."""
    skill_file = project_dir / SKILLS_DIR / skill_name / "SKILL.md"
    try:
        text = skill_file.read_text(encoding="utf-8")
    except OSError:
        return None
    return text.strip() or None
