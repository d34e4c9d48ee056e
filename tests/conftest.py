"""Shared fixtures for skillrt tests."""

import json
from pathlib import Path

import pytest
import yaml

from skillrt.rules.models import SkillConfig


def _make_config(skills: dict, settings: dict | None = None) -> SkillConfig:
    """Build a SkillConfig from camelCase dicts, the way rule files spell them."""
    data: dict = {"version": "1.0", "skills": skills}
    if settings is not None:
        data["settings"] = settings
    return SkillConfig.model_validate(data)


def _write_rules(project_dir: Path, data: dict, fmt: str = "yaml") -> Path:
    """Write a skill-rules file under .claude/skills and return its path."""
    skills_dir = project_dir / ".claude" / "skills"
    skills_dir.mkdir(parents=True, exist_ok=True)
    if fmt == "json":
        path = skills_dir / "skill-rules.json"
        path.write_text(json.dumps(data))
    else:
        path = skills_dir / "skill-rules.yaml"
        path.write_text(yaml.safe_dump(data))
    return path


def _write_skill_md(project_dir: Path, name: str, body: str) -> Path:
    skill_dir = project_dir / ".claude" / "skills" / name
    skill_dir.mkdir(parents=True, exist_ok=True)
    path = skill_dir / "SKILL.md"
    path.write_text(body)
    return path


@pytest.fixture
def make_config():
    """Builder for in-memory rule configs."""
    return _make_config


@pytest.fixture
def write_rules():
    """Writer for a project's skill-rules file; ``fmt`` is "yaml" or "json"."""
    return _write_rules


@pytest.fixture
def write_skill_md():
    return _write_skill_md


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch) -> Path:
    """An empty project root; env overrides cleared so hooks resolve to it."""
    for name in (
        "SKILLRT_PROJECT_DIR",
        "CLAUDE_PROJECT_DIR",
        "SKILLRT_CACHE_DIR",
        "SKILLRT_LOCK_TIMEOUT",
        "SKILLRT_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    path = tmp_path / "cache"
    path.mkdir()
    return path
