"""SessionStart hook: seed the session from the working tree and index skills.

Files already changed when the session starts (unstaged and staged, per git)
are recorded as modified so file triggers can fire on the first prompt. A
per-skill metadata index is written next to the session records as
``file_state.json``. Prints a short plain-text summary and exits 0.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import tempfile
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from skillrt.rules.models import ActivationStrategy, SkillConfig

logger = logging.getLogger(__name__)

FILE_STATE_NAME = "file_state.json"
FILE_STATE_VERSION = "1.0"
GIT_TIMEOUT_SEC = 5
MAX_UNTRACKED_FILES = 100


class SkillMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    description: str = ""
    activation_strategy: ActivationStrategy | None = None
    has_hooks: bool = False  # pre-tool or stop triggers configured
    trigger_count: int = 0


class FileState(BaseModel):
    """Workspace snapshot taken at session start."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: str = FILE_STATE_VERSION
    timestamp: str
    session_id: str
    modified_files: list[str] = Field(default_factory=list)
    staged_files: list[str] = Field(default_factory=list)
    untracked_files: list[str] = Field(default_factory=list)
    skill_index: dict[str, SkillMetadata] = Field(default_factory=dict)


def git_lines(args: list[str], cwd: Path) -> list[str]:
    """Run a git command and return its non-empty output lines. Empty on any failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SEC,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"git {' '.join(args)} failed: {e}")
        return []
    if result.returncode != 0:
        return []
    return [line for line in result.stdout.splitlines() if line.strip()]


def git_modified_files(project_dir: Path) -> list[str]:
    return git_lines(["diff", "--name-only", "--relative"], project_dir)


def git_staged_files(project_dir: Path) -> list[str]:
    return git_lines(["diff", "--cached", "--name-only", "--relative"], project_dir)


def git_untracked_files(project_dir: Path) -> list[str]:
    files = git_lines(["ls-files", "--others", "--exclude-standard"], project_dir)
    return files[:MAX_UNTRACKED_FILES]


def build_skill_index(config: SkillConfig) -> dict[str, SkillMetadata]:
    """Summarize each rule: how many triggers it has and how it activates."""
    index: dict[str, SkillMetadata] = {}
    for name, rule in config.skills.items():
        count = 0
        if rule.prompt_triggers:
            count += len(rule.prompt_triggers.keywords) + len(rule.prompt_triggers.intent_patterns)
        if rule.file_triggers:
            count += len(rule.file_triggers.path_patterns)
            count += len(rule.file_triggers.content_patterns)
        index[name] = SkillMetadata(
            name=name,
            description=rule.description,
            activation_strategy=rule.activation_strategy,
            has_hooks=rule.pre_tool_triggers is not None or rule.stop_triggers is not None,
            trigger_count=count,
        )
    return index


def write_file_state(path: Path, state: FileState) -> None:
    """Write the snapshot atomically, creating the cache directory as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = state.model_dump_json(by_alias=True, indent=2)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass


def format_summary(state: FileState) -> str:
    lines = ["Skill system initialized", f"  {len(state.skill_index)} skills loaded"]
    if state.modified_files:
        lines.append(f"  {len(state.modified_files)} modified files tracked")
    guaranteed = sum(
        1
        for meta in state.skill_index.values()
        if meta.activation_strategy == ActivationStrategy.GUARANTEED
    )
    if guaranteed:
        lines.append(f"  {guaranteed} guaranteed skills active")
    return "\n".join(lines)


def run(payload: dict[str, Any]) -> FileState:
    """Seed one session from git and write the skill index. Returns the snapshot."""
    from skillrt.engine.files import normalize_file_path
    from skillrt.hooks._common import build_context

    started = time.monotonic()
    ctx = build_context(payload)

    modified = git_modified_files(ctx.project_dir)
    staged = git_staged_files(ctx.project_dir)
    untracked = git_untracked_files(ctx.project_dir)
    logger.debug(
        f"Workspace scan: {len(modified)} modified, {len(staged)} staged, "
        f"{len(untracked)} untracked"
    )

    for path in dict.fromkeys([*modified, *staged]):
        ctx.store.add_modified_file(ctx.session_id, normalize_file_path(path, ctx.project_dir))

    state = FileState(
        timestamp=datetime.now(UTC).isoformat(),
        session_id=ctx.session_id,
        modified_files=modified,
        staged_files=staged,
        untracked_files=untracked,
        skill_index=build_skill_index(ctx.config),
    )
    cache_dir = ctx.runtime.cache_path(ctx.project_dir)
    try:
        write_file_state(cache_dir / FILE_STATE_NAME, state)
    except OSError as e:
        logger.warning(f"Failed to write {FILE_STATE_NAME}: {e}")
    logger.debug(f"Session start done in {(time.monotonic() - started) * 1000:.0f}ms")
    return state


def main() -> None:
    """Entry point for SessionStart hook."""
    from skillrt.hooks._common import read_hook_input

    try:
        state = run(read_hook_input())
        print(format_summary(state))
    except Exception:
        logger.exception("Session start hook failed")
    sys.exit(0)


if __name__ == "__main__":
    main()
