"""CLI entry point for skillrt."""

from __future__ import annotations

import argparse
import importlib
import json
import sys
from pathlib import Path
from typing import cast

from skillrt import __version__
from skillrt.engine.matcher import RuleMatcher
from skillrt.rules.config import CONFIG_FILENAME, load_runtime_config
from skillrt.rules.loader import ConfigError, find_rules_file, load_skill_config
from skillrt.rules.models import SkillConfig
from skillrt.session.state import SessionStore

HOOK_MODULES = (
    "session_start",
    "skill_activation",
    "tool_tracker",
    "pre_tool_guard",
    "stop_validator",
)


def _project_dir(args: argparse.Namespace) -> Path:
    return cast(Path, args.project_dir).resolve()


def _load_config_or_exit(project_dir: Path) -> tuple[Path | None, SkillConfig]:
    path = find_rules_file(project_dir)
    if path is None:
        return None, SkillConfig()
    try:
        return path, load_skill_config(path)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _cmd_check(args: argparse.Namespace) -> None:
    project_dir = _project_dir(args)
    path, config = _load_config_or_exit(project_dir)
    if path is None:
        print(f"No skill rules file found under {project_dir / '.claude' / 'skills'}")
        return

    matcher = RuleMatcher(config, project_dir)
    print(f"Rules file: {path}")
    print(f"Skills:     {len(config.skills)}")
    for name, rule in config.skills.items():
        kinds = ", ".join(rule.trigger_kinds()) or "none"
        print(f"  {name} [{rule.enforcement}/{rule.priority}] triggers: {kinds}")

    if matcher.diagnostics:
        print(f"\nDiagnostics: {len(matcher.diagnostics)}")
        for diag in matcher.diagnostics:
            print(f"  [{diag.category}] {diag.message}")
        if args.strict:
            sys.exit(1)
    else:
        print("\nAll patterns compiled.")


def _cmd_match(args: argparse.Namespace) -> None:
    project_dir = _project_dir(args)
    _, config = _load_config_or_exit(project_dir)
    matcher = RuleMatcher(config, project_dir)
    files = cast(list[str], args.files)
    matches = matcher.match_prompt(cast(str, args.prompt), files)
    if args.limit:
        matches = matcher.limit_matches(matches, config.settings.max_suggestions)
    result = [
        {
            "skill": m.skill_name,
            "priority": m.rule.priority,
            "score": m.score,
            "prompt_match": m.prompt_match,
            "file_match": m.file_match,
        }
        for m in matches
    ]
    print(json.dumps(result, indent=2))


def _cmd_session(args: argparse.Namespace) -> None:
    project_dir = _project_dir(args)
    runtime = load_runtime_config(project_dir / CONFIG_FILENAME)
    store = SessionStore(runtime.cache_path(project_dir), lock_timeout=runtime.lock_timeout_sec)
    session_id = cast(str, args.session_id)
    if not store.session_path(session_id).exists():
        print(f"Error: no session {session_id} in {store.root}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(store.get_session(session_id).model_dump(by_alias=True), indent=2))


def _cmd_cleanup(args: argparse.Namespace) -> None:
    project_dir = _project_dir(args)
    runtime = load_runtime_config(project_dir / CONFIG_FILENAME)
    store = SessionStore(
        runtime.cache_path(project_dir),
        lock_timeout=runtime.lock_timeout_sec,
        session_max_age_ms=runtime.session_max_age_ms,
        activation_max_age_ms=runtime.activation_max_age_ms,
    )
    report = store.cleanup_old_sessions()
    print(f"Sessions removed:    {len(report.sessions_removed)}")
    print(f"Temp files removed:  {report.tmp_files_removed}")
    print(f"Lock files removed:  {report.lock_files_removed}")
    print(f"Activations pruned:  {report.activations_pruned}")


def _cmd_hook(args: argparse.Namespace) -> None:
    mod = importlib.import_module(f"skillrt.hooks.{args.module}")
    mod.main()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="skillrt",
        description="Skill activation runtime for Claude Code hooks",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"skillrt {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command")

    def add_project_arg(p: argparse.ArgumentParser) -> None:
        _ = p.add_argument(
            "--project-dir",
            type=Path,
            default=Path.cwd(),
            dest="project_dir",
            help="Project root (default: current directory)",
        )

    check_p = subparsers.add_parser("check", help="Validate the skill rules file")
    add_project_arg(check_p)
    _ = check_p.add_argument(
        "--strict", action="store_true", help="Exit non-zero when any pattern is invalid"
    )

    match_p = subparsers.add_parser("match", help="Show skills matching a prompt")
    add_project_arg(match_p)
    _ = match_p.add_argument("prompt", help="Prompt text to match")
    _ = match_p.add_argument(
        "--file", action="append", default=[], dest="files", help="Modified file (repeatable)"
    )
    _ = match_p.add_argument(
        "--limit", action="store_true", help="Apply settings.maxSuggestions"
    )

    session_p = subparsers.add_parser("session", help="Dump a session record")
    add_project_arg(session_p)
    _ = session_p.add_argument("session_id", help="Session id")

    cleanup_p = subparsers.add_parser("cleanup", help="Remove expired sessions and orphans")
    add_project_arg(cleanup_p)

    hook_parser = subparsers.add_parser("hook", help="Run a hook module")
    _ = hook_parser.add_argument("module", choices=HOOK_MODULES, help="Hook module name")

    args = parser.parse_args()

    dispatch = {
        "check": _cmd_check,
        "match": _cmd_match,
        "session": _cmd_session,
        "cleanup": _cmd_cleanup,
        "hook": _cmd_hook,
    }
    command = cast(str | None, args.command)
    handler = dispatch.get(command) if command is not None else None
    if handler:
        handler(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
