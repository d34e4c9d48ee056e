"""Shared utilities for hook scripts."""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from skillrt.engine.matcher import RuleMatcher
from skillrt.rules.config import CONFIG_FILENAME, RuntimeConfig, load_runtime_config
from skillrt.rules.loader import load_project_config
from skillrt.rules.models import SkillConfig
from skillrt.session.state import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


def read_hook_input() -> dict[str, Any]:
    """Read JSON input from stdin. Returns empty dict on failure."""
    try:
        raw = sys.stdin.read()
        if not raw.strip():
            return {}
        data = json.loads(raw)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def write_hook_output(output: dict[str, Any]) -> None:
    print(json.dumps(output, indent=2))


def resolve_project_dir(payload: dict[str, Any]) -> Path:
    """Get the project root for a hook invocation.

    Resolution order:
    1. SKILLRT_PROJECT_DIR env var (explicit override)
    2. CLAUDE_PROJECT_DIR env var (set by the host for hook processes)
    3. ``working_directory`` / ``cwd`` from the hook payload
    4. Current working directory
    """
    for env_name in ("SKILLRT_PROJECT_DIR", "CLAUDE_PROJECT_DIR"):
        value = os.environ.get(env_name)
        if value and Path(value).is_dir():
            return Path(value)
    for key in ("working_directory", "cwd"):
        value = payload.get(key)
        if isinstance(value, str) and value and Path(value).is_dir():
            return Path(value)
    return Path.cwd()


def session_id_from(payload: dict[str, Any]) -> str:
    value = payload.get("session_id")
    return value if isinstance(value, str) and value else DEFAULT_SESSION_ID


def configure_logging(debug: bool) -> None:
    """Send log records to stderr; stdout is reserved for hook JSON."""
    root = logging.getLogger("skillrt")
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    # The old stream may already be closed, so drop the handler without flushing it.
    for h in list(root.handlers):
        if getattr(h, "_skillrt_hook", False):
            root.removeHandler(h)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[skillrt] %(levelname)s %(name)s: %(message)s"))
    handler._skillrt_hook = True  # type: ignore[attr-defined]
    root.addHandler(handler)


@dataclass
class HookContext:
    project_dir: Path
    session_id: str
    runtime: RuntimeConfig
    config: SkillConfig
    store: SessionStore
    matcher: RuleMatcher


def build_context(payload: dict[str, Any]) -> HookContext:
    """Load rules, runtime settings and the session store for one hook call.

    Raises ConfigError when the rules file is unusable; callers turn that into
    an empty hook response.
    """
    project_dir = resolve_project_dir(payload)
    runtime = load_runtime_config(project_dir / CONFIG_FILENAME)
    configure_logging(runtime.debug)
    config = load_project_config(project_dir)
    store = SessionStore(
        runtime.cache_path(project_dir),
        lock_timeout=runtime.lock_timeout_sec,
        cleanup_interval=runtime.cleanup_interval,
        session_max_age_ms=runtime.session_max_age_ms,
        activation_max_age_ms=runtime.activation_max_age_ms,
    )
    return HookContext(
        project_dir=project_dir,
        session_id=session_id_from(payload),
        runtime=runtime,
        config=config,
        store=store,
        matcher=RuleMatcher(config, project_dir),
    )
