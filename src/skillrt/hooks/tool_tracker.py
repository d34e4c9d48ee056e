"""PostToolUse hook: record files touched by editing tools.

Edit and Write carry a single ``file_path``; MultiEdit may also list paths per
edit. Every tracked call bumps the session's tool-use counter, which runs
store cleanup on its configured cadence. Prints nothing and exits 0.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

logger = logging.getLogger(__name__)

TRACKED_TOOLS: frozenset[str] = frozenset({"Edit", "Write", "MultiEdit"})


def extract_file_paths(tool_name: str, tool_input: dict[str, Any]) -> list[str]:
    """Return the file paths an editing tool call touched, de-duplicated in order."""
    paths: list[str] = []
    file_path = tool_input.get("file_path")
    if isinstance(file_path, str) and file_path:
        paths.append(file_path)
    if tool_name == "MultiEdit":
        for edit in tool_input.get("edits") or []:
            if isinstance(edit, dict):
                edit_path = edit.get("file_path")
                if isinstance(edit_path, str) and edit_path:
                    paths.append(edit_path)
    return list(dict.fromkeys(paths))


def run(payload: dict[str, Any]) -> list[str]:
    """Record one PostToolUse payload. Returns the normalized paths recorded."""
    from skillrt.engine.files import normalize_file_path
    from skillrt.hooks._common import build_context

    tool_name = payload.get("tool_name", "")
    if tool_name not in TRACKED_TOOLS:
        return []
    tool_input = payload.get("tool_input")
    if not isinstance(tool_input, dict):
        return []

    ctx = build_context(payload)
    recorded: list[str] = []
    for path in extract_file_paths(tool_name, tool_input):
        normalized = normalize_file_path(path, ctx.project_dir)
        if ctx.store.add_modified_file(ctx.session_id, normalized):
            recorded.append(normalized)
    count = ctx.store.increment_tool_use_count(ctx.session_id)
    logger.debug(f"{tool_name} recorded {recorded} (tool use {count})")
    return recorded


def main() -> None:
    """Entry point for PostToolUse tracker hook."""
    from skillrt.hooks._common import read_hook_input

    try:
        run(read_hook_input())
    except Exception:
        logger.exception("Tool tracker hook failed")
    sys.exit(0)


if __name__ == "__main__":
    main()
