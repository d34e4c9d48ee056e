"""PreToolUse hook: guardrails declared through ``preToolTriggers``.

The first matching rule with ``block`` enforcement denies the tool call, with
the skill's SKILL.md attached as context when present. Matching ``warn`` rules
let the call proceed with a warning list. Anything else produces ``{}``.
Never crashes.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from skillrt.engine.models import PreToolMatch
from skillrt.rules.models import Enforcement

logger = logging.getLogger(__name__)


def tool_input_text(tool_input: Any) -> str:
    """Patterns run against a string; structured tool input is matched as JSON."""
    if isinstance(tool_input, str):
        return tool_input
    if tool_input is None:
        return ""
    return json.dumps(tool_input, sort_keys=True)


def deny_output(match: PreToolMatch, skill_content: str | None) -> dict[str, Any]:
    output: dict[str, Any] = {
        "hookEventName": "PreToolUse",
        "permissionDecision": "deny",
        "permissionDecisionReason": (
            f'Guardrail "{match.skill_name}" triggered: {match.rule.description}'
        ),
    }
    if skill_content:
        output["additionalContext"] = f"=== GUARDRAIL: {match.skill_name} ===\n{skill_content}"
    return {"hookSpecificOutput": output}


def warn_output(matches: list[PreToolMatch]) -> dict[str, Any]:
    lines = ["=== GUARDRAIL WARNINGS ===", "The following guardrails matched but are not blocking:"]
    for m in matches:
        line = f"- {m.skill_name}: {m.rule.description}"
        if m.matched_pattern:
            line += f" (pattern: {m.matched_pattern})"
        lines.append(line)
    return {
        "hookSpecificOutput": {
            "hookEventName": "PreToolUse",
            "permissionDecision": "allow",
            "additionalContext": "\n".join(lines),
        }
    }


def run(payload: dict[str, Any]) -> dict[str, Any]:
    from skillrt.hooks._common import build_context
    from skillrt.rules.loader import load_skill_content

    tool_name = payload.get("tool_name")
    if not isinstance(tool_name, str) or not tool_name:
        return {}

    ctx = build_context(payload)
    matches = ctx.matcher.match_pre_tool_triggers(
        tool_name, tool_input_text(payload.get("tool_input"))
    )
    if not matches:
        return {}

    blocking = [m for m in matches if m.rule.enforcement is Enforcement.BLOCK]
    if blocking:
        first = blocking[0]
        logger.debug(f"Denying {tool_name}: guardrail {first.skill_name}")
        return deny_output(first, load_skill_content(ctx.project_dir, first.skill_name))

    warnings = [m for m in matches if m.rule.enforcement is Enforcement.WARN]
    if warnings:
        return warn_output(warnings)
    return {}


def main() -> None:
    """Entry point for PreToolUse guard hook."""
    from skillrt.hooks._common import read_hook_input, write_hook_output

    try:
        output = run(read_hook_input())
    except Exception:
        logger.exception("Pre-tool guard hook failed")
        output = {}
    write_hook_output(output)
    sys.exit(0)


if __name__ == "__main__":
    main()
