"""Stop hook: completion checks and validation reminders.

Stop triggers run against the payload's ``transcript_summary``. Validation
rules run over the session's modified files, scoped to the skills activated
during the current prompt. Results are reminders, not blockers; the hook
always exits 0.
"""

from __future__ import annotations

import logging
import sys
from itertools import groupby
from pathlib import Path
from typing import Any

from skillrt.engine.models import StopMatch, ValidationReminder

logger = logging.getLogger(__name__)


def format_report(
    stop_matches: list[StopMatch],
    reminders: list[ValidationReminder],
    project_dir: Path,
) -> str:
    from skillrt.rules.loader import load_skill_content

    lines: list[str] = ["CODE QUALITY SELF-CHECK"]

    if stop_matches:
        lines += ["", "Completion verification needed:"]
        for match in stop_matches:
            lines.append(f"- {match.skill_name}: {match.rule.description}")
            if match.matched_keyword:
                lines.append(f'  Triggered by: "{match.matched_keyword}"')
            triggers = match.rule.stop_triggers
            if match.requires_prompt_evaluation and triggers and triggers.prompt_evaluation:
                lines.append(f"  Evaluate: {triggers.prompt_evaluation.strip()}")
                content = load_skill_content(project_dir, match.skill_name)
                if content:
                    lines += [f"  === {match.skill_name} GUIDELINES ===", content]

    if reminders:
        lines += ["", "Validation checks found:"]
        for skill_name, group in groupby(reminders, key=lambda r: r.skill_name):
            lines.append(f"{skill_name}:")
            for r in group:
                lines.append(f"  ? {r.reminder}")
                lines.append(f"    Rule: {r.rule_name}")
                lines.append(f"    Failed files ({len(r.failed_files)}):")
                lines += [f"      - {f}" for f in r.failed_files]

    lines += ["", "These are reminders, not blockers."]
    return "\n".join(lines)


def run(payload: dict[str, Any]) -> dict[str, Any]:
    from skillrt.hooks._common import build_context

    ctx = build_context(payload)
    summary = payload.get("transcript_summary")
    stop_matches: list[StopMatch] = []
    if isinstance(summary, str) and summary:
        stop_matches = ctx.matcher.match_stop_triggers(summary)

    modified_files = ctx.store.get_modified_files(ctx.session_id)
    activated = ctx.store.get_activated_skills(ctx.session_id)
    reminders: list[ValidationReminder] = []
    if modified_files and activated:
        reminders = ctx.matcher.apply_validation_rules(modified_files, activated)

    logger.debug(f"Stop: {len(stop_matches)} stop triggers, {len(reminders)} reminders")
    if not stop_matches and not reminders:
        return {}
    return {
        "hookSpecificOutput": {
            "hookEventName": "Stop",
            "additionalContext": format_report(stop_matches, reminders, ctx.project_dir),
        }
    }


def main() -> None:
    """Entry point for Stop hook."""
    from skillrt.hooks._common import read_hook_input, write_hook_output

    try:
        output = run(read_hook_input())
    except Exception:
        logger.exception("Stop validator hook failed")
        output = {}
    write_hook_output(output)
    sys.exit(0)


if __name__ == "__main__":
    main()
