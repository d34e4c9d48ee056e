"""UserPromptSubmit hook: suggest or inject skills that match the prompt.

Starts a new prompt cycle (clears the session's current-prompt skills), matches
the prompt plus the session's modified files, drops skills still cooling down
from an earlier activation, limits the list, records what was activated and
prints the result as ``hookSpecificOutput.additionalContext``.

Activation strategies:
- guaranteed: the skill's SKILL.md body is injected
- suggestive (default): the skill is listed as a suggestion
- native_only: left to the host, never emitted

Never crashes: any failure prints ``{}`` and exits 0.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from skillrt.engine.models import ShadowMatch, SkillMatch
from skillrt.rules.models import ActivationStrategy, SkillRule

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


def cooldown_ms(rule: SkillRule, default_minutes: float) -> float:
    minutes = rule.cooldown_minutes if rule.cooldown_minutes is not None else default_minutes
    return minutes * MS_PER_MINUTE


def strategy_of(match: SkillMatch) -> ActivationStrategy:
    return match.rule.activation_strategy or ActivationStrategy.SUGGESTIVE


def format_context(
    guaranteed: list[tuple[SkillMatch, str]],
    suggested: list[SkillMatch],
    shadow: list[ShadowMatch],
    modified_files: list[str],
    active_domains: list[str],
) -> str:
    lines: list[str] = ["SKILL ACTIVATION CHECK"]

    for match, content in guaranteed:
        lines += ["", f"=== SKILL: {match.skill_name} ===", content]

    if suggested:
        lines += ["", "Suggested skills:"]
        for match in suggested:
            label = f"- {match.skill_name} [{match.rule.priority}]"
            if match.rule.description:
                label += f": {match.rule.description}"
            lines.append(label)

    if shadow:
        lines += ["", "Also available (invoke manually with /<name>):"]
        for sm in shadow:
            label = f"- {sm.skill_name} ({sm.reason})"
            if sm.rule.description:
                label += f": {sm.rule.description}"
            lines.append(label)

    if modified_files or active_domains:
        lines += ["", "Session context:"]
        if modified_files:
            lines.append(f"- modified files: {', '.join(modified_files)}")
        if active_domains:
            lines.append(f"- active domains: {', '.join(active_domains)}")

    return "\n".join(lines)


def run(payload: dict[str, Any]) -> dict[str, Any]:
    """Process one UserPromptSubmit payload and return the hook output."""
    from skillrt.hooks._common import build_context
    from skillrt.rules.loader import load_skill_content

    prompt = payload.get("prompt")
    if not isinstance(prompt, str):
        prompt = ""

    ctx = build_context(payload)
    store, sid = ctx.store, ctx.session_id
    store.clear_current_prompt_skills(sid)

    modified_files = store.get_modified_files(sid)
    active_domains = store.get_active_domains(sid)

    matches = ctx.matcher.match_prompt(prompt, modified_files)
    shadow = ctx.matcher.match_shadow_triggers(prompt)

    default_minutes = ctx.config.settings.thresholds.recent_activation_minutes
    matches = [
        m
        for m in matches
        if not store.was_recently_activated(sid, m.skill_name, cooldown_ms(m.rule, default_minutes))
    ]
    # native_only rules must not use up suggestion slots
    matches = [m for m in matches if strategy_of(m) is not ActivationStrategy.NATIVE_ONLY]
    matches = ctx.matcher.limit_matches(matches, ctx.config.settings.max_suggestions)

    guaranteed: list[tuple[SkillMatch, str]] = []
    suggested: list[SkillMatch] = []
    for match in matches:
        if strategy_of(match) is ActivationStrategy.GUARANTEED:
            content = load_skill_content(ctx.project_dir, match.skill_name)
            if content is not None:
                guaranteed.append((match, content))
                store.record_skill_activation(sid, match.skill_name)
                continue
            logger.debug(f"No SKILL.md for {match.skill_name}; suggesting instead")
        suggested.append(match)
        store.record_skill_activation(sid, match.skill_name)

    logger.debug(
        f"Activation: {len(guaranteed)} guaranteed, {len(suggested)} suggested, "
        f"{len(shadow)} shadow"
    )
    if not guaranteed and not suggested and not shadow:
        return {}

    return {
        "hookSpecificOutput": {
            "hookEventName": "UserPromptSubmit",
            "additionalContext": format_context(
                guaranteed, suggested, shadow, modified_files, active_domains
            ),
        }
    }


def main() -> None:
    """Entry point for UserPromptSubmit hook."""
    from skillrt.hooks._common import read_hook_input, write_hook_output

    try:
        output = run(read_hook_input())
    except Exception:
        logger.exception("Skill activation hook failed")
        output = {}
    write_hook_output(output)
    sys.exit(0)


if __name__ == "__main__":
    main()
