"""Coarse domain labels derived from modified file paths."""

from __future__ import annotations

import re

# (label, pattern) pairs, tested against POSIX relative paths
DOMAIN_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (
        "backend",
        re.compile(r"(^|/)(api|server|routes|controllers|services|handlers|backend)/"),
    ),
    (
        "frontend",
        re.compile(r"(^|/)(components|pages|views|frontend|ui)/|\.(tsx|jsx|vue|svelte|css|scss)$"),
    ),
    (
        "database",
        re.compile(r"(^|/)(migrations|prisma|db|database|models|schema)/|\.sql$"),
    ),
    (
        "testing",
        re.compile(r"(^|/)(tests?|__tests__|spec)/|\.(test|spec)\.[jt]sx?$|(^|/)test_[^/]*\.py$"),
    ),
    (
        "infrastructure",
        re.compile(r"(^|/)(\.github|deploy|infra|terraform|k8s|docker)/|(^|/)Dockerfile$"),
    ),
    (
        "documentation",
        re.compile(r"(^|/)docs?/|\.mdx?$"),
    ),
]


def detect_domains(file_path: str) -> list[str]:
    """Return every domain label whose pattern matches the path, in table order."""
    normalized = file_path.replace("\\", "/")
    return [label for label, pattern in DOMAIN_PATTERNS if pattern.search(normalized)]
