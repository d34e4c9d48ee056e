"""Translate path globs into anchored regular expressions.

Supports ``**`` (any number of directories, including none), ``*`` and ``?``
(never crossing ``/``), ``[...]`` character classes and ``{a,b}`` alternation.
"""

from __future__ import annotations

import re


def translate_glob(pattern: str) -> str:
    body = pattern.removeprefix("./").lstrip("/")
    return "^" + _translate(body) + "$"


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob; case-sensitive. Raises re.error for malformed classes."""
    return re.compile(translate_glob(pattern))


def _translate(pat: str) -> str:
    out: list[str] = []
    i, n = 0, len(pat)
    while i < n:
        c = pat[i]
        if c == "*":
            if pat.startswith("**", i):
                j = i + 2
                segment_start = i == 0 or pat[i - 1] == "/"
                if segment_start and pat.startswith("/", j):
                    out.append("(?:.*/)?")
                    i = j + 1
                    continue
                if segment_start and j == n:
                    out.append(".*")
                    i = j
                    continue
                # ** inside a segment behaves like *
                i = j
            else:
                i += 1
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            end = _class_end(pat, i)
            if end == -1:
                out.append(re.escape(c))
                i += 1
                continue
            out.append(_translate_class(pat[i + 1 : end]))
            i = end + 1
        elif c == "{":
            end = _brace_end(pat, i)
            options = _split_options(pat[i + 1 : end]) if end != -1 else []
            if len(options) < 2:
                # Unbalanced or single-option braces are literal
                out.append(re.escape(c))
                i += 1
                continue
            out.append("(?:" + "|".join(_translate(opt) for opt in options) + ")")
            i = end + 1
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


def _class_end(pat: str, start: int) -> int:
    j = start + 1
    if j < len(pat) and pat[j] in "!^":
        j += 1
    if j < len(pat) and pat[j] == "]":
        j += 1
    return pat.find("]", j)


def _translate_class(body: str) -> str:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    escaped = "".join("\\" + ch if ch in "\\[]^" else ch for ch in body)
    return "[" + ("^" if negate else "") + escaped + "]"


def _brace_end(pat: str, start: int) -> int:
    depth = 0
    for j in range(start, len(pat)):
        if pat[j] == "{":
            depth += 1
        elif pat[j] == "}":
            depth -= 1
            if depth == 0:
                return j
    return -1


def _split_options(body: str) -> list[str]:
    options: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in body:
        if ch == "," and depth == 0:
            options.append("".join(current))
            current = []
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current.append(ch)
    options.append("".join(current))
    return options
