"""Tests for engine/globbing.py: glob to regex translation."""

import re

import pytest

from skillrt.engine.globbing import compile_glob, translate_glob


def matches(pattern: str, path: str) -> bool:
    return compile_glob(pattern).match(path) is not None


class TestDoubleStar:
    @pytest.mark.parametrize("path", ["a.ts", "src/a.ts", "src/deep/er/a.ts"])
    def test_leading_double_star_spans_directories(self, path):
        assert matches("**/*.ts", path)

    def test_trailing_double_star(self):
        assert matches("src/**", "src/a/b/c.py")
        assert not matches("src/**", "lib/a.py")

    def test_middle_double_star_allows_zero_dirs(self):
        assert matches("src/**/test_*.py", "src/test_x.py")
        assert matches("src/**/test_*.py", "src/a/b/test_x.py")


class TestSingleSegment:
    def test_star_does_not_cross_slash(self):
        assert matches("src/*.py", "src/a.py")
        assert not matches("src/*.py", "src/sub/a.py")

    def test_question_mark(self):
        assert matches("file?.txt", "file1.txt")
        assert not matches("file?.txt", "file10.txt")

    def test_anchored(self):
        assert not matches("*.py", "src/a.py")


class TestClassesAndBraces:
    def test_character_class(self):
        assert matches("v[0-9].md", "v3.md")
        assert not matches("v[0-9].md", "vx.md")

    def test_negated_class(self):
        assert matches("[!a]*.py", "b.py")
        assert not matches("[!a]*.py", "a.py")

    def test_brace_alternation(self):
        assert matches("**/*.{ts,tsx}", "ui/App.tsx")
        assert matches("**/*.{ts,tsx}", "index.ts")
        assert not matches("**/*.{ts,tsx}", "index.js")

    def test_single_option_brace_is_literal(self):
        assert matches("{a}.txt", "{a}.txt")


class TestTranslate:
    def test_leading_dot_slash_stripped(self):
        assert translate_glob("./src/*.py") == translate_glob("src/*.py")

    def test_regex_metacharacters_escaped(self):
        assert matches("a+b.py", "a+b.py")
        assert not matches("a+b.py", "aab.py")

    def test_case_sensitive(self):
        assert not matches("src/*.PY", "src/a.py")

    def test_returns_compiled_pattern(self):
        assert isinstance(compile_glob("x"), re.Pattern)
