"""Unit tests for controllers/discovery.py - Glob resolution."""

import os

import pytest

from controllers.discovery import expand_braces, resolve_pattern


class TestExpandBraces:
    """Tests for brace alternation."""

    def test_no_braces(self):
        assert expand_braces("ctrls/*.py") == ["ctrls/*.py"]

    def test_simple_alternation(self):
        assert expand_braces("ctrls/{a,b}.py") == ["ctrls/a.py", "ctrls/b.py"]

    def test_multiple_groups(self):
        assert expand_braces("{x,y}/{1,2}") == ["x/1", "x/2", "y/1", "y/2"]

    def test_nested_groups(self):
        assert expand_braces("{a,b{c,d}}") == ["a", "bc", "bd"]

    def test_empty_option(self):
        assert expand_braces("file{,.bak}") == ["file", "file.bak"]

    def test_single_option_is_literal(self):
        assert expand_braces("ctrl{a}.py") == ["ctrl{a}.py"]

    def test_unbalanced_is_literal(self):
        assert expand_braces("ctrl{a,b.py") == ["ctrl{a,b.py"]

    def test_duplicates_removed(self):
        assert expand_braces("{a,a,b}") == ["a", "b"]


class TestResolvePattern:
    """Tests for resolve_pattern()."""

    @pytest.fixture
    def tree(self, tmp_path):
        for rel in ("b.mod", "a.mod", "c.txt", "nested/d.mod", "nested/deep/e.mod"):
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
        return tmp_path

    def test_star_sorted(self, tree):
        result = resolve_pattern(str(tree / "*.mod"))
        assert result == [str(tree / "a.mod"), str(tree / "b.mod")]

    def test_question_mark(self, tree):
        assert resolve_pattern(str(tree / "?.txt")) == [str(tree / "c.txt")]

    def test_recursive(self, tree):
        result = resolve_pattern(str(tree / "**" / "*.mod"))
        assert result == sorted(
            [
                str(tree / "a.mod"),
                str(tree / "b.mod"),
                os.path.join(str(tree), "nested", "d.mod"),
                os.path.join(str(tree), "nested", "deep", "e.mod"),
            ]
        )

    def test_braces_deduplicated(self, tree):
        result = resolve_pattern(str(tree / "{a,*}.mod"))
        assert result == [str(tree / "a.mod"), str(tree / "b.mod")]

    def test_no_matches(self, tree):
        assert resolve_pattern(str(tree / "*.none")) == []
