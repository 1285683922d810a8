"""
Tests for the search_fs tool.

Tests cover:
- Permission string rendering
- Glob syntax validation
- Matching, recursion, hidden files and symlinks
- Partial failures and argument errors
"""

import os

import pytest

from fschat.conversation import FunctionCall, value_from_json, value_to_json
from fschat.tools.search_fs import (
    FileEntry,
    GlobPatternError,
    SearchFsTool,
    compile_pattern,
    mode_to_str,
    search_fs,
)

# =============================================================================
# Permission String Tests
# =============================================================================


class TestModeToStr:
    """Tests for mode_to_str()."""

    @pytest.mark.parametrize(
        "mode,expected",
        [
            (0o100644, "-rw-r--r--"),
            (0o040755, "drwxr-xr-x"),
            (0o104755, "-rwsr-xr-x"),
            (0o101755, "-rwxr-xr-t"),
            (0o041000, "d--------t"),
            (0o102000, "------s---"),
            (0o107777, "-rwsrwsrwt"),
            (0o120777, "lrwxrwxrwx"),
            (0o020666, "crw-rw-rw-"),
            (0o060660, "brw-rw----"),
            (0o010644, "prw-r--r--"),
            (0o140755, "srwxr-xr-x"),
            (0o000644, "?rw-r--r--"),
        ],
    )
    def test_mode_to_str(self, mode, expected):
        assert mode_to_str(mode) == expected

    def test_always_ten_characters(self):
        for mode in (0, 0o177777, 0o100000):
            assert len(mode_to_str(mode)) == 10


# =============================================================================
# Pattern Validation Tests
# =============================================================================


class TestCompilePattern:
    """Tests for compile_pattern()."""

    @pytest.mark.parametrize("pattern", ["**", "/tmp/**/*.py", "*.txt", "[]]", "[!a]x", "a?c"])
    def test_valid(self, pattern):
        assert compile_pattern(pattern) == pattern

    @pytest.mark.parametrize(
        "pattern,pos",
        [
            ("a/***", 4),
            ("a**/b", 0),
            ("a/**b", 4),
            ("[abc", 0),
        ],
    )
    def test_invalid(self, pattern, pos):
        with pytest.raises(GlobPatternError) as exc_info:
            compile_pattern(pattern)

        assert exc_info.value.pos == pos
        assert str(exc_info.value).startswith(f"Pattern syntax error near position {pos}: ")

    def test_invalid_pattern_yields_single_error(self):
        entries, errors = search_fs("[abc")

        assert entries == []
        assert errors == ["Pattern syntax error near position 0: invalid range pattern"]


# =============================================================================
# Search Tests
# =============================================================================


class TestSearchFs:
    """Tests for search_fs()."""

    def test_zero_matches_is_not_an_error(self, tmp_path):
        entries, errors = search_fs(str(tmp_path / "*.nothing"))

        assert entries == []
        assert errors == []

    def test_non_recursive(self, sample_tree):
        entries, errors = search_fs(str(sample_tree / "*.txt"))

        assert [e.path for e in entries] == [str(sample_tree / "a.txt")]
        assert errors == []

    def test_recursive(self, sample_tree):
        entries, _ = search_fs(str(sample_tree / "**" / "*.txt"))

        assert [os.path.relpath(e.path, sample_tree) for e in entries] == [
            "a.txt",
            os.path.join("sub", "b.txt"),
            os.path.join("sub", "deep", "c.txt"),
        ]

    def test_hidden_files_match(self, sample_tree):
        entries, _ = search_fs(str(sample_tree / "*"))

        assert str(sample_tree / ".hidden") in [e.path for e in entries]

    def test_entry_metadata(self, sample_tree):
        path = sample_tree / "a.txt"
        os.chmod(path, 0o640)

        entries, _ = search_fs(str(path))

        st = os.lstat(path)
        assert entries == [FileEntry(path=str(path), uid=st.st_uid, gid=st.st_gid, mode="-rw-r-----")]

    def test_directory_mode(self, sample_tree):
        entries, _ = search_fs(str(sample_tree / "su*"))

        assert entries[0].mode.startswith("d")

    def test_dangling_symlink_is_not_followed(self, tmp_path):
        link = tmp_path / "broken"
        link.symlink_to(tmp_path / "missing")

        entries, errors = search_fs(str(tmp_path / "*"))

        assert errors == []
        assert [e.path for e in entries] == [str(link)]
        assert entries[0].mode.startswith("l")

    def test_unlistable_directory_is_skipped(self, sample_tree, monkeypatch):
        """A directory that cannot be listed drops its matches without an error."""
        real_scandir = os.scandir
        blocked = str(sample_tree / "sub")

        def scandir(path="."):
            if str(path).rstrip(os.sep) == blocked:
                raise PermissionError(13, "Permission denied", path)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)

        entries, errors = search_fs(str(sample_tree / "**" / "*.txt"))

        assert [e.path for e in entries] == [str(sample_tree / "a.txt")]
        assert errors == []

    def test_partial_failure(self, sample_tree, monkeypatch):
        """One unreadable path adds an error; the others still match."""
        original = FileEntry.from_path

        def failing(path):
            if path.endswith("b.txt"):
                raise PermissionError(13, "Permission denied", path)
            return original(path)

        monkeypatch.setattr(FileEntry, "from_path", staticmethod(failing))

        entries, errors = search_fs(str(sample_tree / "**" / "*.txt"))

        assert len(entries) == 2
        assert len(errors) == 1
        assert "Permission denied" in errors[0]


# =============================================================================
# Tool Tests
# =============================================================================


def _call(args):
    return FunctionCall(
        id="call-1",
        name="search_fs",
        args=value_from_json(args) if args is not None else None,
    )


class TestSearchFsTool:
    """Tests for SearchFsTool.execute()."""

    @pytest.mark.asyncio
    async def test_response_shape(self, sample_tree):
        tool = SearchFsTool()

        response = await tool.execute(_call({"pattern": str(sample_tree / "a.txt")}))

        assert response.id == "call-1"
        assert response.name == "search_fs"
        payload = value_to_json(response.response)
        assert payload["errors"] == []
        assert [r["path"] for r in payload["results"]] == [str(sample_tree / "a.txt")]
        assert set(payload["results"][0]) == {"path", "uid", "gid", "mode"}

    @pytest.mark.asyncio
    async def test_zero_matches(self, tmp_path):
        tool = SearchFsTool()

        response = await tool.execute(_call({"pattern": str(tmp_path / "*.none")}))

        assert value_to_json(response.response) == {"results": [], "errors": []}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "args,message",
        [
            (None, "Argument is none"),
            ({}, "Required argument 'pattern' is missing"),
            ({"pattern": None}, "Required argument 'pattern' is null"),
            ({"pattern": 42}, "String argument 'pattern' is not a string"),
        ],
    )
    async def test_argument_errors(self, args, message):
        tool = SearchFsTool()

        response = await tool.execute(_call(args))

        assert value_to_json(response.response) == {"results": [], "errors": [message]}

    def test_declaration(self):
        declaration = SearchFsTool().to_function_declaration()

        assert declaration["name"] == "search_fs"
        assert declaration["parameters"]["required"] == ["pattern"]
        assert "results" in declaration["response"]["properties"]
