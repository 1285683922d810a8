"""
Filesystem Search Tool (search_fs).

Expands a shell-style glob (recursive ``**`` supported) and reports, for
every match, its owner, group and ``ls -l`` style permission string.
Symlinks are not followed: attributes describe the link itself.

Partial failures are aggregated. A matched path whose metadata cannot be
read adds an error string and the walk continues, so one response can
carry both results and errors. Directories that cannot be listed during
the walk are skipped silently and are not reported.

Response:
    {"results": [{"path", "uid", "gid", "mode"}, ...], "errors": [str, ...]}
"""

from __future__ import annotations

import asyncio
import glob
import logging
import os
import stat
from dataclasses import dataclass
from typing import Any

from fschat.conversation.turn import FunctionCall, FunctionResponse

from .base import Tool, ToolArgumentError, require_string_arg

logger = logging.getLogger(__name__)


class GlobPatternError(ValueError):
    """The glob expression does not compile."""

    def __init__(self, pos: int, msg: str):
        self.pos = pos
        self.msg = msg
        super().__init__(f"Pattern syntax error near position {pos}: {msg}")


_ERROR_WILDCARDS = "wildcards are either regular `*` or recursive `**`"
_ERROR_RECURSIVE_WILDCARDS = "recursive wildcards must form a single path component"
_ERROR_INVALID_RANGE = "invalid range pattern"


def compile_pattern(pattern: str) -> str:
    """
    Check glob syntax before expansion.

    The stdlib glob treats malformed patterns as literals; here they are
    rejected instead: runs of three or more ``*``, a ``**`` that is not a
    whole path component, and ``[`` without a closing ``]``.

    Returns:
        The pattern, unchanged

    Raises:
        GlobPatternError: With the offending position
    """
    chars = pattern
    n = len(chars)
    i = 0
    while i < n:
        c = chars[i]
        if c == "*":
            start = i
            while i < n and chars[i] == "*":
                i += 1
            count = i - start
            if count > 2:
                raise GlobPatternError(start + 2, _ERROR_WILDCARDS)
            if count == 2:
                if start != 0 and chars[start - 1] != os.sep:
                    raise GlobPatternError(start - 1, _ERROR_RECURSIVE_WILDCARDS)
                if i < n and chars[i] != os.sep:
                    raise GlobPatternError(i, _ERROR_RECURSIVE_WILDCARDS)
            continue
        if c == "[":
            # The first class character may itself be "]", hence the offsets.
            if i + 4 <= n and chars[i + 1] == "!":
                close = chars.find("]", i + 3)
            elif i + 3 <= n and chars[i + 1] != "!":
                close = chars.find("]", i + 2)
            else:
                close = -1
            if close < 0:
                raise GlobPatternError(i, _ERROR_INVALID_RANGE)
            i = close + 1
            continue
        i += 1
    return pattern


# =============================================================================
# Permission string
# =============================================================================

_FILE_TYPE_CHARS = (
    (stat.S_IFREG, "-"),
    (stat.S_IFDIR, "d"),
    (stat.S_IFLNK, "l"),
    (stat.S_IFCHR, "c"),
    (stat.S_IFBLK, "b"),
    (stat.S_IFIFO, "p"),
    (stat.S_IFSOCK, "s"),
)

_PERMISSION_CHARS = "rwxrwxrwx"


def file_type_char(mode: int) -> str:
    """Type letter for the S_IFMT bits of mode, ``?`` if unknown."""
    fmt = stat.S_IFMT(mode)
    for bits, char in _FILE_TYPE_CHARS:
        if fmt == bits:
            return char
    return "?"


def mode_to_str(mode: int) -> str:
    """
    Render raw st_mode bits as a 10-character permission string.

    Special bits replace the execute column whether or not the execute
    bit is set: sticky -> ``t`` (others), setgid -> ``s`` (group),
    setuid -> ``s`` (owner).

    Example:
        mode_to_str(0o100644) == "-rw-r--r--"
        mode_to_str(0o040755) == "drwxr-xr-x"
        mode_to_str(0o041000) == "d--------t"
    """
    chars = ["-"] * 10
    chars[0] = file_type_char(mode)

    for i, letter in enumerate(_PERMISSION_CHARS):
        if mode & (1 << (8 - i)):
            chars[i + 1] = letter

    if mode & stat.S_ISVTX:
        chars[9] = "t"
    if mode & stat.S_ISGID:
        chars[6] = "s"
    if mode & stat.S_ISUID:
        chars[3] = "s"

    return "".join(chars)


# =============================================================================
# Search
# =============================================================================


@dataclass(frozen=True, slots=True)
class FileEntry:
    """One search_fs match."""

    path: str
    uid: int
    gid: int
    mode: str

    @classmethod
    def from_path(cls, path: str) -> FileEntry:
        """
        Read metadata for path without following symlinks.

        Raises:
            OSError: If the path cannot be stat'ed
        """
        st = os.lstat(path)
        return cls(path=path, uid=st.st_uid, gid=st.st_gid, mode=mode_to_str(st.st_mode))

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "uid": self.uid, "gid": self.gid, "mode": self.mode}


def search_fs(pattern: str) -> tuple[list[FileEntry], list[str]]:
    """
    Expand pattern and stat every match.

    A compile failure yields no results and one error. Zero matches is
    not an error.

    Returns:
        Tuple of (entries, errors)
    """
    entries: list[FileEntry] = []
    errors: list[str] = []

    try:
        compile_pattern(pattern)
    except GlobPatternError as e:
        errors.append(str(e))
        return entries, errors

    for path in sorted(glob.glob(pattern, recursive=True, include_hidden=True)):
        try:
            entries.append(FileEntry.from_path(path))
        except OSError as e:
            errors.append(str(e))

    return entries, errors


class SearchFsTool(Tool):
    """Glob search over the user's filesystem."""

    name = "search_fs"

    description = """
Search file or directory on user's filesystem using glob expression.
Error and successful result can be returned at once,
when the operation failed for only some of the files (e.g. insufficient permission).

## Usage

The glob expression syntax is the standard UNIX glob expression syntax.

## Examples

- `/repos/**/*.cxx` : Find `.cxx` file in `/repos` recursively
- `/repos/*.h` : Find `.h` file in `/repos` not-recursively
"""

    input_schema = {
        "type": "object",
        "properties": {
            "pattern": {
                "type": "string",
                "description": "Glob expression to search",
            },
        },
        "required": ["pattern"],
    }

    response_schema = {
        "type": "object",
        "properties": {
            "errors": {
                "type": "array",
                "description": "Exceptions occurred during operation",
                "nullable": True,
                "items": {"type": "string"},
            },
            "results": {
                "type": "array",
                "description": "An array of glob search result",
                "nullable": True,
                "items": {
                    "type": "object",
                    "description": "A glob search result",
                    "properties": {
                        "path": {"type": "string"},
                        "uid": {"type": "integer"},
                        "gid": {"type": "integer"},
                        "mode": {"type": "string"},
                    },
                    "required": ["path", "uid", "gid", "mode"],
                },
            },
        },
    }

    async def execute(self, call: FunctionCall) -> FunctionResponse:
        try:
            pattern = require_string_arg(call.args, "pattern")
        except ToolArgumentError as e:
            return self.respond(call, {"results": [], "errors": [str(e)]})

        loop = asyncio.get_running_loop()
        entries, errors = await loop.run_in_executor(None, search_fs, pattern)

        logger.info(
            f"[search_fs] {pattern!r}: {len(entries)} result(s), {len(errors)} error(s)"
        )
        return self.respond(
            call,
            {
                "results": [entry.to_dict() for entry in entries],
                "errors": errors,
            },
        )


__all__ = [
    "FileEntry",
    "GlobPatternError",
    "SearchFsTool",
    "compile_pattern",
    "file_type_char",
    "mode_to_str",
    "search_fs",
]
