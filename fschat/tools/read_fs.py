"""
Filesystem Read Tool (read_fs).

Reads a whole file as UTF-8 text.

Response:
    {"result": "<content>"}  on success
    {"error": "<message>"}   on any failure (argument, I/O, decoding, size)
"""

from __future__ import annotations

import asyncio
import logging
import os

from fschat.conversation.turn import FunctionCall, FunctionResponse

from .base import Tool, ToolArgumentError, require_string_arg

logger = logging.getLogger(__name__)


class FileTooLargeError(OSError):
    """The file exceeds the configured read cap."""

    pass


def read_fs(path: str, max_bytes: int | None = None) -> str:
    """
    Read path as strict UTF-8.

    Args:
        path: File to read
        max_bytes: Refuse files larger than this (None = no limit)

    Raises:
        OSError: Not found, permission denied, is a directory, too large
        UnicodeDecodeError: Content is not valid UTF-8
    """
    if max_bytes is not None:
        size = os.stat(path).st_size
        if size > max_bytes:
            raise FileTooLargeError(
                f"File is too large to read: {size} bytes (limit {max_bytes})"
            )
    with open(path, encoding="utf-8", errors="strict") as f:
        return f.read()


class ReadFsTool(Tool):
    """Read a file on the user's filesystem."""

    name = "read_fs"

    description = "Read file on user's filesystem."

    input_schema = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Path of file to read",
            },
        },
        "required": ["path"],
    }

    response_schema = {
        "type": "object",
        "properties": {
            "error": {
                "type": "string",
                "description": "(Optional) Error during read",
            },
            "result": {
                "type": "string",
                "description": "(Optional) Content of file",
            },
        },
    }

    def __init__(self, max_bytes: int | None = None):
        self._max_bytes = max_bytes

    async def execute(self, call: FunctionCall) -> FunctionResponse:
        try:
            path = require_string_arg(call.args, "path")
        except ToolArgumentError as e:
            return self.respond(call, {"error": str(e)})

        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, read_fs, path, self._max_bytes)
        except (OSError, UnicodeDecodeError) as e:
            logger.info(f"[read_fs] {path!r} failed: {e}")
            return self.respond(call, {"error": str(e)})

        logger.info(f"[read_fs] {path!r}: {len(content)} characters")
        return self.respond(call, {"result": content})


__all__ = [
    "FileTooLargeError",
    "ReadFsTool",
    "read_fs",
]
