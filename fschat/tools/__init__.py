"""
fschat Tools.

Model-callable filesystem tools and the registry that dispatches to them:
- search_fs: glob search with owner/group/permission metadata
- read_fs: whole-file text read

Usage:
    registry = create_default_registry()
    response = await registry.dispatch(call)
"""

from .base import Tool, ToolArgumentError, require_string_arg
from .read_fs import FileTooLargeError, ReadFsTool, read_fs
from .registry import (
    ToolDispatchError,
    ToolRegistry,
    ToolRegistryError,
    create_default_registry,
)
from .search_fs import (
    FileEntry,
    GlobPatternError,
    SearchFsTool,
    compile_pattern,
    mode_to_str,
    search_fs,
)

__all__ = [
    # Core
    "Tool",
    "ToolArgumentError",
    "require_string_arg",
    "ToolRegistry",
    "ToolRegistryError",
    "ToolDispatchError",
    "create_default_registry",
    # search_fs
    "FileEntry",
    "GlobPatternError",
    "SearchFsTool",
    "compile_pattern",
    "mode_to_str",
    "search_fs",
    # read_fs
    "FileTooLargeError",
    "ReadFsTool",
    "read_fs",
]
