"""
Conversation Turn data model.

A Turn is one role-tagged, ordered group of Parts. A Part carries zero
or one payload out of a closed set:

    Text | Blob | FunctionCall | FunctionResponse | FileData
    | ExecutableCode | CodeExecutionResult

Wire format (one JSON object per Part, payload flattened next to a tag):

    {"type": "text", "text": "hello"}
    {"type": "function_call", "id": "c1", "name": "search_fs", "args": {...}}
    {}                                    # empty part

and one object per Turn:

    {"parts": [...], "role": "model"}
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

from .value import StructValue, struct_from_json


class TurnParseError(ValueError):
    """Raised when a serialized Turn or Part cannot be parsed."""

    pass


class Role(str, Enum):
    """Author of a turn."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"
    TOOL = "tool"


# =============================================================================
# Part payloads
# =============================================================================


@dataclass(frozen=True, slots=True)
class Text:
    text: str

    type_tag = "text"

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Text:
        return cls(text=_require(data, "text", str))


@dataclass(frozen=True, slots=True)
class Blob:
    """Inline binary data. Serialized as base64."""

    mime_type: str
    data: bytes

    type_tag = "inline_data"

    def to_dict(self) -> dict[str, Any]:
        return {
            "mime_type": self.mime_type,
            "data": base64.b64encode(self.data).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Blob:
        raw = _require(data, "data", str)
        try:
            decoded = base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError) as e:
            raise TurnParseError(f"Invalid base64 in inline_data: {e}") from e
        return cls(mime_type=_require(data, "mime_type", str), data=decoded)


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """A model-issued request to invoke a named tool."""

    id: str
    name: str
    args: StructValue | None = None

    type_tag = "function_call"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "args": self.args.to_json() if self.args is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionCall:
        return cls(
            id=_require(data, "id", str),
            name=_require(data, "name", str),
            args=_optional_struct(data, "args"),
        )


@dataclass(frozen=True, slots=True)
class FunctionResponse:
    """The structured result of a FunctionCall, correlated by id."""

    id: str
    name: str
    response: StructValue | None = None

    type_tag = "function_response"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "response": self.response.to_json() if self.response is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionResponse:
        return cls(
            id=_require(data, "id", str),
            name=_require(data, "name", str),
            response=_optional_struct(data, "response"),
        )


@dataclass(frozen=True, slots=True)
class FileData:
    """Reference to a file by URI."""

    mime_type: str
    file_uri: str

    type_tag = "file_data"

    def to_dict(self) -> dict[str, Any]:
        return {"mime_type": self.mime_type, "file_uri": self.file_uri}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileData:
        return cls(
            mime_type=_require(data, "mime_type", str),
            file_uri=_require(data, "file_uri", str),
        )


@dataclass(frozen=True, slots=True)
class ExecutableCode:
    language: int
    code: str

    type_tag = "executable_code"

    def to_dict(self) -> dict[str, Any]:
        return {"language": self.language, "code": self.code}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutableCode:
        return cls(
            language=_require(data, "language", int),
            code=_require(data, "code", str),
        )


@dataclass(frozen=True, slots=True)
class CodeExecutionResult:
    outcome: int
    output: str

    type_tag = "code_execution_result"

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": self.outcome, "output": self.output}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodeExecutionResult:
        return cls(
            outcome=_require(data, "outcome", int),
            output=_require(data, "output", str),
        )


PartData = Union[
    Text,
    Blob,
    FunctionCall,
    FunctionResponse,
    FileData,
    ExecutableCode,
    CodeExecutionResult,
]

_PAYLOAD_TYPES: dict[str, type] = {
    cls.type_tag: cls
    for cls in (
        Text,
        Blob,
        FunctionCall,
        FunctionResponse,
        FileData,
        ExecutableCode,
        CodeExecutionResult,
    )
}


def _require(data: dict[str, Any], key: str, kind: type) -> Any:
    if key not in data:
        raise TurnParseError(f"missing field `{key}`")
    value = data[key]
    # bool passes isinstance(int); reject it for integer fields
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise TurnParseError(f"field `{key}` must be of type {kind.__name__}")
    return value


def _optional_struct(data: dict[str, Any], key: str) -> StructValue | None:
    raw = data.get(key)
    if raw is None:
        return None
    try:
        return struct_from_json(raw)
    except ValueError as e:
        raise TurnParseError(f"field `{key}`: {e}") from e


# =============================================================================
# Part and Turn
# =============================================================================


@dataclass(frozen=True, slots=True)
class Part:
    """One payload unit within a turn. ``data`` is None for an empty part."""

    data: PartData | None = None

    @classmethod
    def text(cls, text: str) -> Part:
        return cls(Text(text))

    @property
    def function_call(self) -> FunctionCall | None:
        return self.data if isinstance(self.data, FunctionCall) else None

    def to_dict(self) -> dict[str, Any]:
        if self.data is None:
            return {}
        if not isinstance(self.data, tuple(_PAYLOAD_TYPES.values())):
            raise TypeError(f"Unknown part payload: {type(self.data).__name__}")
        return {"type": self.data.type_tag, **self.data.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> Part:
        if not isinstance(data, dict):
            raise TurnParseError("part must be a JSON object")
        if not data:
            return cls()
        tag = data.get("type")
        payload_cls = _PAYLOAD_TYPES.get(tag) if isinstance(tag, str) else None
        if payload_cls is None:
            raise TurnParseError(f"unknown part type: {tag!r}")
        return cls(payload_cls.from_dict(data))


@dataclass(frozen=True, slots=True)
class Turn:
    """
    One exchange unit of the conversation.

    Attributes:
        role: Who produced the turn
        parts: Ordered payloads; order is significant
    """

    role: Role
    parts: tuple[Part, ...] = ()

    @classmethod
    def user(cls, parts: list[Part] | tuple[Part, ...]) -> Turn:
        return cls(role=Role.USER, parts=tuple(parts))

    @classmethod
    def model(cls, parts: list[Part] | tuple[Part, ...]) -> Turn:
        return cls(role=Role.MODEL, parts=tuple(parts))

    @classmethod
    def system(cls, parts: list[Part] | tuple[Part, ...]) -> Turn:
        return cls(role=Role.SYSTEM, parts=tuple(parts))

    @classmethod
    def tool(cls, parts: list[Part] | tuple[Part, ...]) -> Turn:
        return cls(role=Role.TOOL, parts=tuple(parts))

    @classmethod
    def system_text(cls, message: str) -> Turn:
        """Create a single-text system turn (used for transient errors)."""
        return cls.system([Part.text(message)])

    def with_role(self, role: Role) -> Turn:
        return replace(self, role=role)

    def function_calls(self) -> list[FunctionCall]:
        """All function calls in this turn, in part order."""
        return [p.data for p in self.parts if isinstance(p.data, FunctionCall)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "parts": [p.to_dict() for p in self.parts],
            "role": self.role.value,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Turn:
        """
        Parse a Turn from its decoded JSON form.

        Raises:
            TurnParseError: On unknown roles, unknown part types, or missing fields
        """
        if not isinstance(data, dict):
            raise TurnParseError("turn must be a JSON object")
        raw_role = _require(data, "role", str)
        try:
            role = Role(raw_role)
        except ValueError:
            raise TurnParseError(f"unknown role: {raw_role!r}") from None
        raw_parts = _require(data, "parts", list)
        return cls(role=role, parts=tuple(Part.from_dict(p) for p in raw_parts))


__all__ = [
    "Blob",
    "CodeExecutionResult",
    "ExecutableCode",
    "FileData",
    "FunctionCall",
    "FunctionResponse",
    "Part",
    "PartData",
    "Role",
    "Text",
    "Turn",
    "TurnParseError",
]
