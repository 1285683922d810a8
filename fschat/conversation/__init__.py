"""
fschat Conversation Layer.

Data model and state for the conversation:
- Structured Value: recursive JSON-like tool argument/result type
- Turn / Part: role-tagged groups of payloads
- ConversationStore: lock-protected, append-only history
"""

from .store import DEFAULT_SESSION, ConversationStore, LockedHistory, SessionStore
from .turn import (
    Blob,
    CodeExecutionResult,
    ExecutableCode,
    FileData,
    FunctionCall,
    FunctionResponse,
    Part,
    PartData,
    Role,
    Text,
    Turn,
    TurnParseError,
)
from .value import (
    BoolValue,
    ListValue,
    NullValue,
    NumberValue,
    StringValue,
    StructValue,
    Value,
    struct_from_json,
    value_from_json,
    value_from_python,
    value_to_json,
)

__all__ = [
    # Structured Value
    "BoolValue",
    "ListValue",
    "NullValue",
    "NumberValue",
    "StringValue",
    "StructValue",
    "Value",
    "struct_from_json",
    "value_from_json",
    "value_from_python",
    "value_to_json",
    # Turns
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
    # Store
    "DEFAULT_SESSION",
    "ConversationStore",
    "LockedHistory",
    "SessionStore",
]
