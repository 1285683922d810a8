"""
Structured Value for fschat.

A recursive, JSON-like value used to carry tool arguments and tool
results across the model boundary. Every variant is its own frozen
dataclass, so consumers dispatch over exactly six cases:

    NullValue | NumberValue | StringValue | BoolValue | ListValue | StructValue

Wire format is plain JSON (null, number, string, bool, array, object).
Numbers are always float64, so integers parse back as floats.

Usage:
    args = value_from_json({"pattern": "/repos/**/*.py"})
    assert isinstance(args, StructValue)
    pattern = args.fields["pattern"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class NullValue:
    """The JSON null."""

    def to_json(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class NumberValue:
    """A float64 number."""

    value: float

    def to_json(self) -> float:
        return float(self.value)


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool

    def to_json(self) -> bool:
        return self.value


@dataclass(frozen=True, slots=True)
class ListValue:
    """An ordered sequence of values."""

    values: tuple["Value", ...] = ()

    def to_json(self) -> list[Any]:
        return [v.to_json() for v in self.values]


@dataclass(frozen=True, slots=True)
class StructValue:
    """
    A keyed map of values.

    Keys are unique; insertion order carries no meaning, so equality
    compares the mapping only. The mapping is a read-only copy, so a
    stored value can never change after construction.
    """

    fields: Mapping[str, "Value"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __hash__(self) -> int:
        return hash(frozenset(self.fields.items()))

    def get(self, key: str) -> "Value | None":
        return self.fields.get(key)

    def to_json(self) -> dict[str, Any]:
        return {k: v.to_json() for k, v in self.fields.items()}


Value = Union[NullValue, NumberValue, StringValue, BoolValue, ListValue, StructValue]

VALUE_TYPES = (NullValue, NumberValue, StringValue, BoolValue, ListValue, StructValue)


def value_from_json(obj: Any) -> Value:
    """
    Parse a decoded JSON object into a Value tree.

    Raises:
        ValueError: If obj contains something JSON cannot express
    """
    if obj is None:
        return NullValue()
    # bool is a subclass of int, test it first
    if isinstance(obj, bool):
        return BoolValue(obj)
    if isinstance(obj, (int, float)):
        return NumberValue(float(obj))
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, (list, tuple)):
        return ListValue(tuple(value_from_json(v) for v in obj))
    if isinstance(obj, dict):
        return struct_from_json(obj)
    raise ValueError(f"Unsupported structured value type: {type(obj).__name__}")


def struct_from_json(obj: Any) -> StructValue:
    """Parse a decoded JSON object that must be a map."""
    if not isinstance(obj, dict):
        raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
    fields: dict[str, Value] = {}
    for key, val in obj.items():
        if not isinstance(key, str):
            raise ValueError(f"Structured value keys must be strings, got {key!r}")
        fields[key] = value_from_json(val)
    return StructValue(fields)


# Tool handlers build plain Python results; the conversion is the same.
value_from_python = value_from_json


def value_to_json(value: Value) -> Any:
    """Render a Value tree as JSON-compatible Python."""
    if not isinstance(value, VALUE_TYPES):
        raise TypeError(f"Not a structured value: {type(value).__name__}")
    return value.to_json()


__all__ = [
    "BoolValue",
    "ListValue",
    "NullValue",
    "NumberValue",
    "StringValue",
    "StructValue",
    "VALUE_TYPES",
    "Value",
    "struct_from_json",
    "value_from_json",
    "value_from_python",
    "value_to_json",
]
