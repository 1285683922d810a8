"""
Tests for Turn and Part serialization.
"""

import json

import pytest

from fschat.conversation import (
    Blob,
    CodeExecutionResult,
    ExecutableCode,
    FileData,
    FunctionCall,
    FunctionResponse,
    Part,
    Role,
    Text,
    Turn,
    TurnParseError,
    value_from_json,
)

# =============================================================================
# Part Tests
# =============================================================================


class TestPartSerialization:
    """Tests for Part.to_dict() / Part.from_dict()."""

    def test_text_part(self):
        part = Part.text("hello")

        assert part.to_dict() == {"type": "text", "text": "hello"}

    def test_function_call_part(self):
        part = Part(FunctionCall(id="c1", name="search_fs", args=value_from_json({"pattern": "*"})))

        assert part.to_dict() == {
            "type": "function_call",
            "id": "c1",
            "name": "search_fs",
            "args": {"pattern": "*"},
        }

    def test_function_call_without_args(self):
        data = Part(FunctionCall(id="c1", name="read_fs")).to_dict()

        assert data["args"] is None
        assert Part.from_dict(data).data.args is None

    def test_blob_is_base64(self):
        part = Part(Blob(mime_type="image/png", data=b"\x89PNG"))
        data = part.to_dict()

        assert data == {"type": "inline_data", "mime_type": "image/png", "data": "iVBORw=="}
        assert Part.from_dict(data) == part

    def test_invalid_base64_raises(self):
        with pytest.raises(TurnParseError, match="base64"):
            Part.from_dict({"type": "inline_data", "mime_type": "x", "data": "%%%"})

    def test_empty_part_round_trip(self):
        """An empty part serializes as {} and stays empty."""
        part = Part()

        assert part.to_dict() == {}
        assert Part.from_dict({}) == part

    @pytest.mark.parametrize(
        "payload",
        [
            Text("t"),
            Blob(mime_type="application/octet-stream", data=bytes(range(256))),
            FunctionCall(id="c1", name="n", args=value_from_json({"deep": [{"x": []}, {}]})),
            FunctionResponse(id="c1", name="n", response=value_from_json({"results": [], "errors": []})),
            FunctionResponse(id="c2", name="n", response=None),
            FileData(mime_type="text/plain", file_uri="gs://bucket/file"),
            ExecutableCode(language=1, code="print(1)"),
            CodeExecutionResult(outcome=1, output="1\n"),
        ],
    )
    def test_round_trip_through_json_text(self, payload):
        part = Part(payload)
        text = json.dumps(part.to_dict())

        assert Part.from_dict(json.loads(text)) == part

    def test_unknown_type_raises(self):
        with pytest.raises(TurnParseError, match="unknown part type"):
            Part.from_dict({"type": "video", "uri": "x"})

    def test_missing_field_raises(self):
        with pytest.raises(TurnParseError, match="missing field `name`"):
            Part.from_dict({"type": "function_call", "id": "c1"})

    def test_wrong_field_type_raises(self):
        with pytest.raises(TurnParseError, match="language"):
            Part.from_dict({"type": "executable_code", "language": True, "code": ""})


# =============================================================================
# Turn Tests
# =============================================================================


class TestTurn:
    """Tests for Turn."""

    def test_factories_set_roles(self):
        assert Turn.user([]).role == Role.USER
        assert Turn.model([]).role == Role.MODEL
        assert Turn.system([]).role == Role.SYSTEM
        assert Turn.tool([]).role == Role.TOOL

    def test_system_text(self):
        turn = Turn.system_text("boom")

        assert turn.to_dict() == {"parts": [{"type": "text", "text": "boom"}], "role": "system"}

    def test_turn_is_immutable(self):
        turn = Turn.user([Part.text("hi")])

        with pytest.raises(Exception):  # FrozenInstanceError
            turn.role = Role.MODEL

    def test_function_calls_in_part_order(self):
        turn = Turn.model(
            [
                Part.text("looking"),
                Part(FunctionCall(id="b", name="read_fs")),
                Part(),
                Part(FunctionCall(id="a", name="search_fs")),
            ]
        )

        assert [c.id for c in turn.function_calls()] == ["b", "a"]

    def test_round_trip_preserves_part_order(self):
        turn = Turn.model(
            [
                Part.text("1"),
                Part(),
                Part(FunctionCall(id="c1", name="search_fs", args=value_from_json({}))),
                Part.text("2"),
            ]
        )
        text = json.dumps(turn.to_dict())

        assert Turn.from_dict(json.loads(text)) == turn

    def test_parse_client_turn(self):
        turn = Turn.from_dict({"role": "user", "parts": [{"type": "text", "text": "hi"}]})

        assert turn == Turn.user([Part.text("hi")])

    def test_unknown_role_raises(self):
        with pytest.raises(TurnParseError, match="unknown role"):
            Turn.from_dict({"role": "assistant", "parts": []})

    def test_parts_must_be_list(self):
        with pytest.raises(TurnParseError):
            Turn.from_dict({"role": "user", "parts": "hi"})

    def test_turn_must_be_object(self):
        with pytest.raises(TurnParseError):
            Turn.from_dict(["user"])
