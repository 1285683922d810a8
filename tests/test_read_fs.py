"""
Tests for the read_fs tool.
"""

import pytest

from fschat.conversation import FunctionCall, value_from_json, value_to_json
from fschat.tools.read_fs import FileTooLargeError, ReadFsTool, read_fs


def _call(args):
    return FunctionCall(
        id="call-7",
        name="read_fs",
        args=value_from_json(args) if args is not None else None,
    )


class TestReadFsFunction:
    """Tests for read_fs()."""

    def test_reads_utf8(self, tmp_path):
        path = tmp_path / "u.txt"
        path.write_bytes("ünïcode\n".encode("utf-8"))

        assert read_fs(str(path)) == "ünïcode\n"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty"
        path.write_bytes(b"")

        assert read_fs(str(path)) == ""

    def test_invalid_utf8_raises(self, tmp_path):
        path = tmp_path / "bin"
        path.write_bytes(b"\xff\xfe\x00")

        with pytest.raises(UnicodeDecodeError):
            read_fs(str(path))

    def test_max_bytes(self, tmp_path):
        path = tmp_path / "big"
        path.write_text("x" * 100)

        assert read_fs(str(path), max_bytes=100) == "x" * 100
        with pytest.raises(FileTooLargeError, match="limit 10"):
            read_fs(str(path), max_bytes=10)


class TestReadFsTool:
    """Tests for ReadFsTool.execute()."""

    @pytest.mark.asyncio
    async def test_success(self, sample_tree):
        response = await ReadFsTool().execute(_call({"path": str(sample_tree / "a.txt")}))

        assert response.id == "call-7"
        assert response.name == "read_fs"
        assert value_to_json(response.response) == {"result": "alpha\n"}

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        response = await ReadFsTool().execute(_call({"path": str(tmp_path / "nope")}))

        payload = value_to_json(response.response)
        assert "result" not in payload
        assert "No such file or directory" in payload["error"]

    @pytest.mark.asyncio
    async def test_directory(self, sample_tree):
        response = await ReadFsTool().execute(_call({"path": str(sample_tree / "sub")}))

        assert "error" in value_to_json(response.response)

    @pytest.mark.asyncio
    async def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "bin"
        path.write_bytes(b"\xff\xfe")

        response = await ReadFsTool().execute(_call({"path": str(path)}))

        assert "utf-8" in value_to_json(response.response)["error"]

    @pytest.mark.asyncio
    async def test_size_cap(self, tmp_path):
        path = tmp_path / "big"
        path.write_text("x" * 100)

        response = await ReadFsTool(max_bytes=10).execute(_call({"path": str(path)}))

        assert "too large" in value_to_json(response.response)["error"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "args,message",
        [
            (None, "Argument is none"),
            ({"other": "x"}, "Required argument 'path' is missing"),
            ({"path": None}, "Required argument 'path' is null"),
            ({"path": ["a"]}, "String argument 'path' is not a string"),
        ],
    )
    async def test_argument_errors(self, args, message):
        response = await ReadFsTool().execute(_call(args))

        assert value_to_json(response.response) == {"error": message}
