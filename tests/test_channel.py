"""
Tests for OutputChannel.
"""

import asyncio
import json

import pytest

from fschat.agent import OutputChannel, format_sse
from fschat.conversation import Part, Turn


async def drain(channel):
    return [event async for event in channel.events()]


class TestOutputChannel:
    """Tests for send/close/events."""

    @pytest.mark.asyncio
    async def test_one_event_per_turn(self):
        channel = OutputChannel()

        assert await channel.send(Turn.model([Part.text("a")]))
        assert await channel.send(Turn.tool([Part.text("b")]))
        await channel.close()

        events = await drain(channel)

        assert [json.loads(e)["role"] for e in events] == ["model", "tool"]

    @pytest.mark.asyncio
    async def test_events_keep_non_ascii(self):
        channel = OutputChannel()

        await channel.send(Turn.model([Part.text("héllo")]))
        await channel.close()

        assert "héllo" in (await drain(channel))[0]

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        channel = OutputChannel()

        await channel.close()
        await channel.close()

        assert channel.closed
        assert await drain(channel) == []

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self):
        channel = OutputChannel()
        await channel.close()

        with pytest.raises(RuntimeError):
            await channel.send(Turn.model([]))

    @pytest.mark.asyncio
    async def test_send_after_disconnect_is_dropped(self):
        channel = OutputChannel()
        channel.disconnect()

        assert await channel.send(Turn.model([Part.text("lost")])) is False
        assert len(channel) == 0

    @pytest.mark.asyncio
    async def test_disconnect_unblocks_full_queue(self):
        channel = OutputChannel(capacity=1)
        await channel.send(Turn.model([Part.text("1")]))

        blocked = asyncio.create_task(channel.send(Turn.model([Part.text("2")])))
        await asyncio.sleep(0)
        assert not blocked.done()

        channel.disconnect()
        await asyncio.wait_for(blocked, timeout=1)

        assert channel.disconnected


class TestFormatSse:
    """Tests for format_sse()."""

    def test_framing(self):
        assert format_sse('{"a": 1}') == 'data: {"a": 1}\n\n'
