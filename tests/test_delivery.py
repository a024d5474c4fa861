"""Tests for ordered chunk delivery and sinks."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, call

import pytest

from evarelay.chunking import split_message
from evarelay.delivery import (
    CallableSink,
    ChannelSink,
    DeliveryReport,
    ReplySink,
    deliver_chunks,
    enforce_limit,
    send_in_chunks,
)


# =============================================================
# Sink Tests
# =============================================================

class TestSinks:
    @pytest.mark.asyncio
    async def test_reply_sink_uses_reply(self):
        message = MagicMock()
        message.reply = AsyncMock()
        message.channel.send = AsyncMock()

        await ReplySink(message).deliver("hi")

        message.reply.assert_awaited_once_with("hi")
        message.channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_channel_sink_uses_send(self):
        channel = MagicMock()
        channel.send = AsyncMock()

        await ChannelSink(channel).deliver("hi")

        channel.send.assert_awaited_once_with("hi")

    @pytest.mark.asyncio
    async def test_callable_sink(self):
        fn = AsyncMock()
        await CallableSink(fn).deliver("hi")
        fn.assert_awaited_once_with("hi")


# =============================================================
# Delivery Tests
# =============================================================

class TestDeliverChunks:
    @pytest.mark.asyncio
    async def test_failure_does_not_stop_delivery(self):
        fn = AsyncMock(side_effect=[None, RuntimeError("boom"), None, None])
        chunks = ["one", "two", "three", "four"]

        report = await deliver_chunks(CallableSink(fn), chunks)

        assert fn.await_args_list == [call(c) for c in chunks]
        assert report.total == 4
        assert report.delivered == [0, 2, 3]
        assert report.failed == {1: "boom"}
        assert report.attempted == 4
        assert report.ok is False

    @pytest.mark.asyncio
    async def test_all_delivered(self):
        fn = AsyncMock()
        report = await deliver_chunks(CallableSink(fn), ["a", "b"])
        assert report.ok is True
        assert report.delivered == [0, 1]

    @pytest.mark.asyncio
    async def test_oversized_chunk_truncated(self):
        fn = AsyncMock()
        await deliver_chunks(CallableSink(fn), ["x" * 10], max_len=5)
        fn.assert_awaited_once_with("xxxxx")

    @pytest.mark.asyncio
    async def test_empty_sequence(self):
        fn = AsyncMock()
        report = await deliver_chunks(CallableSink(fn), [])
        fn.assert_not_awaited()
        assert report == DeliveryReport(total=0)


class TestEnforceLimit:
    def test_within_limit_unchanged(self):
        assert enforce_limit("abc", 3) == "abc"

    def test_truncates(self):
        assert enforce_limit("abcdef", 4) == "abcd"


class TestSendInChunks:
    @pytest.mark.asyncio
    async def test_sends_in_order(self):
        sent: list[str] = []

        async def record(content: str) -> None:
            sent.append(content)

        text = "para one\n\n" * 300 + "```" + "code\n" * 500 + "```"
        report = await send_in_chunks(CallableSink(record), text, 2000)

        assert sent == split_message(text, 2000)
        assert report.total == len(sent)
        assert all(len(c) <= 2000 for c in sent)

    @pytest.mark.asyncio
    async def test_empty_text_sends_nothing(self):
        fn = AsyncMock()
        report = await send_in_chunks(CallableSink(fn), "")
        fn.assert_not_awaited()
        assert report.total == 0

    @pytest.mark.asyncio
    async def test_none_text_sends_nothing(self):
        fn = AsyncMock()
        report = await send_in_chunks(CallableSink(fn), None)
        fn.assert_not_awaited()
        assert report.attempted == 0
