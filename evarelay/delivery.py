"""Ordered chunk delivery.

A delivery sink accepts one chunk at a time. The caller picks the sink
explicitly: reply to the triggering message, or send to a channel.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog

from evarelay.chunking import DEFAULT_MAX_LENGTH, split_message

logger = structlog.get_logger()


class DeliverySink(ABC):
    """Destination for message chunks."""

    name: str = "sink"

    @abstractmethod
    async def deliver(self, content: str) -> None:
        """Send a single chunk. Raises on failure."""
        ...


class ReplySink(DeliverySink):
    """Replies to a message (``message.reply(content)``)."""

    name = "reply"

    def __init__(self, message: Any) -> None:
        self.message = message

    async def deliver(self, content: str) -> None:
        await self.message.reply(content)


class ChannelSink(DeliverySink):
    """Sends to a channel (``channel.send(content)``)."""

    name = "send"

    def __init__(self, channel: Any) -> None:
        self.channel = channel

    async def deliver(self, content: str) -> None:
        await self.channel.send(content)


class CallableSink(DeliverySink):
    """Wraps any ``async def fn(content)``."""

    name = "callable"

    def __init__(self, fn: Callable[[str], Awaitable[Any]]) -> None:
        self._fn = fn

    async def deliver(self, content: str) -> None:
        await self._fn(content)


@dataclass
class DeliveryReport:
    """Outcome of delivering one message as a sequence of chunks."""

    total: int = 0
    delivered: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)  # chunk index -> error

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)


def enforce_limit(chunk: str, max_len: int) -> str:
    """Hard-truncate a chunk that would exceed the transport limit."""
    if len(chunk) <= max_len:
        return chunk
    logger.warning("chunk_truncated", length=len(chunk), max_len=max_len)
    return chunk[:max_len]


async def deliver_chunks(
    sink: DeliverySink,
    chunks: list[str],
    max_len: int = DEFAULT_MAX_LENGTH,
) -> DeliveryReport:
    """Deliver chunks one at a time, in order.

    A failing chunk is logged and recorded; delivery continues with the
    next chunk. Nothing is retried.
    """
    report = DeliveryReport(total=len(chunks))

    for index, chunk in enumerate(chunks):
        try:
            await sink.deliver(enforce_limit(chunk, max_len))
        except Exception as e:
            logger.error(
                "chunk_delivery_failed",
                sink=sink.name,
                index=index,
                total=len(chunks),
                error=str(e),
            )
            report.failed[index] = str(e)
        else:
            report.delivered.append(index)

    if report.failed:
        logger.warning(
            "message_partially_delivered",
            sink=sink.name,
            delivered=len(report.delivered),
            failed=len(report.failed),
        )
    return report


async def send_in_chunks(
    sink: DeliverySink,
    text: str | None,
    max_len: int = DEFAULT_MAX_LENGTH,
) -> DeliveryReport:
    """Split text and deliver every chunk to the sink in order."""
    return await deliver_chunks(sink, split_message(text, max_len), max_len)
