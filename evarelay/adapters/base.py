"""Base adapter interface for messaging platforms.

An adapter receives messages from a platform, forwards them to the worker,
and delivers the worker's response back in transport-sized chunks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from evarelay.chunking import DEFAULT_MAX_LENGTH
from evarelay.config import RelayConfig
from evarelay.delivery import DeliveryReport, DeliverySink, send_in_chunks
from evarelay.worker_client import ChatRequest, WorkerClient

logger = structlog.get_logger()


class BaseAdapter(ABC):
    """Abstract base class for messaging platform adapters.

    Subclasses must implement:
    - start(): Initialize and begin receiving messages
    - stop(): Gracefully shutdown the adapter
    """

    name: str = "base"
    max_message_length: int = DEFAULT_MAX_LENGTH

    def __init__(self, worker: WorkerClient, config: RelayConfig) -> None:
        self.worker = worker
        self.config = config

    @abstractmethod
    async def start(self) -> None:
        """Start the adapter (connect, begin polling/listening)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Gracefully stop the adapter."""
        ...

    async def relay(self, request: ChatRequest, sink: DeliverySink) -> DeliveryReport | None:
        """Forward a message to the worker and deliver any response.

        Worker errors are logged and swallowed so one bad message never
        takes the adapter down. Returns None when nothing was delivered.
        """
        try:
            response = await self.worker.chat(request)
        except Exception as e:
            logger.error(
                "worker_request_failed",
                adapter=self.name,
                session_id=request.session_id,
                error=str(e),
            )
            return None

        if not request.respond or not response:
            return None

        report = await send_in_chunks(sink, response, self.max_message_length)
        logger.info(
            "response_delivered",
            adapter=self.name,
            session_id=request.session_id,
            chunks=report.total,
            failed=len(report.failed),
        )
        return report
