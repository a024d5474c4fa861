"""HTTP client for the response-generating worker.

Every inbound message is posted to the worker so it can keep conversation
memory; the worker only returns a response when one was requested.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from evarelay.config import WorkerConfig

logger = structlog.get_logger()


@dataclass
class ChatRequest:
    """An inbound chat message as forwarded to the worker."""

    session_id: str
    author: str
    content: str
    respond: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "input": self.content,
            "author": self.author,
            "respond": self.respond,
        }


class WorkerClient:
    """Posts chat requests to the worker's /chat endpoint."""

    def __init__(self, config: WorkerConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    async def chat(self, request: ChatRequest) -> str | None:
        """Forward a message and return the worker's response text, if any.

        Raises httpx.HTTPError on transport or status errors, and ValueError
        if the body is not JSON.
        """
        if self._client is not None:
            resp = await self._client.post(
                self.config.chat_url,
                json=request.to_payload(),
                timeout=self.config.timeout,
            )
        else:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self.config.chat_url,
                    json=request.to_payload(),
                    timeout=self.config.timeout,
                )

        resp.raise_for_status()
        data = resp.json()

        response = data.get("response") if isinstance(data, dict) else None
        logger.debug(
            "worker_response",
            session_id=request.session_id,
            respond=request.respond,
            response_len=len(response) if response else 0,
        )
        if not response:
            return None
        return str(response)
