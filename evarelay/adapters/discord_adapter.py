"""Discord adapter using discord.py v2+.

Features:
- Async client with Intents (guilds, guild messages, message_content)
- Forwards every human message to the worker for memory
- Replies when mentioned or when the message starts with the command prefix
- Fence-aware message splitting (2000 char limit)
- User/channel whitelist (optional, empty = allow all)
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from evarelay.adapters.base import BaseAdapter
from evarelay.config import RelayConfig
from evarelay.delivery import ChannelSink, DeliverySink, ReplySink
from evarelay.worker_client import ChatRequest, WorkerClient

logger = structlog.get_logger()


class DiscordAdapter(BaseAdapter):
    """Discord bot adapter.

    Session key sent to the worker is the guild ID, so a whole server shares
    one conversation memory. Direct messages fall back to the channel ID.
    """

    name = "discord"

    def __init__(self, worker: WorkerClient, config: RelayConfig) -> None:
        super().__init__(worker, config)
        self.max_message_length = config.discord.max_message_length
        self._bot = None
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Initialize the Discord client and start it."""
        token = self.config.discord.get_bot_token()
        if not token:
            env_var = self.config.discord.bot_token_env
            raise RuntimeError(
                f"Discord bot token not found. "
                f"Set the {env_var} environment variable."
            )

        import discord

        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.message_content = True

        self._bot = discord.Client(intents=intents)

        @self._bot.event
        async def on_ready():
            logger.info(
                "discord_started",
                bot_user=str(self._bot.user),
                bot_id=self._bot.user.id if self._bot.user else None,
                guild_count=len(self._bot.guilds),
            )

        @self._bot.event
        async def on_message(message: discord.Message):
            await self.handle_message(message)

        logger.info("discord_starting", bot_token="***" + token[-4:])

        self._task = asyncio.create_task(self._bot.start(token))

    async def stop(self) -> None:
        """Stop the Discord client gracefully."""
        if self._bot:
            try:
                await self._bot.close()
            except Exception as e:
                logger.warning("discord_stop_error", error=str(e))
            logger.info("discord_stopped")

    async def wait_closed(self) -> None:
        """Block until the client task finishes."""
        if self._task is not None:
            await self._task

    def _is_user_allowed(self, user_id: int) -> bool:
        """Check if the user is in the whitelist (if configured)."""
        allowed = self.config.discord.allowed_user_ids
        if not allowed:
            return True  # Empty list = allow all
        return user_id in allowed

    def _is_channel_allowed(self, channel_id: int) -> bool:
        """Check if the channel is in the whitelist (if configured)."""
        allowed = self.config.discord.allowed_channel_ids
        if not allowed:
            return True  # Empty list = allow all
        return channel_id in allowed

    def _should_respond(self, message: Any) -> bool:
        """Respond when mentioned or when the prefix is used."""
        cfg = self.config.discord
        if message.content.startswith(cfg.command_prefix):
            return True
        bot_user = self._bot.user if self._bot else None
        if cfg.respond_to_mentions and bot_user is not None:
            return bot_user in message.mentions
        return False

    def _session_id(self, message: Any) -> str:
        guild = getattr(message, "guild", None)
        if guild is not None:
            return str(guild.id)
        return str(message.channel.id)

    def _sink_for(self, message: Any) -> DeliverySink:
        if self.config.discord.reply_mode == "reply":
            return ReplySink(message)
        return ChannelSink(message.channel)

    async def handle_message(self, message: Any) -> None:
        """Filter an inbound message and relay it to the worker."""
        if message.author.bot:
            return

        if not self._is_user_allowed(message.author.id):
            return

        if not self._is_channel_allowed(message.channel.id):
            return

        respond = self._should_respond(message)
        if not respond and not self.config.discord.forward_all:
            return

        request = ChatRequest(
            session_id=self._session_id(message),
            author=str(message.author.id),
            content=message.content,
            respond=respond,
        )

        logger.info(
            "discord_message",
            user_id=message.author.id,
            channel_id=message.channel.id,
            session_id=request.session_id,
            respond=respond,
            text_len=len(message.content),
        )

        if respond:
            async with message.channel.typing():
                await self.relay(request, self._sink_for(message))
        else:
            await self.relay(request, self._sink_for(message))
