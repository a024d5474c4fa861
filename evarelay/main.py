"""evarelay - Discord relay for an AI worker.

Entry point for the application.
Usage:
    python -m evarelay.main                     # Start the Discord adapter
    python -m evarelay.main --init              # Initialize default config
    python -m evarelay.main --split reply.md    # Print how a text would be chunked
    cat reply.md | python -m evarelay.main --split - --max 500
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from evarelay.config import RelayConfig, get_relay_home, load_config, save_default_config

logger = structlog.get_logger()


def setup_logging(level: str = "info") -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _load_env() -> None:
    """Load .env files from the working directory and ~/.evarelay/."""
    from dotenv import load_dotenv

    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    relay_env = get_relay_home() / ".env"
    if relay_env.exists():
        load_dotenv(relay_env)


async def async_discord_main(config: RelayConfig) -> None:
    """Run the Discord adapter until interrupted."""
    from evarelay.adapters.discord_adapter import DiscordAdapter
    from evarelay.worker_client import WorkerClient

    adapter = DiscordAdapter(WorkerClient(config.worker), config)
    await adapter.start()

    print(f"evarelay running, forwarding to {config.worker.chat_url}")
    print("Press Ctrl+C to stop.")

    try:
        await adapter.wait_closed()
    except asyncio.CancelledError:
        pass
    finally:
        await adapter.stop()


def _handle_split(source: str, max_len: int) -> None:
    """Print the chunks a text would be delivered as."""
    from evarelay.chunking import split_message

    if source == "-":
        text = sys.stdin.read()
    else:
        text = Path(source).read_text(encoding="utf-8")

    chunks = split_message(text, max_len)
    for i, chunk in enumerate(chunks, 1):
        print(f"----- chunk {i}/{len(chunks)} ({len(chunk)} chars) -----")
        print(chunk)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="evarelay - Discord relay for an AI worker",
        prog="evarelay",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Initialize default configuration",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (default: ~/.evarelay/config.yaml)",
    )
    parser.add_argument(
        "--discord",
        action="store_true",
        help="Start the Discord adapter (default mode)",
    )
    parser.add_argument(
        "--split",
        type=str,
        default=None,
        metavar="FILE",
        help="Print the chunks FILE would be sent as ('-' for stdin)",
    )
    parser.add_argument(
        "--max",
        type=int,
        default=None,
        help="Chunk length limit for --split (default: discord.max_message_length)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (debug, info, warning, error)",
    )
    args = parser.parse_args()

    config_path = Path(args.config) if args.config else None

    if args.init:
        setup_logging(args.log_level or "info")
        config_path = save_default_config(config_path)
        print(f"Default config saved to: {config_path}")
        return

    config = load_config(config_path)
    setup_logging(args.log_level or config.log_level)

    if args.split is not None:
        max_len = args.max or config.discord.max_message_length
        if max_len < 1:
            parser.error("--max must be a positive integer")
        _handle_split(args.split, max_len)
        return

    _load_env()

    try:
        asyncio.run(async_discord_main(config))
    except KeyboardInterrupt:
        print("\nGoodbye!")


if __name__ == "__main__":
    main()
