"""
Honeypot entry point

Loads settings, builds the static responses and notifier, binds the listener
and serves until interrupted. Startup failures exit with status 1.
"""
import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog

from honeypot.config import Settings
from honeypot.engine.counters import EventCounter
from honeypot.engine.responses import build_responses
from honeypot.engine.server import HoneypotServer
from honeypot.exceptions import ConfigurationError
from honeypot.logging import setup_logging
from honeypot.notifier import build_notifier

logger = structlog.get_logger()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Minecraft server-list honeypot")
    parser.add_argument(
        "--address",
        help="HOST:PORT to listen on (overrides ADDRESS)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (overrides LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.address:
        overrides["address"] = args.address
    if args.log_level:
        overrides["log_level"] = args.log_level
    return Settings(**overrides)


async def run(settings: Settings) -> None:
    responses = build_responses(settings)
    notifier = build_notifier(settings)
    server = HoneypotServer(
        settings,
        responses,
        notifier,
        ping_counter=EventCounter("ping"),
        join_counter=EventCounter("join"),
    )

    try:
        await server.start()
        await server.serve_forever()
    finally:
        await server.stop()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    settings = load_settings(args)
    setup_logging("honeypot", settings.log_level, settings.log_dir)

    try:
        asyncio.run(run(settings))
    except ConfigurationError as e:
        logger.error("startup_failed", error=e.message, **e.details)
        return 1
    except KeyboardInterrupt:
        logger.info("shutdown_requested")
    return 0


if __name__ == "__main__":
    sys.exit(main())
