"""
Command-line interface for the book exchange services.

Usage:
    bookexchange serve {books,users,exchange} [--host HOST] [--port PORT] [--reload]
    bookexchange notify

Examples:
    bookexchange serve books
    bookexchange serve users --port 6001
    bookexchange notify
"""

import argparse
import asyncio
import logging

import uvicorn
from redis.asyncio import Redis

from bookexchange.config import SERVICE_PORTS, Settings
from bookexchange.events.subscriber import NotificationSubscriber

logger = logging.getLogger(__name__)

APP_PATHS = {
    "books": "bookexchange.main:book_app",
    "users": "bookexchange.main:user_app",
    "exchange": "bookexchange.main:exchange_app",
}


def run_server(service: str, host: str, port: int | None, reload: bool, log_level: str) -> None:
    """Start one service with uvicorn."""
    port = port or SERVICE_PORTS[service]
    logger.info("Starting %s service at http://%s:%d", service, host, port)
    uvicorn.run(APP_PATHS[service], host=host, port=port, reload=reload, log_level=log_level.lower())


async def run_notifier(settings: Settings) -> None:
    """Run the notification subscriber until interrupted."""
    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await NotificationSubscriber(redis, settings.events_channel).run()
    finally:
        await redis.aclose()


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Book exchange services",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Start an HTTP service")
    serve_parser.add_argument("service", choices=sorted(APP_PATHS))
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    subparsers.add_parser("notify", help="Log BookAdded events as they are published")

    args = parser.parse_args()
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        run_server(args.service, args.host, args.port, args.reload, settings.log_level)
    elif args.command == "notify":
        try:
            asyncio.run(run_notifier(settings))
        except KeyboardInterrupt:
            logger.info("Notification subscriber stopped")


if __name__ == "__main__":
    main()
