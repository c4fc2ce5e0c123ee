"""
Main entry point for RSS Relay.

Runs the async polling loop that relays new feed entries to Telegram.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from urllib.parse import urlparse

import coloredlogs

from rss_relay.config import load_config, write_default_config
from rss_relay.rss_parser import FeedParser
from rss_relay.scheduler import PollScheduler
from rss_relay.telegram import TelegramNotifier

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


class RSSRelay:
    """
    Main RSS relay application.

    Wires the feed parser, the Telegram notifier and the polling loop
    together and manages their lifecycle.
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the relay.

        Parameters
        ----------
        config_path : str | Path
            Path to the YAML configuration file.
        """
        self.config = load_config(config_path)
        self.parser: FeedParser | None = None
        self.notifier: TelegramNotifier | None = None
        self.scheduler: PollScheduler | None = None
        self._stop_requested = False

    async def start(self) -> None:
        """Start relaying and poll until stopped."""
        logger.info("Starting RSS Relay")

        proxy_url = self.config.defaults.proxy
        if proxy_url:
            logger.info("Using proxy: %s", redact_proxy_url(proxy_url))

        self.parser = FeedParser(
            timeout=self.config.defaults.request_timeout,
            user_agent=self.config.defaults.user_agent,
            proxy_url=proxy_url,
        )
        self.notifier = TelegramNotifier(self.config.telegram, proxy_url=proxy_url)

        if not await self.notifier.test_connection():
            logger.error("Failed to connect to Telegram, exiting")
            await self.stop()
            sys.exit(1)

        self.scheduler = PollScheduler(self.parser, self.notifier)
        if self._stop_requested:
            self.scheduler.stop()

        try:
            await self.scheduler.run(
                self.config.feeds,
                self.config.defaults.poll_interval,
            )
        except asyncio.CancelledError:
            logger.info("Polling task cancelled")

    def request_stop(self) -> None:
        """Ask the polling loop to exit after the feed in progress."""
        self._stop_requested = True
        if self.scheduler:
            self.scheduler.stop()

    async def stop(self) -> None:
        """Stop the relay gracefully and release its resources."""
        logger.info("Stopping RSS Relay")
        self.request_stop()

        if self.parser:
            await self.parser.close()
            self.parser = None
        if self.notifier:
            await self.notifier.close()
            self.notifier = None

        logger.info("RSS Relay stopped")


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Relay new RSS feed entries to a Telegram chat",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Write a starter configuration file and exit",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    config_path = Path(args.config)

    if args.init:
        try:
            write_default_config(config_path)
        except FileExistsError as e:
            logger.error("%s", e)
            sys.exit(1)
        return

    if not config_path.exists():
        logger.error("Configuration file not found: %s", config_path)
        sys.exit(1)

    try:
        relay = RSSRelay(config_path)
    except Exception as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        relay.request_stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(relay.start())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(relay.stop())
        loop.close()


if __name__ == "__main__":
    main()
