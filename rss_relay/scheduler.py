"""
Polling loop for RSS Relay.

Polls every configured feed in turn, delivers entries newer than the
feed's watermark to the notifier oldest first, then advances the
watermark. Delivery is at-most-once: the watermark moves past an entry
even if sending it failed.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from rss_relay.filters import FeedEntry, select_new_entries
from rss_relay.notifier import Notifier
from rss_relay.rss_parser import FetchError
from rss_relay.storage import WatermarkStore

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Anything that returns a feed's entries newest first."""

    async def fetch_feed(self, url: str) -> list[FeedEntry]: ...


class PollScheduler:
    """
    Periodic feed poller.

    Owns the watermark store unless one is passed in. Sources are polled
    sequentially, so a single source is never polled by two cycles at once.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        notifier: Notifier,
        store: WatermarkStore | None = None,
    ):
        """
        Initialize the scheduler.

        Parameters
        ----------
        fetcher : Fetcher
            Feed fetcher, usually a FeedParser.
        notifier : Notifier
            Destination for new entries.
        store : WatermarkStore | None
            Watermark store to use. A new one is created if omitted.
        """
        self.fetcher = fetcher
        self.notifier = notifier
        self.store = store if store is not None else WatermarkStore()
        self._running = False
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        """Whether ``run`` is currently looping."""
        return self._running

    async def poll_source(self, url: str) -> int:
        """
        Poll a single feed once.

        Parameters
        ----------
        url : str
            Feed URL.

        Returns
        -------
        int
            Number of entries successfully delivered.
        """
        try:
            entries = await self.fetcher.fetch_feed(url)
        except FetchError as e:
            logger.warning("Skipping feed this cycle: %s", e)
            return 0

        if not entries:
            logger.debug("No entries found in %s", url)
            return 0

        newest = entries[0].published_at
        previous, watermark = await self.store.get_or_init(url, newest)

        if previous is None:
            logger.info(
                "New feed detected: skipping %d existing entr%s in %s",
                len(entries),
                "y" if len(entries) == 1 else "ies",
                url,
            )
            return 0

        new_entries = select_new_entries(entries, watermark)
        if new_entries:
            logger.info(
                "Found %d new entr%s in %s",
                len(new_entries),
                "y" if len(new_entries) == 1 else "ies",
                url,
            )

        delivered = await self._deliver(new_entries)

        await self.store.advance(url, newest)
        return delivered

    async def _deliver(self, entries: list[FeedEntry]) -> int:
        """Send entries in order, continuing past individual failures."""
        delivered = 0
        for entry in entries:
            try:
                if await self.notifier.send_entry(entry):
                    delivered += 1
                else:
                    logger.error("Notifier rejected entry '%s'", entry.id[:50])
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Failed to notify for entry '%s': %s", entry.id[:50], e)
        return delivered

    async def run_cycle(self, sources: Sequence[str]) -> int:
        """
        Poll every source once, in order.

        Parameters
        ----------
        sources : Sequence[str]
            Feed URLs.

        Returns
        -------
        int
            Total number of entries delivered.
        """
        total = 0
        for url in sources:
            if self._stop_event.is_set():
                break
            try:
                total += await self.poll_source(url)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error checking feed %s: %s", url, e)
        return total

    async def run(self, sources: Sequence[str], interval: float) -> None:
        """
        Poll all sources every ``interval`` seconds until stopped.

        Parameters
        ----------
        sources : Sequence[str]
            Feed URLs, polled in this order each cycle.
        interval : float
            Seconds to sleep between cycles.

        Raises
        ------
        RuntimeError
            If the scheduler is already running.
        ValueError
            If ``interval`` is not positive.
        """
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        if self._running:
            raise RuntimeError("Scheduler is already running")

        self._running = True
        logger.info("Polling %d feed(s) every %ss", len(sources), interval)

        try:
            while not self._stop_event.is_set():
                delivered = await self.run_cycle(sources)
                logger.debug(
                    "Cycle complete, %d entr%s delivered",
                    delivered,
                    "y" if delivered == 1 else "ies",
                )

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info("Polling stopped")

    def stop(self) -> None:
        """
        Stop polling.

        A running loop exits after the source in progress; a loop started
        later returns immediately.
        """
        self._stop_event.set()
