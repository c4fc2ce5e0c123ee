"""
In-memory watermark storage.

Tracks, per feed URL, the publication date of the newest entry already
emitted. The store lives for the process lifetime only: after a restart
every feed is seeded again without announcing its backlog.
"""

import asyncio
import logging
from datetime import datetime

logger = logging.getLogger(__name__)


class WatermarkStore:
    """
    Per-source watermark map.

    Reads and writes for the same source are serialized with a per-source
    lock; different sources never contend. A stored watermark never moves
    backwards.
    """

    def __init__(self) -> None:
        self._watermarks: dict[str, datetime] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, source: str) -> asyncio.Lock:
        lock = self._locks.get(source)
        if lock is None:
            lock = self._locks[source] = asyncio.Lock()
        return lock

    async def get_or_init(
        self, source: str, newest_seen: datetime
    ) -> tuple[datetime | None, datetime]:
        """
        Read the watermark of a source, seeding it if absent.

        Parameters
        ----------
        source : str
            Feed URL.
        newest_seen : datetime
            Publication date of the newest entry in the current fetch.

        Returns
        -------
        tuple[datetime | None, datetime]
            ``(previous, effective)``. ``previous`` is None when the store
            was seeded by this call, in which case ``effective`` is
            ``newest_seen``.
        """
        async with self._lock_for(source):
            current = self._watermarks.get(source)
            if current is None:
                self._watermarks[source] = newest_seen
                logger.debug("Seeded watermark for %s at %s", source, newest_seen.isoformat())
                return None, newest_seen
            return current, current

    async def advance(self, source: str, candidate: datetime) -> bool:
        """
        Move the watermark of a source forward.

        Parameters
        ----------
        source : str
            Feed URL.
        candidate : datetime
            Proposed new watermark.

        Returns
        -------
        bool
            True if the stored value changed. The value only changes when
            none is set or ``candidate`` is strictly greater.
        """
        async with self._lock_for(source):
            current = self._watermarks.get(source)
            if current is not None and candidate <= current:
                return False
            self._watermarks[source] = candidate
            logger.debug("Advanced watermark for %s to %s", source, candidate.isoformat())
            return True

    def get(self, source: str) -> datetime | None:
        """Return the current watermark of a source, or None."""
        return self._watermarks.get(source)

    def snapshot(self) -> dict[str, datetime]:
        """Return a copy of all watermarks."""
        return dict(self._watermarks)

    def __contains__(self, source: object) -> bool:
        return source in self._watermarks

    def __len__(self) -> int:
        return len(self._watermarks)
