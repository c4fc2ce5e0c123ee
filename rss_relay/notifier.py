"""
Protocol definition for notification sinks.

Defines the interface the polling loop delivers entries through.
"""

from typing import Protocol, runtime_checkable

from rss_relay.filters import FeedEntry


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol defining the interface for notification sinks.

    The @runtime_checkable decorator allows using isinstance() checks
    against this protocol for structural typing validation.
    """

    async def test_connection(self) -> bool:
        """
        Test the connection to the notification backend.

        Returns
        -------
        bool
            True if the connection is working and messages can be sent.
        """
        ...

    async def send_entry(self, entry: FeedEntry) -> bool:
        """
        Send a feed entry as a notification.

        Parameters
        ----------
        entry : FeedEntry
            The entry to send.

        Returns
        -------
        bool
            True if the notification was sent successfully.
        """
        ...

    async def close(self) -> None:
        """Close the notifier and release any resources."""
        ...
