"""
Entry model and watermark filtering for RSS Relay.

Converts raw feedparser items into immutable entries and selects the
entries that are newer than a source's watermark.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

logger = logging.getLogger(__name__)


class EntryConversionError(ValueError):
    """Raised when a raw feed item cannot be turned into a FeedEntry."""

    pass


TAG_PATTERN = re.compile(r"<[^>]+>")
WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_content(content: str) -> str:
    """
    Reduce HTML content to a single line of plain text.

    Tags are removed before entities are decoded, so escaped markup such
    as ``&lt;`` ends up as a literal character in the result.

    Parameters
    ----------
    content : str
        Raw content possibly containing HTML.

    Returns
    -------
    str
        Cleaned plain text content.
    """
    text = TAG_PATTERN.sub("", content)
    text = html.unescape(text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def _field_text(raw: Any, key: str) -> str | None:
    """Return a feedparser field as plain text, or None when empty."""
    value = raw.get(key)
    if not value:
        return None
    detail = raw.get(f"{key}_detail") or {}
    # feedparser already decoded text/plain values
    if detail.get("type") == "text/plain":
        text = WHITESPACE_PATTERN.sub(" ", str(value)).strip()
    else:
        text = clean_content(str(value))
    return text or None


def parse_published(raw: Any) -> datetime:
    """
    Extract a timezone-aware publication date from a feedparser item.

    The RFC 2822 ``pubDate`` string is preferred. When it cannot be read,
    feedparser's normalized ``published_parsed`` (always UTC) is used.

    Parameters
    ----------
    raw : Any
        A feedparser entry (or any mapping with the same keys).

    Returns
    -------
    datetime
        Publication date. Naive values are interpreted as UTC.

    Raises
    ------
    EntryConversionError
        If the item has no usable date.
    """
    published = raw.get("published")
    if published:
        try:
            parsed = parsedate_to_datetime(published)
        except (TypeError, ValueError):
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    published_parsed = raw.get("published_parsed")
    if published_parsed:
        return datetime(*published_parsed[:6], tzinfo=timezone.utc)

    if published:
        raise EntryConversionError(f"Unparseable publication date: {published!r}")
    raise EntryConversionError("Missing publication date")


@dataclass(frozen=True)
class FeedEntry:
    """
    Normalized syndication item.

    Two entries are equal when their ``id`` is equal; the other fields do
    not take part in comparison or hashing.

    Attributes
    ----------
    id : str
        Stable identifier (the item guid, or its link when no guid exists).
    published_at : datetime
        Timezone-aware publication date.
    title : str | None
        Entry title as plain text.
    description : str | None
        Entry description as plain text, tags removed and entities decoded.
    url : str | None
        Entry link.
    """

    id: str
    published_at: datetime = field(compare=False)
    title: str | None = field(default=None, compare=False)
    description: str | None = field(default=None, compare=False)
    url: str | None = field(default=None, compare=False)

    @classmethod
    def from_feedparser(cls, raw: Any) -> "FeedEntry":
        """
        Create a FeedEntry from a feedparser entry.

        Parameters
        ----------
        raw : Any
            A feedparser entry object.

        Returns
        -------
        FeedEntry
            Normalized entry instance.

        Raises
        ------
        EntryConversionError
            If the item has no identifier or no usable publication date.
        """
        url = raw.get("link") or None
        entry_id = raw.get("id") or url
        if not entry_id:
            raise EntryConversionError("Missing entry identifier")

        return cls(
            id=entry_id,
            published_at=parse_published(raw),
            title=_field_text(raw, "title"),
            description=_field_text(raw, "summary") or _field_text(raw, "description"),
            url=url,
        )


def select_new_entries(
    entries: list[FeedEntry], watermark: datetime
) -> list[FeedEntry]:
    """
    Select entries published strictly after the watermark.

    Parameters
    ----------
    entries : list[FeedEntry]
        Entries sorted newest first.
    watermark : datetime
        Publication date of the newest entry already emitted.

    Returns
    -------
    list[FeedEntry]
        Entries newer than the watermark, oldest first.
    """
    # Entries at exactly the watermark were already emitted.
    selected = [entry for entry in entries if entry.published_at > watermark]
    selected.sort(key=lambda entry: entry.published_at)

    logger.debug(
        "Selected %d of %d entries newer than %s",
        len(selected),
        len(entries),
        watermark.isoformat(),
    )

    return selected
