"""
Shared fixtures for RSS Relay tests.

Provides common test fixtures for use across all test modules.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from rss_relay.config import AppConfig, TelegramConfig
from rss_relay.filters import FeedEntry


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_path(fixtures_dir: Path) -> Path:
    """Return path to sample RSS feed file."""
    return fixtures_dir / "sample_rss.xml"


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def sample_rss_content(sample_rss_path: Path) -> str:
    """Return contents of sample RSS feed."""
    return sample_rss_path.read_text()


@pytest.fixture
def base_time() -> datetime:
    """Return the reference time T used by ordering tests."""
    return BASE_TIME


@pytest.fixture
def make_entry() -> Callable[..., FeedEntry]:
    """
    Return a factory building entries dated relative to BASE_TIME.

    ``make_entry(3)`` builds the entry published at T+3 minutes with id
    ``entry-3``.
    """

    def factory(offset: int, **kwargs: Any) -> FeedEntry:
        fields: dict[str, Any] = {
            "id": f"entry-{offset}",
            "published_at": BASE_TIME + timedelta(minutes=offset),
            "title": f"Entry {offset}",
            "description": f"Description {offset}",
            "url": f"https://example.com/{offset}",
        }
        fields.update(kwargs)
        return FeedEntry(**fields)

    return factory


@pytest.fixture
def sample_entry() -> FeedEntry:
    """Create a fully populated entry."""
    return FeedEntry(
        id="https://example.com/test-entry",
        published_at=BASE_TIME,
        title="Test Entry Title",
        description="This is the test entry content.",
        url="https://example.com/test-entry",
    )


@pytest.fixture
def minimal_telegram_config() -> TelegramConfig:
    """Create a minimal valid Telegram configuration."""
    return TelegramConfig(
        bot_token="1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
        chat_id="-1001234567890",
    )


@pytest.fixture
def minimal_config_dict() -> dict[str, Any]:
    """
    Create a minimal valid configuration dictionary.

    Returns
    -------
    dict
        Configuration dictionary that can be used to create AppConfig.
    """
    return {
        "telegram": {
            "bot_token": "1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
            "chat_id": "-1001234567890",
        },
        "feeds": ["https://example.com/feed.xml"],
    }


@pytest.fixture
def minimal_app_config(minimal_telegram_config: TelegramConfig) -> AppConfig:
    """Create a minimal valid app configuration."""
    return AppConfig(
        telegram=minimal_telegram_config,
        feeds=["https://example.com/feed.xml"],
    )


@pytest.fixture
def mock_notifier() -> MagicMock:
    """
    Create a mock notifier that accepts every entry.

    Returns
    -------
    MagicMock
        A notifier with async ``send_entry``, ``test_connection`` and ``close``.
    """
    notifier = MagicMock()
    notifier.send_entry = AsyncMock(return_value=True)
    notifier.test_connection = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier


@pytest.fixture
def mock_telegram_bot() -> MagicMock:
    """
    Create a mock Telegram bot.

    Returns
    -------
    MagicMock
        A mock Bot instance with common methods mocked.
    """
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.get_me = AsyncMock(return_value=MagicMock(username="test_bot"))
    bot.shutdown = AsyncMock()
    return bot
