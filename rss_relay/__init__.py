"""
RSS Relay - Relay new RSS feed entries to a Telegram chat.

Polls a list of RSS/Atom feeds on a fixed interval and posts each
newly published entry once, oldest first.
"""

__version__ = "1.0.0"
