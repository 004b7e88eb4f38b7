"""Scribe: a blog engine whose rendered pages are cached in process memory
and purged by content change events."""

__version__ = "0.1.0"
