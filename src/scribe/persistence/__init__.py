"""Persistence layer for Scribe.

SQLAlchemy async engine, ORM tables and repositories for posts, tags and
comments.
"""

from scribe.persistence.db import Database, get_database, get_session
from scribe.persistence.repositories import (
    CommentRepository,
    CreatedComment,
    InvalidRecipientError,
    PostRepository,
)

__all__ = [
    "Database",
    "get_database",
    "get_session",
    "CommentRepository",
    "CreatedComment",
    "InvalidRecipientError",
    "PostRepository",
]
