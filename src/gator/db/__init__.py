"""Database module for Gator."""

from gator.db.connection import get_connection
from gator.db.repository import (
    FeedFollowRepository,
    FeedRepository,
    PostRepository,
    UserRepository,
)

__all__ = [
    "FeedFollowRepository",
    "FeedRepository",
    "PostRepository",
    "UserRepository",
    "get_connection",
]
