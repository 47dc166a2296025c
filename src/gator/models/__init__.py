"""Pydantic models for Gator."""

from gator.models.feed import Feed, FeedCreate, FeedFollow, FeedWithOwner
from gator.models.post import InsertOutcome, Post, PostCreate
from gator.models.user import User, UserCreate

__all__ = [
    "Feed",
    "FeedCreate",
    "FeedFollow",
    "FeedWithOwner",
    "InsertOutcome",
    "Post",
    "PostCreate",
    "User",
    "UserCreate",
]
