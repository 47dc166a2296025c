"""Post models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class InsertOutcome(str, Enum):
    """Result of attempting to store a post."""

    CREATED = "created"
    DUPLICATE = "duplicate"  # URL already stored


class PostCreate(BaseModel):
    """Data required to store a post."""

    title: str | None = Field(default=None, description="Item title")
    url: str = Field(description="Item link, the dedup key")
    description: str | None = Field(default=None, description="Item description")
    published_at: datetime = Field(description="Publication time from the feed")
    feed_id: str = Field(description="Owning feed")


class Post(PostCreate):
    """Full post model with all fields."""

    id: str
    created_at: datetime
    updated_at: datetime
