"""Feed and follow models."""

from datetime import datetime

from pydantic import BaseModel, Field


class FeedCreate(BaseModel):
    """Data required to add a new feed."""

    name: str = Field(description="Display name")
    url: str = Field(min_length=1, description="RSS URL, unique across feeds")
    user_id: str = Field(description="User who added the feed")


class Feed(FeedCreate):
    """Full feed model with all fields."""

    id: str
    created_at: datetime
    updated_at: datetime
    last_fetched_at: datetime | None = None

    @property
    def never_fetched(self) -> bool:
        return self.last_fetched_at is None


class FeedWithOwner(Feed):
    """Feed joined with the name of the user who added it."""

    user_name: str


class FeedFollow(BaseModel):
    """A user following a feed, with both names resolved."""

    id: str
    created_at: datetime
    updated_at: datetime
    user_id: str
    feed_id: str
    user_name: str
    feed_name: str
