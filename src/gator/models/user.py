"""User models."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Data required to register a user."""

    name: str = Field(min_length=1, description="Unique user name")


class User(UserCreate):
    """Full user model."""

    id: str
    created_at: datetime
    updated_at: datetime
