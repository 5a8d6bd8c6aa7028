"""Child profile schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ReadingLevel = Literal["beginner", "intermediate", "advanced"]
ContentSafety = Literal["strict", "moderate", "relaxed"]


class ChildProfileBase(BaseModel):
    """Base child profile schema."""

    name: str = Field(min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=0, le=18)
    grade: str | None = Field(default=None, max_length=50)
    reading_level: ReadingLevel | None = None
    interests: list[str] = Field(default_factory=list)
    favorite_themes: list[str] = Field(default_factory=list)
    content_safety: ContentSafety = "strict"
    preferred_art_style: str = Field(default="watercolor", max_length=50)


class ChildProfileCreate(ChildProfileBase):
    """Schema for creating a child profile."""

    pass


class ChildProfileUpdate(BaseModel):
    """Schema for updating a child profile. Activation has its own endpoint."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=0, le=18)
    grade: str | None = Field(default=None, max_length=50)
    reading_level: ReadingLevel | None = None
    interests: list[str] | None = None
    favorite_themes: list[str] | None = None
    content_safety: ContentSafety | None = None
    preferred_art_style: str | None = Field(default=None, max_length=50)


class ChildProfile(ChildProfileBase):
    """Schema for child profile response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
