"""Story schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StoryBase(BaseModel):
    """Base story schema."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=10, max_length=10000)
    theme: str | None = Field(default=None, max_length=100)
    reading_level: str | None = Field(default=None, max_length=50)


class StoryCreate(StoryBase):
    """Schema for writing a story by hand."""

    child_profile_id: str | None = None


class StoryUpdate(BaseModel):
    """Schema for a partial story update."""

    child_profile_id: str | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=10, max_length=10000)
    theme: str | None = Field(default=None, max_length=100)
    reading_level: str | None = Field(default=None, max_length=50)
    is_favorite: bool | None = None


class Story(BaseModel):
    """Schema for story output."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    theme: str | None = None
    reading_level: str | None = None
    user_id: str
    child_profile_id: str | None = None
    word_count: int
    generation_prompt: str | None = None
    illustrations: list[str] = []
    is_favorite: bool
    last_read_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
