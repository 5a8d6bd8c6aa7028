"""Story generation request and status schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from storytime.schemas.child_profile import ReadingLevel

StoryLength = Literal["short", "medium", "long", "custom"]
StoryAbout = Literal["child", "other_character"]


class GenerateStoryRequest(BaseModel):
    """Parameters for a new story generation.

    ``child_profile_id`` may be omitted to use the caller's active profile.
    """

    child_profile_id: str | None = None
    theme: str | None = Field(default=None, max_length=100)
    custom_prompt: str | None = Field(default=None, min_length=5, max_length=500)
    story_length: StoryLength = "medium"
    custom_word_count: int | None = Field(default=None, ge=50, le=3000)
    reading_level: ReadingLevel | None = None
    story_about: StoryAbout = "child"
    custom_character_name: str | None = Field(default=None, min_length=1, max_length=100)
    include_illustrations: bool = False

    @model_validator(mode="after")
    def check_character_focus(self) -> "GenerateStoryRequest":
        if self.story_about == "other_character" and not self.custom_character_name:
            raise ValueError("custom_character_name is required when story_about is 'other_character'")
        return self


class GenerationStarted(BaseModel):
    """Returned as soon as a generation request is tracked."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    request_id: str
    status: str
    poll_interval_seconds: float


class GenerationStatusResponse(BaseModel):
    """Current state of a generation request, as seen by a polling client."""

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str = Field(serialization_alias="requestId")
    child_profile_id: str | None = None
    theme: str | None = None
    story_length: str
    custom_word_count: int | None = None
    reading_level: str | None = None
    custom_prompt: str | None = None
    story_about: str
    custom_character_name: str | None = None
    include_illustrations: bool
    status: str
    story_id: str | None = None
    error_message: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
