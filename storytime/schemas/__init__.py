"""Pydantic schemas for request/response validation."""

from storytime.schemas.child_profile import ChildProfile, ChildProfileCreate, ChildProfileUpdate
from storytime.schemas.envelope import ApiError, ApiResponse, Message
from storytime.schemas.generation import (
    GenerateStoryRequest,
    GenerationStarted,
    GenerationStatusResponse,
)
from storytime.schemas.story import Story, StoryCreate, StoryUpdate
from storytime.schemas.user import AuthToken, Credentials, User

__all__ = [
    "ApiError",
    "ApiResponse",
    "AuthToken",
    "ChildProfile",
    "ChildProfileCreate",
    "ChildProfileUpdate",
    "Credentials",
    "GenerateStoryRequest",
    "GenerationStarted",
    "GenerationStatusResponse",
    "Message",
    "Story",
    "StoryCreate",
    "StoryUpdate",
    "User",
]
