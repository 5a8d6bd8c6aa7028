"""SQLAlchemy ORM models."""

from storytime.models.child_profile import ChildProfile
from storytime.models.generation_request import GenerationRequest, GenerationStatus
from storytime.models.story import Story
from storytime.models.user import AuthToken, User

__all__ = [
    "AuthToken",
    "ChildProfile",
    "GenerationRequest",
    "GenerationStatus",
    "Story",
    "User",
]
